"""Project staff-assignment variants and the membership accessor.

Projects carry staff assignment in one of several shapes depending on which
deployment generation wrote them: nothing, a single assignee reference, a
list of assignees, or role-split electrical/mechanical/lead references.
Report code never inspects those fields directly; it resolves a variant once
and asks ``is_staff_assigned``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Union
from uuid import UUID

from app.models.entities import Project


@dataclass(frozen=True, slots=True)
class Unassigned:
    pass


@dataclass(frozen=True, slots=True)
class SingleAssignment:
    staff_id: UUID


@dataclass(frozen=True, slots=True)
class MultiAssignment:
    staff_ids: frozenset[UUID]


@dataclass(frozen=True, slots=True)
class RoleSplitAssignment:
    electrical_id: UUID | None = None
    mechanical_id: UUID | None = None
    lead_id: UUID | None = None


Assignment = Union[Unassigned, SingleAssignment, MultiAssignment, RoleSplitAssignment]

ROLE_SPLIT_KEYS = ("electricalEngineer", "mechanicalEngineer", "leadEngineer")


def _as_uuid(value: object) -> UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, UUID):
        return value
    if isinstance(value, Mapping):
        # Populated references arrive as embedded documents.
        return _as_uuid(value.get("id") or value.get("_id"))
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _ids(values: Iterable[object]) -> frozenset[UUID]:
    return frozenset(staff_id for staff_id in (_as_uuid(value) for value in values) if staff_id is not None)


def resolve_assignment(project: Project, assignee_ids: Iterable[UUID] = ()) -> Assignment:
    """Resolve the assignment variant of a stored project row.

    ``assignee_ids`` are the project's ``project_assignments`` rows. When a
    project carries more than one shape, the newest one wins: role split,
    then the assignee list, then the legacy single reference.
    """

    if any(
        staff_id is not None
        for staff_id in (
            project.electrical_engineer_id,
            project.mechanical_engineer_id,
            project.lead_engineer_id,
        )
    ):
        return RoleSplitAssignment(
            electrical_id=project.electrical_engineer_id,
            mechanical_id=project.mechanical_engineer_id,
            lead_id=project.lead_engineer_id,
        )

    listed = _ids(assignee_ids)
    if listed:
        return MultiAssignment(staff_ids=listed)
    if project.employee_assigned_id is not None:
        return SingleAssignment(staff_id=project.employee_assigned_id)
    return Unassigned()


def resolve_assignment_document(document: Mapping[str, object]) -> Assignment:
    """Resolve the assignment variant of an imported project document.

    ``employeeAssigned`` may hold one reference or a list of references.
    """

    if any(document.get(key) for key in ROLE_SPLIT_KEYS):
        return RoleSplitAssignment(
            electrical_id=_as_uuid(document.get("electricalEngineer")),
            mechanical_id=_as_uuid(document.get("mechanicalEngineer")),
            lead_id=_as_uuid(document.get("leadEngineer")),
        )

    assigned = document.get("employeeAssigned")
    if isinstance(assigned, (list, tuple, set, frozenset)):
        listed = _ids(assigned)
        return MultiAssignment(staff_ids=listed) if listed else Unassigned()

    single = _as_uuid(assigned)
    if single is not None:
        return SingleAssignment(staff_id=single)
    return Unassigned()


def assigned_staff_ids(assignment: Assignment) -> frozenset[UUID]:
    if isinstance(assignment, Unassigned):
        return frozenset()
    if isinstance(assignment, SingleAssignment):
        return frozenset({assignment.staff_id})
    if isinstance(assignment, MultiAssignment):
        return assignment.staff_ids
    if isinstance(assignment, RoleSplitAssignment):
        return frozenset(
            staff_id
            for staff_id in (assignment.electrical_id, assignment.mechanical_id, assignment.lead_id)
            if staff_id is not None
        )
    raise TypeError(f"Unsupported assignment variant: {type(assignment).__name__}")


def is_staff_assigned(assignment: Assignment, staff_id: UUID) -> bool:
    """Whether ``staff_id`` is associated with the project in any role."""

    return staff_id in assigned_staff_ids(assignment)

"""ORM model package."""

from app.models.entities import (
    EngineerType,
    Project,
    ProjectAssignment,
    ProjectStatus,
    ProjectType,
    Staff,
    StaffRole,
    TaskLog,
    TaskType,
    TransportMode,
    WorkStage,
)

__all__ = [
    "EngineerType",
    "Project",
    "ProjectAssignment",
    "ProjectStatus",
    "ProjectType",
    "Staff",
    "StaffRole",
    "TaskLog",
    "TaskType",
    "TransportMode",
    "WorkStage",
]

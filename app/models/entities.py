"""ORM entities for the portal task-log and project directory schema."""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class StaffRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"


class EngineerType(str, enum.Enum):
    ELECTRICAL = "Electrical"
    MECHANICAL = "Mechanical"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    STALLED = "Stalled"
    # Legacy values still present in older records.
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"


class ProjectType(str, enum.Enum):
    PERSONAL_HOUSE = "Personal Hse"
    HOSTEL = "Hostel"
    HOTEL = "Hotel"
    OFFICE_BLOCK = "Office Block"
    RESIDENTIAL_APARTMENT = "Residential Apartment"
    INDUSTRIAL = "Industrial"
    FIT_OUT = "FitOut"
    RENOVATION = "Renovation"
    SCHOOL = "School"
    RESEARCH = "Research"


class WorkStage(str, enum.Enum):
    TENDERING = "Tendering"
    PROCUREMENT = "Procurement"
    PRE_DESIGN = "Pre-Design"
    DESIGN = "Design"
    CONSTRUCTION_MONITORING = "Construction & Monitoring"
    COMMISSIONING = "Commissioning"
    HANDOVER = "Handover"
    GENERAL = "General"


class TaskType(str, enum.Enum):
    DESIGN = "Design"
    INSPECTION = "Inspection"
    SITE_MEETING = "Site Meeting"
    VALUATION = "Valuation"
    TESTING = "Testing"
    COMMISSIONING = "Commissioning"
    DOCUMENTATION = "Documentation"
    COORDINATION_MEETING = "Coordination Meeting"


class TransportMode(str, enum.Enum):
    ROAD = "Road"
    FLIGHT = "Flight"
    OTHER = "Other"


def _enum_column(enum_cls: type[enum.Enum], name: str) -> SQLEnum:
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


class Staff(Base):
    __tablename__ = "staff"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    role: Mapped[StaffRole] = mapped_column(
        _enum_column(StaffRole, "staff_role"), nullable=False, default=StaffRole.STAFF
    )
    engineer_type: Mapped[EngineerType | None] = mapped_column(
        _enum_column(EngineerType, "engineer_type"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_status", "status"),
        Index("ix_projects_stage", "stage"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_type: Mapped[ProjectType | None] = mapped_column(
        _enum_column(ProjectType, "project_type"), nullable=True
    )
    stage: Mapped[WorkStage | None] = mapped_column(_enum_column(WorkStage, "work_stage"), nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        _enum_column(ProjectStatus, "project_status"), nullable=False, default=ProjectStatus.ACTIVE
    )
    architect: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    # Assignment shapes used by successive deployment generations; see
    # app.services.assignment for how membership is resolved across them.
    employee_assigned_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True
    )
    electrical_engineer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True
    )
    mechanical_engineer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True
    )
    lead_engineer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class ProjectAssignment(Base):
    __tablename__ = "project_assignments"
    __table_args__ = (
        UniqueConstraint("project_id", "staff_id", name="uq_project_assignments_project_staff"),
        Index("ix_project_assignments_staff_id", "staff_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False)
    staff_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("staff.id"), nullable=False)


class TaskLog(Base):
    __tablename__ = "task_logs"
    __table_args__ = (
        CheckConstraint("project_hours >= 0", name="ck_task_logs_project_hours_non_negative"),
        CheckConstraint("travel_hours >= 0", name="ck_task_logs_travel_hours_non_negative"),
        CheckConstraint("mileage >= 0", name="ck_task_logs_mileage_non_negative"),
        CheckConstraint(
            "abs(total_man_hours - (project_hours + travel_hours)) < 0.005",
            name="ck_task_logs_total_matches_parts",
        ),
        UniqueConstraint(
            "project_id",
            "employee_id",
            "work_date",
            name="uq_task_logs_project_employee_date",
        ),
        Index("ix_task_logs_work_date", "work_date"),
        Index("ix_task_logs_employee_date", "employee_id", "work_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("staff.id"), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    stage: Mapped[WorkStage] = mapped_column(_enum_column(WorkStage, "work_stage"), nullable=False)
    task_type: Mapped[TaskType] = mapped_column(_enum_column(TaskType, "task_type"), nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(
        _enum_column(ProjectStatus, "project_status"), nullable=False, default=ProjectStatus.IN_PROGRESS
    )
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    project_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("0.00"))
    travel_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("0.00"))
    total_man_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("0.00"))
    leaves_office: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    transport_mode: Mapped[TransportMode | None] = mapped_column(
        _enum_column(TransportMode, "transport_mode"), nullable=True
    )
    mileage: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    destination: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

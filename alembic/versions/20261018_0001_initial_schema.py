"""initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


staff_role = postgresql.ENUM("admin", "staff", name="staff_role", create_type=False)
engineer_type = postgresql.ENUM("Electrical", "Mechanical", name="engineer_type", create_type=False)
project_status = postgresql.ENUM(
    "Active",
    "Completed",
    "Stalled",
    "Pending",
    "In Progress",
    "On Hold",
    name="project_status",
    create_type=False,
)
project_type = postgresql.ENUM(
    "Personal Hse",
    "Hostel",
    "Hotel",
    "Office Block",
    "Residential Apartment",
    "Industrial",
    "FitOut",
    "Renovation",
    "School",
    "Research",
    name="project_type",
    create_type=False,
)
work_stage = postgresql.ENUM(
    "Tendering",
    "Procurement",
    "Pre-Design",
    "Design",
    "Construction & Monitoring",
    "Commissioning",
    "Handover",
    "General",
    name="work_stage",
    create_type=False,
)
task_type = postgresql.ENUM(
    "Design",
    "Inspection",
    "Site Meeting",
    "Valuation",
    "Testing",
    "Commissioning",
    "Documentation",
    "Coordination Meeting",
    name="task_type",
    create_type=False,
)
transport_mode = postgresql.ENUM("Road", "Flight", "Other", name="transport_mode", create_type=False)

ENUM_TYPES = (staff_role, engineer_type, project_status, project_type, work_stage, task_type, transport_mode)


def upgrade() -> None:
    for enum_type in ENUM_TYPES:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "staff",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("role", staff_role, nullable=False, server_default="staff"),
        sa.Column("engineer_type", engineer_type, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("project_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("project_name", sa.String(length=255), nullable=False),
        sa.Column("project_type", project_type, nullable=True),
        sa.Column("stage", work_stage, nullable=True),
        sa.Column("status", project_status, nullable=False, server_default="Active"),
        sa.Column("architect", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("employee_assigned_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("electrical_engineer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("mechanical_engineer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("lead_engineer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_stage", "projects", ["stage"])

    op.create_table(
        "project_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("staff_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("staff.id"), nullable=False),
        sa.UniqueConstraint("project_id", "staff_id", name="uq_project_assignments_project_staff"),
    )
    op.create_index("ix_project_assignments_staff_id", "project_assignments", ["staff_id"])

    op.create_table(
        "task_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("staff.id"), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("stage", work_stage, nullable=False),
        sa.Column("task_type", task_type, nullable=False),
        sa.Column("status", project_status, nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("project_hours", sa.Numeric(6, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("travel_hours", sa.Numeric(6, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_man_hours", sa.Numeric(6, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("leaves_office", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("transport_mode", transport_mode, nullable=True),
        sa.Column("mileage", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("destination", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("project_hours >= 0", name="ck_task_logs_project_hours_non_negative"),
        sa.CheckConstraint("travel_hours >= 0", name="ck_task_logs_travel_hours_non_negative"),
        sa.CheckConstraint("mileage >= 0", name="ck_task_logs_mileage_non_negative"),
        sa.CheckConstraint(
            "abs(total_man_hours - (project_hours + travel_hours)) < 0.005",
            name="ck_task_logs_total_matches_parts",
        ),
        sa.UniqueConstraint(
            "project_id",
            "employee_id",
            "work_date",
            name="uq_task_logs_project_employee_date",
        ),
    )
    op.create_index("ix_task_logs_work_date", "task_logs", ["work_date"])
    op.create_index("ix_task_logs_employee_date", "task_logs", ["employee_id", "work_date"])


def downgrade() -> None:
    op.drop_index("ix_task_logs_employee_date", table_name="task_logs")
    op.drop_index("ix_task_logs_work_date", table_name="task_logs")
    op.drop_table("task_logs")

    op.drop_index("ix_project_assignments_staff_id", table_name="project_assignments")
    op.drop_table("project_assignments")

    op.drop_index("ix_projects_stage", table_name="projects")
    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_table("projects")

    op.drop_table("staff")

    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(op.get_bind(), checkfirst=True)

"""Repository helpers for task logs, the project directory, and staff."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from app.models.entities import Project, ProjectAssignment, Staff, StaffRole, TaskLog
from app.services.report_filters import ReportFilter


class TaskLogRepository:
    """Read and write operations used by reporting and submission services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Task logs ----------
    def list_report_rows(self, report_filter: ReportFilter) -> list[Row[tuple[TaskLog, Project | None, Staff | None]]]:
        return self.db.execute(
            select(TaskLog, Project, Staff)
            .outerjoin(Project, Project.id == TaskLog.project_id)
            .outerjoin(Staff, Staff.id == TaskLog.employee_id)
            .where(*report_filter.task_log_conditions())
            .order_by(TaskLog.work_date.desc(), Staff.name.asc(), TaskLog.id.asc())
        ).all()

    def touched_project_ids(self, report_filter: ReportFilter) -> set[UUID]:
        return set(
            self.db.scalars(
                select(TaskLog.project_id).where(*report_filter.task_log_conditions()).distinct()
            ).all()
        )

    def get_task_log(self, task_log_id: UUID) -> TaskLog | None:
        return self.db.scalar(select(TaskLog).where(TaskLog.id == task_log_id))

    def get_task_log_by_key(self, *, project_id: UUID, employee_id: UUID, work_date: date) -> TaskLog | None:
        return self.db.scalar(
            select(TaskLog).where(
                and_(
                    TaskLog.project_id == project_id,
                    TaskLog.employee_id == employee_id,
                    TaskLog.work_date == work_date,
                )
            )
        )

    def list_task_logs_for_employee(self, employee_id: UUID, *, since: date | None = None) -> list[TaskLog]:
        conditions = [TaskLog.employee_id == employee_id]
        if since is not None:
            conditions.append(TaskLog.work_date >= since)
        return self.db.scalars(
            select(TaskLog).where(*conditions).order_by(TaskLog.work_date.desc(), TaskLog.id.asc())
        ).all()

    def add_task_log(self, task_log: TaskLog) -> TaskLog:
        self.db.add(task_log)
        self.db.flush()
        return task_log

    def delete_task_log(self, task_log: TaskLog) -> None:
        self.db.delete(task_log)
        self.db.flush()

    def count_logs_by_employee(self, *, start: date, end: date) -> dict[UUID, int]:
        rows = self.db.execute(
            select(TaskLog.employee_id, func.count(TaskLog.id))
            .where(and_(TaskLog.work_date >= start, TaskLog.work_date <= end))
            .group_by(TaskLog.employee_id)
        ).all()
        return {employee_id: count for employee_id, count in rows}

    def distinct_work_dates(self) -> list[date]:
        return self.db.scalars(select(TaskLog.work_date).distinct().order_by(TaskLog.work_date.desc())).all()

    # ---------- Projects ----------
    def get_project(self, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    def list_projects(self, project_ids: set[UUID] | None = None) -> list[Project]:
        query = select(Project).order_by(Project.project_number.asc())
        if project_ids is not None:
            if not project_ids:
                return []
            query = query.where(Project.id.in_(project_ids))
        return self.db.scalars(query).all()

    def assignee_ids_by_project(self) -> dict[UUID, list[UUID]]:
        rows = self.db.execute(
            select(ProjectAssignment.project_id, ProjectAssignment.staff_id).order_by(
                ProjectAssignment.project_id.asc()
            )
        ).all()
        grouped: dict[UUID, list[UUID]] = {}
        for project_id, staff_id in rows:
            grouped.setdefault(project_id, []).append(staff_id)
        return grouped

    # ---------- Staff ----------
    def list_staff(self, role: StaffRole | None = StaffRole.STAFF) -> list[Staff]:
        query = select(Staff).order_by(Staff.name.asc())
        if role is not None:
            query = query.where(Staff.role == role)
        return self.db.scalars(query).all()

from __future__ import annotations

import uuid
from collections.abc import Generator
from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import STAFF_ROLE_TO_APP_ROLE, create_access_token
from app.db.base import Base
from app.db.dependencies import get_db_session
import app.models.entities  # noqa: F401
from app.main import create_app
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

TEST_TABLES = [
    Staff.__table__,
    Project.__table__,
    ProjectAssignment.__table__,
    TaskLog.__table__,
]


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(staff: Staff) -> dict[str, str]:
    token = create_access_token(staff.id, STAFF_ROLE_TO_APP_ROLE[staff.role])
    return {"Authorization": f"Bearer {token}"}


class Seed:
    """Row builders for the report store used across API and service tests."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self._project_counter = 0

    def staff(
        self,
        name: str,
        *,
        role: StaffRole = StaffRole.STAFF,
        engineer_type: EngineerType | None = EngineerType.ELECTRICAL,
        email: str | None = None,
    ) -> Staff:
        row = Staff(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@test.local",
            role=role,
            engineer_type=engineer_type,
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def project(
        self,
        name: str,
        *,
        number: str | None = None,
        status: ProjectStatus = ProjectStatus.ACTIVE,
        stage: WorkStage | None = WorkStage.DESIGN,
        project_type: ProjectType | None = ProjectType.OFFICE_BLOCK,
        employee_assigned_id: uuid.UUID | None = None,
        electrical_engineer_id: uuid.UUID | None = None,
        mechanical_engineer_id: uuid.UUID | None = None,
        lead_engineer_id: uuid.UUID | None = None,
        assignee_ids: tuple[uuid.UUID, ...] = (),
    ) -> Project:
        self._project_counter += 1
        now = datetime.utcnow()
        row = Project(
            project_number=number or f"PRJ-{self._project_counter:03d}",
            project_name=name,
            project_type=project_type,
            stage=stage,
            status=status,
            architect="Studio A",
            employee_assigned_id=employee_assigned_id,
            electrical_engineer_id=electrical_engineer_id,
            mechanical_engineer_id=mechanical_engineer_id,
            lead_engineer_id=lead_engineer_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        self.db.flush()
        for staff_id in assignee_ids:
            self.db.add(ProjectAssignment(project_id=row.id, staff_id=staff_id))
        self.db.commit()
        self.db.refresh(row)
        return row

    def task_log(
        self,
        *,
        project: Project,
        employee: Staff,
        work_date: date,
        project_hours: str = "1",
        travel_hours: str = "0",
        stage: WorkStage = WorkStage.DESIGN,
        task_type: TaskType = TaskType.DESIGN,
        status: ProjectStatus = ProjectStatus.IN_PROGRESS,
        transport_mode: TransportMode | None = None,
        mileage: str = "0",
        destination: str | None = None,
    ) -> TaskLog:
        now = datetime.utcnow()
        project_value = Decimal(project_hours)
        travel_value = Decimal(travel_hours)
        row = TaskLog(
            project_id=project.id,
            employee_id=employee.id,
            work_date=work_date,
            stage=stage,
            task_type=task_type,
            status=status,
            project_hours=project_value,
            travel_hours=travel_value,
            total_man_hours=project_value + travel_value,
            leaves_office=transport_mode is not None,
            transport_mode=transport_mode,
            mileage=Decimal(mileage),
            destination=destination,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row


@pytest.fixture()
def seed(db_session: Session) -> Seed:
    return Seed(db_session)


@pytest.fixture()
def admin(seed: Seed) -> Staff:
    return seed.staff("Ada Admin", role=StaffRole.ADMIN, engineer_type=None)


@pytest.fixture()
def admin_headers(admin: Staff) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def headers_for():
    return auth_headers

"""Shared test fixtures."""

import json

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from drivetrack.core.database import get_session
from drivetrack.main import app
from drivetrack.models import Drive, Inspection, MaintenanceRecord, Part


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Create a test client with the test database session."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="drive")
def drive_fixture(session: Session) -> Drive:
    """Create a drive for testing."""
    drive = Drive(name="Conveyor 3 main drive", drive_ref="DRV-0003", location="Line 3")
    session.add(drive)
    session.commit()
    session.refresh(drive)
    return drive


@pytest.fixture(name="other_drive")
def other_drive_fixture(session: Session) -> Drive:
    """Create a second drive for testing moves between drives."""
    drive = Drive(name="Mixer drive", drive_ref="DRV-0010", location="Line 1")
    session.add(drive)
    session.commit()
    session.refresh(drive)
    return drive


@pytest.fixture(name="record")
def record_fixture(session: Session, drive: Drive) -> MaintenanceRecord:
    """Create a maintenance record with an empty checklist (manual mode)."""
    record = MaintenanceRecord(
        drive_id=drive.id,
        title="Replace cooling fan",
        technician="J. Smith",
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


@pytest.fixture(name="record_with_checklist")
def record_with_checklist_fixture(session: Session, drive: Drive) -> MaintenanceRecord:
    """Create a record whose checklist has one completed and two pending tasks."""
    checklist = [
        {"id": "t1", "text": "Isolate power", "status": "completed", "notes": None},
        {"id": "t2", "text": "Swap fan", "status": "pending", "notes": None},
        {"id": "t3", "text": "Test run", "status": "pending", "notes": None},
    ]
    record = MaintenanceRecord(
        drive_id=drive.id,
        title="Fan service",
        status="in_progress",
        checklist_json=json.dumps(checklist),
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


@pytest.fixture(name="legacy_record")
def legacy_record_fixture(session: Session, drive: Drive) -> MaintenanceRecord:
    """Create a record whose checklist was written in the old boolean shape."""
    checklist = [
        {"id": 1, "task": "Check oil", "completed": False, "notes": ""},
        {"id": 2, "task": "Check filter", "completed": True, "notes": ""},
    ]
    record = MaintenanceRecord(
        drive_id=drive.id,
        title="Quarterly service",
        status="in_progress",
        checklist_json=json.dumps(checklist),
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


@pytest.fixture(name="part")
def part_fixture(session: Session) -> Part:
    """Create an unattached part."""
    part = Part(name="Cooling fan 120mm", part_ref="PRT-0001")
    session.add(part)
    session.commit()
    session.refresh(part)
    return part


@pytest.fixture(name="inspection")
def inspection_fixture(session: Session, drive: Drive) -> Inspection:
    """Create a pending inspection."""
    inspection = Inspection(drive_id=drive.id, name="Thermal check")
    session.add(inspection)
    session.commit()
    session.refresh(inspection)
    return inspection

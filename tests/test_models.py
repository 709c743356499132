"""Tests for database models."""

import pytest
from sqlmodel import Session, select

from drivetrack.models import Drive, MaintenanceRecord, Part


class TestDriveModel:
    """Tests for the Drive model."""

    def test_create_drive(self, session: Session):
        """Test creating a basic drive."""
        drive = Drive(name="Fan drive", drive_ref="DRV-0500")
        session.add(drive)
        session.commit()

        retrieved = session.exec(select(Drive).where(Drive.drive_ref == "DRV-0500")).first()
        assert retrieved is not None
        assert retrieved.status == "active"
        assert retrieved.parts == []

    def test_drive_unique_ref(self, session: Session, drive: Drive):
        """Test that drive_ref must be unique."""
        session.add(Drive(name="Duplicate", drive_ref=drive.drive_ref))
        with pytest.raises(Exception):  # IntegrityError
            session.commit()


class TestMaintenanceRecordModel:
    """Tests for the MaintenanceRecord model."""

    def test_defaults(self, session: Session, record: MaintenanceRecord):
        """A new record is pending with an empty checklist."""
        assert record.status == "pending"
        assert record.status_label == "Pending"
        assert record.checklist_json == "[]"
        assert record.maintenance_date is not None
        assert record.created_from_inspection is False

    def test_parts_replaced_json(self, session: Session, drive: Drive):
        """Replaced part references are stored as a JSON list."""
        record = MaintenanceRecord(
            drive_id=drive.id, title="Belt swap", parts_replaced=["PRT-1", "PRT-2"]
        )
        session.add(record)
        session.commit()
        session.refresh(record)
        assert record.parts_replaced == ["PRT-1", "PRT-2"]

    def test_drive_relationship(self, session: Session, record: MaintenanceRecord):
        assert record.drive.maintenances == [record]


class TestPartModel:
    """Tests for the Part model."""

    def test_part_defaults(self, part: Part):
        assert part.status == "unattached"
        assert part.drive_id is None
        assert part.history == []

"""Tests for the drive and part registries."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from sqlmodel import Session, select

from drivetrack.core.errors import ConflictError, NotFoundError, ValidationError
from drivetrack.fleet import drives, parts
from drivetrack.models import Drive, Inspection, MaintenanceRecord, Part, PartAttachmentHistory


class TestDrives:
    """Tests for drive operations."""

    def test_create_drive(self, session: Session):
        drive = drives.create_drive(
            session, {"name": " Pump drive ", "drive_ref": "DRV-0100", "location": "Hall B"}
        )
        assert drive.name == "Pump drive"
        assert drive.status == "active"

    def test_duplicate_ref_conflicts(self, session: Session, drive: Drive):
        with pytest.raises(ConflictError):
            drives.create_drive(session, {"name": "Copy", "drive_ref": drive.drive_ref})

    def test_required_fields(self, session: Session):
        with pytest.raises(ValidationError):
            drives.create_drive(session, {"name": "No ref"})

    def test_invalid_status(self, session: Session, drive: Drive):
        with pytest.raises(ValidationError):
            drives.update_drive(session, drive.id, {"status": "scrapped"})

    def test_update_drive(self, session: Session, drive: Drive):
        updated = drives.update_drive(session, drive.id, {"location": "Line 4"})
        assert updated.location == "Line 4"

    def test_update_to_taken_ref_conflicts(
        self, session: Session, drive: Drive, other_drive: Drive
    ):
        with pytest.raises(ConflictError):
            drives.update_drive(session, drive.id, {"drive_ref": other_drive.drive_ref})

    def test_get_missing_drive(self, session: Session):
        with pytest.raises(NotFoundError):
            drives.get_drive(session, uuid4())

    def test_find_by_ref(self, session: Session, drive: Drive):
        assert drives.find_by_ref(session, " DRV-0003 ").id == drive.id
        assert drives.find_by_ref(session, "DRV-9999") is None

    def test_list_and_search(self, session: Session, drive: Drive, other_drive: Drive):
        results, total = drives.list_drives(session, search="Mixer")
        assert total == 1
        assert results[0].id == other_drive.id

        results, total = drives.list_drives(session, search="Line")
        assert total == 2

    def test_alert_count(
        self, session: Session, drive: Drive, record: MaintenanceRecord
    ):
        """Pending maintenance and recent failed inspections raise alerts."""
        now = datetime.now(UTC)
        session.add(Inspection(drive_id=drive.id, name="Recent", status="failed"))
        session.add(
            Inspection(
                drive_id=drive.id, name="Old", status="failed",
                updated_at=now - timedelta(days=90),
            )
        )
        session.commit()
        assert drives.alert_count(session, drive, now) == 2

    def test_delete_drive_cascades_and_detaches(
        self, session: Session, drive: Drive, record: MaintenanceRecord,
        inspection: Inspection,
    ):
        """Records and inspections go with the drive; parts are detached."""
        part = parts.create_part(
            session,
            {"name": "Fan", "part_ref": "PRT-0100", "status": "attached", "drive_id": drive.id},
        )
        record_id, inspection_id = record.id, inspection.id

        drives.delete_drive(session, drive.id, user_id=9)

        assert session.get(Drive, drive.id) is None
        assert session.get(MaintenanceRecord, record_id) is None
        assert session.get(Inspection, inspection_id) is None

        session.refresh(part)
        assert part.status == "unattached"
        assert part.drive_id is None
        history = parts.attachment_history(session, part.id)
        assert history[0].action == "detached"
        assert history[0].notes == "Drive removed from system"
        assert history[0].user_id == 9


class TestParts:
    """Tests for parts and their attachment history."""

    def test_create_unattached_part_drops_drive(self, session: Session, drive: Drive):
        """An unattached part never keeps a drive."""
        part = parts.create_part(
            session, {"name": "Fan", "part_ref": "PRT-0200", "drive_id": drive.id}
        )
        assert part.status == "unattached"
        assert part.drive_id is None
        assert parts.attachment_history(session, part.id) == []

    def test_attached_part_requires_drive(self, session: Session):
        with pytest.raises(ValidationError):
            parts.create_part(
                session, {"name": "Fan", "part_ref": "PRT-0201", "status": "attached"}
            )

    def test_create_attached_records_history(self, session: Session, drive: Drive):
        part = parts.create_part(
            session,
            {"name": "Fan", "part_ref": "PRT-0202", "status": "attached", "drive_id": drive.id},
            user_id=3,
        )
        history = parts.attachment_history(session, part.id)
        assert len(history) == 1
        assert history[0].action == "attached"
        assert history[0].drive_id == drive.id
        assert history[0].notes == "Initial attachment"
        assert history[0].user_id == 3

    def test_duplicate_part_ref(self, session: Session, part: Part):
        with pytest.raises(ConflictError):
            parts.create_part(session, {"name": "Other", "part_ref": part.part_ref})

    def test_attach_and_detach(self, session: Session, part: Part, drive: Drive):
        parts.update_part(
            session, part.id, {"status": "attached", "drive_id": drive.id}, "Fitted"
        )
        parts.update_part(session, part.id, {"status": "unattached"})

        actions = [
            (entry.action, entry.notes) for entry in parts.attachment_history(session, part.id)
        ]
        assert actions == [
            ("detached", "Part detached from drive"),
            ("attached", "Fitted"),
        ]
        session.refresh(part)
        assert part.drive_id is None

    def test_move_between_drives(
        self, session: Session, part: Part, drive: Drive, other_drive: Drive
    ):
        """A move is recorded as a detach from the old drive then an attach."""
        parts.update_part(session, part.id, {"status": "attached", "drive_id": drive.id})
        parts.update_part(session, part.id, {"drive_id": other_drive.id})

        history = parts.attachment_history(session, part.id)
        assert len(history) == 3
        assert {(e.action, e.drive_id) for e in history[:2]} == {
            ("attached", other_drive.id),
            ("detached", drive.id),
        }
        assert (history[2].action, history[2].drive_id) == ("attached", drive.id)

    def test_plain_edit_writes_no_history(self, session: Session, part: Part):
        parts.update_part(session, part.id, {"notes": "Shelf 4"})
        assert parts.attachment_history(session, part.id) == []

    def test_delete_attached_part_keeps_history(self, session: Session, drive: Drive):
        """History survives the part, identified by its reference."""
        part = parts.create_part(
            session,
            {"name": "Fan", "part_ref": "PRT-0300", "status": "attached", "drive_id": drive.id},
        )
        parts.delete_part(session, part.id)

        entries = session.exec(
            select(PartAttachmentHistory).where(PartAttachmentHistory.part_ref == "PRT-0300")
        ).all()
        assert sorted(entry.action for entry in entries) == ["attached", "detached"]
        assert all(entry.part_id is None for entry in entries)
        assert any(entry.notes == "Part removed from system" for entry in entries)

    def test_search_by_drive(self, session: Session, part: Part, drive: Drive):
        parts.update_part(session, part.id, {"status": "attached", "drive_id": drive.id})
        results, total = parts.list_parts(session, search="Conveyor")
        assert total == 1
        assert results[0].id == part.id

    def test_part_to_dict(self, session: Session, part: Part, drive: Drive):
        part = parts.update_part(session, part.id, {"status": "attached", "drive_id": drive.id})
        data = parts.part_to_dict(part)
        assert data["drive_name"] == drive.name
        assert data["status"] == "attached"

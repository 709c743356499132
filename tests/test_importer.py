"""Tests for importing drives from CSV."""

import pytest
from sqlmodel import Session, select

from drivetrack.core.errors import ValidationError
from drivetrack.fleet.importer import import_drives_csv
from drivetrack.models import Drive


class TestImportDrivesCsv:
    def test_basic_import(self, session: Session):
        content = (
            "Drive Number,Drive Description,Area,Item\n"
            "DRV-1,Conveyor drive,Line 1,Gearbox side\n"
            "DRV-2,Mixer drive,Line 2,\n"
        )
        result = import_drives_csv(session, content)
        assert result == {"imported": 2, "skipped": 0, "errors": []}

        drive = session.exec(select(Drive).where(Drive.drive_ref == "DRV-1")).one()
        assert drive.name == "Conveyor drive"
        assert drive.location == "Line 1"
        assert drive.notes == "Gearbox side"
        other = session.exec(select(Drive).where(Drive.drive_ref == "DRV-2")).one()
        assert other.notes is None

    def test_headers_are_case_insensitive(self, session: Session):
        content = "drive number,DRIVE DESCRIPTION\nDRV-1,Conveyor drive\n"
        assert import_drives_csv(session, content)["imported"] == 1

    def test_bom_is_stripped(self, session: Session):
        content = "\ufeffDrive Number,Drive Description\nDRV-1,Conveyor drive\n".encode("utf-8")
        assert import_drives_csv(session, content)["imported"] == 1

    def test_latin1_fallback(self, session: Session):
        content = "Drive Number,Drive Description\nDRV-1,Förderband\n".encode("latin-1")
        assert import_drives_csv(session, content)["imported"] == 1
        assert session.exec(select(Drive)).one().name == "Förderband"

    def test_duplicates_are_skipped(self, session: Session, drive: Drive):
        """Existing references and repeats within the file are reported."""
        content = (
            "Drive Number,Drive Description\n"
            f"{drive.drive_ref},Already there\n"
            "DRV-5,New drive\n"
            "DRV-5,Repeated\n"
        )
        result = import_drives_csv(session, content)
        assert result["imported"] == 1
        assert result["skipped"] == 2
        assert result["errors"] == [
            f"Row 2: drive {drive.drive_ref} already exists",
            "Row 4: drive DRV-5 already exists",
        ]

    def test_rows_missing_required_values(self, session: Session):
        content = "Drive Number,Drive Description\n,No number\nDRV-1,\nDRV-2,Good\n"
        result = import_drives_csv(session, content)
        assert result["imported"] == 1
        assert result["errors"] == [
            "Row 2: Drive Number and Drive Description are required",
            "Row 3: Drive Number and Drive Description are required",
        ]

    def test_missing_required_column(self, session: Session):
        with pytest.raises(ValidationError, match="Drive Description"):
            import_drives_csv(session, "Drive Number,Area\nDRV-1,Line 1\n")

    def test_empty_file(self, session: Session):
        with pytest.raises(ValidationError):
            import_drives_csv(session, b"")

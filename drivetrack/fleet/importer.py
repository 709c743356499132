"""Bulk import of drives from CSV exports of the plant asset register.

Expected columns (header names are case-insensitive):

    Drive Number       -> drive_ref (required, unique)
    Drive Description  -> name (required)
    Area               -> location
    Item               -> notes

Rows that cannot be imported are skipped and reported; they never abort the
rest of the file.
"""
import csv
import io
import logging

from sqlmodel import Session, select

from drivetrack.core.errors import ValidationError
from drivetrack.models import Drive

logger = logging.getLogger(__name__)

COLUMN_MAP = {
    "drive number": "drive_ref",
    "drive description": "name",
    "area": "location",
    "item": "notes",
}
REQUIRED_COLUMNS = ("drive number", "drive description")


def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    try:
        # utf-8-sig strips the BOM spreadsheet exports like to add
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def import_drives_csv(session: Session, content: bytes | str) -> dict:
    """
    Create drives from CSV content.

    Returns dict with keys: imported, skipped, errors (one message per
    skipped row, numbered as the row appears in the file).

    Raises ValidationError if the file is empty or lacks a required column.
    """
    reader = csv.DictReader(io.StringIO(_decode(content)))
    if not reader.fieldnames:
        raise ValidationError("CSV file is empty")

    headers = {name.strip().lower(): name for name in reader.fieldnames if name}
    missing = [column for column in REQUIRED_COLUMNS if column not in headers]
    if missing:
        raise ValidationError(
            "Missing required columns: " + ", ".join(c.title() for c in missing)
        )

    existing_refs = set(session.exec(select(Drive.drive_ref)).all())
    stats = {"imported": 0, "skipped": 0, "errors": []}

    # Row 1 is the header line
    for row_number, row in enumerate(reader, start=2):
        values = {}
        for column, field in COLUMN_MAP.items():
            if column in headers:
                raw = row.get(headers[column])
                values[field] = raw.strip() if raw and raw.strip() else None

        if not values.get("drive_ref") or not values.get("name"):
            stats["skipped"] += 1
            stats["errors"].append(
                f"Row {row_number}: Drive Number and Drive Description are required"
            )
            continue
        if values["drive_ref"] in existing_refs:
            stats["skipped"] += 1
            stats["errors"].append(
                f"Row {row_number}: drive {values['drive_ref']} already exists"
            )
            continue

        session.add(Drive(**values))
        existing_refs.add(values["drive_ref"])
        stats["imported"] += 1

    session.commit()
    logger.info(f"Drive import completed: {stats['imported']} imported, {stats['skipped']} skipped")
    return stats

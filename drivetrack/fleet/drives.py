"""Drive registry: create, update, search and retire drives."""
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, or_, select

from drivetrack.core.config import settings
from drivetrack.core.errors import ConflictError, NotFoundError, ValidationError
from drivetrack.fleet.parts import record_attachment_action
from drivetrack.models import Drive, Inspection, MaintenanceRecord
from drivetrack.models.attachment import AttachmentAction
from drivetrack.models.drive import DriveStatus
from drivetrack.models.inspection import InspectionStatus
from drivetrack.models.maintenance import MaintenanceStatus
from drivetrack.models.part import PartStatus

logger = logging.getLogger(__name__)

DRIVE_FIELDS = {"name", "drive_ref", "location", "notes", "status"}


def _validate(values: dict) -> dict:
    cleaned = dict(values)
    for field in ("name", "drive_ref"):
        if field in cleaned:
            value = (cleaned[field] or "").strip()
            if not value:
                raise ValidationError(f"{field} is required")
            cleaned[field] = value
    if "status" in cleaned:
        try:
            cleaned["status"] = DriveStatus(cleaned["status"]).value
        except ValueError:
            raise ValidationError(f"Invalid drive status {cleaned['status']!r}") from None
    return cleaned


def _ref_taken(session: Session, drive_ref: str, exclude_id: UUID | None = None) -> bool:
    statement = select(Drive).where(Drive.drive_ref == drive_ref)
    if exclude_id:
        statement = statement.where(Drive.id != exclude_id)
    return session.exec(statement).first() is not None


def get_drive(session: Session, drive_id: UUID) -> Drive:
    drive = session.get(Drive, drive_id)
    if not drive:
        raise NotFoundError("Drive not found")
    return drive


def create_drive(session: Session, values: dict) -> Drive:
    """Create a drive. ``drive_ref`` must be unique."""
    unknown = set(values) - DRIVE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    cleaned = _validate({"name": None, "drive_ref": None, **values})
    if _ref_taken(session, cleaned["drive_ref"]):
        raise ConflictError(f"Drive reference {cleaned['drive_ref']} already exists")

    drive = Drive(**cleaned)
    session.add(drive)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError(f"Drive reference {cleaned['drive_ref']} already exists") from None
    session.refresh(drive)
    logger.info(f"Created drive {drive.drive_ref} ({drive.id})")
    return drive


def update_drive(session: Session, drive_id: UUID, values: dict) -> Drive:
    unknown = set(values) - DRIVE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    drive = get_drive(session, drive_id)
    cleaned = _validate(values)
    if "drive_ref" in cleaned and _ref_taken(session, cleaned["drive_ref"], drive.id):
        raise ConflictError(f"Drive reference {cleaned['drive_ref']} already exists")

    for field, value in cleaned.items():
        setattr(drive, field, value)
    drive.updated_at = datetime.now(UTC)
    session.add(drive)
    session.commit()
    session.refresh(drive)
    return drive


def delete_drive(session: Session, drive_id: UUID, user_id: int = 1) -> None:
    """
    Delete a drive with its maintenance records and inspections.

    Parts fitted to the drive are detached first, and each detachment is
    written to the part's history.
    """
    drive = get_drive(session, drive_id)
    for part in list(drive.parts):
        record_attachment_action(
            session, part, AttachmentAction.DETACHED, drive.id,
            "Drive removed from system", user_id,
        )
        part.status = PartStatus.UNATTACHED.value
        part.drive_id = None
        session.add(part)
    session.flush()
    session.expire(drive, ["parts"])

    session.delete(drive)
    session.commit()
    logger.info(f"Deleted drive {drive_id}")


def list_drives(
    session: Session,
    search: str | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> tuple[list[Drive], int]:
    """
    List drives newest first, searching name, reference and location.

    Returns (drives on the requested page, total matches).
    """
    page_size = page_size or settings.page_size
    page = max(page, 1)

    condition = None
    if search:
        condition = or_(
            col(Drive.name).contains(search),
            col(Drive.drive_ref).contains(search),
            col(Drive.location).contains(search),
        )

    statement = select(Drive)
    count_statement = select(func.count()).select_from(Drive)
    if condition is not None:
        statement = statement.where(condition)
        count_statement = count_statement.where(condition)

    statement = (
        statement.order_by(col(Drive.created_at).desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(session.exec(statement).all()), session.exec(count_statement).one()


def find_by_ref(session: Session, drive_ref: str) -> Drive | None:
    """Look a drive up by the reference printed on its barcode label."""
    return session.exec(select(Drive).where(Drive.drive_ref == drive_ref.strip())).first()


def alert_count(session: Session, drive: Drive, now: datetime | None = None) -> int:
    """
    Count open problems on a drive.

    Failed inspections within the alert window plus maintenance records
    still pending.
    """
    now = now or datetime.now(UTC)
    window_start = now - timedelta(days=settings.alert_window_days)

    failed_inspections = session.exec(
        select(func.count())
        .select_from(Inspection)
        .where(Inspection.drive_id == drive.id)
        .where(Inspection.status == InspectionStatus.FAILED.value)
        .where(Inspection.updated_at >= window_start)
    ).one()
    pending_maintenances = session.exec(
        select(func.count())
        .select_from(MaintenanceRecord)
        .where(MaintenanceRecord.drive_id == drive.id)
        .where(MaintenanceRecord.status == MaintenanceStatus.PENDING.value)
    ).one()
    return failed_inspections + pending_maintenances


def drive_to_dict(session: Session, drive: Drive) -> dict:
    return {
        "id": str(drive.id),
        "name": drive.name,
        "drive_ref": drive.drive_ref,
        "location": drive.location,
        "notes": drive.notes,
        "status": drive.status,
        "parts_count": len(drive.parts),
        "alert_count": alert_count(session, drive),
        "created_at": drive.created_at.isoformat(),
        "updated_at": drive.updated_at.isoformat(),
    }

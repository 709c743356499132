"""Part registry and attachment history.

Parts move between drives over their life. Every attach, detach and move
writes rows to ``part_attachment_history`` so the trail of a component can
be reconstructed later.
"""
import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, or_, select

from drivetrack.core.config import settings
from drivetrack.core.errors import ConflictError, NotFoundError, ValidationError
from drivetrack.models import Drive, Part, PartAttachmentHistory
from drivetrack.models.attachment import AttachmentAction
from drivetrack.models.part import PartStatus

logger = logging.getLogger(__name__)

PART_FIELDS = {"name", "part_ref", "status", "drive_id", "notes"}


def record_attachment_action(
    session: Session,
    part: Part,
    action: AttachmentAction,
    drive_id: UUID | None,
    notes: str | None,
    user_id: int,
) -> PartAttachmentHistory:
    """Add a history row for ``part``. The caller commits."""
    entry = PartAttachmentHistory(
        part_id=part.id,
        part_ref=part.part_ref,
        drive_id=drive_id,
        action=action.value,
        notes=notes,
        user_id=user_id,
    )
    session.add(entry)
    logger.info(f"Part {part.part_ref} {action.value} (drive {drive_id})")
    return entry


def _validate(session: Session, values: dict) -> dict:
    """Normalize part fields and enforce the attached/drive pairing."""
    unknown = set(values) - PART_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    cleaned = dict(values)
    for field in ("name", "part_ref"):
        if field in cleaned:
            value = (cleaned[field] or "").strip()
            if not value:
                raise ValidationError(f"{field} is required")
            cleaned[field] = value

    try:
        status = PartStatus(cleaned.get("status", PartStatus.UNATTACHED))
    except ValueError:
        raise ValidationError(f"Invalid part status {cleaned['status']!r}") from None
    cleaned["status"] = status.value

    if status == PartStatus.UNATTACHED:
        cleaned["drive_id"] = None
    elif not cleaned.get("drive_id"):
        raise ValidationError("A drive must be selected when status is attached")
    elif session.get(Drive, cleaned["drive_id"]) is None:
        raise ValidationError("Drive not found")
    return cleaned


def _ref_taken(session: Session, part_ref: str, exclude_id: UUID | None = None) -> bool:
    statement = select(Part).where(Part.part_ref == part_ref)
    if exclude_id:
        statement = statement.where(Part.id != exclude_id)
    return session.exec(statement).first() is not None


def get_part(session: Session, part_id: UUID) -> Part:
    part = session.get(Part, part_id)
    if not part:
        raise NotFoundError("Part not found")
    return part


def create_part(session: Session, values: dict, user_id: int = 1) -> Part:
    """
    Create a part.

    A part created as attached gets an initial "attached" history row,
    using the part notes (or "Initial attachment") as the history note.
    """
    cleaned = _validate(session, {"name": None, "part_ref": None, **values})
    if _ref_taken(session, cleaned["part_ref"]):
        raise ConflictError(f"Part reference {cleaned['part_ref']} already exists")

    part = Part(**cleaned)
    session.add(part)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise ConflictError(f"Part reference {cleaned['part_ref']} already exists") from None

    if part.status == PartStatus.ATTACHED:
        record_attachment_action(
            session, part, AttachmentAction.ATTACHED, part.drive_id,
            cleaned.get("notes") or "Initial attachment", user_id,
        )
    session.commit()
    session.refresh(part)
    return part


def update_part(
    session: Session,
    part_id: UUID,
    values: dict,
    attachment_notes: str | None = None,
    user_id: int = 1,
) -> Part:
    """
    Update a part, recording any attachment change.

    - unattached -> attached: "attached" to the new drive
    - attached -> unattached: "detached" from the old drive
    - attached to another drive: "detached" from the old drive, then
      "attached" to the new one
    """
    part = get_part(session, part_id)
    merged = {"status": part.status, "drive_id": part.drive_id, **values}
    cleaned = _validate(session, merged)
    if "part_ref" in cleaned and _ref_taken(session, cleaned["part_ref"], part.id):
        raise ConflictError(f"Part reference {cleaned['part_ref']} already exists")

    old_status, old_drive_id = part.status, part.drive_id
    new_status, new_drive_id = cleaned["status"], cleaned["drive_id"]

    if old_status == PartStatus.UNATTACHED and new_status == PartStatus.ATTACHED:
        record_attachment_action(
            session, part, AttachmentAction.ATTACHED, new_drive_id,
            attachment_notes or "Part attached to drive", user_id,
        )
    elif old_status == PartStatus.ATTACHED and new_status == PartStatus.UNATTACHED:
        record_attachment_action(
            session, part, AttachmentAction.DETACHED, old_drive_id,
            attachment_notes or "Part detached from drive", user_id,
        )
    elif new_status == PartStatus.ATTACHED and old_drive_id != new_drive_id:
        record_attachment_action(
            session, part, AttachmentAction.DETACHED, old_drive_id,
            attachment_notes or "Part moved to another drive", user_id,
        )
        record_attachment_action(
            session, part, AttachmentAction.ATTACHED, new_drive_id,
            attachment_notes or "Part moved from another drive", user_id,
        )

    for field, value in cleaned.items():
        setattr(part, field, value)
    part.updated_at = datetime.now(UTC)
    session.add(part)
    session.commit()
    session.refresh(part)
    return part


def delete_part(session: Session, part_id: UUID, user_id: int = 1) -> None:
    """Delete a part. An attached part is first recorded as detached."""
    part = get_part(session, part_id)
    if part.status == PartStatus.ATTACHED and part.drive_id:
        record_attachment_action(
            session, part, AttachmentAction.DETACHED, part.drive_id,
            "Part removed from system", user_id,
        )
        session.flush()
    session.delete(part)
    session.commit()
    logger.info(f"Deleted part {part_id}")


def list_parts(
    session: Session,
    search: str | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> tuple[list[Part], int]:
    """
    List parts newest first, searching name, part reference and the name or
    reference of the drive they are fitted to.
    """
    page_size = page_size or settings.page_size
    page = max(page, 1)

    statement = select(Part).outerjoin(Drive)
    count_statement = select(func.count()).select_from(Part).outerjoin(Drive)
    if search:
        condition = or_(
            col(Part.name).contains(search),
            col(Part.part_ref).contains(search),
            col(Drive.name).contains(search),
            col(Drive.drive_ref).contains(search),
        )
        statement = statement.where(condition)
        count_statement = count_statement.where(condition)

    statement = (
        statement.order_by(col(Part.created_at).desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(session.exec(statement).all()), session.exec(count_statement).one()


def attachment_history(session: Session, part_id: UUID) -> list[PartAttachmentHistory]:
    """History of a part, newest first."""
    get_part(session, part_id)
    statement = (
        select(PartAttachmentHistory)
        .where(PartAttachmentHistory.part_id == part_id)
        .order_by(col(PartAttachmentHistory.created_at).desc())
    )
    return list(session.exec(statement).all())


def part_to_dict(part: Part) -> dict:
    return {
        "id": str(part.id),
        "name": part.name,
        "part_ref": part.part_ref,
        "status": part.status,
        "drive_id": str(part.drive_id) if part.drive_id else None,
        "drive_name": part.drive.name if part.drive else None,
        "notes": part.notes,
        "created_at": part.created_at.isoformat(),
        "updated_at": part.updated_at.isoformat(),
    }


def history_to_dict(entry: PartAttachmentHistory) -> dict:
    return {
        "id": str(entry.id),
        "part_id": str(entry.part_id) if entry.part_id else None,
        "part_ref": entry.part_ref,
        "drive_id": str(entry.drive_id) if entry.drive_id else None,
        "action": entry.action,
        "notes": entry.notes,
        "user_id": entry.user_id,
        "created_at": entry.created_at.isoformat(),
    }

"""Maintenance record service.

Every change to a maintenance record goes through this module. Checklist
mutations and the status they imply are written to the record together and
committed once, so a reader never sees one without the other.

The acting user is always passed in explicitly as ``user_id``.
"""
import logging
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from sqlmodel import Session, col, func, or_, select

from drivetrack.core.config import settings
from drivetrack.core.errors import ConflictError, MalformedDataError, NotFoundError, ValidationError
from drivetrack.maintenance.checklist import (
    TASK_STATUS_LABELS,
    ChecklistStore,
    parse,
    serialize,
)
from drivetrack.maintenance.status import derive_status
from drivetrack.models import Drive, MaintenanceRecord
from drivetrack.models.maintenance import STATUS_LABELS, MaintenanceStatus

logger = logging.getLogger(__name__)

MANAGED_STATUS_MESSAGE = (
    "Status is automatically managed based on task completion. "
    "Please update individual tasks instead."
)

# Fields a general update may touch. Checklist changes have their own calls.
UPDATABLE_FIELDS = {
    "drive_id",
    "title",
    "description",
    "maintenance_date",
    "technician",
    "status",
    "cost",
    "parts_replaced",
}


def coerce_maintenance_status(value: Any) -> MaintenanceStatus:
    """Return ``value`` as a MaintenanceStatus, raising ValidationError if unknown."""
    try:
        return MaintenanceStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid maintenance status {value!r}; expected one of "
            f"{', '.join(s.value for s in MaintenanceStatus)}"
        ) from None


def load_checklist(record: MaintenanceRecord) -> ChecklistStore:
    """Read the record's checklist, treating an undecodable blob as empty."""
    try:
        return parse(record.checklist_json)
    except MalformedDataError as e:
        logger.warning(f"Maintenance {record.id} has an unreadable checklist: {e}")
        return ChecklistStore()


def is_status_managed(record: MaintenanceRecord) -> bool:
    """True while the record's status is derived from its checklist."""
    return len(load_checklist(record)) > 0


def _touch(record: MaintenanceRecord, user_id: int | None) -> None:
    record.updated_at = datetime.now(UTC)
    record.updated_by = user_id


def _apply_checklist(
    record: MaintenanceRecord, checklist: ChecklistStore, user_id: int | None
) -> None:
    """Store ``checklist`` on the record and re-derive the status from it.

    An empty checklist leaves the status at whatever it was last.
    """
    record.checklist_json = serialize(checklist)
    derived = derive_status(checklist)
    if derived is not None and record.status != derived:
        logger.info(f"Maintenance {record.id} status {record.status} -> {derived}")
        record.status = derived.value
    _touch(record, user_id)


def _save(session: Session, record: MaintenanceRecord) -> MaintenanceRecord:
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def _require_drive(session: Session, drive_id: UUID) -> None:
    if session.get(Drive, drive_id) is None:
        raise ValidationError("Drive not found")


def get_record(session: Session, record_id: UUID) -> MaintenanceRecord:
    record = session.get(MaintenanceRecord, record_id)
    if not record:
        raise NotFoundError("Maintenance record not found")
    return record


def create_record(
    session: Session,
    *,
    drive_id: UUID,
    title: str,
    status: MaintenanceStatus | str = MaintenanceStatus.PENDING,
    user_id: int = 1,
    description: str | None = None,
    maintenance_date: date | None = None,
    technician: str | None = None,
    cost: float | None = None,
    parts_replaced: list[str] | None = None,
    checklist: list[str] | None = None,
    created_from_inspection: bool = False,
    inspection_id: UUID | None = None,
) -> MaintenanceRecord:
    """
    Create a maintenance record.

    The record starts in manual mode with ``status`` as given. If initial
    checklist task texts are supplied the status is derived from them
    straight away.
    """
    if not title or not title.strip():
        raise ValidationError("Title is required")
    if cost is not None and cost < 0:
        raise ValidationError("Cost must not be negative")
    _require_drive(session, drive_id)

    record = MaintenanceRecord(
        drive_id=drive_id,
        title=title.strip(),
        description=description,
        technician=technician,
        status=coerce_maintenance_status(status).value,
        cost=cost,
        parts_replaced=parts_replaced,
        user_id=user_id,
        created_from_inspection=created_from_inspection,
        inspection_id=inspection_id,
    )
    if maintenance_date is not None:
        record.maintenance_date = maintenance_date

    store = ChecklistStore()
    for text in checklist or []:
        store, _ = store.add_item(text, user_id=user_id)
    _apply_checklist(record, store, user_id)

    record = _save(session, record)
    logger.info(f"Created maintenance {record.id} '{record.title}' ({record.status})")
    return record


def set_manual_status(
    session: Session,
    record_id: UUID,
    status: MaintenanceStatus | str,
    user_id: int | None = None,
) -> MaintenanceRecord:
    """
    Set the status of a record directly.

    Only allowed while the checklist is empty; otherwise raises
    ConflictError, since the status belongs to the checklist.
    """
    new_status = coerce_maintenance_status(status)
    record = get_record(session, record_id)
    if is_status_managed(record):
        raise ConflictError(MANAGED_STATUS_MESSAGE)

    record.status = new_status.value
    _touch(record, user_id)
    return _save(session, record)


def move_on_board(
    session: Session,
    record_id: UUID,
    status: MaintenanceStatus | str,
    user_id: int | None = None,
) -> MaintenanceRecord:
    """
    Move a record to another Kanban column.

    Dropping a card on a column is a manual status change, so records with
    checklist tasks cannot be moved; their column follows their tasks.
    """
    return set_manual_status(session, record_id, status, user_id)


def add_checklist_item(
    session: Session,
    record_id: UUID,
    text: str,
    notes: str | None = None,
    status: str = "pending",
    user_id: int | None = None,
) -> MaintenanceRecord:
    """
    Append a task to the record's checklist and re-derive the status.

    Adding the first task switches the record out of manual mode, so any
    status set by hand is replaced by the derived one.
    """
    record = get_record(session, record_id)
    store, item = load_checklist(record).add_item(
        text, notes=notes, status=status, user_id=user_id
    )
    _apply_checklist(record, store, user_id)
    logger.info(f"Added task {item.id} to maintenance {record.id}")
    return _save(session, record)


def remove_checklist_item(
    session: Session,
    record_id: UUID,
    item_id: str,
    user_id: int | None = None,
) -> MaintenanceRecord:
    """
    Remove a task from the record's checklist.

    Removing a task that is not there changes nothing. When the last task
    goes, the status keeps its last derived value and the record returns to
    manual mode.
    """
    record = get_record(session, record_id)
    store = load_checklist(record)
    if store.get(item_id) is None:
        return record

    _apply_checklist(record, store.remove_item(item_id), user_id)
    logger.info(f"Removed task {item_id} from maintenance {record.id}")
    return _save(session, record)


def update_checklist_item(
    session: Session,
    record_id: UUID,
    item_id: str,
    updates: dict,
    user_id: int | None = None,
) -> MaintenanceRecord:
    """
    Change the status and/or notes of one task, then re-derive the status.

    ``updates`` may hold "status", "notes" or both. A notes value of None
    clears the notes; an empty string is kept as-is.
    """
    unknown = set(updates) - {"status", "notes"}
    if unknown:
        raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
    if not updates:
        raise ValidationError("No valid update fields provided")

    record = get_record(session, record_id)
    store = load_checklist(record)
    if "status" in updates:
        store = store.update_item_status(item_id, updates["status"], user_id)
    if "notes" in updates:
        store = store.update_item_notes(item_id, updates["notes"], user_id)

    _apply_checklist(record, store, user_id)
    return _save(session, record)


def update_record(
    session: Session,
    record_id: UUID,
    updates: dict,
    user_id: int | None = None,
) -> MaintenanceRecord:
    """
    Update general fields of a record.

    A status change here follows the same rule as ``set_manual_status``:
    it is rejected while the checklist has tasks. Sending the status the
    record already has is harmless.
    """
    unknown = set(updates) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    record = get_record(session, record_id)

    if "status" in updates:
        new_status = coerce_maintenance_status(updates["status"])
        if new_status != record.status and is_status_managed(record):
            raise ConflictError(MANAGED_STATUS_MESSAGE)
        updates = {**updates, "status": new_status.value}
    if "title" in updates and (not updates["title"] or not updates["title"].strip()):
        raise ValidationError("Title is required")
    if "maintenance_date" in updates and updates["maintenance_date"] is None:
        raise ValidationError("Maintenance date is required")
    if updates.get("cost") is not None and updates["cost"] < 0:
        raise ValidationError("Cost must not be negative")
    if "drive_id" in updates:
        _require_drive(session, updates["drive_id"])

    for field, value in updates.items():
        setattr(record, field, value)
    _touch(record, user_id)
    return _save(session, record)


def delete_record(session: Session, record_id: UUID) -> None:
    record = get_record(session, record_id)
    session.delete(record)
    session.commit()
    logger.info(f"Deleted maintenance {record_id}")


def checklist_stats(session: Session, record_id: UUID) -> dict:
    return load_checklist(get_record(session, record_id)).stats()


def _search_statement(statement, search: str | None, status: str | None, drive_id: UUID | None):
    if search:
        statement = statement.join(Drive).where(
            or_(
                col(MaintenanceRecord.title).contains(search),
                col(MaintenanceRecord.description).contains(search),
                col(MaintenanceRecord.technician).contains(search),
                col(Drive.name).contains(search),
                col(Drive.drive_ref).contains(search),
            )
        )
    if status:
        statement = statement.where(
            MaintenanceRecord.status == coerce_maintenance_status(status).value
        )
    if drive_id:
        statement = statement.where(MaintenanceRecord.drive_id == drive_id)
    return statement


def list_records(
    session: Session,
    search: str | None = None,
    status: str | None = None,
    drive_id: UUID | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> tuple[list[MaintenanceRecord], int]:
    """
    List records newest first, filtered by free-text search and status.

    Search matches title, description, technician and the drive's name or
    reference. Returns (records on the requested page, total matches).
    """
    page_size = page_size or settings.page_size
    page = max(page, 1)

    statement = _search_statement(select(MaintenanceRecord), search, status, drive_id)
    statement = (
        statement.order_by(col(MaintenanceRecord.created_at).desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    records = session.exec(statement).all()

    count_statement = _search_statement(
        select(func.count()).select_from(MaintenanceRecord), search, status, drive_id
    )
    total = session.exec(count_statement).one()
    return list(records), total


def board_columns(session: Session) -> dict[str, list[MaintenanceRecord]]:
    """Group all records by status for the Kanban board."""
    columns: dict[str, list[MaintenanceRecord]] = {s.value: [] for s in MaintenanceStatus}
    statement = select(MaintenanceRecord).order_by(col(MaintenanceRecord.maintenance_date))
    for record in session.exec(statement).all():
        columns.setdefault(record.status, []).append(record)
    return columns


def record_to_dict(record: MaintenanceRecord) -> dict:
    """JSON-ready view of a record with its canonical checklist and stats."""
    checklist = load_checklist(record)
    return {
        "id": str(record.id),
        "drive_id": str(record.drive_id),
        "drive_name": record.drive.name if record.drive else None,
        "drive_ref": record.drive.drive_ref if record.drive else None,
        "title": record.title,
        "description": record.description,
        "maintenance_date": record.maintenance_date.isoformat(),
        "technician": record.technician,
        "status": record.status,
        "status_label": STATUS_LABELS.get(record.status, record.status),
        "status_managed": len(checklist) > 0,
        "cost": record.cost,
        "parts_replaced": record.parts_replaced or [],
        "user_id": record.user_id,
        "updated_by": record.updated_by,
        "created_from_inspection": record.created_from_inspection,
        "inspection_id": str(record.inspection_id) if record.inspection_id else None,
        "checklist": [
            {
                **item.model_dump(mode="json"),
                "status_label": TASK_STATUS_LABELS[item.status],
            }
            for item in checklist.items
        ],
        "stats": checklist.stats(),
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat(),
    }

"""Inspections of drives and the jobs that follow up on them."""
import logging
from datetime import UTC, date, datetime
from uuid import UUID

from sqlmodel import Session, col, select

from drivetrack.core.errors import ConflictError, NotFoundError, ValidationError
from drivetrack.maintenance import service as maintenance_service
from drivetrack.models import Drive, Inspection, MaintenanceRecord
from drivetrack.models.inspection import InspectionStatus

logger = logging.getLogger(__name__)

FOLLOW_UP_TASKS = (
    "Review and fix issues identified in inspection: {name}",
    "Verify all inspection criteria are met",
    "Schedule follow-up inspection if required",
)


def get_inspection(session: Session, inspection_id: UUID) -> Inspection:
    inspection = session.get(Inspection, inspection_id)
    if not inspection:
        raise NotFoundError("Inspection not found")
    return inspection


def create_inspection(
    session: Session,
    *,
    drive_id: UUID,
    name: str,
    description: str | None = None,
    scheduled_date: date | None = None,
    expiry_date: datetime | None = None,
    user_id: int = 1,
) -> Inspection:
    if not name or not name.strip():
        raise ValidationError("Inspection name is required")
    if session.get(Drive, drive_id) is None:
        raise ValidationError("Drive not found")

    inspection = Inspection(
        drive_id=drive_id,
        name=name.strip(),
        description=description,
        expiry_date=expiry_date,
        created_by=user_id,
    )
    if scheduled_date is not None:
        inspection.scheduled_date = scheduled_date
    session.add(inspection)
    session.commit()
    session.refresh(inspection)
    return inspection


def list_inspections(
    session: Session, drive_id: UUID | None = None, status: str | None = None
) -> list[Inspection]:
    statement = select(Inspection).order_by(col(Inspection.scheduled_date).desc())
    if drive_id:
        statement = statement.where(Inspection.drive_id == drive_id)
    if status:
        statement = statement.where(Inspection.status == status)
    return list(session.exec(statement).all())


def start_inspection(session: Session, inspection_id: UUID) -> Inspection:
    inspection = get_inspection(session, inspection_id)
    if inspection.status != InspectionStatus.PENDING:
        raise ConflictError(f"Inspection is already {inspection.status}")
    inspection.status = InspectionStatus.IN_PROGRESS.value
    inspection.updated_at = datetime.now(UTC)
    session.add(inspection)
    session.commit()
    session.refresh(inspection)
    return inspection


def complete_inspection(
    session: Session, inspection_id: UUID, passed: bool, notes: str | None = None
) -> Inspection:
    """Record the outcome of an inspection: completed if passed, else failed."""
    inspection = get_inspection(session, inspection_id)
    if inspection.status in (InspectionStatus.COMPLETED, InspectionStatus.FAILED):
        raise ConflictError(f"Inspection is already {inspection.status}")

    now = datetime.now(UTC)
    inspection.status = (
        InspectionStatus.COMPLETED.value if passed else InspectionStatus.FAILED.value
    )
    inspection.completed_date = now.date()
    inspection.updated_at = now
    if notes:
        inspection.description = (
            f"{inspection.description}\n\n{notes}" if inspection.description else notes
        )
    session.add(inspection)
    session.commit()
    session.refresh(inspection)
    logger.info(f"Inspection {inspection.id} recorded as {inspection.status}")
    return inspection


def mark_expired_inspections(session: Session, now: datetime | None = None) -> int:
    """
    Flag open inspections whose expiry date has passed.

    Returns the number of inspections newly marked as expired.
    """
    now = now or datetime.now(UTC)
    statement = (
        select(Inspection)
        .where(col(Inspection.status).notin_(
            [InspectionStatus.COMPLETED.value, InspectionStatus.FAILED.value]
        ))
        .where(Inspection.is_expired == False)  # noqa: E712
        .where(col(Inspection.expiry_date).isnot(None))
        .where(Inspection.expiry_date < now)
    )
    expired = session.exec(statement).all()
    for inspection in expired:
        inspection.is_expired = True
        inspection.expired_at = now
        inspection.updated_at = now
        session.add(inspection)
        logger.info(f"Inspection {inspection.id} '{inspection.name}' marked as expired")
    session.commit()
    return len(expired)


def create_maintenance_for_failed_inspections(session: Session, user_id: int = 1) -> int:
    """
    Open a maintenance record for every failed inspection that has none.

    The record carries a default follow-up checklist, so its status is
    derived from the tasks from the start. Safe to run repeatedly.

    Returns the number of maintenance records created.
    """
    linked = select(MaintenanceRecord.inspection_id).where(
        col(MaintenanceRecord.inspection_id).isnot(None)
    )
    statement = (
        select(Inspection)
        .where(Inspection.status == InspectionStatus.FAILED.value)
        .where(col(Inspection.id).notin_(linked))
    )
    created = 0
    for inspection in session.exec(statement).all():
        drive = inspection.drive
        maintenance_service.create_record(
            session,
            drive_id=inspection.drive_id,
            title=f"Maintenance Required - {inspection.name}",
            description=(
                "Automatic maintenance created due to failed inspection: "
                f"{inspection.name}. Drive: {drive.name if drive else 'unknown'}"
            ),
            checklist=[task.format(name=inspection.name) for task in FOLLOW_UP_TASKS],
            user_id=user_id,
            created_from_inspection=True,
            inspection_id=inspection.id,
        )
        created += 1
    if created:
        logger.info(f"Created {created} maintenance records for failed inspections")
    return created


def inspection_to_dict(inspection: Inspection) -> dict:
    return {
        "id": str(inspection.id),
        "drive_id": str(inspection.drive_id),
        "name": inspection.name,
        "description": inspection.description,
        "status": inspection.status,
        "scheduled_date": inspection.scheduled_date.isoformat(),
        "completed_date": (
            inspection.completed_date.isoformat() if inspection.completed_date else None
        ),
        "expiry_date": inspection.expiry_date.isoformat() if inspection.expiry_date else None,
        "is_expired": inspection.is_expired,
        "created_by": inspection.created_by,
    }

"""Inspection routes."""
from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlmodel import Session, SQLModel

from drivetrack.core.database import get_session
from drivetrack.core.errors import DriveTrackError
from drivetrack.fleet import inspections
from drivetrack.models.inspection import InspectionStatus
from drivetrack.routes.common import current_user_id, http_error

router = APIRouter(prefix="/inspections", tags=["inspections"])


class InspectionCreate(SQLModel):
    drive_id: UUID
    name: str
    description: str | None = None
    scheduled_date: date | None = None
    expiry_date: datetime | None = None


class InspectionResult(SQLModel):
    passed: bool
    notes: str | None = None


@router.get("")
async def list_inspections(
    drive_id: UUID | None = None,
    status: InspectionStatus | None = None,
    session: Session = Depends(get_session),
):
    results = inspections.list_inspections(session, drive_id=drive_id, status=status)
    return [inspections.inspection_to_dict(inspection) for inspection in results]


@router.post("", status_code=201)
async def create_inspection(
    payload: InspectionCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    try:
        inspection = inspections.create_inspection(
            session, user_id=user_id, **payload.model_dump()
        )
    except DriveTrackError as e:
        raise http_error(e) from e
    return inspections.inspection_to_dict(inspection)


@router.get("/{inspection_id}")
async def get_inspection(inspection_id: UUID, session: Session = Depends(get_session)):
    try:
        inspection = inspections.get_inspection(session, inspection_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return inspections.inspection_to_dict(inspection)


@router.post("/{inspection_id}/start")
async def start_inspection(inspection_id: UUID, session: Session = Depends(get_session)):
    try:
        inspection = inspections.start_inspection(session, inspection_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return inspections.inspection_to_dict(inspection)


@router.post("/{inspection_id}/complete")
async def complete_inspection(
    inspection_id: UUID,
    payload: InspectionResult,
    session: Session = Depends(get_session),
):
    """
    Record the result of an inspection.

    A failed inspection gets a follow-up maintenance record from the next
    run of the background job.
    """
    try:
        inspection = inspections.complete_inspection(
            session, inspection_id, payload.passed, payload.notes
        )
    except DriveTrackError as e:
        raise http_error(e) from e
    return inspections.inspection_to_dict(inspection)

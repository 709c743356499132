"""Maintenance routes: records, their checklists and the Kanban board."""
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlmodel import Field, Session, SQLModel

from drivetrack.core.database import get_session
from drivetrack.core.errors import DriveTrackError
from drivetrack.maintenance import service
from drivetrack.maintenance.checklist import TaskStatus
from drivetrack.models.maintenance import STATUS_LABELS, MaintenanceStatus
from drivetrack.routes.common import current_user_id, http_error, templates

router = APIRouter(prefix="/maintenances", tags=["maintenances"])


class MaintenanceCreate(SQLModel):
    drive_id: UUID
    title: str
    description: str | None = None
    maintenance_date: date | None = None
    technician: str | None = None
    status: MaintenanceStatus = MaintenanceStatus.PENDING
    cost: float | None = Field(default=None, ge=0)
    parts_replaced: list[str] | None = None
    checklist: list[str] | None = None


class MaintenanceUpdate(SQLModel):
    drive_id: UUID | None = None
    title: str | None = None
    description: str | None = None
    maintenance_date: date | None = None
    technician: str | None = None
    status: MaintenanceStatus | None = None
    cost: float | None = Field(default=None, ge=0)
    parts_replaced: list[str] | None = None


class StatusChange(SQLModel):
    status: MaintenanceStatus


class ChecklistItemCreate(SQLModel):
    text: str
    status: TaskStatus = TaskStatus.PENDING
    notes: str | None = None


class ChecklistItemUpdate(SQLModel):
    status: TaskStatus | None = None
    notes: str | None = None


@router.get("")
async def list_maintenances(
    search: str | None = None,
    status: MaintenanceStatus | None = None,
    page: int = 1,
    session: Session = Depends(get_session),
):
    """
    List maintenance records, newest first.

    Supports free-text search over title, description, technician and drive,
    and filtering by status. Returns one page of results with the total.
    """
    records, total = service.list_records(session, search=search, status=status, page=page)
    return {
        "data": [service.record_to_dict(record) for record in records],
        "total": total,
        "page": page,
        "statuses": {key.value: label for key, label in STATUS_LABELS.items()},
    }


@router.post("", status_code=201)
async def create_maintenance(
    payload: MaintenanceCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """
    Create a maintenance record.

    The record starts in manual mode with the given status, unless initial
    checklist tasks are supplied, in which case the status follows them.
    """
    try:
        record = service.create_record(session, user_id=user_id, **payload.model_dump())
    except DriveTrackError as e:
        raise http_error(e) from e
    return service.record_to_dict(record)


@router.get("/board", response_class=HTMLResponse)
async def maintenance_board(request: Request, session: Session = Depends(get_session)):
    """
    Display the Kanban board of maintenance records.

    Cards with checklist tasks are rendered locked: their column follows
    their tasks and they cannot be dragged.
    """
    columns = service.board_columns(session)
    return templates.TemplateResponse(
        request,
        "maintenance_board.html",
        {
            "columns": {
                status: [service.record_to_dict(record) for record in records]
                for status, records in columns.items()
            },
            "labels": {status.value: label for status, label in STATUS_LABELS.items()},
        },
    )


@router.get("/{record_id}")
async def get_maintenance(record_id: UUID, session: Session = Depends(get_session)):
    try:
        record = service.get_record(session, record_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return service.record_to_dict(record)


@router.put("/{record_id}")
async def update_maintenance(
    record_id: UUID,
    payload: MaintenanceUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """
    Update a maintenance record.

    Changing the status is refused with 409 while the record has checklist
    tasks.
    """
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        record = service.update_record(session, record_id, updates, user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {
        "success": True,
        "message": "Maintenance record updated successfully.",
        "maintenance": service.record_to_dict(record),
    }


@router.delete("/{record_id}")
async def delete_maintenance(record_id: UUID, session: Session = Depends(get_session)):
    try:
        service.delete_record(session, record_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {"success": True, "message": "Maintenance record deleted successfully."}


@router.put("/{record_id}/status")
async def set_status(
    record_id: UUID,
    payload: StatusChange,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """
    Set the status of a record by hand.

    Only possible while the record has no checklist tasks; otherwise 409.
    """
    try:
        record = service.set_manual_status(session, record_id, payload.status, user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return service.record_to_dict(record)


@router.post("/{record_id}/move")
async def move_card(
    record_id: UUID,
    payload: StatusChange,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """Drop a Kanban card into another status column."""
    try:
        record = service.move_on_board(session, record_id, payload.status, user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return service.record_to_dict(record)


@router.get("/{record_id}/checklist/stats")
async def checklist_stats(record_id: UUID, session: Session = Depends(get_session)):
    try:
        stats = service.checklist_stats(session, record_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {"success": True, "stats": stats}


@router.post("/{record_id}/checklist", status_code=201)
async def add_checklist_item(
    record_id: UUID,
    payload: ChecklistItemCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """
    Add a task to the record's checklist.

    The record's status is recomputed from its tasks afterwards.
    """
    try:
        record = service.add_checklist_item(
            session, record_id, payload.text, payload.notes, payload.status, user_id
        )
    except DriveTrackError as e:
        raise http_error(e) from e
    return service.record_to_dict(record)


@router.patch("/{record_id}/checklist/{item_id}")
async def update_checklist_item(
    record_id: UUID,
    item_id: str,
    payload: ChecklistItemUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """
    Change the status and/or notes of a task.

    Send ``"notes": null`` to clear notes. At least one field is required.
    """
    try:
        record = service.update_checklist_item(
            session, record_id, item_id, payload.model_dump(exclude_unset=True), user_id
        )
    except DriveTrackError as e:
        raise http_error(e) from e
    return service.record_to_dict(record)


@router.delete("/{record_id}/checklist/{item_id}")
async def remove_checklist_item(
    record_id: UUID,
    item_id: str,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """Remove a task. Removing a task that does not exist succeeds."""
    try:
        record = service.remove_checklist_item(session, record_id, item_id, user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return service.record_to_dict(record)

"""Part routes: registry and attachment history."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, SQLModel

from drivetrack.core.database import get_session
from drivetrack.core.errors import DriveTrackError
from drivetrack.fleet import parts
from drivetrack.models.part import PartStatus
from drivetrack.routes.common import current_user_id, http_error

router = APIRouter(prefix="/parts", tags=["parts"])


class PartCreate(SQLModel):
    name: str
    part_ref: str
    status: PartStatus = PartStatus.UNATTACHED
    drive_id: UUID | None = None
    notes: str | None = None


class PartUpdate(SQLModel):
    name: str | None = None
    part_ref: str | None = None
    status: PartStatus | None = None
    drive_id: UUID | None = None
    notes: str | None = None
    attachment_notes: str | None = None


@router.get("")
async def list_parts(
    search: str | None = None,
    page: int = 1,
    session: Session = Depends(get_session),
):
    """List parts newest first, searching part and drive name/reference."""
    results, total = parts.list_parts(session, search=search, page=page)
    return {
        "data": [parts.part_to_dict(part) for part in results],
        "total": total,
        "page": page,
    }


@router.post("", status_code=201)
async def create_part(
    payload: PartCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """
    Create a part.

    Unattached parts never keep a drive. Attached parts need one, and their
    first attachment is written to the history.
    """
    try:
        part = parts.create_part(session, payload.model_dump(), user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return parts.part_to_dict(part)


@router.get("/{part_id}")
async def get_part(part_id: UUID, session: Session = Depends(get_session)):
    """Show a part with its attachment history."""
    try:
        part = parts.get_part(session, part_id)
        history = parts.attachment_history(session, part_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {
        **parts.part_to_dict(part),
        "attachment_history": [parts.history_to_dict(entry) for entry in history],
    }


@router.put("/{part_id}")
async def update_part(
    part_id: UUID,
    payload: PartUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """
    Update a part.

    Attaching, detaching or moving the part to another drive is recorded in
    its history, annotated with ``attachment_notes`` when given.
    """
    updates = payload.model_dump(exclude_unset=True)
    attachment_notes = updates.pop("attachment_notes", None)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        part = parts.update_part(session, part_id, updates, attachment_notes, user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return parts.part_to_dict(part)


@router.delete("/{part_id}")
async def delete_part(
    part_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    try:
        parts.delete_part(session, part_id, user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {"success": True, "message": "Part deleted successfully."}


@router.get("/{part_id}/history")
async def part_history(part_id: UUID, session: Session = Depends(get_session)):
    """Attachment history of a part, newest first."""
    try:
        history = parts.attachment_history(session, part_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return [parts.history_to_dict(entry) for entry in history]

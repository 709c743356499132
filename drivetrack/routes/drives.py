"""Drive routes: registry, barcode lookup and CSV import."""
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlmodel import Session, SQLModel

from drivetrack.core.database import get_session
from drivetrack.core.errors import DriveTrackError
from drivetrack.fleet import drives
from drivetrack.fleet.importer import import_drives_csv
from drivetrack.maintenance import service as maintenance_service
from drivetrack.models.drive import DriveStatus
from drivetrack.routes.common import current_user_id, http_error

router = APIRouter(prefix="/drives", tags=["drives"])


class DriveCreate(SQLModel):
    name: str
    drive_ref: str
    location: str | None = None
    notes: str | None = None
    status: DriveStatus = DriveStatus.ACTIVE


class DriveUpdate(SQLModel):
    name: str | None = None
    drive_ref: str | None = None
    location: str | None = None
    notes: str | None = None
    status: DriveStatus | None = None


@router.get("")
async def list_drives(
    search: str | None = None,
    page: int = 1,
    session: Session = Depends(get_session),
):
    """List drives newest first, searching name, reference and location."""
    results, total = drives.list_drives(session, search=search, page=page)
    return {
        "data": [drives.drive_to_dict(session, drive) for drive in results],
        "total": total,
        "page": page,
    }


@router.post("", status_code=201)
async def create_drive(payload: DriveCreate, session: Session = Depends(get_session)):
    try:
        drive = drives.create_drive(session, payload.model_dump())
    except DriveTrackError as e:
        raise http_error(e) from e
    return drives.drive_to_dict(session, drive)


@router.post("/import")
async def import_drives(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    Import drives from an uploaded CSV file.

    Required columns: "Drive Number" and "Drive Description". Optional:
    "Area" and "Item". Returns counts of imported and skipped rows along
    with a message per skipped row.
    """
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted")
    content = await file.read()
    try:
        result = import_drives_csv(session, content)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {"success": True, **result}


@router.get("/lookup")
async def lookup_drive(ref: str, session: Session = Depends(get_session)):
    """Resolve a scanned barcode (the drive reference) to a drive."""
    drive = drives.find_by_ref(session, ref)
    if not drive:
        raise HTTPException(status_code=404, detail="Drive not found")
    return drives.drive_to_dict(session, drive)


@router.get("/{drive_id}")
async def get_drive(drive_id: UUID, session: Session = Depends(get_session)):
    """Show a drive with its attached parts."""
    try:
        drive = drives.get_drive(session, drive_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {
        **drives.drive_to_dict(session, drive),
        "parts": [
            {"id": str(part.id), "name": part.name, "part_ref": part.part_ref}
            for part in drive.parts
        ],
    }


@router.put("/{drive_id}")
async def update_drive(
    drive_id: UUID, payload: DriveUpdate, session: Session = Depends(get_session)
):
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        drive = drives.update_drive(session, drive_id, updates)
    except DriveTrackError as e:
        raise http_error(e) from e
    return drives.drive_to_dict(session, drive)


@router.delete("/{drive_id}")
async def delete_drive(
    drive_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(current_user_id),
):
    """Delete a drive, its maintenance records and inspections."""
    try:
        drives.delete_drive(session, drive_id, user_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    return {"success": True, "message": "Drive deleted successfully."}


@router.get("/{drive_id}/maintenances")
async def drive_maintenances(drive_id: UUID, session: Session = Depends(get_session)):
    """All maintenance records of one drive, newest first."""
    try:
        drives.get_drive(session, drive_id)
    except DriveTrackError as e:
        raise http_error(e) from e
    records, _ = maintenance_service.list_records(
        session, drive_id=drive_id, page_size=1000
    )
    return [maintenance_service.record_to_dict(record) for record in records]

"""Maintenance record model.

A maintenance record logs work on a drive. Its checklist is stored as a JSON
array in ``checklist_json``; the only code that reads or writes that column
is ``drivetrack.maintenance.checklist`` (via the service), so everything else
sees canonical checklist items.
"""

from datetime import UTC, date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Text
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from drivetrack.models.drive import Drive


class MaintenanceStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


STATUS_LABELS = {
    MaintenanceStatus.PENDING: "Pending",
    MaintenanceStatus.IN_PROGRESS: "In Progress",
    MaintenanceStatus.COMPLETED: "Completed",
}


class MaintenanceRecord(SQLModel, table=True):
    """Work logged against a drive.

    While the checklist is empty the status is set by hand (manual mode).
    Once it holds at least one item the status is derived from the items and
    can no longer be set directly.

    Attributes:
        id: Unique identifier (UUID).
        drive_id: The drive the work was done on.
        title: Short summary of the work.
        description: Longer free text.
        maintenance_date: Day the work is planned for or was carried out.
        technician: Name of the technician doing the work.
        status: "pending", "in_progress" or "completed".
        cost: Cost of the work, if known.
        parts_replaced: References of parts swapped during the work.
        checklist_json: Serialized checklist (JSON array).
        user_id: User who created the record.
        updated_by: User who made the last change to the record or its
            checklist.
        created_from_inspection: True when generated for a failed inspection.
        inspection_id: The inspection that triggered this record, if any.
    """
    __tablename__ = "maintenance"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    drive_id: UUID = Field(foreign_key="drive.id", ondelete="CASCADE", index=True)
    title: str
    description: str | None = None
    maintenance_date: date = Field(default_factory=lambda: datetime.now(UTC).date())
    technician: str | None = None
    status: str = Field(default=MaintenanceStatus.PENDING.value, index=True)
    cost: float | None = None
    parts_replaced: list[str] | None = Field(default=None, sa_type=JSON)
    checklist_json: str = Field(default="[]", sa_type=Text)
    user_id: int = Field(default=1)
    updated_by: int | None = None
    created_from_inspection: bool = Field(default=False)
    inspection_id: UUID | None = Field(
        default=None, foreign_key="inspection.id", ondelete="SET NULL", index=True
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationship
    drive: Optional["Drive"] = Relationship(back_populates="maintenances")

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status)

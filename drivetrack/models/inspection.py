"""Inspection model for checks carried out against a drive."""

from datetime import UTC, date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from drivetrack.models.drive import Drive


class InspectionStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Inspection(SQLModel, table=True):
    """An inspection of a drive.

    A failed inspection eventually produces a maintenance record through the
    background job in ``drivetrack.fleet.inspections``.

    Attributes:
        id: Unique identifier (UUID).
        drive_id: The inspected drive.
        name: Short title of the inspection.
        description: What the inspector should look at.
        status: "pending", "in_progress", "completed" or "failed".
        scheduled_date: The day the inspection is planned for.
        completed_date: The day a result was recorded.
        expiry_date: Deadline after which an open inspection is expired.
        is_expired: Set by the expiry job once the deadline has passed.
        expired_at: When the expiry job flagged the inspection.
        created_by: User who created the inspection.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    drive_id: UUID = Field(foreign_key="drive.id", ondelete="CASCADE", index=True)
    name: str
    description: str | None = None
    status: str = Field(default=InspectionStatus.PENDING.value, index=True)
    scheduled_date: date = Field(default_factory=lambda: datetime.now(UTC).date())
    completed_date: date | None = None
    expiry_date: datetime | None = None
    is_expired: bool = Field(default=False)
    expired_at: datetime | None = None
    created_by: int = Field(default=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationship
    drive: Optional["Drive"] = Relationship(back_populates="inspections")

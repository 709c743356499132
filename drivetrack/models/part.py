"""Part model for components that can be attached to drives."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from drivetrack.models.attachment import PartAttachmentHistory
    from drivetrack.models.drive import Drive


class PartStatus(StrEnum):
    ATTACHED = "attached"
    UNATTACHED = "unattached"


class Part(SQLModel, table=True):
    """A spare or fitted component.

    Attributes:
        id: Unique identifier (UUID).
        name: Display name.
        part_ref: Stock reference (unique).
        status: "attached" when fitted to a drive, otherwise "unattached".
        drive_id: The drive this part is fitted to. Always None while the
            part is unattached.
        notes: Free text.
        drive: Reference to the parent Drive, if attached.
        history: Attach/detach audit trail for this part.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    part_ref: str = Field(index=True, unique=True)
    status: str = Field(default=PartStatus.UNATTACHED.value)
    drive_id: UUID | None = Field(
        default=None, foreign_key="drive.id", ondelete="SET NULL", index=True
    )
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    drive: Optional["Drive"] = Relationship(back_populates="parts")
    history: list["PartAttachmentHistory"] = Relationship(back_populates="part")

"""Attachment history model for parts moving between drives.

Every time a part is fitted to or removed from a drive an immutable history
row is written. Rows outlive the part they describe: deleting a part nulls
``part_id`` but keeps the ``part_ref`` snapshot so drive histories stay
readable.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from drivetrack.models.part import Part


class AttachmentAction(StrEnum):
    ATTACHED = "attached"
    DETACHED = "detached"


class PartAttachmentHistory(SQLModel, table=True):
    """A single attach or detach event.

    Attributes:
        id: Unique identifier (UUID).
        part_id: The part that moved, or None once the part is deleted.
        part_ref: Snapshot of the part reference at the time of the event.
        drive_id: The drive the part was attached to or detached from.
        action: "attached" or "detached".
        notes: Operator notes for the move.
        user_id: User who performed the action.
        created_at: When the action was recorded.
    """
    __tablename__ = "part_attachment_history"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    part_id: UUID | None = Field(
        default=None, foreign_key="part.id", ondelete="SET NULL", index=True
    )
    part_ref: str
    drive_id: UUID | None = Field(
        default=None, foreign_key="drive.id", ondelete="SET NULL", index=True
    )
    action: str
    notes: str | None = None
    user_id: int = Field(default=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationship
    part: Optional["Part"] = Relationship(back_populates="history")

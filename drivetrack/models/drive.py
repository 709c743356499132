"""Drive model for the machinery units under maintenance.

A drive is the central entity of the plant: parts are attached to it,
inspections are carried out against it, and maintenance records are logged
for it.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from drivetrack.models.inspection import Inspection
    from drivetrack.models.maintenance import MaintenanceRecord
    from drivetrack.models.part import Part


class DriveStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class Drive(SQLModel, table=True):
    """A machinery unit on the plant floor.

    Attributes:
        id: Unique identifier (UUID).
        name: Human-readable description of the drive.
        drive_ref: Plant reference number printed on the unit (unique).
            Barcode scans and CSV imports identify drives by this value.
        location: Area of the plant the drive is installed in.
        notes: Free text.
        status: One of "active", "inactive", "maintenance" or "retired".
        parts: Parts currently attached to this drive.
        maintenances: Maintenance records logged for this drive.
        inspections: Inspections carried out against this drive.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    drive_ref: str = Field(index=True, unique=True)
    location: str | None = None
    notes: str | None = None
    status: str = Field(default=DriveStatus.ACTIVE.value)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    parts: list["Part"] = Relationship(back_populates="drive")
    maintenances: list["MaintenanceRecord"] = Relationship(
        back_populates="drive", cascade_delete=True
    )
    inspections: list["Inspection"] = Relationship(
        back_populates="drive", cascade_delete=True
    )

from drivetrack.models.attachment import PartAttachmentHistory
from drivetrack.models.drive import Drive
from drivetrack.models.inspection import Inspection
from drivetrack.models.maintenance import MaintenanceRecord
from drivetrack.models.part import Part

__all__ = ["Drive", "Part", "PartAttachmentHistory", "Inspection", "MaintenanceRecord"]

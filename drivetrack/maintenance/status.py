"""Derive a maintenance record's status from its checklist."""

from drivetrack.maintenance.checklist import ChecklistStore, TaskStatus
from drivetrack.models.maintenance import MaintenanceStatus

STARTED = {TaskStatus.COMPLETED, TaskStatus.FAILED}


def derive_status(checklist: ChecklistStore) -> MaintenanceStatus | None:
    """
    Map a checklist to the status its maintenance record must carry.

    - every item completed -> completed
    - any item completed or failed -> in_progress (failed tasks still count
      as work started)
    - otherwise -> pending

    Only the set of item statuses matters, never their order. Returns None
    for an empty checklist: such records are in manual mode.
    """
    statuses = {item.status for item in checklist.items}
    if not statuses:
        return None
    if statuses == {TaskStatus.COMPLETED}:
        return MaintenanceStatus.COMPLETED
    if statuses & STARTED:
        return MaintenanceStatus.IN_PROGRESS
    return MaintenanceStatus.PENDING

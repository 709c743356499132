"""Checklist items and the checklist store kept on maintenance records.

The checklist of a maintenance record is persisted as a JSON array in
``MaintenanceRecord.checklist_json``. Two item shapes exist in stored data:

    Current shape:
        {"id": "9f1c...", "text": "Check oil", "status": "failed",
         "notes": "Leaking seal", "updated_at": "2025-05-25T10:12:00Z"}

    Legacy shape (boolean flag, sometimes ``task`` instead of ``text``):
        {"id": 1, "task": "Check oil", "completed": false, "notes": ""}

``parse`` is the only place that understands the legacy shape. Everything
else works with ``ChecklistItem`` objects in the current shape, and
``serialize`` only ever writes the current shape.

Stores and items are treated as values: every operation returns a new
object and leaves its input untouched.
"""

import json
import logging
from collections import Counter
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Field, SQLModel

from drivetrack.core.errors import MalformedDataError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class TaskStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


TASK_STATUS_LABELS = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.FAILED: "Failed",
}

# Hand-edited legacy blobs sometimes carry the flag as text
LEGACY_TRUE_STRINGS = {"true", "1", "yes"}


def coerce_task_status(value: Any) -> TaskStatus:
    """Return ``value`` as a TaskStatus, raising ValidationError if unknown."""
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid task status {value!r}; expected one of "
            f"{', '.join(s.value for s in TaskStatus)}"
        ) from None


def _now() -> datetime:
    return datetime.now(UTC)


class ChecklistItem(SQLModel):
    """A single task inside a maintenance record's checklist.

    Attributes:
        id: Opaque identifier, stable across edits. Not a database key.
        text: What has to be done.
        status: "pending", "completed" or "failed".
        notes: Optional annotation from the technician.
        updated_at: When the status or notes last changed.
        updated_by: User who made the last change.
    """
    id: str = Field(default_factory=lambda: uuid4().hex)
    text: str
    status: TaskStatus = TaskStatus.PENDING
    notes: str | None = None
    updated_at: datetime | None = None
    updated_by: int | None = None


def create_item(
    text: str,
    status: TaskStatus | str = TaskStatus.PENDING,
    notes: str | None = None,
    user_id: int | None = None,
) -> ChecklistItem:
    """Build a new checklist item with a fresh id."""
    if text is None or not text.strip():
        raise ValidationError("Checklist item text must not be empty")
    return ChecklistItem(
        text=text.strip(),
        status=coerce_task_status(status),
        notes=notes,
        updated_at=_now(),
        updated_by=user_id,
    )


def set_status(
    item: ChecklistItem, status: TaskStatus | str, user_id: int | None = None
) -> ChecklistItem:
    """Return a copy of ``item`` with a new status.

    Any status may follow any other: technicians tick tasks in whatever
    order the job allows.
    """
    return item.model_copy(
        update={
            "status": coerce_task_status(status),
            "updated_at": _now(),
            "updated_by": user_id,
        }
    )


def set_notes(
    item: ChecklistItem, notes: str | None, user_id: int | None = None
) -> ChecklistItem:
    """Return a copy of ``item`` with new notes. ``None`` clears them."""
    return item.model_copy(
        update={"notes": notes, "updated_at": _now(), "updated_by": user_id}
    )


class ChecklistStore(SQLModel):
    """The ordered checklist of one maintenance record.

    Item order only matters for display. Ids are unique within a store.
    """
    items: list[ChecklistItem] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def get(self, item_id: str) -> ChecklistItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def add_item(
        self,
        text: str,
        notes: str | None = None,
        status: TaskStatus | str = TaskStatus.PENDING,
        user_id: int | None = None,
    ) -> tuple["ChecklistStore", ChecklistItem]:
        """Append a new item. Returns the new store and the created item."""
        item = create_item(text, status=status, notes=notes, user_id=user_id)
        return ChecklistStore(items=[*self.items, item]), item

    def remove_item(self, item_id: str) -> "ChecklistStore":
        """Drop the item with ``item_id``. Removing an absent id is a no-op."""
        return ChecklistStore(items=[i for i in self.items if i.id != item_id])

    def update_item_status(
        self, item_id: str, status: TaskStatus | str, user_id: int | None = None
    ) -> "ChecklistStore":
        return self._replace(item_id, lambda item: set_status(item, status, user_id))

    def update_item_notes(
        self, item_id: str, notes: str | None, user_id: int | None = None
    ) -> "ChecklistStore":
        return self._replace(item_id, lambda item: set_notes(item, notes, user_id))

    def _replace(self, item_id, change) -> "ChecklistStore":
        items = list(self.items)
        for index, item in enumerate(items):
            if item.id == item_id:
                items[index] = change(item)
                return ChecklistStore(items=items)
        raise NotFoundError(f"Checklist item {item_id} not found")

    def stats(self) -> dict:
        """Count items per status.

        Returns dict with keys: total, completed, failed, pending,
        completion_percentage (0-100, rounded half up).
        """
        total = len(self.items)
        counts = Counter(item.status for item in self.items)
        completed = counts[TaskStatus.COMPLETED]
        percentage = 0
        if total:
            percentage = int(
                (Decimal(completed) * 100 / Decimal(total)).quantize(
                    Decimal("1"), rounding=ROUND_HALF_UP
                )
            )
        return {
            "total": total,
            "completed": completed,
            "failed": counts[TaskStatus.FAILED],
            "pending": counts[TaskStatus.PENDING],
            "completion_percentage": percentage,
        }


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp from stored data, tolerating junk."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring unparseable checklist timestamp: {value!r}")
        return None


def _legacy_completed(value: Any) -> bool:
    """Read the old ``completed`` flag; only true-ish spellings count as done."""
    if isinstance(value, str):
        return value.strip().lower() in LEGACY_TRUE_STRINGS
    return value is True or (isinstance(value, int) and value == 1)


def _normalize_element(element: Any, index: int) -> ChecklistItem | None:
    """Turn one stored element (either shape) into a ChecklistItem.

    Returns None when the element is unusable.
    """
    if not isinstance(element, dict):
        logger.warning(f"Dropping checklist element {index}: not an object")
        return None

    text = element.get("text", element.get("task"))
    if not isinstance(text, str) or not text.strip():
        logger.warning(f"Dropping checklist element {index}: missing text")
        return None

    if "status" in element:
        status = element["status"]
    elif "completed" in element:
        status = TaskStatus.COMPLETED if _legacy_completed(element["completed"]) else TaskStatus.PENDING
    else:
        status = TaskStatus.PENDING

    raw_id = element.get("id")
    # Positional ids keep repeated parses of the same blob identical
    item_id = str(raw_id) if raw_id not in (None, "") else f"legacy-{index}"

    try:
        return ChecklistItem.model_validate(
            {
                "id": item_id,
                "text": text,
                "status": status,
                "notes": element.get("notes"),
                "updated_at": _parse_timestamp(element.get("updated_at")),
                "updated_by": element.get("updated_by"),
            }
        )
    except PydanticValidationError as e:
        logger.warning(f"Dropping checklist element {index}: {e.error_count()} invalid fields")
        return None


def parse(raw: Any) -> ChecklistStore:
    """Decode a persisted checklist into a ChecklistStore.

    Accepts the JSON text stored in ``checklist_json``, an already decoded
    list, or None/empty text (an empty checklist).

    Raises MalformedDataError if the blob is not JSON or not an array.
    Individual unusable elements are dropped with a warning and parsing
    continues, since these blobs are often edited by hand.
    """
    if raw is None:
        return ChecklistStore()

    data = raw
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return ChecklistStore()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedDataError(f"Checklist is not valid JSON: {e}") from e

    if data is None:
        return ChecklistStore()
    if not isinstance(data, (list, tuple)):
        raise MalformedDataError(
            f"Checklist must be an array, got {type(data).__name__}"
        )

    items = []
    seen_ids = set()
    for index, element in enumerate(data):
        item = _normalize_element(element, index)
        if item is None:
            continue
        if item.id in seen_ids:
            logger.warning(f"Dropping checklist element {index}: duplicate id {item.id}")
            continue
        seen_ids.add(item.id)
        items.append(item)

    return ChecklistStore(items=items)


def serialize(store: ChecklistStore) -> str:
    """Encode a store as the JSON array stored in ``checklist_json``."""
    return json.dumps([item.model_dump(mode="json") for item in store.items])

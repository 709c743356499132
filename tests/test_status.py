"""Tests for deriving a record's status from its checklist."""

from itertools import permutations, product

import pytest

from drivetrack.maintenance.checklist import ChecklistItem, ChecklistStore
from drivetrack.maintenance.status import derive_status
from drivetrack.models.maintenance import MaintenanceStatus


def make_store(statuses) -> ChecklistStore:
    return ChecklistStore(
        items=[
            ChecklistItem(id=str(i), text=f"Task {i}", status=status)
            for i, status in enumerate(statuses)
        ]
    )


def expected_status(statuses) -> MaintenanceStatus:
    if all(status == "completed" for status in statuses):
        return MaintenanceStatus.COMPLETED
    if all(status == "pending" for status in statuses):
        return MaintenanceStatus.PENDING
    return MaintenanceStatus.IN_PROGRESS


class TestDeriveStatus:
    def test_empty_checklist_has_no_derived_status(self):
        assert derive_status(ChecklistStore()) is None

    def test_all_completed(self):
        assert derive_status(make_store(["completed"] * 3)) == MaintenanceStatus.COMPLETED

    def test_all_pending(self):
        assert derive_status(make_store(["pending"] * 2)) == MaintenanceStatus.PENDING

    def test_failed_counts_as_started(self):
        """A failed task means work has started but is not finished."""
        assert derive_status(make_store(["failed"])) == MaintenanceStatus.IN_PROGRESS
        assert derive_status(make_store(["failed", "completed"])) == MaintenanceStatus.IN_PROGRESS

    def test_mixed(self):
        assert (
            derive_status(make_store(["completed", "pending"])) == MaintenanceStatus.IN_PROGRESS
        )

    @pytest.mark.parametrize("size", [1, 2, 3])
    def test_every_combination(self, size):
        """Every checklist of up to three tasks follows the rule."""
        for statuses in product(["pending", "completed", "failed"], repeat=size):
            assert derive_status(make_store(statuses)) == expected_status(statuses)

    def test_order_does_not_matter(self):
        statuses = ["completed", "failed", "pending"]
        results = {derive_status(make_store(order)) for order in permutations(statuses)}
        assert results == {MaintenanceStatus.IN_PROGRESS}

#!/usr/bin/env python3
"""
Rewrite stored checklists in the canonical shape.

Older maintenance records carry checklists written by earlier versions of
the app: a ``completed`` flag instead of a status, ``task`` instead of
``text``, integer ids or no ids at all. The app reads those fine, but this
script rewrites them once so every stored blob is canonical, and re-derives
the status of each record from its tasks.

Usage:
    python scripts/migrate_checklists.py [--dry-run]

Options:
    --dry-run    Show what would change without writing anything
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session, select

from drivetrack.core.database import create_db_and_tables, engine
from drivetrack.core.errors import MalformedDataError
from drivetrack.maintenance.checklist import parse, serialize
from drivetrack.maintenance.status import derive_status
from drivetrack.models import MaintenanceRecord


def main(dry_run: bool = False):
    """Normalize every stored checklist blob."""
    create_db_and_tables()

    with Session(engine) as session:
        records = session.exec(select(MaintenanceRecord)).all()
        print(f"Checking {len(records)} maintenance records\n")

        changed = 0
        unreadable = 0
        for record in records:
            try:
                checklist = parse(record.checklist_json)
            except MalformedDataError as e:
                print(f"{record.title} ({record.id}): unreadable checklist, skipped ({e})")
                unreadable += 1
                continue

            canonical = serialize(checklist)
            derived = derive_status(checklist)
            new_status = derived.value if derived is not None else record.status
            if canonical == record.checklist_json and new_status == record.status:
                continue

            print(f"{record.title} ({record.id}):")
            print(f"  Tasks:  {len(checklist)}")
            if new_status != record.status:
                print(f"  Status: {record.status} -> {new_status}")

            record.checklist_json = canonical
            record.status = new_status
            session.add(record)
            changed += 1

        if not changed:
            print("All checklists are already canonical.")
            return

        print(f"\n=== {changed} records need rewriting, {unreadable} unreadable ===")

        if dry_run:
            session.rollback()
            print("--- DRY RUN: No changes made ---")
            return

        session.commit()
        print(f"\nComplete: {changed} records rewritten")


if __name__ == "__main__":
    dry_run = "--dry-run" in sys.argv
    main(dry_run=dry_run)

#!/usr/bin/env python3
"""
Import drives from a CSV export of the plant asset register.

Required columns are "Drive Number" and "Drive Description"; "Area" and
"Item" are optional. Rows whose drive number already exists are skipped.

Usage:
    python scripts/import_drives.py path/to/drives.csv
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session

from drivetrack.core.database import create_db_and_tables, engine
from drivetrack.core.errors import ValidationError
from drivetrack.fleet.importer import import_drives_csv


def main(csv_path: Path):
    """Import ``csv_path`` into the configured database."""
    if not csv_path.is_file():
        print(f"Error: {csv_path} does not exist.")
        sys.exit(1)

    create_db_and_tables()

    with Session(engine) as session:
        try:
            result = import_drives_csv(session, csv_path.read_bytes())
        except ValidationError as e:
            print(f"Error: {e}")
            sys.exit(1)

    print(f"Imported: {result['imported']}")
    print(f"Skipped:  {result['skipped']}")
    for error in result["errors"]:
        print(f"  {error}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    main(Path(sys.argv[1]))

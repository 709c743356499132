"""Engine and session handling.

DriveTrack runs on SQLite. Each pooled connection is switched to WAL so the
dashboard and board keep reading while the inspection job or a technician
writes, and foreign keys are turned on so ``ON DELETE`` rules on the drive,
part and inspection references are enforced by the database itself.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from drivetrack.core.config import settings

IS_SQLITE = settings.database_url.startswith("sqlite")

# Request handlers and the scheduler share connections across threads
connect_args = {"check_same_thread": False} if IS_SQLITE else {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,
)


@sa_event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Apply per-connection SQLite pragmas."""
    if not IS_SQLITE:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def create_db_and_tables():
    """Create any missing tables."""
    # Registers every table on SQLModel.metadata
    import drivetrack.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """FastAPI dependency yielding one session per request."""
    with Session(engine) as session:
        yield session

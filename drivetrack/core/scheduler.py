"""Background jobs for inspection follow-up."""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from drivetrack.core.config import settings
from drivetrack.core.database import engine
from drivetrack.fleet.inspections import (
    create_maintenance_for_failed_inspections,
    mark_expired_inspections,
)

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def inspection_job():
    """Flag expired inspections and open maintenance for failed ones."""
    try:
        with Session(engine) as session:
            expired = mark_expired_inspections(session)
            created = create_maintenance_for_failed_inspections(session)
            logger.info(
                f"Inspection check completed: {expired} expired, "
                f"{created} maintenance records created"
            )
    except Exception as e:
        logger.error(f"Inspection check failed: {e}")


def start_scheduler():
    """Start the background scheduler."""
    scheduler.add_job(
        inspection_job,
        trigger=IntervalTrigger(minutes=settings.inspection_check_interval_minutes),
        id="inspection_check",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler started, checking inspections every "
        f"{settings.inspection_check_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")

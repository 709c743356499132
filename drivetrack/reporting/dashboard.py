"""Dashboard aggregation across drives, parts, inspections and maintenance."""
from datetime import UTC, datetime, timedelta

from sqlmodel import Session, col, func, select

from drivetrack.maintenance.service import record_to_dict
from drivetrack.models import Drive, Inspection, MaintenanceRecord, Part
from drivetrack.models.inspection import InspectionStatus
from drivetrack.models.maintenance import STATUS_LABELS, MaintenanceStatus

TREND_MONTHS = 6
RECENT_LIMIT = 5


def _count(session: Session, model, *conditions) -> int:
    statement = select(func.count()).select_from(model)
    for condition in conditions:
        statement = statement.where(condition)
    return session.exec(statement).one()


def _month_start(moment: datetime, months_back: int) -> datetime:
    year, month = moment.year, moment.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1, tzinfo=UTC)


def _inspection_stats(session: Session, now: datetime) -> dict:
    open_statuses = [InspectionStatus.PENDING.value, InspectionStatus.IN_PROGRESS.value]
    stats = {"total": _count(session, Inspection)}
    for status in InspectionStatus:
        stats[status.value] = _count(session, Inspection, Inspection.status == status.value)
    stats["overdue"] = _count(
        session,
        Inspection,
        col(Inspection.status).in_(open_statuses),
        col(Inspection.expiry_date).isnot(None),
        Inspection.expiry_date < now,
    )
    stats["due_soon"] = _count(
        session,
        Inspection,
        col(Inspection.status).in_(open_statuses),
        col(Inspection.expiry_date).isnot(None),
        Inspection.expiry_date >= now,
        Inspection.expiry_date <= now + timedelta(days=7),
    )
    return stats


def inspection_trend(session: Session, now: datetime | None = None) -> list[dict]:
    """
    Inspections created and completed per month over the last six months.

    Every month appears, including months with no activity, oldest first:
    [{"name": "May 2025", "created": 3, "completed": 1}, ...]
    """
    now = now or datetime.now(UTC)
    start = _month_start(now, TREND_MONTHS - 1)

    trend = {}
    for offset in range(TREND_MONTHS - 1, -1, -1):
        month = _month_start(now, offset)
        trend[month.strftime("%Y-%m")] = {
            "name": month.strftime("%b %Y"),
            "created": 0,
            "completed": 0,
        }

    created_month = func.strftime("%Y-%m", Inspection.created_at)
    created_rows = session.exec(
        select(created_month, func.count())
        .where(Inspection.created_at >= start)
        .group_by(created_month)
    ).all()
    for year_month, count in created_rows:
        if year_month in trend:
            trend[year_month]["created"] = count

    completed_month = func.strftime("%Y-%m", Inspection.updated_at)
    completed_rows = session.exec(
        select(completed_month, func.count())
        .where(Inspection.status == InspectionStatus.COMPLETED.value)
        .where(Inspection.updated_at >= start)
        .group_by(completed_month)
    ).all()
    for year_month, count in completed_rows:
        if year_month in trend:
            trend[year_month]["completed"] = count

    return list(trend.values())


def dashboard_data(session: Session, now: datetime | None = None) -> dict:
    """Everything the dashboard page renders, as plain JSON-ready data."""
    now = now or datetime.now(UTC)

    inspections = _inspection_stats(session, now)

    maintenances = {"total": _count(session, MaintenanceRecord)}
    for status in MaintenanceStatus:
        maintenances[status.value] = _count(
            session, MaintenanceRecord, MaintenanceRecord.status == status.value
        )

    attached = _count(session, Part, col(Part.drive_id).isnot(None))
    parts = {
        "total": _count(session, Part),
        "attached": attached,
        "unattached": _count(session, Part, col(Part.drive_id).is_(None)),
    }

    recent = session.exec(
        select(MaintenanceRecord)
        .order_by(col(MaintenanceRecord.created_at).desc())
        .limit(RECENT_LIMIT)
    ).all()

    return {
        "inspections_stats": inspections,
        "maintenances_stats": maintenances,
        "drives_stats": {"total": _count(session, Drive)},
        "parts_stats": parts,
        "inspection_status_chart": [
            {"name": status.value.replace("_", " ").title(), "value": inspections[status.value]}
            for status in InspectionStatus
        ],
        "maintenance_status_chart": [
            {"name": STATUS_LABELS[status], "value": maintenances[status.value]}
            for status in MaintenanceStatus
        ],
        "parts_chart": [
            {"name": "Attached", "value": parts["attached"]},
            {"name": "Unattached", "value": parts["unattached"]},
        ],
        "inspection_trend": inspection_trend(session, now),
        "recent_maintenances": [record_to_dict(record) for record in recent],
    }

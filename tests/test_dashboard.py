"""Tests for dashboard aggregation."""

from datetime import UTC, datetime

from sqlmodel import Session

from drivetrack.fleet import parts
from drivetrack.models import Drive, Inspection, MaintenanceRecord, Part
from drivetrack.reporting.dashboard import dashboard_data, inspection_trend


class TestDashboardData:
    def test_empty_database(self, session: Session):
        data = dashboard_data(session)
        assert data["drives_stats"] == {"total": 0}
        assert data["maintenances_stats"]["total"] == 0
        assert data["parts_stats"] == {"total": 0, "attached": 0, "unattached": 0}
        assert data["recent_maintenances"] == []
        assert len(data["inspection_trend"]) == 6

    def test_counts(
        self, session: Session, drive: Drive, part: Part, record: MaintenanceRecord,
        record_with_checklist: MaintenanceRecord, inspection: Inspection,
    ):
        parts.create_part(
            session,
            {"name": "Belt", "part_ref": "PRT-0900", "status": "attached", "drive_id": drive.id},
        )
        data = dashboard_data(session)

        assert data["drives_stats"]["total"] == 1
        assert data["parts_stats"] == {"total": 2, "attached": 1, "unattached": 1}
        assert data["maintenances_stats"]["pending"] == 1
        assert data["maintenances_stats"]["in_progress"] == 1
        assert data["inspections_stats"]["pending"] == 1
        assert {"name": "In Progress", "value": 1} in data["maintenance_status_chart"]
        assert len(data["recent_maintenances"]) == 2

    def test_overdue_and_due_soon(self, session: Session, drive: Drive):
        now = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)
        session.add(Inspection(drive_id=drive.id, name="Late", expiry_date=datetime(2025, 6, 1, tzinfo=UTC)))
        session.add(Inspection(drive_id=drive.id, name="Soon", expiry_date=datetime(2025, 6, 18, tzinfo=UTC)))
        session.add(Inspection(drive_id=drive.id, name="Far", expiry_date=datetime(2025, 9, 1, tzinfo=UTC)))
        session.commit()

        stats = dashboard_data(session, now)["inspections_stats"]
        assert stats["overdue"] == 1
        assert stats["due_soon"] == 1


class TestInspectionTrend:
    def test_months_are_continuous(self, session: Session, drive: Drive):
        """Months without activity still appear, oldest first."""
        now = datetime(2025, 3, 10, tzinfo=UTC)
        session.add(
            Inspection(drive_id=drive.id, name="Jan", created_at=datetime(2025, 1, 5, tzinfo=UTC))
        )
        session.add(
            Inspection(
                drive_id=drive.id, name="Feb", status="completed",
                created_at=datetime(2025, 2, 5, tzinfo=UTC),
                updated_at=datetime(2025, 2, 20, tzinfo=UTC),
            )
        )
        session.commit()

        trend = inspection_trend(session, now)
        assert [month["name"] for month in trend] == [
            "Oct 2024", "Nov 2024", "Dec 2024", "Jan 2025", "Feb 2025", "Mar 2025",
        ]
        assert trend[3] == {"name": "Jan 2025", "created": 1, "completed": 0}
        assert trend[4] == {"name": "Feb 2025", "created": 1, "completed": 1}

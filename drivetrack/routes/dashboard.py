"""Dashboard route."""
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from drivetrack.core.database import get_session
from drivetrack.reporting.dashboard import dashboard_data
from drivetrack.routes.common import templates, wants_json

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def dashboard(request: Request, session: Session = Depends(get_session)):
    """
    Display plant-wide counts, charts and the latest maintenance records.

    Returns the same data as JSON when Accept: application/json is sent.
    """
    data = dashboard_data(session)
    if wants_json(request):
        return data
    return templates.TemplateResponse(request, "dashboard.html", data)

"""Helpers shared by the route modules."""
from pathlib import Path

from fastapi import Header, HTTPException, Request
from fastapi.templating import Jinja2Templates

from drivetrack.core.errors import ConflictError, DriveTrackError, NotFoundError, ValidationError

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
}


def http_error(error: DriveTrackError) -> HTTPException:
    """Translate a domain error into the HTTP error the client should see."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def current_user_id(x_user_id: int = Header(default=1)) -> int:
    """The acting user, passed explicitly into every service call."""
    return x_user_id


def wants_json(request: Request) -> bool:
    """Check if the client prefers JSON response (AJAX request)."""
    accept = request.headers.get("accept", "")
    return "application/json" in accept

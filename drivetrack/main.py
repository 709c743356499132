"""DriveTrack maintenance management web application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from drivetrack.core.config import settings
from drivetrack.core.database import create_db_and_tables
from drivetrack.core.scheduler import shutdown_scheduler, start_scheduler
from drivetrack.routes import dashboard, drives, inspections, maintenances, parts

# Configure logging
log_dir = Path(settings.log_dir).expanduser()
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    logger.info("Starting DriveTrack application")
    create_db_and_tables()
    if settings.scheduler_enabled:
        start_scheduler()
    yield
    shutdown_scheduler()
    logger.info("DriveTrack application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Maintenance management for industrial drives: records, checklists, parts and inspections",
    version="0.1.0",
    lifespan=lifespan,
)

# Plant-floor tablets reach the app from other hosts
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static")

app.include_router(dashboard.router)
app.include_router(drives.router)
app.include_router(parts.router)
app.include_router(maintenances.router)
app.include_router(inspections.router)


@app.get("/")
async def root(request: Request):
    """Redirect root to the dashboard."""
    rp = request.scope.get("root_path", "")
    return RedirectResponse(f"{rp}/dashboard")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)

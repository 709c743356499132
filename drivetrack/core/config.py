"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "DriveTrack"
    debug: bool = False
    log_dir: str = "~/.logs/drivetrack"

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces for plant-floor tablets
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./drivetrack.db"

    # Background jobs
    scheduler_enabled: bool = True
    inspection_check_interval_minutes: int = 15

    # Reporting
    alert_window_days: int = 30  # Failed inspections older than this don't raise alerts
    page_size: int = 10


settings = Settings()

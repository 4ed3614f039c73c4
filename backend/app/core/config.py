"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Calendar Scheduler Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://scheduler@localhost:5432/calendar_scheduler"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "calendar-scheduler"
    business_timezone: str = "Asia/Tokyo"
    holiday_calendar_id: str = "ja.japanese#holiday@group.v.calendar.google.com"
    default_calendar_id: str = "primary"
    default_business_windows: List[str] = ["04:30-06:30", "08:00-19:00"]
    default_min_gap_minutes: int = 15
    default_preferred_start: str = "10:00"
    default_priority_score: float = 50
    reschedule_cutoff_hour: int = 20
    owner_email: str = ""
    scheduler_enabled: bool = False
    reschedule_job_hour: int = 20
    reschedule_job_minute: int = 5
    jobs_run_on_startup: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()

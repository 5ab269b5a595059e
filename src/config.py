from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database
    database_url: str = "sqlite:///./data/contest_alert.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 5001
    debug: bool = False

    # Contest sources
    codeforces_api_url: str = "https://codeforces.com/api/contest.list"
    fetch_timeout_seconds: float = 10.0

    # Email
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = ""
    notification_enabled: bool = True
    display_timezone: str = "UTC"

    # Reminders
    reminder_lead_minutes: int = 20
    reminder_tolerance_seconds: int = 60
    send_delay_seconds: float = 1.0

    # Scheduler
    scheduler_enabled: bool = True
    tick_interval_seconds: int = 60
    aggregation_interval_minutes: int = 60

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""

    # Admin
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def sync_database_url(self) -> str:
        return self.database_url.replace("+aiosqlite", "")

    @property
    def async_database_url(self) -> str:
        if self.database_url.startswith("sqlite:"):
            return self.database_url.replace("sqlite:", "sqlite+aiosqlite:", 1)
        return self.database_url


@lru_cache
def get_settings() -> Settings:
    return Settings()

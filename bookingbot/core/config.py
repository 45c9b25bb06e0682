from datetime import time, timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_API_BASE_URL: str = "https://api.telegram.org"
    TELEGRAM_WEBHOOK_SECRET: str | None = None
    AUTO_REPLY_ENABLED: bool = True

    DEFAULT_LANGUAGE: str = "EN"
    DEFAULT_TIMEZONE: str = "Europe/Lisbon"
    SUPPORTED_TIMEZONES: list[str] = [
        "Europe/London",
        "Europe/Paris",
        "Europe/Berlin",
        "Europe/Lisbon",
        "Europe/Kyiv",
    ]

    SLOT_GRANULARITY_MINUTES: int = 30
    CONVERSATION_TTL_MINUTES: int = 60
    STATE_STORE_DIR: str = "./data/sessions"
    LOCALES_DIR: str = str(PACKAGE_DIR / "locales")
    SEED_DATA_PATH: str | None = None

    DEFAULT_WORK_START: time = time(9, 0)
    DEFAULT_WORK_END: time = time(17, 0)

    SUPPORTED_CURRENCIES: list[str] = ["EUR", "USD", "UAH"]
    SERVICE_DURATION_OPTIONS: list[int] = [15, 30, 45, 60, 90]

    REMINDERS_ENABLED: bool = True
    REMINDER_CHECK_MINUTES: int = 60

    @property
    def slot_granularity(self) -> timedelta:
        return timedelta(minutes=self.SLOT_GRANULARITY_MINUTES)

    @property
    def reminder_interval(self) -> timedelta:
        return timedelta(minutes=self.REMINDER_CHECK_MINUTES)

    @property
    def conversation_ttl(self) -> timedelta:
        return timedelta(minutes=self.CONVERSATION_TTL_MINUTES)

    @property
    def is_dev(self) -> bool:
        return self.ENV.lower() in {"dev", "local"}


settings = Settings()

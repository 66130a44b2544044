# barbershop/config.py

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./barber.db"

    # "production" hides unexpected error details from callers
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Shop
    TIMEZONE: str = "America/New_York"
    HOURS_START: int = 9
    HOURS_END: int = 23
    CANCELLATION_WINDOW_HOURS: int = 4

    # Rows flushed per round trip when persisting a weekly schedule
    WEEKLY_BATCH_SIZE: int = 200

    @field_validator("HOURS_START", "HOURS_END")
    @classmethod
    def check_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError("hours must be between 0 and 23")
        return value

    @field_validator("CANCELLATION_WINDOW_HOURS")
    @classmethod
    def check_window(cls, value: int) -> int:
        if value < 0:
            raise ValueError("cancellation window cannot be negative")
        return value

    @field_validator("WEEKLY_BATCH_SIZE")
    @classmethod
    def check_batch_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("batch size must be positive")
        return value

    @model_validator(mode="after")
    def check_hours_order(self) -> "Settings":
        if self.HOURS_START >= self.HOURS_END:
            raise ValueError("HOURS_START must be before HOURS_END")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings


load_dotenv()


class AppSettings(BaseSettings):
    # Pydantic v2 settings configuration

    mongo_uri: str = Field(default="mongodb://localhost:27017", alias="MONGO_URI")
    # Accept MONGO_DB_NAME (preferred) or DATABASE_NAME (legacy)
    database_name: str = Field(
        default="vitavet",
        validation_alias=AliasChoices("MONGO_DB_NAME", "DATABASE_NAME"),
    )

    # Auth / JWT
    jwt_secret_key: str = Field(default="dev-secret", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    allowed_origins: str = Field(default="http://localhost:5173", alias="ALLOWED_ORIGINS")
    ensure_indexes_on_startup: bool = Field(default=True, alias="ENSURE_INDEXES_ON_STARTUP")

    # Scheduling
    clinic_timezone: str = Field(default="Europe/Paris", alias="CLINIC_TIMEZONE")
    slot_duration_minutes: int = Field(default=30, ge=5, le=240, alias="SLOT_DURATION_MINUTES")
    rejection_reason_min_length: int = Field(default=10, alias="REJECTION_REASON_MIN_LENGTH")
    rejection_reason_max_length: int = Field(default=500, alias="REJECTION_REASON_MAX_LENGTH")
    report_max_length: int = Field(default=5000, alias="REPORT_MAX_LENGTH")

    # Reminders job
    reminders_batch_limit: int = Field(default=200, alias="REMINDERS_BATCH_LIMIT")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()

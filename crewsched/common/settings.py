"""Environment-driven configuration for the crew scheduling service."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ConflictScope = Literal["global", "project"]
MissingEventPolicy = Literal["no_conflict", "error"]


class Settings(BaseSettings):
    # -------- App / Env --------
    app_name: str = "crewsched"
    app_env: str = "development"  # development|test|staging|production
    log_level: str = "INFO"

    # -------- Conflict detection --------
    # "global" flags double-bookings across every project the crew member is in.
    conflict_scope: ConflictScope = "global"
    on_missing_event: MissingEventPolicy = "no_conflict"

    # -------- Availability calendar --------
    # IANA zone used to derive calendar days; None keeps each timestamp's own date.
    calendar_tz: str | None = None
    # Longest start..end span the calendar view will build, in days.
    max_range_days: int = Field(366, ge=1)

    # -------- Assignments --------
    serialize_crew_assignments: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("calendar_tz", mode="before")
    @classmethod
    def _known_zone(cls, v):
        if v in (None, ""):
            return None
        try:
            ZoneInfo(str(v))
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"unknown time zone: {v}") from exc
        return str(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, v):
        return str(v).upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Global settings accessor (cached). Use this everywhere you need config:
        from crewsched.common.settings import get_settings
        cfg = get_settings()
    """
    return Settings()

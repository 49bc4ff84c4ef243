"""Runtime configuration read from the environment (optionally a .env file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo

from dateutil import tz
from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
DEFAULT_WORK_START = 8
DEFAULT_WORK_END = 18


def resolve_zone(name: str) -> tzinfo:
    """Look up an IANA zone name such as ``UTC`` or ``Asia/Bangkok``.

    ``gettz`` falls back to the host clock for abbreviations listed in
    ``time.tzname``; those are refused so day bucketing never depends on
    the machine the service runs on.
    """
    zone = tz.gettz(name)
    if zone is None or isinstance(zone, tz.tzlocal):
        raise ValueError(f"Unknown timezone: {name!r}")
    return zone


@dataclass(frozen=True)
class Settings:
    timezone: str = DEFAULT_TIMEZONE
    work_start_hour: int = DEFAULT_WORK_START
    work_end_hour: int = DEFAULT_WORK_END
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        resolve_zone(self.timezone)
        if not 0 <= self.work_start_hour < self.work_end_hour <= 24:
            raise ValueError(
                "Working hours must satisfy 0 <= start < end <= 24, "
                f"got {self.work_start_hour}-{self.work_end_hour}"
            )

    @property
    def zone(self) -> tzinfo:
        """Reference timezone every booking date is bucketed in."""
        return resolve_zone(self.timezone)


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings() -> Settings:
    """Build Settings from ROOMBOOK_* environment variables.

    A ``.env`` file in the working directory is loaded first; variables
    already present in the environment win.
    """
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings(
        timezone=os.environ.get("ROOMBOOK_TIMEZONE") or DEFAULT_TIMEZONE,
        work_start_hour=_int_env("ROOMBOOK_WORK_START", DEFAULT_WORK_START),
        work_end_hour=_int_env("ROOMBOOK_WORK_END", DEFAULT_WORK_END),
        log_level=(os.environ.get("ROOMBOOK_LOG_LEVEL") or "INFO").upper(),
    )
    logger.debug("Loaded settings: %s", settings)
    return settings

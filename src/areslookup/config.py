"""Settings for the ARES client, read from environment variables.

Recognised variables (a ``.env`` file is honoured when present):

* ``ARES_BASE_URL`` - REST endpoint, defaults to the public ARES API.
* ``ARES_TIMEOUT`` - request timeout in seconds (default 10).
* ``ARES_CACHE_TTL`` - cache lifetime, e.g. ``"1 month"`` or ``"3600"``.
* ``ARES_CACHE_DIR`` - directory for a persistent ``diskcache`` store;
  unset means an in-process cache.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

API_BASE = "https://ares.gov.cz/ekonomicke-subjekty-v-be/rest"
DEFAULT_TIMEOUT = 10.0
DEFAULT_CACHE_TTL = "1 month"

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$")
_UNIT_SECONDS: dict[str, float] = {
    "": 1,
    "s": 1,
    "sec": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 7 * 86400,
    "week": 7 * 86400,
    "weeks": 7 * 86400,
    "month": 30 * 86400,
    "months": 30 * 86400,
}


def parse_duration(value: str | int | float | timedelta) -> float:
    """Convert *value* to a positive number of seconds.

    Strings take a number and an optional unit (``"1 month"``, ``"30 days"``,
    ``"2h"``); a month counts as 30 days.
    """

    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    elif isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = _DURATION_PATTERN.match(value.lower())
        if match is None or match.group(2) not in _UNIT_SECONDS:
            raise ValueError(f"Invalid duration: {value!r}")
        seconds = float(match.group(1)) * _UNIT_SECONDS[match.group(2)]

    if seconds <= 0:
        raise ValueError(f"Duration must be positive, got {value!r}")
    return seconds


@dataclass(frozen=True)
class Settings:
    """Client settings; build from the environment with :meth:`from_env`."""

    base_url: str = API_BASE
    timeout: float = DEFAULT_TIMEOUT
    cache_ttl: str = DEFAULT_CACHE_TTL
    cache_dir: str | None = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"ARES_TIMEOUT must be positive, got {self.timeout}")
        parse_duration(self.cache_ttl)

    @property
    def cache_ttl_seconds(self) -> float:
        return parse_duration(self.cache_ttl)

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> Settings:
        """Load settings from ``os.environ``, after reading a ``.env`` file if one exists."""

        env_file = Path(dotenv_path) if dotenv_path else Path(".env")
        if env_file.exists():
            load_dotenv(dotenv_path=env_file)

        timeout_raw = os.getenv("ARES_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ValueError(f"ARES_TIMEOUT must be a number, got {timeout_raw!r}") from exc

        return cls(
            base_url=os.getenv("ARES_BASE_URL") or API_BASE,
            timeout=timeout,
            cache_ttl=os.getenv("ARES_CACHE_TTL") or DEFAULT_CACHE_TTL,
            cache_dir=os.getenv("ARES_CACHE_DIR") or None,
        )


__all__ = ["API_BASE", "DEFAULT_CACHE_TTL", "DEFAULT_TIMEOUT", "Settings", "parse_duration"]

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    database_url: str
    roster_path: str
    html_path: str
    symmetric_exclusions: bool
    max_attempts: int
    rate_limit_calls: int
    rate_limit_period: int
    log_level: str
    log_path: str


def _get_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}.")
    return value


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be true or false, got {raw!r}.")


def load_settings() -> Settings:
    return Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=_get_int("PORT", 3000, minimum=0),
        database_url=os.getenv("DATABASE_URL") or "sqlite:///data/santa.db",
        roster_path=os.getenv("ROSTER_PATH", "roster.json"),
        html_path=os.getenv("HTML_PATH", "static/index.html"),
        symmetric_exclusions=_get_bool("SYMMETRIC_EXCLUSIONS", True),
        max_attempts=_get_int("MAX_ATTEMPTS", 1000, minimum=1),
        rate_limit_calls=_get_int("RATE_LIMIT_CALLS", 5, minimum=1),
        rate_limit_period=_get_int("RATE_LIMIT_PERIOD", 10, minimum=1),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_path=os.getenv("LOG_PATH", "logs/santa_draw.log"),
    )

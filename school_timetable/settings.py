"""Read-only access to timetable settings and the clock."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, List, Mapping, Optional, Protocol
from zoneinfo import ZoneInfo

from .errors import ConfigurationError
from .models import WEEK_LABELS, TrimesterBounds
from .offdays import coerce_offday
from .util import DEFAULT_TZ, parse_date, parse_timezone

DATE_KEYS = ("year_start", "trimester_2_start", "trimester_3_start", "year_end")
KEYS = DATE_KEYS + ("starting_week_type", "offdays")

def _check_label(label: Any) -> str:
    if label not in WEEK_LABELS:
        raise ConfigurationError(f"starting_week_type must be A or B, got {label!r}")
    return label


class Settings:
    """Named configuration values consumed by the resolver."""

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = dict(values)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Settings":
        values = dict(raw)
        for key in DATE_KEYS:
            if values.get(key) is None:
                continue
            try:
                values[key] = parse_date(values[key])
            except (TypeError, ValueError, AttributeError) as exc:
                raise ConfigurationError(f"Setting {key!r} is not a date: {exc}") from exc
        values["offdays"] = [coerce_offday(o) for o in values.get("offdays") or []]
        return cls(values)

    def value(self, key: str) -> Any:
        try:
            return self._values[key]
        except KeyError:
            raise ConfigurationError(f"Missing setting {key!r}") from None

    @property
    def year_start(self) -> date:
        return self.value("year_start")

    @property
    def starting_week_type(self) -> str:
        return _check_label(self.value("starting_week_type"))

    @property
    def offdays(self) -> List[Any]:
        return list(self._values.get("offdays") or [])

    @property
    def trimester_bounds(self) -> TrimesterBounds:
        return TrimesterBounds(*(self.value(key) for key in DATE_KEYS))


class Clock(Protocol):
    tz: ZoneInfo

    def now(self) -> datetime:
        ...

    def tomorrow(self) -> datetime:
        ...


class SystemClock:
    def __init__(self, tz: str | ZoneInfo = DEFAULT_TZ) -> None:
        self.tz = parse_timezone(tz)

    def now(self) -> datetime:
        # Naive local time, comparable with template times merged onto dates.
        return datetime.now(self.tz).replace(tzinfo=None)

    def tomorrow(self) -> datetime:
        return self.now() + timedelta(days=1)


class FixedClock:
    def __init__(self, now: datetime, tz: str | ZoneInfo = DEFAULT_TZ) -> None:
        self._now = now
        self.tz = parse_timezone(tz)

    def now(self) -> datetime:
        return self._now

    def tomorrow(self) -> datetime:
        return self._now + timedelta(days=1)

    def set(self, now: datetime) -> None:
        self._now = now


def load_settings(raw: Optional[Mapping[str, Any]]) -> Settings:
    """Build settings from a raw mapping, checking every key is present."""
    raw = raw or {}
    missing = [key for key in KEYS if key not in raw]
    if missing:
        raise ConfigurationError(f"Missing settings: {', '.join(missing)}")
    settings = Settings.from_mapping(raw)
    _check_label(settings.value("starting_week_type"))
    return settings

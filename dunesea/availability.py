"""Business availability: a weekly template plus blocked slots per date.

Shape (as stored in availability.json and sent to the browser):
{
  "weekly": {"0": {"enabled": false, "start": 8, "end": 18}, ... "6": {...}},
  "blocks": {"2025-03-04": ["08:00", "10:00"]}
}

Weekday keys follow the browser's numbering: "0" is Sunday.
Blocks for a date form a set of HH:MM strings, kept sorted.
"""
import math
import re
import threading
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from dunesea import config
from dunesea.errors import InvalidFieldError, MissingFieldError
from dunesea.logging_config import get_logger
from dunesea.models import Availability, DayHours
from dunesea.store import JsonStore

logger = get_logger(__name__)

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def normalize_time(value: Any) -> Optional[str]:
    """Return "HH:MM" for "H:MM"/"HH:MM" input, None if not a valid time."""
    match = TIME_PATTERN.match(str(value or "").strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def parse_date(value: Any) -> Optional[date]:
    try:
        return date.fromisoformat(str(value or "").strip())
    except ValueError:
        return None


def weekday_key(day: date) -> str:
    """Weekly template key for a date ("0" = Sunday)."""
    return str((day.weekday() + 1) % 7)


def slot_times(settings: Dict[str, int] = config.SCHEDULE_SETTINGS) -> List[str]:
    """
    Start times of the daily grid.

    Example (open 8, close 18, 120 minute slots):
        ["08:00", "10:00", "12:00", "14:00", "16:00"]
    """
    open_hour = settings["open_hour"]
    slot_minutes = settings["slot_minutes"]
    count = math.ceil((settings["close_hour"] - open_hour) * 60 / slot_minutes)

    times = []
    for index in range(count):
        minutes = index * slot_minutes
        times.append(f"{open_hour + minutes // 60:02d}:{minutes % 60:02d}")
    return times


def _day_hours(raw: Any, default: Dict[str, Any]) -> DayHours:
    if not isinstance(raw, dict):
        raw = default
    start = raw.get("start")
    end = raw.get("end")
    try:
        return DayHours(
            enabled=raw.get("enabled", False),
            start=default["start"] if start is None else start,
            end=default["end"] if end is None else end,
        )
    except ValidationError:
        return DayHours(enabled=raw.get("enabled", False), start=default["start"], end=default["end"])


def normalize_blocks(raw: Any) -> Dict[str, List[str]]:
    """Dedupe, pad and sort block times; drop bad dates, bad times and empty days."""
    if not isinstance(raw, dict):
        return {}

    blocks = {}
    for key, times in raw.items():
        day = parse_date(key)
        if day is None or not isinstance(times, (list, tuple)):
            continue
        clean = {t for t in (normalize_time(v) for v in times) if t}
        if clean:
            # "2025-03-04" and "20250304" land on the same day
            blocks[day.isoformat()] = sorted(set(blocks.get(day.isoformat(), [])) | clean)
    return dict(sorted(blocks.items()))


def normalize_availability(raw: Any) -> Availability:
    """
    Build a complete Availability from whatever the client sent.

    Missing weekdays fall back to the default template. Hours are clamped
    to 0-23 (start) and 1-24 (end), with end pushed past start.
    """
    raw = raw if isinstance(raw, dict) else {}
    weekly_raw = raw.get("weekly") if isinstance(raw.get("weekly"), dict) else config.DEFAULT_WEEKLY

    weekly = {}
    for dow in range(7):
        key = str(dow)
        default = config.DEFAULT_WEEKLY[key]
        conf = weekly_raw.get(key, weekly_raw.get(dow, default))
        weekly[key] = _day_hours(conf, default)

    return Availability(weekly=weekly, blocks=normalize_blocks(raw.get("blocks")))


def _require_date(value: Any) -> str:
    if not str(value or "").strip():
        raise MissingFieldError("Missing date")
    day = parse_date(value)
    if day is None:
        raise InvalidFieldError("Invalid date")
    return day.isoformat()


def _require_time(value: Any) -> str:
    if not str(value or "").strip():
        raise MissingFieldError("Missing time")
    time_str = normalize_time(value)
    if time_str is None:
        raise InvalidFieldError("Invalid time")
    return time_str


class AvailabilityBook:
    """The persisted availability document plus the admin edits on it."""

    def __init__(self, store: JsonStore, settings: Dict[str, int] = config.SCHEDULE_SETTINGS):
        self.store = store
        self.settings = settings
        self.lock = threading.RLock()
        self.availability = normalize_availability(store.load(config.AVAILABILITY_FILE, {}))

    def _commit(self, availability: Availability) -> Availability:
        self.availability = availability
        self.store.save(config.AVAILABILITY_FILE, availability.to_wire())
        logger.info("availability.updated", blocked_days=len(availability.blocks))
        return availability

    def get(self) -> Availability:
        with self.lock:
            return self.availability.model_copy(deep=True)

    def replace(self, raw: Any) -> Availability:
        """Replace weekly template and blocks wholesale."""
        with self.lock:
            return self._commit(normalize_availability(raw))

    def set_weekly(self, raw_weekly: Any) -> Availability:
        """Replace the weekly template, keeping blocked slots."""
        with self.lock:
            current = self.availability.to_wire()
            return self._commit(normalize_availability({"weekly": raw_weekly, "blocks": current["blocks"]}))

    def block_slot(self, day: Any, time_str: Any) -> List[str]:
        """Block one slot. Blocking an already blocked slot changes nothing."""
        key, slot = _require_date(day), _require_time(time_str)
        with self.lock:
            current = self.availability.blocks.get(key, [])
            if slot in current:
                return list(current)

            blocks = dict(self.availability.blocks)
            blocks[key] = sorted(set(current) | {slot})
            self._commit(Availability(weekly=self.availability.weekly, blocks=dict(sorted(blocks.items()))))
            return blocks[key]

    def unblock_slot(self, day: Any, time_str: Any) -> List[str]:
        key, slot = _require_date(day), _require_time(time_str)
        with self.lock:
            current = self.availability.blocks.get(key, [])
            if slot not in current:
                return list(current)

            blocks = dict(self.availability.blocks)
            remaining = [t for t in current if t != slot]
            if remaining:
                blocks[key] = remaining
            else:
                del blocks[key]
            self._commit(Availability(weekly=self.availability.weekly, blocks=blocks))
            return remaining

    def block_day(self, day: Any) -> List[str]:
        """Block every grid slot of a date."""
        key = _require_date(day)
        times = slot_times(self.settings)
        with self.lock:
            blocks = dict(self.availability.blocks)
            blocks[key] = times
            self._commit(Availability(weekly=self.availability.weekly, blocks=dict(sorted(blocks.items()))))
        return times

    def clear_day(self, day: Any) -> None:
        key = _require_date(day)
        with self.lock:
            if key not in self.availability.blocks:
                return
            blocks = {k: v for k, v in self.availability.blocks.items() if k != key}
            self._commit(Availability(weekly=self.availability.weekly, blocks=blocks))

    def is_blocked(self, day: date, time_str: str) -> bool:
        with self.lock:
            return time_str in self.availability.blocks.get(day.isoformat(), [])

    def is_within_weekly(self, day: date, hour: int) -> bool:
        """Whether an hour on a date falls inside that weekday's enabled hours."""
        with self.lock:
            conf = self.availability.weekly[weekday_key(day)]
            return conf.enabled and conf.start <= hour < conf.end

"""Week view of the booking grid.

Every cell is one slot on one day, labelled with what the public calendar
shows for it. Precedence, first match wins:

    appointment pending   -> pending      ("Awaiting Confirmation")
    appointment accepted  -> reserved     ("Reserved")
    blocked by admin      -> blocked
    outside weekly hours  -> unavailable
    otherwise             -> available    (the only bookable state)

Grid times are wall-clock times in the business timezone; startISO is the
matching UTC instant, formatted the way browsers print Date.toISOString().
"""
from datetime import date, datetime, time, timedelta, UTC
from enum import Enum
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from dunesea import config
from dunesea.availability import AvailabilityBook, slot_times, weekday_key
from dunesea.scheduling import Schedule


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    RESERVED = "reserved"
    BLOCKED = "blocked"
    UNAVAILABLE = "unavailable"


def start_of_week(day: date) -> date:
    """The Sunday on or before a date."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def format_start_iso(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.000Z")


class WeekGrid:
    """Builds week views from the schedule and the availability book."""

    def __init__(
        self,
        schedule: Schedule,
        availability: AvailabilityBook,
        timezone: str = "America/Chicago",
        settings: Dict[str, int] = config.SCHEDULE_SETTINGS
    ):
        self.schedule = schedule
        self.availability = availability
        self.tz = ZoneInfo(timezone)
        self.settings = settings

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def build(self, start: Optional[date] = None) -> Dict[str, Any]:
        """
        Build the grid for days_shown days.

        Args:
            start: First day shown. Defaults to the start of the current week.

        Returns:
            {"range": {...}, "times": [...], "days": [{"date", "weekday",
             "label", "slots": [...]}]}
        """
        if start is None:
            start = start_of_week(self.today())

        times = slot_times(self.settings)
        # Pre-build the appointment index once for O(1) lookups per cell
        appointments = self.schedule.by_start()

        days = []
        for offset in range(self.settings["days_shown"]):
            day = start + timedelta(days=offset)
            slots = []

            for time_str in times:
                hour, minute = map(int, time_str.split(":"))
                local_start = datetime.combine(day, time(hour, minute), tzinfo=self.tz)
                appt = appointments.get(local_start.astimezone(UTC))

                if appt is not None:
                    status = SlotStatus.PENDING if appt.status == "pending" else SlotStatus.RESERVED
                elif self.availability.is_blocked(day, time_str):
                    status = SlotStatus.BLOCKED
                elif not self.availability.is_within_weekly(day, hour):
                    status = SlotStatus.UNAVAILABLE
                else:
                    status = SlotStatus.AVAILABLE

                slot = {
                    "date": day.isoformat(),
                    "time": time_str,
                    "startISO": format_start_iso(local_start),
                    "status": status.value,
                    "bookable": status is SlotStatus.AVAILABLE,
                }
                if appt is not None:
                    slot["appointmentId"] = appt.id
                slots.append(slot)

            days.append({
                "date": day.isoformat(),
                "weekday": weekday_key(day),
                "label": f"{day.strftime('%a')} {day.month}/{day.day}",
                "slots": slots,
            })

        end = start + timedelta(days=self.settings["days_shown"] - 1)
        return {
            "range": {"start": start.isoformat(), "end": end.isoformat()},
            "times": times,
            "days": days,
        }

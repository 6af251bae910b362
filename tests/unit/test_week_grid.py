"""Tests for the week view of the booking grid."""
from datetime import date

import pytest

from dunesea.availability import AvailabilityBook
from dunesea.scheduling import Schedule
from dunesea.week_grid import WeekGrid, start_of_week

from conftest import TUESDAY_8AM

SUNDAY = date(2025, 3, 2)


@pytest.fixture
def schedule(store):
    return Schedule(store)


@pytest.fixture
def availability(store):
    return AvailabilityBook(store)


@pytest.fixture
def grid(schedule, availability):
    return WeekGrid(schedule, availability, "America/Chicago")


def slot_at(week, day, time_str):
    day_entry = next(d for d in week["days"] if d["date"] == day)
    return next(s for s in day_entry["slots"] if s["time"] == time_str)


def test_start_of_week_is_sunday():
    assert start_of_week(date(2025, 3, 5)) == SUNDAY
    assert start_of_week(SUNDAY) == SUNDAY
    assert start_of_week(date(2025, 3, 8)) == SUNDAY


def test_week_shape(grid):
    week = grid.build(SUNDAY)

    assert week["range"] == {"start": "2025-03-02", "end": "2025-03-08"}
    assert week["times"] == ["08:00", "10:00", "12:00", "14:00", "16:00"]
    assert len(week["days"]) == 7
    assert week["days"][0]["label"] == "Sun 3/2"
    assert week["days"][0]["weekday"] == "0"
    assert all(len(day["slots"]) == 5 for day in week["days"])


def test_start_iso_uses_business_timezone(grid):
    """08:00 in Chicago in early March is 14:00 UTC."""
    slot = slot_at(grid.build(SUNDAY), "2025-03-04", "08:00")

    assert slot["startISO"] == TUESDAY_8AM


def test_start_iso_follows_daylight_saving(grid):
    """After the March switch to CDT, 08:00 is 13:00 UTC."""
    slot = slot_at(grid.build(date(2025, 3, 9)), "2025-03-10", "08:00")

    assert slot["startISO"] == "2025-03-10T13:00:00.000Z"


def test_open_weekday_is_available(grid):
    slot = slot_at(grid.build(SUNDAY), "2025-03-04", "10:00")

    assert slot["status"] == "available"
    assert slot["bookable"] is True
    assert "appointmentId" not in slot


def test_disabled_weekday_is_unavailable(grid):
    week = grid.build(SUNDAY)

    for slot in week["days"][0]["slots"] + week["days"][6]["slots"]:
        assert slot["status"] == "unavailable"
        assert slot["bookable"] is False


def test_hours_outside_weekly_template_are_unavailable(grid, availability):
    availability.set_weekly({"2": {"enabled": True, "start": 10, "end": 14}})

    week = grid.build(SUNDAY)

    assert slot_at(week, "2025-03-04", "08:00")["status"] == "unavailable"
    assert slot_at(week, "2025-03-04", "10:00")["status"] == "available"
    assert slot_at(week, "2025-03-04", "12:00")["status"] == "available"
    assert slot_at(week, "2025-03-04", "14:00")["status"] == "unavailable"


def test_blocked_slot(grid, availability):
    availability.block_slot("2025-03-04", "12:00")

    slot = slot_at(grid.build(SUNDAY), "2025-03-04", "12:00")

    assert slot["status"] == "blocked"
    assert slot["bookable"] is False


def test_pending_then_reserved(grid, schedule):
    appt = schedule.request({"startISO": TUESDAY_8AM, "name": "Ada"})

    slot = slot_at(grid.build(SUNDAY), "2025-03-04", "08:00")
    assert slot["status"] == "pending"
    assert slot["appointmentId"] == appt.id
    assert slot["bookable"] is False

    schedule.accept(appt.id)

    slot = slot_at(grid.build(SUNDAY), "2025-03-04", "08:00")
    assert slot["status"] == "reserved"


def test_appointment_wins_over_block(grid, schedule, availability):
    schedule.book({"startISO": "2025-03-04T08:00:00-06:00"})
    availability.block_day("2025-03-04")

    week = grid.build(SUNDAY)

    assert slot_at(week, "2025-03-04", "08:00")["status"] == "reserved"
    assert slot_at(week, "2025-03-04", "10:00")["status"] == "blocked"


def test_default_start_is_current_week(grid):
    week = grid.build()

    assert week["range"]["start"] == start_of_week(grid.today()).isoformat()

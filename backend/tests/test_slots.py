from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from app.scheduling.errors import BackendUnavailable, NoSlotAvailable, ValidationError
from app.scheduling.slots import MAX_SEARCH_BUSINESS_DAYS, normalize_duration, normalize_gap, scan_window
from app.scheduling.types import BusyInterval, CalendarTask, SlotRequest, Window, parse_windows
from conftest import at

MONDAY = date(2030, 1, 7)
TEN = time(10, 0)


def _busy(calendar, day: date, start: tuple, end: tuple, task_id: str) -> None:
    calendar.add(CalendarTask(id=task_id, start=at(day, *start), end=at(day, *end)))


def test_empty_day_returns_preferred_start(engine) -> None:
    slot = engine.slots.find_slot_in_day(MONDAY, TEN, 1, engine.config.default_windows, 15)

    assert slot.start == at(MONDAY, 10)
    assert slot.end == at(MONDAY, 11)
    assert slot.day == MONDAY


def test_busy_block_pushes_slot_past_gap(engine, calendar) -> None:
    _busy(calendar, MONDAY, (10, 0), (10, 30), "standup")

    slot = engine.slots.find_slot_in_day(MONDAY, TEN, 1, engine.config.default_windows, 15)

    assert (slot.start, slot.end) == (at(MONDAY, 10, 45), at(MONDAY, 11, 45))


def test_gap_is_kept_before_the_next_busy_block(engine, calendar) -> None:
    _busy(calendar, MONDAY, (11, 0), (12, 0), "review")

    slot = engine.slots.find_slot_in_day(MONDAY, TEN, 1, engine.config.default_windows, 15)

    assert slot.start == at(MONDAY, 12, 15)


def test_preferred_start_outside_windows_uses_window_start(engine) -> None:
    slot = engine.slots.find_slot_in_day(MONDAY, time(7, 0), 1, engine.config.default_windows, 15)

    assert slot.start == at(MONDAY, 4, 30)


def test_full_early_window_falls_through_to_next(engine, calendar) -> None:
    _busy(calendar, MONDAY, (4, 30), (6, 30), "gym")

    slot = engine.slots.find_slot_in_day(MONDAY, time(5, 0), 1, engine.config.default_windows, 15)

    assert slot.start == at(MONDAY, 8, 0)


def test_slot_must_leave_gap_before_window_end(engine) -> None:
    windows = parse_windows(["09:00-10:00"])

    assert engine.slots.find_slot_in_day(MONDAY, None, 1, windows, 15) is None
    slot = engine.slots.find_slot_in_day(MONDAY, None, 0.75, windows, 15)
    assert slot.end == at(MONDAY, 9, 45)


def test_busy_interval_crossing_window_start_is_respected(engine, calendar) -> None:
    _busy(calendar, MONDAY, (7, 0), (9, 0), "commute")

    slot = engine.slots.find_slot_in_day(MONDAY, time(8, 0), 1, parse_windows(["08:00-19:00"]), 15)

    assert slot.start == at(MONDAY, 9, 15)


def test_roller_skips_weekend(engine, calendar) -> None:
    saturday = date(2030, 1, 5)

    slot = engine.slots.find_slot_across_days(saturday, TEN, 1, engine.config.default_windows, 15)

    assert slot.day == MONDAY


def test_roller_moves_to_next_business_day_when_full(engine, calendar) -> None:
    friday = date(2030, 1, 4)
    for day in (friday, MONDAY):
        _busy(calendar, day, (4, 0), (7, 0), f"early-{day}")
        _busy(calendar, day, (7, 30), (19, 30), f"late-{day}")

    slot = engine.slots.find_slot_across_days(friday, TEN, 1, engine.config.default_windows, 15)

    assert slot.day == date(2030, 1, 8)
    assert slot.start == at(slot.day, 10)


def test_roller_gives_up_after_business_day_horizon(engine, calendar) -> None:
    day = MONDAY
    for index in range(30):
        current = day + timedelta(days=index)
        _busy(calendar, current, (0, 0), (23, 59), f"blocked-{index}")

    with pytest.raises(NoSlotAvailable):
        engine.slots.find_slot_across_days(MONDAY, TEN, 1, engine.config.default_windows, 15)


def test_find_uses_default_windows_when_none_given(engine) -> None:
    slot = engine.find_slot(SlotRequest(day=MONDAY, preferred_start=None, duration_hours=2))

    assert (slot.start, slot.end) == (at(MONDAY, 10), at(MONDAY, 12))


def test_non_positive_duration_and_negative_gap_fall_back() -> None:
    assert normalize_duration(0) == timedelta(hours=1)
    assert normalize_duration(-2) == timedelta(hours=1)
    assert normalize_gap(-5) == timedelta(minutes=15)
    assert normalize_gap(0) == timedelta(0)


def test_scan_window_found_slot_respects_every_constraint() -> None:
    window_start, window_end = Window(time(8), time(19)).bounds(MONDAY, at(MONDAY, 0).tzinfo)
    busy = [
        BusyInterval(at(MONDAY, 9), at(MONDAY, 10)),
        BusyInterval(at(MONDAY, 10, 30), at(MONDAY, 12)),
    ]
    gap = timedelta(minutes=15)

    start, end = scan_window(busy, window_start, window_end, window_start, timedelta(hours=1), gap)

    assert end - start == timedelta(hours=1)
    assert window_start <= start and end + gap <= window_end
    for block in busy:
        assert end + gap <= block.start or start >= block.end + gap
    assert start == at(MONDAY, 12, 15)


def test_roller_horizon_is_fourteen_business_days() -> None:
    assert MAX_SEARCH_BUSINESS_DAYS == 14


def test_free_busy_failure_reaches_the_caller(engine, calendar) -> None:
    calendar.fail_free_busy = True

    with pytest.raises(BackendUnavailable):
        engine.slots.find_slot_across_days(MONDAY, TEN, 1, engine.config.default_windows, 15)


def test_window_may_end_at_midnight(engine, calendar) -> None:
    window = Window.parse("19:00-24:00")
    _busy(calendar, MONDAY, (19, 0), (22, 0), "dinner")

    assert str(window) == "19:00-24:00"
    assert window.bounds(MONDAY, at(MONDAY, 0).tzinfo)[1] == at(MONDAY + timedelta(days=1), 0)
    slot = engine.slots.find_slot_in_day(MONDAY, time(19, 0), 1, (window,), 15)
    assert (slot.start, slot.end) == (at(MONDAY, 22, 15), at(MONDAY, 23, 15))
    assert engine.slots.find_slot_in_day(MONDAY, time(23, 0), 1, (window,), 15) is None


@pytest.mark.parametrize("value", ["24:00-19:00", "19:00-24:30", "19:00-25:00"])
def test_midnight_is_only_an_end_bound(value) -> None:
    with pytest.raises(ValidationError):
        Window.parse(value)

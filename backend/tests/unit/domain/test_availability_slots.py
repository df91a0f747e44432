"""
Unit tests for compute_slots.

All times are naive salon wall-clock times. 5 March 2025 is a Wednesday.
"""

from datetime import date, datetime, timedelta

import pytest

from salon_booking.core.exceptions import ValidationException
from salon_booking.domain.intervals import BusySpan
from salon_booking.domain.timeline import build_timeline
from salon_booking.services.availability_service import compute_slots, earliest_bookable_day

WEDNESDAY = date(2025, 3, 5)
LONG_AGO = datetime(2025, 1, 1, 9, 0)
MORNING_ONLY = {"wednesday": {"start": "09:00", "end": "12:00"}}


def _at(hour, minute=0, day=WEDNESDAY):
    return datetime(day.year, day.month, day.day, hour, minute)


class TestComputeSlots:
    def test_busy_span_removes_overlapping_starts(self):
        slots = compute_slots(
            MORNING_ONLY, WEDNESDAY, 30, [BusySpan(_at(10), _at(10, 30))], LONG_AGO
        )

        assert slots == [
            _at(9),
            _at(9, 15),
            _at(9, 30),
            _at(10, 30),
            _at(10, 45),
            _at(11),
            _at(11, 15),
            _at(11, 30),
        ]

    def test_start_running_into_busy_span_is_rejected(self):
        slots = compute_slots(
            MORNING_ONLY, WEDNESDAY, 30, [BusySpan(_at(10), _at(10, 30))], LONG_AGO
        )

        assert _at(9, 45) not in slots

    def test_busy_spans_may_be_plain_tuples(self):
        slots = compute_slots(MORNING_ONLY, WEDNESDAY, 30, [(_at(10), _at(10, 30))], LONG_AGO)

        assert _at(10) not in slots
        assert _at(9, 30) in slots

    def test_block_ending_exactly_at_close_is_allowed(self):
        slots = compute_slots(MORNING_ONLY, WEDNESDAY, 60, [], LONG_AGO)

        assert slots[-1] == _at(11)

    def test_closed_day_has_no_slots(self):
        thursday = WEDNESDAY + timedelta(days=1)

        assert compute_slots(MORNING_ONLY, thursday, 30, [], LONG_AGO) == []

    def test_block_longer_than_opening_window(self):
        assert compute_slots(MORNING_ONLY, WEDNESDAY, 181, [], LONG_AGO) == []

    def test_minimum_notice_hides_early_slots(self):
        monday = date(2025, 3, 3)
        tuesday = monday + timedelta(days=1)
        hours = {
            "monday": {"start": "09:00", "end": "17:00"},
            "tuesday": {"start": "09:00", "end": "17:00"},
        }
        now = datetime(2025, 3, 3, 10, 0)

        assert compute_slots(hours, monday, 30, [], now, min_notice_hours=24) == []
        tuesday_slots = compute_slots(hours, tuesday, 30, [], now, min_notice_hours=24)
        assert tuesday_slots[0] == _at(10, day=tuesday)
        assert all(slot >= now + timedelta(hours=24) for slot in tuesday_slots)

    def test_slots_step_from_opening_time(self):
        hours = {"wednesday": {"start": "09:10", "end": "11:00"}}

        slots = compute_slots(hours, WEDNESDAY, 30, [], LONG_AGO, granularity_minutes=20)

        open_at = _at(9, 10)
        assert slots
        for slot in slots:
            offset = (slot - open_at).total_seconds() / 60
            assert offset % 20 == 0
        assert slots == sorted(slots)

    def test_no_slot_overlaps_any_busy_span(self):
        spans = [
            BusySpan(_at(9, 20), _at(9, 50)),
            BusySpan(_at(10, 40), _at(11, 5), kind="hold"),
        ]

        slots = compute_slots(MORNING_ONLY, WEDNESDAY, 45, spans, LONG_AGO)

        for slot in slots:
            end = slot + timedelta(minutes=45)
            assert not any(span.overlaps(slot, end) for span in spans)
            assert end <= _at(12)

    def test_chemical_gap_counts_against_closing_time(self):
        colour = type(
            "Svc",
            (),
            {"name": "Balayage", "category": "Colour", "base_duration": 60, "is_chemical": True},
        )()
        cut = type(
            "Svc",
            (),
            {"name": "Cut", "category": "Cutting", "base_duration": 30, "is_chemical": False},
        )()
        timeline = build_timeline([colour, cut])

        slots = compute_slots(
            MORNING_ONLY, WEDNESDAY, timeline.total_span_minutes, [], LONG_AGO
        )

        # 120 minute block: the last start that still finishes the cut by noon is 10:00
        assert slots[-1] == _at(10)
        assert _at(10, 15) not in slots

    def test_legacy_weekly_hours_are_accepted(self):
        legacy = {"Wednesday": {"start": "09:00", "end": "10:00"}}

        slots = compute_slots(legacy, WEDNESDAY, 30, [], LONG_AGO)

        assert slots == [_at(9), _at(9, 15), _at(9, 30)]

    @pytest.mark.parametrize("minutes", [0, -15, None])
    def test_rejects_non_positive_block(self, minutes):
        with pytest.raises(ValidationException) as exc_info:
            compute_slots(MORNING_ONLY, WEDNESDAY, minutes, [], LONG_AGO)
        assert exc_info.value.code == "INVALID_BLOCK_LENGTH"


class TestEarliestBookableDay:
    def test_rolls_over_to_next_day(self):
        assert earliest_bookable_day(datetime(2025, 3, 3, 10, 0), 24) == date(2025, 3, 4)

    def test_same_day_when_notice_fits(self):
        assert earliest_bookable_day(datetime(2025, 3, 3, 8, 0), 4) == date(2025, 3, 3)

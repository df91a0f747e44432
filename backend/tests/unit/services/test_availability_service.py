from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from salon_booking.core.exceptions import NotFoundException, ValidationException
from salon_booking.models.schedule_block import ScheduleBlock
from salon_booking.services.availability_service import AvailabilityService, SlotRequestTracker

WEDNESDAY = date(2025, 3, 5)
SUNDAY = date(2025, 3, 9)


def _at(hour, minute=0):
    return datetime(2025, 3, 5, hour, minute)


@pytest.fixture
def staff(make_staff):
    return make_staff(
        "Alex", weekly_hours={"Wednesday": {"start": "09:00", "end": "12:00"}}
    )


@pytest.fixture
def service(db):
    return AvailabilityService(db)


class TestGetAvailableSlots:
    def test_bookings_and_holds_are_busy(self, db, service, staff, make_booking, now):
        make_booking(staff, _at(10), _at(10, 30))
        db.add(ScheduleBlock(staff_id=staff.id, title="Call", start=_at(11, 30), end=_at(12)))
        db.commit()

        slots = service.get_available_slots(staff.id, WEDNESDAY, 30, now=now)

        assert slots == [
            _at(9),
            _at(9, 15),
            _at(9, 30),
            _at(10, 30),
            _at(10, 45),
            _at(11),
        ]

    def test_inactive_hold_is_ignored(self, db, service, staff, now):
        db.add(
            ScheduleBlock(
                staff_id=staff.id, title="Old", start=_at(9), end=_at(12), is_active=False
            )
        )
        db.commit()

        assert service.get_available_slots(staff.id, WEDNESDAY, 30, now=now)[0] == _at(9)

    def test_other_staff_bookings_do_not_block(
        self, service, staff, make_staff, make_booking, now
    ):
        other = make_staff("Robin")
        make_booking(other, _at(9), _at(12))

        assert len(service.get_available_slots(staff.id, WEDNESDAY, 30, now=now)) == 11

    def test_closed_day(self, service, staff, now):
        assert service.get_available_slots(staff.id, SUNDAY, 30, now=now) == []

    def test_unknown_staff(self, service, now):
        with pytest.raises(NotFoundException):
            service.get_available_slots("01HZZZZZZZZZZZZZZZZZZZZZZZ", WEDNESDAY, 30, now=now)


class TestBasketSlots:
    def test_uses_staff_override_duration(self, service, staff, make_service, make_override, now):
        cut = make_service("Cut", 30)
        make_override(staff, cut, price="45.00", duration=60)

        result = service.get_slots_for_basket(staff.id, [cut.id], WEDNESDAY, now=now)

        assert result.total_block_minutes == 60
        assert result.timeline.sum_price == Decimal("45.00")
        assert result.slots[-1] == _at(11)
        assert result.stale is False

    def test_chemical_gap_extends_block(self, service, staff, make_service, now):
        colour = make_service("Balayage", 60, category="Colour", is_chemical=True)
        cut = make_service("Cut", 30)

        result = service.get_slots_for_basket(
            staff.id, [colour.id, cut.id], WEDNESDAY, now=now
        )

        assert result.total_block_minutes == 120
        assert result.slots[-1] == _at(10)

    def test_empty_basket(self, service, staff, now):
        with pytest.raises(ValidationException) as exc_info:
            service.get_slots_for_basket(staff.id, [], WEDNESDAY, now=now)
        assert exc_info.value.code == "NO_SERVICES"

    def test_response_overtaken_by_newer_request_is_stale(
        self, service, staff, make_service, now
    ):
        cut = make_service("Cut", 30)
        key = SlotRequestTracker.make_key(staff.id, [cut.id], 30, WEDNESDAY)
        real = service.get_available_slots

        def overtaken(*args, **kwargs):
            service.tracker.issue(key)
            return real(*args, **kwargs)

        with patch.object(service, "get_available_slots", side_effect=overtaken):
            result = service.get_slots_for_basket(staff.id, [cut.id], WEDNESDAY, now=now)

        assert result.stale is True


class TestSlotRequestTracker:
    def test_newer_token_supersedes_older(self):
        tracker = SlotRequestTracker()
        key = tracker.make_key("STAFF", ["cut"], 30, WEDNESDAY)

        first = tracker.issue(key)
        second = tracker.issue(key)

        assert not tracker.is_current(first)
        assert tracker.is_current(second)

    def test_keys_are_independent(self):
        tracker = SlotRequestTracker()
        a = tracker.issue(tracker.make_key("STAFF", ["cut"], 30, WEDNESDAY))
        b = tracker.issue(tracker.make_key("STAFF", ["cut"], 30, WEDNESDAY + timedelta(days=1)))

        assert tracker.is_current(a) and tracker.is_current(b)

    def test_cancel_invalidates_outstanding_token(self):
        tracker = SlotRequestTracker()
        key = tracker.make_key("STAFF", ["cut"], 30, WEDNESDAY)
        token = tracker.issue(key)

        tracker.cancel(key)

        assert not tracker.is_current(token)

    def test_complete_forgets_key(self):
        tracker = SlotRequestTracker()
        token = tracker.issue(tracker.make_key("STAFF", ["cut"], 30, WEDNESDAY))

        assert tracker.complete(token) is True
        assert tracker.pending() == 0

    def test_completing_superseded_token_keeps_newer_request(self):
        tracker = SlotRequestTracker()
        key = tracker.make_key("STAFF", ["cut"], 30, WEDNESDAY)
        first = tracker.issue(key)
        second = tracker.issue(key)

        assert tracker.complete(first) is False
        assert tracker.is_current(second)
        assert tracker.pending() == 1


class TestTrackerStaysBounded:
    def test_answered_requests_leave_nothing_behind(self, service, staff, make_service, now):
        cut = make_service("Cut", 30)

        for offset in range(10):
            service.get_slots_for_basket(
                staff.id, [cut.id], WEDNESDAY + timedelta(days=offset), now=now
            )

        assert service.tracker.pending() == 0

    def test_failed_request_is_also_released(self, service, staff, make_service, now):
        cut = make_service("Cut", 30)

        with patch.object(service, "get_available_slots", side_effect=NotFoundException("gone")):
            with pytest.raises(NotFoundException):
                service.get_slots_for_basket(staff.id, [cut.id], WEDNESDAY, now=now)

        assert service.tracker.pending() == 0

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from salon_booking.domain.recurrence import (
    BlueprintItem,
    RecurrenceBlueprint,
    RecurrencePattern,
    add_months_preserve_day,
    add_years_preserve_day,
    occurrence_date,
)


def _blueprint(base_start):
    return RecurrenceBlueprint(
        base_start=base_start,
        resource_id="STAFF",
        items=(BlueprintItem(offset_min=0, duration=60, title="Colour"),),
    )


class TestMonthClamping:
    def test_jan_31_monthly_non_leap_year(self):
        bp = _blueprint(datetime(2025, 1, 31, 14, 30))

        assert bp.anchor_for(0, RecurrencePattern.MONTHLY) == datetime(2025, 2, 28, 14, 30)
        assert bp.anchor_for(1, RecurrencePattern.MONTHLY) == datetime(2025, 3, 31, 14, 30)

    def test_jan_31_monthly_leap_year(self):
        bp = _blueprint(datetime(2024, 1, 31, 9, 0))

        assert bp.anchor_for(0, RecurrencePattern.MONTHLY) == datetime(2024, 2, 29, 9, 0)
        assert bp.anchor_for(1, RecurrencePattern.MONTHLY) == datetime(2024, 3, 31, 9, 0)

    def test_month_arithmetic_crosses_year_end(self):
        assert add_months_preserve_day(date(2025, 11, 30), 3) == date(2026, 2, 28)

    def test_nth_day_override_is_clamped(self):
        assert add_months_preserve_day(date(2025, 1, 10), 1, day_override=31) == date(2025, 2, 28)
        assert add_months_preserve_day(date(2025, 1, 10), 2, day_override=31) == date(2025, 3, 31)

    def test_yearly_from_leap_day(self):
        assert add_years_preserve_day(date(2024, 2, 29), 1) == date(2025, 2, 28)
        assert add_years_preserve_day(date(2024, 2, 29), 4) == date(2028, 2, 29)


class TestPatterns:
    @pytest.mark.parametrize(
        "pattern, n, expected",
        [
            (RecurrencePattern.WEEKLY, 1, date(2025, 3, 12)),
            (RecurrencePattern.WEEKLY, 3, date(2025, 3, 26)),
            (RecurrencePattern.FORTNIGHTLY, 2, date(2025, 4, 2)),
            (RecurrencePattern.MONTHLY, 1, date(2025, 4, 5)),
            (RecurrencePattern.YEARLY, 1, date(2026, 3, 5)),
        ],
    )
    def test_occurrence_dates(self, pattern, n, expected):
        assert occurrence_date(date(2025, 3, 5), pattern, n) == expected

    def test_nth_day_requires_day(self):
        with pytest.raises(ValueError):
            occurrence_date(date(2025, 3, 5), RecurrencePattern.MONTHLY_NTH_DAY, 1)

    def test_labels(self):
        assert RecurrencePattern.FORTNIGHTLY.label() == "Fortnightly"
        assert RecurrencePattern.MONTHLY_NTH_DAY.label(15) == "Monthly (day 15)"


class TestBlueprint:
    def test_from_segments_keeps_offsets_and_gaps(self):
        rows = [
            SimpleNamespace(
                start=datetime(2025, 3, 5, 11, 30),
                end=datetime(2025, 3, 5, 12, 0),
                title="Cut",
                category="Cutting",
                price=Decimal("30"),
                service_id="cut",
                resource_id="STAFF",
                client_id="CLIENT",
                client_name="Jo Bloggs",
                booking_id="GROUP",
                repeat_series_id=None,
            ),
            SimpleNamespace(
                start=datetime(2025, 3, 5, 10, 0),
                end=datetime(2025, 3, 5, 11, 0),
                title="Balayage",
                category="Colour",
                price=None,
                service_id="balayage",
                resource_id="STAFF",
                client_id="CLIENT",
                client_name="Jo Bloggs",
                booking_id="GROUP",
                repeat_series_id=None,
            ),
        ]

        bp = RecurrenceBlueprint.from_segments(rows)
        planned = bp.materialize(datetime(2025, 3, 12, 10, 0))

        assert bp.group_id == "GROUP"
        assert [(i.offset_min, i.duration) for i in bp.items] == [(0, 60), (90, 30)]
        assert [(s, e) for s, e, _ in planned] == [
            (datetime(2025, 3, 12, 10, 0), datetime(2025, 3, 12, 11, 0)),
            (datetime(2025, 3, 12, 11, 30), datetime(2025, 3, 12, 12, 0)),
        ]

    def test_from_segments_rejects_empty_group(self):
        with pytest.raises(ValueError):
            RecurrenceBlueprint.from_segments([])

from decimal import Decimal

import pytest

from salon_booking.core.exceptions import NotFoundException, ValidationException
from salon_booking.services.catalog_service import CatalogService


@pytest.fixture
def catalog(db):
    return CatalogService(db)


class TestEffectiveTerms:
    def test_base_values_without_override(self, catalog, make_staff, make_service):
        staff = make_staff()
        cut = make_service("Cut", 30, price="35.00")

        terms = catalog.effective_terms(cut, staff.id)

        assert terms.duration == 30
        assert terms.price == Decimal("35.00")

    def test_override_wins(self, catalog, make_staff, make_service, make_override):
        staff = make_staff()
        cut = make_service("Cut", 30, price="35.00")
        make_override(staff, cut, price="50.00", duration=45)

        terms = catalog.effective_terms(cut, staff.id)

        assert terms.duration == 45
        assert terms.price == Decimal("50.00")

    def test_override_with_null_price_means_to_be_confirmed(
        self, catalog, make_staff, make_service, make_override
    ):
        staff = make_staff()
        colour = make_service("Full Head Colour", 90, price="95.00", category="Colour")
        make_override(staff, colour, price=None, duration=None)

        timeline = catalog.build_basket_timeline([colour.id], staff.id)

        assert timeline.has_unknown_price is True
        assert timeline.segments[0].duration == 90

    def test_no_staff_means_unknown_prices(self, catalog, make_service):
        cut = make_service("Cut", 30, price="35.00")

        timeline = catalog.build_basket_timeline([cut.id])

        assert timeline.has_unknown_price is True
        assert timeline.total_span_minutes == 30


class TestBasket:
    def test_keeps_selection_order_and_duplicates(self, catalog, make_staff, make_service):
        staff = make_staff()
        cut = make_service("Cut", 30)
        wash = make_service("Wash", 15)

        timeline = catalog.build_basket_timeline([wash.id, cut.id, wash.id], staff.id)

        assert [s.service.name for s in timeline.segments] == ["Wash", "Cut", "Wash"]
        assert [s.offset_min for s in timeline.segments] == [0, 15, 45]

    def test_unknown_service(self, catalog, make_staff):
        with pytest.raises(NotFoundException) as exc_info:
            catalog.build_basket_timeline(["01HZZZZZZZZZZZZZZZZZZZZZZZ"], make_staff().id)
        assert exc_info.value.code == "SERVICE_NOT_FOUND"

    def test_empty_basket(self, catalog):
        with pytest.raises(ValidationException) as exc_info:
            catalog.build_basket_timeline([])
        assert exc_info.value.code == "NO_SERVICES"

from datetime import datetime

SLOTS = "/api/v1/availability/staff/{staff_id}/slots"


class TestSlots:
    def test_slots_for_basket(self, client, make_staff, make_service, make_booking):
        staff = make_staff("Alex", weekly_hours={"monday": {"start": "09:00", "end": "11:00"}})
        cut = make_service("Cut", 30, price="35.00")
        make_booking(staff, datetime(2031, 1, 6, 9, 30), datetime(2031, 1, 6, 10, 0))

        response = client.get(
            SLOTS.format(staff_id=staff.id),
            params={"date": "2031-01-06", "service_ids": [cut.id]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["block_minutes"] == 30
        assert body["slots"] == [
            "2031-01-06T09:00:00",
            "2031-01-06T10:00:00",
            "2031-01-06T10:15:00",
            "2031-01-06T10:30:00",
        ]
        assert body["timeline"]["sum_price"] == 35.0
        assert body["stale"] is False

    def test_unknown_service(self, client, make_staff):
        staff = make_staff()

        response = client.get(
            SLOTS.format(staff_id=staff.id),
            params={"date": "2031-01-06", "service_ids": ["01HZZZZZZZZZZZZZZZZZZZZZZZ"]},
        )

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "SERVICE_NOT_FOUND"

    def test_date_is_required(self, client, make_staff, make_service):
        staff = make_staff()
        cut = make_service("Cut", 30)

        response = client.get(SLOTS.format(staff_id=staff.id), params={"service_ids": [cut.id]})

        assert response.status_code == 422


class TestEarliestDay:
    def test_earliest_day(self, client):
        body = client.get("/api/v1/availability/earliest-day").json()

        assert body["min_notice_hours"] == 24
        assert "target_date" in body


class TestOperationalEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics(self, client, make_staff, make_service):
        staff = make_staff()
        cut = make_service("Cut", 30)
        client.get(
            SLOTS.format(staff_id=staff.id),
            params={"date": "2031-01-06", "service_ids": [cut.id]},
        )

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "salon_service_operation_duration_seconds" in response.text

"""HTTP surface: status codes, problem+json envelopes and response shapes."""

from datetime import timedelta

from courtbook.core.ulid_helper import generate_ulid

from tests.helpers.booking import slot


def _headers(user_id):
    return {"X-User-ID": user_id}


def _payload(court_id, start, end, **extra):
    return {
        "court_id": court_id,
        "start_time": start.isoformat(),
        "end_time": end.isoformat(),
        **extra,
    }


class TestCreateBooking:
    def test_created(self, client, court, user_id):
        response = client.post(
            "/api/v1/bookings", json=_payload(court.id, *slot(10)), headers=_headers(user_id)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Booking created successfully"
        assert body["booking"]["status"] == "pending"
        assert body["booking"]["total_price"] == 100000.0
        assert body["booking"]["user_id"] == user_id
        assert body["discount_amount"] == 0.0
        assert body["applied_promotion"] is None

    def test_with_promotion(self, client, court, user_id, make_promotion):
        make_promotion("SAVE10", "10")

        response = client.post(
            "/api/v1/bookings",
            json=_payload(court.id, *slot(10), promotion_code="save10"),
            headers=_headers(user_id),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["booking"]["total_price"] == 90000.0
        assert body["discount_amount"] == 10000.0
        assert body["applied_promotion"] == {"code": "SAVE10", "discount_percent": 10.0}

    def test_reused_promotion(self, client, court, user_id, make_promotion):
        make_promotion("SAVE10", "10")
        client.post(
            "/api/v1/bookings",
            json=_payload(court.id, *slot(10), promotion_code="SAVE10"),
            headers=_headers(user_id),
        )

        response = client.post(
            "/api/v1/bookings",
            json=_payload(court.id, *slot(12), promotion_code="SAVE10"),
            headers=_headers(user_id),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "PROMOTION_INVALID"
        assert body["errors"]["reason"] == "already_used"
        assert body["detail"] == "You have already used this promotion"

    def test_missing_caller(self, client, court):
        response = client.post("/api/v1/bookings", json=_payload(court.id, *slot(10)))
        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_USER_ID"

    def test_malformed_caller(self, client, court):
        response = client.post(
            "/api/v1/bookings", json=_payload(court.id, *slot(10)), headers=_headers("not-a-ulid")
        )
        assert response.status_code == 401

    def test_inverted_window_is_400(self, client, court, user_id):
        start, end = slot(10)
        response = client.post(
            "/api/v1/bookings", json=_payload(court.id, end, start), headers=_headers(user_id)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["status"] == 400

    def test_unknown_field_is_400(self, client, court, user_id):
        response = client.post(
            "/api/v1/bookings",
            json=_payload(court.id, *slot(10), discount=99),
            headers=_headers(user_id),
        )
        assert response.status_code == 400
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["errors"][0]["field"] == "discount"

    def test_unknown_court_is_404(self, client, user_id):
        response = client.post(
            "/api/v1/bookings", json=_payload(generate_ulid(), *slot(10)), headers=_headers(user_id)
        )
        assert response.status_code == 404
        assert response.json()["code"] == "COURT_NOT_FOUND"

    def test_closed_court_is_400(self, client, closed_court, user_id):
        response = client.post(
            "/api/v1/bookings", json=_payload(closed_court.id, *slot(10)), headers=_headers(user_id)
        )
        assert response.status_code == 400
        assert response.json()["code"] == "COURT_UNAVAILABLE"

    def test_overlap_is_409(self, client, court, user_id, other_user_id):
        client.post("/api/v1/bookings", json=_payload(court.id, *slot(10)), headers=_headers(user_id))

        start = slot(10)[0] + timedelta(minutes=30)
        response = client.post(
            "/api/v1/bookings",
            json=_payload(court.id, start, start + timedelta(hours=1)),
            headers=_headers(other_user_id),
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "SLOT_TAKEN"
        assert body["title"] == "Conflict"
        assert body["instance"] == "/api/v1/bookings"

    def test_held_slot_is_409(self, client, lock_manager, court, user_id, other_user_id):
        start, end = slot(10)
        lock_manager.acquire(court.id, start, end, other_user_id)

        response = client.post(
            "/api/v1/bookings", json=_payload(court.id, start, end), headers=_headers(user_id)
        )

        assert response.status_code == 409
        assert response.json()["code"] == "SLOT_HELD"
        assert response.headers["retry-after"] == "30"


class TestBookingLifecycle:
    def _book(self, client, court, user_id, hour=12):
        response = client.post(
            "/api/v1/bookings", json=_payload(court.id, *slot(hour)), headers=_headers(user_id)
        )
        assert response.status_code == 201
        return response.json()["booking"]["id"]

    def test_get_and_list(self, client, court, user_id, other_user_id):
        booking_id = self._book(client, court, user_id)

        assert client.get(f"/api/v1/bookings/{booking_id}", headers=_headers(user_id)).status_code == 200
        assert (
            client.get(f"/api/v1/bookings/{booking_id}", headers=_headers(other_user_id)).status_code
            == 403
        )
        listed = client.get("/api/v1/bookings", headers=_headers(user_id)).json()
        assert [b["id"] for b in listed] == [booking_id]

    def test_invalid_booking_id(self, client, user_id):
        response = client.get("/api/v1/bookings/not-a-ulid", headers=_headers(user_id))
        assert response.status_code == 400

    def test_cancel(self, client, court, user_id):
        booking_id = self._book(client, court, user_id)

        response = client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=_headers(user_id))

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_owner_completes_and_rewards_show_up(self, client, court, user_id, owner_id):
        booking_id = self._book(client, court, user_id)

        response = client.patch(
            f"/api/v1/bookings/{booking_id}/status",
            json={"status": "completed"},
            headers=_headers(owner_id),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        summary = client.get("/api/v1/rewards/summary", headers=_headers(user_id)).json()
        assert summary["balance"] == 1100
        assert summary["total_earned"] == 1100
        assert summary["total_redeemed"] == 0
        assert {item["action_type"] for item in summary["history"]} == {
            "first_booking",
            "booking_completed",
        }

    def test_completed_booking_is_final(self, client, court, user_id, owner_id):
        booking_id = self._book(client, court, user_id)
        client.patch(
            f"/api/v1/bookings/{booking_id}/status",
            json={"status": "completed"},
            headers=_headers(owner_id),
        )

        response = client.patch(
            f"/api/v1/bookings/{booking_id}/status",
            json={"status": "pending"},
            headers=_headers(owner_id),
        )

        assert response.status_code == 422
        assert response.json()["code"] == "BOOKING_STATUS_FINAL"


class TestPromotionsAndRewards:
    def test_verify_valid(self, client, make_promotion, user_id):
        make_promotion("SAVE10", "10", description="Ten off")

        response = client.post(
            "/api/v1/promotions/verify", json={"code": "save10"}, headers=_headers(user_id)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["promotion"]["code"] == "SAVE10"
        assert body["promotion"]["discount_percent"] == 10.0

    def test_verify_unknown(self, client, user_id):
        response = client.post(
            "/api/v1/promotions/verify", json={"code": "NOPE"}, headers=_headers(user_id)
        )
        body = response.json()
        assert body == {
            "valid": False,
            "reason": "not_found",
            "message": "Invalid promotion code",
            "promotion": None,
        }

    def test_rewards_summary_for_new_user(self, client, user_id):
        response = client.get("/api/v1/rewards/summary", headers=_headers(user_id))
        assert response.status_code == 200
        assert response.json()["balance"] == 0


class TestOperationalEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics(self, client, court, user_id):
        client.post("/api/v1/bookings", json=_payload(court.id, *slot(10)), headers=_headers(user_id))

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "courtbook_booking_attempts_total" in response.text
        assert "courtbook_timeslot_lock_total" in response.text

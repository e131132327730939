"""
HTTP tests for the delivery schedule, admin subscription and subscriber routers.
"""

import inspect
from datetime import date

import pytest

from app.domain.subscriptions.admin_router import pause_subscriptions, reactivate_subscriptions, run_maintenance
from app.models import STATUS_ADMIN_PAUSED

ACTOR = {"X-Actor-Id": "ops-1"}


# =============================================================
# TEST: Delivery schedule administration
# =============================================================

class TestScheduleSettingsApi:
    """Policy listing, updates and audit."""

    def test_list_settings(self, client):
        response = client.get("/admin/delivery-schedule/settings")

        assert response.status_code == 200
        by_category = {p["category"]: p for p in response.json()}
        assert by_category["juices"]["schedule"] == "Every 2 days"
        assert by_category["fruit_bowls"]["schedule"] == "Daily delivery"

    def test_update_with_header_actor(self, client):
        response = client.put(
            "/admin/delivery-schedule/settings",
            json={"category": "juices", "gap_days": 3, "reason": "Supplier change"},
            headers=ACTOR,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["policy"]["gap_days"] == 3
        assert body["policy"]["updated_by"] == "ops-1"
        assert body["old_settings"]["gap_days"] == 2
        assert body["cache_invalidated"] is True

        audit = client.get("/admin/delivery-schedule/audit", params={"category": "juices"}).json()
        assert len(audit) == 1
        assert audit[0]["changed_by"] == "ops-1"

    def test_update_requires_actor(self, client):
        response = client.put("/admin/delivery-schedule/settings", json={"category": "juices", "gap_days": 3})
        assert response.status_code == 400
        assert response.json() == {"detail": "actor_id is required"}

    def test_update_rejects_zero_gap(self, client):
        response = client.put(
            "/admin/delivery-schedule/settings", json={"category": "juices", "gap_days": 0}, headers=ACTOR
        )
        assert response.status_code == 400

    def test_preview(self, client):
        response = client.post(
            "/admin/delivery-schedule/preview",
            json={"category": "juices", "start_date": "2026-03-02", "preview_window": 4},
        )
        assert response.status_code == 200
        assert response.json()["dates"] == ["2026-03-02", "2026-03-04", "2026-03-06", "2026-03-09"]

    def test_preview_rejects_out_of_range_gap(self, client):
        response = client.post(
            "/admin/delivery-schedule/preview",
            json={"category": "juices", "start_date": "2026-03-02", "gap_days": 45},
        )
        assert response.status_code == 400

    def test_generate(self, client):
        response = client.post(
            "/admin/delivery-schedule/generate",
            json={"category": "juices", "start_date": "2026-03-02", "duration_months": 1},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["end_date"] == "2026-04-02"
        assert body["total_deliveries"] == 14

    def test_generate_unknown_category(self, client):
        response = client.post(
            "/admin/delivery-schedule/generate",
            json={"category": "smoothies", "start_date": "2026-03-02", "duration_months": 1},
        )
        assert response.status_code == 400


# =============================================================
# TEST: Admin bulk operations
# =============================================================

class TestAdminSubscriptionsApi:
    """Bulk pause, reactivation and read endpoints."""

    @pytest.mark.parametrize("endpoint", [pause_subscriptions, reactivate_subscriptions, run_maintenance])
    def test_bulk_handlers_run_off_the_event_loop(self, endpoint):
        assert not inspect.iscoroutinefunction(endpoint)

    def test_pause_then_reactivate(self, client, make_subscription):
        make_subscription("u1")
        make_subscription("u2")

        paused = client.post(
            "/admin/subscriptions/pause",
            json={"pause_type": "all", "start_date": "2026-03-02", "reason": "Warehouse maintenance"},
            headers=ACTOR,
        )
        assert paused.status_code == 200
        body = paused.json()
        assert body["success"] is True
        assert body["processed_count"] == 2
        assert body["affected_subscription_count"] == 2

        overview = client.get("/admin/subscriptions/overview").json()
        assert overview["status_counts"] == {STATUS_ADMIN_PAUSED: 2}
        assert overview["pause_records"][0]["id"] == body["pause_record_id"]

        reactivated = client.post(
            "/admin/subscriptions/reactivate",
            json={"pause_record_id": body["pause_record_id"], "actor_id": "ops-2"},
        )
        assert reactivated.status_code == 200
        assert reactivated.json() == {
            "success": True,
            "reactivated_count": 2,
            "pause_record_status": "completed",
            "errors": [],
        }

    def test_pause_validation_error(self, client):
        response = client.post(
            "/admin/subscriptions/pause",
            json={"pause_type": "selected", "start_date": "2026-03-02", "reason": "Check"},
            headers=ACTOR,
        )
        assert response.status_code == 400
        assert "target_user_ids" in response.json()["detail"]

    def test_reactivate_unknown_record(self, client):
        response = client.post(
            "/admin/subscriptions/reactivate", json={"pause_record_id": "missing"}, headers=ACTOR
        )
        assert response.status_code == 404

    def test_list_pause_records_by_status(self, client):
        client.post(
            "/admin/subscriptions/pause",
            json={"pause_type": "all", "start_date": "2026-03-03", "reason": "Holiday"},
            headers=ACTOR,
        )
        assert len(client.get("/admin/subscriptions/pauses", params={"status": "active"}).json()) == 1
        assert client.get("/admin/subscriptions/pauses", params={"status": "completed"}).json() == []

    def test_maintenance_run(self, client):
        response = client.post("/admin/subscriptions/maintenance/run")
        assert response.status_code == 200
        assert set(response.json()) == {"message", "expiry", "reconciliation"}


# =============================================================
# TEST: Subscriber endpoints
# =============================================================

class TestSubscriberApi:
    """Self-service pause/reactivate, schedule and admin pause status."""

    def test_pause_and_reactivate(self, client, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 4))

        paused = client.post(f"/subscriptions/{sub.id}/pause", json={"reason": "Travelling"})
        assert paused.status_code == 200
        assert paused.json()["status"] == "paused"

        reactivated = client.post(f"/subscriptions/{sub.id}/reactivate")
        assert reactivated.status_code == 200
        body = reactivated.json()
        assert body["subscription"]["status"] == "active"
        assert body["subscription"]["next_delivery_date"] == "2026-03-03"
        assert body["pause_duration_days"] == 0

    def test_pause_on_delivery_day(self, client, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 2))
        response = client.post(f"/subscriptions/{sub.id}/pause")
        assert response.status_code == 400
        assert response.json() == {"detail": "Cannot pause subscription on the day of delivery"}

    def test_pause_unknown_subscription(self, client):
        assert client.post("/subscriptions/999/pause").status_code == 404

    def test_schedule(self, client, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 4))
        response = client.get(f"/subscriptions/{sub.id}/schedule", params={"count": 3})
        assert response.status_code == 200
        body = response.json()
        assert body["schedule"] == "Every 2 days"
        assert body["upcoming_dates"] == ["2026-03-04", "2026-03-06", "2026-03-09"]

    def test_admin_pause_status(self, client):
        assert client.get("/subscriptions/admin-pause-status").json()["is_admin_paused"] is False

        client.post(
            "/admin/subscriptions/pause",
            json={"pause_type": "all", "start_date": "2026-03-02", "end_date": "2026-03-10", "reason": "Flood"},
            headers=ACTOR,
        )

        body = client.get("/subscriptions/admin-pause-status", params={"user_id": "u1"}).json()
        assert body["is_admin_paused"] is True
        assert body["end_date"] == "2026-03-10"


class TestHealthApi:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

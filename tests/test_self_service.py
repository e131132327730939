"""
Tests for subscriber self-service pause/reactivation, upcoming schedules and
the admin pause status check.
"""

from datetime import date, datetime

import pytest

from app.domain.scheduling.eligibility import REJECT_DELIVERY_COMMITTED, REJECT_PAST_CUTOFF
from app.domain.subscriptions.pause_service import AdminPauseService
from app.domain.subscriptions.self_service import DEFAULT_PAUSE_REASON, SubscriberService
from app.models import STATUS_ACTIVE, STATUS_CANCELLED, STATUS_EXPIRED, STATUS_PAUSED, Subscription
from app.shared.errors import NotFound, ValidationError
from tests.conftest import FIXED_NOW, fixed_clock, local_time


@pytest.fixture
def make_service(db, policy_cache):
    def _make(moment=FIXED_NOW):
        return SubscriberService(db, policy_cache, clock=fixed_clock(moment))

    return _make


def reload(db, subscription):
    db.expire_all()
    return db.query(Subscription).filter(Subscription.id == subscription.id).one()


# =============================================================
# TEST: Self-service pause
# =============================================================

class TestPauseSubscription:
    """Subscriber-initiated pauses."""

    def test_pause_accepted(self, make_service, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 4))

        paused = make_service().pause_subscription(sub.id)

        assert paused.status == STATUS_PAUSED
        assert paused.pause_reason == DEFAULT_PAUSE_REASON
        # 10:00 in Kolkata is 04:30 UTC
        assert paused.pause_date == datetime(2026, 3, 2, 4, 30)
        assert paused.reactivation_deadline == datetime(2026, 6, 2, 4, 30)

    def test_pause_keeps_given_reason(self, make_service, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 4))
        assert make_service().pause_subscription(sub.id, reason=" Travelling ").pause_reason == "Travelling"

    def test_rejected_on_delivery_day(self, db, make_service, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 2))

        with pytest.raises(ValidationError) as exc:
            make_service().pause_subscription(sub.id)

        assert exc.value.code == REJECT_DELIVERY_COMMITTED
        assert reload(db, sub).status == STATUS_ACTIVE

    def test_rejected_after_cutoff(self, make_service, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 3))
        with pytest.raises(ValidationError) as exc:
            make_service(local_time(2026, 3, 2, 18, 30)).pause_subscription(sub.id)
        assert exc.value.code == REJECT_PAST_CUTOFF

    @pytest.mark.parametrize("status", [STATUS_PAUSED, STATUS_CANCELLED])
    def test_only_active_subscriptions(self, make_service, make_subscription, status):
        sub = make_subscription("u1", status=status)
        with pytest.raises(NotFound):
            make_service().pause_subscription(sub.id)


# =============================================================
# TEST: Self-service reactivation
# =============================================================

class TestReactivateSubscription:
    """Resuming a self-paused subscription."""

    def test_term_extended_by_paused_days(self, make_service, make_subscription):
        sub = make_subscription(
            "u1",
            status=STATUS_PAUSED,
            pause_date=datetime(2026, 2, 20, 4, 30),
            subscription_end_date=date(2026, 5, 2),
        )

        reactivated, paused_days = make_service().reactivate_subscription(sub.id)

        assert paused_days == 10
        assert reactivated.status == STATUS_ACTIVE
        assert reactivated.subscription_end_date == date(2026, 5, 12)
        assert reactivated.next_delivery_date == date(2026, 3, 3)
        assert reactivated.pause_date is None
        assert reactivated.reactivation_deadline is None

    def test_requested_date_is_clamped_to_earliest(self, make_service, make_subscription):
        sub = make_subscription("u1", status=STATUS_PAUSED, pause_date=datetime(2026, 2, 20, 4, 30))
        reactivated, _ = make_service().reactivate_subscription(sub.id, requested_date=date(2026, 2, 25))
        assert reactivated.next_delivery_date == date(2026, 3, 3)

    def test_requested_sunday_moves_to_monday(self, make_service, make_subscription):
        sub = make_subscription("u1", status=STATUS_PAUSED, pause_date=datetime(2026, 2, 20, 4, 30))
        reactivated, _ = make_service().reactivate_subscription(sub.id, requested_date=date(2026, 3, 8))
        assert reactivated.next_delivery_date == date(2026, 3, 9)

    def test_expired_window(self, db, make_service, make_subscription):
        sub = make_subscription("u1", status=STATUS_PAUSED, pause_date=datetime(2025, 11, 1, 4, 30))

        with pytest.raises(ValidationError) as exc:
            make_service().reactivate_subscription(sub.id)

        assert exc.value.code == "reactivation_expired"
        assert reload(db, sub).status == STATUS_EXPIRED

    def test_only_paused_subscriptions(self, make_service, make_subscription):
        sub = make_subscription("u1")
        with pytest.raises(NotFound):
            make_service().reactivate_subscription(sub.id)


# =============================================================
# TEST: Upcoming schedule
# =============================================================

class TestUpcomingSchedule:
    """Next deliveries for one subscription."""

    def test_active_subscription(self, make_service, make_subscription):
        sub = make_subscription("u1", next_delivery_date=date(2026, 3, 4))

        _, label, dates = make_service().upcoming_schedule(sub.id, count=4)

        assert label == "Every 2 days"
        assert dates == [date(2026, 3, 4), date(2026, 3, 6), date(2026, 3, 9), date(2026, 3, 11)]

    def test_stops_at_term_end(self, make_service, make_subscription):
        sub = make_subscription(
            "u1", next_delivery_date=date(2026, 3, 4), subscription_end_date=date(2026, 3, 6)
        )
        _, _, dates = make_service().upcoming_schedule(sub.id, count=5)
        assert dates == [date(2026, 3, 4), date(2026, 3, 6)]

    def test_paused_subscription_has_no_dates(self, make_service, make_subscription):
        sub = make_subscription("u1", status=STATUS_PAUSED)
        _, _, dates = make_service().upcoming_schedule(sub.id)
        assert dates == []

    def test_unknown_subscription(self, make_service):
        with pytest.raises(NotFound):
            make_service().upcoming_schedule(999)


# =============================================================
# TEST: Admin pause status
# =============================================================

class TestAdminPauseStatus:
    """Customer-facing admin pause banner."""

    @pytest.fixture
    def pauser(self, db, policy_cache, session_factory, clock):
        return AdminPauseService(db, policy_cache, session_factory=session_factory, clock=clock)

    def test_not_paused(self, make_service):
        assert make_service().admin_pause_status("u1") == {"is_admin_paused": False}

    def test_pause_all_with_end_date(self, make_service, pauser):
        pauser.pause("all", None, date(2026, 3, 2), date(2026, 3, 10), "Warehouse maintenance", "ops-1")

        status = make_service().admin_pause_status()

        assert status["is_admin_paused"]
        assert status["pause_type"] == "all"
        assert status["message"] == (
            "All subscription services are temporarily paused. Warehouse maintenance. "
            "Expected to resume on 2026-03-10."
        )

    def test_selected_pause_without_end_date(self, make_service, pauser):
        pauser.pause("selected", ["u1"], date(2026, 3, 2), None, "Address verification.", "ops-1")

        assert make_service().admin_pause_status("u2") == {"is_admin_paused": False}
        status = make_service().admin_pause_status("u1")
        assert status["message"] == (
            "Your subscription services are temporarily paused. Address verification. "
            "Please check back later for updates."
        )

    def test_future_pause_is_not_live(self, make_service, pauser):
        pauser.pause("all", None, date(2026, 3, 5), None, "Holiday", "ops-1")
        assert not make_service().admin_pause_status()["is_admin_paused"]
        assert make_service(local_time(2026, 3, 5)).admin_pause_status()["is_admin_paused"]

"""
Tests for pause eligibility and subscription status transitions.
"""

from datetime import date, datetime

from dateutil import tz

from app.domain.scheduling.eligibility import (
    REJECT_DELIVERY_COMMITTED,
    REJECT_PAST_CUTOFF,
    can_reactivate,
    can_transition,
    evaluate_pause_request,
)
from tests.conftest import local_time


# =============================================================
# TEST: Pause requests
# =============================================================

class TestEvaluatePauseRequest:
    """Delivery-day and evening cutoff rules."""

    def test_delivery_today_is_committed(self):
        result = evaluate_pause_request(date(2026, 3, 2), local_time(2026, 3, 2, 6))
        assert not result.accepted
        assert result.code == REJECT_DELIVERY_COMMITTED
        assert result.reason == "Cannot pause subscription on the day of delivery"

    def test_overdue_delivery_is_committed(self):
        result = evaluate_pause_request(date(2026, 3, 1), local_time(2026, 3, 2))
        assert result.code == REJECT_DELIVERY_COMMITTED

    def test_tomorrow_before_cutoff_is_accepted(self):
        result = evaluate_pause_request(date(2026, 3, 3), local_time(2026, 3, 2, 17, 59))
        assert result.accepted

    def test_tomorrow_at_cutoff_is_rejected(self):
        result = evaluate_pause_request(date(2026, 3, 3), local_time(2026, 3, 2, 18, 0))
        assert not result.accepted
        assert result.code == REJECT_PAST_CUTOFF
        assert result.reason == "Cannot pause after 6 PM when delivery is scheduled for tomorrow"

    def test_later_delivery_after_cutoff_is_accepted(self):
        result = evaluate_pause_request(date(2026, 3, 4), local_time(2026, 3, 2, 23))
        assert result.accepted

    def test_no_scheduled_delivery_is_accepted(self):
        assert evaluate_pause_request(None, local_time(2026, 3, 2)).accepted

    def test_deadline_is_three_months_out(self):
        now = local_time(2026, 3, 2, 10)
        result = evaluate_pause_request(date(2026, 3, 5), now)
        assert result.reactivation_deadline == local_time(2026, 6, 2, 10)

    def test_utc_clock_is_judged_in_operating_time(self):
        # 13:00 UTC is 18:30 in Kolkata
        now = datetime(2026, 3, 2, 13, 0, tzinfo=tz.UTC)
        assert evaluate_pause_request(date(2026, 3, 3), now).code == REJECT_PAST_CUTOFF

    def test_custom_cutoff_label(self):
        result = evaluate_pause_request(date(2026, 3, 3), local_time(2026, 3, 2, 12), cutoff_hour=12)
        assert result.reason == "Cannot pause after 12 PM when delivery is scheduled for tomorrow"


# =============================================================
# TEST: Status transitions
# =============================================================

class TestTransitions:
    """Allowed status moves."""

    def test_active_can_be_paused_either_way(self):
        assert can_transition("active", "paused")
        assert can_transition("active", "admin_paused")
        assert can_transition("active", "cancelled")

    def test_paused_rows_only_return_to_active(self):
        assert can_transition("paused", "active")
        assert not can_transition("paused", "admin_paused")
        assert can_transition("admin_paused", "active")
        assert not can_transition("admin_paused", "paused")

    def test_terminal_statuses(self):
        assert not can_transition("cancelled", "active")
        assert not can_transition("expired", "active")


class TestCanReactivate:
    """Reactivation window for self-paused subscriptions."""

    def test_inside_window(self):
        allowed, days_left = can_reactivate(datetime(2026, 1, 1), datetime(2026, 3, 1))
        assert allowed
        assert days_left == 31

    def test_window_closed(self):
        allowed, days_left = can_reactivate(datetime(2025, 12, 1), datetime(2026, 3, 2))
        assert not allowed
        assert days_left == 0

    def test_no_pause_date(self):
        assert can_reactivate(None, datetime(2026, 3, 2)) == (True, 0)

"""Subscriber service - Self-service pause/reactivation and admin pause status"""

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...cache import PolicyCache
from ...config import PAUSE_CUTOFF_HOUR
from ...models import (
    PAUSE_TYPE_ALL,
    PAUSE_TYPE_SELECTED,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_PAUSED,
    Subscription,
)
from ...shared.clock import local_date, now_local, to_naive_utc
from ...shared.errors import NotFound, ValidationError
from ..scheduling.calendar import (
    earliest_deliverable_date,
    next_delivery_date,
    preview_delivery_dates,
    resolve_policy,
    skip_excluded_weekday,
)
from ..scheduling.eligibility import can_reactivate, evaluate_pause_request
from .repository import PauseRecordRepository, SubscriptionRepository

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_REASON = "User requested pause"


class SubscriberService:
    """Service layer for subscriber-initiated schedule changes"""

    def __init__(self, db: Session, cache: PolicyCache, clock: Callable = now_local):
        self.db = db
        self.cache = cache
        self.clock = clock
        self.repo = SubscriptionRepository()

    def pause_subscription(self, subscription_id: int, reason: Optional[str] = None) -> Subscription:
        """Pause an active subscription if the cutoff rules allow it"""
        subscription = self.repo.get_with_status(self.db, subscription_id, STATUS_ACTIVE)
        if not subscription:
            raise NotFound("Subscription not found or not active")

        now = self.clock()
        eligibility = evaluate_pause_request(subscription.next_delivery_date, now, PAUSE_CUTOFF_HOUR)
        if not eligibility.accepted:
            logger.info(f"⚠️ Pause rejected for subscription {subscription_id}: {eligibility.code}")
            raise ValidationError(eligibility.reason, code=eligibility.code)

        subscription.status = STATUS_PAUSED
        subscription.pause_date = to_naive_utc(now)
        subscription.pause_reason = (reason or "").strip() or DEFAULT_PAUSE_REASON
        subscription.reactivation_deadline = to_naive_utc(eligibility.reactivation_deadline)
        self.db.commit()
        self.db.refresh(subscription)

        logger.info(f"⏸️ Subscription {subscription_id} paused until {subscription.reactivation_deadline}")
        return subscription

    def reactivate_subscription(
        self, subscription_id: int, requested_date: Optional[date] = None
    ) -> tuple[Subscription, int]:
        """
        Resume a self-paused subscription.
        The term is extended by the whole days spent paused. Past the reactivation
        window the subscription is expired instead.
        Returns (subscription, paused_days).
        """
        subscription = self.repo.get_with_status(self.db, subscription_id, STATUS_PAUSED)
        if not subscription:
            raise NotFound("Subscription not found or not paused")

        now = self.clock()
        now_utc = to_naive_utc(now)
        allowed, _days_left = can_reactivate(subscription.pause_date, now_utc)
        if not allowed:
            subscription.status = STATUS_EXPIRED
            self.db.commit()
            logger.info(f"⌛ Subscription {subscription_id} expired: reactivation window closed")
            raise ValidationError(
                "Reactivation period has expired. Please create a new subscription.",
                code="reactivation_expired",
            )

        earliest = earliest_deliverable_date(now, PAUSE_CUTOFF_HOUR)
        if requested_date is not None:
            next_date = skip_excluded_weekday(max(requested_date, earliest))
        else:
            policy = resolve_policy(subscription.category, self.cache)
            next_date = next_delivery_date(now, policy, cutoff_hour=PAUSE_CUTOFF_HOUR)

        paused_days = 0
        if subscription.pause_date is not None:
            paused_days = max((now_utc - subscription.pause_date).days, 0)
        if subscription.subscription_end_date is not None and paused_days:
            subscription.subscription_end_date = subscription.subscription_end_date + timedelta(days=paused_days)

        subscription.status = STATUS_ACTIVE
        subscription.next_delivery_date = next_date
        subscription.pause_date = None
        subscription.pause_reason = None
        subscription.reactivation_deadline = None
        self.db.commit()
        self.db.refresh(subscription)

        logger.info(
            f"▶️ Subscription {subscription_id} reactivated: next delivery {next_date}, "
            f"term extended by {paused_days} days"
        )
        return subscription, paused_days

    def upcoming_schedule(self, subscription_id: int, count: int = 7) -> tuple[Subscription, str, list[date]]:
        """Next delivery and the following cadence dates for one subscription"""
        subscription = self.repo.get(self.db, subscription_id)
        if not subscription:
            raise NotFound("Subscription not found")

        policy = resolve_policy(subscription.category, self.cache)
        if subscription.status != STATUS_ACTIVE:
            return subscription, policy.schedule_label, []

        start = subscription.next_delivery_date or next_delivery_date(
            self.clock(), policy, cutoff_hour=PAUSE_CUTOFF_HOUR
        )
        dates = preview_delivery_dates(start, policy, count)
        if subscription.subscription_end_date is not None:
            dates = [d for d in dates if d <= subscription.subscription_end_date]
        return subscription, policy.schedule_label, dates

    def admin_pause_status(self, user_id: Optional[str] = None) -> dict:
        """Whether a customer (or everyone) is currently under an admin pause"""
        today = local_date(self.clock())
        records = PauseRecordRepository.live_on(self.db, today)

        match = next((r for r in records if r.pause_type == PAUSE_TYPE_ALL), None)
        if match is None and user_id:
            match = next(
                (
                    r
                    for r in records
                    if r.pause_type == PAUSE_TYPE_SELECTED and user_id in (r.affected_user_ids or [])
                ),
                None,
            )

        if match is None:
            return {"is_admin_paused": False}

        if match.pause_type == PAUSE_TYPE_ALL:
            type_message = "All subscription services are temporarily paused."
        else:
            type_message = "Your subscription services are temporarily paused."
        if match.end_date:
            end_message = f" Expected to resume on {match.end_date.isoformat()}."
        else:
            end_message = " Please check back later for updates."

        return {
            "is_admin_paused": True,
            "pause_type": match.pause_type,
            "reason": match.reason,
            "start_date": match.start_date,
            "end_date": match.end_date,
            "message": f"{type_message} {match.reason.rstrip('.')}.{end_message}",
        }

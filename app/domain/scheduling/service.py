"""Schedule policy service - Business logic for cadence policies and delivery previews"""

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...cache import PolicyCache
from ...models import CATEGORIES
from ...services.admin_action_log import ACTION_POLICY_UPDATED, record_admin_action
from ...shared.clock import now_local
from ...shared.errors import ValidationError
from .calendar import (
    MAX_GAP_DAYS,
    MIN_GAP_DAYS,
    DeliverySchedule,
    PolicySnapshot,
    generate_delivery_dates,
    preview_delivery_dates,
    resolve_policy,
)
from .repository import SchedulePolicyRepository, to_snapshot

logger = logging.getLogger(__name__)


class SchedulePolicyService:
    """Service layer for delivery schedule administration"""

    def __init__(self, db: Session, cache: PolicyCache, clock: Callable = now_local):
        self.db = db
        self.cache = cache
        self.clock = clock
        self.repo = SchedulePolicyRepository()

    def list_policies(self) -> list[PolicySnapshot]:
        return [to_snapshot(p) for p in self.repo.list_all(self.db)]

    def update_policy(
        self,
        category: str,
        gap_days: Optional[int],
        is_daily: bool,
        actor_id: Optional[str],
        description: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> tuple[PolicySnapshot, dict, bool]:
        """
        Apply a policy change, then drop the cached copy so the next computation
        reads the new cadence. Returns (policy, old_settings, cache_invalidated).
        """
        logger.info(f"📥 Updating delivery policy for {category} by {actor_id}")

        policy, old_settings = self.repo.update(
            self.db,
            category,
            gap_days=gap_days,
            is_daily=is_daily,
            actor_id=actor_id,
            description=description,
            reason=reason,
        )
        self.cache.invalidate(category)
        snapshot = to_snapshot(policy)

        logger.info(
            f"✅ Delivery policy for {category} changed: "
            f"{old_settings['gap_days']}d/daily={old_settings['is_daily']} -> "
            f"{snapshot.gap_days}d/daily={snapshot.is_daily}"
        )
        record_admin_action(
            self.db,
            actor_id,
            ACTION_POLICY_UPDATED,
            resource_id=category,
            details={
                "old": {"gap_days": old_settings["gap_days"], "is_daily": old_settings["is_daily"]},
                "new": {"gap_days": snapshot.gap_days, "is_daily": snapshot.is_daily},
                "reason": reason,
            },
        )
        return snapshot, old_settings, True

    def list_audit(self, category: Optional[str] = None, limit: int = 50):
        return self.repo.list_audit(self.db, category=category, limit=limit)

    def get_policy(
        self,
        category: str,
        gap_days: Optional[int] = None,
        is_daily: Optional[bool] = None,
    ) -> PolicySnapshot:
        """Current policy for a category, optionally overlaid with proposed values"""
        if category not in CATEGORIES:
            raise ValidationError(f"Unknown category '{category}'", code="invalid_category")
        policy = resolve_policy(category, self.cache)
        overrides = {}
        if gap_days is not None:
            overrides["gap_days"] = gap_days
        if is_daily is not None:
            overrides["is_daily"] = is_daily
        if overrides:
            policy = replace(policy, is_default=False, **overrides)
            if not policy.is_daily and not MIN_GAP_DAYS <= (policy.gap_days or 0) <= MAX_GAP_DAYS:
                raise ValidationError(
                    f"gap_days must be between {MIN_GAP_DAYS} and {MAX_GAP_DAYS}",
                    code="invalid_gap_days",
                )
        return policy

    def preview(
        self,
        category: str,
        start_date: Optional[date] = None,
        preview_window: int = 14,
        gap_days: Optional[int] = None,
        is_daily: Optional[bool] = None,
    ) -> tuple[PolicySnapshot, list[date]]:
        """Dates a policy would produce; nothing is persisted"""
        policy = self.get_policy(category, gap_days=gap_days, is_daily=is_daily)
        start = start_date or self.clock().date()
        return policy, preview_delivery_dates(start, policy, preview_window)

    def generate(self, category: str, start_date: date, duration_months: int) -> tuple[PolicySnapshot, DeliverySchedule]:
        policy = self.get_policy(category)
        return policy, generate_delivery_dates(start_date, duration_months, policy)

"""Reactivation service - Ends admin pauses and restores delivery schedules"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from ...cache import PolicyCache
from ...config import BULK_MAX_WORKERS, PAUSE_CUTOFF_HOUR
from ...database import SessionLocal
from ...models import (
    PAUSE_STATUS_ACTIVE,
    PAUSE_STATUS_COMPLETED,
    STATUS_ACTIVE,
    STATUS_ADMIN_PAUSED,
    AdminPauseRecord,
)
from ...services.admin_action_log import ACTION_REACTIVATE, record_admin_action
from ...shared.clock import now_local, to_naive_utc
from ...shared.errors import NotFound, ValidationError
from ..scheduling.calendar import next_delivery_date, resolve_policy
from .batch import run_per_row
from .repository import PauseRecordRepository, SubscriptionRepository

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"


@dataclass
class ReactivationOutcome:
    pause_record: AdminPauseRecord
    reactivated_count: int
    errors: list[dict] = field(default_factory=list)


def apply_reactivation(
    db: Session,
    subscription_id: int,
    cache: PolicyCache,
    now: datetime,
    actor_id: str,
) -> bool:
    """
    Return one admin-paused subscription to active with a fresh next delivery date.
    Self-paused, cancelled or already active rows are left untouched.
    """
    subscription = SubscriptionRepository.get(db, subscription_id)
    if subscription is None or subscription.status != STATUS_ADMIN_PAUSED:
        return False

    policy = resolve_policy(subscription.category, cache)

    subscription.status = STATUS_ACTIVE
    subscription.admin_pause_id = None
    subscription.admin_pause_start = None
    subscription.admin_pause_end = None
    subscription.admin_reactivated_at = to_naive_utc(now)
    subscription.admin_reactivated_by = actor_id
    subscription.next_delivery_date = next_delivery_date(now, policy, cutoff_hour=PAUSE_CUTOFF_HOUR)
    db.commit()
    return True


class ReactivationService:
    """Reactivates the subscriptions covered by an admin pause record"""

    def __init__(
        self,
        db: Session,
        cache: PolicyCache,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: Callable = now_local,
        max_workers: int = BULK_MAX_WORKERS,
    ):
        self.db = db
        self.cache = cache
        self.session_factory = session_factory
        self.clock = clock
        self.max_workers = max_workers
        self.subscriptions = SubscriptionRepository()
        self.records = PauseRecordRepository()

    def reactivate(
        self,
        pause_record_id: str,
        scope: Union[str, list[int]] = SCOPE_ALL,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ReactivationOutcome:
        """
        Reactivate everything an admin pause covers, or an explicit subset of it.

        Coverage includes rows a failed pause left inconsistent (admin_paused without a
        link to a live record), so a pause followed by a reactivation always restores
        the customers it targeted. Re-running on a completed record is a no-op apart
        from rows that still reference it.
        """
        if not actor_id or not actor_id.strip():
            raise ValidationError("actor_id is required", code="missing_actor")
        actor_id = actor_id.strip()

        explicit_ids = None
        if scope != SCOPE_ALL:
            if isinstance(scope, str) or not scope:
                raise ValidationError(
                    "scope must be 'all' or a non-empty list of subscription ids", code="invalid_scope"
                )
            explicit_ids = set(scope)

        record = self.records.get(self.db, pause_record_id)
        if record is None:
            raise NotFound(f"Admin pause record {pause_record_id} not found")

        self.cache.invalidate()
        now = self.clock()

        targets = self.subscriptions.reactivation_refs(self.db, record)
        if explicit_ids is not None:
            targets = [ref for ref in targets if ref[0] in explicit_ids]

        logger.info(
            f"▶️ Reactivating admin pause {record.id} by {actor_id}: {len(targets)} subscriptions in scope"
        )

        result = run_per_row(
            targets,
            partial(apply_reactivation, cache=self.cache, now=now, actor_id=actor_id),
            self.session_factory,
            max_workers=self.max_workers,
            label=f"reactivation {record.id}",
        )

        # Expire so the record reflects rows committed by the worker sessions
        self.db.expire_all()
        record = self.records.get(self.db, pause_record_id)
        was_active = record.status == PAUSE_STATUS_ACTIVE
        if was_active:
            remaining = 0
            if explicit_ids is not None:
                remaining = self.subscriptions.count_admin_paused_for_record(self.db, record.id)
            if remaining == 0:
                record.status = PAUSE_STATUS_COMPLETED
                record.reactivated_at = to_naive_utc(now)
                record.reactivated_by = actor_id
                self.db.commit()
                logger.info(f"✅ Admin pause {record.id} completed")
            else:
                logger.info(f"ℹ️ Admin pause {record.id} stays active: {remaining} subscriptions still paused")

        record_admin_action(
            self.db,
            actor_id,
            ACTION_REACTIVATE,
            resource_id=record.id,
            details={
                "scope": SCOPE_ALL if explicit_ids is None else sorted(explicit_ids),
                "reason": reason,
                "record_was_active": was_active,
                "targeted": len(targets),
                "reactivated": result.processed,
                "skipped": result.skipped,
                "failed": result.failed,
                "errors": result.errors,
            },
        )

        self.db.refresh(record)
        return ReactivationOutcome(pause_record=record, reactivated_count=result.processed, errors=result.errors)

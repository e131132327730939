"""Admin pause service - Bulk administrative pause of subscriptions"""

import logging
from dataclasses import dataclass, field
from datetime import date
from functools import partial
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...cache import PolicyCache
from ...config import BULK_MAX_WORKERS
from ...database import SessionLocal
from ...models import (
    PAUSE_STATUS_ACTIVE,
    PAUSE_TYPE_ALL,
    PAUSE_TYPE_SELECTED,
    STATUS_ADMIN_PAUSED,
    AdminPauseRecord,
)
from ...services.admin_action_log import ACTION_PAUSE, record_admin_action
from ...shared.clock import local_date, now_local, to_naive_utc
from ...shared.errors import ValidationError
from ..scheduling.eligibility import can_transition
from .batch import run_per_row
from .repository import PauseRecordRepository, SubscriptionRepository

logger = logging.getLogger(__name__)

PAUSE_TYPES = (PAUSE_TYPE_ALL, PAUSE_TYPE_SELECTED)


@dataclass
class PauseOutcome:
    pause_record: AdminPauseRecord
    processed_count: int
    errors: list[dict] = field(default_factory=list)


def apply_admin_pause(
    db: Session,
    subscription_id: int,
    record_id: str,
    start_date: date,
    end_date: Optional[date],
) -> bool:
    """
    Move one subscription under an admin pause record and commit.
    Rows that are no longer active when re-read are skipped.
    """
    subscription = SubscriptionRepository.get(db, subscription_id)
    if subscription is None or not can_transition(subscription.status, STATUS_ADMIN_PAUSED):
        return False

    subscription.status = STATUS_ADMIN_PAUSED
    subscription.admin_pause_id = record_id
    subscription.admin_pause_start = start_date
    subscription.admin_pause_end = end_date
    db.commit()
    return True


def normalize_user_ids(user_ids: Optional[list[str]]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping the caller's order"""
    seen = []
    for user_id in user_ids or []:
        value = str(user_id).strip()
        if value and value not in seen:
            seen.append(value)
    return seen


class AdminPauseService:
    """Creates admin pause records and pauses the targeted subscriptions"""

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

    def _validate(
        self,
        pause_type: str,
        target_user_ids: Optional[list[str]],
        start_date: date,
        end_date: Optional[date],
        reason: Optional[str],
        actor_id: Optional[str],
    ) -> Optional[list[str]]:
        if pause_type not in PAUSE_TYPES:
            raise ValidationError(
                f"pause_type must be one of {', '.join(PAUSE_TYPES)}", code="invalid_pause_type"
            )

        user_ids = None
        if pause_type == PAUSE_TYPE_SELECTED:
            user_ids = normalize_user_ids(target_user_ids)
            if not user_ids:
                raise ValidationError(
                    "target_user_ids is required for a selected pause", code="missing_targets"
                )

        if not reason or not reason.strip():
            raise ValidationError("A pause reason is required", code="missing_reason")
        if not actor_id or not actor_id.strip():
            raise ValidationError("actor_id is required", code="missing_actor")

        if start_date is None:
            raise ValidationError("start_date is required", code="missing_start_date")
        today = local_date(self.clock())
        if start_date < today:
            raise ValidationError("Pause start date cannot be in the past", code="start_in_past")
        if end_date is not None and end_date <= start_date:
            raise ValidationError("Pause end date must be after start date", code="invalid_end_date")

        return user_ids

    def pause(
        self,
        pause_type: str,
        target_user_ids: Optional[list[str]],
        start_date: date,
        end_date: Optional[date],
        reason: str,
        actor_id: str,
    ) -> PauseOutcome:
        """
        Pause every active subscription in scope.

        The pause record is committed before any subscription changes, so a partially
        failed run always leaves a record that reconciliation and reactivation can find.
        """
        user_ids = self._validate(pause_type, target_user_ids, start_date, end_date, reason, actor_id)
        reason = reason.strip()
        actor_id = actor_id.strip()

        self.cache.invalidate()

        # Step 1: snapshot the targets and persist the record
        targets = self.subscriptions.active_refs(self.db, user_ids)
        record = self.records.create(
            self.db,
            pause_type=pause_type,
            affected_user_ids=user_ids,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            admin_user_id=actor_id,
            status=PAUSE_STATUS_ACTIVE,
            affected_subscription_count=len(targets),
            created_at=to_naive_utc(self.clock()),
        )
        record_id = record.id
        logger.info(
            f"⏸️ Admin pause {record_id} ({pause_type}) by {actor_id}: "
            f"{len(targets)} active subscriptions targeted"
        )

        # Step 2: one unit of work per subscription
        result = run_per_row(
            targets,
            partial(
                apply_admin_pause,
                record_id=record_id,
                start_date=start_date,
                end_date=end_date,
            ),
            self.session_factory,
            max_workers=self.max_workers,
            label=f"admin pause {record_id}",
        )

        # Step 3: action log
        record_admin_action(
            self.db,
            actor_id,
            ACTION_PAUSE,
            resource_id=record_id,
            details={
                "pause_type": pause_type,
                "reason": reason,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat() if end_date else None,
                "affected_user_ids": user_ids,
                "targeted": len(targets),
                "processed": result.processed,
                "skipped": result.skipped,
                "failed": result.failed,
                "errors": result.errors,
            },
        )

        self.db.refresh(record)
        return PauseOutcome(pause_record=record, processed_count=result.processed, errors=result.errors)

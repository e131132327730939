"""
Automated maintenance for admin pauses and delivery dates
Expires admin pauses whose end date has passed, re-pauses subscriptions that slipped
out from under a live pause record, and rolls overdue next delivery dates forward
"""

import logging
from functools import partial
from typing import Callable

from sqlalchemy.orm import Session

from ..cache import PolicyCache
from ..config import BULK_MAX_WORKERS, SYSTEM_ACTOR_ID
from ..database import SessionLocal
from ..domain.scheduling.calendar import next_delivery_date, resolve_policy
from ..domain.subscriptions.batch import run_per_row
from ..domain.subscriptions.pause_service import apply_admin_pause
from ..domain.subscriptions.reactivation_service import ReactivationService
from ..domain.subscriptions.repository import PauseRecordRepository, SubscriptionRepository
from ..models import PAUSE_TYPE_ALL, STATUS_ACTIVE, Subscription
from ..shared.clock import local_date, now_local
from .admin_action_log import ACTION_PAUSE_EXPIRED, ACTION_PAUSE_RECONCILED, record_admin_action

logger = logging.getLogger(__name__)


def expire_admin_pauses(
    db: Session,
    cache: PolicyCache,
    session_factory: Callable[[], Session] = SessionLocal,
    clock: Callable = now_local,
    max_workers: int = BULK_MAX_WORKERS,
) -> dict:
    """
    Reactivate every active admin pause whose end date is before today
    Should be run as a scheduled job (daily cron)

    Returns:
        dict: Summary of records expired and subscriptions reactivated
    """
    summary = {"records_expired": 0, "subscriptions_reactivated": 0, "errors": []}

    today = local_date(clock())
    expired = PauseRecordRepository.ended_before(db, today)
    if not expired:
        logger.debug("ℹ️ No admin pauses past their end date")
        return summary

    service = ReactivationService(db, cache, session_factory=session_factory, clock=clock, max_workers=max_workers)
    for record in expired:
        record_id = record.id
        outcome = service.reactivate(
            record_id, actor_id=SYSTEM_ACTOR_ID, reason="Admin pause end date passed"
        )
        summary["records_expired"] += 1
        summary["subscriptions_reactivated"] += outcome.reactivated_count
        summary["errors"].extend(outcome.errors)
        logger.info(f"✅ Admin pause {record_id} expired: {outcome.reactivated_count} subscriptions reactivated")

    record_admin_action(
        db,
        SYSTEM_ACTOR_ID,
        ACTION_PAUSE_EXPIRED,
        details={
            "records_expired": summary["records_expired"],
            "subscriptions_reactivated": summary["subscriptions_reactivated"],
            "failed": len(summary["errors"]),
        },
    )
    logger.info(f"📊 Admin pause expiry summary: {summary['records_expired']} records, "
                f"{summary['subscriptions_reactivated']} subscriptions")
    return summary


def reconcile_admin_pauses(
    db: Session,
    session_factory: Callable[[], Session] = SessionLocal,
    clock: Callable = now_local,
    max_workers: int = BULK_MAX_WORKERS,
) -> dict:
    """
    Pause active subscriptions that a live admin pause should cover but does not
    (rows whose pause update failed, or subscriptions created after the pause began).
    Subscriptions an admin explicitly reactivated after the record was created are left alone.
    """
    summary = {"records_checked": 0, "subscriptions_paused": 0, "errors": []}

    today = local_date(clock())
    records = PauseRecordRepository.live_on(db, today)
    # Newest first so the most recent record owns a subscription both cover
    for record in records:
        summary["records_checked"] += 1
        query = db.query(Subscription.id, Subscription.user_id).filter(Subscription.status == STATUS_ACTIVE)
        if record.pause_type != PAUSE_TYPE_ALL:
            query = query.filter(Subscription.user_id.in_(record.affected_user_ids or []))
        if record.created_at is not None:
            query = query.filter(
                (Subscription.admin_reactivated_at.is_(None))
                | (Subscription.admin_reactivated_at <= record.created_at)
            )
        targets = [(sub_id, user_id) for sub_id, user_id in query.order_by(Subscription.id).all()]
        if not targets:
            continue

        result = run_per_row(
            targets,
            partial(
                apply_admin_pause,
                record_id=record.id,
                start_date=record.start_date,
                end_date=record.end_date,
            ),
            session_factory,
            max_workers=max_workers,
            label=f"reconcile {record.id}",
        )
        summary["subscriptions_paused"] += result.processed
        summary["errors"].extend(result.errors)
        logger.info(f"🔧 Admin pause {record.id} reconciled: {result.processed} subscriptions re-paused")

    if summary["subscriptions_paused"] or summary["errors"]:
        record_admin_action(
            db,
            SYSTEM_ACTOR_ID,
            ACTION_PAUSE_RECONCILED,
            details={
                "records_checked": summary["records_checked"],
                "subscriptions_paused": summary["subscriptions_paused"],
                "errors": summary["errors"],
            },
        )
    else:
        logger.debug("ℹ️ Admin pauses consistent, nothing to reconcile")
    return summary


def roll_forward_delivery_dates(db: Session, cache: PolicyCache, clock: Callable = now_local) -> dict:
    """
    Advance next_delivery_date on active subscriptions whose date is before today,
    keeping each subscription on its own cadence. A date equal to today is left
    alone until tomorrow so the delivery-day pause rule still sees it
    """
    summary = {"checked": 0, "updated": 0}

    try:
        now = clock()
        overdue = SubscriptionRepository.overdue_active(db, local_date(now))
        for subscription in overdue:
            summary["checked"] += 1
            policy = resolve_policy(subscription.category, cache)
            new_date = next_delivery_date(now, policy, anchor=subscription.next_delivery_date)
            if new_date != subscription.next_delivery_date:
                logger.debug(
                    f"📅 Subscription {subscription.id}: {subscription.next_delivery_date} -> {new_date}"
                )
                subscription.next_delivery_date = new_date
                summary["updated"] += 1

        if summary["updated"] > 0:
            db.commit()
            logger.info(f"📊 Delivery date roll-forward summary: {summary}")
        else:
            logger.debug("ℹ️ No overdue delivery dates")
        return summary

    except Exception as e:
        logger.error(f"❌ Error rolling delivery dates forward: {str(e)}")
        db.rollback()
        raise


def run_admin_pause_maintenance(
    db: Session,
    cache: PolicyCache,
    session_factory: Callable[[], Session] = SessionLocal,
    clock: Callable = now_local,
) -> dict:
    """Expiry followed by reconciliation, as run by the manual trigger"""
    return {
        "expiry": expire_admin_pauses(db, cache, session_factory=session_factory, clock=clock),
        "reconciliation": reconcile_admin_pauses(db, session_factory=session_factory, clock=clock),
    }

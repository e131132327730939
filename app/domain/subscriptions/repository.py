"""Subscription repository - Database operations for subscriptions and admin pause records"""

from datetime import date
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from ...models import (
    PAUSE_STATUS_ACTIVE,
    PAUSE_TYPE_ALL,
    STATUS_ACTIVE,
    STATUS_ADMIN_PAUSED,
    AdminPauseRecord,
    Subscription,
)


class SubscriptionRepository:
    """Repository for subscription rows"""

    @staticmethod
    def get(db: Session, subscription_id: int) -> Optional[Subscription]:
        return db.query(Subscription).filter(Subscription.id == subscription_id).first()

    @staticmethod
    def get_with_status(db: Session, subscription_id: int, status: str) -> Optional[Subscription]:
        return (
            db.query(Subscription)
            .filter(Subscription.id == subscription_id, Subscription.status == status)
            .first()
        )

    @staticmethod
    def active_refs(db: Session, user_ids: Optional[list[str]] = None) -> list[tuple[int, str]]:
        """(id, user_id) of active subscriptions, optionally limited to some customers"""
        query = db.query(Subscription.id, Subscription.user_id).filter(Subscription.status == STATUS_ACTIVE)
        if user_ids is not None:
            if not user_ids:
                return []
            query = query.filter(Subscription.user_id.in_(user_ids))
        return [(sub_id, user_id) for sub_id, user_id in query.order_by(Subscription.id).all()]

    @staticmethod
    def reactivation_refs(db: Session, record: AdminPauseRecord) -> list[tuple[int, str]]:
        """
        Subscriptions a reactivation of ``record`` must cover:
        rows linked to the record, plus admin_paused rows of its customers that no
        other live pause record owns (unlinked, dangling or owned by a finished record).
        """
        other_live_ids = select(AdminPauseRecord.id).where(
            AdminPauseRecord.status == PAUSE_STATUS_ACTIVE,
            AdminPauseRecord.id != record.id,
        )
        orphaned = and_(
            Subscription.status == STATUS_ADMIN_PAUSED,
            or_(
                Subscription.admin_pause_id.is_(None),
                Subscription.admin_pause_id.not_in(other_live_ids),
            ),
        )
        if record.pause_type != PAUSE_TYPE_ALL:
            orphaned = and_(orphaned, Subscription.user_id.in_(record.affected_user_ids or []))

        rows = (
            db.query(Subscription.id, Subscription.user_id)
            .filter(or_(Subscription.admin_pause_id == record.id, orphaned))
            .order_by(Subscription.id)
            .all()
        )
        return [(sub_id, user_id) for sub_id, user_id in rows]

    @staticmethod
    def count_admin_paused_for_record(db: Session, record_id: str) -> int:
        return (
            db.query(func.count(Subscription.id))
            .filter(
                Subscription.admin_pause_id == record_id,
                Subscription.status == STATUS_ADMIN_PAUSED,
            )
            .scalar()
        )

    @staticmethod
    def count_by_status(db: Session) -> dict[str, int]:
        rows = db.query(Subscription.status, func.count(Subscription.id)).group_by(Subscription.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def overdue_active(db: Session, today: date) -> list[Subscription]:
        """Active subscriptions whose next delivery date is already past (today stays committed)"""
        return (
            db.query(Subscription)
            .filter(
                Subscription.status == STATUS_ACTIVE,
                Subscription.next_delivery_date.isnot(None),
                Subscription.next_delivery_date < today,
            )
            .order_by(Subscription.id)
            .all()
        )


class PauseRecordRepository:
    """Repository for admin pause records"""

    @staticmethod
    def create(db: Session, **fields) -> AdminPauseRecord:
        record = AdminPauseRecord(**fields)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def get(db: Session, record_id: str) -> Optional[AdminPauseRecord]:
        return db.query(AdminPauseRecord).filter(AdminPauseRecord.id == record_id).first()

    @staticmethod
    def list_records(db: Session, status: Optional[str] = None, limit: int = 100) -> list[AdminPauseRecord]:
        query = db.query(AdminPauseRecord)
        if status:
            query = query.filter(AdminPauseRecord.status == status)
        return query.order_by(AdminPauseRecord.created_at.desc()).limit(limit).all()

    @staticmethod
    def live_on(db: Session, day: date) -> list[AdminPauseRecord]:
        """Active records whose window covers ``day``"""
        return (
            db.query(AdminPauseRecord)
            .filter(
                AdminPauseRecord.status == PAUSE_STATUS_ACTIVE,
                AdminPauseRecord.start_date <= day,
                or_(AdminPauseRecord.end_date.is_(None), AdminPauseRecord.end_date >= day),
            )
            .order_by(AdminPauseRecord.created_at.desc())
            .all()
        )

    @staticmethod
    def ended_before(db: Session, day: date) -> list[AdminPauseRecord]:
        """Active records whose end date has passed"""
        return (
            db.query(AdminPauseRecord)
            .filter(
                AdminPauseRecord.status == PAUSE_STATUS_ACTIVE,
                AdminPauseRecord.end_date.isnot(None),
                AdminPauseRecord.end_date < day,
            )
            .order_by(AdminPauseRecord.created_at)
            .all()
        )

"""Schedule policy repository - Database operations for delivery cadence policies"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import AUDIT_LIST_MAX_LIMIT
from ...models import CATEGORIES, ScheduleAuditEntry, SchedulePolicy
from ...shared.errors import NotFound, ValidationError
from .calendar import DEFAULT_POLICIES, MAX_GAP_DAYS, MIN_GAP_DAYS, PolicySnapshot

logger = logging.getLogger(__name__)


def to_snapshot(policy: SchedulePolicy) -> PolicySnapshot:
    return PolicySnapshot(
        category=policy.category,
        gap_days=policy.gap_days,
        is_daily=bool(policy.is_daily),
        description=policy.description,
        updated_at=policy.updated_at,
        updated_by=policy.updated_by,
    )


class SchedulePolicyRepository:
    """Repository for delivery schedule policies and their audit trail"""

    @staticmethod
    def get(db: Session, category: str) -> SchedulePolicy:
        """Get the policy row for a category"""
        policy = db.query(SchedulePolicy).filter(SchedulePolicy.category == category).first()
        if not policy:
            raise NotFound(f"No delivery schedule policy for category '{category}'")
        return policy

    @staticmethod
    def get_snapshot(db: Session, category: str) -> PolicySnapshot:
        return to_snapshot(SchedulePolicyRepository.get(db, category))

    @staticmethod
    def list_all(db: Session) -> list[SchedulePolicy]:
        return db.query(SchedulePolicy).order_by(SchedulePolicy.category).all()

    @staticmethod
    def update(
        db: Session,
        category: str,
        gap_days: int,
        is_daily: bool,
        actor_id: str,
        description: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> tuple[SchedulePolicy, dict]:
        """
        Change a policy and append its audit entry in one transaction.
        Returns (policy, old_settings). Nothing is written if either insert fails.
        """
        if category not in CATEGORIES:
            raise ValidationError(f"Unknown category '{category}'", code="invalid_category")
        if not actor_id or not actor_id.strip():
            raise ValidationError("actor_id is required", code="missing_actor")
        if is_daily:
            gap_days = 1
        elif gap_days is None or not MIN_GAP_DAYS <= gap_days <= MAX_GAP_DAYS:
            raise ValidationError(
                f"gap_days must be between {MIN_GAP_DAYS} and {MAX_GAP_DAYS}",
                code="invalid_gap_days",
            )

        policy = SchedulePolicyRepository.get(db, category)
        old_settings = {
            "gap_days": policy.gap_days,
            "is_daily": policy.is_daily,
            "description": policy.description,
        }

        try:
            policy.gap_days = gap_days
            policy.is_daily = is_daily
            if description is not None:
                policy.description = description
            policy.updated_by = actor_id
            db.flush()

            db.add(
                ScheduleAuditEntry(
                    policy_id=policy.id,
                    category=category,
                    old_gap_days=old_settings["gap_days"],
                    new_gap_days=gap_days,
                    old_is_daily=old_settings["is_daily"],
                    new_is_daily=is_daily,
                    changed_by=actor_id,
                    change_reason=reason,
                )
            )
            db.flush()
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(policy)
        return policy, old_settings

    @staticmethod
    def list_audit(db: Session, category: Optional[str] = None, limit: int = 50) -> list[ScheduleAuditEntry]:
        """Audit entries newest first"""
        limit = max(1, min(limit, AUDIT_LIST_MAX_LIMIT))
        query = db.query(ScheduleAuditEntry)
        if category:
            query = query.filter(ScheduleAuditEntry.category == category)
        return (
            query.order_by(ScheduleAuditEntry.created_at.desc(), ScheduleAuditEntry.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def seed_defaults(db: Session) -> int:
        """Insert the built-in policy for every category without a row. Returns rows added."""
        existing = {category for (category,) in db.query(SchedulePolicy.category).all()}
        added = 0
        for category, default in DEFAULT_POLICIES.items():
            if category in existing:
                continue
            db.add(
                SchedulePolicy(
                    category=category,
                    gap_days=default.gap_days,
                    is_daily=default.is_daily,
                    description=default.description,
                    updated_by="system",
                )
            )
            added += 1
        if added:
            db.commit()
            logger.info(f"🌱 Seeded {added} default delivery schedule policies")
        return added

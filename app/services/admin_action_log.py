"""
Admin action log
Records bulk pause, reactivation, maintenance and policy actions with their outcome
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..config import ADMIN_ACTION_LOG_ENABLED
from ..models import AdminActionLog

logger = logging.getLogger(__name__)

ACTION_PAUSE = "ADMIN_PAUSE_SUBSCRIPTIONS"
ACTION_REACTIVATE = "ADMIN_REACTIVATE_SUBSCRIPTIONS"
ACTION_PAUSE_EXPIRED = "ADMIN_PAUSE_EXPIRED"
ACTION_PAUSE_RECONCILED = "ADMIN_PAUSE_RECONCILED"
ACTION_POLICY_UPDATED = "SCHEDULE_POLICY_UPDATED"


def record_admin_action(
    db: Session,
    admin_user_id: str,
    action: str,
    resource_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> Optional[AdminActionLog]:
    """
    Append one action log row.
    A failure here never fails the action being logged; it is logged and rolled back.
    """
    if not ADMIN_ACTION_LOG_ENABLED:
        return None

    try:
        entry = AdminActionLog(
            admin_user_id=admin_user_id,
            action=action,
            resource_id=resource_id,
            details=details or {},
        )
        db.add(entry)
        db.commit()
        return entry
    except Exception as e:
        logger.error(f"❌ Failed to record admin action {action} for {resource_id}: {str(e)}")
        db.rollback()
        return None


def recent_admin_actions(db: Session, limit: int = 50) -> list[AdminActionLog]:
    return (
        db.query(AdminActionLog)
        .order_by(AdminActionLog.created_at.desc(), AdminActionLog.id.desc())
        .limit(limit)
        .all()
    )

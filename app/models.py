import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Subscription categories served by a cadence policy
CATEGORIES = ("juices", "fruit_bowls", "customized")

# Subscription lifecycle statuses
STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"  # self-service pause
STATUS_ADMIN_PAUSED = "admin_paused"
STATUS_CANCELLED = "cancelled"
STATUS_EXPIRED = "expired"  # reactivation deadline passed while paused
SUBSCRIPTION_STATUSES = (
    STATUS_ACTIVE,
    STATUS_PAUSED,
    STATUS_ADMIN_PAUSED,
    STATUS_CANCELLED,
    STATUS_EXPIRED,
)

# Admin pause record values
PAUSE_TYPE_ALL = "all"
PAUSE_TYPE_SELECTED = "selected"
PAUSE_STATUS_ACTIVE = "active"
PAUSE_STATUS_COMPLETED = "completed"


def generate_pause_id():
    """Generate a unique id for an admin pause record"""
    return str(uuid.uuid4())


class SchedulePolicy(Base):
    __tablename__ = "delivery_schedule_policies"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String(50), unique=True, index=True, nullable=False)
    gap_days = Column(Integer, nullable=False, default=1)  # ignored when is_daily
    is_daily = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    updated_by = Column(String(255), nullable=True)

    audit_entries = relationship("ScheduleAuditEntry", back_populates="policy")


class ScheduleAuditEntry(Base):
    """Append-only record of one policy change"""

    __tablename__ = "delivery_schedule_audit"

    id = Column(Integer, primary_key=True, index=True)
    policy_id = Column(Integer, ForeignKey("delivery_schedule_policies.id"), nullable=False)
    category = Column(String(50), index=True, nullable=False)
    old_gap_days = Column(Integer, nullable=True)
    new_gap_days = Column(Integer, nullable=False)
    old_is_daily = Column(Boolean, nullable=True)
    new_is_daily = Column(Boolean, nullable=False)
    changed_by = Column(String(255), nullable=False)
    change_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)

    policy = relationship("SchedulePolicy", back_populates="audit_entries")


class AdminPauseRecord(Base):
    """Durable record of one administrative pause action"""

    __tablename__ = "admin_subscription_pauses"

    id = Column(String(36), primary_key=True, default=generate_pause_id)
    pause_type = Column(String(20), nullable=False)  # all, selected
    affected_user_ids = Column(JSON, nullable=True)  # None for pause_type == all
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # None = indefinite
    reason = Column(Text, nullable=False)
    admin_user_id = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=PAUSE_STATUS_ACTIVE, index=True)
    affected_subscription_count = Column(Integer, nullable=False, default=0)
    reactivated_at = Column(DateTime, nullable=True)
    reactivated_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Subscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), index=True, nullable=False)
    category = Column(String(50), nullable=False)
    delivery_frequency = Column(String(20), nullable=False, default="weekly")  # weekly, monthly
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE, index=True)
    duration_months = Column(Integer, nullable=True)
    next_delivery_date = Column(Date, nullable=True)
    subscription_start_date = Column(Date, nullable=True)
    subscription_end_date = Column(Date, nullable=True)
    # Self-service pause bookkeeping
    pause_date = Column(DateTime, nullable=True)
    pause_reason = Column(Text, nullable=True)
    reactivation_deadline = Column(DateTime, nullable=True)
    # Admin pause bookkeeping; admin_pause_id is set iff status == admin_paused
    admin_pause_id = Column(
        String(36), ForeignKey("admin_subscription_pauses.id"), nullable=True, index=True
    )
    admin_pause_start = Column(Date, nullable=True)
    admin_pause_end = Column(Date, nullable=True)
    admin_reactivated_at = Column(DateTime, nullable=True)
    admin_reactivated_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    admin_pause = relationship("AdminPauseRecord")


class AdminActionLog(Base):
    """Admin pause/reactivation/maintenance actions with their outcome breakdown"""

    __tablename__ = "admin_action_logs"

    id = Column(Integer, primary_key=True, index=True)
    admin_user_id = Column(String(255), nullable=False, index=True)
    action = Column(String(64), nullable=False, index=True)
    resource_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)

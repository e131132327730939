"""Subscription domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, field_validator


class AdminPauseRequest(BaseModel):
    """Schema for a bulk admin pause"""

    pause_type: str
    target_user_ids: Optional[list[str]] = None
    start_date: date
    end_date: Optional[date] = None
    reason: str
    actor_id: Optional[str] = None

    @field_validator("pause_type")
    @classmethod
    def normalize_pause_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class AdminPauseResponse(BaseModel):
    success: bool
    pause_record_id: str
    processed_count: int
    affected_subscription_count: int
    errors: list[dict]


class AdminReactivateRequest(BaseModel):
    """Schema for reactivating an admin pause ("all" or explicit subscription ids)"""

    pause_record_id: str
    scope: Union[Literal["all"], list[int]] = "all"
    actor_id: Optional[str] = None
    reason: Optional[str] = None


class AdminReactivateResponse(BaseModel):
    success: bool
    reactivated_count: int
    pause_record_status: str
    errors: list[dict]


class PauseRecordResponse(BaseModel):
    id: str
    pause_type: str
    affected_user_ids: Optional[list[str]] = None
    start_date: date
    end_date: Optional[date] = None
    reason: str
    admin_user_id: str
    status: str
    affected_subscription_count: int
    reactivated_at: Optional[datetime] = None
    reactivated_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminActionResponse(BaseModel):
    id: int
    admin_user_id: str
    action: str
    resource_id: Optional[str] = None
    details: Optional[dict] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriptionOverview(BaseModel):
    status_counts: dict[str, int]
    total_subscriptions: int
    pause_records: list[PauseRecordResponse]
    recent_actions: list[AdminActionResponse]


class AdminPauseStatusResponse(BaseModel):
    is_admin_paused: bool
    pause_type: Optional[str] = None
    reason: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    message: Optional[str] = None


class SubscriptionPauseRequest(BaseModel):
    reason: Optional[str] = None


class SubscriptionReactivateRequest(BaseModel):
    next_delivery_date: Optional[date] = None


class SubscriptionResponse(BaseModel):
    """Schema for subscription response"""

    id: int
    user_id: str
    category: str
    status: str
    next_delivery_date: Optional[date] = None
    subscription_start_date: Optional[date] = None
    subscription_end_date: Optional[date] = None
    pause_date: Optional[datetime] = None
    pause_reason: Optional[str] = None
    reactivation_deadline: Optional[datetime] = None
    admin_pause_id: Optional[str] = None

    class Config:
        from_attributes = True


class SubscriptionReactivateResponse(BaseModel):
    subscription: SubscriptionResponse
    pause_duration_days: int


class SubscriptionScheduleResponse(BaseModel):
    subscription_id: int
    category: str
    status: str
    schedule: str
    next_delivery_date: Optional[date] = None
    upcoming_dates: list[date]

"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator


def _strip(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class PolicyResponse(BaseModel):
    """Schema for a delivery cadence policy"""

    category: str
    gap_days: int
    is_daily: bool
    description: Optional[str] = None
    schedule: str
    is_active: bool = True
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class PolicyUpdateRequest(BaseModel):
    """Schema for changing a category's cadence"""

    category: str
    gap_days: Optional[int] = None
    is_daily: bool = False
    description: Optional[str] = None
    reason: Optional[str] = None
    actor_id: Optional[str] = None

    @field_validator("description", "reason", "actor_id")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class PolicyUpdateResponse(BaseModel):
    policy: PolicyResponse
    old_settings: dict
    cache_invalidated: bool


class AuditEntryResponse(BaseModel):
    id: int
    category: str
    old_gap_days: Optional[int] = None
    new_gap_days: int
    old_is_daily: Optional[bool] = None
    new_is_daily: bool
    changed_by: str
    change_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PreviewRequest(BaseModel):
    """
    Schema for a delivery preview.
    gap_days / is_daily preview a proposed policy instead of the stored one.
    """

    category: str
    start_date: Optional[date] = None
    preview_window: int = 14
    gap_days: Optional[int] = None
    is_daily: Optional[bool] = None


class PreviewResponse(BaseModel):
    category: str
    schedule: str
    dates: list[date]


class GenerateRequest(BaseModel):
    category: str
    start_date: date
    duration_months: int


class DeliveryScheduleResponse(BaseModel):
    category: str
    schedule: str
    start_date: date
    end_date: date
    delivery_dates: list[date]
    total_deliveries: int

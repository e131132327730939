"""Delivery schedule router - Admin endpoints for cadence policies and previews"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...cache import PolicyCache, get_policy_cache
from ...config import AUDIT_LIST_MAX_LIMIT
from ...database import get_db
from ...shared.actor import get_actor_header, require_actor
from ...shared.clock import get_clock
from .calendar import PolicySnapshot
from .schemas import (
    AuditEntryResponse,
    DeliveryScheduleResponse,
    GenerateRequest,
    PolicyResponse,
    PolicyUpdateRequest,
    PolicyUpdateResponse,
    PreviewRequest,
    PreviewResponse,
)
from .service import SchedulePolicyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/delivery-schedule", tags=["Delivery Schedule"])


def get_schedule_policy_service(
    db: Session = Depends(get_db),
    cache: PolicyCache = Depends(get_policy_cache),
    clock=Depends(get_clock),
) -> SchedulePolicyService:
    """Dependency injection for SchedulePolicyService"""
    return SchedulePolicyService(db, cache, clock=clock)


def _policy_response(policy: PolicySnapshot) -> PolicyResponse:
    return PolicyResponse(
        category=policy.category,
        gap_days=policy.gap_days,
        is_daily=policy.is_daily,
        description=policy.description,
        schedule=policy.schedule_label,
        updated_at=policy.updated_at,
        updated_by=policy.updated_by,
    )


# ============================================================================
# POLICY SETTINGS
# ============================================================================


@router.get("/settings", response_model=list[PolicyResponse])
async def get_settings(service: SchedulePolicyService = Depends(get_schedule_policy_service)):
    """All category cadence policies"""
    return [_policy_response(p) for p in service.list_policies()]


@router.put("/settings", response_model=PolicyUpdateResponse)
async def update_settings(
    data: PolicyUpdateRequest,
    header_actor: Optional[str] = Depends(get_actor_header),
    service: SchedulePolicyService = Depends(get_schedule_policy_service),
):
    """Change a category's cadence; the change and its audit entry are written together"""
    actor_id = require_actor(data.actor_id, header_actor)
    policy, old_settings, invalidated = service.update_policy(
        data.category,
        gap_days=data.gap_days,
        is_daily=data.is_daily,
        actor_id=actor_id,
        description=data.description,
        reason=data.reason,
    )
    return PolicyUpdateResponse(
        policy=_policy_response(policy),
        old_settings=old_settings,
        cache_invalidated=invalidated,
    )


@router.get("/audit", response_model=list[AuditEntryResponse])
async def get_audit(
    category: Optional[str] = Query(None),
    limit: int = Query(50),
    service: SchedulePolicyService = Depends(get_schedule_policy_service),
):
    """Policy change history, newest first"""
    return service.list_audit(category=category, limit=min(limit, AUDIT_LIST_MAX_LIMIT))


# ============================================================================
# PREVIEW / GENERATION
# ============================================================================


@router.post("/preview", response_model=PreviewResponse)
async def preview_schedule(
    data: PreviewRequest,
    service: SchedulePolicyService = Depends(get_schedule_policy_service),
):
    """Dates a (possibly proposed) policy would produce, without persisting anything"""
    policy, dates = service.preview(
        data.category,
        start_date=data.start_date,
        preview_window=data.preview_window,
        gap_days=data.gap_days,
        is_daily=data.is_daily,
    )
    return PreviewResponse(category=policy.category, schedule=policy.schedule_label, dates=dates)


@router.post("/generate", response_model=DeliveryScheduleResponse)
async def generate_schedule(
    data: GenerateRequest,
    service: SchedulePolicyService = Depends(get_schedule_policy_service),
):
    """Full delivery calendar for a subscription term"""
    policy, schedule = service.generate(data.category, data.start_date, data.duration_months)
    return DeliveryScheduleResponse(
        category=policy.category,
        schedule=policy.schedule_label,
        start_date=schedule.start_date,
        end_date=schedule.end_date,
        delivery_dates=schedule.delivery_dates,
        total_deliveries=schedule.total_deliveries,
    )

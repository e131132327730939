"""Admin subscription router - Bulk pause, reactivation and maintenance endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...cache import PolicyCache, get_policy_cache
from ...config import BULK_RATE_LIMIT, BULK_RATE_WINDOW_SECONDS
from ...database import get_db, get_session_factory
from ...rate_limiter import create_rate_limiter
from ...services.admin_action_log import recent_admin_actions
from ...services.status_automation import run_admin_pause_maintenance
from ...shared.actor import get_actor_header, require_actor
from ...shared.clock import get_clock
from .pause_service import AdminPauseService
from .reactivation_service import ReactivationService
from .repository import PauseRecordRepository, SubscriptionRepository
from .schemas import (
    AdminActionResponse,
    AdminPauseRequest,
    AdminPauseResponse,
    AdminReactivateRequest,
    AdminReactivateResponse,
    PauseRecordResponse,
    SubscriptionOverview,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/subscriptions", tags=["Admin Subscriptions"])

bulk_rate_limit = create_rate_limiter(
    limit=BULK_RATE_LIMIT, window_seconds=BULK_RATE_WINDOW_SECONDS, key_prefix="admin_bulk"
)


def get_admin_pause_service(
    db: Session = Depends(get_db),
    cache: PolicyCache = Depends(get_policy_cache),
    session_factory=Depends(get_session_factory),
    clock=Depends(get_clock),
) -> AdminPauseService:
    """Dependency injection for AdminPauseService"""
    return AdminPauseService(db, cache, session_factory=session_factory, clock=clock)


def get_reactivation_service(
    db: Session = Depends(get_db),
    cache: PolicyCache = Depends(get_policy_cache),
    session_factory=Depends(get_session_factory),
    clock=Depends(get_clock),
) -> ReactivationService:
    """Dependency injection for ReactivationService"""
    return ReactivationService(db, cache, session_factory=session_factory, clock=clock)


# ============================================================================
# BULK OPERATIONS
# ============================================================================
# Plain def so FastAPI runs the blocking batch work in its threadpool


@router.post("/pause", response_model=AdminPauseResponse)
def pause_subscriptions(
    data: AdminPauseRequest,
    header_actor: Optional[str] = Depends(get_actor_header),
    service: AdminPauseService = Depends(get_admin_pause_service),
    _: None = Depends(bulk_rate_limit),
):
    """Pause all subscriptions, or those of selected customers"""
    actor_id = require_actor(data.actor_id, header_actor)
    outcome = service.pause(
        data.pause_type,
        data.target_user_ids,
        data.start_date,
        data.end_date,
        data.reason,
        actor_id,
    )
    return AdminPauseResponse(
        success=not outcome.errors,
        pause_record_id=outcome.pause_record.id,
        processed_count=outcome.processed_count,
        affected_subscription_count=outcome.pause_record.affected_subscription_count,
        errors=outcome.errors,
    )


@router.post("/reactivate", response_model=AdminReactivateResponse)
def reactivate_subscriptions(
    data: AdminReactivateRequest,
    header_actor: Optional[str] = Depends(get_actor_header),
    service: ReactivationService = Depends(get_reactivation_service),
    _: None = Depends(bulk_rate_limit),
):
    """End an admin pause for everything it covers or for specific subscriptions"""
    actor_id = require_actor(data.actor_id, header_actor)
    outcome = service.reactivate(data.pause_record_id, scope=data.scope, actor_id=actor_id, reason=data.reason)
    return AdminReactivateResponse(
        success=not outcome.errors,
        reactivated_count=outcome.reactivated_count,
        pause_record_status=outcome.pause_record.status,
        errors=outcome.errors,
    )


# ============================================================================
# READ ENDPOINTS
# ============================================================================


@router.get("/pauses", response_model=list[PauseRecordResponse])
async def list_pause_records(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Admin pause records, newest first"""
    return PauseRecordRepository.list_records(db, status=status)


@router.get("/overview", response_model=SubscriptionOverview)
async def get_overview(db: Session = Depends(get_db)):
    """Subscription counts by status, pause records and recent admin actions"""
    counts = SubscriptionRepository.count_by_status(db)
    return SubscriptionOverview(
        status_counts=counts,
        total_subscriptions=sum(counts.values()),
        pause_records=[PauseRecordResponse.model_validate(r) for r in PauseRecordRepository.list_records(db)],
        recent_actions=[AdminActionResponse.model_validate(a) for a in recent_admin_actions(db)],
    )


# ============================================================================
# MAINTENANCE
# ============================================================================


@router.post("/maintenance/run")
def run_maintenance(
    db: Session = Depends(get_db),
    cache: PolicyCache = Depends(get_policy_cache),
    session_factory=Depends(get_session_factory),
    clock=Depends(get_clock),
    _: None = Depends(bulk_rate_limit),
):
    """
    Manually trigger admin pause expiry and reconciliation
    Normally run by the scheduled worker
    """
    summary = run_admin_pause_maintenance(db, cache, session_factory=session_factory, clock=clock)
    return {"message": "Admin pause maintenance completed", **summary}

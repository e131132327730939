"""Subscription router - Subscriber pause/reactivate, schedule and admin pause status"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...cache import PolicyCache, get_policy_cache
from ...database import get_db
from ...shared.clock import get_clock
from .schemas import (
    AdminPauseStatusResponse,
    SubscriptionPauseRequest,
    SubscriptionReactivateRequest,
    SubscriptionReactivateResponse,
    SubscriptionResponse,
    SubscriptionScheduleResponse,
)
from .self_service import SubscriberService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def get_subscriber_service(
    db: Session = Depends(get_db),
    cache: PolicyCache = Depends(get_policy_cache),
    clock=Depends(get_clock),
) -> SubscriberService:
    """Dependency injection for SubscriberService"""
    return SubscriberService(db, cache, clock=clock)


@router.get("/admin-pause-status", response_model=AdminPauseStatusResponse)
async def get_admin_pause_status(
    user_id: Optional[str] = Query(None),
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Whether deliveries for this customer (or everyone) are paused by an admin"""
    return AdminPauseStatusResponse(**service.admin_pause_status(user_id))


@router.post("/{subscription_id}/pause", response_model=SubscriptionResponse)
async def pause_subscription(
    subscription_id: int,
    data: Optional[SubscriptionPauseRequest] = None,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Pause an active subscription (rejected on delivery day and after the evening cutoff)"""
    subscription = service.pause_subscription(subscription_id, reason=data.reason if data else None)
    return SubscriptionResponse.model_validate(subscription)


@router.post("/{subscription_id}/reactivate", response_model=SubscriptionReactivateResponse)
async def reactivate_subscription(
    subscription_id: int,
    data: Optional[SubscriptionReactivateRequest] = None,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Resume a paused subscription and extend its term by the time spent paused"""
    subscription, paused_days = service.reactivate_subscription(
        subscription_id, requested_date=data.next_delivery_date if data else None
    )
    return SubscriptionReactivateResponse(
        subscription=SubscriptionResponse.model_validate(subscription),
        pause_duration_days=paused_days,
    )


@router.get("/{subscription_id}/schedule", response_model=SubscriptionScheduleResponse)
async def get_subscription_schedule(
    subscription_id: int,
    count: int = Query(7, ge=1, le=60),
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Next delivery and upcoming delivery dates"""
    subscription, schedule, dates = service.upcoming_schedule(subscription_id, count)
    return SubscriptionScheduleResponse(
        subscription_id=subscription.id,
        category=subscription.category,
        status=subscription.status,
        schedule=schedule,
        next_delivery_date=dates[0] if dates else subscription.next_delivery_date,
        upcoming_dates=dates,
    )

"""Pause eligibility rules and subscription status transitions"""

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Optional

from dateutil.relativedelta import relativedelta

from ...config import PAUSE_CUTOFF_HOUR, REACTIVATION_WINDOW_MONTHS
from ...models import (
    STATUS_ACTIVE,
    STATUS_ADMIN_PAUSED,
    STATUS_CANCELLED,
    STATUS_PAUSED,
)
from ...shared.clock import local_date, to_local
from .calendar import is_delivery_tomorrow

REJECT_DELIVERY_COMMITTED = "delivery_committed"
REJECT_PAST_CUTOFF = "past_cutoff"

# current status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    STATUS_ACTIVE: {STATUS_PAUSED, STATUS_ADMIN_PAUSED, STATUS_CANCELLED},
    STATUS_PAUSED: {STATUS_ACTIVE},
    STATUS_ADMIN_PAUSED: {STATUS_ACTIVE},
}


@dataclass(frozen=True)
class PauseEligibility:
    accepted: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    reactivation_deadline: Optional[datetime] = None


def _cutoff_label(cutoff_hour: int) -> str:
    suffix = "AM" if cutoff_hour < 12 else "PM"
    hour = cutoff_hour % 12 or 12
    return f"{hour} {suffix}"


def evaluate_pause_request(
    next_delivery: Optional[date],
    now: datetime,
    cutoff_hour: int = PAUSE_CUTOFF_HOUR,
    zone: Optional[tzinfo] = None,
) -> PauseEligibility:
    """Decide whether a subscriber may pause right now.

    Rules, in order:
      1. a delivery today (or already overdue) is committed and cannot be paused
      2. a delivery tomorrow cannot be paused once the local clock reaches the cutoff hour
      3. otherwise the pause is accepted with a reactivation deadline 3 months out

    A naive ``now`` is read as operating-local time; an aware one is converted.
    """
    local_now = to_local(now, zone)
    today = local_now.date()

    if next_delivery is not None:
        delivery_day = local_date(next_delivery, zone)
        if delivery_day <= today:
            return PauseEligibility(
                accepted=False,
                reason="Cannot pause subscription on the day of delivery",
                code=REJECT_DELIVERY_COMMITTED,
            )
        if is_delivery_tomorrow(delivery_day, local_now, zone) and local_now.hour >= cutoff_hour:
            return PauseEligibility(
                accepted=False,
                reason=(
                    f"Cannot pause after {_cutoff_label(cutoff_hour)} "
                    "when delivery is scheduled for tomorrow"
                ),
                code=REJECT_PAST_CUTOFF,
            )

    return PauseEligibility(
        accepted=True,
        reactivation_deadline=now + relativedelta(months=REACTIVATION_WINDOW_MONTHS),
    )


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def can_reactivate(pause_date: Optional[datetime], now: datetime) -> tuple[bool, int]:
    """Whether a self-paused subscription is still inside its reactivation window.

    Returns (allowed, whole days left). A subscription without a pause date has no
    window to enforce.
    """
    if pause_date is None:
        return True, 0
    deadline = pause_date + relativedelta(months=REACTIVATION_WINDOW_MONTHS)
    if now >= deadline:
        return False, 0
    return True, (deadline - now).days

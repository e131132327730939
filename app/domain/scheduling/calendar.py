"""Delivery date generation and next-delivery calculation.

Everything here is pure: inputs are calendar dates and an immutable policy snapshot,
nothing touches the database. The only I/O-adjacent helper is ``resolve_policy``,
which goes through the injected policy cache and falls back to the built-in default
cadence when the store is unreachable.

Cadence rule: starting from the start date, a cursor advances by ``gap_days`` (one day
for daily policies). A cursor that lands on the non-delivery weekday is moved forward
one day before it is emitted, and the next cursor is measured from the emitted date.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from itertools import islice
from typing import Iterator, Optional, Union

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import SQLAlchemyError

from ...config import NON_DELIVERY_WEEKDAY, PREVIEW_MAX_WINDOW
from ...shared.clock import local_date, to_local
from ...shared.errors import NotFound, PolicyUnavailable, ValidationError

logger = logging.getLogger(__name__)

MIN_GAP_DAYS = 1
MAX_GAP_DAYS = 30


@dataclass(frozen=True)
class PolicySnapshot:
    """Immutable view of a category's cadence policy"""

    category: str
    gap_days: int
    is_daily: bool
    description: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    is_default: bool = False

    @property
    def step_days(self) -> int:
        return 1 if self.is_daily else self.gap_days

    @property
    def schedule_label(self) -> str:
        if self.is_daily:
            return "Daily delivery"
        return f"Every {self.gap_days} days"


# Seeded at bootstrap and used when the policy store cannot be reached
DEFAULT_POLICIES = {
    "juices": PolicySnapshot("juices", 2, False, "Every other day", is_default=True),
    "fruit_bowls": PolicySnapshot("fruit_bowls", 1, True, "Daily delivery", is_default=True),
    "customized": PolicySnapshot("customized", 3, False, "Every 3 days", is_default=True),
}


@dataclass
class DeliverySchedule:
    start_date: date
    end_date: date
    delivery_dates: list[date] = field(default_factory=list)

    @property
    def total_deliveries(self) -> int:
        return len(self.delivery_dates)


DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def step_for(policy: PolicySnapshot) -> int:
    """Days between cadence cursors; rejects non-positive gaps"""
    if policy.is_daily:
        return 1
    if policy.gap_days is None or policy.gap_days < MIN_GAP_DAYS:
        raise ValidationError(
            f"Invalid delivery gap for {policy.category}: {policy.gap_days} (must be >= 1)",
            code="invalid_gap_days",
        )
    return policy.gap_days


def skip_excluded_weekday(day: date, excluded_weekday: Optional[int] = NON_DELIVERY_WEEKDAY) -> date:
    """Move a date that falls on the non-delivery weekday to the following day"""
    if excluded_weekday is not None and day.weekday() == excluded_weekday:
        return day + timedelta(days=1)
    return day


def iter_delivery_dates(
    start_date: DateLike,
    policy: PolicySnapshot,
    excluded_weekday: Optional[int] = NON_DELIVERY_WEEKDAY,
) -> Iterator[date]:
    """Unbounded, strictly increasing cadence starting at start_date"""
    step = step_for(policy)
    cursor = _as_date(start_date)
    while True:
        cursor = skip_excluded_weekday(cursor, excluded_weekday)
        yield cursor
        cursor = cursor + timedelta(days=step)


def subscription_end_date(start_date: DateLike, duration_months: int) -> date:
    return _as_date(start_date) + relativedelta(months=duration_months)


def generate_delivery_dates(
    start_date: DateLike,
    duration_months: int,
    policy: PolicySnapshot,
    excluded_weekday: Optional[int] = NON_DELIVERY_WEEKDAY,
) -> DeliverySchedule:
    """All delivery dates from start_date up to and including start + duration_months"""
    if duration_months is None or duration_months < 0:
        raise ValidationError(
            f"duration_months must be >= 0, got {duration_months}", code="invalid_duration"
        )
    start = _as_date(start_date)
    # Validate the policy even when no dates are produced
    step_for(policy)

    if duration_months == 0:
        return DeliverySchedule(start_date=start, end_date=start, delivery_dates=[])

    end = subscription_end_date(start, duration_months)
    dates = []
    for day in iter_delivery_dates(start, policy, excluded_weekday):
        if day > end:
            break
        dates.append(day)
    return DeliverySchedule(start_date=start, end_date=end, delivery_dates=dates)


def preview_delivery_dates(
    start_date: DateLike,
    policy: PolicySnapshot,
    preview_window: int = 14,
    excluded_weekday: Optional[int] = NON_DELIVERY_WEEKDAY,
) -> list[date]:
    """First preview_window dates of the cadence, for validating a policy before applying it"""
    if preview_window < 1 or preview_window > PREVIEW_MAX_WINDOW:
        raise ValidationError(
            f"preview_window must be between 1 and {PREVIEW_MAX_WINDOW}",
            code="invalid_preview_window",
        )
    return list(islice(iter_delivery_dates(start_date, policy, excluded_weekday), preview_window))


def earliest_deliverable_date(
    reference: DateLike,
    cutoff_hour: Optional[int] = None,
    zone: Optional[tzinfo] = None,
) -> date:
    """Tomorrow relative to the reference's local day; the day after when past the cutoff"""
    earliest = local_date(reference, zone) + timedelta(days=1)
    if cutoff_hour is not None and isinstance(reference, datetime):
        if to_local(reference, zone).hour >= cutoff_hour:
            earliest += timedelta(days=1)
    return earliest


def next_delivery_date(
    reference: DateLike,
    policy: PolicySnapshot,
    cutoff_hour: Optional[int] = None,
    anchor: Optional[date] = None,
    zone: Optional[tzinfo] = None,
    excluded_weekday: Optional[int] = NON_DELIVERY_WEEKDAY,
) -> date:
    """Single next valid delivery date after ``reference``.

    Without an anchor this is the earliest deliverable day, moved off the non-delivery
    weekday. With an anchor (a previous delivery date) it is the first date of the
    anchor's cadence at or after the earliest deliverable day. The result is always
    strictly later than the reference's calendar day.
    """
    step_for(policy)
    earliest = earliest_deliverable_date(reference, cutoff_hour, zone)

    if anchor is None:
        return skip_excluded_weekday(earliest, excluded_weekday)

    # After a weekday shift cadence dates are no longer anchor + k * step
    for day in iter_delivery_dates(anchor, policy, excluded_weekday):
        if day >= earliest:
            return day
    raise AssertionError("unreachable: cadence iterator is unbounded")


def is_delivery_today(delivery_date: DateLike, now: datetime, zone: Optional[tzinfo] = None) -> bool:
    return local_date(delivery_date, zone) == local_date(now, zone)


def is_delivery_tomorrow(delivery_date: DateLike, now: datetime, zone: Optional[tzinfo] = None) -> bool:
    return local_date(delivery_date, zone) == local_date(now, zone) + timedelta(days=1)


def resolve_policy(category: str, cache) -> PolicySnapshot:
    """Policy for a category through the cache, degrading to the built-in default.

    A healthy store that does not know the category raises NotFound. When the store
    itself fails, the conservative default is used; categories without a default raise
    PolicyUnavailable.
    """
    try:
        return cache.resolve(category)
    except NotFound:
        raise
    except (SQLAlchemyError, OSError) as e:
        default = DEFAULT_POLICIES.get(category)
        if default is None:
            logger.error(f"❌ No delivery policy available for {category}: {e}")
            raise PolicyUnavailable(
                f"Delivery policy for '{category}' is unavailable", code="policy_unavailable"
            ) from e
        logger.warning(f"⚠️ Policy store unavailable, using default cadence for {category}: {e}")
        return default

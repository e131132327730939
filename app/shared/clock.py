"""Operating-timezone clock helpers"""

from datetime import date, datetime, tzinfo
from typing import Optional

from dateutil import tz

from ..config import OPERATING_TIMEZONE

_operating_tz = None


def operating_tz() -> tzinfo:
    """Timezone all delivery-day decisions are made in"""
    global _operating_tz
    if _operating_tz is None:
        _operating_tz = tz.gettz(OPERATING_TIMEZONE) or tz.UTC
    return _operating_tz


def now_local() -> datetime:
    """Current aware time in the operating timezone"""
    return datetime.now(operating_tz())


def to_local(moment: datetime, zone: Optional[tzinfo] = None) -> datetime:
    """Convert an aware datetime to local time; naive values are taken as already local"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(zone or operating_tz())


def local_date(moment, zone: Optional[tzinfo] = None) -> date:
    """Calendar day of a date or datetime in the operating timezone"""
    if isinstance(moment, datetime):
        return to_local(moment, zone).date()
    return moment


def to_naive_utc(moment: datetime) -> datetime:
    """Storage form for timestamps (naive UTC, like the rest of the schema)"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(tz.UTC).replace(tzinfo=None)


def get_clock():
    """FastAPI dependency for the clock services read "now" from"""
    return now_local

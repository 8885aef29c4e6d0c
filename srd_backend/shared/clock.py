"""Business-local clock used by the booking calendar"""

from datetime import datetime
from zoneinfo import ZoneInfo

from ..config import BUSINESS_TIMEZONE

BUSINESS_TZ = ZoneInfo(BUSINESS_TIMEZONE)


def business_now() -> datetime:
    """Current wall-clock time in the business timezone, as a naive datetime"""
    return datetime.now(BUSINESS_TZ).replace(tzinfo=None)


def to_business_local(value: datetime) -> datetime:
    """Normalize an incoming timestamp to naive business-local time.

    Naive values are taken as already local. Aware values (e.g. ISO strings
    ending in Z from the booking widget) are converted first.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(BUSINESS_TZ).replace(tzinfo=None)

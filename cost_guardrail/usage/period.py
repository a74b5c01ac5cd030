from __future__ import annotations

from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import BILLING_TIMEZONE
from .types import BillingWindow


@lru_cache(maxsize=None)
def billing_tz(name: str = BILLING_TIMEZONE) -> ZoneInfo:
    return ZoneInfo(name)


def billing_period_start(now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> datetime:
    """First instant of the current calendar month in the billing timezone."""
    tz = tz or billing_tz()
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        raise ValueError("billing_period_start() needs a timezone-aware datetime")
    local = now.astimezone(tz)
    return local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def current_window(now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> BillingWindow:
    now = now or datetime.now(timezone.utc)
    return BillingWindow(start=billing_period_start(now, tz), end=now)


def billing_day(start_seconds: int, tz: Optional[ZoneInfo] = None) -> date:
    """Calendar day (billing timezone) an interval starting at `start_seconds` belongs to."""
    return datetime.fromtimestamp(start_seconds, tz or billing_tz()).date()

from .aggregate import aggregate, mark_enterprise, paid_usage_by_entity
from .period import billing_period_start, current_window
from .types import BillingWindow, Point, QuotaPolicy, TimeSeriesEntry

__all__ = [
    "aggregate",
    "mark_enterprise",
    "paid_usage_by_entity",
    "billing_period_start",
    "current_window",
    "BillingWindow",
    "Point",
    "QuotaPolicy",
    "TimeSeriesEntry",
]

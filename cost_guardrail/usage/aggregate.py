"""Reduce raw time series into billable usage totals.

Three rules shape every total:

* zero samples carry no information and are skipped, even for quota buckets;
* a negative, non-finite or non-numeric sample aborts the calculation
  (UsageDataError);
* only the designated free-tier sub-resource gets a daily allowance. Its
  samples are bucketed per calendar day in the billing timezone, the allowance
  is subtracted per day (floored at zero) and the paid remainders are summed.

Firestore editions
------------------
Standard-edition metrics (read_ops_count, ...) are reported for Enterprise
databases too, but those databases are billed through read/write *units*.
Counting both would bill the same operations twice, so the Firestore charge
model runs a small two-phase pipeline:

    enterprise = mark_enterprise(enterprise_reads) | mark_enterprise(enterprise_writes)
    standard_reads = aggregate(standard_reads, quota, exclude=enterprise)

The enterprise set is a plain value built for one calculation and passed on
explicitly; nothing is shared across runs.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date
from typing import AbstractSet, Dict, FrozenSet, Iterable, Iterator, Optional
from zoneinfo import ZoneInfo

from ..errors import UsageDataError
from .period import billing_day, billing_tz
from .types import DATABASE_ID_LABEL, Number, Point, QuotaPolicy, TimeSeriesEntry


def _checked(value: Number, metric: str) -> Number:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UsageDataError(f"Invalid {metric or 'usage'} sample {value!r} - not a number")
    # Python ints are always finite; only floats can be NaN/Infinite.
    if isinstance(value, float) and not math.isfinite(value):
        raise UsageDataError(f"Invalid {metric or 'usage'} sample - NaN/Infinite")
    if value < 0:
        raise UsageDataError(f"Invalid {metric or 'usage'} sample {value!r} - must not be negative")
    return value


def _nonzero_points(entry: TimeSeriesEntry, metric: str) -> Iterator[Point]:
    for point in entry.points:
        if _checked(point.value, metric) == 0:
            continue
        yield point


def entry_sum(entry: TimeSeriesEntry, metric: str = "") -> Number:
    """Flat sum of an entry's samples (no quota)."""
    total: Number = 0
    for point in _nonzero_points(entry, metric):
        total += point.value
    return total


def daily_usage(
    entries: Iterable[TimeSeriesEntry],
    metric: str = "",
    tz: Optional[ZoneInfo] = None,
) -> Dict[date, Number]:
    """Sum samples of `entries` per calendar day in the billing timezone."""
    tz = tz or billing_tz()
    per_day: Dict[date, Number] = defaultdict(int)
    for entry in entries:
        for point in _nonzero_points(entry, metric):
            per_day[billing_day(point.start_seconds, tz)] += point.value
    return dict(per_day)


def paid_daily_usage(per_day: Dict[date, Number], daily_free: Number) -> Number:
    total: Number = 0
    for used in per_day.values():
        total += max(0, used - daily_free)
    return total


def mark_enterprise(
    entries: Iterable[TimeSeriesEntry],
    id_label: str = DATABASE_ID_LABEL,
) -> FrozenSet[str]:
    """Identities observed under an enterprise-only metric."""
    return frozenset(entry.resource_label(id_label) for entry in entries)


def paid_usage_by_entity(
    entries: Iterable[TimeSeriesEntry],
    quota: Optional[QuotaPolicy] = None,
    *,
    exclude: AbstractSet[str] = frozenset(),
    id_label: Optional[str] = None,
    metric: str = "",
    tz: Optional[ZoneInfo] = None,
) -> Dict[str, Number]:
    """Paid usage per sub-resource identity.

    `id_label` defaults to the quota's identity label (database_id). Entries of
    the free-tier identity are merged before the daily allowance applies, so a
    database split over several metric labels still gets a single allowance
    per day.
    """
    label = id_label or (quota.id_label if quota else DATABASE_ID_LABEL)

    totals: Dict[str, Number] = {}
    free_tier_entries = []
    for entry in entries:
        identity = entry.resource_label(label)
        if identity in exclude:
            continue
        if quota is not None and quota.applies_to(identity):
            free_tier_entries.append(entry)
            continue
        totals[identity] = totals.get(identity, 0) + entry_sum(entry, metric)

    if free_tier_entries:
        per_day = daily_usage(free_tier_entries, metric, tz)
        identity = quota.free_tier_id
        totals[identity] = totals.get(identity, 0) + paid_daily_usage(per_day, quota.daily_free)

    return totals


def aggregate(
    entries: Iterable[TimeSeriesEntry],
    quota: Optional[QuotaPolicy] = None,
    *,
    exclude: AbstractSet[str] = frozenset(),
    id_label: Optional[str] = None,
    metric: str = "",
    tz: Optional[ZoneInfo] = None,
) -> Number:
    """Grand total of paid usage for one metric across all sub-resources."""
    by_entity = paid_usage_by_entity(
        entries, quota, exclude=exclude, id_label=id_label, metric=metric, tz=tz
    )
    total: Number = 0
    for value in by_entity.values():
        total += value
    return total


__all__ = [
    "aggregate",
    "daily_usage",
    "entry_sum",
    "mark_enterprise",
    "paid_daily_usage",
    "paid_usage_by_entity",
]

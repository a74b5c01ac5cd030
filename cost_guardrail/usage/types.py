from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Tuple, Union

Number = Union[int, float]

UNKNOWN_LABEL = "unknown"
DATABASE_ID_LABEL = "database_id"


@dataclass(frozen=True)
class Point:
    """One aligned sample: interval start (unix seconds) and its value."""

    start_seconds: int
    value: Number


@dataclass(frozen=True)
class TimeSeriesEntry:
    """One metered stream for one sub-resource (database, site, bucket, revision)."""

    resource_labels: Mapping[str, str] = field(default_factory=dict)
    metric_labels: Mapping[str, str] = field(default_factory=dict)
    points: Tuple[Point, ...] = ()

    def resource_label(self, key: str, default: str = UNKNOWN_LABEL) -> str:
        value = self.resource_labels.get(key)
        return value if value else default

    def metric_label(self, *keys: str, default: str = UNKNOWN_LABEL) -> str:
        for key in keys:
            value = self.metric_labels.get(key)
            if value:
                return value
        return default


@dataclass(frozen=True)
class QuotaPolicy:
    """Daily free allowance granted to exactly one designated sub-resource."""

    daily_free: Number
    free_tier_id: Optional[str] = None
    id_label: str = DATABASE_ID_LABEL

    def applies_to(self, identity: str) -> bool:
        return bool(self.free_tier_id) and identity == self.free_tier_id


@dataclass(frozen=True)
class BillingWindow:
    """Query window: start of the billing month up to `end`."""

    start: datetime
    end: datetime

    @property
    def start_seconds(self) -> int:
        return int(self.start.timestamp())

    @property
    def end_seconds(self) -> int:
        return int(self.end.timestamp())

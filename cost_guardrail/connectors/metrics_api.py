# cost_guardrail/connectors/metrics_api.py
"""Cloud Monitoring connector.

Fetches aligned time series for one metric type and converts them into plain
TimeSeriesEntry values, so nothing past this module touches protobufs.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol

from google.cloud import monitoring_v3

from ..config import ALIGNMENT_PERIOD_SECONDS
from ..errors import UsageDataError
from ..usage.types import Number, Point, TimeSeriesEntry

_LOGGER = logging.getLogger(__name__)


class MetricsSource(Protocol):
    async def fetch_time_series(
        self,
        project_id: str,
        metric_type: str,
        start: datetime,
        end: datetime,
    ) -> List[TimeSeriesEntry]: ...


def build_request(
    project_id: str,
    metric_type: str,
    start: datetime,
    end: datetime,
) -> monitoring_v3.ListTimeSeriesRequest:
    interval = monitoring_v3.TimeInterval(
        {
            "start_time": {"seconds": int(start.timestamp())},
            "end_time": {"seconds": int(end.timestamp())},
        }
    )
    # Pre-aggregate server side: less data to page through and sum here.
    aggregation = monitoring_v3.Aggregation(
        {
            "alignment_period": {"seconds": ALIGNMENT_PERIOD_SECONDS},
            "per_series_aligner": monitoring_v3.Aggregation.Aligner.ALIGN_SUM,
        }
    )
    return monitoring_v3.ListTimeSeriesRequest(
        name=f"projects/{project_id}",
        filter=f'metric.type = "{metric_type}"',
        interval=interval,
        aggregation=aggregation,
        view=monitoring_v3.ListTimeSeriesRequest.TimeSeriesView.FULL,
    )


def point_value(typed_value: monitoring_v3.TypedValue, metric_type: str = "") -> Number:
    """Decode a TypedValue by its populated kind.

    Counters (ops, bytes, requests) arrive as int64_value and time-based metrics
    (CPU seconds, GiB-seconds) as double_value. A sample of zero is a real value
    of either kind, not a string to compare against.
    """
    kind = monitoring_v3.TypedValue.pb(typed_value).WhichOneof("value")
    if kind == "int64_value":
        return int(typed_value.int64_value)
    if kind == "double_value":
        return float(typed_value.double_value)
    if kind is None:
        return 0
    raise UsageDataError(f"Unsupported value kind '{kind}' in {metric_type or 'time series'}")


def entry_from_series(series: monitoring_v3.TimeSeries, metric_type: str = "") -> TimeSeriesEntry:
    points = tuple(
        Point(
            start_seconds=int(p.interval.start_time.timestamp()),
            value=point_value(p.value, metric_type),
        )
        for p in series.points
    )
    return TimeSeriesEntry(
        resource_labels=dict(series.resource.labels),
        metric_labels=dict(series.metric.labels),
        points=points,
    )


class CloudMonitoringSource:
    """MetricsSource backed by the Cloud Monitoring async API."""

    def __init__(self, client: Optional[monitoring_v3.MetricServiceAsyncClient] = None):
        self._client = client

    @property
    def client(self) -> monitoring_v3.MetricServiceAsyncClient:
        if self._client is None:
            self._client = monitoring_v3.MetricServiceAsyncClient()
        return self._client

    async def fetch_time_series(
        self,
        project_id: str,
        metric_type: str,
        start: datetime,
        end: datetime,
    ) -> List[TimeSeriesEntry]:
        request = build_request(project_id, metric_type, start, end)
        pager = await self.client.list_time_series(request=request)

        entries: List[TimeSeriesEntry] = []
        async for series in pager:
            entries.append(entry_from_series(series, metric_type))
        _LOGGER.debug("Fetched %d time series for %s", len(entries), metric_type)
        return entries


__all__ = [
    "CloudMonitoringSource",
    "MetricsSource",
    "build_request",
    "entry_from_series",
    "point_value",
]

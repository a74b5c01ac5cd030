"""Cloud Functions source entry: `--entry-point monitor_scheduled` or `monitor_http`."""

from cost_guardrail.entrypoints import monitor_http, monitor_scheduled

__all__ = ["monitor_http", "monitor_scheduled"]

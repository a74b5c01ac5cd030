#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
config.py

Configuration constants and defaults for the cost guardrail.

Key idea: the billing period is NOT local time
----------------------------------------------
Google computes the billing period of every account in Pacific Time,
regardless of where the account or this function lives. Every "start of month"
and every "calendar day" used for free quotas is therefore computed in
BILLING_TIMEZONE, never in the host timezone.

Runtime settings (enable flag, budget id, free-tier database, project id) are
read per invocation through MonitorSettings.from_env(), so tests can pass an
explicit mapping instead of mutating os.environ.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

# ---------------------------------------------------------------------
# Billing conventions (fixed, must match the provider)
# ---------------------------------------------------------------------
# BILLING_TIMEZONE:
# - Timezone used by Cloud Billing for period boundaries and daily quotas.
BILLING_TIMEZONE = "America/Los_Angeles"

# SUPPORTED_CURRENCY:
# - The only budget currency accepted. Unit prices are USD, so a budget in any
#   other currency cannot be compared without a conversion we refuse to guess.
SUPPORTED_CURRENCY = "USD"

# ---------------------------------------------------------------------
# Unit conversions
# ---------------------------------------------------------------------
BYTES_PER_GB = 1024 * 1024 * 1024
OPERATIONS_PER_MILLION = 1_000_000
NANOS_PER_UNIT = 1_000_000_000

# ---------------------------------------------------------------------
# Cloud Monitoring query shape
# ---------------------------------------------------------------------
# ALIGNMENT_PERIOD_SECONDS:
# - Samples are pre-aggregated server side with ALIGN_SUM.
# - 1 hour is the largest period that still avoids DST artefacts (23/25 hour days).
ALIGNMENT_PERIOD_SECONDS = 3600

# LARGE_RESPONSE_LOG_LIMIT:
# - Above this many sub-resources (buckets), per-entry diagnostics are skipped.
LARGE_RESPONSE_LOG_LIMIT = 100

# ---------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------
MONITORING_ENABLED_ENV = "MONITORING_ENABLED"
BUDGET_ID_ENV = "MONITOR_BUDGET_ID"
FREE_TIER_DATABASE_ENV = "FIRESTORE_FREE_TIER_DATABASE_NAME"
ALERT_WEBHOOK_ENV = "MONITOR_ALERT_WEBHOOK_URL"
PROJECT_ID_ENVS = ("GOOGLE_CLOUD_PROJECT", "GCP_PROJECT", "GCLOUD_PROJECT")
FIREBASE_CONFIG_ENV = "FIREBASE_CONFIG"

# DEFAULT_LOG_LEVEL / TRACE_PATH:
# - Operability knobs; the CLI flags override both.
DEFAULT_LOG_LEVEL = os.getenv("COST_GUARDRAIL_LOG_LEVEL", "INFO")
TRACE_PATH = os.getenv("COST_GUARDRAIL_TRACE", "").strip()

# ---------------------------------------------------------------------
# Monitoring modes
# ---------------------------------------------------------------------
#   - "enabled"  : breach -> disable action
#   - "test"     : breach is logged only (dry run)
#   - "disabled" : the run is a no-op
MODE_ENABLED = "enabled"
MODE_TEST = "test"
MODE_DISABLED = "disabled"
MONITOR_MODES = (MODE_ENABLED, MODE_TEST, MODE_DISABLED)


def parse_mode(raw: Optional[str]) -> str:
    """Map MONITORING_ENABLED to a mode. Only explicit values turn monitoring on."""
    value = (raw or "").strip().lower()
    if value == "true":
        return MODE_ENABLED
    if value == "test":
        return MODE_TEST
    return MODE_DISABLED


def resolve_project_id(env: Mapping[str, str]) -> Optional[str]:
    for key in PROJECT_ID_ENVS:
        value = (env.get(key) or "").strip()
        if value:
            return value

    # Firebase extensions only expose the project through FIREBASE_CONFIG.
    raw = env.get(FIREBASE_CONFIG_ENV)
    if raw:
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if isinstance(data, dict) and data.get("projectId"):
            return str(data["projectId"]).strip() or None
    return None


@dataclass(frozen=True)
class MonitorSettings:
    """Settings for one monitor run."""

    project_id: Optional[str]
    budget_id: Optional[str]
    mode: str = MODE_DISABLED
    free_tier_database_id: Optional[str] = None
    alert_webhook_url: Optional[str] = None
    # Raw environment, consulted for per-resource price overrides.
    env: Mapping[str, str] = field(default_factory=dict, repr=False)

    @property
    def dry_run(self) -> bool:
        return self.mode == MODE_TEST

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "MonitorSettings":
        env = dict(os.environ if env is None else env)
        free_tier = (env.get(FREE_TIER_DATABASE_ENV) or "").strip() or None
        webhook = (env.get(ALERT_WEBHOOK_ENV) or "").strip() or None
        return cls(
            project_id=resolve_project_id(env),
            # Validated by the budget fetcher, which owns that failure.
            budget_id=env.get(BUDGET_ID_ENV),
            mode=parse_mode(env.get(MONITORING_ENABLED_ENV)),
            free_tier_database_id=free_tier,
            alert_webhook_url=webhook,
            env=env,
        )

#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Cost guardrail - CLI

Flow:
- Builds MonitorSettings from the environment (the same variables the cloud
  function reads), then applies the command line overrides.
- Runs one monitor pass against the live Monitoring / Billing APIs.
- Prints the cost breakdown as a Markdown report or as JSON.

Use `--mode test` to see what the guardrail would do without the disable action.
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
import uuid
from typing import List, Optional

from rich.console import Console
from rich.markdown import Markdown

from .config import DEFAULT_LOG_LEVEL, MODE_ENABLED, MODE_TEST, TRACE_PATH, MonitorSettings
from .errors import GuardrailError
from .monitor import run_with_google
from .reporting.format import render_report
from .utils.trace import build_trace_logger

console = Console()


# --------------------------------------------------------------------
# Argument parsing
# --------------------------------------------------------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cost-guardrail",
        description=(
            "Usage-based cost guardrail for Firebase / Google Cloud projects.\n\n"
            "Polls Firestore, Hosting, Cloud Storage and Cloud Run usage for the current\n"
            "billing month, prices it and compares the total against a Cloud Billing budget.\n"
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--project",
        type=str,
        default=None,
        help="Project id to check (default: GOOGLE_CLOUD_PROJECT / FIREBASE_CONFIG).",
    )

    parser.add_argument(
        "--budget-id",
        type=str,
        default=None,
        help="Cloud Billing budget id (default: MONITOR_BUDGET_ID).",
    )

    parser.add_argument(
        "--mode",
        choices=["env", MODE_ENABLED, MODE_TEST],
        default="env",
        help=(
            "How a breach is handled.\n"
            "  - env: follow MONITORING_ENABLED.\n"
            "  - enabled: run the disable action on a breach.\n"
            "  - test: log the breach only."
        ),
    )

    parser.add_argument(
        "--output-format",
        choices=["markdown", "json"],
        default="markdown",
        help="Report format printed on stdout.",
    )

    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        default=DEFAULT_LOG_LEVEL,
        help="Logging level (DEBUG = more verbose).",
    )

    parser.add_argument(
        "--trace-path",
        type=str,
        default=TRACE_PATH or None,
        help="Append a JSONL trace of the run to this file.",
    )

    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace, env=None) -> MonitorSettings:
    settings = MonitorSettings.from_env(env)
    overrides = {}
    if args.project:
        overrides["project_id"] = args.project.strip()
    if args.budget_id:
        overrides["budget_id"] = args.budget_id
    if args.mode != "env":
        overrides["mode"] = args.mode
    return dataclasses.replace(settings, **overrides) if overrides else settings


# --------------------------------------------------------------------
# Main
# --------------------------------------------------------------------
def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    logger = logging.getLogger("cost_guardrail")

    settings = build_settings(args)
    logger.debug("Settings: %s", settings)
    trace = build_trace_logger(args.trace_path, run_id=uuid.uuid4().hex[:12])

    try:
        result = asyncio.run(run_with_google(settings, trace=trace))
    except GuardrailError as ex:
        console.print(f"[red]Guardrail run aborted:[/red] {ex}")
        sys.exit(2)

    if result is None:
        console.print("[yellow]Monitoring is disabled (MONITORING_ENABLED is not 'true' or 'test').[/yellow]")
        return

    if args.output_format == "json":
        console.print_json(json.dumps(result.to_dict()))
        return

    console.print(Markdown(render_report(result.to_dict())))
    if result.breached and not result.disabled:
        console.print("[yellow]Budget exceeded - test mode, disable action not executed.[/yellow]")


if __name__ == "__main__":
    main()

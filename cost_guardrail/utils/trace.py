"""Append-only JSONL audit trail of monitor runs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class TraceLogger:
    """One JSON object per phase: setup, budget, resource_cost, decision, disable, failure."""

    path: Path
    enabled: bool = True
    run_id: Optional[str] = None
    _initialized: bool = field(default=False, init=False, repr=False)

    def _ensure_parent(self) -> None:
        if self._initialized:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = True

    def log(self, phase: str, payload: Dict[str, Any], *, resource: Optional[str] = None) -> None:
        if not self.enabled:
            return

        self._ensure_parent()
        event: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "phase": phase,
            "payload": payload,
        }
        if self.run_id:
            event["run_id"] = self.run_id
        if resource:
            event["resource"] = resource

        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")


def build_trace_logger(path: Optional[Path | str], enabled: bool = True, run_id: Optional[str] = None) -> Optional[TraceLogger]:
    if not path:
        return None
    return TraceLogger(Path(path), enabled=enabled, run_id=run_id)


__all__ = ["TraceLogger", "build_trace_logger"]

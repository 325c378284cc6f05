from __future__ import annotations

import csv
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

CSV_FILENAME = "agent_calls.csv"
CSV_COLUMNS = [
    "timestamp",
    "component",
    "agent",
    "latency_ms",
    "success",
    "session_id",
]

_csv_lock = threading.Lock()


def metrics_path() -> Path:
    """Location of the metrics CSV; `METRICS_DIR` overrides the default `./metrics`."""
    base = os.getenv("METRICS_DIR") or "metrics"
    return Path(base) / CSV_FILENAME


def _ensure_csv_header(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        return
    with _csv_lock:
        if path.exists():
            return
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
            writer.writeheader()


def _coerce_number(value: Any) -> Optional[float]:
    try:
        if value is None or value == "":
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value in ("True", "true", "1"):
        return True
    if value in ("False", "false", "0"):
        return False
    return None


def log_metric(
    component: str,
    agent: Optional[str],
    *,
    latency_ms: Optional[float] = None,
    success: Optional[bool] = None,
    session_id: Optional[str] = None,
) -> None:
    """Append a metric row to the CSV log (best effort)."""
    row = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "component": component,
        "agent": agent or "",
        "latency_ms": round(latency_ms, 3) if latency_ms is not None else "",
        "success": "" if success is None else success,
        "session_id": session_id or "",
    }
    path = metrics_path()
    try:
        _ensure_csv_header(path)
        with _csv_lock:
            with path.open("a", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
                writer.writerow(row)
    except OSError as exc:
        # Metrics must never break a conversation.
        logger.warning("metric_write_failed", extra={"component": component, "error": str(exc)})


@dataclass
class MetricTimer:
    component: str
    agent: Optional[str]
    session_id: Optional[str]
    success: Optional[bool] = None
    _start: float = field(default_factory=time.perf_counter)

    def done(self) -> None:
        latency_ms = (time.perf_counter() - self._start) * 1000
        log_metric(
            self.component,
            self.agent,
            latency_ms=latency_ms,
            success=self.success,
            session_id=self.session_id,
        )


def start_timer(component: str, agent: Optional[str], session_id: Optional[str] = None) -> MetricTimer:
    """Convenience helper to measure elapsed time + submit a metric."""
    return MetricTimer(component=component, agent=agent, session_id=session_id)


@contextmanager
def timed_operation(
    component: str, agent: Optional[str], session_id: Optional[str] = None
) -> Iterator[MetricTimer]:
    """Context manager wrapper to log latency for arbitrary operations.

    Callers flag the outcome through ``timer.success`` before the block exits.
    """
    timer = start_timer(component, agent, session_id)
    try:
        yield timer
    finally:
        timer.done()


def fetch_metrics(limit: int = 500) -> List[Dict[str, Any]]:
    """Return up to ``limit`` rows from the local CSV log."""
    path = metrics_path()
    if not path.exists():
        return []
    rows: List[Dict[str, Any]] = []
    try:
        with path.open("r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for idx, row in enumerate(reader):
                if idx >= limit:
                    break
                rows.append(row)
    except OSError as exc:
        logger.warning("metric_read_failed", extra={"error": str(exc)})
        return []
    return rows


def summarize_metrics(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Compute average latency and failure rate per agent."""
    latency_by_agent: Dict[str, List[float]] = {}
    calls_by_agent: Dict[str, int] = {}
    failures_by_agent: Dict[str, int] = {}
    for row in records:
        agent = row.get("agent") or "unknown"
        calls_by_agent[agent] = calls_by_agent.get(agent, 0) + 1
        latency = _coerce_number(row.get("latency_ms"))
        if latency is not None:
            latency_by_agent.setdefault(agent, []).append(latency)
        if _coerce_bool(row.get("success")) is False:
            failures_by_agent[agent] = failures_by_agent.get(agent, 0) + 1
    avg_latency = {
        agent: round(sum(vals) / len(vals), 3) for agent, vals in latency_by_agent.items() if vals
    }
    failure_rate = {
        agent: round(failures_by_agent.get(agent, 0) / count, 3) for agent, count in calls_by_agent.items()
    }
    return {
        "average_latency_ms": avg_latency,
        "failure_rate": failure_rate,
        "sample_size": len(records),
    }

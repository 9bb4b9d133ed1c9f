"""Structured logging and in-memory metrics for water risk assessment."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from threading import Lock
from typing import Any


OBSERVATION_TYPES = ("report", "water-test", "user-added")


def configure_logging(level: str) -> None:
    """Configure service logging format once."""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
    )


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Emit a structured log event as one JSON line."""

    payload = {
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
        "event": event,
        **fields,
    }
    logger.info(json.dumps(payload, default=str, separators=(",", ":")))


class AssessmentMetrics:
    """Thread-safe in-memory metrics for risk assessments."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self.requests_total = {kind: 0 for kind in OBSERVATION_TYPES}
            self.success_total = {kind: 0 for kind in OBSERVATION_TYPES}
            self.errors_total = {kind: 0 for kind in OBSERVATION_TYPES}
            self.latency_ms_sum = 0.0
            self.latency_ms_count = 0
            self.last_risk_percentage = 0

    def record_request(self, kind: str) -> None:
        with self._lock:
            self.requests_total[kind] = self.requests_total.get(kind, 0) + 1

    def record_success(self, kind: str, latency_ms: float, risk_percentage: int) -> None:
        with self._lock:
            self.success_total[kind] = self.success_total.get(kind, 0) + 1
            self.latency_ms_sum += max(latency_ms, 0.0)
            self.latency_ms_count += 1
            self.last_risk_percentage = max(0, min(100, risk_percentage))

    def record_error(self, kind: str, latency_ms: float) -> None:
        with self._lock:
            self.errors_total[kind] = self.errors_total.get(kind, 0) + 1
            self.latency_ms_sum += max(latency_ms, 0.0)
            self.latency_ms_count += 1

    def render_prometheus(self) -> str:
        with self._lock:
            lines = [
                "# HELP water_risk_assess_requests_total Total assessment requests received.",
                "# TYPE water_risk_assess_requests_total counter",
                *(
                    f'water_risk_assess_requests_total{{type="{kind}"}} {count}'
                    for kind, count in self.requests_total.items()
                ),
                "# HELP water_risk_assess_success_total Total successful assessments.",
                "# TYPE water_risk_assess_success_total counter",
                *(
                    f'water_risk_assess_success_total{{type="{kind}"}} {count}'
                    for kind, count in self.success_total.items()
                ),
                "# HELP water_risk_assess_errors_total Total failed assessments.",
                "# TYPE water_risk_assess_errors_total counter",
                *(
                    f'water_risk_assess_errors_total{{type="{kind}"}} {count}'
                    for kind, count in self.errors_total.items()
                ),
                "# HELP water_risk_assess_latency_ms_sum Sum of assessment latency in milliseconds.",
                "# TYPE water_risk_assess_latency_ms_sum counter",
                f"water_risk_assess_latency_ms_sum {self.latency_ms_sum:.3f}",
                "# HELP water_risk_assess_latency_ms_count Number of latency observations.",
                "# TYPE water_risk_assess_latency_ms_count counter",
                f"water_risk_assess_latency_ms_count {self.latency_ms_count}",
                "# HELP water_risk_assess_last_percentage Last computed risk percentage.",
                "# TYPE water_risk_assess_last_percentage gauge",
                f"water_risk_assess_last_percentage {self.last_risk_percentage}",
            ]
        return "\n".join(lines) + "\n"


_metrics = AssessmentMetrics()


def get_metrics() -> AssessmentMetrics:
    """Return singleton metrics collector."""

    return _metrics

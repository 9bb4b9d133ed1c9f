"""Event payload builders for computed location risk."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from .engine import KitTestResult, RiskOutcome


MARKER_SOURCES = {
    "report": "community_report",
    "water-test": "water_test",
    "user-added": "user_added",
}


def report_metadata(*, symptoms: list[str], affected_count: int, notes: str) -> dict[str, Any]:
    return {
        "symptoms": list(symptoms),
        "affected_count": affected_count,
        "notes": notes,
    }


def water_test_metadata(result: KitTestResult, *, test_date: str, notes: str = "") -> dict[str, Any]:
    return {
        "kit": result.kit.kit,
        "overall_risk": result.overall_risk,
        "confidence": round(result.confidence, 4),
        "critical_parameters": result.critical_count,
        "total_parameters": result.total_parameters,
        "test_date": test_date,
        "notes": notes,
    }


def marker_metadata(*, title: str, description: str, category: str) -> dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "category": category,
    }


def build_location_risk_computed_event(
    *,
    location: str,
    coordinates: dict[str, float] | None,
    marker_type: str,
    outcome: RiskOutcome,
    metadata: dict[str, Any],
    evaluated_at: datetime,
    trace_id: str,
    produced_by: str,
) -> dict[str, Any]:
    """Build `location.risk.computed` event envelope."""

    return {
        "event_id": str(uuid4()),
        "event_type": "location.risk.computed",
        "event_version": "v1",
        "occurred_at": evaluated_at.isoformat(),
        "produced_by": produced_by,
        "trace_id": trace_id,
        "data": {
            "location": location,
            "coordinates": coordinates,
            "marker_type": marker_type,
            "source": MARKER_SOURCES.get(marker_type, marker_type),
            "risk_percentage": outcome.percentage,
            "risk_category": outcome.category,
            "evaluated_at": evaluated_at.isoformat(),
            "metadata": metadata,
        },
    }

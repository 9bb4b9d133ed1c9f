"""Observation intake around the risk engine.

Submissions arrive already shaped by the transport layer. This module
validates them, runs the matching engine path, records metrics and hands back
the outcome together with the `location.risk.computed` event that storage and
map rendering consume.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from time import perf_counter
from typing import Any, Callable
from uuid import uuid4

from .catalog import KitCatalog, load_catalog
from .config import Settings, get_settings
from .engine import (
    KitTestResult,
    RiskOutcome,
    aggregate_kit_result,
    assess_annotation,
    assess_kit_test,
    assess_report,
    recommendations_for,
)
from .events import (
    build_location_risk_computed_event,
    marker_metadata,
    report_metadata,
    water_test_metadata,
)
from .observability import AssessmentMetrics, configure_logging, get_metrics, log_event
from .schemas import (
    CommunityReportSubmission,
    LocatedSubmission,
    UserMarkerSubmission,
    WaterTestSubmission,
)

logger = logging.getLogger("water_risk")


@dataclass(frozen=True)
class Assessment:
    """Outcome of one intake call."""

    outcome: RiskOutcome
    event: dict[str, Any]
    kit_result: KitTestResult | None = None
    recommendations: tuple[str, ...] = ()


_Computation = Callable[[datetime], tuple[RiskOutcome, dict[str, Any], KitTestResult | None]]


class RiskAssessmentService:
    """Turns community reports, kit tests and user markers into risk events."""

    def __init__(
        self,
        settings: Settings,
        *,
        catalog: KitCatalog | None = None,
        metrics: AssessmentMetrics | None = None,
    ) -> None:
        self._settings = settings
        self._catalog = catalog if catalog is not None else load_catalog(settings.catalog_path)
        self._metrics = metrics if metrics is not None else get_metrics()

    @property
    def catalog(self) -> KitCatalog:
        return self._catalog

    def assess_community_report(
        self,
        payload: CommunityReportSubmission | dict[str, Any],
        *,
        trace_id: str | None = None,
        evaluated_at: datetime | None = None,
    ) -> Assessment:
        report = (
            payload
            if isinstance(payload, CommunityReportSubmission)
            else CommunityReportSubmission.model_validate(payload)
        )

        def compute(_: datetime) -> tuple[RiskOutcome, dict[str, Any], None]:
            outcome = assess_report(report.affected_count, report.symptoms)
            metadata = report_metadata(
                symptoms=report.symptoms,
                affected_count=report.affected_count,
                notes=report.notes,
            )
            return outcome, metadata, None

        return self._assess("report", report, compute, trace_id=trace_id, evaluated_at=evaluated_at)

    def assess_water_test(
        self,
        payload: WaterTestSubmission | dict[str, Any],
        *,
        trace_id: str | None = None,
        evaluated_at: datetime | None = None,
    ) -> Assessment:
        submission = (
            payload if isinstance(payload, WaterTestSubmission) else WaterTestSubmission.model_validate(payload)
        )

        def compute(at: datetime) -> tuple[RiskOutcome, dict[str, Any], KitTestResult]:
            kit = self._catalog.require(submission.kit)
            result = aggregate_kit_result(kit, submission.parameters)
            metadata = water_test_metadata(
                result,
                test_date=submission.test_date or at.date().isoformat(),
                notes=submission.notes,
            )
            return assess_kit_test(result), metadata, result

        return self._assess("water-test", submission, compute, trace_id=trace_id, evaluated_at=evaluated_at)

    def assess_user_marker(
        self,
        payload: UserMarkerSubmission | dict[str, Any],
        *,
        trace_id: str | None = None,
        evaluated_at: datetime | None = None,
    ) -> Assessment:
        marker = payload if isinstance(payload, UserMarkerSubmission) else UserMarkerSubmission.model_validate(payload)

        def compute(_: datetime) -> tuple[RiskOutcome, dict[str, Any], None]:
            metadata = marker_metadata(
                title=marker.title,
                description=marker.description,
                category=marker.category,
            )
            return assess_annotation(marker.risk_percentage), metadata, None

        return self._assess("user-added", marker, compute, trace_id=trace_id, evaluated_at=evaluated_at)

    def _assess(
        self,
        marker_type: str,
        submission: LocatedSubmission,
        compute: _Computation,
        *,
        trace_id: str | None,
        evaluated_at: datetime | None,
    ) -> Assessment:
        started = perf_counter()
        trace_id = (trace_id or "").strip() or uuid4().hex
        if self._settings.metrics_enabled:
            self._metrics.record_request(marker_type)

        log_event(
            logger,
            "location_risk_request",
            marker_type=marker_type,
            location=submission.location,
            trace_id=trace_id,
        )

        try:
            at = evaluated_at or datetime.now(tz=timezone.utc)
            outcome, metadata, kit_result = compute(at)
            event = build_location_risk_computed_event(
                location=submission.location,
                coordinates=submission.coordinates,
                marker_type=marker_type,
                outcome=outcome,
                metadata=metadata,
                evaluated_at=at,
                trace_id=trace_id,
                produced_by=self._settings.event_produced_by,
            )
            latency_ms = (perf_counter() - started) * 1000.0
            if self._settings.metrics_enabled:
                self._metrics.record_success(marker_type, latency_ms, outcome.percentage)

            log_event(
                logger,
                "location_risk_computed_event",
                marker_type=marker_type,
                location=submission.location,
                trace_id=trace_id,
                risk_percentage=outcome.percentage,
                risk_category=outcome.category,
                latency_ms=round(latency_ms, 3),
            )
        except Exception as exc:
            latency_ms = (perf_counter() - started) * 1000.0
            if self._settings.metrics_enabled:
                self._metrics.record_error(marker_type, latency_ms)
            log_event(
                logger,
                "location_risk_error",
                marker_type=marker_type,
                location=submission.location,
                trace_id=trace_id,
                latency_ms=round(latency_ms, 3),
                error=str(exc),
            )
            raise

        return Assessment(
            outcome=outcome,
            event=event,
            kit_result=kit_result,
            recommendations=recommendations_for(kit_result.overall_risk) if kit_result else (),
        )


def create_service(settings: Settings | None = None) -> RiskAssessmentService:
    """Configure logging and build a service from environment settings."""

    resolved = settings or get_settings()
    configure_logging(resolved.log_level)
    return RiskAssessmentService(resolved)

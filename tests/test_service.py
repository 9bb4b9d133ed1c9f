"""Tests for observation intake, events and metrics."""

from datetime import datetime, timezone
import json
import logging

from pydantic import ValidationError
import pytest

from water_risk.analytics import (
    RiskSummary,
    merge_location_risk,
    rank_location_risks,
    summarize_location_risks,
)
from water_risk.catalog import load_catalog
from water_risk.config import Settings
from water_risk.errors import CatalogError, UnknownKitError
from water_risk.observability import get_metrics
from water_risk.service import RiskAssessmentService, create_service


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    get_metrics().reset()


@pytest.fixture
def service() -> RiskAssessmentService:
    return RiskAssessmentService(Settings())


def test_community_report_assessment(service: RiskAssessmentService) -> None:
    assessment = service.assess_community_report(
        {
            "location": "Kibera",
            "date": "2026-10-01",
            "symptoms": ["Diarrhea", "Vomiting", "Fever"],
            "affected_count": 200,
            "notes": "clinic visits doubled",
        },
        trace_id="trace-report-0001",
    )

    assert assessment.outcome.percentage == 100
    assert assessment.outcome.category == "High Risk"
    event = assessment.event
    assert event["event_type"] == "location.risk.computed"
    assert event["trace_id"] == "trace-report-0001"
    assert event["data"]["marker_type"] == "report"
    assert event["data"]["source"] == "community_report"
    assert event["data"]["coordinates"] is None
    assert event["data"]["metadata"]["affected_count"] == 200


def test_water_test_assessment(service: RiskAssessmentService) -> None:
    evaluated_at = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
    assessment = service.assess_water_test(
        {
            "location": "Kisumu borehole 3",
            "latitude": -0.09,
            "longitude": 34.76,
            "kit": "Portable Water Testing Kits (PWTK)",
            "parameters": [
                {"name": "pH", "value": 9.0},
                {"name": "Chlorine", "value": "0.5", "unit": "mg/L"},
            ],
        },
        evaluated_at=evaluated_at,
    )

    assert assessment.kit_result is not None
    assert assessment.kit_result.overall_risk == "medium"
    assert assessment.outcome.percentage == 59
    assert assessment.outcome.category == "Medium Risk"
    assert assessment.recommendations[0] == "Consider basic water treatment (filtration, boiling)"

    data = assessment.event["data"]
    assert data["coordinates"] == {"latitude": -0.09, "longitude": 34.76}
    assert data["metadata"]["kit"] == "Portable Water Testing Kits (PWTK)"
    assert data["metadata"]["critical_parameters"] == 1
    assert data["metadata"]["total_parameters"] == 2
    assert data["metadata"]["confidence"] == 0.775
    assert data["metadata"]["test_date"] == "2026-10-18"


def test_user_marker_assessment(service: RiskAssessmentService) -> None:
    assessment = service.assess_user_marker(
        {
            "location": "Old pump house",
            "title": "Broken pipe",
            "category": "infrastructure",
            "risk_percentage": 70,
        }
    )
    assert assessment.outcome.percentage == 70
    assert assessment.outcome.category == "High Risk"
    assert assessment.event["data"]["source"] == "user_added"
    assert assessment.recommendations == ()


def test_invalid_submissions_are_rejected_before_assessment(service: RiskAssessmentService) -> None:
    with pytest.raises(ValidationError):
        service.assess_community_report({"location": "Kibera", "date": "2026-10-01", "affected_count": -1})
    with pytest.raises(ValidationError):
        service.assess_user_marker({"location": "X", "title": "Y", "risk_percentage": 101})
    with pytest.raises(ValidationError):
        service.assess_water_test({"location": "", "kit": "Field Test Kit (FTK)"})

    assert get_metrics().requests_total["report"] == 0


def test_unknown_kit_is_logged_and_counted(
    service: RiskAssessmentService, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="water_risk")
    with pytest.raises(UnknownKitError):
        service.assess_water_test(
            {"location": "Somewhere", "kit": "Mystery Kit", "parameters": []},
            trace_id="trace-unknown-kit",
        )

    events = [json.loads(record.getMessage()) for record in caplog.records]
    assert events[-1]["event"] == "location_risk_error"
    assert events[-1]["trace_id"] == "trace-unknown-kit"
    assert get_metrics().errors_total["water-test"] == 1


def test_metrics_track_assessments(service: RiskAssessmentService) -> None:
    before = get_metrics().render_prometheus()
    assert 'water_risk_assess_requests_total{type="report"} 0' in before

    service.assess_community_report(
        {"location": "Kibera", "date": "2026-10-01", "symptoms": ["Fever"], "affected_count": 10}
    )

    after = get_metrics().render_prometheus()
    assert 'water_risk_assess_requests_total{type="report"} 1' in after
    assert 'water_risk_assess_success_total{type="report"} 1' in after
    assert 'water_risk_assess_errors_total{type="report"} 0' in after
    assert "water_risk_assess_last_percentage 48" in after


def test_metrics_disabled_leaves_counters_untouched() -> None:
    service = RiskAssessmentService(Settings(metrics_enabled=False))
    service.assess_user_marker({"location": "X", "title": "Y", "risk_percentage": 25})
    assert get_metrics().requests_total["user-added"] == 0


def test_catalog_override_from_settings(tmp_path) -> None:
    catalog_file = tmp_path / "kits.json"
    catalog_file.write_text(
        json.dumps(
            [
                {
                    "kit": "Arsenic Strip",
                    "result_type": "Color chart",
                    "parameters": [
                        {"name": "Arsenic", "critical_range": ">0.01 mg/L", "confidence_score": 0.9}
                    ],
                }
            ]
        )
    )
    service = create_service(Settings(catalog_path=str(catalog_file)))
    assert service.catalog.names() == ["Arsenic Strip"]

    assessment = service.assess_water_test(
        {"location": "Well 9", "kit": "Arsenic Strip", "parameters": [{"name": "Arsenic", "value": 0.05}]}
    )
    # 75 * 1.5 * 1.02 saturates
    assert assessment.outcome.percentage == 100


def test_catalog_errors(tmp_path) -> None:
    with pytest.raises(CatalogError):
        load_catalog(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text('[{"kit": "No parameters"}]')
    with pytest.raises(CatalogError):
        load_catalog(broken)


def test_bundled_catalog_contents() -> None:
    catalog = load_catalog()
    assert len(catalog) == 4
    assert catalog.get("Field Test Kit (FTK)") is not None
    assert catalog.get("Nonexistent") is None
    assert [parameter.name for parameter in catalog.require("H₂S Strip Test (Low-Cost Vial)").parameters] == [
        "H₂S-producing bacteria"
    ]


def _at(hour: int) -> datetime:
    return datetime(2026, 10, 18, hour, 0, tzinfo=timezone.utc)


def test_map_entries_replace_reports_per_location_and_stack_user_markers(service: RiskAssessmentService) -> None:
    first = service.assess_community_report(
        {"location": "Kibera", "date": "2026-10-01", "affected_count": 3}, evaluated_at=_at(8)
    )
    follow_up = service.assess_community_report(
        {"location": "KIBERA", "date": "2026-10-02", "symptoms": ["Fever"], "affected_count": 40},
        evaluated_at=_at(9),
    )
    marker = service.assess_user_marker(
        {"location": "Kibera", "title": "Open drain", "risk_percentage": 55}, evaluated_at=_at(10)
    )
    second_marker = service.assess_user_marker(
        {"location": "Kibera", "title": "Open drain", "risk_percentage": 60}, evaluated_at=_at(11)
    )

    entries = merge_location_risk([], first)
    entries = merge_location_risk(entries, follow_up)
    assert [entry["event_id"] for entry in entries] == [follow_up.event["event_id"]]

    entries = merge_location_risk(entries, marker)
    entries = merge_location_risk(entries, second_marker)
    assert len(entries) == 3
    assert [entry["data"]["marker_type"] for entry in entries] == ["report", "user-added", "user-added"]


def test_water_test_does_not_replace_report_at_same_location(service: RiskAssessmentService) -> None:
    report = service.assess_community_report(
        {"location": "Kisumu", "date": "2026-10-01", "affected_count": 3}, evaluated_at=_at(8)
    )
    water_test = service.assess_water_test(
        {"location": "kisumu", "kit": "Portable Water Testing Kits (PWTK)", "parameters": [{"name": "pH", "value": 7.0}]},
        evaluated_at=_at(9),
    )
    entries = merge_location_risk([report.event], water_test)
    assert [entry["data"]["marker_type"] for entry in entries] == ["report", "water-test"]


def test_rank_and_summarize_map_entries(service: RiskAssessmentService) -> None:
    low = service.assess_community_report(
        {"location": "A", "date": "2026-10-01", "affected_count": 3}, evaluated_at=_at(12)
    )
    high = service.assess_community_report(
        {"location": "B", "date": "2026-10-01", "symptoms": ["Diarrhea", "Vomiting", "Fever"], "affected_count": 200},
        evaluated_at=_at(8),
    )
    medium = service.assess_user_marker({"location": "C", "title": "Sludge", "risk_percentage": 55}, evaluated_at=_at(10))
    also_medium = service.assess_user_marker({"location": "D", "title": "Odour", "risk_percentage": 55}, evaluated_at=_at(11))
    entries = [low, high, medium, also_medium]

    by_time = rank_location_risks(entries)
    assert [entry["data"]["location"] for entry in by_time] == ["A", "D", "C", "B"]

    by_percentage = rank_location_risks(entries, order="percentage")
    assert [entry["data"]["location"] for entry in by_percentage] == ["B", "D", "C", "A"]

    summary = summarize_location_risks(entries)
    assert summary == RiskSummary(low=1, medium=2, high=1)
    assert summary.total == 4
    assert summarize_location_risks([]) == RiskSummary(low=0, medium=0, high=0)

"""Risk engine for field water observations.

Every observation type ends up as a percentage in [0, 100] plus a category
label. Kit tests go through parameter classification and kit aggregation
before being normalized; community reports are scored from the number of
affected people and their symptoms; user annotations carry their own
percentage. All functions here are pure and never raise on odd readings,
unknown symptoms or malformed tiers.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any, Iterable, Mapping, Sequence

from .catalog import SYMPTOM_SEVERITY
from .ranges import Reading, evaluate_critical_range, parse_numeric_value
from .schemas import KitParameter, ParameterValue, RiskCategory, RiskTier, TestingKit


HIGH_CONFIDENCE_THRESHOLD = 0.8

# Inclusive upper bound of affected people -> base outbreak risk.
AFFECTED_COUNT_BRACKETS: tuple[tuple[int, int], ...] = (
    (1, 10),
    (5, 25),
    (15, 40),
    (30, 55),
    (50, 65),
    (100, 75),
)
AFFECTED_COUNT_CEILING = 83
SYMPTOM_WEIGHT = 0.5

TIER_RANK: Mapping[str, int] = {"low": 0, "medium": 1, "high": 2}
TIER_BASELINE: Mapping[str, int] = {"high": 75, "medium": 45, "low": 15}
UNKNOWN_TIER_BASELINE = 30
CRITICAL_RATIO_WEIGHT = 0.5
CONFIDENCE_PENALTY_WEIGHT = 0.2

CATEGORY_THRESHOLDS: tuple[tuple[int, RiskCategory], ...] = (
    (70, "High Risk"),
    (40, "Medium Risk"),
)
DEFAULT_CATEGORY: RiskCategory = "Low Risk"

KIT_RECOMMENDATIONS: Mapping[str, tuple[str, ...]] = {
    "high": (
        "Do not consume water without proper treatment",
        "Consider boiling water for at least 1 minute before use",
        "Contact local health authorities or water quality professionals",
        "Test water from alternative sources",
    ),
    "medium": (
        "Consider basic water treatment (filtration, boiling)",
        "Monitor water quality regularly",
        "Avoid using water for vulnerable populations (infants, elderly, immunocompromised)",
    ),
    "low": (
        "Continue regular water quality monitoring",
        "Maintain proper water storage practices",
        "Keep water sources clean and protected",
    ),
}


@dataclass(frozen=True)
class ParameterResult:
    """Classification of one submitted parameter reading."""

    parameter: KitParameter
    value: Reading
    is_in_critical_range: bool
    risk_level: RiskTier


@dataclass(frozen=True)
class KitTestResult:
    """Aggregated outcome of one kit test."""

    kit: TestingKit
    results: tuple[ParameterResult, ...]
    overall_risk: RiskTier
    confidence: float

    @property
    def critical_count(self) -> int:
        return sum(1 for item in self.results if item.is_in_critical_range)

    @property
    def total_parameters(self) -> int:
        return len(self.results)


@dataclass(frozen=True)
class RiskOutcome:
    """Unified risk value shared by every observation type."""

    percentage: int
    category: RiskCategory

    @classmethod
    def from_percentage(cls, percentage: float) -> RiskOutcome:
        value = _clamp_percentage(percentage)
        return cls(percentage=value, category=categorize(value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_percentage(value: float) -> int:
    if value is None:
        return 0
    # Large ints cannot go through math.isnan, so only floats are checked.
    if isinstance(value, float) and math.isnan(value):
        return 0
    if value <= 0:
        return 0
    if value >= 100:
        return 100
    return _round_half_up(value)


def _tier_for(in_critical_range: bool, confidence: float) -> RiskTier:
    if not in_critical_range:
        return "low"
    if confidence >= HIGH_CONFIDENCE_THRESHOLD:
        return "high"
    # A critical reading is never dismissed, however weak the indicator.
    return "medium"


def classify_parameter(parameter: KitParameter, value: Reading) -> RiskTier:
    """Assign a risk tier to one parameter reading."""

    in_range = evaluate_critical_range(parameter.critical_range, value)
    return _tier_for(in_range, parameter.confidence_score)


def _index_values(
    parameter_values: Sequence[ParameterValue | Mapping[str, Any]] | Mapping[str, Reading],
) -> dict[str, Reading]:
    if isinstance(parameter_values, Mapping):
        return dict(parameter_values)

    indexed: dict[str, Reading] = {}
    for item in parameter_values:
        if isinstance(item, ParameterValue):
            indexed.setdefault(item.name, item.value)
        elif isinstance(item, Mapping) and "name" in item:
            indexed.setdefault(item["name"], item.get("value"))
    return indexed


def aggregate_kit_result(
    kit: TestingKit,
    parameter_values: Sequence[ParameterValue | Mapping[str, Any]] | Mapping[str, Reading],
) -> KitTestResult:
    """Classify every submitted kit parameter and derive the kit-level tier.

    Parameters without a submitted value are skipped. The overall tier is the
    worst tier observed and the confidence is the mean confidence score of the
    parameters that produced a result.
    """

    submitted = _index_values(parameter_values)
    results: list[ParameterResult] = []
    for parameter in kit.parameters:
        if parameter.name not in submitted:
            continue
        value = submitted[parameter.name]
        in_range = evaluate_critical_range(parameter.critical_range, value)
        results.append(
            ParameterResult(
                parameter=parameter,
                value=value,
                is_in_critical_range=in_range,
                risk_level=_tier_for(in_range, parameter.confidence_score),
            )
        )

    overall: RiskTier = max(
        (item.risk_level for item in results),
        key=TIER_RANK.__getitem__,
        default="low",
    )
    confidence = (
        sum(item.parameter.confidence_score for item in results) / len(results) if results else 0.0
    )
    return KitTestResult(
        kit=kit,
        results=tuple(results),
        overall_risk=overall,
        confidence=confidence,
    )


def _base_outbreak_risk(affected_count: float) -> int:
    for upper_bound, risk in AFFECTED_COUNT_BRACKETS:
        if affected_count <= upper_bound:
            return risk
    return AFFECTED_COUNT_CEILING


def score_outbreak(affected_count: int, symptoms: Iterable[str]) -> int:
    """Score a community report from affected count and reported symptoms.

    Each recognised symptom adds half of its severity bump to a single
    multiplier, which is applied once to the bracket base risk.
    """

    reported = set(symptoms)
    multiplier = 1.0 + sum(
        (severity - 1) * SYMPTOM_WEIGHT
        for name, severity in SYMPTOM_SEVERITY.items()
        if name in reported
    )
    return min(100, _round_half_up(_base_outbreak_risk(affected_count) * multiplier))


def _critical_flag(item: Any) -> bool:
    if isinstance(item, ParameterResult):
        return item.is_in_critical_range
    if isinstance(item, Mapping):
        return bool(item.get("is_in_critical_range", item.get("isInCriticalRange", False)))
    return False


def normalize_kit_risk(kit_test_result: KitTestResult | Mapping[str, Any] | None) -> int:
    """Map a kit test result onto the 0-100 risk scale.

    A result with no results array at all maps to 0. Mappings in the stored
    form (``results``, ``overall_risk`` or ``overallRisk``, ``confidence``)
    are accepted as well.
    """

    if isinstance(kit_test_result, KitTestResult):
        results: Sequence[Any] = kit_test_result.results
        tier: Any = kit_test_result.overall_risk
        confidence: float | None = kit_test_result.confidence
    elif isinstance(kit_test_result, Mapping) and isinstance(kit_test_result.get("results"), (list, tuple)):
        results = kit_test_result["results"]
        tier = kit_test_result.get("overall_risk", kit_test_result.get("overallRisk"))
        confidence = parse_numeric_value(kit_test_result.get("confidence"))
    else:
        return 0

    baseline = UNKNOWN_TIER_BASELINE
    if isinstance(tier, str):
        baseline = TIER_BASELINE.get(tier, UNKNOWN_TIER_BASELINE)
    confidence = max(0.0, min(1.0, confidence or 0.0))

    total = len(results)
    critical_ratio = sum(1 for item in results if _critical_flag(item)) / total if total else 0.0
    critical_multiplier = 1 + critical_ratio * CRITICAL_RATIO_WEIGHT
    confidence_adjustment = 1 + (1 - confidence) * CONFIDENCE_PENALTY_WEIGHT

    return _clamp_percentage(baseline * critical_multiplier * confidence_adjustment)


def categorize(percentage: float) -> RiskCategory:
    """Label a risk percentage."""

    for threshold, label in CATEGORY_THRESHOLDS:
        if percentage >= threshold:
            return label
    return DEFAULT_CATEGORY


def recommendations_for(tier: str) -> tuple[str, ...]:
    """Return the field guidance shown for a kit-level tier."""

    return KIT_RECOMMENDATIONS.get(tier, ())


def assess_report(affected_count: int, symptoms: Iterable[str]) -> RiskOutcome:
    """Outcome for a community report; nobody affected means no risk."""

    if affected_count <= 0:
        return RiskOutcome.from_percentage(0)
    return RiskOutcome.from_percentage(score_outbreak(affected_count, symptoms))


def assess_kit_test(kit_test_result: KitTestResult | Mapping[str, Any] | None) -> RiskOutcome:
    """Outcome for a completed kit test."""

    return RiskOutcome.from_percentage(normalize_kit_risk(kit_test_result))


def assess_annotation(risk_percentage: float) -> RiskOutcome:
    """Outcome for a user annotation carrying its own percentage."""

    return RiskOutcome.from_percentage(risk_percentage)

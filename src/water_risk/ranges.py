"""Critical-range expressions attached to kit parameters.

Catalog entries describe their critical band as short text such as
``"<6.5 or >8.5"``, ``">1 NTU"`` or ``"Presence in 100 mL"``. The text is
parsed once into one of the range types below, and the parsed range decides
whether a reading falls inside the band. Nothing here raises on bad input:
an expression that cannot be understood, or a reading that is not a number,
is simply not critical.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Literal

Reading = float | int | str

PRESENCE_TOKENS = frozenset({"present", "positive", "yes", "1", "true"})

_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_THRESHOLD_CLAUSE = re.compile(r"([<>])(\d+(?:\.\d*)?|\.\d+)")


def parse_numeric_value(value: object) -> float | None:
    """Return the reading as a float, or None when it carries no number.

    Strings are read up to the end of their leading decimal number, so
    ``"0.5 mg/L"`` parses as 0.5.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
        return None if math.isnan(number) else number
    if not isinstance(value, str):
        return None

    match = _LEADING_NUMBER.match(value.strip())
    if match is None:
        return None
    return float(match.group())


def _presence_token(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip().lower()


@dataclass(frozen=True)
class ThresholdClause:
    """Single ``<N`` or ``>N`` comparison."""

    operator: Literal["<", ">"]
    threshold: float

    def matches(self, reading: float) -> bool:
        if self.operator == "<":
            return reading < self.threshold
        return reading > self.threshold


@dataclass(frozen=True)
class PresenceRange:
    """Critical when the organism or substance is reported present."""

    def is_critical(self, value: Reading) -> bool:
        return _presence_token(value) in PRESENCE_TOKENS


@dataclass(frozen=True)
class TwoSidedRange:
    """Critical when any clause matches, e.g. below 6.5 or above 8.5."""

    clauses: tuple[ThresholdClause, ...]

    def is_critical(self, value: Reading) -> bool:
        reading = parse_numeric_value(value)
        if reading is None:
            return False
        return any(clause.matches(reading) for clause in self.clauses)


@dataclass(frozen=True)
class OneSidedRange:
    """Critical beyond a single threshold, e.g. above 45 mg/L."""

    clause: ThresholdClause

    def is_critical(self, value: Reading) -> bool:
        reading = parse_numeric_value(value)
        if reading is None:
            return False
        return self.clause.matches(reading)


@dataclass(frozen=True)
class UnrecognizedRange:
    """Expression with no known shape; never critical."""

    expression: str

    def is_critical(self, value: Reading) -> bool:
        return False


RangeExpression = PresenceRange | TwoSidedRange | OneSidedRange | UnrecognizedRange


def parse_range_expression(expression: str) -> RangeExpression:
    """Parse catalog range text into a range object."""

    text = expression.strip() if isinstance(expression, str) else ""

    if "presence" in text.lower():
        return PresenceRange()

    if "<" in text and ">" in text:
        clauses = tuple(
            ThresholdClause(operator, float(number))  # type: ignore[arg-type]
            for operator, number in _THRESHOLD_CLAUSE.findall(text)
        )
        if not clauses:
            return UnrecognizedRange(text)
        return TwoSidedRange(clauses)

    if text.startswith((">", "<")):
        # Threshold ends at the first space so unit suffixes are ignored.
        threshold = parse_numeric_value(text[1:].split(" ")[0])
        if threshold is None:
            return UnrecognizedRange(text)
        return OneSidedRange(ThresholdClause(text[0], threshold))  # type: ignore[arg-type]

    return UnrecognizedRange(text)


def evaluate_critical_range(expression: str, value: Reading) -> bool:
    """Return True when ``value`` lies in the critical band of ``expression``."""

    return parse_range_expression(expression).is_critical(value)

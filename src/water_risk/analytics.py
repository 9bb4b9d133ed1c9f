"""Ranking and summary of computed location risks for the shared map."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Literal

from .engine import categorize


RankOrder = Literal["time", "percentage"]

# Reports and kit tests keep one entry per location; user markers always stack.
REPLACEABLE_MARKER_TYPES = frozenset({"report", "water-test"})


@dataclass(frozen=True)
class RiskSummary:
    """Location counts per risk category."""

    low: int
    medium: int
    high: int

    @property
    def total(self) -> int:
        return self.low + self.medium + self.high


def _as_event(item: Any) -> dict[str, Any]:
    event = getattr(item, "event", item)
    if not isinstance(event, dict):
        raise TypeError(f"expected a location risk event, got {type(item).__name__}")
    return event


def _same_location(left: dict[str, Any], right: dict[str, Any]) -> bool:
    return (
        left["data"]["marker_type"] == right["data"]["marker_type"]
        and left["data"]["location"].casefold() == right["data"]["location"].casefold()
    )


def merge_location_risk(entries: Iterable[Any], incoming: Any) -> list[dict[str, Any]]:
    """Return ``entries`` with ``incoming`` added or replacing its predecessor.

    A report or water test replaces the earlier entry of the same type for the
    same location (case-insensitive). User markers are always added.
    """

    events = [_as_event(item) for item in entries]
    event = _as_event(incoming)

    if event["data"]["marker_type"] in REPLACEABLE_MARKER_TYPES:
        for index, existing in enumerate(events):
            if _same_location(existing, event):
                events[index] = event
                return events

    events.append(event)
    return events


def _evaluated_at(event: dict[str, Any]) -> datetime:
    return datetime.fromisoformat(event["data"]["evaluated_at"])


def rank_location_risks(items: Iterable[Any], *, order: RankOrder = "time") -> list[dict[str, Any]]:
    """Newest first, or highest percentage first with ties broken by recency."""

    events = [_as_event(item) for item in items]
    if order == "percentage":
        return sorted(
            events,
            key=lambda event: (event["data"]["risk_percentage"], _evaluated_at(event)),
            reverse=True,
        )
    return sorted(events, key=_evaluated_at, reverse=True)


def summarize_location_risks(items: Iterable[Any]) -> RiskSummary:
    counts = {"Low Risk": 0, "Medium Risk": 0, "High Risk": 0}
    for item in items:
        counts[categorize(_as_event(item)["data"]["risk_percentage"])] += 1
    return RiskSummary(
        low=counts["Low Risk"],
        medium=counts["Medium Risk"],
        high=counts["High Risk"],
    )

"""Step sequencing for a field kit testing session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping, Sequence

from .engine import KitTestResult, aggregate_kit_result
from .errors import WorkflowError
from .ranges import Reading
from .schemas import ParameterValue, TestingKit


SessionStep = Literal["location-input", "kit-selection", "parameter-input", "results"]

STEP_ORDER: tuple[SessionStep, ...] = ("location-input", "kit-selection", "parameter-input", "results")


@dataclass
class KitTestSession:
    """Mutable session state owned by the caller driving the test screens."""

    step: SessionStep = "location-input"
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    kit: TestingKit | None = None
    result: KitTestResult | None = None

    def _require(self, expected: SessionStep, action: str) -> None:
        if self.step != expected:
            raise WorkflowError(self.step, action)

    def submit_location(
        self,
        location: str,
        *,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> None:
        self._require("location-input", "submit location")
        if not location.strip():
            raise WorkflowError(self.step, "submit an empty location")
        self.location = location.strip()
        self.latitude = latitude
        self.longitude = longitude
        self.step = "kit-selection"

    def select_kit(self, kit: TestingKit) -> None:
        self._require("kit-selection", "select kit")
        self.kit = kit
        self.step = "parameter-input"

    def submit_parameters(
        self,
        parameter_values: Sequence[ParameterValue | Mapping[str, Any]] | Mapping[str, Reading],
    ) -> KitTestResult:
        self._require("parameter-input", "submit parameters")
        if self.kit is None:
            raise WorkflowError(self.step, "submit parameters")
        self.result = aggregate_kit_result(self.kit, parameter_values)
        self.step = "results"
        return self.result

    def run_new_test(self) -> None:
        """Keep location and kit, discard the last result."""

        self._require("results", "run new test")
        self.result = None
        self.step = "parameter-input"

    def back(self) -> None:
        """Return to the previous step, dropping state owned by later steps."""

        index = STEP_ORDER.index(self.step)
        if index == 0:
            raise WorkflowError(self.step, "go back")

        previous = STEP_ORDER[index - 1]
        self.result = None
        if previous in ("location-input", "kit-selection"):
            self.kit = None
        self.step = previous

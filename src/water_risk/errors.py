"""Error types raised around the risk engine.

The engine functions themselves never raise on bad observations; these
errors belong to catalog loading, intake and the testing workflow.
"""

from __future__ import annotations


class WaterRiskError(Exception):
    """Base class for water risk errors."""


class CatalogError(WaterRiskError):
    """Testing-kit catalog could not be read or validated."""


class UnknownKitError(WaterRiskError, LookupError):
    """Submission referenced a kit that is not in the catalog."""

    def __init__(self, kit_name: str) -> None:
        super().__init__(f"unknown testing kit: {kit_name!r}")
        self.kit_name = kit_name


class WorkflowError(WaterRiskError):
    """Testing-session transition not allowed from the current step."""

    def __init__(self, step: str, action: str) -> None:
        super().__init__(f"cannot {action} from step {step!r}")
        self.step = step
        self.action = action

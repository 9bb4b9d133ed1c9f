"""Pydantic schemas for the kit catalog and observation intake."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


RiskTier = Literal["low", "medium", "high"]
RiskCategory = Literal["Low Risk", "Medium Risk", "High Risk"]
MarkerType = Literal["report", "water-test", "user-added"]


class KitParameter(BaseModel):
    """One measurable parameter of a testing kit."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    critical_range: str
    pathogen_risk: str = ""
    associated_diseases: tuple[str, ...] = ()
    confidence_score: float = Field(ge=0, le=1)


class TestingKit(BaseModel):
    """Catalog entry describing a field testing kit."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    kit: str = Field(min_length=1)
    result_type: str = ""
    parameters: tuple[KitParameter, ...]


class ParameterValue(BaseModel):
    """Reading submitted for one kit parameter."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: float | str
    unit: str | None = None


class LocatedSubmission(BaseModel):
    """Common location fields shared by every observation type."""

    model_config = ConfigDict(extra="forbid")

    location: str = Field(min_length=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    notes: str = ""

    @property
    def coordinates(self) -> dict[str, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return {"latitude": self.latitude, "longitude": self.longitude}


class CommunityReportSubmission(LocatedSubmission):
    """Community symptom report."""

    date: str = Field(min_length=1)
    symptoms: list[str] = Field(default_factory=list)
    affected_count: int = Field(ge=0)


class WaterTestSubmission(LocatedSubmission):
    """Completed field kit test with its parameter readings."""

    kit: str = Field(min_length=1)
    parameters: list[ParameterValue] = Field(default_factory=list)
    test_date: str | None = None


class UserMarkerSubmission(LocatedSubmission):
    """Free-form annotation with a user-chosen risk percentage."""

    title: str = Field(min_length=1)
    description: str = ""
    category: str = "General"
    risk_percentage: float = Field(ge=0, le=100)

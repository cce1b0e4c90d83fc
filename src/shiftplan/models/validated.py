"""
Pydantic Validated Models
=========================
Validation layer for configuration and request payloads coming from the
UI or the CLI.

Usage:
    from shiftplan.models.validated import ValidatedAnalysisConfig

    config = ValidatedAnalysisConfig(historical_months=3).to_dataclass()
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shiftplan.models.config import AnalysisConfig, BurdenWeights
from shiftplan.models.shift import ShiftType


class ValidatedBurdenWeights(BaseModel):
    holiday: float = Field(default=3.0, ge=0, le=100)
    night: float = Field(default=2.0, ge=0, le=100)
    weekend: float = Field(default=1.5, ge=0, le=100)
    future_multiplier: float = Field(default=1.5, ge=0, le=10)


class ValidatedAnalysisConfig(BaseModel):
    """
    Pydantic-validated analysis configuration.

    Use this for strict validation at the UI/CLI boundary.
    Can be converted to/from the dataclass AnalysisConfig.
    """
    model_config = ConfigDict(validate_assignment=True)

    weights: ValidatedBurdenWeights = Field(default_factory=ValidatedBurdenWeights)
    historical_months: int = Field(default=6, ge=1, le=36, description="Look-back window")
    medium_imbalance_pct: float = Field(default=20.0, ge=0, le=1000)
    high_imbalance_pct: float = Field(default=40.0, ge=0, le=1000)
    high_burden_score: float = Field(default=40.0, ge=0, le=100)
    low_burden_score: float = Field(default=80.0, ge=0, le=100)
    holiday_spread_alert: int = Field(default=3, ge=0)
    default_min_staff: int = Field(default=1, ge=1)
    flextime_carryover_limit: float = Field(default=40.0, ge=0)
    max_daily_hours: float = Field(default=10.0, gt=0, le=24)
    default_country_code: str = Field(default="US", min_length=2, max_length=2)

    @field_validator("default_country_code")
    @classmethod
    def upper_country(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_thresholds(self):
        """Cross-field validation."""
        if self.medium_imbalance_pct > self.high_imbalance_pct:
            raise ValueError("medium_imbalance_pct cannot exceed high_imbalance_pct")
        if self.high_burden_score > self.low_burden_score:
            raise ValueError("high_burden_score cannot exceed low_burden_score")
        return self

    def to_dataclass(self) -> AnalysisConfig:
        """Convert to the dataclass used by the analysis functions."""
        return AnalysisConfig(
            weights=BurdenWeights(**self.weights.model_dump()),
            historical_months=self.historical_months,
            medium_imbalance_pct=self.medium_imbalance_pct,
            high_imbalance_pct=self.high_imbalance_pct,
            high_burden_score=self.high_burden_score,
            low_burden_score=self.low_burden_score,
            holiday_spread_alert=self.holiday_spread_alert,
            default_min_staff=self.default_min_staff,
            flextime_carryover_limit=self.flextime_carryover_limit,
            max_daily_hours=self.max_daily_hours,
            default_country_code=self.default_country_code,
        )

    @classmethod
    def from_dataclass(cls, config: AnalysisConfig) -> "ValidatedAnalysisConfig":
        return cls(**config.to_dict())


class SwapRequestPayload(BaseModel):
    """Incoming swap request as submitted from the UI."""
    requesting_user_id: str = Field(min_length=1)
    requesting_entry_id: str = Field(min_length=1)
    target_user_id: str = Field(min_length=1)
    target_entry_id: str = Field(min_length=1)
    swap_date: date
    team_id: str = Field(min_length=1)
    reason: str = Field(default="", max_length=1000)


class ScheduleEntryPayload(BaseModel):
    """Incoming schedule edit."""
    user_id: str = Field(min_length=1)
    team_id: str = Field(min_length=1)
    date: date
    shift_type: ShiftType = ShiftType.NORMAL
    activity_type: str = "work"
    notes: Optional[str] = Field(default=None, max_length=500)

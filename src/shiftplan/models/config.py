"""Analysis and mail configuration."""
import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Union


@dataclass
class BurdenWeights:
    """Severity multipliers for the weighted burden score."""
    holiday: float = 3.0
    night: float = 2.0
    weekend: float = 1.5
    future_multiplier: float = 1.5  # Upcoming commitments weigh more


@dataclass
class AnalysisConfig:
    """Configuration for fairness, coverage and FlexTime calculations."""

    # Fairness
    weights: BurdenWeights = field(default_factory=BurdenWeights)
    historical_months: int = 6
    medium_imbalance_pct: float = 20.0
    high_imbalance_pct: float = 40.0
    high_burden_score: float = 40.0    # fairness below this = high burden
    low_burden_score: float = 80.0     # fairness above this = spare capacity
    holiday_spread_alert: int = 3

    # Coverage
    default_min_staff: int = 1

    # FlexTime
    flextime_carryover_limit: float = 40.0
    max_daily_hours: float = 10.0

    # Holidays
    default_country_code: str = "US"

    def to_dict(self) -> Dict:
        """Serialize to dictionary."""
        return {
            "weights": {
                "holiday": self.weights.holiday,
                "night": self.weights.night,
                "weekend": self.weights.weekend,
                "future_multiplier": self.weights.future_multiplier,
            },
            "historical_months": self.historical_months,
            "medium_imbalance_pct": self.medium_imbalance_pct,
            "high_imbalance_pct": self.high_imbalance_pct,
            "high_burden_score": self.high_burden_score,
            "low_burden_score": self.low_burden_score,
            "holiday_spread_alert": self.holiday_spread_alert,
            "default_min_staff": self.default_min_staff,
            "flextime_carryover_limit": self.flextime_carryover_limit,
            "max_daily_hours": self.max_daily_hours,
            "default_country_code": self.default_country_code,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "AnalysisConfig":
        """Create from dictionary. Unknown keys are ignored."""
        cfg = cls()
        for key, value in d.items():
            if key == "weights" and isinstance(value, dict):
                known = {f.name for f in fields(BurdenWeights)}
                cfg.weights = BurdenWeights(**{k: float(v) for k, v in value.items() if k in known})
            elif hasattr(cfg, key):
                setattr(cfg, key, value)
        return cfg


def load_config(path: Union[str, Path, None]) -> AnalysisConfig:
    """Load an AnalysisConfig from a JSON file (defaults when path is None)."""
    if path is None:
        return AnalysisConfig()
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return AnalysisConfig.from_dict(data)


@dataclass
class MailSettings:
    """SMTP settings for outbound notifications."""
    host: Optional[str] = None
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    from_address: str = "no-reply@shiftplan.local"
    allowed_origins: List[str] = field(default_factory=list)

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.port)

    @classmethod
    def from_env(cls) -> "MailSettings":
        user = os.getenv("SMTP_USER")
        origins = os.getenv("ALLOWED_ORIGINS", "")
        return cls(
            host=os.getenv("SMTP_HOST"),
            port=int(os.getenv("SMTP_PORT", "587") or "587"),
            user=user,
            password=os.getenv("SMTP_PASSWORD"),
            use_tls=os.getenv("SMTP_USE_TLS", "1").lower() in ("1", "true", "yes"),
            from_address=os.getenv("FROM_EMAIL", user or "no-reply@shiftplan.local"),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )

"""
Fairness Scoring
================
Turns historical and upcoming weekend/night/holiday shift counts into a
weighted burden per person, a 0–100 fairness score across the cohort
(100 = least burdened) and an imbalance level.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from shiftplan.analysis.counts import ShiftCount, count_shifts
from shiftplan.models.config import AnalysisConfig, BurdenWeights
from shiftplan.models.schedule import Holiday, ScheduleEntry
from shiftplan.models.team import Person
from shiftplan.utils.logging_setup import get_logger, log_function_call

logger = get_logger("shiftplan.analysis.fairness")

LOW = "low"
MEDIUM = "medium"
HIGH = "high"


@dataclass
class FairnessScore:
    """Fairness result for one person."""
    user_id: str
    user_name: str
    past_weekend: int = 0
    past_night: int = 0
    past_holiday: int = 0
    future_weekend: int = 0
    future_night: int = 0
    future_holiday: int = 0
    total_weighted: float = 0.0
    fairness_score: float = 0.0
    imbalance_level: str = LOW

    @property
    def total_holidays(self) -> int:
        return self.past_holiday + self.future_holiday

    def to_dict(self) -> Dict:
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "past_weekend": self.past_weekend,
            "past_night": self.past_night,
            "past_holiday": self.past_holiday,
            "future_weekend": self.future_weekend,
            "future_night": self.future_night,
            "future_holiday": self.future_holiday,
            "total_weighted": round(self.total_weighted, 2),
            "fairness_score": round(self.fairness_score, 1),
            "imbalance_level": self.imbalance_level,
        }


@dataclass
class FairnessReport:
    """Cohort-level fairness analysis."""
    scores: List[FairnessScore] = field(default_factory=list)
    average_score: float = 0.0
    messages: List[str] = field(default_factory=list)
    historical_start: Optional[date] = None
    reference_date: Optional[date] = None

    @property
    def is_empty(self) -> bool:
        return not self.scores

    def by_user(self) -> Dict[str, FairnessScore]:
        return {s.user_id: s for s in self.scores}


def _weighted(count: Optional[ShiftCount], weights: BurdenWeights, factor: float = 1.0) -> float:
    if count is None:
        return 0.0
    return (
        (count.holiday_shifts_count or 0) * weights.holiday * factor
        + (count.night_shifts_count or 0) * weights.night * factor
        + (count.weekend_shifts_count or 0) * weights.weekend * factor
    )


def weighted_burden(
    historical: Optional[ShiftCount],
    future: Optional[ShiftCount],
    weights: Optional[BurdenWeights] = None,
) -> float:
    """
    Single burden scalar for one person.

        historical = holiday*3 + night*2 + weekend*1.5
        future     = (holiday*3 + night*2 + weekend*1.5) * 1.5

    Missing counts are treated as zero.
    """
    weights = weights or BurdenWeights()
    return _weighted(historical, weights) + _weighted(future, weights, weights.future_multiplier)


def normalize_fairness(totals: Sequence[float]) -> List[float]:
    """
    Map weighted burdens onto 0–100, lowest burden → 100, highest → 0.

    The top of the range is floored at 1 and an empty range falls back to 1,
    so a cohort with identical burdens scores 100 everywhere.
    """
    if not totals:
        return []
    max_w = max(max(totals), 1)
    min_w = min(totals)
    span = (max_w - min_w) or 1
    return [100 - ((t - min_w) / span * 100) for t in totals]


def classify_imbalance(
    total_weighted: float,
    mean: float,
    medium_pct: float = 20.0,
    high_pct: float = 40.0,
) -> str:
    """
    Imbalance level from the deviation above the cohort mean.

    At or below the mean is always low. Above it: more than ``high_pct``
    percent is high, more than ``medium_pct`` is medium, anything closer to
    the mean stays low.
    """
    if total_weighted <= mean:
        return LOW
    deviation_pct = (total_weighted - mean) / mean * 100 if mean > 0 else 0
    if deviation_pct > high_pct:
        return HIGH
    if deviation_pct > medium_pct:
        return MEDIUM
    return LOW


@log_function_call
def score_cohort(
    names: Dict[str, str],
    historical: Dict[str, ShiftCount],
    future: Dict[str, ShiftCount],
    config: Optional[AnalysisConfig] = None,
) -> List[FairnessScore]:
    """
    Score every user in ``names`` (user_id → display name).

    Returns scores sorted by fairness ascending (most burdened first).
    """
    config = config or AnalysisConfig()
    scores = []
    for user_id, name in names.items():
        past = historical.get(user_id) or ShiftCount(user_id)
        upcoming = future.get(user_id) or ShiftCount(user_id)
        scores.append(FairnessScore(
            user_id=user_id,
            user_name=name,
            past_weekend=past.weekend_shifts_count,
            past_night=past.night_shifts_count,
            past_holiday=past.holiday_shifts_count,
            future_weekend=upcoming.weekend_shifts_count,
            future_night=upcoming.night_shifts_count,
            future_holiday=upcoming.holiday_shifts_count,
            total_weighted=weighted_burden(past, upcoming, config.weights),
        ))

    if not scores:
        return scores

    totals = [s.total_weighted for s in scores]
    mean = sum(totals) / len(totals)
    for s, fairness in zip(scores, normalize_fairness(totals)):
        s.fairness_score = fairness
        s.imbalance_level = classify_imbalance(
            s.total_weighted, mean, config.medium_imbalance_pct, config.high_imbalance_pct
        )

    scores.sort(key=lambda s: s.fairness_score)
    return scores


def imbalance_messages(scores: List[FairnessScore], config: Optional[AnalysisConfig] = None) -> List[str]:
    """Human-readable recommendations for a scored cohort."""
    config = config or AnalysisConfig()
    if not scores:
        return []

    messages = []
    high_burden = [s for s in scores if s.fairness_score < config.high_burden_score]
    low_burden = [s for s in scores if s.fairness_score > config.low_burden_score]
    if high_burden and low_burden:
        messages.append(
            f"{len(high_burden)} employee(s) with high burden should be prioritized for lighter shifts"
        )
        messages.append(
            f"Consider assigning more difficult shifts to: {', '.join(s.user_name for s in low_burden)}"
        )

    max_holiday = max(s.total_holidays for s in scores)
    min_holiday = min(s.total_holidays for s in scores)
    if max_holiday - min_holiday > config.holiday_spread_alert:
        messages.append(
            f"Significant holiday shift imbalance detected ({max_holiday} vs {min_holiday})"
        )
    return messages


def _months_before(d: date, months: int) -> date:
    month_index = d.year * 12 + (d.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Clamp the day to the target month's length
    for day in (d.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)


def analyze_fairness(
    people: Dict[str, Person],
    entries: Iterable[ScheduleEntry],
    holidays: Iterable[Holiday] = (),
    team_id: Optional[str] = None,
    user_ids: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
    config: Optional[AnalysisConfig] = None,
) -> FairnessReport:
    """
    Full fairness analysis for a team.

    Historical window: ``historical_months`` before ``today`` up to ``today``.
    Future window: from tomorrow onwards.

    Args:
        people: Team members by user_id
        entries: Schedule entries (any range; filtered here)
        holidays: Holiday calendar
        team_id: Restrict counts to this team's entries
        user_ids: Subset of members to analyze (default: all members)
        today: Reference date (default: date.today())
        config: Weights and thresholds
    """
    config = config or AnalysisConfig()
    today = today or date.today()
    entries = list(entries)
    holidays = list(holidays)

    targets = [u for u in (user_ids or list(people)) if u in people]
    if user_ids:
        dropped = set(user_ids) - set(targets)
        if dropped:
            logger.warning(f"Ignoring {len(dropped)} user(s) not in the team: {sorted(dropped)}")

    hist_start = _months_before(today, config.historical_months)
    team_ids = [team_id] if team_id else None
    common = dict(
        holidays=holidays,
        people=people,
        team_ids=team_ids,
        default_country=config.default_country_code,
    )
    historical = count_shifts(entries, targets, start_date=hist_start, end_date=today, **common)
    future = count_shifts(entries, targets, start_date=today + timedelta(days=1), **common)

    names = {u: people[u].display_name or u for u in targets}
    scores = score_cohort(
        names,
        {c.user_id: c for c in historical},
        {c.user_id: c for c in future},
        config,
    )

    report = FairnessReport(
        scores=scores,
        average_score=(sum(s.fairness_score for s in scores) / len(scores)) if scores else 0.0,
        messages=imbalance_messages(scores, config),
        historical_start=hist_start,
        reference_date=today,
    )
    logger.info(
        f"Fairness analysis: team={team_id or 'all'} users={len(scores)} "
        f"avg={report.average_score:.1f} alerts={len(report.messages)}"
    )
    return report

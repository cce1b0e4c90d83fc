"""
FlexTime Accounting
===================
Daily time entries against the standard week (38 h: Mon–Thu 8 h, Fri 6 h)
and the running monthly balance.

Rules:
- a break is only deducted when more than 6 h were spent at work
- more than 6 h of work needs a 30 min break, more than 9 h needs 45 min
- at most 10 h of work per day
- an FZA withdrawal (time off taken from the balance) is always negative
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from shiftplan.models.shift import parse_date
from shiftplan.utils.logging_setup import get_logger, log_function_call

logger = get_logger("shiftplan.analysis.flextime")

BREAK_FREE_HOURS = 6.0
DAILY_LIMIT_HOURS = 10.0
DEFAULT_CARRYOVER_LIMIT = 40.0


class EntryType(str, Enum):
    WORK = "work"
    HOME_OFFICE = "home_office"
    SICK_LEAVE = "sick_leave"
    TEAM_MEETING = "team_meeting"
    TRAINING = "training"
    VACATION = "vacation"
    PUBLIC_HOLIDAY = "public_holiday"
    FZA_WITHDRAWAL = "fza_withdrawal"

    @property
    def counts_as_work(self) -> bool:
        return self in WORK_ENTRY_TYPES

    @property
    def is_withdrawal(self) -> bool:
        return self == EntryType.FZA_WITHDRAWAL

    @property
    def label(self) -> str:
        return ENTRY_TYPE_LABELS[self]

    @classmethod
    def parse(cls, value) -> "EntryType":
        """Unknown types are treated as regular work."""
        if isinstance(value, EntryType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown entry type {value!r}, treating as work")
            return cls.WORK


WORK_ENTRY_TYPES = frozenset({
    EntryType.WORK, EntryType.HOME_OFFICE, EntryType.TEAM_MEETING, EntryType.TRAINING,
})

ENTRY_TYPE_LABELS = {
    EntryType.WORK: "Regular Work",
    EntryType.HOME_OFFICE: "Home Office",
    EntryType.SICK_LEAVE: "Sick Leave",
    EntryType.TEAM_MEETING: "Team Meeting",
    EntryType.TRAINING: "Training",
    EntryType.VACATION: "Vacation",
    EntryType.PUBLIC_HOLIDAY: "Public Holiday",
    EntryType.FZA_WITHDRAWAL: "FlexTime Withdrawal (FZA)",
}


@dataclass
class FlexTimeCalculation:
    target_hours: float = 0.0
    actual_hours: float = 0.0
    flex_delta: float = 0.0
    gross_hours: float = 0.0
    fza_hours: Optional[float] = None


@dataclass
class TimeEntry:
    """One day of recorded working time."""
    user_id: str
    entry_date: date
    entry_type: EntryType = EntryType.WORK
    work_start_time: Optional[str] = None
    work_end_time: Optional[str] = None
    break_duration_minutes: int = 0
    fza_hours: Optional[float] = None
    comment: str = ""
    id: Optional[str] = None

    def __post_init__(self):
        self.entry_date = parse_date(self.entry_date)
        self.entry_type = EntryType.parse(self.entry_type)
        self.break_duration_minutes = int(self.break_duration_minutes or 0)

    def calculate(self) -> FlexTimeCalculation:
        return calculate_flextime(
            self.entry_date, self.entry_type,
            self.work_start_time, self.work_end_time,
            self.break_duration_minutes, self.fza_hours,
        )


@dataclass
class RuleCheck:
    valid: bool
    message: Optional[str] = None


def target_hours_for(day: Union[str, date]) -> float:
    """Mon–Thu 8 h, Friday 6 h, weekend 0 h."""
    weekday = parse_date(day).weekday()
    if weekday >= 5:
        return 0.0
    if weekday == 4:
        return 6.0
    return 8.0


def parse_time_to_hours(value: Optional[str]) -> float:
    """'HH:MM' → decimal hours ('' → 0)."""
    if not value:
        return 0.0
    parts = str(value).split(":")
    hours = int(parts[0])
    minutes = int(parts[1]) if len(parts) > 1 else 0
    return hours + minutes / 60


def _split_hours(hours: float) -> Tuple[int, int]:
    h = int(abs(hours))
    m = round((abs(hours) - h) * 60)
    if m == 60:
        h, m = h + 1, 0
    return h, m


def format_flex_hours(hours: float) -> str:
    """Signed H:MM, e.g. +1:30 or -0:45."""
    h, m = _split_hours(hours)
    sign = "-" if hours < 0 else "+"
    return f"{sign}{h}:{m:02d}"


def format_decimal_hours(hours: float) -> str:
    return f"{hours:.2f}h"


def calculate_actual_hours(
    start_time: Optional[str],
    end_time: Optional[str],
    break_minutes: int = 0,
) -> float:
    """Net hours; the break only counts when gross time exceeds 6 h."""
    if not start_time or not end_time:
        return 0.0
    gross = parse_time_to_hours(end_time) - parse_time_to_hours(start_time)
    net = gross if gross <= BREAK_FREE_HOURS else gross - (break_minutes or 0) / 60
    return max(0.0, net)


def calculate_flextime(
    day: Union[str, date],
    entry_type: Union[str, EntryType] = EntryType.WORK,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    break_minutes: int = 0,
    fza_hours: Optional[float] = None,
) -> FlexTimeCalculation:
    """Target, actual and delta hours for one day."""
    entry_type = EntryType.parse(entry_type)

    if entry_type.is_withdrawal and fza_hours:
        return FlexTimeCalculation(flex_delta=-abs(fza_hours), fza_hours=abs(fza_hours))

    if not entry_type.counts_as_work:
        return FlexTimeCalculation()

    target = target_hours_for(day)
    gross = 0.0
    if start_time and end_time:
        gross = parse_time_to_hours(end_time) - parse_time_to_hours(start_time)
    actual = calculate_actual_hours(start_time, end_time, break_minutes)
    return FlexTimeCalculation(
        target_hours=target,
        actual_hours=actual,
        flex_delta=actual - target,
        gross_hours=gross,
    )


def validate_break_requirements(actual_hours: float, break_minutes: int) -> RuleCheck:
    if actual_hours > 9 and break_minutes < 45:
        return RuleCheck(False, "Minimum 45 min break required when working more than 9 hours")
    if actual_hours > 6 and break_minutes < 30:
        return RuleCheck(False, "Minimum 30 min break required when working more than 6 hours")
    return RuleCheck(True)


def validate_daily_limit(actual_hours: float, limit: float = DAILY_LIMIT_HOURS) -> RuleCheck:
    if actual_hours > limit:
        return RuleCheck(False, f"Maximum {limit:g} hours per day allowed")
    return RuleCheck(True)


def entry_rule_violations(entry: TimeEntry, max_daily_hours: float = DAILY_LIMIT_HOURS) -> List[str]:
    """Break and daily-limit messages for a work entry (empty when compliant)."""
    if not entry.entry_type.counts_as_work:
        return []
    actual = entry.calculate().actual_hours
    checks = [
        validate_break_requirements(actual, entry.break_duration_minutes),
        validate_daily_limit(actual, max_daily_hours),
    ]
    return [c.message for c in checks if not c.valid]


def default_start_time(entry_type: Union[str, EntryType]) -> str:
    return "08:00" if EntryType.parse(entry_type).counts_as_work else ""


def default_end_time(day: Union[str, date], entry_type: Union[str, EntryType]) -> str:
    """8 h (6 h on Fridays) plus a 30 min break after an 08:00 start."""
    if not EntryType.parse(entry_type).counts_as_work:
        return ""
    return "14:30" if parse_date(day).weekday() == 4 else "16:30"


@dataclass
class MonthlySummary:
    """Balance roll-forward for one user and month."""
    user_id: str
    year: int
    month: int
    previous_balance: float = 0.0
    flex_earned: float = 0.0
    fza_taken: float = 0.0
    carryover_limit: float = DEFAULT_CARRYOVER_LIMIT
    entry_count: int = 0
    rows: List[Tuple[TimeEntry, FlexTimeCalculation]] = field(default_factory=list)

    @property
    def month_delta(self) -> float:
        return self.flex_earned - self.fza_taken

    @property
    def ending_balance(self) -> float:
        return self.previous_balance + self.month_delta

    @property
    def within_limit(self) -> bool:
        return abs(self.ending_balance) <= self.carryover_limit

    @property
    def status_label(self) -> str:
        return "✓ Within Limit" if self.within_limit else "⚠ Exceeds Limit"


@log_function_call
def summarize_month(
    user_id: str,
    year: int,
    month: int,
    entries: Iterable[TimeEntry],
    previous_balance: float = 0.0,
    carryover_limit: float = DEFAULT_CARRYOVER_LIMIT,
) -> MonthlySummary:
    """
    Roll the balance forward over one month of entries.

    Entries of other users or other months are ignored.
    """
    summary = MonthlySummary(
        user_id=user_id,
        year=year,
        month=month,
        previous_balance=previous_balance,
        carryover_limit=carryover_limit,
    )
    selected = sorted(
        (e for e in entries
         if e.user_id == user_id and e.entry_date.year == year and e.entry_date.month == month),
        key=lambda e: e.entry_date,
    )
    for entry in selected:
        calc = entry.calculate()
        summary.rows.append((entry, calc))
        if entry.entry_type.is_withdrawal:
            summary.fza_taken += calc.fza_hours or 0.0
        else:
            summary.flex_earned += calc.flex_delta
    summary.entry_count = len(selected)

    if not summary.within_limit:
        logger.warning(
            f"FlexTime balance {format_flex_hours(summary.ending_balance)} for {user_id} "
            f"exceeds carry-over limit {carryover_limit:g}h ({year}-{month:02d})"
        )
    return summary

"""
Shift Count Aggregation
=======================
Per-user weekend / night / holiday / total work shift counts over a date
window. Computed on demand from schedule entries; never stored.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from shiftplan.models.schedule import Holiday, ScheduleEntry
from shiftplan.models.shift import ActivityType, is_weekend
from shiftplan.models.team import Person
from shiftplan.utils.logging_setup import get_logger

logger = get_logger("shiftplan.analysis.counts")

DEFAULT_COUNTRY = "US"


@dataclass
class ShiftCount:
    """Aggregated counts for one user."""
    user_id: str
    weekend_shifts_count: int = 0
    night_shifts_count: int = 0
    holiday_shifts_count: int = 0
    total_shifts_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "user_id": self.user_id,
            "weekend_shifts_count": self.weekend_shifts_count,
            "night_shifts_count": self.night_shifts_count,
            "holiday_shifts_count": self.holiday_shifts_count,
            "total_shifts_count": self.total_shifts_count,
        }


def is_holiday_for(
    day: date,
    person: Optional[Person],
    holidays: Iterable[Holiday],
    user_id: Optional[str] = None,
    default_country: str = DEFAULT_COUNTRY,
) -> bool:
    """
    True when ``day`` is a public holiday for this user.

    A holiday matches if it is user-specific for the user, or global for the
    user's country (default country when unknown). A holiday with a region only
    matches users in that region or users without a region.
    """
    user_id = user_id or (person.user_id if person else None)
    country = (person.country_code if person and person.country_code else default_country)
    region = person.region_code if person else None

    for h in holidays:
        if h.date != day or not h.is_public:
            continue
        matches_owner = (
            (h.user_id is None and h.country_code == country)
            or (h.user_id is not None and h.user_id == user_id)
        )
        if not matches_owner:
            continue
        if h.region_code is None or region is None or h.region_code == region:
            return True
    return False


def count_shifts(
    entries: Iterable[ScheduleEntry],
    user_ids: Sequence[str],
    holidays: Iterable[Holiday] = (),
    people: Optional[Dict[str, Person]] = None,
    team_ids: Optional[Sequence[str]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    default_country: str = DEFAULT_COUNTRY,
) -> List[ShiftCount]:
    """
    Count work shifts per user.

    Only ``work`` entries are counted. Bounds are inclusive and optional.
    Every requested user gets a row, with zero counts when they have no
    matching entries.

    Args:
        entries: Candidate schedule entries
        user_ids: Users to report on (output order follows this list)
        holidays: Holiday calendar
        people: Profiles by user_id, for holiday country/region matching
        team_ids: Restrict to entries of these teams (None = all teams)
        start_date: First day of the window (None = unbounded)
        end_date: Last day of the window (None = unbounded)
    """
    people = people or {}
    holidays = list(holidays)
    wanted = set(user_ids)
    teams = set(team_ids) if team_ids else None
    counts = {uid: ShiftCount(user_id=uid) for uid in user_ids}

    for e in entries:
        if e.user_id not in wanted or e.activity_type != ActivityType.WORK:
            continue
        if teams is not None and e.team_id not in teams:
            continue
        if start_date is not None and e.date < start_date:
            continue
        if end_date is not None and e.date > end_date:
            continue

        c = counts[e.user_id]
        c.total_shifts_count += 1
        if is_weekend(e.date):
            c.weekend_shifts_count += 1
        if e.shift_type.is_night:
            c.night_shifts_count += 1
        if is_holiday_for(e.date, people.get(e.user_id), holidays, e.user_id, default_country):
            c.holiday_shifts_count += 1

    logger.debug(
        f"Counted shifts for {len(counts)} users "
        f"(window {start_date or '-'} → {end_date or '-'}, teams={sorted(teams) if teams else 'all'})"
    )
    return [counts[uid] for uid in user_ids]

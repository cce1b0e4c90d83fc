"""Shift, activity and availability definitions."""
from datetime import date, datetime
from enum import Enum
from typing import Union


class ShiftType(str, Enum):
    """Types of shifts a schedule entry can carry."""
    NORMAL = "normal"
    EARLY = "early"
    LATE = "late"
    WEEKEND = "weekend"

    @property
    def is_night(self) -> bool:
        """Early and late shifts count as night shifts for fairness."""
        return self in (ShiftType.EARLY, ShiftType.LATE)

    @property
    def label(self) -> str:
        return {
            ShiftType.NORMAL: "Normal",
            ShiftType.EARLY: "Early",
            ShiftType.LATE: "Late",
            ShiftType.WEEKEND: "Weekend",
        }[self]

    @classmethod
    def from_string(cls, s) -> "ShiftType":
        """Parse shift from various string formats. Empty values mean normal."""
        if isinstance(s, ShiftType):
            return s
        if s is None:
            return cls.NORMAL
        mapping = {
            "normal": cls.NORMAL, "n": cls.NORMAL, "day": cls.NORMAL, "": cls.NORMAL,
            "early": cls.EARLY, "e": cls.EARLY, "morning": cls.EARLY,
            "late": cls.LATE, "l": cls.LATE, "evening": cls.LATE,
            "weekend": cls.WEEKEND, "we": cls.WEEKEND, "w": cls.WEEKEND,
        }
        key = str(s).strip().lower()
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown shift type: {s!r}")


class ActivityType(str, Enum):
    """What a person is doing on a scheduled day."""
    WORK = "work"
    VACATION = "vacation"
    OTHER = "other"
    HOTLINE_SUPPORT = "hotline_support"
    OUT_OF_OFFICE = "out_of_office"
    TRAINING = "training"
    FLEXTIME = "flextime"
    WORKING_FROM_HOME = "working_from_home"
    SICK = "sick"

    @property
    def is_working(self) -> bool:
        """Activities that put a person on the coverage roster."""
        return self in WORKING_ACTIVITIES

    @property
    def is_swappable(self) -> bool:
        return self not in NON_SWAPPABLE_ACTIVITIES


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


WORKING_ACTIVITIES = frozenset({
    ActivityType.WORK,
    ActivityType.WORKING_FROM_HOME,
    ActivityType.HOTLINE_SUPPORT,
})

NON_SWAPPABLE_ACTIVITIES = frozenset({
    ActivityType.VACATION,
    ActivityType.SICK,
    ActivityType.OUT_OF_OFFICE,
})

# Monday=0 ... Sunday=6
WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
WEEKDAY_SHORT = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
WEEKEND_DAYS = (5, 6)


def parse_date(value: Union[str, date, datetime]) -> date:
    """Parse an ISO date (``YYYY-MM-DD``) or pass dates through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def is_weekend(d: Union[str, date]) -> bool:
    """True for Saturday and Sunday."""
    return parse_date(d).weekday() in WEEKEND_DAYS

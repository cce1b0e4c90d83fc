"""Schedule entries, holidays and the schedule collection."""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .shift import ActivityType, AvailabilityStatus, ShiftType, parse_date

ENTRY_COLUMNS = [
    "id", "user_id", "team_id", "date", "shift_type",
    "activity_type", "availability_status", "notes",
]


@dataclass
class ScheduleEntry:
    """One person's assignment for one day in one team."""
    user_id: str
    team_id: str
    date: date
    shift_type: ShiftType = ShiftType.NORMAL
    activity_type: ActivityType = ActivityType.WORK
    availability_status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    notes: str = ""
    id: Optional[str] = None

    def __post_init__(self):
        self.date = parse_date(self.date)
        self.shift_type = ShiftType.from_string(self.shift_type)
        if isinstance(self.activity_type, str):
            self.activity_type = ActivityType(self.activity_type)
        if isinstance(self.availability_status, str):
            self.availability_status = AvailabilityStatus(self.availability_status)
        self.notes = self.notes or ""

    @property
    def is_available(self) -> bool:
        return self.availability_status == AvailabilityStatus.AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "team_id": self.team_id,
            "date": self.date.isoformat(),
            "shift_type": self.shift_type.value,
            "activity_type": self.activity_type.value,
            "availability_status": self.availability_status.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScheduleEntry":
        return cls(
            id=d.get("id"),
            user_id=str(d["user_id"]),
            team_id=str(d["team_id"]),
            date=d["date"],
            shift_type=d.get("shift_type") or ShiftType.NORMAL,
            activity_type=d.get("activity_type") or ActivityType.WORK,
            availability_status=d.get("availability_status") or AvailabilityStatus.AVAILABLE,
            notes=d.get("notes") or "",
        )


@dataclass
class Holiday:
    """A public holiday (country/region wide) or a user-specific day off."""
    date: date
    name: str
    country_code: Optional[str] = None
    region_code: Optional[str] = None
    user_id: Optional[str] = None
    is_public: bool = True
    id: Optional[str] = None

    def __post_init__(self):
        self.date = parse_date(self.date)
        if self.country_code:
            self.country_code = self.country_code.upper()
        if self.region_code:
            self.region_code = self.region_code.upper()


@dataclass
class Schedule:
    """A set of entries for a team over a date window."""

    entries: List[ScheduleEntry] = field(default_factory=list)
    team_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_entries(cls, entries: Iterable[ScheduleEntry], team_id: Optional[str] = None) -> "Schedule":
        entries = list(entries)
        dates = [e.date for e in entries]
        return cls(
            entries=entries,
            team_id=team_id,
            start_date=min(dates) if dates else None,
            end_date=max(dates) if dates else None,
        )

    @property
    def dates(self) -> List[date]:
        return sorted({e.date for e in self.entries})

    @property
    def user_ids(self) -> List[str]:
        return sorted({e.user_id for e in self.entries})

    def to_dataframe(self) -> pd.DataFrame:
        """Convert entries to a DataFrame."""
        if not self.entries:
            return pd.DataFrame(columns=ENTRY_COLUMNS)
        return pd.DataFrame([e.to_dict() for e in self.entries], columns=ENTRY_COLUMNS)

    def to_matrix(self, label_fn=None) -> pd.DataFrame:
        """
        Person × date matrix of cell labels.

        Work entries show the shift type, other activities show the activity.
        """
        df = self.to_dataframe()
        if df.empty:
            return pd.DataFrame()

        label_fn = label_fn or entry_label
        df = df.assign(label=[label_fn(e) for e in self.entries])
        piv = df.pivot_table(
            index="user_id",
            columns="date",
            values="label",
            aggfunc=lambda x: "/".join(sorted(set(str(v) for v in x))),
            fill_value="",
        )
        return piv

    def shift_counts_by_date(self) -> pd.DataFrame:
        """Available working staff per date and shift type."""
        df = self.to_dataframe()
        cols = [s.value for s in ShiftType]
        if df.empty:
            return pd.DataFrame(columns=cols)
        working = {a.value for a in ActivityType if a.is_working}
        df = df[df["activity_type"].isin(working) & (df["availability_status"] == AvailabilityStatus.AVAILABLE.value)]
        if df.empty:
            return pd.DataFrame(columns=cols)
        counts = df.groupby(["date", "shift_type"]).size().unstack(fill_value=0)
        for col in cols:
            if col not in counts.columns:
                counts[col] = 0
        return counts[cols].astype(int)

    def get_person_stats(self) -> pd.DataFrame:
        """Per-person shift type and activity totals."""
        df = self.to_dataframe()
        shift_cols = [s.value for s in ShiftType]
        if df.empty:
            return pd.DataFrame(columns=["user_id"] + shift_cols + ["work_days", "absence_days"])

        work = df[df["activity_type"] == ActivityType.WORK.value]
        if work.empty:
            stats = pd.DataFrame()
        else:
            stats = work.groupby(["user_id", "shift_type"]).size().unstack(fill_value=0)
        stats = stats.reindex(sorted(df["user_id"].unique()), fill_value=0)
        stats.columns.name = None
        for col in shift_cols:
            if col not in stats.columns:
                stats[col] = 0
        stats = stats[shift_cols]
        stats["work_days"] = stats[shift_cols].sum(axis=1)

        absent = df[df["activity_type"] != ActivityType.WORK.value].groupby("user_id").size()
        stats["absence_days"] = absent.reindex(stats.index, fill_value=0)
        stats.index.name = "user_id"
        return stats.reset_index()


def entry_label(entry: ScheduleEntry) -> str:
    """Cell label for matrix views and exports."""
    if entry.activity_type == ActivityType.WORK:
        return entry.shift_type.value
    return entry.activity_type.value

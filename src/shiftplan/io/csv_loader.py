"""CSV loading and saving for profiles, schedule entries, holidays and time entries."""
import io
from pathlib import Path
from typing import Dict, Iterable, List, Union

import pandas as pd

from shiftplan.analysis.flextime import TimeEntry
from shiftplan.errors import ValidationError
from shiftplan.models.schedule import ENTRY_COLUMNS, Holiday, ScheduleEntry
from shiftplan.models.team import Person
from shiftplan.utils.logging_setup import get_logger
from shiftplan.workflow.validation import sanitize_csv_input

logger = get_logger("shiftplan.io.csv_loader")

Source = Union[str, Path, pd.DataFrame, io.StringIO]

PEOPLE_COLUMNS = [
    "user_id", "first_name", "last_name", "email", "initials",
    "country_code", "region_code", "role",
]


def _safe_int(value, default: int = 0) -> int:
    """Safely convert value to int."""
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return default


def _safe_float(value, default=None):
    try:
        if value == "" or value is None:
            return default
        return float(value)
    except (ValueError, TypeError):
        return default


def _safe_bool(value, default: bool = False) -> bool:
    """Safely convert value to bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if not value.strip():
            return default
        return value.strip().lower() in ("1", "true", "yes", "y")
    return default


def _read(source: Source, required: Iterable[str]) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        df = source.copy()
    else:
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    df = df.fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValidationError(f"CSV is missing required column(s): {', '.join(missing)}")
    return df


def _text(row, key: str) -> str:
    return str(row.get(key, "") or "").strip()


def load_people(source: Source) -> Dict[str, Person]:
    """
    Load profiles keyed by user_id.

    Required column: user_id. Rows without a user_id are skipped.
    """
    df = _read(source, ["user_id"])
    people = {}
    for _, row in df.iterrows():
        user_id = _text(row, "user_id")
        if not user_id:
            continue
        people[user_id] = Person(
            user_id=user_id,
            first_name=_text(row, "first_name"),
            last_name=_text(row, "last_name"),
            email=_text(row, "email"),
            initials=_text(row, "initials") or None,
            country_code=_text(row, "country_code") or None,
            region_code=_text(row, "region_code") or None,
            role=_text(row, "role") or "teammember",
        )
    logger.debug(f"Loaded {len(people)} profiles")
    return people


def load_entries(source: Source) -> List[ScheduleEntry]:
    """
    Load schedule entries.

    Required columns: user_id, team_id, date. Missing shift/activity/
    availability values fall back to normal/work/available.
    """
    df = _read(source, ["user_id", "team_id", "date"])
    entries = []
    for idx, row in df.iterrows():
        if not _text(row, "user_id"):
            continue
        try:
            entries.append(ScheduleEntry(
                id=_text(row, "id") or None,
                user_id=_text(row, "user_id"),
                team_id=_text(row, "team_id"),
                date=_text(row, "date"),
                shift_type=_text(row, "shift_type") or "normal",
                activity_type=_text(row, "activity_type") or "work",
                availability_status=_text(row, "availability_status") or "available",
                notes=_text(row, "notes"),
            ))
        except ValueError as e:
            raise ValidationError(f"Row {idx + 2}: {e}") from e
    logger.debug(f"Loaded {len(entries)} schedule entries")
    return entries


def load_holidays(source: Source) -> List[Holiday]:
    """Required columns: date, name. Optional: country_code, region_code, user_id, is_public."""
    df = _read(source, ["date", "name"])
    holidays = []
    for idx, row in df.iterrows():
        if not _text(row, "date"):
            continue
        try:
            holidays.append(Holiday(
                date=_text(row, "date"),
                name=_text(row, "name"),
                country_code=_text(row, "country_code") or None,
                region_code=_text(row, "region_code") or None,
                user_id=_text(row, "user_id") or None,
                is_public=_safe_bool(row.get("is_public"), True),
            ))
        except ValueError as e:
            raise ValidationError(f"Row {idx + 2}: {e}") from e
    return holidays


def load_time_entries(source: Source, user_id: str = "") -> List[TimeEntry]:
    """
    Load FlexTime entries.

    Required column: entry_date. ``user_id`` fills rows that have none.
    """
    df = _read(source, ["entry_date"])
    entries = []
    for idx, row in df.iterrows():
        if not _text(row, "entry_date"):
            continue
        try:
            entries.append(TimeEntry(
                user_id=_text(row, "user_id") or user_id,
                entry_date=_text(row, "entry_date"),
                entry_type=_text(row, "entry_type") or "work",
                work_start_time=_text(row, "work_start_time") or None,
                work_end_time=_text(row, "work_end_time") or None,
                break_duration_minutes=_safe_int(row.get("break_duration_minutes"), 0),
                fza_hours=_safe_float(row.get("fza_hours")),
                comment=_text(row, "comment"),
            ))
        except ValueError as e:
            raise ValidationError(f"Row {idx + 2}: {e}") from e
    return entries


def save_people(people: Iterable[Person], path: Union[str, Path]) -> None:
    rows = [p.to_dict() for p in people]
    pd.DataFrame(rows, columns=PEOPLE_COLUMNS).to_csv(path, index=False)


def entries_to_dataframe(entries: Iterable[ScheduleEntry], sanitize: bool = True) -> pd.DataFrame:
    """One row per entry; free-text columns are neutralised against CSV injection."""
    df = pd.DataFrame([e.to_dict() for e in entries], columns=ENTRY_COLUMNS)
    if sanitize and not df.empty:
        df["notes"] = df["notes"].map(sanitize_csv_input)
    return df


def export_entries_csv(entries: Iterable[ScheduleEntry], output: Union[str, Path, io.StringIO]) -> None:
    """Export schedule entries to CSV."""
    df = entries_to_dataframe(entries)
    if isinstance(output, io.StringIO):
        df.to_csv(output, index=False)
    else:
        df.to_csv(str(output), index=False)
    logger.info(f"CSV export complete: {len(df)} entries")

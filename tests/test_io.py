"""Tests for CSV loading and saving."""
import io

import pandas as pd
import pytest

from shiftplan.analysis.flextime import EntryType
from shiftplan.errors import ValidationError
from shiftplan.io.csv_loader import (
    load_entries,
    load_holidays,
    load_people,
    load_time_entries,
    save_people,
)
from shiftplan.models.shift import ActivityType, ShiftType

PEOPLE_CSV = """user_id,first_name,last_name,email,initials,country_code,region_code,role
u1,Alice,Archer,alice@example.com,AA,us,,planner
u2,Bob,Baker,bob@example.com,,DE,BY,
,Nobody,Here,,,,,
"""

ENTRIES_CSV = """user_id,team_id,date,shift_type,activity_type,notes
u1,t1,2024-06-03,late,,
u2,t1,2024-06-03,,vacation,Beach
"""


class TestLoadPeople:
    def test_load(self):
        people = load_people(io.StringIO(PEOPLE_CSV))
        assert list(people) == ["u1", "u2"]
        assert people["u1"].country_code == "US"
        assert people["u1"].role == "planner"
        assert people["u2"].initials is None
        assert people["u2"].role == "teammember"

    def test_missing_column(self):
        with pytest.raises(ValidationError, match="CSV is missing required column"):
            load_people(io.StringIO("name,email\nAlice,a@example.com\n"))

    def test_from_dataframe(self):
        people = load_people(pd.DataFrame([{"user_id": "u1", "first_name": "Alice"}]))
        assert people["u1"].first_name == "Alice"

    def test_save_and_reload(self, tmp_path, sample_people):
        path = tmp_path / "people.csv"
        save_people(sample_people.values(), path)
        assert load_people(path) == sample_people


class TestLoadEntries:
    def test_defaults(self):
        entries = load_entries(io.StringIO(ENTRIES_CSV))
        assert entries[0].shift_type == ShiftType.LATE
        assert entries[0].activity_type == ActivityType.WORK
        assert entries[1].shift_type == ShiftType.NORMAL
        assert entries[1].activity_type == ActivityType.VACATION
        assert entries[1].notes == "Beach"

    def test_bad_row_reports_line(self):
        csv = "user_id,team_id,date,shift_type\nu1,t1,2024-06-03,night-owl\n"
        with pytest.raises(ValidationError, match="Row 2"):
            load_entries(io.StringIO(csv))

    def test_bad_date(self):
        with pytest.raises(ValidationError):
            load_entries(io.StringIO("user_id,team_id,date\nu1,t1,03.06.2024\n"))


class TestLoadHolidays:
    def test_load(self):
        csv = "date,name,country_code,is_public\n2024-05-27,Memorial Day,US,\n2024-06-12,Offsite,US,no\n"
        holidays = load_holidays(io.StringIO(csv))
        assert holidays[0].is_public is True
        assert holidays[1].is_public is False


class TestLoadTimeEntries:
    def test_load(self):
        csv = (
            "entry_date,entry_type,work_start_time,work_end_time,break_duration_minutes,fza_hours\n"
            "2024-06-03,work,08:00,16:30,30,\n"
            "2024-06-04,fza_withdrawal,,,,2.5\n"
        )
        entries = load_time_entries(io.StringIO(csv), user_id="u1")
        assert [e.user_id for e in entries] == ["u1", "u1"]
        assert entries[0].break_duration_minutes == 30
        assert entries[0].fza_hours is None
        assert entries[1].entry_type == EntryType.FZA_WITHDRAWAL
        assert entries[1].fza_hours == 2.5

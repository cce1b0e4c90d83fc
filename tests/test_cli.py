"""Tests for the shiftplan command line."""
import json

import pytest

from shiftplan.cli import build_parser, main
from shiftplan.models.requests import ShiftSwapRequest
from shiftplan.storage.store import ScheduleStore

PEOPLE = """user_id,first_name,last_name,email,initials,country_code
u1,Alice,Archer,alice@example.com,AA,US
u2,Bob,Baker,bob@example.com,BB,US
u3,Carol,Cole,carol@example.com,CC,DE
"""

ENTRIES = """user_id,team_id,date,shift_type
u1,t1,2024-05-25,weekend
u1,t1,2024-05-26,weekend
u1,t1,2024-05-28,late
u1,t1,2024-06-10,early
u2,t1,2024-05-29,normal
u2,t1,2024-06-08,weekend
u2,t1,2024-06-05,early
"""

TIME_ENTRIES = """entry_date,entry_type,work_start_time,work_end_time,break_duration_minutes
2024-06-03,work,08:00,16:30,30
2024-06-04,work,08:00,17:00,30
"""


@pytest.fixture
def csv_files(tmp_path):
    files = {}
    for name, content in (("people", PEOPLE), ("entries", ENTRIES), ("time", TIME_ENTRIES)):
        path = tmp_path / f"{name}.csv"
        path.write_text(content)
        files[name] = str(path)
    return files


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_month_range(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["flextime", "--entries", "x.csv", "--user", "u1", "--year", "2024", "--month", "13"])


class TestFairnessCommand:
    def test_json(self, csv_files, capsys):
        code = main([
            "fairness", "--people", csv_files["people"], "--entries", csv_files["entries"],
            "--today", "2024-06-03", "--json",
        ])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert [s["user_id"] for s in data["scores"]] == ["u1", "u2", "u3"]
        assert data["scores"][0]["fairness_score"] == 0
        assert data["scores"][-1]["fairness_score"] == 100

    def test_table(self, csv_files, capsys):
        main(["fairness", "--people", csv_files["people"], "--entries", csv_files["entries"], "--today", "2024-06-03"])
        out = capsys.readouterr().out
        assert "Alice Archer (AA)" in out
        assert "Average:" in out

    def test_invalid_config(self, csv_files, tmp_path, capsys):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"historical_months": 0}))
        code = main([
            "fairness", "--people", csv_files["people"], "--entries", csv_files["entries"],
            "--config", str(config),
        ])
        assert code == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_missing_file(self, tmp_path):
        assert main(["fairness", "--people", str(tmp_path / "nope.csv"), "--entries", str(tmp_path / "nope.csv")]) == 2


class TestCoverageCommand:
    def test_understaffed_strict(self, csv_files, capsys):
        code = main([
            "coverage", "--entries", csv_files["entries"], "--date", "2024-06-05",
            "--requesting-shift", "early", "--target-shift", "late", "--strict", "--json",
        ])
        assert code == 1
        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "Review Needed"
        assert data["shifts"][1] == "early: 1 → 0 (required 1) UNDERSTAFFED"

    def test_same_shift(self, csv_files, capsys):
        code = main([
            "coverage", "--entries", csv_files["entries"], "--date", "2024-06-05",
            "--requesting-shift", "early", "--target-shift", "early", "--strict",
        ])
        assert code == 0
        assert "status: No Issues" in capsys.readouterr().out


class TestExportCommand:
    @pytest.mark.parametrize("ext", ["csv", "xlsx", "pdf"])
    def test_formats(self, csv_files, tmp_path, ext):
        out = tmp_path / f"schedule.{ext}"
        assert main(["export", "--entries", csv_files["entries"], "--people", csv_files["people"], "--out", str(out)]) == 0
        assert out.stat().st_size > 0

    def test_with_fairness(self, csv_files, tmp_path):
        out = tmp_path / "schedule.xlsx"
        code = main([
            "export", "--entries", csv_files["entries"], "--people", csv_files["people"],
            "--out", str(out), "--with-fairness", "--today", "2024-06-03",
        ])
        assert code == 0

    def test_unknown_extension(self, csv_files, tmp_path, capsys):
        assert main(["export", "--entries", csv_files["entries"], "--out", str(tmp_path / "schedule.txt")]) == 2
        assert "Unsupported format: txt" in capsys.readouterr().err


class TestFlexTimeCommand:
    def test_summary(self, csv_files, capsys):
        code = main([
            "flextime", "--entries", csv_files["time"], "--user", "u1",
            "--year", "2024", "--month", "6", "--previous-balance", "1.5", "--json",
        ])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["month"] == "2024-06"
        assert data["entries"] == 2
        assert data["starting_balance"] == "+1:30"

    def test_statement_into_directory(self, csv_files, tmp_path):
        out_dir = str(tmp_path) + "/"
        code = main([
            "flextime", "--entries", csv_files["time"], "--user", "u1", "--name", "Alice Archer",
            "--year", "2024", "--month", "6", "--out", out_dir,
        ])
        assert code == 0
        assert (tmp_path / "FlexTime_Alice_Archer_2024-06.xlsx").exists()


class TestStoreCommands:
    """Commands working on the SQLite store."""

    def test_import(self, csv_files, tmp_path, capsys):
        db = tmp_path / "import.db"
        code = main(["import", "--db", str(db), "--people", csv_files["people"], "--entries", csv_files["entries"], "--json"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["people"] == 3
        assert data["entries"] == 7
        assert len(ScheduleStore(db).list_entries(user_ids=["u1"])) == 4

    def test_digest(self, seeded_store, capsys):
        code = main(["digest", "--db", str(seeded_store.db_path), "--team", "support", "--start", "2024-06-03"])
        assert code == 0
        out = capsys.readouterr().out
        assert out.startswith("Duty coverage Support: Jun 3, 2024 - Jun 9, 2024")
        assert "Wed Jun 5, 2024: Normal: BB; Early: AA" in out

    def test_digest_unknown_team(self, seeded_store, capsys):
        assert main(["digest", "--db", str(seeded_store.db_path), "--team", "Nope"]) == 2
        assert "Team 'Nope' not found" in capsys.readouterr().err

    def test_expire_swaps(self, seeded_store, team_id, capsys):
        entries = {e.user_id: e for e in seeded_store.list_entries()}
        seeded_store.insert_swap(ShiftSwapRequest(
            requesting_user_id="u1", requesting_entry_id=entries["u1"].id,
            target_user_id="u2", target_entry_id=entries["u2"].id,
            swap_date="2024-06-05", team_id=team_id,
        ))
        code = main(["expire-swaps", "--db", str(seeded_store.db_path), "--today", "2024-06-06", "--json"])
        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"expired": 1}

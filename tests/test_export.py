"""Tests for Excel, PDF and CSV export."""
import io
from datetime import datetime

import pandas as pd
from openpyxl import load_workbook

from shiftplan.analysis.fairness import analyze_fairness
from shiftplan.analysis.flextime import TimeEntry, format_flex_hours, summarize_month
from shiftplan.io.csv_loader import export_entries_csv
from shiftplan.io.excel_export import (
    TIME_ENTRY_COLUMNS,
    export_flextime_excel,
    export_schedule_excel,
    flextime_filename,
)
from shiftplan.io.pdf_export import export_schedule_pdf
from shiftplan.models.schedule import ScheduleEntry


class TestScheduleExcel:
    """Tests for the schedule workbook."""

    def test_sheets(self, sample_entries, sample_people):
        buf = io.BytesIO()
        export_schedule_excel(sample_entries, sample_people, buf)
        buf.seek(0)
        wb = load_workbook(buf)
        assert wb.sheetnames == ["Schedule", "Summary"]

    def test_fairness_sheet_when_report_given(self, sample_entries, sample_people, today):
        report = analyze_fairness(sample_people, sample_entries, user_ids=["u1", "u2", "u3"], today=today)
        buf = io.BytesIO()
        export_schedule_excel(sample_entries, sample_people, buf, fairness=report)
        buf.seek(0)
        wb = load_workbook(buf)
        assert wb.sheetnames == ["Schedule", "Summary", "Fairness"]
        ws = wb["Fairness"]
        assert ws.cell(row=1, column=1).value == "Name"
        assert ws.cell(row=2, column=1).value == "Alice Archer (AA)"

    def test_schedule_matrix(self, sample_entries, sample_people):
        buf = io.BytesIO()
        export_schedule_excel(sample_entries, sample_people, buf, title="Support")
        buf.seek(0)
        ws = load_workbook(buf)["Schedule"]

        assert ws.cell(row=1, column=1).value == "Support"
        assert ws.cell(row=1, column=2).value == "25.05"
        assert ws.cell(row=2, column=2).value == "Sat"
        assert ws.cell(row=3, column=1).value == "Alice Archer (AA)"
        assert ws.cell(row=3, column=2).value == "weekend"
        assert ws.cell(row=4, column=1).value == "Bob Baker (BB)"
        assert ws.cell(row=4, column=5).value == "normal"

    def test_staff_counts_below_matrix(self, sample_entries, sample_people):
        buf = io.BytesIO()
        export_schedule_excel(sample_entries, sample_people, buf)
        buf.seek(0)
        ws = load_workbook(buf)["Schedule"]

        assert ws.cell(row=6, column=1).value == "# staff per shift"
        assert ws.cell(row=7, column=1).value == "Normal"
        assert ws.cell(row=7, column=5).value == 1
        assert ws.cell(row=7, column=2).value == 0

    def test_absences_not_counted_as_staff(self, sample_people):
        entries = [ScheduleEntry("u1", "t1", "2024-06-05", activity_type="vacation")]
        buf = io.BytesIO()
        export_schedule_excel(entries, sample_people, buf)
        buf.seek(0)
        ws = load_workbook(buf)["Schedule"]
        assert ws.cell(row=3, column=2).value == "vacation"
        assert ws.cell(row=5, column=1).value == "# staff per shift"
        assert ws.cell(row=6, column=2).value == 0

    def test_write_to_path(self, tmp_path, sample_entries, sample_people):
        path = tmp_path / "schedule.xlsx"
        export_schedule_excel(sample_entries, sample_people, path)
        assert path.exists()


class TestFlexTimeExcel:
    """Tests for the monthly FlexTime statement."""

    def _summary(self, entries=()):
        return summarize_month("u1", 2024, 6, entries, previous_balance=2.0)

    def test_sheets_and_summary(self):
        summary = self._summary([TimeEntry("u1", "2024-06-03", "work", "08:00", "16:30", 30)])
        buf = io.BytesIO()
        export_flextime_excel(summary, "Alice Archer", buf, generated_at=datetime(2024, 7, 1, 9, 0))
        buf.seek(0)
        wb = load_workbook(buf)
        assert wb.sheetnames == ["Time Entries", "Monthly Summary", "Employee Info"]

        entries = wb["Time Entries"]
        assert [c.value for c in entries[1]] == TIME_ENTRY_COLUMNS
        assert entries.cell(row=2, column=1).value == "03.06.2024"
        assert entries.cell(row=2, column=2).value == "Monday"

        monthly = wb["Monthly Summary"]
        assert monthly.cell(row=2, column=2).value == "June 2024"
        assert monthly.cell(row=9, column=1).value == "Ending Balance"
        assert monthly.cell(row=9, column=2).value == format_flex_hours(summary.ending_balance)

        info = wb["Employee Info"]
        assert info.cell(row=2, column=2).value == "Alice Archer"
        assert info.cell(row=4, column=2).value == "01.07.2024 09:00"

    def test_empty_month(self):
        buf = io.BytesIO()
        export_flextime_excel(self._summary(), "Alice Archer", buf)
        buf.seek(0)
        ws = load_workbook(buf)["Time Entries"]
        assert ws.cell(row=2, column=1).value == "No entries for this month"

    def test_filename(self):
        assert flextime_filename("Alice Archer", 2024, 6) == "FlexTime_Alice_Archer_2024-06.xlsx"


class TestSchedulePDF:
    def test_pdf_bytes(self, sample_entries, sample_people):
        buf = io.BytesIO()
        export_schedule_pdf(sample_entries, sample_people, buf)
        assert buf.getvalue().startswith(b"%PDF")

    def test_pdf_with_fairness_page(self, sample_entries, sample_people, today):
        report = analyze_fairness(sample_people, sample_entries, user_ids=["u1", "u2", "u3"], today=today)
        buf = io.BytesIO()
        export_schedule_pdf(sample_entries, sample_people, buf, fairness=report, title="Support June")
        assert buf.getvalue().startswith(b"%PDF")

    def test_empty_schedule(self, tmp_path):
        path = tmp_path / "empty.pdf"
        export_schedule_pdf([], {}, path)
        assert path.read_bytes().startswith(b"%PDF")


class TestEntriesCSV:
    def test_export(self, sample_entries):
        out = io.StringIO()
        export_entries_csv(sample_entries, out)
        out.seek(0)
        df = pd.read_csv(out)
        assert len(df) == len(sample_entries)
        assert list(df["date"])[:2] == ["2024-05-25", "2024-05-26"]

    def test_notes_are_neutralised(self):
        entries = [ScheduleEntry("u1", "t1", "2024-06-05", notes="=HYPERLINK(\"x\")")]
        out = io.StringIO()
        export_entries_csv(entries, out)
        out.seek(0)
        df = pd.read_csv(out, dtype=str, keep_default_na=False)
        assert df.loc[0, "notes"].startswith("'=")

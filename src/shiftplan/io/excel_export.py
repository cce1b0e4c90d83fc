"""Excel export for schedules, fairness reports and FlexTime statements."""
import io
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from shiftplan.analysis.fairness import FairnessReport
from shiftplan.analysis.flextime import (
    MonthlySummary,
    format_flex_hours,
)
from shiftplan.models.rules import IMBALANCE_COLORS, SHIFT_ORDER, SHIFT_STYLES, cell_color
from shiftplan.models.schedule import Schedule, ScheduleEntry
from shiftplan.models.shift import WEEKDAY_NAMES, WEEKDAY_SHORT, is_weekend
from shiftplan.models.team import Person
from shiftplan.utils.logging_setup import get_logger

logger = get_logger("shiftplan.io.excel_export")

Output = Union[str, Path, io.BytesIO]

THIN = Side(border_style="thin", color="CCCCCC")
BORDER_THIN = Border(top=THIN, bottom=THIN, left=THIN, right=THIN)
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
WEEKEND_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")

TIME_ENTRY_COLUMNS = [
    "Date", "Day", "Entry Type", "Start Time", "End Time", "Break (min)",
    "Gross Hours", "Actual Hours", "Target Hours", "FLEX", "FZA", "Comment",
]
TIME_ENTRY_WIDTHS = [12, 12, 26, 10, 10, 10, 12, 12, 12, 10, 10, 30]


def _fill(hex_color: str) -> PatternFill:
    hex_color = hex_color.lstrip("#")
    return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")


def _header_row(ws, values: List, row: int = 1):
    for j, val in enumerate(values, start=1):
        cell = ws.cell(row=row, column=j, value=val)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")


def _save(wb: Workbook, output: Output):
    if isinstance(output, io.BytesIO):
        wb.save(output)
    else:
        wb.save(str(output))


def _name_of(user_id: str, people: Dict[str, Person]) -> str:
    p = people.get(user_id)
    return (p.display_name or user_id) if p else user_id


def export_schedule_excel(
    entries: Iterable[ScheduleEntry],
    people: Dict[str, Person],
    output: Output,
    fairness: Optional[FairnessReport] = None,
    title: str = "Schedule",
) -> None:
    """
    Export schedule entries to an Excel workbook.

    Sheets:
        Schedule: person × date matrix with shift colours and per-date staff counts
        Summary:  per-person shift and absence totals
        Fairness: fairness scores (only when a report is given)
    """
    schedule = Schedule.from_entries(entries)
    wb = Workbook()

    # ========== Schedule Sheet ==========
    ws = wb.active
    ws.title = "Schedule"
    dates = schedule.dates
    matrix = schedule.to_matrix()
    user_ids = sorted(set(schedule.user_ids), key=lambda u: _name_of(u, people).lower())

    ws.cell(row=1, column=1, value=title).font = Font(bold=True)
    for c, d in enumerate(dates, start=2):
        top = ws.cell(row=1, column=c, value=d.strftime("%d.%m"))
        bottom = ws.cell(row=2, column=c, value=WEEKDAY_SHORT[d.weekday()])
        for cell in (top, bottom):
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal="center")
            if is_weekend(d):
                cell.fill = WEEKEND_FILL
        ws.column_dimensions[get_column_letter(c)].width = 10
    ws.column_dimensions["A"].width = 28
    ws.freeze_panes = "B3"

    for r, user_id in enumerate(user_ids, start=3):
        ws.cell(row=r, column=1, value=_name_of(user_id, people))
        for c, d in enumerate(dates, start=2):
            val = ""
            if user_id in matrix.index and d.isoformat() in matrix.columns:
                val = str(matrix.at[user_id, d.isoformat()])
            cell = ws.cell(row=r, column=c, value=val)
            if val:
                cell.fill = _fill(cell_color(val.split("/")[0]))
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = BORDER_THIN

    counts = schedule.shift_counts_by_date()
    summary_start = len(user_ids) + 4
    ws.cell(row=summary_start, column=1, value="# staff per shift").font = Font(bold=True)
    for idx, shift in enumerate(SHIFT_ORDER, start=1):
        row_num = summary_start + idx
        ws.cell(row=row_num, column=1, value=SHIFT_STYLES[shift].label).font = Font(bold=True)
        for c, d in enumerate(dates, start=2):
            key = d.isoformat()
            val = int(counts.at[key, shift]) if key in counts.index else 0
            cell = ws.cell(row=row_num, column=c, value=val)
            cell.alignment = Alignment(horizontal="center")
            cell.border = BORDER_THIN
            cell.fill = _fill(SHIFT_STYLES[shift].color_bg)

    # ========== Summary Sheet ==========
    ws_sum = wb.create_sheet("Summary")
    stats = schedule.get_person_stats()
    if not stats.empty:
        stats.insert(1, "name", [_name_of(u, people) for u in stats["user_id"]])
        _header_row(ws_sum, list(stats.columns))
        for i in range(len(stats)):
            for j in range(len(stats.columns)):
                val = stats.iat[i, j]
                ws_sum.cell(row=2 + i, column=1 + j, value=val.item() if hasattr(val, "item") else val)
        for i in range(1, len(stats.columns) + 1):
            ws_sum.column_dimensions[get_column_letter(i)].width = 14
        ws_sum.column_dimensions["B"].width = 28
        ws_sum.freeze_panes = "A2"

    # ========== Fairness Sheet ==========
    if fairness is not None and not fairness.is_empty:
        write_fairness_sheet(wb.create_sheet("Fairness"), fairness)

    _save(wb, output)
    logger.info(f"Excel export complete: {len(user_ids)} people, {len(dates)} days")


def write_fairness_sheet(ws, report: FairnessReport):
    """Fairness scores with imbalance colouring, followed by the recommendations."""
    columns = [
        "Name", "Past Weekend", "Past Night", "Past Holiday",
        "Future Weekend", "Future Night", "Future Holiday",
        "Weighted Burden", "Fairness Score", "Imbalance",
    ]
    _header_row(ws, columns)
    for r, s in enumerate(report.scores, start=2):
        values = [
            s.user_name, s.past_weekend, s.past_night, s.past_holiday,
            s.future_weekend, s.future_night, s.future_holiday,
            round(s.total_weighted, 2), round(s.fairness_score, 1), s.imbalance_level,
        ]
        for c, val in enumerate(values, start=1):
            cell = ws.cell(row=r, column=c, value=val)
            cell.border = BORDER_THIN
        ws.cell(row=r, column=len(columns)).fill = _fill(IMBALANCE_COLORS.get(s.imbalance_level, "#FFFFFF"))

    row = len(report.scores) + 3
    ws.cell(row=row, column=1, value="Average fairness").font = Font(bold=True)
    ws.cell(row=row, column=2, value=round(report.average_score, 1))
    for i, message in enumerate(report.messages, start=row + 2):
        ws.cell(row=i, column=1, value=message)

    ws.column_dimensions["A"].width = 28
    for i in range(2, len(columns) + 1):
        ws.column_dimensions[get_column_letter(i)].width = 15
    ws.freeze_panes = "A2"


def _time_entry_rows(summary: MonthlySummary) -> List[List]:
    rows = []
    for entry, calc in summary.rows:
        has_times = bool(entry.work_start_time and entry.work_end_time)
        is_fza = entry.entry_type.is_withdrawal
        rows.append([
            entry.entry_date.strftime("%d.%m.%Y"),
            WEEKDAY_NAMES[entry.entry_date.weekday()],
            entry.entry_type.label,
            entry.work_start_time or "-",
            entry.work_end_time or "-",
            entry.break_duration_minutes or 0,
            f"{calc.gross_hours:.2f}" if has_times else "-",
            f"{calc.actual_hours:.2f}",
            f"{calc.target_hours:.2f}",
            "0.00" if is_fza else format_flex_hours(calc.flex_delta),
            f"-{(calc.fza_hours or 0):.2f}" if is_fza else "0.00",
            entry.comment or "",
        ])
    return rows


def export_flextime_excel(
    summary: MonthlySummary,
    user_name: str,
    output: Output,
    generated_at: Optional[datetime] = None,
) -> None:
    """
    Monthly FlexTime statement with sheets "Time Entries", "Monthly Summary"
    and "Employee Info".
    """
    generated_at = generated_at or datetime.now()
    month_name = datetime(summary.year, summary.month, 1).strftime("%B %Y")
    wb = Workbook()

    ws = wb.active
    ws.title = "Time Entries"
    _header_row(ws, TIME_ENTRY_COLUMNS)
    rows = _time_entry_rows(summary) or [["No entries for this month"] + [""] * (len(TIME_ENTRY_COLUMNS) - 1)]
    for r, values in enumerate(rows, start=2):
        for c, val in enumerate(values, start=1):
            ws.cell(row=r, column=c, value=val)
    for i, width in enumerate(TIME_ENTRY_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width
    ws.freeze_panes = "A2"

    ws_sum = wb.create_sheet("Monthly Summary")
    fza = f"-{summary.fza_taken:.2f}h" if summary.fza_taken > 0 else "0.00h"
    summary_rows = [
        ("Month", month_name),
        ("Starting Balance", format_flex_hours(summary.previous_balance)),
        ("", ""),
        ("FLEX Earned", format_flex_hours(summary.flex_earned)),
        ("FZA Taken", fza),
        ("Net Month Delta", format_flex_hours(summary.month_delta)),
        ("", ""),
        ("Ending Balance", format_flex_hours(summary.ending_balance)),
        ("", ""),
        ("Carryover Limit", format_flex_hours(summary.carryover_limit)),
        ("Status", summary.status_label),
    ]
    _header_row(ws_sum, ["Metric", "Value"])
    for r, (metric, value) in enumerate(summary_rows, start=2):
        ws_sum.cell(row=r, column=1, value=metric)
        ws_sum.cell(row=r, column=2, value=value)
    ws_sum.column_dimensions["A"].width = 20
    ws_sum.column_dimensions["B"].width = 20

    ws_info = wb.create_sheet("Employee Info")
    info_rows = [
        ("Employee Name", user_name),
        ("Report Period", month_name),
        ("Generated On", generated_at.strftime("%d.%m.%Y %H:%M")),
        ("", ""),
        ("Total Entries", str(summary.entry_count)),
        ("Final FlexTime Balance", format_flex_hours(summary.ending_balance)),
        ("Carryover Limit", format_flex_hours(summary.carryover_limit)),
    ]
    _header_row(ws_info, ["Field", "Value"])
    for r, (field_name, value) in enumerate(info_rows, start=2):
        ws_info.cell(row=r, column=1, value=field_name)
        ws_info.cell(row=r, column=2, value=value)
    ws_info.column_dimensions["A"].width = 25
    ws_info.column_dimensions["B"].width = 30

    _save(wb, output)
    logger.info(f"FlexTime export complete: {user_name} {summary.year}-{summary.month:02d}")


def flextime_filename(user_name: str, year: int, month: int) -> str:
    return f"FlexTime_{'_'.join(user_name.split())}_{year:04d}-{month:02d}.xlsx"

"""
PDF Export for Schedules
========================
A4 landscape report: schedule matrix pages (two weeks per page) and an
optional fairness page. Uses fpdf2.
"""
import io
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from fpdf import FPDF

from shiftplan.analysis.fairness import FairnessReport
from shiftplan.models.rules import ACTIVITY_STYLES, IMBALANCE_COLORS, SHIFT_STYLES
from shiftplan.models.schedule import Schedule, ScheduleEntry, entry_label
from shiftplan.models.shift import WEEKDAY_SHORT
from shiftplan.models.team import Person
from shiftplan.utils.logging_setup import get_logger

logger = get_logger("shiftplan.io.pdf_export")

COLORS = {
    "header_bg": (68, 114, 196),
    "header_text": (255, 255, 255),
}

DAYS_PER_PAGE = 14

# Short cell codes; the matrix is too narrow for full labels
CELL_CODES = {
    "normal": "N", "early": "E", "late": "L", "weekend": "WE",
    "vacation": "V", "sick": "S", "out_of_office": "OoO", "training": "T",
    "flextime": "FT", "hotline_support": "H", "working_from_home": "HO", "other": "O",
}


def _rgb(hex_color: str) -> Tuple[int, int, int]:
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def _latin1(text: str) -> str:
    """Core PDF fonts only cover latin-1."""
    return text.encode("latin-1", "replace").decode("latin-1")


class SchedulePDF(FPDF):
    """Custom PDF class with headers and footers."""

    def __init__(self, title: str = "Schedule"):
        super().__init__(orientation="L", unit="mm", format="A4")
        self.title = title
        self.set_auto_page_break(auto=True, margin=15)

    def header(self):
        self.set_font("Helvetica", "B", 12)
        self.cell(0, 10, _latin1(self.title), border=0, align="C")
        self.ln(5)
        self.set_font("Helvetica", "", 8)
        self.cell(0, 5, f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}", border=0, align="C")
        self.ln(10)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")


def _legend(pdf: SchedulePDF):
    pdf.set_font("Helvetica", "", 7)
    styles = list(SHIFT_STYLES.values()) + list(ACTIVITY_STYLES.values())
    for i, style in enumerate(styles, start=1):
        pdf.set_fill_color(*_rgb(style.color_bg))
        pdf.cell(8, 4, CELL_CODES.get(style.code, ""), border=1, align="C", fill=True)
        pdf.cell(26, 4, _latin1(style.label))
        if i % 8 == 0:
            pdf.ln(5)
    pdf.ln(6)


def _matrix_pages(pdf: SchedulePDF, schedule: Schedule, people: Dict[str, Person]):
    dates: List[date] = schedule.dates
    labels = {(e.user_id, e.date): entry_label(e) for e in schedule.entries}
    user_ids = sorted(schedule.user_ids, key=lambda u: (people[u].display_name if u in people else u).lower())
    name_width, cell_width = 45, 15

    for page_start in range(0, len(dates), DAYS_PER_PAGE):
        chunk = dates[page_start:page_start + DAYS_PER_PAGE]
        pdf.add_page()
        pdf.set_font("Helvetica", "B", 12)
        pdf.cell(0, 8, f"{chunk[0].isoformat()} to {chunk[-1].isoformat()}", new_x="LMARGIN", new_y="NEXT")
        _legend(pdf)

        pdf.set_font("Helvetica", "B", 7)
        pdf.set_fill_color(*COLORS["header_bg"])
        pdf.set_text_color(*COLORS["header_text"])
        pdf.cell(name_width, 6, "Name", border=1, fill=True)
        for d in chunk:
            pdf.cell(cell_width, 6, f"{WEEKDAY_SHORT[d.weekday()]} {d.day:02d}.{d.month:02d}", border=1, align="C", fill=True)
        pdf.ln()
        pdf.set_text_color(0, 0, 0)

        pdf.set_font("Helvetica", "", 7)
        for user_id in user_ids:
            name = people[user_id].display_name if user_id in people else user_id
            pdf.cell(name_width, 5, _latin1(name[:28]), border=1)
            for d in chunk:
                label = labels.get((user_id, d), "")
                style = SHIFT_STYLES.get(label) or ACTIVITY_STYLES.get(label)
                if style:
                    pdf.set_fill_color(*_rgb(style.color_bg))
                else:
                    pdf.set_fill_color(255, 255, 255)
                pdf.cell(cell_width, 5, CELL_CODES.get(label, label[:3]), border=1, align="C", fill=True)
            pdf.ln()


def _fairness_page(pdf: SchedulePDF, report: FairnessReport):
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, "Fairness", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(0, 6, f"Average fairness score: {report.average_score:.1f}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(2)

    cols = ["Name", "WE past", "Night past", "Hol. past", "WE next", "Night next", "Hol. next", "Burden", "Score", "Level"]
    widths = [55, 20, 20, 20, 20, 20, 20, 22, 20, 22]
    pdf.set_font("Helvetica", "B", 8)
    pdf.set_fill_color(*COLORS["header_bg"])
    pdf.set_text_color(*COLORS["header_text"])
    for col, w in zip(cols, widths):
        pdf.cell(w, 6, col, border=1, align="C", fill=True)
    pdf.ln()
    pdf.set_text_color(0, 0, 0)

    pdf.set_font("Helvetica", "", 8)
    for s in report.scores:
        row = [
            s.user_name[:32], s.past_weekend, s.past_night, s.past_holiday,
            s.future_weekend, s.future_night, s.future_holiday,
            f"{s.total_weighted:.1f}", f"{s.fairness_score:.0f}", s.imbalance_level,
        ]
        for i, (val, w) in enumerate(zip(row, widths)):
            fill = i == len(row) - 1
            if fill:
                pdf.set_fill_color(*_rgb(IMBALANCE_COLORS.get(s.imbalance_level, "#FFFFFF")))
            pdf.cell(w, 5, _latin1(str(val)), border=1, align="L" if i == 0 else "C", fill=fill)
        pdf.ln()

    if report.messages:
        pdf.ln(4)
        pdf.set_font("Helvetica", "B", 9)
        pdf.cell(0, 6, "Recommendations", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", "", 9)
        for message in report.messages:
            pdf.multi_cell(0, 5, _latin1(f"- {message}"), new_x="LMARGIN", new_y="NEXT")


def export_schedule_pdf(
    entries: Iterable[ScheduleEntry],
    people: Dict[str, Person],
    output: Union[str, Path, io.BytesIO],
    fairness: Optional[FairnessReport] = None,
    title: str = "Schedule",
) -> None:
    schedule = Schedule.from_entries(entries)
    pdf = SchedulePDF(title=title)
    pdf.alias_nb_pages()

    if schedule.entries:
        _matrix_pages(pdf, schedule, people)
    else:
        pdf.add_page()
        pdf.set_font("Helvetica", "", 10)
        pdf.cell(0, 10, "No schedule entries in this period.")

    if fairness is not None and not fairness.is_empty:
        _fairness_page(pdf, fairness)

    if isinstance(output, (str, Path)):
        pdf.output(str(output))
    else:
        output.write(bytes(pdf.output()))
        output.seek(0)

    logger.info(f"PDF export complete: {len(schedule.user_ids)} people, {len(schedule.dates)} days")

"""
Display Rules and Constants
===========================
Central source of truth for shift/activity labels and colors used by the
UI and the exports.
"""
from dataclasses import dataclass
from typing import Dict


@dataclass
class CellStyle:
    code: str
    label: str
    color_bg: str
    color_text: str


SHIFT_STYLES: Dict[str, CellStyle] = {
    "normal": CellStyle("normal", "Normal", "#DDEEFF", "#333333"),
    "early": CellStyle("early", "Early", "#FFF2CC", "#333333"),
    "late": CellStyle("late", "Late", "#E6CCFF", "#333333"),
    "weekend": CellStyle("weekend", "Weekend", "#FFE4CC", "#333333"),
}

ACTIVITY_STYLES: Dict[str, CellStyle] = {
    "vacation": CellStyle("vacation", "Vacation", "#D4EDDA", "#155724"),
    "sick": CellStyle("sick", "Sick", "#F8D7DA", "#721C24"),
    "out_of_office": CellStyle("out_of_office", "Out of office", "#EEEEEE", "#666666"),
    "training": CellStyle("training", "Training", "#D1ECF1", "#0C5460"),
    "flextime": CellStyle("flextime", "FlexTime", "#E2E3E5", "#383D41"),
    "hotline_support": CellStyle("hotline_support", "Hotline", "#CCE5FF", "#004085"),
    "working_from_home": CellStyle("working_from_home", "Home office", "#E8F4FD", "#333333"),
    "other": CellStyle("other", "Other", "#F5F5F5", "#666666"),
}

IMBALANCE_COLORS = {
    "low": "#D4EDDA",
    "medium": "#FFF3CD",
    "high": "#F8D7DA",
}

SHIFT_ORDER = ["normal", "early", "late", "weekend"]


def cell_color(label: str) -> str:
    """Background color (without '#') for a matrix cell label."""
    style = SHIFT_STYLES.get(label) or ACTIVITY_STYLES.get(label)
    return style.color_bg.lstrip("#") if style else "FFFFFF"

# shiftplan/analysis - Fairness, coverage and FlexTime calculations
from .counts import ShiftCount, count_shifts, is_holiday_for
from .coverage import analyze_removal_impact, coverage_table, estimate_swap_coverage
from .fairness import (
    FairnessReport,
    FairnessScore,
    analyze_fairness,
    classify_imbalance,
    normalize_fairness,
    weighted_burden,
)
from .flextime import calculate_flextime, format_flex_hours, summarize_month

__all__ = [
    "ShiftCount", "count_shifts", "is_holiday_for",
    "estimate_swap_coverage", "analyze_removal_impact", "coverage_table",
    "FairnessScore", "FairnessReport", "analyze_fairness",
    "weighted_burden", "normalize_fairness", "classify_imbalance",
    "calculate_flextime", "format_flex_hours", "summarize_month",
]

"""
Coverage Analysis
=================
Staffing counts per date and shift type against a minimum requirement:

- swap impact: before/after counts for the shift types touched by a swap
- removal impact: what happens when a person is taken off the roster
  (vacation, absence) on given dates
- daily coverage table for heatmaps and alerts
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from shiftplan.models.schedule import ScheduleEntry
from shiftplan.models.shift import ShiftType, parse_date
from shiftplan.utils.logging_setup import get_logger, log_check

logger = get_logger("shiftplan.analysis.coverage")


@dataclass
class CoverageSnapshot:
    """Staffing of one shift type on one date, before and after a swap."""
    date: date
    shift_type: str
    current_staff: int
    after_swap_staff: int
    required_staff: int

    @property
    def is_understaffed(self) -> bool:
        return self.after_swap_staff < self.required_staff

    @property
    def change(self) -> int:
        return self.after_swap_staff - self.current_staff


@dataclass
class SwapCoverageReport:
    snapshots: List[CoverageSnapshot] = field(default_factory=list)

    @property
    def has_warning(self) -> bool:
        return any(s.is_understaffed for s in self.snapshots)

    @property
    def badge(self) -> str:
        return "Review Needed" if self.has_warning else "No Issues"


@dataclass
class CoverageWarning:
    """A date on which removing a person drops coverage below requirement."""
    date: date
    shift_type: str
    current_staff: int
    required_staff: int
    remaining_staff: int
    percentage: int
    is_critical: bool


@dataclass
class RemovalImpact:
    warnings: List[CoverageWarning] = field(default_factory=list)

    @property
    def has_impact(self) -> bool:
        return bool(self.warnings)

    @property
    def has_critical_impact(self) -> bool:
        return any(w.is_critical for w in self.warnings)


def _shift_key(value: Optional[Union[str, ShiftType]]) -> str:
    if not value:
        return ShiftType.NORMAL.value
    return ShiftType.from_string(value).value


def estimate_swap_coverage(
    swap_date: Union[str, date],
    entries: Iterable[ScheduleEntry],
    requesting_shift_type: Optional[Union[str, ShiftType]] = None,
    target_shift_type: Optional[Union[str, ShiftType]] = None,
    min_required: int = 1,
) -> SwapCoverageReport:
    """
    Before/after staffing for the shift types involved in a swap.

    ``entries`` are the team's entries; only available ones on ``swap_date``
    are counted. A same-type swap changes nothing. For a cross-type swap the
    requesting user's original type loses one person (never below zero) and
    the target type is left unchanged; this is a bookkeeping approximation,
    not a reassignment simulation. A missing requesting type is shown as
    ``normal`` but never loses anyone.
    """
    swap_date = parse_date(swap_date)
    requesting = _shift_key(requesting_shift_type)
    target = _shift_key(target_shift_type)

    groups: Dict[str, int] = defaultdict(int)
    for e in entries:
        if e.date == swap_date and e.is_available:
            groups[e.shift_type.value] += 1

    report = SwapCoverageReport()
    # Target first, then requesting; a set of one when both match
    for shift_type in dict.fromkeys([target, requesting]):
        current = groups.get(shift_type, 0)
        after = current
        if requesting_shift_type and shift_type == requesting and requesting != target:
            after = max(0, current - 1)
        snap = CoverageSnapshot(
            date=swap_date,
            shift_type=shift_type,
            current_staff=current,
            after_swap_staff=after,
            required_staff=min_required,
        )
        log_check(
            logger, f"min_staffing[{shift_type}]", not snap.is_understaffed,
            f"{current}→{after} of {min_required} on {swap_date}",
        )
        report.snapshots.append(snap)
    return report


def analyze_removal_impact(
    user_id: str,
    dates: Sequence[Union[str, date]],
    entries: Iterable[ScheduleEntry],
    requirements: Dict[str, int],
    shift_type: Optional[Union[str, ShiftType]] = None,
) -> RemovalImpact:
    """
    Coverage warnings if ``user_id`` stops working on ``dates``.

    Args:
        user_id: Person being removed
        dates: Dates to check
        entries: Entries of all teams sharing the requirement
        requirements: staff required per shift type
        shift_type: Shift the user covers (default: their entry's type, else normal)
    """
    entries = list(entries)
    impact = RemovalImpact()
    if not requirements:
        return impact

    for raw in dates:
        day = parse_date(raw)
        working = [e for e in entries if e.date == day and e.activity_type.is_working]
        own = next((e for e in working if e.user_id == user_id), None)
        user_shift = _shift_key(shift_type or (own.shift_type if own else None))

        required = requirements.get(user_shift)
        if required is None:
            continue

        current = sum(1 for e in working if e.shift_type.value == user_shift)
        remaining = current - 1
        if remaining < required:
            impact.warnings.append(CoverageWarning(
                date=day,
                shift_type=user_shift,
                current_staff=current,
                required_staff=required,
                remaining_staff=remaining,
                percentage=round(remaining / required * 100) if required else 0,
                is_critical=remaining < required,
            ))

    if impact.has_impact:
        logger.warning(f"Removing {user_id} leaves {len(impact.warnings)} date(s) under requirement")
    return impact


def coverage_table(
    entries: Iterable[ScheduleEntry],
    min_required: int = 1,
    shift_types: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Table: date, shift_type, assigned, required, gap.

    Counts available entries with a working activity. ``gap`` is
    assigned - required (negative = understaffed).
    """
    shift_types = shift_types or [s.value for s in ShiftType]
    counts: Dict[tuple, int] = defaultdict(int)
    days = set()
    for e in entries:
        days.add(e.date)
        if e.is_available and e.activity_type.is_working:
            counts[(e.date, e.shift_type.value)] += 1

    rows = []
    for day in sorted(days):
        for s in shift_types:
            assigned = counts.get((day, s), 0)
            rows.append({
                "date": day,
                "shift_type": s,
                "assigned": assigned,
                "required": min_required,
                "gap": assigned - min_required,
            })
    return pd.DataFrame(rows, columns=["date", "shift_type", "assigned", "required", "gap"])


def coverage_summary(table: pd.DataFrame) -> Dict[str, int]:
    """Traffic-light summary of a coverage table."""
    if table is None or table.empty:
        return {"cells": 0, "ok": 0, "warn": 0, "bad": 0, "deficit_total": 0}
    ok = int((table["gap"] >= 0).sum())
    warn = int((table["gap"] == -1).sum())
    bad = int((table["gap"] <= -2).sum())
    deficit = int((table["required"] - table["assigned"]).clip(lower=0).sum())
    return {"cells": int(len(table)), "ok": ok, "warn": warn, "bad": bad, "deficit_total": deficit}

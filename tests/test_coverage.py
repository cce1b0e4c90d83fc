"""Tests for coverage analysis."""
from datetime import date

from shiftplan.analysis.coverage import (
    analyze_removal_impact,
    coverage_summary,
    coverage_table,
    estimate_swap_coverage,
)
from shiftplan.models.schedule import ScheduleEntry

DAY = date(2024, 6, 5)


def _entries(*specs):
    """(user_id, shift_type[, activity[, availability]]) tuples on DAY."""
    return [ScheduleEntry(s[0], "t1", DAY, *s[1:]) for s in specs]


class TestSwapCoverage:
    """Tests for estimate_swap_coverage."""

    def test_same_type_swap_changes_nothing(self):
        entries = _entries(("u1", "early"), ("u2", "early"))
        report = estimate_swap_coverage(DAY, entries, "early", "early")
        assert len(report.snapshots) == 1
        snap = report.snapshots[0]
        assert (snap.current_staff, snap.after_swap_staff) == (2, 2)
        assert not report.has_warning
        assert report.badge == "No Issues"

    def test_cross_type_swap_reduces_requesting_type(self):
        entries = _entries(("u1", "early"), ("u2", "normal"))
        report = estimate_swap_coverage(DAY, entries, "early", "normal", min_required=1)
        assert [s.shift_type for s in report.snapshots] == ["normal", "early"]
        normal, early = report.snapshots
        assert (normal.current_staff, normal.after_swap_staff) == (1, 1)
        assert (early.current_staff, early.after_swap_staff) == (1, 0)
        assert early.is_understaffed
        assert early.change == -1
        assert report.has_warning
        assert report.badge == "Review Needed"

    def test_never_below_zero(self):
        report = estimate_swap_coverage(DAY, [], "late", "normal")
        late = report.snapshots[1]
        assert late.current_staff == 0
        assert late.after_swap_staff == 0

    def test_unavailable_and_other_dates_are_ignored(self):
        entries = _entries(("u1", "early"), ("u2", "early", "work", "unavailable"))
        entries.append(ScheduleEntry("u3", "t1", "2024-06-06", "early"))
        report = estimate_swap_coverage(DAY, entries, "early", "late")
        early = report.snapshots[1]
        assert early.current_staff == 1

    def test_missing_shift_types_default_to_normal(self):
        report = estimate_swap_coverage("2024-06-05", _entries(("u1", "normal")), None, None)
        assert [s.shift_type for s in report.snapshots] == ["normal"]

    def test_missing_requesting_type_keeps_normal_staffed(self):
        entries = _entries(("u1", "normal"), ("u2", "late"))
        report = estimate_swap_coverage(DAY, entries, None, "late")
        assert [s.shift_type for s in report.snapshots] == ["late", "normal"]
        assert [s.change for s in report.snapshots] == [0, 0]
        assert report.snapshots[1].after_swap_staff == 1


class TestRemovalImpact:
    """Tests for analyze_removal_impact."""

    def test_no_warning_when_enough_staff_remains(self):
        entries = _entries(("u1", "early"), ("u2", "early"))
        impact = analyze_removal_impact("u1", [DAY], entries, {"early": 1})
        assert not impact.has_impact

    def test_last_person_is_critical(self):
        entries = _entries(("u1", "early"))
        impact = analyze_removal_impact("u1", [DAY], entries, {"early": 1})
        assert impact.has_impact and impact.has_critical_impact
        w = impact.warnings[0]
        assert (w.current_staff, w.remaining_staff, w.required_staff, w.percentage) == (1, 0, 1, 0)

    def test_percentage_of_requirement(self):
        entries = _entries(("u1", "late"), ("u2", "late"))
        impact = analyze_removal_impact("u1", [DAY], entries, {"late": 3})
        assert impact.warnings[0].remaining_staff == 1
        assert impact.warnings[0].percentage == 33

    def test_absences_do_not_count_as_staff(self):
        entries = _entries(("u1", "normal"), ("u2", "normal", "vacation"))
        impact = analyze_removal_impact("u1", [DAY], entries, {"normal": 1})
        assert impact.warnings[0].current_staff == 1

    def test_shift_without_requirement_is_skipped(self):
        entries = _entries(("u1", "weekend"))
        assert not analyze_removal_impact("u1", [DAY], entries, {"early": 1}).has_impact

    def test_no_requirements(self):
        assert not analyze_removal_impact("u1", [DAY], _entries(("u1", "normal")), {}).has_impact

    def test_explicit_shift_type(self):
        """Without an own entry the given shift type is checked."""
        impact = analyze_removal_impact("u9", ["2024-06-05"], _entries(("u1", "late")), {"late": 1}, "late")
        assert impact.warnings[0].current_staff == 1
        assert impact.warnings[0].remaining_staff == 0


class TestCoverageTable:
    def test_rows_per_date_and_shift(self):
        entries = _entries(("u1", "early"), ("u2", "early"), ("u3", "late", "sick"))
        table = coverage_table(entries, min_required=1)
        assert len(table) == 4
        rows = table.set_index("shift_type")
        assert rows.loc["early", "assigned"] == 2
        assert rows.loc["early", "gap"] == 1
        assert rows.loc["late", "assigned"] == 0
        assert rows.loc["late", "gap"] == -1

    def test_summary(self):
        entries = _entries(("u1", "early"))
        summary = coverage_summary(coverage_table(entries, min_required=2))
        assert summary == {"cells": 4, "ok": 0, "warn": 1, "bad": 3, "deficit_total": 7}

    def test_summary_of_empty_table(self):
        assert coverage_summary(coverage_table([]))["cells"] == 0

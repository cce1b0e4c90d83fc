from __future__ import annotations

import argparse
import json
import sys
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pydantic

from shiftplan.analysis.coverage import estimate_swap_coverage
from shiftplan.analysis.fairness import analyze_fairness
from shiftplan.analysis.flextime import format_flex_hours, summarize_month
from shiftplan.errors import NotFoundError, ShiftPlanError
from shiftplan.io.csv_loader import (
    export_entries_csv,
    load_entries,
    load_holidays,
    load_people,
    load_time_entries,
)
from shiftplan.io.excel_export import export_flextime_excel, export_schedule_excel, flextime_filename
from shiftplan.io.pdf_export import export_schedule_pdf
from shiftplan.models.config import AnalysisConfig, load_config
from shiftplan.models.shift import parse_date
from shiftplan.models.team import Team
from shiftplan.models.validated import ValidatedAnalysisConfig
from shiftplan.notify.mailer import mailer_from_settings
from shiftplan.notify.messages import weekly_coverage_digest
from shiftplan.storage.store import ScheduleStore
from shiftplan.utils.logging_setup import get_logger, init_logging
from shiftplan.workflow.swaps import SwapService

logger = get_logger("shiftplan.cli")


def _config(path: Optional[str]) -> AnalysisConfig:
    """Load and validate the analysis config."""
    return ValidatedAnalysisConfig.from_dataclass(load_config(path)).to_dataclass()


def _today(args: argparse.Namespace) -> date:
    return parse_date(args.today) if args.today else date.today()


def _print(data: Dict[str, Any], as_json: bool):
    if as_json:
        print(json.dumps(data, ensure_ascii=False, indent=2, default=str))
        return
    for k, v in data.items():
        if isinstance(v, list):
            print(f"{k}:")
            for item in v:
                print(f" - {item}")
        else:
            print(f"{k}: {v}")


def cmd_fairness(args: argparse.Namespace) -> int:
    config = _config(args.config)
    people = load_people(args.people)
    entries = load_entries(args.entries)
    holidays = load_holidays(args.holidays) if args.holidays else []
    report = analyze_fairness(
        people, entries, holidays,
        team_id=args.team, today=_today(args), config=config,
    )
    if args.json_out:
        _print({
            "average_score": round(report.average_score, 1),
            "scores": [s.to_dict() for s in report.scores],
            "messages": report.messages,
        }, True)
        return 0

    print(f"Fairness ({report.historical_start} → {report.reference_date}, then upcoming)")
    print(f"{'Name':<30} {'Burden':>8} {'Score':>6}  Level")
    for s in report.scores:
        print(f"{s.user_name[:30]:<30} {s.total_weighted:>8.1f} {s.fairness_score:>6.0f}  {s.imbalance_level}")
    print(f"Average: {report.average_score:.1f}")
    for message in report.messages:
        print(f" ! {message}")
    return 0


def cmd_coverage(args: argparse.Namespace) -> int:
    entries = load_entries(args.entries)
    if args.team:
        entries = [e for e in entries if e.team_id == args.team]
    report = estimate_swap_coverage(
        args.date, entries, args.requesting_shift, args.target_shift, min_required=args.min_staff,
    )
    _print({
        "status": report.badge,
        "shifts": [
            f"{s.shift_type}: {s.current_staff} → {s.after_swap_staff} (required {s.required_staff})"
            + (" UNDERSTAFFED" if s.is_understaffed else "")
            for s in report.snapshots
        ],
    }, args.json_out)
    return 1 if report.has_warning and args.strict else 0


def cmd_export(args: argparse.Namespace) -> int:
    people = load_people(args.people) if args.people else {}
    entries = load_entries(args.entries)
    fmt = args.format or args.out.rsplit(".", 1)[-1].lower()

    fairness = None
    if args.with_fairness and people:
        holidays = load_holidays(args.holidays) if args.holidays else []
        fairness = analyze_fairness(people, entries, holidays, today=_today(args), config=_config(args.config))

    if fmt == "csv":
        export_entries_csv(entries, args.out)
    elif fmt == "xlsx":
        export_schedule_excel(entries, people, args.out, fairness=fairness)
    elif fmt == "pdf":
        export_schedule_pdf(entries, people, args.out, fairness=fairness)
    else:
        print(f"Unsupported format: {fmt}", file=sys.stderr)
        return 2
    print(f"Wrote {args.out}")
    return 0


def cmd_flextime(args: argparse.Namespace) -> int:
    config = _config(args.config)
    entries = load_time_entries(args.entries, user_id=args.user)
    limit = args.carryover_limit if args.carryover_limit is not None else config.flextime_carryover_limit
    summary = summarize_month(
        args.user, args.year, args.month, entries,
        previous_balance=args.previous_balance, carryover_limit=limit,
    )
    if args.out:
        out = args.out if not args.out.endswith("/") else args.out + flextime_filename(args.name or args.user, args.year, args.month)
        export_flextime_excel(summary, args.name or args.user, out)
        print(f"Wrote {out}")
    _print({
        "month": f"{args.year}-{args.month:02d}",
        "entries": summary.entry_count,
        "starting_balance": format_flex_hours(summary.previous_balance),
        "flex_earned": format_flex_hours(summary.flex_earned),
        "fza_taken": f"{summary.fza_taken:.2f}h",
        "ending_balance": format_flex_hours(summary.ending_balance),
        "status": summary.status_label,
    }, args.json_out)
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    store = ScheduleStore(args.db)
    counts = {}
    if args.people:
        people = load_people(args.people)
        for person in people.values():
            store.upsert_person(person)
        counts["people"] = len(people)
    if args.entries:
        counts["entries"] = store.bulk_upsert_entries(load_entries(args.entries))
    if args.holidays:
        holidays = load_holidays(args.holidays)
        for h in holidays:
            store.add_holiday(h)
        counts["holidays"] = len(holidays)
    _print({"database": str(store.db_path), **counts}, args.json_out)
    return 0


def _store_team(store: ScheduleStore, team: str) -> Team:
    found = store.get_team(team) or store.find_team_by_name(team)
    if found is None:
        raise NotFoundError(f"Team {team!r} not found")
    return found


def cmd_digest(args: argparse.Namespace) -> int:
    store = ScheduleStore(args.db)
    team = _store_team(store, args.team)
    start = parse_date(args.start) if args.start else date.today()
    entries = store.list_entries(team_ids=[team.id], start_date=start, end_date=start + timedelta(days=args.days - 1))
    members = store.list_people(team.member_ids)
    message = weekly_coverage_digest(
        team.name, entries, members, start, recipients=list(members.values()), days=args.days,
    )
    if args.send:
        sent = mailer_from_settings().send(message)
        print(f"{'Sent' if sent else 'Not sent (no recipients)'}: {message.subject}")
        return 0
    print(message.subject)
    print(message.body)
    return 0


def cmd_expire(args: argparse.Namespace) -> int:
    expired = SwapService(ScheduleStore(args.db)).expire_stale(_today(args))
    _print({"expired": expired}, args.json_out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="shiftplan", description="Shift scheduling fairness and coverage tools")
    p.add_argument("-v", "--verbose", action="count", default=0)
    p.add_argument("--log-file", default=None, help="Also log to this file")
    sub = p.add_subparsers(dest="command", required=True)

    def common(sp, config=True):
        sp.add_argument("--json", dest="json_out", action="store_true", help="JSON output")
        if config:
            sp.add_argument("--config", default=None, help="Analysis config (JSON)")

    sp = sub.add_parser("fairness", help="Fairness scores for a team")
    sp.add_argument("--people", required=True, help="Profiles CSV")
    sp.add_argument("--entries", required=True, help="Schedule entries CSV")
    sp.add_argument("--holidays", default=None, help="Holidays CSV")
    sp.add_argument("--team", default=None, help="Team id to restrict counts to")
    sp.add_argument("--today", default=None, help="Reference date (YYYY-MM-DD)")
    common(sp)
    sp.set_defaults(func=cmd_fairness)

    sp = sub.add_parser("coverage", help="Coverage impact of a shift swap")
    sp.add_argument("--entries", required=True)
    sp.add_argument("--date", required=True)
    sp.add_argument("--requesting-shift", default="normal")
    sp.add_argument("--target-shift", default="normal")
    sp.add_argument("--min-staff", type=int, default=1)
    sp.add_argument("--team", default=None)
    sp.add_argument("--strict", action="store_true", help="Exit 1 when understaffed")
    common(sp, config=False)
    sp.set_defaults(func=cmd_coverage)

    sp = sub.add_parser("export", help="Export a schedule to CSV, Excel or PDF")
    sp.add_argument("--entries", required=True)
    sp.add_argument("--people", default=None)
    sp.add_argument("--holidays", default=None)
    sp.add_argument("--out", required=True)
    sp.add_argument("--format", choices=["csv", "xlsx", "pdf"], default=None)
    sp.add_argument("--with-fairness", action="store_true")
    sp.add_argument("--today", default=None)
    common(sp)
    sp.set_defaults(func=cmd_export)

    sp = sub.add_parser("flextime", help="Monthly FlexTime balance")
    sp.add_argument("--entries", required=True, help="Time entries CSV")
    sp.add_argument("--user", required=True)
    sp.add_argument("--name", default=None, help="Employee name for the statement")
    sp.add_argument("--year", type=int, required=True)
    sp.add_argument("--month", type=int, required=True, choices=range(1, 13), metavar="MONTH")
    sp.add_argument("--previous-balance", type=float, default=0.0)
    sp.add_argument("--carryover-limit", type=float, default=None)
    sp.add_argument("--out", default=None, help="Write the Excel statement here")
    common(sp)
    sp.set_defaults(func=cmd_flextime)

    sp = sub.add_parser("import", help="Load CSV data into the SQLite store")
    sp.add_argument("--db", default="data/shiftplan.db")
    sp.add_argument("--people", default=None)
    sp.add_argument("--entries", default=None)
    sp.add_argument("--holidays", default=None)
    common(sp, config=False)
    sp.set_defaults(func=cmd_import)

    sp = sub.add_parser("digest", help="Weekly duty coverage digest for a team")
    sp.add_argument("--db", default="data/shiftplan.db")
    sp.add_argument("--team", required=True, help="Team id or name")
    sp.add_argument("--start", default=None, help="First day (YYYY-MM-DD, default today)")
    sp.add_argument("--days", type=int, default=7)
    sp.add_argument("--send", action="store_true", help="Email the digest to the team")
    sp.set_defaults(func=cmd_digest)

    sp = sub.add_parser("expire-swaps", help="Expire pending swap requests whose date has passed")
    sp.add_argument("--db", default="data/shiftplan.db")
    sp.add_argument("--today", default=None)
    common(sp, config=False)
    sp.set_defaults(func=cmd_expire)
    return p


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    level = "DEBUG" if args.verbose >= 2 else "INFO" if args.verbose == 1 else "WARNING"
    init_logging(level=level, log_file=args.log_file)
    try:
        return args.func(args)
    except pydantic.ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    except (ShiftPlanError, FileNotFoundError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

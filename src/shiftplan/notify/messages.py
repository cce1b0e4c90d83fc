"""
Notification Messages
=====================
Builds recipient lists, subjects and bodies for swap, vacation and schedule
events, plus the weekly duty coverage digest. Nothing here sends mail; see
``shiftplan.notify.mailer``.
"""
import html
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from shiftplan.models.requests import VacationRequest
from shiftplan.models.schedule import ScheduleEntry
from shiftplan.models.shift import WEEKDAY_SHORT, ShiftType
from shiftplan.models.team import Person

SWAP_CREATED = "request_created"
SWAP_APPROVED = "request_approved"
SWAP_REJECTED = "request_rejected"


@dataclass
class Notification:
    recipients: List[str]
    subject: str
    body: str
    html: Optional[str] = None

    @property
    def is_deliverable(self) -> bool:
        return bool(self.recipients)


def format_long_date(d: date) -> str:
    """e.g. 'Jun 3, 2024'."""
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def _name(person: Optional[Person]) -> str:
    if person is None:
        return "Unknown user"
    return f"{person.first_name} {person.last_name}".strip() or person.user_id


def _emails(people: Iterable[Optional[Person]]) -> List[str]:
    """Non-empty addresses, first occurrence wins."""
    seen = []
    for p in people:
        if p is not None and p.email and p.email not in seen:
            seen.append(p.email)
    return seen


def swap_notification(
    event: str,
    requester: Optional[Person],
    target: Optional[Person],
    swap_date: date,
    managers: Sequence[Person] = (),
    review_notes: Optional[str] = None,
) -> Notification:
    """
    Message for a swap request event.

    created  → target user and team managers
    approved → both users (manager notes appended)
    rejected → requesting user (reason appended)
    """
    when = format_long_date(swap_date)
    if event == SWAP_CREATED:
        body = f"{_name(requester)} has requested to swap shifts with {_name(target)} on {when}."
        return Notification(_emails([target, *managers]), f"Shift swap request for {when}", body)

    if event == SWAP_APPROVED:
        body = f"Your shift swap request with {_name(target)} on {when} has been approved."
        if review_notes:
            body += f"\n\nManager's notes: {review_notes}"
        return Notification(_emails([requester, target]), f"Shift swap approved ({when})", body)

    if event == SWAP_REJECTED:
        body = f"Your shift swap request with {_name(target)} on {when} has been rejected."
        if review_notes:
            body += f"\n\nReason: {review_notes}"
        return Notification(_emails([requester]), f"Shift swap rejected ({when})", body)

    raise ValueError(f"Unknown swap event: {event!r}")


def _vacation_dates(requests: Sequence[VacationRequest]) -> str:
    dates = sorted(r.requested_date for r in requests)
    if not dates:
        return "-"
    if len(dates) == 1:
        return format_long_date(dates[0])
    return f"{format_long_date(dates[0])} - {format_long_date(dates[-1])} ({len(dates)} days)"


def _vacation_lines(requests: Sequence[VacationRequest], team_name: Optional[str] = None) -> List[str]:
    plural = "s" if len(requests) > 1 else ""
    lines = []
    if team_name:
        lines.append(f"Team: {team_name}")
    lines.append(f"Date{plural}: {_vacation_dates(requests)}")
    lines.append(f"Time: {requests[0].time_label if requests else 'Full Day'}")
    notes = requests[0].notes if requests else ""
    if notes:
        lines.append(f"Notes: {notes}")
    return lines


def vacation_requested(
    requester: Person,
    requests: Sequence[VacationRequest],
    approvers: Sequence[Person],
    team_name: str = "",
) -> Notification:
    lines = [f"A new vacation request from {_name(requester)} requires your approval:", ""]
    lines += _vacation_lines(requests, team_name)
    return Notification(
        _emails(approvers),
        f"Vacation Request Pending: {_name(requester)}",
        "\n".join(lines),
    )


def vacation_approved(requester: Person, requests: Sequence[VacationRequest]) -> Notification:
    many = len(requests) > 1
    lines = ["Your vacation request has been approved.", ""]
    lines += _vacation_lines(requests)
    lines += [
        "",
        "Your vacation has been added to the schedule and all other shifts for "
        f"{'these dates' if many else 'this date'} have been removed.",
    ]
    return Notification(_emails([requester]), "Vacation Request Approved", "\n".join(lines))


def vacation_rejected(
    requester: Person,
    requests: Sequence[VacationRequest],
    reason: Optional[str] = None,
) -> Notification:
    lines = ["Your vacation request has been rejected.", ""]
    lines += _vacation_lines(requests)
    if reason:
        lines.append(f"Reason: {reason}")
    return Notification(_emails([requester]), "Vacation Request Rejected", "\n".join(lines))


def schedule_changed(person: Person, entries: Sequence[ScheduleEntry], team_name: str = "") -> Notification:
    """Notice listing the changed days of one person."""
    lines = [f"Hello {person.first_name or _name(person)},", ""]
    lines.append(f"Your schedule{' in ' + team_name if team_name else ''} has changed:")
    for e in sorted(entries, key=lambda x: x.date):
        what = e.shift_type.label if e.activity_type.value == "work" else e.activity_type.value.replace("_", " ")
        lines.append(f"  {WEEKDAY_SHORT[e.date.weekday()]} {format_long_date(e.date)}: {what}")
    return Notification(_emails([person]), "Schedule update", "\n".join(lines))


def weekly_coverage_digest(
    team_name: str,
    entries: Iterable[ScheduleEntry],
    people: Dict[str, Person],
    start_date: date,
    recipients: Sequence[Person] = (),
    days: int = 7,
) -> Notification:
    """
    HTML table: one row per date, one column per shift type, cells listing
    who is working that shift (available, working activities only).
    """
    dates = [start_date + timedelta(days=i) for i in range(days)]
    cells: Dict[tuple, List[str]] = {}
    for e in entries:
        if e.date not in dates or not e.is_available or not e.activity_type.is_working:
            continue
        person = people.get(e.user_id)
        label = (person.initials or _name(person)) if person else e.user_id
        cells.setdefault((e.date, e.shift_type.value), []).append(label)

    shift_types = list(ShiftType)
    header = "".join(f"<th>{s.label}</th>" for s in shift_types)
    rows = []
    text_rows = []
    for d in dates:
        tds = []
        parts = []
        for s in shift_types:
            names = sorted(cells.get((d, s.value), []))
            tds.append(f"<td>{html.escape(', '.join(names)) if names else '-'}</td>")
            if names:
                parts.append(f"{s.label}: {', '.join(names)}")
        day = f"{WEEKDAY_SHORT[d.weekday()]} {format_long_date(d)}"
        rows.append(f"<tr><td>{day}</td>{''.join(tds)}</tr>")
        text_rows.append(f"{day}: {'; '.join(parts) if parts else 'no coverage'}")

    title = f"Duty coverage {team_name}: {format_long_date(dates[0])} - {format_long_date(dates[-1])}"
    body_html = (
        f"<h2>{html.escape(title)}</h2>"
        f"<table border=\"1\" cellpadding=\"4\" cellspacing=\"0\">"
        f"<tr><th>Date</th>{header}</tr>{''.join(rows)}</table>"
    )
    return Notification(_emails(recipients), title, "\n".join(text_rows), html=body_html)

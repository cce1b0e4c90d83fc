"""
Vacation Workflow
=================
Vacation requests are stored one row per day. A multi-day request shares a
``group_id`` and is approved or rejected as a whole.

On approval the user's existing entries for those dates are replaced by
vacation entries (unavailable, normal shift).
"""
import uuid
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Sequence, Union

from shiftplan.analysis.coverage import RemovalImpact, analyze_removal_impact
from shiftplan.errors import NotFoundError, NotificationError, ValidationError
from shiftplan.models.requests import VacationRequest, VacationStatus
from shiftplan.models.schedule import ScheduleEntry
from shiftplan.models.shift import ActivityType, AvailabilityStatus, ShiftType, parse_date
from shiftplan.notify.messages import vacation_approved, vacation_rejected, vacation_requested
from shiftplan.storage.store import ScheduleStore
from shiftplan.utils.logging_setup import WorkflowLogger, get_logger
from shiftplan.utils.structured_logging import get_structured_logger, request_context

logger = get_logger("shiftplan.workflow.vacations")
slog = get_structured_logger("shiftplan.workflow.vacations")

APPROVER_ROLES = ("planner", "admin")


def vacation_note(request: VacationRequest) -> str:
    """Entry note, e.g. 'Vacation - Full Day | Family trip'."""
    note = f"Vacation - {request.time_label}"
    if request.notes:
        note += f" | {request.notes}"
    return note


def vacation_entry(request: VacationRequest) -> ScheduleEntry:
    return ScheduleEntry(
        user_id=request.user_id,
        team_id=request.team_id,
        date=request.requested_date,
        shift_type=ShiftType.NORMAL,
        activity_type=ActivityType.VACATION,
        availability_status=AvailabilityStatus.UNAVAILABLE,
        notes=vacation_note(request),
    )


class VacationService:
    def __init__(self, store: ScheduleStore, mailer=None):
        self.store = store
        self.mailer = mailer

    def _send(self, message, what: str):
        if self.mailer is None:
            return
        try:
            self.mailer.send(message)
        except NotificationError as e:
            logger.warning(f"Vacation {what} notification not delivered: {e}")

    def _load(self, request_ids: Optional[Sequence[str]], group_id: Optional[str]) -> List[VacationRequest]:
        if not request_ids and not group_id:
            raise ValidationError("Either request ids or a group id is required")
        requests = self.store.list_vacations(group_id=group_id, ids=request_ids)
        if not requests:
            raise NotFoundError("Vacation request not found")
        if len({r.user_id for r in requests}) > 1:
            raise ValidationError("Vacation requests of different users cannot be processed together")
        not_pending = [r for r in requests if r.status != VacationStatus.PENDING]
        if not_pending:
            raise ValidationError(f"{len(not_pending)} request(s) have already been processed")
        return requests

    def request(
        self,
        user_id: str,
        team_id: str,
        dates: Iterable[Union[str, date]],
        is_full_day: bool = True,
        start_time: Optional[Union[str, time]] = None,
        end_time: Optional[Union[str, time]] = None,
        notes: str = "",
    ) -> List[VacationRequest]:
        """File one pending request per date."""
        days = sorted({parse_date(d) for d in dates})
        if not days:
            raise ValidationError("At least one date is required")
        if isinstance(start_time, str):
            start_time = time.fromisoformat(start_time)
        if isinstance(end_time, str):
            end_time = time.fromisoformat(end_time)
        if not is_full_day:
            if not (start_time and end_time):
                raise ValidationError("Start and end time are required for a partial day")
            if end_time <= start_time:
                raise ValidationError("End time must be after start time")

        open_days = {
            r.requested_date for r in self.store.list_vacations(user_id=user_id)
            if r.status != VacationStatus.REJECTED
        }
        clash = [d for d in days if d in open_days]
        if clash:
            raise ValidationError(f"Vacation already requested for {', '.join(d.isoformat() for d in clash)}")

        group_id = uuid.uuid4().hex if len(days) > 1 else None
        requests = [
            VacationRequest(
                user_id=user_id,
                team_id=team_id,
                requested_date=d,
                is_full_day=is_full_day,
                start_time=None if is_full_day else start_time,
                end_time=None if is_full_day else end_time,
                notes=notes or "",
                group_id=group_id,
            )
            for d in days
        ]
        self.store.insert_vacations(requests)
        logger.info(f"Vacation requested by {user_id}: {len(days)} day(s) from {days[0]}")

        requester = self.store.get_person(user_id)
        if requester is not None:
            team = self.store.get_team(team_id)
            approver_ids = set(self.store.list_user_ids_by_role(APPROVER_ROLES))
            if team:
                approver_ids.update(team.manager_ids)
            approver_ids.discard(user_id)
            approvers = list(self.store.list_people(sorted(approver_ids)).values())
            self._send(vacation_requested(requester, requests, approvers, team.name if team else ""), "request")
        return requests

    def coverage_impact(self, user_id: str, team_id: str, dates: Sequence[Union[str, date]]) -> RemovalImpact:
        """Coverage warnings if the user is away on ``dates``."""
        days = [parse_date(d) for d in dates]
        if not days:
            return RemovalImpact()
        capacity = self.store.get_capacity(team_id)
        if capacity is None:
            return RemovalImpact()
        requirements = {s.value: capacity.min_staff_required for s in ShiftType}
        entries = self.store.list_entries(team_ids=[team_id], start_date=min(days), end_date=max(days))
        return analyze_removal_impact(user_id, days, entries, requirements)

    def approve(
        self,
        approver_id: str,
        request_ids: Optional[Sequence[str]] = None,
        group_id: Optional[str] = None,
    ) -> List[VacationRequest]:
        wf = WorkflowLogger("shiftplan.workflow.vacations")
        wf.phase("VACATION APPROVAL")
        requests = self._load(request_ids, group_id)
        now = datetime.now()
        for r in requests:
            r.status = VacationStatus.APPROVED
            r.approver_id = approver_id
            r.approved_at = now
        entries = [vacation_entry(r) for r in requests]
        wf.step(f"Replacing {len(entries)} day(s) for {requests[0].user_id} with vacation")
        with request_context(group_id=requests[0].group_id or requests[0].id, team_id=requests[0].team_id):
            self.store.apply_vacation_approval(requests, entries)
            slog.info("vacation_approved", approver_id=approver_id, days=len(entries))

        requester = self.store.get_person(requests[0].user_id)
        if requester is not None:
            self._send(vacation_approved(requester, requests), "approval")
        return requests

    def reject(
        self,
        approver_id: str,
        reason: Optional[str] = None,
        request_ids: Optional[Sequence[str]] = None,
        group_id: Optional[str] = None,
    ) -> List[VacationRequest]:
        requests = self._load(request_ids, group_id)
        now = datetime.now()
        for r in requests:
            r.status = VacationStatus.REJECTED
            r.approver_id = approver_id
            r.rejected_at = now
            r.rejection_reason = reason
        self.store.update_vacations(requests)
        logger.info(f"Rejected {len(requests)} vacation request(s) of {requests[0].user_id}")
        slog.info("vacation_rejected", team_id=requests[0].team_id, approver_id=approver_id, days=len(requests))

        requester = self.store.get_person(requests[0].user_id)
        if requester is not None:
            self._send(vacation_rejected(requester, requests, reason), "rejection")
        return requests

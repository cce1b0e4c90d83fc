"""
Shift Swap Workflow
===================
Create, review and close shift swap requests.

    pending ──approve──▶ approved   (shift types of both entries exchanged)
            ──reject───▶ rejected
            ──cancel───▶ cancelled  (by the requesting user)
            ──expire───▶ expired    (swap date passed while pending)

Final states never change again.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Union

from shiftplan.analysis.coverage import SwapCoverageReport, estimate_swap_coverage
from shiftplan.errors import NotFoundError, NotificationError, ValidationError
from shiftplan.models.requests import ShiftSwapRequest, SwapStatus
from shiftplan.models.shift import parse_date
from shiftplan.notify.messages import (
    SWAP_APPROVED,
    SWAP_CREATED,
    SWAP_REJECTED,
    format_long_date,
    swap_notification,
)
from shiftplan.storage.store import ScheduleStore
from shiftplan.utils.logging_setup import WorkflowLogger, get_logger, log_check
from shiftplan.utils.structured_logging import get_structured_logger, request_context

logger = get_logger("shiftplan.workflow.swaps")
slog = get_structured_logger("shiftplan.workflow.swaps")


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def _teams_compatible(store: ScheduleStore, team_a: str, team_b: str) -> bool:
    return team_a == team_b or store.are_partnered(team_a, team_b)


def validate_swap_request(
    store: ScheduleStore,
    requesting_user_id: str,
    requesting_entry_id: str,
    target_user_id: str,
    target_entry_id: str,
    swap_date: Union[str, date],
    team_id: str,
    today: Optional[date] = None,
) -> ValidationResult:
    """Checks run in order; the first failing one is reported."""
    swap_date = parse_date(swap_date)
    today = today or date.today()

    if requesting_user_id == target_user_id:
        return ValidationResult(False, "Cannot swap with yourself")
    if swap_date < today:
        return ValidationResult(False, "Cannot swap shifts in the past")
    if requesting_entry_id == target_entry_id:
        return ValidationResult(False, "Schedule entries not found")

    requesting = store.get_entry(requesting_entry_id)
    target = store.get_entry(target_entry_id)
    if requesting is None or target is None:
        return ValidationResult(False, "Schedule entries not found")

    if not _teams_compatible(store, requesting.team_id, target.team_id):
        return ValidationResult(False, "Users must be in the same team or in a planning partnership")
    if requesting.team_id != team_id:
        return ValidationResult(False, "Invalid team ID for requesting user")
    if requesting.date != target.date:
        return ValidationResult(False, "Shifts must be on the same date")
    if not requesting.activity_type.is_swappable:
        return ValidationResult(False, "Your shift is not available for swapping")
    if not target.activity_type.is_swappable:
        return ValidationResult(False, "Target shift is not available for swapping")
    if not (requesting.is_available and target.is_available):
        return ValidationResult(False, "Both shifts must be available")

    pending = store.list_swaps(status=SwapStatus.PENDING, swap_date=swap_date)
    if any(r.involves(requesting_user_id) or r.involves(target_user_id) for r in pending):
        return ValidationResult(False, "A pending swap request already exists for this date")

    return ValidationResult(True)


def validate_swap_approval(store: ScheduleStore, request_id: str) -> ValidationResult:
    request = store.get_swap(request_id)
    if request is None:
        return ValidationResult(False, "Swap request not found")
    if request.status != SwapStatus.PENDING:
        return ValidationResult(False, "Swap request has already been processed")
    if request.requesting_entry_id == request.target_entry_id:
        return ValidationResult(False, "Swap request must reference two different schedule entries")

    requesting = store.get_entry(request.requesting_entry_id)
    target = store.get_entry(request.target_entry_id)
    if requesting is None or target is None:
        return ValidationResult(False, "One or both schedule entries no longer exist")
    if not (requesting.activity_type.is_swappable and target.activity_type.is_swappable):
        return ValidationResult(False, "One or both shifts are no longer available for swapping")
    if not (requesting.is_available and target.is_available):
        return ValidationResult(False, "One or both shifts are no longer available")
    return ValidationResult(True)


class SwapService:
    """
    Swap request operations on top of a ScheduleStore.

    Usage:
        service = SwapService(store, mailer=LogMailer())
        req = service.create_request("u1", e1.id, "u2", e2.id, e1.date, team.id, reason="Doctor")
        service.approve(req.id, reviewer_id="m1", notes="ok")
    """

    def __init__(self, store: ScheduleStore, mailer=None, default_min_staff: int = 1):
        self.store = store
        self.mailer = mailer
        self.default_min_staff = default_min_staff

    def _require(self, request_id: str) -> ShiftSwapRequest:
        request = self.store.get_swap(request_id)
        if request is None:
            raise NotFoundError(f"Swap request {request_id} not found")
        return request

    def _notify(self, event: str, request: ShiftSwapRequest):
        if self.mailer is None:
            return
        people = self.store.list_people([request.requesting_user_id, request.target_user_id])
        managers = []
        if event == SWAP_CREATED:
            team = self.store.get_team(request.team_id)
            if team:
                managers = list(self.store.list_people(team.manager_ids).values())
        message = swap_notification(
            event,
            people.get(request.requesting_user_id),
            people.get(request.target_user_id),
            request.swap_date,
            managers=managers,
            review_notes=request.review_notes,
        )
        try:
            self.mailer.send(message)
        except NotificationError as e:
            # request already stored
            logger.warning(f"Swap {request.id}: {event} notification not delivered: {e}")

    def create_request(
        self,
        requesting_user_id: str,
        requesting_entry_id: str,
        target_user_id: str,
        target_entry_id: str,
        swap_date: Union[str, date],
        team_id: str,
        reason: str = "",
        today: Optional[date] = None,
    ) -> ShiftSwapRequest:
        wf = WorkflowLogger("shiftplan.workflow.swaps")
        wf.phase("SWAP REQUEST")
        wf.step(f"{requesting_user_id} → {target_user_id} on {swap_date}")
        result = validate_swap_request(
            self.store, requesting_user_id, requesting_entry_id,
            target_user_id, target_entry_id, swap_date, team_id, today,
        )
        wf.check("swap_request_valid", result.valid, result.error or "")
        if not result:
            raise ValidationError(result.error)

        request = self.store.insert_swap(ShiftSwapRequest(
            requesting_user_id=requesting_user_id,
            requesting_entry_id=requesting_entry_id,
            target_user_id=target_user_id,
            target_entry_id=target_entry_id,
            swap_date=swap_date,
            team_id=team_id,
            reason=reason or "",
        ))
        wf.detail("request_id", request.id)
        slog.info("swap_requested", request_id=request.id, team_id=team_id, swap_date=str(request.swap_date))
        self._notify(SWAP_CREATED, request)
        return request

    def preview_coverage(self, request: ShiftSwapRequest) -> SwapCoverageReport:
        """Coverage before/after for the team on the swap date."""
        entries = self.store.list_entries(
            team_ids=[request.team_id], start_date=request.swap_date, end_date=request.swap_date
        )
        requesting = self.store.get_entry(request.requesting_entry_id)
        target = self.store.get_entry(request.target_entry_id)
        capacity = self.store.get_capacity(request.team_id)
        min_required = capacity.min_staff_required if capacity else self.default_min_staff
        return estimate_swap_coverage(
            request.swap_date,
            entries,
            requesting.shift_type if requesting else None,
            target.shift_type if target else None,
            min_required=min_required,
        )

    def approve(self, request_id: str, reviewer_id: str, notes: Optional[str] = None) -> ShiftSwapRequest:
        result = validate_swap_approval(self.store, request_id)
        log_check(logger, "swap_approval_valid", result.valid, result.error or request_id)
        if not result:
            raise ValidationError(result.error)

        request = self._require(request_id)
        with request_context(request_id=request_id, team_id=request.team_id):
            request.status = SwapStatus.APPROVED
            request.reviewed_by = reviewer_id
            request.reviewed_at = datetime.now()
            request.review_notes = notes
            note = f"Shift swapped via approved request on {format_long_date(request.reviewed_at.date())}"
            self.store.apply_swap(request, note)
            logger.info(f"Swap {request_id} approved by {reviewer_id}")
            slog.info("swap_approved", reviewer_id=reviewer_id, swap_date=str(request.swap_date))
            self._notify(SWAP_APPROVED, request)
        return request

    def reject(self, request_id: str, reviewer_id: str, notes: Optional[str] = None) -> ShiftSwapRequest:
        request = self._require(request_id)
        if request.status.is_final:
            raise ValidationError("Swap request has already been processed")
        request.status = SwapStatus.REJECTED
        request.reviewed_by = reviewer_id
        request.reviewed_at = datetime.now()
        request.review_notes = notes
        self.store.update_swap_status(request)
        logger.info(f"Swap {request_id} rejected by {reviewer_id}")
        slog.info("swap_rejected", request_id=request_id, team_id=request.team_id, reviewer_id=reviewer_id)
        self._notify(SWAP_REJECTED, request)
        return request

    def cancel(self, request_id: str, user_id: str) -> ShiftSwapRequest:
        """Withdraw a pending request. Only the requesting user may cancel."""
        request = self._require(request_id)
        if request.requesting_user_id != user_id:
            raise ValidationError("Only the requesting user can cancel a swap request")
        if request.status.is_final:
            raise ValidationError("Swap request has already been processed")
        request.status = SwapStatus.CANCELLED
        self.store.update_swap_status(request)
        logger.info(f"Swap {request_id} cancelled by {user_id}")
        return request

    def expire_stale(self, today: Optional[date] = None) -> int:
        """Mark pending requests whose swap date has passed as expired."""
        today = today or date.today()
        expired = 0
        for request in self.store.list_swaps(status=SwapStatus.PENDING):
            if request.swap_date < today:
                request.status = SwapStatus.EXPIRED
                self.store.update_swap_status(request)
                expired += 1
        if expired:
            logger.info(f"Expired {expired} stale swap request(s)")
        return expired

    def list_for_user(self, user_id: str) -> List[ShiftSwapRequest]:
        return self.store.list_swaps(user_id=user_id)

    def list_pending(self, team_id: Optional[str] = None) -> List[ShiftSwapRequest]:
        return self.store.list_swaps(status=SwapStatus.PENDING, team_id=team_id)

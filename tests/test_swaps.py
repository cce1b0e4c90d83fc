"""Tests for the shift swap workflow."""
from datetime import date
from unittest.mock import MagicMock

import pytest

from shiftplan.errors import NotFoundError, NotificationError, ValidationError
from shiftplan.models.requests import ShiftSwapRequest, SwapStatus
from shiftplan.models.schedule import ScheduleEntry
from shiftplan.models.shift import ShiftType
from shiftplan.models.team import CapacityConfig
from shiftplan.notify.messages import format_long_date
from shiftplan.workflow.swaps import SwapService, validate_swap_approval, validate_swap_request

SWAP_DAY = date(2024, 6, 5)


@pytest.fixture
def entries(seeded_store):
    e1 = seeded_store.list_entries(user_ids=["u1"])[0]
    e2 = seeded_store.list_entries(user_ids=["u2"])[0]
    return e1, e2


@pytest.fixture
def service(seeded_store, mailer):
    return SwapService(seeded_store, mailer=mailer)


def _validate(store, e1, e2, team_id, today, **overrides):
    args = dict(
        requesting_user_id=e1.user_id,
        requesting_entry_id=e1.id,
        target_user_id=e2.user_id,
        target_entry_id=e2.id,
        swap_date=e1.date,
        team_id=team_id,
        today=today,
    )
    args.update(overrides)
    return validate_swap_request(store, **args)


class TestValidateSwapRequest:
    """Tests for validate_swap_request, in rule order."""

    def test_valid(self, seeded_store, entries, team_id, today):
        result = _validate(seeded_store, *entries, team_id, today)
        assert result.valid and bool(result)
        assert result.error is None

    def test_cannot_swap_with_yourself(self, seeded_store, entries, team_id, today):
        e1, _ = entries
        result = _validate(seeded_store, e1, e1, team_id, today)
        assert result.error == "Cannot swap with yourself"

    def test_past_date(self, seeded_store, entries, team_id):
        result = _validate(seeded_store, *entries, team_id, date(2024, 6, 6))
        assert result.error == "Cannot swap shifts in the past"

    def test_swap_on_today_is_allowed(self, seeded_store, entries, team_id):
        assert _validate(seeded_store, *entries, team_id, SWAP_DAY).valid

    def test_missing_entry(self, seeded_store, entries, team_id, today):
        result = _validate(seeded_store, *entries, team_id, today, target_entry_id="missing")
        assert result.error == "Schedule entries not found"

    def test_same_entry_on_both_sides(self, seeded_store, entries, team_id, today):
        e1, _ = entries
        result = _validate(seeded_store, *entries, team_id, today, target_entry_id=e1.id)
        assert not result
        assert result.error == "Schedule entries not found"

    def test_other_team_without_partnership(self, seeded_store, entries, team_id, today):
        other = seeded_store.insert_team("Sales")
        e1, _ = entries
        foreign = seeded_store.upsert_entry(ScheduleEntry("u9", other.id, SWAP_DAY, "late"))
        result = _validate(seeded_store, e1, foreign, team_id, today)
        assert result.error == "Users must be in the same team or in a planning partnership"

    def test_partnered_team_is_allowed(self, seeded_store, entries, team_id, today):
        other = seeded_store.insert_team("Sales")
        seeded_store.add_partnership(team_id, other.id)
        e1, _ = entries
        foreign = seeded_store.upsert_entry(ScheduleEntry("u9", other.id, SWAP_DAY, "late"))
        assert _validate(seeded_store, e1, foreign, team_id, today).valid

    def test_team_must_match_requesting_entry(self, seeded_store, entries, today):
        result = _validate(seeded_store, *entries, "another-team", today)
        assert result.error == "Invalid team ID for requesting user"

    def test_dates_must_match(self, seeded_store, entries, team_id, today):
        e1, _ = entries
        later = seeded_store.upsert_entry(ScheduleEntry("u2", team_id, "2024-06-06", "late"))
        result = _validate(seeded_store, e1, later, team_id, today)
        assert result.error == "Shifts must be on the same date"

    def test_own_shift_not_swappable(self, seeded_store, entries, team_id, today):
        e1, e2 = entries
        seeded_store.upsert_entry(ScheduleEntry("u1", team_id, SWAP_DAY, "early", "vacation"))
        result = _validate(seeded_store, e1, e2, team_id, today)
        assert result.error == "Your shift is not available for swapping"

    def test_target_shift_not_swappable(self, seeded_store, entries, team_id, today):
        e1, e2 = entries
        seeded_store.upsert_entry(ScheduleEntry("u2", team_id, SWAP_DAY, "normal", "sick"))
        result = _validate(seeded_store, e1, e2, team_id, today)
        assert result.error == "Target shift is not available for swapping"

    def test_both_must_be_available(self, seeded_store, entries, team_id, today):
        e1, e2 = entries
        seeded_store.upsert_entry(
            ScheduleEntry("u2", team_id, SWAP_DAY, "normal", availability_status="unavailable")
        )
        result = _validate(seeded_store, e1, e2, team_id, today)
        assert result.error == "Both shifts must be available"

    def test_pending_request_for_either_user_blocks(self, service, seeded_store, entries, team_id, today):
        e1, e2 = entries
        e3 = seeded_store.upsert_entry(ScheduleEntry("u3", team_id, SWAP_DAY, "late"))
        service.create_request("u1", e1.id, "u2", e2.id, SWAP_DAY, team_id, today=today)
        result = _validate(seeded_store, e3, e2, team_id, today)
        assert result.error == "A pending swap request already exists for this date"


class TestSwapService:
    """Tests for SwapService."""

    def _create(self, service, entries, team_id, today, reason="Doctor"):
        e1, e2 = entries
        return service.create_request("u1", e1.id, "u2", e2.id, SWAP_DAY, team_id, reason=reason, today=today)

    def test_create_request(self, service, entries, team_id, today):
        request = self._create(service, entries, team_id, today)
        assert request.status == SwapStatus.PENDING
        assert request.reason == "Doctor"
        assert [r.id for r in service.list_pending(team_id)] == [request.id]

    def test_create_notifies_target_and_managers(self, service, entries, team_id, today, mailer):
        self._create(service, entries, team_id, today)
        message = mailer.outbox[-1]
        assert set(message.recipients) == {"bob@example.com", "mona@example.com"}

    def test_invalid_request_raises(self, service, entries, team_id):
        with pytest.raises(ValidationError, match="Cannot swap shifts in the past"):
            self._create(service, entries, team_id, date(2024, 7, 1))

    def test_approve_swaps_shift_types(self, service, seeded_store, entries, team_id, today, mailer):
        request = self._create(service, entries, team_id, today)
        approved = service.approve(request.id, "m1", "Fine by me")
        assert approved.status == SwapStatus.APPROVED
        assert approved.reviewed_by == "m1"
        e1, e2 = entries
        assert seeded_store.get_entry(e1.id).shift_type == ShiftType.NORMAL
        assert seeded_store.get_entry(e2.id).shift_type == ShiftType.EARLY
        note = f"Shift swapped via approved request on {format_long_date(approved.reviewed_at.date())}"
        assert seeded_store.get_entry(e1.id).notes == note
        assert seeded_store.get_entry(e2.id).notes == note
        assert "Manager's notes: Fine by me" in mailer.outbox[-1].body

    def test_approve_twice_fails(self, service, entries, team_id, today):
        request = self._create(service, entries, team_id, today)
        service.approve(request.id, "m1")
        with pytest.raises(ValidationError, match="already been processed"):
            service.approve(request.id, "m1")

    def test_approve_unknown(self, service):
        with pytest.raises(ValidationError, match="Swap request not found"):
            service.approve("missing", "m1")

    def test_approve_rejects_same_entry_on_both_sides(self, service, seeded_store, entries, team_id):
        e1, _ = entries
        request = seeded_store.insert_swap(ShiftSwapRequest(
            requesting_user_id="u1", requesting_entry_id=e1.id,
            target_user_id="u2", target_entry_id=e1.id,
            swap_date=SWAP_DAY, team_id=team_id,
        ))
        result = validate_swap_approval(seeded_store, request.id)
        assert result.error == "Swap request must reference two different schedule entries"
        with pytest.raises(ValidationError):
            service.approve(request.id, "m1")
        assert seeded_store.get_swap(request.id).status == SwapStatus.PENDING
        assert seeded_store.get_entry(e1.id).notes == ""

    def test_approve_after_shift_became_unavailable(self, service, seeded_store, entries, team_id, today):
        request = self._create(service, entries, team_id, today)
        seeded_store.upsert_entry(ScheduleEntry("u2", team_id, SWAP_DAY, "normal", "vacation"))
        result = validate_swap_approval(seeded_store, request.id)
        assert result.error == "One or both shifts are no longer available for swapping"
        with pytest.raises(ValidationError):
            service.approve(request.id, "m1")

    def test_reject(self, service, seeded_store, entries, team_id, today, mailer):
        request = self._create(service, entries, team_id, today)
        rejected = service.reject(request.id, "m1", "Short staffed")
        assert rejected.status == SwapStatus.REJECTED
        assert seeded_store.get_swap(request.id).review_notes == "Short staffed"
        assert mailer.outbox[-1].recipients == ["alice@example.com"]
        assert "Reason: Short staffed" in mailer.outbox[-1].body
        e1, _ = entries
        assert seeded_store.get_entry(e1.id).shift_type == ShiftType.EARLY

    def test_reject_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.reject("missing", "m1")

    def test_cancel_only_by_requester(self, service, entries, team_id, today):
        request = self._create(service, entries, team_id, today)
        with pytest.raises(ValidationError, match="Only the requesting user"):
            service.cancel(request.id, "u2")
        assert service.cancel(request.id, "u1").status == SwapStatus.CANCELLED
        with pytest.raises(ValidationError):
            service.cancel(request.id, "u1")

    def test_expire_stale(self, service, seeded_store, entries, team_id, today):
        request = self._create(service, entries, team_id, today)
        assert service.expire_stale(date(2024, 6, 5)) == 0
        assert service.expire_stale(date(2024, 6, 6)) == 1
        assert seeded_store.get_swap(request.id).status == SwapStatus.EXPIRED

    def test_list_for_user(self, service, entries, team_id, today):
        self._create(service, entries, team_id, today)
        assert len(service.list_for_user("u2")) == 1
        assert service.list_for_user("u3") == []

    def test_preview_coverage(self, service, seeded_store, entries, team_id, today):
        request = self._create(service, entries, team_id, today)
        report = service.preview_coverage(request)
        assert [s.shift_type for s in report.snapshots] == ["normal", "early"]
        assert report.has_warning

        seeded_store.set_capacity(CapacityConfig(team_id, min_staff_required=0))
        assert not service.preview_coverage(request).has_warning

    def test_delivery_failure_keeps_request(self, seeded_store, entries, team_id, today, caplog):
        failing = MagicMock()
        failing.send.side_effect = NotificationError("smtp down")
        service = SwapService(seeded_store, mailer=failing)
        request = self._create(service, entries, team_id, today)
        assert seeded_store.get_swap(request.id) is not None
        assert "notification not delivered" in caplog.text

    def test_without_mailer(self, seeded_store, entries, team_id, today):
        request = self._create(SwapService(seeded_store), entries, team_id, today)
        assert request.id

"""
Shift Swap View
===============
Request swaps, preview their coverage impact and review pending requests.
"""
from typing import Dict

import pandas as pd
import pydantic
import streamlit as st

from app.state.session import SessionStateManager
from shiftplan.errors import ShiftPlanError
from shiftplan.models.schedule import entry_label
from shiftplan.models.team import Person
from shiftplan.models.validated import SwapRequestPayload
from shiftplan.notify.mailer import mailer_from_settings
from shiftplan.workflow.swaps import SwapService


def _service(state: SessionStateManager) -> SwapService:
    config = state.analysis_config
    return SwapService(
        state.store,
        mailer=mailer_from_settings(),
        default_min_staff=config.default_min_staff if config else 1,
    )


def _name(people: Dict[str, Person], user_id: str) -> str:
    return people[user_id].display_name if user_id in people else user_id


def render_swaps(state: SessionStateManager, people: Dict[str, Person]):
    user_id = state.current_user_id
    if not user_id or not state.team_id:
        st.info("👋 Select a team and who you are acting as.")
        return

    service = _service(state)
    t1, t2, t3 = st.tabs(["➕ New request", "📨 My requests", "✅ Review"])
    with t1:
        _render_new_request(state, service, people, user_id)
    with t2:
        _render_my_requests(service, people, user_id)
    with t3:
        _render_review(state, service, people, user_id)


def _render_new_request(state: SessionStateManager, service: SwapService, people, user_id: str):
    store = state.store
    swap_date = st.date_input("Date", value=state.reference_date, key="swap_date")
    own = store.list_entries(user_ids=[user_id], start_date=swap_date, end_date=swap_date)
    if not own:
        st.info("You have no shift on this date.")
        return
    mine = own[0]
    st.write(f"Your shift: **{entry_label(mine)}**")

    team_ids = [mine.team_id] + [
        t.id for t in store.list_teams()
        if t.id != mine.team_id and store.are_partnered(mine.team_id, t.id)
    ]
    candidates = [
        e for e in store.list_entries(team_ids=team_ids, start_date=swap_date, end_date=swap_date)
        if e.user_id != user_id
    ]
    if not candidates:
        st.info("Nobody else is scheduled on this date.")
        return

    by_id = {e.id: e for e in candidates}
    target_id = st.selectbox(
        "Swap with", list(by_id),
        format_func=lambda eid: f"{_name(people, by_id[eid].user_id)} ({entry_label(by_id[eid])})",
        key="swap_target",
    )
    reason = st.text_area("Reason", key="swap_reason")

    if st.button("Send request", key="swap_submit"):
        target = by_id[target_id]
        try:
            payload = SwapRequestPayload(
                requesting_user_id=user_id,
                requesting_entry_id=mine.id,
                target_user_id=target.user_id,
                target_entry_id=target.id,
                swap_date=swap_date,
                team_id=mine.team_id,
                reason=reason,
            )
            request = service.create_request(**payload.model_dump(), today=state.reference_date)
            st.success(f"✅ Request sent to {_name(people, request.target_user_id)}")
        except pydantic.ValidationError as e:
            st.error(f"Invalid request: {e}")
        except ShiftPlanError as e:
            st.error(str(e))


def _render_my_requests(service: SwapService, people, user_id: str):
    requests = service.list_for_user(user_id)
    if not requests:
        st.info("No swap requests.")
        return
    df = pd.DataFrame([{
        "Date": r.swap_date,
        "From": _name(people, r.requesting_user_id),
        "With": _name(people, r.target_user_id),
        "Status": r.status.value,
        "Reason": r.reason,
        "Review notes": r.review_notes or "",
    } for r in requests])
    st.dataframe(df, width="stretch", hide_index=True)

    pending = [r for r in requests if r.requesting_user_id == user_id and not r.status.is_final]
    if pending:
        request_id = st.selectbox(
            "Cancel request", [r.id for r in pending],
            format_func=lambda rid: next(str(r.swap_date) for r in pending if r.id == rid),
            key="swap_cancel_id",
        )
        if st.button("Cancel", key="swap_cancel"):
            try:
                service.cancel(request_id, user_id)
                st.success("Request cancelled")
            except ShiftPlanError as e:
                st.error(str(e))


def _render_review(state: SessionStateManager, service: SwapService, people, user_id: str):
    requests = service.list_pending(team_id=state.team_id)
    if not requests:
        st.info("No pending swap requests for this team.")
        return

    for request in requests:
        title = (
            f"{request.swap_date}: {_name(people, request.requesting_user_id)} ↔ "
            f"{_name(people, request.target_user_id)}"
        )
        with st.expander(title, expanded=False):
            if request.reason:
                st.write(request.reason)
            report = service.preview_coverage(request)
            if report.has_warning:
                st.warning(f"⚠️ {report.badge}")
            else:
                st.success(f"✅ {report.badge}")
            st.dataframe(pd.DataFrame([{
                "Shift": s.shift_type,
                "Current": s.current_staff,
                "After swap": s.after_swap_staff,
                "Required": s.required_staff,
            } for s in report.snapshots]), width="stretch", hide_index=True)

            notes = st.text_input("Notes", key=f"notes_{request.id}")
            col1, col2 = st.columns(2)
            with col1:
                if st.button("Approve", key=f"approve_{request.id}"):
                    try:
                        service.approve(request.id, user_id, notes or None)
                        state.clear_results()
                        st.success("✅ Swap approved")
                    except ShiftPlanError as e:
                        st.error(str(e))
            with col2:
                if st.button("Reject", key=f"reject_{request.id}"):
                    try:
                        service.reject(request.id, user_id, notes or None)
                        st.info("Swap rejected")
                    except ShiftPlanError as e:
                        st.error(str(e))

"""
Vacation View
=============
"""
from datetime import time, timedelta
from typing import Dict

import pandas as pd
import streamlit as st

from app.state.session import SessionStateManager
from shiftplan.errors import ShiftPlanError
from shiftplan.models.requests import VacationStatus
from shiftplan.models.team import Person
from shiftplan.notify.mailer import mailer_from_settings
from shiftplan.workflow.vacations import APPROVER_ROLES, VacationService


def render_vacations(state: SessionStateManager, people: Dict[str, Person]):
    user_id = state.current_user_id
    team_id = state.team_id
    if not user_id or not team_id:
        st.info("👋 Select a team and who you are acting as.")
        return

    service = VacationService(state.store, mailer=mailer_from_settings())
    me = people.get(user_id)

    st.subheader("Request vacation")
    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("From", value=state.reference_date, key="vac_from")
    with col2:
        end = st.date_input("To", value=state.reference_date, key="vac_to")
    full_day = st.checkbox("Full day", value=True, key="vac_full")
    start_time = end_time = None
    if not full_day:
        col1, col2 = st.columns(2)
        with col1:
            start_time = st.time_input("Start", value=time(8, 0), key="vac_start_time")
        with col2:
            end_time = st.time_input("End", value=time(12, 0), key="vac_end_time")
    notes = st.text_input("Notes", key="vac_notes")

    days = [start + timedelta(days=i) for i in range((end - start).days + 1)] if end >= start else []
    impact = service.coverage_impact(user_id, team_id, days)
    for w in impact.warnings:
        message = (
            f"{w.date} {w.shift_type}: {w.remaining_staff}/{w.required_staff} staff remaining ({w.percentage}%)"
        )
        if w.is_critical:
            st.error(f"🔴 {message}")
        else:
            st.warning(f"⚠️ {message}")

    if st.button("Submit request", key="vac_submit"):
        try:
            created = service.request(user_id, team_id, days, full_day, start_time, end_time, notes)
            st.success(f"✅ {len(created)} day(s) requested")
        except ShiftPlanError as e:
            st.error(str(e))

    st.divider()
    st.subheader("My requests")
    mine = state.store.list_vacations(user_id=user_id)
    if mine:
        st.dataframe(pd.DataFrame([{
            "Date": r.requested_date,
            "Time": r.time_label,
            "Status": r.status.value,
            "Notes": r.notes,
            "Rejection reason": r.rejection_reason or "",
        } for r in mine]), width="stretch", hide_index=True)
    else:
        st.info("No vacation requests.")

    team = state.store.get_team(team_id)
    can_approve = (me is not None and me.role in APPROVER_ROLES) or (team is not None and user_id in team.manager_ids)
    if not can_approve:
        return

    st.divider()
    st.subheader("Pending approval")
    pending = [
        r for r in state.store.list_vacations(status=VacationStatus.PENDING)
        if r.team_id == team_id and r.user_id != user_id
    ]
    if not pending:
        st.info("Nothing to approve.")
        return

    groups: Dict[str, list] = {}
    for r in pending:
        groups.setdefault(r.group_id or r.id, []).append(r)

    for key, requests in groups.items():
        owner = people[requests[0].user_id].display_name if requests[0].user_id in people else requests[0].user_id
        dates = ", ".join(str(r.requested_date) for r in requests)
        with st.expander(f"{owner}: {dates}"):
            ids = [r.id for r in requests]
            reason = st.text_input("Reason (for rejection)", key=f"vac_reason_{key}")
            col1, col2 = st.columns(2)
            with col1:
                if st.button("Approve", key=f"vac_approve_{key}"):
                    try:
                        service.approve(user_id, request_ids=ids)
                        state.clear_results()
                        st.success("✅ Approved")
                    except ShiftPlanError as e:
                        st.error(str(e))
            with col2:
                if st.button("Reject", key=f"vac_reject_{key}"):
                    try:
                        service.reject(user_id, reason or None, request_ids=ids)
                        st.info("Rejected")
                    except ShiftPlanError as e:
                        st.error(str(e))

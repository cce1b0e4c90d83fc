"""
Teams View
==========
Create teams, manage members, capacity and planning partners.
"""
from typing import Dict

import pandas as pd
import streamlit as st

from app.state.session import SessionStateManager
from shiftplan.errors import ShiftPlanError
from shiftplan.models.team import Person
from shiftplan.workflow.teams import TeamService


def render_teams(state: SessionStateManager, people: Dict[str, Person]):
    service = TeamService(state.store)

    with st.form("create_team"):
        st.subheader("New team")
        name = st.text_input("Name")
        description = st.text_input("Description")
        if st.form_submit_button("Create"):
            try:
                team = service.create_team(name, description)
                state.team_id = team.id
                state.flash(f"✅ Team '{team.name}' created")
                st.rerun()
            except ShiftPlanError as e:
                st.error(str(e))

    team_id = state.team_id
    if not team_id:
        return
    team = state.store.get_team(team_id)
    if team is None:
        return

    st.divider()
    st.subheader(f"👥 {team.name}")
    if team.members:
        st.dataframe(pd.DataFrame([{
            "Name": people[m.user_id].display_name if m.user_id in people else m.user_id,
            "Role": people[m.user_id].role if m.user_id in people else "",
            "Manager": m.is_manager,
        } for m in team.members]), width="stretch", hide_index=True)

    candidates = [u for u in people if u not in team.member_ids]
    col1, col2 = st.columns(2)
    with col1:
        if candidates:
            new_member = st.selectbox(
                "Add member", candidates, format_func=lambda u: people[u].display_name, key="add_member"
            )
            as_manager = st.checkbox("Manager", key="add_member_manager")
            if st.button("Add", key="add_member_btn"):
                try:
                    service.add_member(team_id, new_member, as_manager)
                    st.rerun()
                except ShiftPlanError as e:
                    st.error(str(e))
    with col2:
        if team.member_ids:
            leaving = st.selectbox(
                "Remove member", team.member_ids,
                format_func=lambda u: people[u].display_name if u in people else u, key="remove_member",
            )
            if st.button("Remove", key="remove_member_btn"):
                service.remove_member(team_id, leaving)
                st.rerun()

    st.divider()
    capacity = state.store.get_capacity(team_id)
    with st.form("capacity_form"):
        st.subheader("Capacity")
        min_staff = st.number_input(
            "Minimum staff per shift", min_value=1, max_value=100,
            value=capacity.min_staff_required if capacity else 1,
        )
        max_staff = st.number_input(
            "Maximum staff (0 = no limit)", min_value=0, max_value=100,
            value=(capacity.max_staff_allowed or 0) if capacity else 0,
        )
        weekends = st.checkbox("Applies to weekends", value=capacity.applies_to_weekends if capacity else False)
        if st.form_submit_button("Save capacity"):
            try:
                service.set_capacity(team_id, int(min_staff), int(max_staff) or None, weekends)
                st.success("✅ Capacity saved")
            except ShiftPlanError as e:
                st.error(str(e))

    others = [t for t in state.store.list_teams() if t.id != team_id]
    if others:
        st.divider()
        st.subheader("Planning partners")
        partner = st.selectbox(
            "Partner team", [t.id for t in others],
            format_func=lambda tid: next(t.name for t in others if t.id == tid), key="partner_team",
        )
        if state.store.are_partnered(team_id, partner):
            st.caption("Already planning partners.")
        elif st.button("Link teams", key="partner_btn"):
            try:
                service.add_partnership(team_id, partner)
                st.success("✅ Linked")
            except ShiftPlanError as e:
                st.error(str(e))

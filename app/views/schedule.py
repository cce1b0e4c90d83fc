"""
Schedule View
=============
Team matrix, coverage heatmap and entry editing.
"""
from datetime import timedelta
from typing import Dict

import plotly.express as px
import pydantic
import streamlit as st

from app.components.styling import kpi_card, style_matrix
from app.state.session import SessionStateManager
from shiftplan.analysis.coverage import coverage_summary, coverage_table
from shiftplan.errors import ShiftPlanError
from shiftplan.models.schedule import Schedule, ScheduleEntry
from shiftplan.models.shift import WEEKDAY_SHORT, ActivityType, ShiftType, parse_date
from shiftplan.models.team import Person
from shiftplan.models.validated import ScheduleEntryPayload
from shiftplan.notify.mailer import mailer_from_settings
from shiftplan.workflow.teams import TeamService


def _date_window(state: SessionStateManager, key: str):
    start = state.reference_date - timedelta(days=state.reference_date.weekday())
    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("From", value=start, key=f"{key}_from")
    with col2:
        end = st.date_input("To", value=start + timedelta(days=27), key=f"{key}_to")
    return start, end


def render_schedule(state: SessionStateManager, people: Dict[str, Person]):
    team_id = state.team_id
    if not team_id:
        st.info("👋 Select or create a team to see its schedule.")
        return

    start, end = _date_window(state, "schedule")
    if end < start:
        st.error("End date must not be before start date.")
        return

    store = state.store
    entries = store.list_entries(team_ids=[team_id], start_date=start, end_date=end)
    capacity = store.get_capacity(team_id)
    min_staff = capacity.min_staff_required if capacity else 1

    table = coverage_table(entries, min_required=min_staff)
    summary = coverage_summary(table)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        kpi_card("Entries", str(len(entries)))
    with col2:
        kpi_card("People", str(len({e.user_id for e in entries})))
    with col3:
        kpi_card("Understaffed cells", str(summary["warn"] + summary["bad"]))
    with col4:
        kpi_card("Missing staff", str(summary["deficit_total"]))

    t1, t2, t3 = st.tabs(["🗓️ Matrix", "📊 Coverage", "✏️ Edit"])

    with t1:
        matrix = Schedule.from_entries(entries, team_id=team_id).to_matrix()
        if matrix.empty:
            st.info("No schedule entries in this period.")
        else:
            matrix.index = [people[u].display_name if u in people else u for u in matrix.index]
            matrix.columns = [f"{WEEKDAY_SHORT[d.weekday()]} {d.strftime('%d.%m')}" for d in map(parse_date, matrix.columns)]
            st.dataframe(style_matrix(matrix), width="stretch", height=420)

    with t2:
        if table.empty:
            st.info("No coverage data.")
        else:
            heat = table.pivot(index="shift_type", columns="date", values="gap")
            fig = px.imshow(
                heat,
                color_continuous_scale=["#F8D7DA", "#FFF3CD", "#D4EDDA"],
                zmin=-2, zmax=0,
                aspect="auto",
                labels=dict(color="Staff vs. minimum"),
            )
            fig.update_layout(margin=dict(l=20, r=20, t=30, b=20), height=300)
            st.plotly_chart(fig, width="stretch")
            st.caption(f"Minimum staff per shift: {min_staff}")
            st.dataframe(table[table["gap"] < 0], width="stretch", hide_index=True)

    with t3:
        _render_entry_form(state, people, team_id)
        st.divider()
        _render_bulk_form(state, people, team_id)


def _render_entry_form(state: SessionStateManager, people: Dict[str, Person], team_id: str):
    st.subheader("Single entry")
    team = state.store.get_team(team_id)
    members = team.member_ids if team else []
    if not members:
        st.info("This team has no members yet.")
        return

    with st.form("entry_form"):
        user_id = st.selectbox(
            "Person", members, format_func=lambda u: people[u].display_name if u in people else u
        )
        day = st.date_input("Date", value=state.reference_date)
        shift = st.selectbox("Shift", [s.value for s in ShiftType])
        activity = st.selectbox("Activity", [a.value for a in ActivityType])
        notes = st.text_input("Notes")
        submitted = st.form_submit_button("Save")

    if submitted:
        try:
            payload = ScheduleEntryPayload(
                user_id=user_id, team_id=team_id, date=day,
                shift_type=shift, activity_type=activity, notes=notes or None,
            )
            service = TeamService(state.store, mailer=mailer_from_settings())
            entry = service.save_entry(ScheduleEntry(**payload.model_dump(exclude={"notes"}), notes=payload.notes or ""))
            service.notify_schedule_change(user_id, [entry], team.name if team else "")
            state.clear_results()
            st.success("✅ Entry saved")
        except pydantic.ValidationError as e:
            st.error(f"Invalid entry: {e}")
        except ShiftPlanError as e:
            st.error(str(e))


def _render_bulk_form(state: SessionStateManager, people: Dict[str, Person], team_id: str):
    st.subheader("Bulk generate")
    team = state.store.get_team(team_id)
    members = team.member_ids if team else []
    if not members:
        return

    with st.form("bulk_form"):
        user_ids = st.multiselect(
            "People", members, default=members,
            format_func=lambda u: people[u].display_name if u in people else u,
        )
        col1, col2 = st.columns(2)
        with col1:
            start = st.date_input("Start", value=state.reference_date, key="bulk_start")
        with col2:
            end = st.date_input("End", value=state.reference_date + timedelta(days=6), key="bulk_end")
        weekdays = st.multiselect(
            "Weekdays", list(range(7)), default=[0, 1, 2, 3, 4], format_func=lambda d: WEEKDAY_SHORT[d]
        )
        shift = st.selectbox("Shift", [s.value for s in ShiftType], key="bulk_shift")
        activity = st.selectbox("Activity", [a.value for a in ActivityType], key="bulk_activity")
        overwrite = st.checkbox("Overwrite existing entries")
        submitted = st.form_submit_button("Generate")

    if submitted:
        try:
            created = TeamService(state.store).bulk_generate(
                team_id, user_ids, start, end,
                shift_type=shift, activity_type=activity,
                weekdays=weekdays, overwrite=overwrite,
            )
            state.clear_results()
            st.success(f"✅ {len(created)} entries written")
        except ShiftPlanError as e:
            st.error(str(e))

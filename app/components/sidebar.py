"""
Sidebar Components
==================
Reusable widgets for the sidebar.
"""
from datetime import date
from typing import Dict, Optional

import streamlit as st

from app.state.session import SessionStateManager
from shiftplan.errors import ShiftPlanError
from shiftplan.io.csv_loader import load_entries, load_holidays, load_people
from shiftplan.models.team import Person
from shiftplan.utils.logging_setup import get_logger

logger = get_logger("app.sidebar")


def render_logo():
    """Render the app logo/header."""
    st.sidebar.markdown("### 📅 Shift Planner")


def render_database(state: SessionStateManager):
    """Database path selector."""
    db_path = st.sidebar.text_input("Database", value=state.db_path, key="db_path_input")
    if db_path and db_path != state.db_path:
        state.db_path = db_path


def render_team_select(state: SessionStateManager) -> Optional[str]:
    """Team picker; returns the selected team id."""
    teams = state.team_options()
    if not teams:
        st.sidebar.info("ℹ️ No teams yet. Create one in the Teams tab.")
        state.team_id = None
        return None

    ids = [t.id for t in teams]
    names = {t.id: t.name for t in teams}
    index = ids.index(state.team_id) if state.team_id in ids else 0
    team_id = st.sidebar.selectbox(
        "Team", ids, index=index, format_func=lambda tid: names.get(tid, tid), key="team_select"
    )
    state.team_id = team_id
    return team_id


def render_user_select(state: SessionStateManager, people: Dict[str, Person]) -> Optional[str]:
    """Acting user; drives who requests, approves and records time."""
    if not people:
        return None
    ids = sorted(people, key=lambda u: people[u].display_name.lower())
    index = ids.index(state.current_user_id) if state.current_user_id in ids else 0
    user_id = st.sidebar.selectbox(
        "Acting as", ids, index=index,
        format_func=lambda u: f"{people[u].display_name} [{people[u].role}]",
        key="user_select",
    )
    state.current_user_id = user_id
    return user_id


def render_reference_date(state: SessionStateManager) -> date:
    value = st.sidebar.date_input("Reference date", value=state.reference_date, key="ref_date")
    state.reference_date = value
    return value


def render_csv_import(state: SessionStateManager):
    """Load people, entries and holidays CSV files into the store."""
    with st.sidebar.expander("📂 Import CSV", expanded=False):
        people_file = st.file_uploader("Profiles", type=["csv"], key="people_csv")
        entries_file = st.file_uploader("Schedule entries", type=["csv"], key="entries_csv")
        holidays_file = st.file_uploader("Holidays", type=["csv"], key="holidays_csv")

        if not st.button("Import", key="import_csv"):
            return

        store = state.store
        try:
            if people_file:
                people = load_people(people_file)
                for person in people.values():
                    store.upsert_person(person)
                st.success(f"✅ {len(people)} profiles")
            if entries_file:
                count = store.bulk_upsert_entries(load_entries(entries_file))
                st.success(f"✅ {count} entries")
            if holidays_file:
                holidays = load_holidays(holidays_file)
                for h in holidays:
                    store.add_holiday(h)
                st.success(f"✅ {len(holidays)} holidays")
        except ShiftPlanError as e:
            logger.warning(f"CSV import failed: {e}")
            st.error(f"Import failed: {e}")
            return
        state.clear_results()


def render_sidebar(state: SessionStateManager) -> Dict[str, Person]:
    """Full sidebar; returns all known profiles."""
    render_logo()
    render_database(state)
    render_csv_import(state)
    people = state.store.list_people()
    render_team_select(state)
    render_user_select(state, people)
    render_reference_date(state)
    return people

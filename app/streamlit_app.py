"""
Shift Planner: Streamlit web UI
===============================
Team schedules, fairness, swaps, vacations and FlexTime.
"""
import os
import sys

import streamlit as st

# Add src and project root to python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from app.components.sidebar import render_sidebar
from app.components.styling import apply_styling
from app.state.session import SessionStateManager
from app.views.export import render_downloads
from app.views.fairness import render_fairness
from app.views.flextime import render_flextime
from app.views.schedule import render_schedule
from app.views.swaps import render_swaps
from app.views.teams import render_teams
from app.views.vacations import render_vacations
from shiftplan.utils.logging_setup import init_logging
from shiftplan.utils.structured_logging import configure_structlog


@st.cache_resource
def _init_logging():
    init_logging(level=os.getenv("SHIFTPLAN_LOG_LEVEL", "INFO"))
    configure_structlog(json_output=os.getenv("SHIFTPLAN_JSON_LOGS", "") == "1")
    return True


def main():
    # 1. Init
    _init_logging()
    SessionStateManager.init_state()
    state = SessionStateManager()
    apply_styling()

    st.title("📅 Shift Planner")

    # 2. Sidebar
    people = render_sidebar(state)

    message = state.pop_flash()
    if message:
        st.success(message)

    # 3. Main tabs
    tabs = st.tabs([
        "🗓️ Schedule", "⚖️ Fairness", "🔁 Swaps", "🏖️ Vacations",
        "⏱️ FlexTime", "👥 Teams", "📥 Downloads",
    ])
    with tabs[0]:
        render_schedule(state, people)
    with tabs[1]:
        render_fairness(state, people)
    with tabs[2]:
        render_swaps(state, people)
    with tabs[3]:
        render_vacations(state, people)
    with tabs[4]:
        render_flextime(state, people)
    with tabs[5]:
        render_teams(state, people)
    with tabs[6]:
        render_downloads(state, people)


if __name__ == "__main__":
    main()

"""
Session State Management
========================
Encapsulates all Streamlit session state interactions.
"""
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import streamlit as st

from shiftplan.storage.store import DEFAULT_DB_PATH, ScheduleStore

if TYPE_CHECKING:
    from shiftplan.analysis.fairness import FairnessReport
    from shiftplan.analysis.flextime import MonthlySummary
    from shiftplan.models.config import AnalysisConfig


class SessionStateManager:
    """Manages type-safe access to session state."""

    @staticmethod
    def init_state():
        """Initialize default session state values."""
        defaults = {
            "db_path": str(DEFAULT_DB_PATH),
            "store": None,
            "current_user_id": None,
            "team_id": None,
            "reference_date": date.today(),
            "analysis_config": None,
            "fairness_report": None,
            "flextime_summary": None,
            "selected_swap_id": None,
            "last_message": None,
        }

        for key, value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = value

    @property
    def store(self) -> ScheduleStore:
        """Store for the configured database, created on first use."""
        store = st.session_state.get("store")
        db_path = st.session_state.get("db_path") or str(DEFAULT_DB_PATH)
        if store is None or str(store.db_path) != db_path:
            store = ScheduleStore(db_path)
            st.session_state["store"] = store
        return store

    @property
    def db_path(self) -> str:
        return st.session_state.get("db_path") or str(DEFAULT_DB_PATH)

    @db_path.setter
    def db_path(self, value: str):
        if value != st.session_state.get("db_path"):
            st.session_state["db_path"] = value
            st.session_state["store"] = None
            self.clear_results()

    @property
    def current_user_id(self) -> Optional[str]:
        return st.session_state.get("current_user_id")

    @current_user_id.setter
    def current_user_id(self, value: Optional[str]):
        st.session_state["current_user_id"] = value

    @property
    def team_id(self) -> Optional[str]:
        return st.session_state.get("team_id")

    @team_id.setter
    def team_id(self, value: Optional[str]):
        if value != st.session_state.get("team_id"):
            st.session_state["team_id"] = value
            self.clear_results()

    @property
    def reference_date(self) -> date:
        return st.session_state.get("reference_date") or date.today()

    @reference_date.setter
    def reference_date(self, value: date):
        st.session_state["reference_date"] = value

    @property
    def analysis_config(self) -> Optional['AnalysisConfig']:
        return st.session_state.get("analysis_config")

    @analysis_config.setter
    def analysis_config(self, value: 'AnalysisConfig'):
        st.session_state["analysis_config"] = value

    @property
    def fairness_report(self) -> Optional['FairnessReport']:
        return st.session_state.get("fairness_report")

    @fairness_report.setter
    def fairness_report(self, value: 'FairnessReport'):
        st.session_state["fairness_report"] = value

    @property
    def flextime_summary(self) -> Optional['MonthlySummary']:
        return st.session_state.get("flextime_summary")

    @flextime_summary.setter
    def flextime_summary(self, value: 'MonthlySummary'):
        st.session_state["flextime_summary"] = value

    def flash(self, message: str):
        """Message shown once on the next rerun."""
        st.session_state["last_message"] = message

    def pop_flash(self) -> Optional[str]:
        message = st.session_state.get("last_message")
        st.session_state["last_message"] = None
        return message

    def snapshot(self) -> Dict[str, Any]:
        """Plain values of the selection state (for logging)."""
        return {
            "db_path": self.db_path,
            "current_user_id": self.current_user_id,
            "team_id": self.team_id,
            "reference_date": str(self.reference_date),
        }

    def clear_results(self):
        """Clear computed results."""
        st.session_state["fairness_report"] = None
        st.session_state["flextime_summary"] = None
        st.session_state["selected_swap_id"] = None

    def team_options(self) -> List[Any]:
        return self.store.list_teams()

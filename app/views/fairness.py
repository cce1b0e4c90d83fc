"""
Fairness View
=============
Weighted burden and fairness scores for the selected team.
"""
from typing import Dict

import pandas as pd
import plotly.express as px
import streamlit as st

from app.components.styling import imbalance_css, kpi_card
from app.state.session import SessionStateManager
from shiftplan.analysis.fairness import analyze_fairness
from shiftplan.models.config import AnalysisConfig
from shiftplan.models.rules import IMBALANCE_COLORS
from shiftplan.models.team import Person


def render_fairness(state: SessionStateManager, people: Dict[str, Person]):
    team_id = state.team_id
    if not team_id:
        st.info("👋 Select a team to analyze fairness.")
        return

    store = state.store
    team = store.get_team(team_id)
    members = {u: people[u] for u in (team.member_ids if team else []) if u in people}
    if not members:
        st.info("This team has no members with a profile.")
        return

    if st.button("🔄 Analyze", key="run_fairness") or state.fairness_report is None:
        config = state.analysis_config or AnalysisConfig()
        with st.spinner("Counting shifts..."):
            state.fairness_report = analyze_fairness(
                members,
                store.list_entries(team_ids=[team_id]),
                store.list_holidays(),
                team_id=team_id,
                today=state.reference_date,
                config=config,
            )

    report = state.fairness_report
    if report is None or report.is_empty:
        st.info("No fairness data.")
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        kpi_card("Average fairness", f"{report.average_score:.0f}")
    with col2:
        kpi_card("People", str(len(report.scores)))
    with col3:
        kpi_card("High imbalance", str(sum(1 for s in report.scores if s.imbalance_level == "high")))

    st.caption(f"History from {report.historical_start} to {report.reference_date}; upcoming after that.")

    for message in report.messages:
        st.warning(message)

    df = pd.DataFrame([s.to_dict() for s in report.scores])
    fig = px.bar(
        df.sort_values("fairness_score"),
        x="user_name",
        y="fairness_score",
        color="imbalance_level",
        color_discrete_map=IMBALANCE_COLORS,
        labels={"user_name": "Person", "fairness_score": "Fairness (100 = least burdened)"},
    )
    fig.update_layout(margin=dict(l=20, r=20, t=30, b=20), height=350)
    st.plotly_chart(fig, width="stretch")

    shown = df.drop(columns=["user_id"])
    st.dataframe(shown.style.map(imbalance_css, subset=["imbalance_level"]), width="stretch", hide_index=True)

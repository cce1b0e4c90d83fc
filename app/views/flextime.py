"""
FlexTime View
=============
Record daily working time and review the monthly balance.
"""
import io
from typing import Dict

import pandas as pd
import streamlit as st

from app.components.styling import kpi_card
from app.state.session import SessionStateManager
from shiftplan.analysis.flextime import (
    EntryType,
    TimeEntry,
    default_end_time,
    default_start_time,
    entry_rule_violations,
    format_decimal_hours,
    format_flex_hours,
    summarize_month,
)
from shiftplan.io.excel_export import export_flextime_excel, flextime_filename
from shiftplan.models.config import AnalysisConfig
from shiftplan.models.team import Person


def _previous_month(year: int, month: int):
    return (year - 1, 12) if month == 1 else (year, month - 1)


def render_flextime(state: SessionStateManager, people: Dict[str, Person]):
    user_id = state.current_user_id
    if not user_id:
        st.info("👋 Select who you are acting as.")
        return

    config = state.analysis_config or AnalysisConfig()
    store = state.store
    ref = state.reference_date

    with st.form("time_entry_form"):
        st.subheader("Time entry")
        day = st.date_input("Date", value=ref)
        entry_type = st.selectbox(
            "Type", [t.value for t in EntryType], format_func=lambda v: EntryType(v).label
        )
        col1, col2, col3 = st.columns(3)
        with col1:
            start = st.text_input("Start (HH:MM)", value=default_start_time(entry_type))
        with col2:
            end = st.text_input("End (HH:MM)", value=default_end_time(day, entry_type))
        with col3:
            break_minutes = st.number_input("Break (min)", min_value=0, max_value=240, value=30, step=5)
        fza = st.number_input("FZA hours", min_value=0.0, max_value=24.0, value=0.0, step=0.5)
        comment = st.text_input("Comment")
        submitted = st.form_submit_button("Save")

    if submitted:
        entry = TimeEntry(
            user_id=user_id,
            entry_date=day,
            entry_type=entry_type,
            work_start_time=start or None,
            work_end_time=end or None,
            break_duration_minutes=break_minutes,
            fza_hours=fza or None,
            comment=comment,
        )
        problems = entry_rule_violations(entry, config.max_daily_hours)
        if problems:
            for p in problems:
                st.error(p)
        else:
            store.upsert_time_entry(entry)
            state.flextime_summary = None
            st.success("✅ Saved")

    st.divider()
    col1, col2 = st.columns(2)
    with col1:
        year = st.number_input("Year", min_value=2000, max_value=2100, value=ref.year, step=1)
    with col2:
        month = st.number_input("Month", min_value=1, max_value=12, value=ref.month, step=1)

    previous = store.get_ending_balance(user_id, *_previous_month(int(year), int(month)))
    summary = summarize_month(
        user_id, int(year), int(month),
        store.list_time_entries(user_id, int(year), int(month)),
        previous_balance=previous,
        carryover_limit=config.flextime_carryover_limit,
    )
    state.flextime_summary = summary

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        kpi_card("Starting balance", format_flex_hours(summary.previous_balance))
    with col2:
        kpi_card("Earned", format_flex_hours(summary.flex_earned))
    with col3:
        kpi_card("FZA taken", format_decimal_hours(summary.fza_taken))
    with col4:
        kpi_card("Ending balance", format_flex_hours(summary.ending_balance))

    if summary.within_limit:
        st.success(summary.status_label)
    else:
        st.warning(summary.status_label)

    if summary.rows:
        st.dataframe(pd.DataFrame([{
            "Date": e.entry_date,
            "Type": e.entry_type.label,
            "Start": e.work_start_time or "",
            "End": e.work_end_time or "",
            "Break": e.break_duration_minutes,
            "Actual": format_decimal_hours(c.actual_hours),
            "Target": format_decimal_hours(c.target_hours),
            "FLEX": format_flex_hours(c.flex_delta),
        } for e, c in summary.rows]), width="stretch", hide_index=True)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Close month", key="close_month"):
            store.save_monthly_summary(summary)
            st.success("Balance carried forward")
    with col2:
        name = people[user_id].display_name if user_id in people else user_id
        buffer = io.BytesIO()
        export_flextime_excel(summary, name, buffer)
        st.download_button(
            "📥 Excel statement",
            buffer.getvalue(),
            flextime_filename(name, int(year), int(month)),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

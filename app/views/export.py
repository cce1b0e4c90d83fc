"""
Export View
===========
Handles file downloads (Excel, PDF, CSV).
"""
import io
from datetime import timedelta
from typing import Dict

import streamlit as st

from app.state.session import SessionStateManager
from shiftplan.io.csv_loader import export_entries_csv
from shiftplan.io.excel_export import export_schedule_excel
from shiftplan.io.pdf_export import export_schedule_pdf
from shiftplan.models.team import Person


def render_downloads(state: SessionStateManager, people: Dict[str, Person]):
    """Render the download section."""
    if not state.team_id:
        st.warning("Select a team before exporting.")
        return

    st.subheader("📥 Downloads")
    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("From", value=state.reference_date, key="export_from")
    with col2:
        end = st.date_input("To", value=state.reference_date + timedelta(days=27), key="export_to")

    entries = state.store.list_entries(team_ids=[state.team_id], start_date=start, end_date=end)
    if not entries:
        st.info("No schedule entries in this period.")
        return

    team = state.store.get_team(state.team_id)
    title = f"{team.name if team else 'Schedule'} {start} - {end}"
    fairness = state.fairness_report
    stem = f"schedule_{start}_{end}"

    col1, col2, col3 = st.columns(3)

    with col1:
        csv_buffer = io.StringIO()
        export_entries_csv(entries, csv_buffer)
        st.download_button("📥 CSV", csv_buffer.getvalue(), f"{stem}.csv", "text/csv")

    with col2:
        xlsx_buffer = io.BytesIO()
        export_schedule_excel(entries, people, xlsx_buffer, fairness=fairness, title=title)
        st.download_button(
            "📥 Excel",
            xlsx_buffer.getvalue(),
            f"{stem}.xlsx",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    with col3:
        pdf_buffer = io.BytesIO()
        export_schedule_pdf(entries, people, pdf_buffer, fairness=fairness, title=title)
        st.download_button("📥 PDF", pdf_buffer.getvalue(), f"{stem}.pdf", "application/pdf")

    if fairness is None:
        st.caption("Run the fairness analysis to include it in the Excel and PDF reports.")

# shiftplan/io - CSV import/export, Excel and PDF reports
from .csv_loader import (
    export_entries_csv,
    load_entries,
    load_holidays,
    load_people,
    load_time_entries,
    save_people,
)
from .excel_export import export_flextime_excel, export_schedule_excel
from .pdf_export import export_schedule_pdf

__all__ = [
    "load_people", "load_entries", "load_holidays", "load_time_entries", "save_people",
    "export_entries_csv", "export_schedule_excel", "export_flextime_excel", "export_schedule_pdf",
]

import pandas as pd
import streamlit as st

from shiftplan.models.rules import ACTIVITY_STYLES, IMBALANCE_COLORS, SHIFT_STYLES


def apply_styling():
    """Inject the app stylesheet: matrix cell colours, imbalance badges and KPI cards."""

    # One class per shift and activity code
    css = "<style>\n"
    for code, cfg in {**SHIFT_STYLES, **ACTIVITY_STYLES}.items():
        css += f".cell-{code} {{ background-color: {cfg.color_bg} !important; color: {cfg.color_text}; font-weight: bold; }}\n"
    for level, color in IMBALANCE_COLORS.items():
        css += f".imbalance-{level} {{ background-color: {color}; padding: 2px 8px; border-radius: 4px; }}\n"

    css += """
    .kpi-card { padding: 0.75rem 1rem; border-radius: 6px; background: #4472C4; color: white; margin: 0.25rem 0; }
    .kpi-value { font-size: 1.6rem; font-weight: 600; }
    .kpi-label { font-size: 0.8rem; text-transform: uppercase; letter-spacing: 0.04em; }

    /* Schedule matrices are wide */
    div[data-testid="stDataFrame"] { font-size: 0.78rem; }

    button[data-baseweb="tab"][aria-selected="true"] { border-bottom: 3px solid #4472C4; font-weight: 600; }
    </style>
    """

    st.markdown(css, unsafe_allow_html=True)


def cell_css(value) -> str:
    """Pandas Styler callback for schedule matrix cells."""
    label = str(value).split("/")[0] if value else ""
    style = SHIFT_STYLES.get(label) or ACTIVITY_STYLES.get(label)
    if not style:
        return ""
    return f"background-color: {style.color_bg}; color: {style.color_text}"


def style_matrix(df: pd.DataFrame):
    return df.style.map(cell_css)


def imbalance_css(value) -> str:
    color = IMBALANCE_COLORS.get(str(value))
    return f"background-color: {color}" if color else ""


def kpi_card(label: str, value: str):
    st.markdown(
        f'<div class="kpi-card"><div class="kpi-value">{value}</div><div class="kpi-label">{label}</div></div>',
        unsafe_allow_html=True,
    )

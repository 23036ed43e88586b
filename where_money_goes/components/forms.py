# components/forms.py
# Streamlit inputs for the income card and the layout sidebar.

import re

import streamlit as st

# Stable widget keys so state survives reruns
WIDGET_KEYS = {
    "income": "in_income",
    "confirm": "btn_confirm_income",
    "chart_width": "in_chart_width",
    "category_chart": "chart_categories",
    "subcategory_chart": "chart_subcategories",
}

_NON_DIGITS = re.compile(r"[^\d]")


def parse_income(text) -> float:
    """Keep digits only ("$85,000 / yr" -> 85000); anything else is 0."""
    digits = _NON_DIGITS.sub("", str(text or ""))
    return float(digits) if digits else 0.0


def format_income(value: float) -> str:
    return f"{int(round(value)):,}"


def income_form(income: float):
    """
    Income card.  Returns ``(income, confirmed)`` where ``confirmed`` is True
    on the rerun in which the user pressed the button.
    """
    st.markdown("##### INCOME")
    c1, c2 = st.columns([3, 1])
    with c1:
        raw = st.text_input(
            "Annual income ($ / year)",
            value=format_income(income),
            key=WIDGET_KEYS["income"],
            help="Enter income to unlock tax and details.",
        )
    with c2:
        st.write("")
        confirmed = st.button("Show my tax", key=WIDGET_KEYS["confirm"], use_container_width=True)
    return parse_income(raw), confirmed


def layout_form(default_width: int = 1100) -> int:
    """Sidebar control for the drawing width of the donut + rails."""
    st.sidebar.header("Layout")
    return int(st.sidebar.slider(
        "Chart width (px)", min_value=760, max_value=1600, value=default_width, step=20,
        key=WIDGET_KEYS["chart_width"],
        help="Resizing re-routes the label connectors.",
    ))

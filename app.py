# app.py
import logging

import streamlit as st

from where_money_goes.calculators import allocation, taxes
from where_money_goes.calculators.dataset import load_dataset
from where_money_goes.components import charts
from where_money_goes.components.drill import DrillState, TAX
from where_money_goes.components.forms import WIDGET_KEYS, income_form, layout_form
from where_money_goes.components.radial import DEFAULT_RING, layout_ring
from where_money_goes.components.rail import LabelRailRouter, RailHighlight, Viewport

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VIEW_HEIGHT = 480
CATEGORY_RING = "categories"
SUBCATEGORY_RING = "subcategories"


# ---------- Page config ----------
st.set_page_config(
    page_title="Where does my money go? NYC edition",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
<style>
.block-container { padding: 1.5rem 2rem; max-width: 1400px; margin: auto; background: #f6f4ee; }
.nyc-brand { font-size: 44px; letter-spacing: 0.08em; text-transform: uppercase; text-align: center; }
.nyc-sub { font-size: 11px; font-weight: 700; letter-spacing: 0.12em; text-transform: uppercase;
           color: #7a7a7a; text-align: center; margin-bottom: 1rem; }
.nyc-kicker { font-size: 11px; letter-spacing: 0.12em; text-transform: uppercase; color: #7a7a7a; }
.nyc-spend { font-size: 30px; line-height: 1.2; }
.nyc-note { font-size: 12px; color: #7a7a7a; }
.nyc-hoverCard { border: 1px solid #dedad2; border-radius: 12px; padding: 10px 12px; background: #fffdf8; }
.nyc-hoverTitle { font-size: 12px; letter-spacing: 0.08em; text-transform: uppercase; margin-bottom: 6px; }
.nyc-hoverText { font-size: 12px; line-height: 1.4; color: #333; }
.nyc-fine { font-size: 11px; color: #7a7a7a; }
</style>
""",
    unsafe_allow_html=True,
)


@st.cache_resource
def _dataset():
    return load_dataset()


@st.cache_resource
def _schedule():
    return taxes.load_schedule()


# ---------- Session boot ----------
st.session_state.setdefault("drill", DrillState())
st.session_state.setdefault("viewport", None)
st.session_state.setdefault("routers", {})          # ring -> LabelRailRouter
st.session_state.setdefault("handled_selection", {})  # chart key -> last label acted on


def _commit(new_state: DrillState):
    """Store the new drill state; rerun if it changed what is on screen."""
    if new_state != st.session_state["drill"]:
        st.session_state["drill"] = new_state
        st.rerun()


def _router(ring: str) -> LabelRailRouter:
    routers = st.session_state["routers"]
    if ring not in routers:
        routers[ring] = LabelRailRouter(charts.measure_with(DEFAULT_RING))
    return routers[ring]


def _teardown(ring: str):
    router = st.session_state["routers"].get(ring)
    if router is not None:
        router.detach()


def _selected_label(event, chart_key: str):
    """Label of a newly clicked slice, or None if nothing new was clicked."""
    points = getattr(getattr(event, "selection", None), "points", None) or []
    label = None
    for p in points:
        data = p.get("customdata")
        if isinstance(data, (list, tuple)):
            data = data[0] if data else None
        if isinstance(data, str):
            label = data
            break
    handled = st.session_state["handled_selection"]
    if label == handled.get(chart_key):
        return None
    handled[chart_key] = label
    return label


def render_ring(ring: str, slices, center_label: str, highlight: RailHighlight, viewport: Viewport):
    """Draw one ring with routed rails; returns the clicked label, if any."""
    router = _router(ring)
    if tuple(slices) != router.slices:
        router.set_slices(slices)
    router.attach(viewport)

    fig = charts.donut_chart(
        slices,
        center_label,
        router.measurement,
        connectors=router.connectors,
        highlight=highlight,
        height=viewport.height,
    )
    chart_key = WIDGET_KEYS["category_chart"] if ring == CATEGORY_RING else WIDGET_KEYS["subcategory_chart"]
    event = st.plotly_chart(
        fig,
        use_container_width=True,
        key=chart_key,
        on_select="rerun",
        selection_mode="points",
        config={"displayModeBar": False},
    )
    return _selected_label(event, chart_key)


def legend_buttons(slices, total: float, key_prefix: str, active=None):
    """Legend rows as buttons, largest first; returns the clicked label."""
    clicked = None
    for row in charts.legend_frame(slices, total).itertuples(index=False):
        marker = "▶ " if row.Label == active else ""
        text = f"{marker}{row.Label} · {charts.format_usd(row.Dollars)} • {row.Share * 100:.1f}%"
        if st.button(text, key=f"{key_prefix}_{row.Label}", use_container_width=True):
            clicked = row.Label
    return clicked


# ---------- Header ----------
st.markdown('<div class="nyc-brand">Where does my money go?</div>', unsafe_allow_html=True)
st.markdown('<div class="nyc-sub">New York City edition</div>', unsafe_allow_html=True)

dataset = _dataset()
schedule = _schedule()
drill: DrillState = st.session_state["drill"]

width = layout_form()
viewport = st.session_state["viewport"]
if viewport is None:
    viewport = Viewport(width, VIEW_HEIGHT)
    st.session_state["viewport"] = viewport
else:
    viewport.resize(width, VIEW_HEIGHT)

# ---------- Income & tax cards ----------
c_income, c_tax = st.columns(2)
with c_income:
    income, confirmed = income_form(drill.income)
    drill = drill.set_income(income)
    if confirmed:
        drill = drill.confirm_income()
    st.session_state["drill"] = drill

result = taxes.compute_city_income_tax(drill.income, schedule)

with c_tax:
    if drill.shows_tax:
        st.markdown("##### NYC INCOME TAX")
        st.metric(
            "Estimated annual NYC resident income tax",
            charts.format_usd2(result.tax),
            help=f"Taxable income {charts.format_usd(result.taxable_income)} after the "
                 f"{charts.format_usd(schedule.standard_deduction)} standard deduction; "
                 f"marginal rate {taxes.marginal_rate(drill.income, schedule) * 100:.3f}%.",
        )

# ---------- Breadcrumbs ----------
crumbs = drill.breadcrumbs()
if len(crumbs) > 1:
    cols = st.columns(len(crumbs))
    for col, (level, name) in zip(cols, crumbs):
        with col:
            if st.button(name, key=f"crumb_{level}", use_container_width=True):
                _commit(drill.navigate(level))

# ---------- Details ----------
st.markdown('<div class="nyc-kicker">Details</div>', unsafe_allow_html=True)
category_allocs = allocation.allocate_categories(dataset.tree, result.tax)

if not drill.has_income:
    st.write("Enter your income above to see your NYC tax allocation.")
    _teardown(CATEGORY_RING)
    _teardown(SUBCATEGORY_RING)
elif drill.view_level == TAX:
    st.write("Press **Show my tax** to see where it goes.")

if drill.shows_categories:
    st.write("Your NYC income tax allocated across categories")
    st.markdown('<div class="nyc-note">Click a category in the legend or donut to drill down.</div>',
                unsafe_allow_html=True)
    slices = layout_ring(charts.ring_items(category_allocs))
    clicked = render_ring(CATEGORY_RING, slices, "NYC Budget", RailHighlight(), viewport)
    with st.expander("Legend", expanded=True):
        clicked = legend_buttons(slices, result.tax, "cat") or clicked
    if clicked:
        category = dataset.tree.by_label(clicked)
        if category is not None:
            _commit(drill.select_category(category.id))
else:
    _teardown(CATEGORY_RING)

if drill.shows_subcategories:
    selected = next((c for c in category_allocs if c.id == drill.selected_category_id), None)
    if selected is None:
        _commit(drill.select_category(None))
    else:
        expanded = dataset.expanded(selected.category)
        subs = allocation.allocate(expanded.children, selected.dollars)
        drill = drill.resolve_subcategory([s.label for s in subs])
        st.session_state["drill"] = drill
        chosen = next((s for s in subs if s.label == drill.selected_subcategory_label), None)

        if chosen is not None:
            st.markdown(
                f'<div class="nyc-spend">You spend <b>{charts.format_usd(selected.dollars)}</b> on '
                f'<b>{selected.label}</b>. Within that, <b>{charts.format_usd(chosen.dollars)}</b> on '
                f'<b>{chosen.label}</b>.</div>',
                unsafe_allow_html=True,
            )
        else:
            st.markdown(
                f'<div class="nyc-spend">You spend <b>{charts.format_usd(selected.dollars)}</b> on '
                f'<b>{selected.label}</b>.</div>',
                unsafe_allow_html=True,
            )
        st.markdown('<div class="nyc-note">Click on category to drill into the details.</div>',
                    unsafe_allow_html=True)

        if chosen is not None:
            shares = allocation.split_shares(chosen)
            split_html = ""
            if shares is not None:
                split_html = (
                    f'<div class="nyc-hoverText">Personal Services: '
                    f'<b>{charts.format_usd(shares.personal_services_dollars)}</b> '
                    f'({shares.personal_services * 100:.1f}%)<br>Other Than Personal Services: '
                    f'<b>{charts.format_usd(shares.other_than_personal_services_dollars)}</b> '
                    f'({shares.other_than_personal_services * 100:.1f}%)</div>'
                )
            st.markdown(
                f'<div class="nyc-hoverCard"><div class="nyc-hoverTitle">{chosen.label}</div>'
                f'<div class="nyc-hoverText">{dataset.mandate_for(chosen.label)}</div>{split_html}</div>',
                unsafe_allow_html=True,
            )

        slices = layout_ring(charts.ring_items(subs))
        highlight = RailHighlight().hover(drill.selected_subcategory_label)
        clicked = render_ring(SUBCATEGORY_RING, slices, selected.label, highlight, viewport)
        with st.expander("Legend", expanded=True):
            clicked = legend_buttons(slices, selected.dollars, f"sub_{selected.id}",
                                     active=drill.selected_subcategory_label) or clicked
        if clicked:
            _commit(drill.select_subcategory(clicked, [s.label for s in subs]))
else:
    _teardown(SUBCATEGORY_RING)

# ---------- Sources ----------
st.divider()
st.markdown('<div class="nyc-kicker">Sources</div>', unsafe_allow_html=True)
st.markdown("\n".join(f"- [{s.label}]({s.href})" for s in dataset.sources.values()))
for note in dataset.footnotes:
    st.markdown(f'<div class="nyc-fine">{note}</div>', unsafe_allow_html=True)

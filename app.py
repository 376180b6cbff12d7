import logging
from contextlib import contextmanager
from typing import Dict, Optional

import streamlit as st

from core.charts import CATEGORY_SELECTION, REGION_SELECTION, SELECTION_FIELDS, ChartPayload, selected_label
from core.config import load_config
from core.data import NoValidDatesError, load_dashboard_data
from core.events import (
    CategorySelected,
    ChartDeselected,
    ChartKind,
    ChartSelected,
    MapRelativeToggled,
    RangeChanged,
    RegionSelected,
    ResetRequested,
)
from core.filters import FilterState
from core.geo import GeoBoundarySource
from core.sync import ChartSyncController

ALL_LABEL = "All"
REGION_KEY = "ctl_region"
CATEGORY_KEY = "ctl_category"
RANGE_KEY = "ctl_range"
RELATIVE_KEY = "ctl_relative"
CHART_KEYS = {ChartKind.CATEGORY: "chart_category", ChartKind.REGION: "chart_region"}
CHART_PARAMS = {ChartKind.CATEGORY: CATEGORY_SELECTION, ChartKind.REGION: REGION_SELECTION}

logger = logging.getLogger(__name__)


# ---------- Rendering surfaces / controls ----------
class PayloadSlot:
    """Holds the latest payload (or failure) pushed for one chart."""

    def __init__(self) -> None:
        self.payload: Optional[ChartPayload] = None
        self.error: Optional[str] = None

    def push(self, payload: ChartPayload) -> None:
        self.payload = payload
        self.error = None

    def fail(self, kind: ChartKind, message: str) -> None:
        self.payload = None
        self.error = message


class SessionControls:
    """Writes filter state back into the sidebar widgets via session state."""

    def sync(self, state: FilterState) -> None:
        st.session_state[REGION_KEY] = state.region or ALL_LABEL
        st.session_state[CATEGORY_KEY] = state.category or ALL_LABEL
        st.session_state[RANGE_KEY] = state.offset_range
        st.session_state[RELATIVE_KEY] = state.map_relative


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(state: FilterState, range_label: tuple) -> str:
    chips = [
        f"Region: {state.region or ALL_LABEL}",
        f"Device type: {state.category or ALL_LABEL}",
        f"Dates: {range_label[0]}–{range_label[1]}",
        "Map: % of population" if state.map_relative else "Map: device count",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


# ---------- Event callbacks ----------
def controller() -> ChartSyncController:
    return st.session_state["controller"]


def _from_option(value: Optional[str]) -> Optional[str]:
    return None if value in (None, ALL_LABEL) else value


def on_region_change():
    controller().dispatch(RegionSelected(_from_option(st.session_state.get(REGION_KEY))))


def on_category_change():
    controller().dispatch(CategorySelected(_from_option(st.session_state.get(CATEGORY_KEY))))


def on_range_change():
    lo, hi = st.session_state.get(RANGE_KEY, (0, 0))
    controller().dispatch(RangeChanged(int(lo), int(hi)))


def on_relative_change():
    controller().dispatch(MapRelativeToggled(bool(st.session_state.get(RELATIVE_KEY))))


def on_reset():
    controller().dispatch(ResetRequested())


def make_chart_callback(kind: ChartKind):
    def _callback():
        param = CHART_PARAMS[kind]
        label = selected_label(st.session_state.get(CHART_KEYS[kind]), param, SELECTION_FIELDS[param])
        if label is None:
            controller().dispatch(ChartDeselected(kind))
        else:
            controller().dispatch(ChartSelected(kind, label))

    return _callback


def render_chart(kind: ChartKind, slots: Dict[ChartKind, PayloadSlot], title: str):
    slot = slots[kind]
    with card(title):
        if slot.error:
            st.info(f"Chart unavailable: {slot.error}")
            return
        if slot.payload is None:
            st.info("No data for the selected filters.")
            return
        if kind in CHART_KEYS:
            st.vega_lite_chart(
                slot.payload.spec,
                width="stretch",
                on_select=make_chart_callback(kind),
                selection_mode=[CHART_PARAMS[kind]],
                key=CHART_KEYS[kind],
            )
        else:
            st.vega_lite_chart(slot.payload.spec, width="stretch")


# ---------- UI setup ----------
config = load_config()
logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Device Dashboard", layout="wide")
inject_base_styles()
st.title("Device Dashboard")
st.caption("Filter by region, device type and date; click a bar or a region to filter, double-click to clear.")

try:
    store = load_dashboard_data(config.data_path, min_created_date=config.min_created_date)
except FileNotFoundError as exc:
    st.error(f"{exc}. Place the device CSV at the configured data path.")
    st.stop()
except NoValidDatesError as exc:
    logger.error("Dashboard not initialised: %s", exc)
    st.error(str(exc))
    st.stop()

if st.session_state.get("controller_store") is not store:
    slots = {kind: PayloadSlot() for kind in ChartKind}
    ctrl = ChartSyncController(
        store,
        slots,
        geo_source=GeoBoundarySource(config.geojson_path),
        controls=SessionControls(),
        display_width=config.map_display_width,
    )
    st.session_state["controller"] = ctrl
    st.session_state["controller_store"] = store
    st.session_state["slots"] = slots
    ctrl.controls.sync(ctrl.state)

ctrl = controller()
slots: Dict[ChartKind, PayloadSlot] = st.session_state["slots"]

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Filters")
    st.selectbox("Region", options=[ALL_LABEL] + store.regions(), key=REGION_KEY, on_change=on_region_change)
    st.selectbox("Device type", options=[ALL_LABEL] + store.categories(), key=CATEGORY_KEY, on_change=on_category_change)
    start_label, end_label = ctrl.range_label()
    st.slider(
        f"Filter by Date: {start_label} – {end_label}",
        min_value=0,
        max_value=max(store.total_span_days, 1),
        key=RANGE_KEY,
        on_change=on_range_change,
        help="Days since the earliest device creation date.",
    )
    st.toggle("Map relative to population", key=RELATIVE_KEY, on_change=on_relative_change)
    st.markdown("---")
    st.button("Reset filters", on_click=on_reset)

ctrl.on_filter_changed()
st.markdown(f"<div class='chip-row'>{format_filter_summary(ctrl.state, ctrl.range_label())}</div>", unsafe_allow_html=True)

top = st.columns(2)
with top[0]:
    render_chart(ChartKind.TIME_SERIES, slots, "Devices over time")
with top[1]:
    render_chart(ChartKind.REGION, slots, "Devices by region")
bottom = st.columns(2)
with bottom[0]:
    render_chart(ChartKind.CATEGORY, slots, "Device types")
with bottom[1]:
    render_chart(ChartKind.PRODUCT, slots, "Products")

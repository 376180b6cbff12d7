"""Chart sync controller.

Every filter-affecting interaction (control change, slider drag, chart click)
reaches the controller as a typed event. The controller is the only writer of
`FilterState`: it mutates the one dimension the event names, writes the state
back to the controls, then re-filters once and pushes a fresh payload to each
of the four chart surfaces. Chart render paths are independent; a failure in
one is logged and reported to its surface while the others still render.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Tuple

import pandas as pd

from core.aggregations import (
    aggregate_categories,
    aggregate_products,
    aggregate_regions,
    aggregate_time_series,
)
from core.charts import ChartPayload, category_chart, product_chart, region_chart, time_series_chart, to_vega_spec
from core.data import DatasetStore
from core.dates import add_days, format_month
from core.events import (
    CategorySelected,
    ChartDeselected,
    ChartKind,
    ChartSelected,
    FilterEvent,
    MapRelativeToggled,
    RangeChanged,
    RegionSelected,
    ResetRequested,
)
from core.filters import FilterState, apply_filters
from core.geo import GeoBoundarySource, GeoDataUnavailableError
from core.regions import REFERENCE_WIDTH, REGION_POPULATION, Viewport, select_viewport

logger = logging.getLogger(__name__)

# Charts whose clicks drive a filter dimension.
SELECTION_TARGETS: Dict[ChartKind, str] = {
    ChartKind.REGION: "region",
    ChartKind.CATEGORY: "category",
}


class RenderSurface(Protocol):
    def push(self, payload: ChartPayload) -> None: ...

    def fail(self, kind: ChartKind, message: str) -> None: ...


class FilterControls(Protocol):
    def sync(self, state: FilterState) -> None: ...


def format_range_label(store: DatasetStore, offset_range: Tuple[int, int]) -> Tuple[str, str]:
    lo, hi = offset_range
    return format_month(add_days(store.earliest, lo)), format_month(add_days(store.earliest, hi))


class ChartSyncController:
    def __init__(
        self,
        store: DatasetStore,
        surfaces: Mapping[ChartKind, RenderSurface],
        *,
        geo_source: Optional[GeoBoundarySource] = None,
        controls: Optional[FilterControls] = None,
        display_width: float = REFERENCE_WIDTH,
        populations: Mapping[str, int] = REGION_POPULATION,
    ) -> None:
        self.store = store
        self.state = FilterState.initial(store.total_span_days)
        self.surfaces = dict(surfaces)
        self.geo_source = geo_source
        self.controls = controls
        self.display_width = display_width
        self.populations = populations
        self.last_payloads: Dict[ChartKind, ChartPayload] = {}

    # ---------------- Events ----------------
    def dispatch(self, event: FilterEvent) -> Dict[ChartKind, ChartPayload]:
        if isinstance(event, ChartSelected):
            return self.on_chart_selection(event.kind, event.label)
        if isinstance(event, ChartDeselected):
            return self.on_chart_deselect(event.kind)

        if isinstance(event, RegionSelected):
            self.state.region = event.region or None
        elif isinstance(event, CategorySelected):
            self.state.category = event.category or None
        elif isinstance(event, RangeChanged):
            self.state.set_offset_range(event.lo, event.hi, self.store.total_span_days)
        elif isinstance(event, MapRelativeToggled):
            self.state.map_relative = bool(event.enabled)
        elif isinstance(event, ResetRequested):
            self.state.reset(self.store.total_span_days)
        else:
            raise TypeError(f"Unsupported event: {event!r}")
        self._sync_controls()
        return self.on_filter_changed()

    def on_chart_selection(self, kind: ChartKind, selected_label: Optional[str]) -> Dict[ChartKind, ChartPayload]:
        target = SELECTION_TARGETS.get(kind)
        if target is None:
            logger.debug("Ignoring selection on %s chart", kind.value)
            return self.last_payloads
        # Boundary features without rows are drawn but have no dropdown option.
        if kind == ChartKind.REGION and selected_label and selected_label not in self.store.regions():
            logger.debug("Ignoring click on region without data: %s", selected_label)
            return self.last_payloads
        setattr(self.state, target, selected_label or None)
        self._sync_controls()
        return self.on_filter_changed()

    def on_chart_deselect(self, kind: ChartKind) -> Dict[ChartKind, ChartPayload]:
        return self.on_chart_selection(kind, None)

    # ---------------- Rendering ----------------
    def on_filter_changed(self) -> Dict[ChartKind, ChartPayload]:
        rows = apply_filters(self.store, self.state)
        payloads: Dict[ChartKind, ChartPayload] = {}
        for kind, build in self._builders():
            surface = self.surfaces.get(kind)
            try:
                payload = build(rows)
                if surface is not None:
                    surface.push(payload)
            except GeoDataUnavailableError as exc:
                logger.error("Skipping %s chart: %s", kind.value, exc)
                self._fail(surface, kind, str(exc))
                continue
            except Exception as exc:
                logger.exception("Rendering %s chart failed", kind.value)
                self._fail(surface, kind, str(exc))
                continue
            payloads[kind] = payload
        self.last_payloads = payloads
        return payloads

    def range_label(self) -> Tuple[str, str]:
        return format_range_label(self.store, self.state.offset_range)

    def viewport(self) -> Viewport:
        return select_viewport(self.state.region, self.display_width)

    def _builders(self) -> List[Tuple[ChartKind, Callable[[pd.DataFrame], ChartPayload]]]:
        return [
            (ChartKind.TIME_SERIES, self._time_series_payload),
            (ChartKind.CATEGORY, self._category_payload),
            (ChartKind.PRODUCT, self._product_payload),
            (ChartKind.REGION, self._region_payload),
        ]

    def _time_series_payload(self, rows: pd.DataFrame) -> ChartPayload:
        series = aggregate_time_series(rows, self.state.offset_range)
        return ChartPayload(ChartKind.TIME_SERIES, series, to_vega_spec(time_series_chart(series)))

    def _category_payload(self, rows: pd.DataFrame) -> ChartPayload:
        series = aggregate_categories(rows)
        return ChartPayload(ChartKind.CATEGORY, series, to_vega_spec(category_chart(series)))

    def _product_payload(self, rows: pd.DataFrame) -> ChartPayload:
        series = aggregate_products(rows)
        return ChartPayload(ChartKind.PRODUCT, series, to_vega_spec(product_chart(series)))

    def _region_payload(self, rows: pd.DataFrame) -> ChartPayload:
        if self.geo_source is None:
            raise GeoDataUnavailableError("No boundary data source configured")
        geojson = self.geo_source.load()
        series = aggregate_regions(rows, relative=self.state.map_relative, populations=self.populations)
        viewport = self.viewport()
        return ChartPayload(ChartKind.REGION, series, to_vega_spec(region_chart(series, geojson, viewport)), viewport)

    def _sync_controls(self) -> None:
        if self.controls is not None:
            self.controls.sync(self.state)

    @staticmethod
    def _fail(surface: Optional[RenderSurface], kind: ChartKind, message: str) -> None:
        if surface is None:
            return
        try:
            surface.fail(kind, message)
        except Exception:
            logger.exception("Surface for %s chart could not report failure", kind.value)

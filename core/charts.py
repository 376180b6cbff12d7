from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from core.aggregations import AggregatedSeries, RegionSeries, TimeSeries
from core.dates import format_canonical
from core.events import ChartKind
from core.geo import attach_values
from core.regions import MAP_COLOR_RANGE, Viewport, color_for

alt.data_transformers.disable_max_rows()

CATEGORY_SELECTION = "category_select"
REGION_SELECTION = "region_select"
# Selection parameter -> field carrying the clicked label.
SELECTION_FIELDS = {CATEGORY_SELECTION: "label", REGION_SELECTION: "region"}

TITLES = {
    ChartKind.TIME_SERIES: "Devices Over Time (Avg per Day)",
    ChartKind.CATEGORY: "Device Types",
    ChartKind.PRODUCT: "Product Distribution",
    ChartKind.REGION: "Devices by Region",
}


@dataclass(frozen=True)
class ChartPayload:
    kind: ChartKind
    series: AggregatedSeries
    spec: Dict[str, Any]
    viewport: Optional[Viewport] = None


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def zoom_to_scale(zoom: float) -> float:
    # Web-mercator zoom level -> d3 mercator projection scale.
    return 256 * (2 ** zoom) / (2 * math.pi)


def selected_label(event: Any, param: str, field: str) -> Optional[str]:
    """Pull the clicked label out of a chart selection event.

    Point selections arrive either as ``{field: [values]}`` or as a list of
    selected points (``[{field: value, ...}]``); an empty selection means the
    click was cleared.
    """
    if not event:
        return None
    selection = event.get("selection", {}) if hasattr(event, "get") else {}
    points = selection.get(param) if selection else None
    if isinstance(points, dict):
        values = points.get(field) or []
        return str(values[0]) if values else None
    if isinstance(points, list) and points:
        first = points[0]
        if isinstance(first, dict) and first.get(field) is not None:
            return str(first[field])
    return None


def _label_frame(series: AggregatedSeries) -> pd.DataFrame:
    return pd.DataFrame({"label": [str(x) for x in series.labels], "value": list(series.values)})


def _color_scale(series: AggregatedSeries) -> alt.Scale:
    labels = [str(x) for x in series.labels]
    return alt.Scale(domain=labels, range=[color_for(x) for x in labels])


def time_series_chart(series: TimeSeries) -> alt.Chart:
    df = pd.DataFrame({"date": [format_canonical(d) for d in series.labels], "value": list(series.values)})
    return (
        alt.Chart(df)
        .mark_line()
        .encode(
            x=alt.X("date:T", title="Date"),
            y=alt.Y("value:Q", title="Count"),
            tooltip=[
                alt.Tooltip("date:T", title="Week of" if series.weekly else "Date"),
                alt.Tooltip("value:Q", title="Devices", format=",.2f" if series.weekly else ","),
            ],
        )
        .properties(title=TITLES[ChartKind.TIME_SERIES], height=260)
    )


def category_chart(series: AggregatedSeries) -> alt.Chart:
    click = alt.selection_point(name=CATEGORY_SELECTION, fields=["label"], on="click", clear="dblclick")
    return (
        alt.Chart(_label_frame(series))
        .mark_bar()
        .encode(
            x=alt.X("label:N", title="Category", sort=None),
            y=alt.Y("value:Q", title="Count"),
            color=alt.Color("label:N", scale=_color_scale(series), legend=None),
            opacity=alt.condition(click, alt.value(1), alt.value(0.4)),
            tooltip=[alt.Tooltip("label:N", title="Category"), alt.Tooltip("value:Q", title="Count", format=",")],
        )
        .add_params(click)
        .properties(title=TITLES[ChartKind.CATEGORY], height=260)
    )


def product_chart(series: AggregatedSeries) -> alt.Chart:
    return (
        alt.Chart(_label_frame(series))
        .mark_arc()
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("label:N", scale=_color_scale(series), sort=None, title="Product"),
            tooltip=[alt.Tooltip("label:N", title="Product"), alt.Tooltip("value:Q", title="Count", format=",")],
        )
        .properties(title=TITLES[ChartKind.PRODUCT], height=260)
    )


def region_chart(series: RegionSeries, geojson: Dict[str, Any], viewport: Viewport) -> alt.Chart:
    features = attach_values(geojson, series.as_dict())
    click = alt.selection_point(name=REGION_SELECTION, fields=["region"], on="click", clear="dblclick")
    value_title = "% of population" if series.relative else "Count"
    return (
        alt.Chart(alt.Data(values=features))
        .mark_geoshape(stroke="gray", strokeWidth=1)
        .transform_calculate(region="datum.properties.region", value="datum.properties.value")
        .encode(
            color=alt.condition(
                "isValid(datum.value)",
                alt.Color(
                    "value:Q",
                    title=value_title,
                    scale=alt.Scale(domain=[0, series.max_value], range=MAP_COLOR_RANGE),
                ),
                alt.value("lightgray"),
            ),
            opacity=alt.condition(click, alt.value(1), alt.value(0.6)),
            tooltip=[
                alt.Tooltip("region:N", title="Region"),
                alt.Tooltip("value:Q", title=value_title, format=".2f" if series.relative else ","),
            ],
        )
        .project(type="mercator", center=[viewport.lon, viewport.lat], scale=zoom_to_scale(viewport.zoom))
        .add_params(click)
        .properties(title=TITLES[ChartKind.REGION], height=420)
    )

import math

import pytest

from core.aggregations import AggregatedSeries, RegionSeries, aggregate_time_series
from core.charts import (
    CATEGORY_SELECTION,
    REGION_SELECTION,
    category_chart,
    product_chart,
    region_chart,
    selected_label,
    time_series_chart,
    to_vega_spec,
    zoom_to_scale,
)
from core.regions import Viewport


def _mark_type(spec):
    mark = spec["mark"]
    return mark["type"] if isinstance(mark, dict) else mark


def _param_names(spec):
    return [p["name"] for p in spec.get("params", [])]


def test_time_series_chart_spec(store):
    series = aggregate_time_series(store.frame, (0, 4))
    spec = to_vega_spec(time_series_chart(series))
    assert _mark_type(spec) == "line"
    assert spec["encoding"]["x"]["type"] == "temporal"
    assert spec["title"] == "Devices Over Time (Avg per Day)"


def test_category_chart_is_click_selectable():
    series = AggregatedSeries(labels=("Mobile", "Toaster"), values=(2.0, 1.0))
    spec = to_vega_spec(category_chart(series))
    assert _mark_type(spec) == "bar"
    assert CATEGORY_SELECTION in _param_names(spec)
    scale = spec["encoding"]["color"]["scale"]
    assert scale["domain"] == ["Mobile", "Toaster"]
    assert scale["range"] == ["#1f77b4", "#ccc"]


def test_product_chart_is_a_pie():
    series = AggregatedSeries(labels=("A", "B"), values=(2.0, 1.0))
    spec = to_vega_spec(product_chart(series))
    assert _mark_type(spec) == "arc"
    assert spec["encoding"]["theta"]["field"] == "value"


def test_region_chart_projection_and_selection(geo_source):
    series = RegionSeries(labels=("Wien",), values=(2.0,), max_value=2.0)
    viewport = Viewport(lat=48.2, lon=16.3, zoom=8)
    spec = to_vega_spec(region_chart(series, geo_source.load(), viewport))
    assert _mark_type(spec) == "geoshape"
    assert REGION_SELECTION in _param_names(spec)
    assert spec["projection"]["center"] == [16.3, 48.2]
    assert spec["projection"]["scale"] == pytest.approx(zoom_to_scale(8))
    assert spec["encoding"]["color"]["condition"]["scale"]["domain"] == [0, 2.0]


def test_region_chart_relative_tooltip(geo_source):
    series = RegionSeries(labels=("Wien",), values=(0.0001,), relative=True, max_value=0.0001)
    spec = to_vega_spec(region_chart(series, geo_source.load(), Viewport(47.7, 13.3, 5.2)))
    value_tip = [t for t in spec["encoding"]["tooltip"] if t["field"] == "value"][0]
    assert value_tip["format"] == ".2f"
    assert value_tip["title"] == "% of population"


def test_zoom_to_scale_doubles_per_level():
    assert zoom_to_scale(0) == pytest.approx(256 / (2 * math.pi))
    assert zoom_to_scale(6) == pytest.approx(2 * zoom_to_scale(5))


def test_selected_label_reads_field_value_shape():
    event = {"selection": {REGION_SELECTION: {"region": ["Wien"]}}}
    assert selected_label(event, REGION_SELECTION, "region") == "Wien"


def test_selected_label_reads_point_list_shape():
    event = {"selection": {CATEGORY_SELECTION: [{"label": "Mobile", "value": 2}]}}
    assert selected_label(event, CATEGORY_SELECTION, "label") == "Mobile"


@pytest.mark.parametrize(
    "event",
    [
        None,
        {},
        {"selection": {}},
        {"selection": {CATEGORY_SELECTION: []}},
        {"selection": {CATEGORY_SELECTION: {}}},
        {"selection": {REGION_SELECTION: {"region": ["Wien"]}}},
    ],
)
def test_selected_label_empty_or_other_selection_is_none(event):
    assert selected_label(event, CATEGORY_SELECTION, "label") is None

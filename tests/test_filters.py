import pandas as pd
import pytest

from core.data import load_dataset
from core.filters import FilterState, apply_filters, clamp_range, normalize_filter_state


def test_initial_state_covers_full_range(store):
    state = FilterState.initial(store.total_span_days)
    assert state.as_tuple() == (None, None, (0, 4), False)
    assert len(apply_filters(store, state)) == 3


def test_region_filter_keeps_order(store):
    state = FilterState.initial(store.total_span_days)
    state.region = "Wien"
    out = apply_filters(store, state)
    assert len(out) == 2
    assert out["product"].tolist() == ["A", "B"]
    assert out.index.tolist() == [0, 1]


def test_category_filter(store):
    state = FilterState.initial(store.total_span_days)
    state.category = "Mobile"
    out = apply_filters(store, state)
    assert out["region"].tolist() == ["Wien", "Tirol"]


def test_offset_range_is_inclusive(store):
    state = FilterState.initial(store.total_span_days)
    state.offset_range = (1, 4)
    assert apply_filters(store, state)["day_offset"].tolist() == [1, 4]
    state.offset_range = (2, 3)
    assert apply_filters(store, state).empty


def test_combined_filters(store):
    state = FilterState(region="Wien", category="Mobile", offset_range=(0, 4))
    out = apply_filters(store, state)
    assert out["product"].tolist() == ["A"]


def test_apply_is_idempotent_and_pure(store):
    before = store.frame.copy()
    state = FilterState(region="Wien", offset_range=(0, 3))
    first = apply_filters(store, state)
    second = apply_filters(store, state)
    pd.testing.assert_frame_equal(first, second)
    pd.testing.assert_frame_equal(store.frame, before)
    assert state.as_tuple() == ("Wien", None, (0, 3), False)


def test_narrowing_range_never_grows_output():
    rows = [
        {"region": r, "product": "A", "device_created_day": f"{d:02d}.01.2022", "device_type_category": c}
        for d, r, c in [(1, "Wien", "Mobile"), (3, "Tirol", "Web"), (7, "Wien", "Web"), (12, "Wien", "Mobile"), (20, "Tirol", "Mobile")]
    ]
    store = load_dataset(rows)
    for region in (None, "Wien", "Tirol"):
        for category in (None, "Mobile"):
            previous = None
            for lo, hi in [(0, 19), (1, 18), (3, 12), (5, 11), (6, 6), (6, 6)]:
                state = FilterState(region=region, category=category, offset_range=(lo, hi))
                size = len(apply_filters(store, state))
                if previous is not None:
                    assert size <= previous
                previous = size


def test_rows_without_offset_are_excluded(store):
    frame = store.frame.copy()
    frame.loc[1, "day_offset"] = pd.NA
    patched = type(store)(frame=frame, earliest=store.earliest, latest=store.latest, total_span_days=store.total_span_days)
    out = apply_filters(patched, FilterState.initial(store.total_span_days))
    assert out.index.tolist() == [0, 2]


def test_reset_restores_defaults_from_any_state():
    state = FilterState(region="Tirol", category="Web", offset_range=(2, 3), map_relative=True)
    state.reset(4)
    assert state.as_tuple() == (None, None, (0, 4), False)
    state.reset(4)
    assert state.as_tuple() == (None, None, (0, 4), False)


@pytest.mark.parametrize(
    "lo,hi,expected",
    [(0, 4, (0, 4)), (3, 1, (1, 3)), (-5, 99, (0, 4)), ("2", "3", (2, 3)), (None, None, (0, 4))],
)
def test_clamp_range(lo, hi, expected):
    assert clamp_range(lo, hi, 4) == expected


def test_normalize_filter_state_coerces_raw_values():
    state = normalize_filter_state(
        {"region": "  Wien ", "category": "", "offset_range": [10, 2], "map_relative": 1}, total_span_days=4
    )
    assert state.as_tuple() == ("Wien", None, (2, 4), True)


def test_normalize_filter_state_defaults():
    assert normalize_filter_state({}, total_span_days=7).as_tuple() == (None, None, (0, 7), False)
    assert normalize_filter_state({"offset_range": "bad"}, total_span_days=7).offset_range == (0, 7)

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

from core.data import CATEGORY_COL, OFFSET_COL, REGION_COL, DatasetStore


@dataclass
class FilterState:
    region: Optional[str] = None
    category: Optional[str] = None
    offset_range: Tuple[int, int] = (0, 0)
    map_relative: bool = False

    @classmethod
    def initial(cls, total_span_days: int) -> "FilterState":
        return cls(offset_range=(0, max(0, int(total_span_days))))

    def reset(self, total_span_days: int) -> None:
        self.region = None
        self.category = None
        self.offset_range = (0, max(0, int(total_span_days)))
        self.map_relative = False

    def set_offset_range(self, lo: object, hi: object, total_span_days: int) -> None:
        self.offset_range = clamp_range(lo, hi, total_span_days)

    def as_tuple(self) -> Tuple[Optional[str], Optional[str], Tuple[int, int], bool]:
        return self.region, self.category, self.offset_range, self.map_relative


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except Exception:
        return default


def _as_label(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def clamp_range(lo: object, hi: object, total_span_days: int) -> Tuple[int, int]:
    span = max(0, int(total_span_days))
    lo_i = max(0, min(span, _as_int(lo, 0)))
    hi_i = max(0, min(span, _as_int(hi, span)))
    if lo_i > hi_i:
        lo_i, hi_i = hi_i, lo_i
    return lo_i, hi_i


def normalize_filter_state(raw: dict, *, total_span_days: int) -> FilterState:
    """Coerce loosely-typed widget values into a valid FilterState."""
    raw = raw or {}
    rng = raw.get("offset_range") or (0, total_span_days)
    try:
        lo, hi = rng
    except Exception:
        lo, hi = 0, total_span_days
    return FilterState(
        region=_as_label(raw.get("region")),
        category=_as_label(raw.get("category")),
        offset_range=clamp_range(lo, hi, total_span_days),
        map_relative=bool(raw.get("map_relative", False)),
    )


def apply_filters(store: DatasetStore, state: FilterState) -> pd.DataFrame:
    df = store.frame
    lo, hi = state.offset_range
    offsets = df[OFFSET_COL]
    mask = offsets.notna() & (offsets >= lo) & (offsets <= hi)
    if state.region:
        mask &= df[REGION_COL] == state.region
    if state.category:
        mask &= df[CATEGORY_COL] == state.category
    return df[mask.fillna(False).astype(bool)]

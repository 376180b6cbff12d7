from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

import pandas as pd

from core.data import CATEGORY_COL, DATE_COL, PRODUCT_COL, REGION_COL
from core.regions import REGION_POPULATION, population_for

UNKNOWN_LABEL = "Unknown"
WEEKLY_THRESHOLD_DAYS = 365
DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class AggregatedSeries:
    """Ordered (label, value) pairs for one chart."""

    labels: Tuple[Any, ...] = ()
    values: Tuple[float, ...] = ()

    def items(self) -> List[Tuple[Any, float]]:
        return list(zip(self.labels, self.values))

    def as_dict(self) -> Dict[Any, float]:
        return dict(self.items())

    def total(self) -> float:
        return float(sum(self.values))

    def __len__(self) -> int:
        return len(self.labels)


@dataclass(frozen=True)
class TimeSeries(AggregatedSeries):
    weekly: bool = False


@dataclass(frozen=True)
class RegionSeries(AggregatedSeries):
    relative: bool = False
    max_value: float = 0.0


def _from_counts(counts: pd.Series) -> Tuple[Tuple[Any, ...], Tuple[float, ...]]:
    return tuple(counts.index.tolist()), tuple(float(v) for v in counts.tolist())


def aggregate_time_series(rows: pd.DataFrame, offset_range: Tuple[int, int]) -> TimeSeries:
    lo, hi = offset_range
    weekly = (hi - lo) >= WEEKLY_THRESHOLD_DAYS
    dates = rows[DATE_COL].dropna() if DATE_COL in rows.columns else pd.Series(dtype="datetime64[ns]")
    if dates.empty:
        return TimeSeries(weekly=weekly)

    if weekly:
        keys = dates - pd.to_timedelta(dates.dt.weekday, unit="D")
    else:
        keys = dates
    # Grouping on datetime keys sorts chronologically.
    counts = keys.groupby(keys, sort=True).size()
    labels = tuple(ts.date() for ts in counts.index)
    if weekly:
        values = tuple(float(n) / DAYS_PER_WEEK for n in counts.tolist())
    else:
        values = tuple(float(n) for n in counts.tolist())
    return TimeSeries(labels=labels, values=values, weekly=weekly)


def count_by(rows: pd.DataFrame, column: str) -> AggregatedSeries:
    if rows.empty or column not in rows.columns:
        return AggregatedSeries()
    keys = rows[column].astype(object).where(rows[column].notna(), UNKNOWN_LABEL)
    keys = keys.map(lambda v: v if str(v).strip() else UNKNOWN_LABEL)
    counts = keys.groupby(keys, sort=False).size()
    labels, values = _from_counts(counts)
    return AggregatedSeries(labels=labels, values=values)


def aggregate_categories(rows: pd.DataFrame) -> AggregatedSeries:
    return count_by(rows, CATEGORY_COL)


def aggregate_products(rows: pd.DataFrame) -> AggregatedSeries:
    return count_by(rows, PRODUCT_COL)


def aggregate_regions(
    rows: pd.DataFrame,
    *,
    relative: bool = False,
    populations: Mapping[str, int] = REGION_POPULATION,
) -> RegionSeries:
    if rows.empty or REGION_COL not in rows.columns:
        return RegionSeries(relative=relative)
    regions = rows[REGION_COL].dropna().astype(str)
    counts = regions.groupby(regions, sort=False).size()
    labels: List[str] = []
    values: List[float] = []
    for region, count in counts.items():
        labels.append(region)
        if relative:
            values.append(float(count) / population_for(region, populations) * 100)
        else:
            values.append(float(count))
    return RegionSeries(
        labels=tuple(labels),
        values=tuple(values),
        relative=relative,
        max_value=max(values) if values else 0.0,
    )

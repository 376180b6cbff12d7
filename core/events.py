from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ChartKind(str, Enum):
    TIME_SERIES = "time_series"
    CATEGORY = "category"
    PRODUCT = "product"
    REGION = "region"


@dataclass(frozen=True)
class RegionSelected:
    region: Optional[str]


@dataclass(frozen=True)
class CategorySelected:
    category: Optional[str]


@dataclass(frozen=True)
class RangeChanged:
    lo: int
    hi: int


@dataclass(frozen=True)
class MapRelativeToggled:
    enabled: bool


@dataclass(frozen=True)
class ResetRequested:
    pass


@dataclass(frozen=True)
class ChartSelected:
    kind: ChartKind
    label: str


@dataclass(frozen=True)
class ChartDeselected:
    kind: ChartKind


FilterEvent = Union[
    RegionSelected,
    CategorySelected,
    RangeChanged,
    MapRelativeToggled,
    ResetRequested,
    ChartSelected,
    ChartDeselected,
]

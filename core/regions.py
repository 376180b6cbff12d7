from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional


@dataclass(frozen=True)
class Viewport:
    lat: float
    lon: float
    zoom: float


DEFAULT_VIEWPORT = Viewport(lat=47.7, lon=13.3, zoom=5.2)
REFERENCE_WIDTH = 1500.0

REGION_VIEWS: Dict[str, Viewport] = {
    "Wien": Viewport(lat=48.210033, lon=16.363449, zoom=8),
    "Niederösterreich": Viewport(lat=48.2186, lon=15.8040, zoom=5.9),
    "Oberösterreich": Viewport(lat=48.1000, lon=13.9720, zoom=6),
    "Salzburg": Viewport(lat=47.5095, lon=13.0550, zoom=6),
    "Steiermark": Viewport(lat=47.2593, lon=15.0890, zoom=6),
    "Kärnten": Viewport(lat=46.836, lon=13.8122, zoom=6),
    "Tirol": Viewport(lat=47.2682, lon=11.4041, zoom=6),
    "Vorarlberg": Viewport(lat=47.2478, lon=9.9016, zoom=6.5),
    "Burgenland": Viewport(lat=47.5167, lon=16.3667, zoom=6),
}

REGION_POPULATION: Dict[str, int] = {
    "Wien": 2_000_000,
    "Niederösterreich": 1_730_000,
    "Oberösterreich": 1_530_000,
    "Salzburg": 570_000,
    "Steiermark": 1_200_000,
    "Kärnten": 580_000,
    "Tirol": 780_000,
    "Vorarlberg": 410_000,
    "Burgenland": 300_000,
}
DEFAULT_POPULATION = 1

# Shared by the device type bar chart and the product pie chart.
SERIES_COLORS: Dict[str, str] = {
    "Mobile": "#1f77b4",
    "Mediabox": "#ff7f0e",
    "Tablet": "#2ca02c",
    "Smart TV": "#d62728",
    "Web": "#9467bd",
    "S": "#8c564b",
    "M": "#e377c2",
    "L": "#7f7f7f",
    "Premium": "#bcbd22",
}
DEFAULT_COLOR = "#ccc"

MAP_COLOR_RANGE = ["#ffcc99", "#663300"]


def population_for(region: str, populations: Mapping[str, int] = REGION_POPULATION) -> int:
    return populations.get(region) or DEFAULT_POPULATION


def color_for(label: str) -> str:
    return SERIES_COLORS.get(label, DEFAULT_COLOR)


def select_viewport(region: Optional[str], width: float = REFERENCE_WIDTH) -> Viewport:
    """Map viewport for the current region filter, zoom scaled by display width."""
    base = REGION_VIEWS.get(region, DEFAULT_VIEWPORT) if region else DEFAULT_VIEWPORT
    zoom = base.zoom * 0.75 + base.zoom * 0.25 * float(width) / REFERENCE_WIDTH
    return Viewport(lat=base.lat, lon=base.lon, zoom=zoom)

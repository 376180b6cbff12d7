"""Shared fixtures for the device dashboard tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from core.data import load_dataset
from core.events import ChartKind
from core.geo import GeoBoundarySource

SAMPLE_ROWS: List[Dict[str, str]] = [
    {"region": "Wien", "product": "A", "device_created_day": "01.01.2022", "device_type_category": "Mobile"},
    {"region": "Wien", "product": "B", "device_created_day": "02.01.2022", "device_type_category": "Tablet"},
    {"region": "Tirol", "product": "A", "device_created_day": "05.01.2022", "device_type_category": "Mobile"},
]


def _square(x: float, y: float) -> Dict[str, Any]:
    return {"type": "Polygon", "coordinates": [[[x, y], [x + 1, y], [x + 1, y + 1], [x, y + 1], [x, y]]]}


GEOJSON: Dict[str, Any] = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"name": "Wien"}, "geometry": _square(16, 48)},
        {"type": "Feature", "properties": {"name": "Tirol"}, "geometry": _square(11, 47)},
        {"type": "Feature", "properties": {"name": "Salzburg"}, "geometry": _square(13, 47)},
    ],
}


class RecordingSurface:
    def __init__(self) -> None:
        self.pushed = []
        self.failures = []

    def push(self, payload) -> None:
        self.pushed.append(payload)

    def fail(self, kind, message: str) -> None:
        self.failures.append((kind, message))


class RecordingControls:
    def __init__(self) -> None:
        self.synced = []

    def sync(self, state) -> None:
        self.synced.append(state.as_tuple())


@pytest.fixture
def sample_rows() -> List[Dict[str, str]]:
    return [dict(r) for r in SAMPLE_ROWS]


@pytest.fixture
def store(sample_rows):
    return load_dataset(sample_rows)


@pytest.fixture
def geojson_path(tmp_path: Path) -> Path:
    path = tmp_path / "regions.json"
    path.write_text(json.dumps(GEOJSON), encoding="utf-8")
    return path


@pytest.fixture
def geo_source(geojson_path: Path) -> GeoBoundarySource:
    return GeoBoundarySource(geojson_path)


@pytest.fixture
def surfaces() -> Dict[ChartKind, RecordingSurface]:
    return {kind: RecordingSurface() for kind in ChartKind}


@pytest.fixture
def controls() -> RecordingControls:
    return RecordingControls()

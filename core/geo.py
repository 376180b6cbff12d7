from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

FEATURE_KEY = "name"


class GeoDataUnavailableError(RuntimeError):
    """The region boundary dataset could not be loaded."""


class GeoBoundarySource:
    """Loads the region boundary GeoJSON once and keeps it for the process lifetime.

    A failed load is not cached, so the next render tries again.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._cached: Optional[Dict[str, Any]] = None

    @property
    def loaded(self) -> bool:
        return self._cached is not None

    def load(self) -> Dict[str, Any]:
        if self._cached is not None:
            return self._cached
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise GeoDataUnavailableError(f"Failed to load GeoJSON from {self.path}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("features"), list):
            raise GeoDataUnavailableError(f"{self.path} is not a GeoJSON FeatureCollection")
        logger.info("Loaded %d boundary features from %s", len(data["features"]), self.path)
        self._cached = data
        return data


def feature_name(feature: Dict[str, Any]) -> Optional[str]:
    props = feature.get("properties") or {}
    name = props.get(FEATURE_KEY)
    return str(name) if name is not None else None


def attach_values(geojson: Dict[str, Any], values: Dict[str, float]) -> List[Dict[str, Any]]:
    """Copy features, adding `region` and `value` (None = no data) to each feature's properties."""
    out: List[Dict[str, Any]] = []
    for feature in geojson.get("features", []):
        name = feature_name(feature)
        props = dict(feature.get("properties") or {})
        props["region"] = name
        props["value"] = values.get(name) if name is not None else None
        out.append({**feature, "properties": props})
    return out

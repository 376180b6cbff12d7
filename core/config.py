from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

BASE_DIR = Path(__file__).resolve().parents[1]
ENV_PREFIX = "DEVICE_DASHBOARD_"


class DashboardConfig(BaseModel):
    data_path: Path = BASE_DIR / "data" / "data.csv"
    geojson_path: Path = BASE_DIR / "data" / "oesterreich.json"
    # Rows created on or before this day are dropped at load; None keeps everything.
    min_created_date: Optional[date] = date(2021, 10, 1)
    map_display_width: int = Field(default=1500, gt=0)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value!r}")
        return level


def load_config(env: Optional[Mapping[str, str]] = None) -> DashboardConfig:
    env = os.environ if env is None else env
    raw = {}
    for field_name in DashboardConfig.model_fields:
        key = ENV_PREFIX + field_name.upper()
        if key in env:
            raw[field_name] = env[key]
    if raw.get("min_created_date", None) == "":
        raw["min_created_date"] = None
    return DashboardConfig.model_validate(raw)

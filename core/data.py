from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from core.dates import SECONDS_PER_DAY, day_offset, normalize_date

logger = logging.getLogger(__name__)

REGION_COL = "region"
PRODUCT_COL = "product"
CREATED_COL = "device_created_day"
CATEGORY_COL = "device_type_category"
SOURCE_COLUMNS = [REGION_COL, PRODUCT_COL, CREATED_COL, CATEGORY_COL]

DATE_COL = "normalized_date"
OFFSET_COL = "day_offset"


class NoValidDatesError(ValueError):
    """Raised when no retained row carries a parsable creation date."""

    def __init__(self, message: str = "No valid dates found in data.") -> None:
        super().__init__(message)


@dataclass(frozen=True, eq=False)
class DatasetStore:
    frame: pd.DataFrame
    earliest: date
    latest: date
    total_span_days: int

    def __len__(self) -> int:
        return len(self.frame)

    def regions(self) -> List[str]:
        return sorted(self.frame[REGION_COL].dropna().astype(str).unique().tolist())

    def categories(self) -> List[str]:
        return sorted(self.frame[CATEGORY_COL].dropna().astype(str).unique().tolist())


def file_signature(path: Path) -> Tuple[str, float]:
    return str(path), path.stat().st_mtime


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
            df[col] = series
    return df


def read_rows(path: Path) -> List[Dict[str, str]]:
    """Read the device CSV as a list of column -> string mappings."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return df.to_dict(orient="records")


def rows_to_frame(rows: Iterable[Mapping[str, object]]) -> pd.DataFrame:
    df = pd.DataFrame.from_records(list(rows))
    for col in SOURCE_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA
    df = df[SOURCE_COLUMNS + [c for c in df.columns if c not in SOURCE_COLUMNS]]
    return coerce_str_safe(df, SOURCE_COLUMNS)


def load_dataset(rows: Iterable[Mapping[str, object]], *, min_created_date: Optional[date] = None) -> DatasetStore:
    df = rows_to_frame(rows)
    read_count = len(df)

    parsed = pd.Series(
        [normalize_date(v) if pd.notna(v) else None for v in df[CREATED_COL]], index=df.index, dtype=object
    )
    keep = df[REGION_COL].notna() & df[PRODUCT_COL].notna() & parsed.notna()
    if min_created_date is not None:
        keep &= pd.Series([d is not None and d > min_created_date for d in parsed], index=df.index, dtype=bool)

    df = df[keep].reset_index(drop=True)
    parsed = parsed[keep].reset_index(drop=True)
    logger.info("Loaded %d of %d rows (%d dropped)", len(df), read_count, read_count - len(df))

    if df.empty:
        raise NoValidDatesError()

    earliest = min(parsed)
    latest = max(parsed)
    df[DATE_COL] = pd.to_datetime(pd.Series(list(parsed), dtype=object))
    df[OFFSET_COL] = compute_offsets(df[DATE_COL], earliest)
    return DatasetStore(frame=df, earliest=earliest, latest=latest, total_span_days=day_offset(earliest, latest))


def compute_offsets(dates: pd.Series, epoch: date) -> pd.Series:
    delta = dates - pd.Timestamp(epoch)
    seconds = delta.dt.total_seconds()
    return (seconds // SECONDS_PER_DAY).astype("Int64")


@lru_cache(maxsize=4)
def _load_dataset_cached(sig: Tuple[str, float], min_created_date: Optional[date]) -> DatasetStore:
    rows = read_rows(Path(sig[0]))
    return load_dataset(rows, min_created_date=min_created_date)


def load_dashboard_data(path: Path, *, min_created_date: Optional[date] = None) -> DatasetStore:
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    return _load_dataset_cached(file_signature(path), min_created_date)

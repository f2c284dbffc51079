#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CSV row source for the historical analytics.

Rows come back exactly as they sit in the file: one DataFrame row per line,
every cell a string. Numeric parsing is left to `analytics` so that a bad
cell only drops out of the statistic it would have fed.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from config import get_config

log = logging.getLogger("dataset")


def data_dir() -> Path:
    return Path(get_config()["DATA_DIR"])


def read_rows(filename: str, base_dir: Optional[str | Path] = None) -> pd.DataFrame:
    """Read `filename` under the data dir; a missing file yields an empty frame."""
    path = Path(base_dir) if base_dir is not None else data_dir()
    path = path / filename
    if not path.exists():
        log.warning(f"CSV file not found: {path}")
        return pd.DataFrame()

    # dtype=str + keep_default_na=False keeps "" and "NA" as literal strings
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]
    log.debug(f"Read {len(df):,} rows from {path.name}")
    return df


def read_daily_rows(base_dir: Optional[str | Path] = None) -> pd.DataFrame:
    return read_rows(get_config()["DAILY_CSV"], base_dir)


def read_hourly_rows(base_dir: Optional[str | Path] = None) -> pd.DataFrame:
    return read_rows(get_config()["HOURLY_CSV"], base_dir)

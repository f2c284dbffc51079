#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import os
from typing import Dict, Any
from dotenv import load_dotenv

__CFG_CACHE: Dict[str, Any] | None = None
__LOGGING_READY = False

def load_env_once():
    # Load .env only once to avoid noisy logs
    global __CFG_CACHE
    if __CFG_CACHE is None:
        load_dotenv()
        __CFG_CACHE = {}
    return True

def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default

def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default

def get_config() -> Dict[str, Any]:
    load_env_once()
    # Read env with sensible defaults
    cfg = {
        "AQI_API_URL": os.getenv("AQI_API_URL", "").strip().rstrip("/"),
        "AQI_API_KEY": os.getenv("AQI_API_KEY", "").strip(),
        "PORT": _env_int("PORT", 4000),
        "DATA_DIR": os.getenv("DATA_DIR", "./data").strip(),
        "DAILY_CSV": os.getenv("DAILY_CSV", "city_day.csv").strip(),
        "HOURLY_CSV": os.getenv("HOURLY_CSV", "city_hour.csv").strip(),
        "CACHE_TTL_S": _env_float("CACHE_TTL_S", 300.0),
        "HTTP_TIMEOUT": _env_float("HTTP_TIMEOUT", 5.0),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").strip() or "INFO",
        "LOG_DIR": os.getenv("LOG_DIR", "./logs").strip(),
        "ALLOWED_ORIGINS": [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
    }
    return cfg

def configure_logging(level: str = "INFO", log_dir: str | None = None):
    """Install the JSON log handlers once per process."""
    global __LOGGING_READY
    if __LOGGING_READY:
        return
    from logging_utils import setup_logging
    setup_logging(level=level, log_dir=log_dir or get_config()["LOG_DIR"])
    __LOGGING_READY = True


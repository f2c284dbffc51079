#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FastAPI server for the HealthGuard air-quality dashboard (Kolkata).

Endpoints (all JSON):
- GET /api/health
- GET /api/aqi/stations              live AQICN stations (cached, mock fallback)
- GET /api/aqi/station/{id}
- GET /api/analytics/trends?city=Kolkata&timeRange=all|1m|3m|6m|1y
- GET /api/analytics/forecast?city=Kolkata&days=7
- GET /api/analytics/patterns?city=Kolkata
- GET /api/analytics/risk?city=Kolkata

Analytics read DATA_DIR/city_day.csv (and city_hour.csv for patterns) on
every call. Station lists are held in a TTL cache (CACHE_TTL_S, default 5 min).

Run:
    uvicorn healthguard_api:app --host 0.0.0.0 --port 4000 --reload
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import aqicn_api
import analytics
import dataset
from config import get_config, configure_logging
from ttl_cache import TTLCache

log = logging.getLogger("api")

cfg = get_config()
STATIONS_KEY = "stations"
STATION_CACHE = TTLCache(cfg["CACHE_TTL_S"])

app = FastAPI(title="HealthGuard AQI API", version="1.0.0", docs_url="/api/docs", openapi_url="/api/openapi.json")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg["ALLOWED_ORIGINS"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup():
    configure_logging(cfg["LOG_LEVEL"], cfg["LOG_DIR"])
    source = "AQICN real-time API" if (cfg["AQI_API_URL"] and cfg["AQI_API_KEY"]) else "mock data"
    log.info(f"HealthGuard backend up: data source={source}, cache TTL={STATION_CACHE.ttl_seconds:.0f}s, data dir={cfg['DATA_DIR']}")


# ---------- helpers ----------
def _failure(error: str, exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": str(exc)},
    )

def _fetch_stations():
    return aqicn_api.fetch_stations(cfg["AQI_API_URL"], cfg["AQI_API_KEY"])

def _run_analytics(endpoint: str, error: str, fn: Callable[[], Dict[str, Any]]):
    try:
        return {"success": True, "data": fn()}
    except Exception as e:
        log.exception(f"Error in {endpoint}: {e}", extra={"endpoint": endpoint})
        return _failure(error, e)


# ---------- health ----------
@app.get("/api/health")
def health():
    stations = STATION_CACHE.peek(STATIONS_KEY)
    age = STATION_CACHE.age(STATIONS_KEY)
    return {
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cache": {
            "hasData": bool(stations),
            "stationCount": len(stations) if stations else 0,
            "age": None if age is None else int(age * 1000),
            "ttl": int(STATION_CACHE.ttl_seconds * 1000),
        },
    }


# ---------- live stations ----------
@app.get("/api/aqi/stations")
def stations():
    try:
        cached = STATION_CACHE.get(STATIONS_KEY)
        if cached is not None:
            log.info("Returning cached stations", extra={"cached": True})
            return {"success": True, "cached": True, "count": len(cached), "data": cached}

        log.info("Cache miss or expired, fetching fresh data", extra={"cached": False})
        fresh = _fetch_stations()
        STATION_CACHE.set(STATIONS_KEY, fresh)
        return {"success": True, "cached": False, "count": len(fresh), "data": fresh}
    except Exception as e:
        log.exception(f"Error in /api/aqi/stations: {e}")
        return _failure("Failed to fetch stations", e)


@app.get("/api/aqi/station/{station_id}")
def station(station_id: str):
    try:
        # a stale list is still good enough for a lookup by id
        cached = STATION_CACHE.peek(STATIONS_KEY) or []
        for s in cached:
            if s.get("id") == station_id:
                return {"success": True, "data": s}

        for s in _fetch_stations():
            if s.get("id") == station_id:
                return {"success": True, "data": s}

        return JSONResponse(status_code=404, content={"success": False, "error": "Station not found"})
    except Exception as e:
        log.exception(f"Error fetching station {station_id}: {e}")
        return _failure("Failed to fetch station", e)


# ---------- analytics ----------
@app.get("/api/analytics/trends")
def trends(
    city: str = Query(analytics.DEFAULT_CITY),
    time_range: str = Query("all", alias="timeRange", description="1m | 3m | 6m | 1y | all"),
):
    log.info(f"Calculating trends for {city} ({time_range})", extra={"city": city})
    return _run_analytics(
        "/api/analytics/trends", "Failed to calculate trends",
        lambda: analytics.calculate_trends(dataset.read_daily_rows(), city, time_range),
    )


@app.get("/api/analytics/forecast")
def forecast(
    city: str = Query(analytics.DEFAULT_CITY),
    days: int = Query(7, ge=1, le=30),
):
    log.info(f"Forecasting AQI for {city} ({days} days)", extra={"city": city})
    return _run_analytics(
        "/api/analytics/forecast", "Failed to generate forecast",
        lambda: analytics.forecast_aqi(dataset.read_daily_rows(), city, days),
    )


@app.get("/api/analytics/patterns")
def patterns(city: str = Query(analytics.DEFAULT_CITY)):
    log.info(f"Analyzing patterns for {city}", extra={"city": city})
    return _run_analytics(
        "/api/analytics/patterns", "Failed to analyze patterns",
        lambda: analytics.analyze_patterns(dataset.read_daily_rows(), dataset.read_hourly_rows(), city),
    )


@app.get("/api/analytics/risk")
def risk(city: str = Query(analytics.DEFAULT_CITY)):
    log.info(f"Assessing risk for {city}", extra={"city": city})
    return _run_analytics(
        "/api/analytics/risk", "Failed to assess risk",
        lambda: analytics.assess_risk(dataset.read_daily_rows(), city),
    )


if __name__ == "__main__":
    import uvicorn
    configure_logging(cfg["LOG_LEVEL"], cfg["LOG_DIR"])
    uvicorn.run("healthguard_api:app", host="0.0.0.0", port=cfg["PORT"], reload=False)

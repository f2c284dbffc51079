#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Historical AQI analytics (CSV rows in, plain dicts out)
-------------------------------------------------------
Four single-pass analyses over the rows of city_day.csv / city_hour.csv:

• calculate_trends   overall + per-month AQI stats and per-pollutant stats
• forecast_aqi       7-day moving average blended with an OLS trend line
• analyze_patterns   seasonal / weekday / hour-of-day averages + pollutant
                     Pearson correlations
• assess_risk        AQI category distribution and a risk level from the
                     average of the last 30 rows

Rows are mappings (or one DataFrame) with string fields (City, Datetime,
AQI, AQI_Bucket, PM2.5, PM10, NO2, SO2, CO, O3). Any numeric cell that does
not parse as a finite number is dropped from the statistic it would feed, so
results never carry NaN. Nothing is cached between calls.

Result keys are camelCase because the dashboard reads them as-is.
"""
from __future__ import annotations

import math
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

log = logging.getLogger("analytics")

Row = Mapping[str, Any]
Rows = Iterable[Row] | pd.DataFrame

DEFAULT_CITY = "Kolkata"

POLLUTANTS = ["PM2.5", "PM10", "NO2", "SO2", "CO", "O3"]
CORRELATION_POLLUTANTS = ["PM2.5", "PM10", "NO2", "SO2", "CO"]
AQI_CATEGORIES = ["Good", "Satisfactory", "Moderate", "Poor", "Very Poor", "Severe"]

TIME_RANGE_MONTHS = {"1m": 1, "3m": 3, "6m": 6, "1y": 12}
DEFAULT_RANGE_MONTHS = 12

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

FORECAST_WINDOW = 30
MOVING_AVERAGE_DAYS = 7
MIN_FORECAST_POINTS = 7
MA_WEIGHT, TREND_WEIGHT = 0.6, 0.4

MIN_CORRELATION_SAMPLES = 10  # strictly more than this many values per series
RISK_WINDOW = 30
UNHEALTHY_AQI = 150

# (exclusive lower bound, level, health impact), highest first
RISK_LEVELS: List[Tuple[float, str, str]] = [
    (300, "severe", "Serious health effects for all population groups"),
    (200, "high", "Health alert for sensitive groups"),
    (150, "moderate", "Possible health effects for sensitive individuals"),
    (100, "low-moderate", "Generally acceptable air quality"),
]
LOW_RISK = ("low", "Minimal health impact expected")

HEALTH_RECOMMENDATIONS: Dict[str, List[str]] = {
    "low": [
        "Air quality is satisfactory",
        "Outdoor activities are safe for all",
        "No special precautions needed",
    ],
    "low-moderate": [
        "Generally safe for outdoor activities",
        "Sensitive individuals should monitor symptoms",
        "Reduce prolonged outdoor exertion",
    ],
    "moderate": [
        "Sensitive groups should limit prolonged outdoor activities",
        "Wear N95 masks during outdoor activities",
        "Keep windows closed during high pollution hours",
    ],
    "high": [
        "Everyone should reduce outdoor exertion",
        "Sensitive groups should avoid outdoor activities",
        "Use air purifiers indoors",
        "Wear N95/N99 masks when outdoors",
    ],
    "severe": [
        "Avoid all outdoor activities",
        "Keep all windows and doors closed",
        "Use high-quality air purifiers",
        "Seek medical attention if experiencing symptoms",
        "Children and elderly should stay indoors",
    ],
}

# Dashboard colour bands for live readings (upper bound inclusive)
AQI_BANDS = [
    (50, "Good"),
    (100, "Moderate"),
    (150, "Unhealthy for Sensitive"),
    (200, "Unhealthy"),
    (300, "Very Unhealthy"),
]

# Berkeley Earth rule of thumb: 22 µg/m³ PM2.5 for a day ~ one cigarette
PM25_PER_CIGARETTE = 22.0


# ---------- helpers ----------
def _round(value: float, digits: int = 1) -> float:
    """Round half toward +inf (the dashboard's display rule), not half-to-even."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _city_frame(rows: Optional[Rows], city: str) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        df = rows
    else:
        df = pd.DataFrame(list(rows or []))
    if df.empty or "City" not in df.columns:
        return pd.DataFrame(columns=["City"])
    return df[df["City"] == city].reset_index(drop=True)


def _column(df: pd.DataFrame, name: str) -> pd.Series:
    if name in df.columns:
        return df[name]
    return pd.Series([None] * len(df), index=df.index, dtype=object)


def _numeric(values: pd.Series) -> pd.Series:
    """Parse to float; unparseable and non-finite cells become NaN."""
    out = pd.to_numeric(values, errors="coerce").astype(float)
    return out.where(np.isfinite(out))


def _timestamps(values: pd.Series) -> pd.Series:
    try:
        ts = pd.to_datetime(values, errors="coerce", format="mixed")
    except (TypeError, ValueError):
        # naive and tz-aware stamps in one column
        ts = None
    if ts is None or not pd.api.types.is_datetime64_any_dtype(ts):
        ts = pd.to_datetime(values, errors="coerce", format="mixed", utc=True)
    if ts.dt.tz is not None:
        ts = ts.dt.tz_localize(None)
    return ts


def _bucket_average(values: pd.Series) -> Dict[str, Any]:
    values = values.dropna()
    return {
        "averageAQI": float(values.mean()) if not values.empty else 0.0,
        "dataPoints": int(values.size),
    }


def _bucket_range(values: pd.Series) -> Dict[str, Any]:
    values = values.dropna()
    if values.empty:
        return {"averageAQI": 0.0, "maxAQI": 0.0, "minAQI": 0.0, "dataPoints": 0}
    return {
        "averageAQI": float(values.mean()),
        "maxAQI": float(values.max()),
        "minAQI": float(values.min()),
        "dataPoints": int(values.size),
    }


def _hour_of(stamp: Any) -> int:
    """Hour from a 'YYYY-MM-DD HH:MM[:SS]' string; 0 when it cannot be read."""
    parts = str(stamp).split()
    if len(parts) < 2:
        return 0
    try:
        return int(parts[1].split(":")[0])
    except ValueError:
        return 0


def linear_regression(values: Sequence[float]) -> Tuple[float, float]:
    """Ordinary least squares over (index, value); returns (slope, intercept)."""
    y = np.asarray(values, dtype=float)
    n = y.size
    if n == 0:
        return 0.0, 0.0
    if n == 1:
        return 0.0, float(y[0])
    x = np.arange(n, dtype=float)
    sum_x, sum_y = x.sum(), y.sum()
    denom = n * (x * x).sum() - sum_x * sum_x
    slope = (n * (x * y).sum() - sum_x * sum_y) / denom
    intercept = sum_y / n - slope * sum_x / n
    return float(slope), float(intercept)


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson r over the first min(len(x), len(y)) values; 0 for a constant series."""
    n = min(len(x), len(y))
    if n == 0:
        return 0.0
    xa = np.asarray(x[:n], dtype=float)
    ya = np.asarray(y[:n], dtype=float)
    if np.ptp(xa) == 0 or np.ptp(ya) == 0:
        return 0.0
    dx = xa - xa.mean()
    dy = ya - ya.mean()
    denom = math.sqrt(float((dx * dx).sum()) * float((dy * dy).sum()))
    if denom == 0:
        return 0.0
    return float((dx * dy).sum()) / denom


def risk_level_for(average_aqi: float) -> Tuple[str, str]:
    for threshold, level, impact in RISK_LEVELS:
        if average_aqi > threshold:
            return level, impact
    return LOW_RISK


def health_recommendations(level: str) -> List[str]:
    return list(HEALTH_RECOMMENDATIONS.get(level, HEALTH_RECOMMENDATIONS["low"]))


def aqi_category(aqi: Optional[float]) -> str:
    if aqi is None:
        return "Unknown"
    for upper, label in AQI_BANDS:
        if aqi <= upper:
            return label
    return "Hazardous"


def cigarette_equivalent(pm25: Optional[float]) -> Optional[float]:
    if pm25 is None:
        return None
    return _round(pm25 / PM25_PER_CIGARETTE, 1)


# ---------- trends ----------
def calculate_trends(
    rows: Rows,
    city: str = DEFAULT_CITY,
    time_range: str = "all",
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    df = _city_frame(rows, city)

    if time_range != "all" and not df.empty:
        months_back = TIME_RANGE_MONTHS.get(time_range, DEFAULT_RANGE_MONTHS)
        ref = pd.Timestamp(now or datetime.now())
        if ref.tz is not None:
            ref = ref.tz_localize(None)
        cutoff = ref - pd.DateOffset(months=months_back)
        df = df[_timestamps(_column(df, "Datetime")) >= cutoff].reset_index(drop=True)

    if df.empty:
        return {
            "city": city,
            "timeRange": time_range,
            "averageAQI": 0,
            "medianAQI": 0,
            "maxAQI": 0,
            "minAQI": 0,
            "stdDevAQI": 0,
            "trends": [],
            "pollutants": {},
            "totalDataPoints": 0,
            "message": "No data available for the selected time range",
        }

    aqi = _numeric(_column(df, "AQI"))
    valid = aqi.dropna()

    months = _timestamps(_column(df, "Datetime")).dt.strftime("%Y-%m")
    frame = pd.DataFrame({"month": months, "aqi": aqi}).dropna(subset=["month"])
    trends = [
        {"month": month, **_bucket_range(group["aqi"])}
        for month, group in frame.groupby("month", sort=True)
    ]

    pollutant_stats: Dict[str, Dict[str, float]] = {}
    for name in POLLUTANTS:
        values = _numeric(_column(df, name))
        values = values[values > 0]  # zero/negative readings are sensor artifacts
        if values.empty:
            continue
        pollutant_stats[name] = {
            "average": float(values.mean()),
            "max": float(values.max()),
            "min": float(values.min()),
            "stdDev": float(values.std(ddof=0)),
        }

    has_aqi = not valid.empty
    return {
        "city": city,
        "timeRange": time_range,
        "averageAQI": float(valid.mean()) if has_aqi else 0,
        "medianAQI": float(valid.median()) if has_aqi else 0,
        "maxAQI": float(valid.max()) if has_aqi else 0,
        "minAQI": float(valid.min()) if has_aqi else 0,
        "stdDevAQI": float(valid.std(ddof=0)) if has_aqi else 0,
        "trends": trends,
        "pollutants": pollutant_stats,
        "totalDataPoints": int(len(df)),
    }


# ---------- forecast ----------
def forecast_aqi(rows: Rows, city: str = DEFAULT_CITY, days: int = 7) -> Dict[str, Any]:
    df = _city_frame(rows, city)
    if df.empty:
        return {
            "city": city,
            "forecast": [],
            "method": "none",
            "message": "No data available for forecasting",
        }

    df = df.assign(_ts=_timestamps(_column(df, "Datetime"))).dropna(subset=["_ts"])
    # stable sort keeps file order for duplicate dates
    window = df.sort_values("_ts", kind="mergesort").tail(FORECAST_WINDOW)
    aqi = _numeric(_column(window, "AQI")).dropna().to_numpy(dtype=float)

    if aqi.size < MIN_FORECAST_POINTS:
        return {
            "city": city,
            "forecast": [],
            "method": "insufficient-data",
            "message": "Insufficient data for forecasting",
        }

    moving_avg = float(aqi[-MOVING_AVERAGE_DAYS:].mean())
    slope, intercept = linear_regression(aqi)
    std_dev = float(np.std(aqi, ddof=1))
    confidence = "high" if std_dev < 50 else ("medium" if std_dev < 100 else "low")

    last_date = window["_ts"].iloc[-1].date()
    n = aqi.size
    forecast: List[Dict[str, Any]] = []
    for i in range(1, days + 1):
        trend_value = intercept + slope * (n + i)
        predicted = MA_WEIGHT * moving_avg + TREND_WEIGHT * trend_value
        forecast.append({
            "date": (last_date + timedelta(days=i)).isoformat(),
            "predictedAQI": _round(predicted, 1),
            "lowerBound": _round(max(0.0, predicted - std_dev), 1),
            "upperBound": _round(predicted + std_dev, 1),
            "confidence": confidence,
        })

    trend = "increasing" if slope > 0 else ("decreasing" if slope < 0 else "stable")
    return {
        "city": city,
        "forecast": forecast,
        "method": "moving-average-regression",
        "currentAQI": float(aqi[-1]),
        "trend": trend,
        "trendStrength": abs(slope),
    }


# ---------- patterns ----------
def analyze_patterns(
    daily_rows: Rows,
    hourly_rows: Optional[Rows] = None,
    city: str = DEFAULT_CITY,
) -> Dict[str, Any]:
    daily = _city_frame(daily_rows, city)
    hourly = _city_frame(hourly_rows if hourly_rows is not None else [], city)

    if daily.empty:
        return {
            "city": city,
            "patterns": {},
            "message": "No data available for pattern analysis",
        }

    frame = pd.DataFrame({
        "ts": _timestamps(_column(daily, "Datetime")),
        "aqi": _numeric(_column(daily, "AQI")),
    }).dropna(subset=["ts"])

    # groups come out in first-seen order
    seasonal = [
        {"month": MONTH_NAMES[int(month) - 1], **_bucket_average(group["aqi"])}
        for month, group in frame.groupby(frame["ts"].dt.month, sort=False)
    ]
    weekly = [
        {"day": day, **_bucket_average(group["aqi"])}
        for day, group in frame.groupby(frame["ts"].dt.day_name(), sort=False)
    ]

    hourly_pattern: List[Dict[str, Any]] = []
    if not hourly.empty:
        by_hour = pd.DataFrame({
            "hour": _column(hourly, "Datetime").map(_hour_of),
            "aqi": _numeric(_column(hourly, "AQI")),
        })
        hourly_pattern = [
            {"hour": int(hour), **_bucket_average(group["aqi"])}
            for hour, group in by_hour.groupby("hour", sort=True)
        ]

    series = {
        name: _numeric(_column(daily, name)).dropna().to_numpy(dtype=float)
        for name in CORRELATION_POLLUTANTS
    }
    correlations: List[Dict[str, Any]] = []
    for i, first in enumerate(CORRELATION_POLLUTANTS):
        for second in CORRELATION_POLLUTANTS[i + 1:]:
            x, y = series[first], series[second]
            if x.size <= MIN_CORRELATION_SAMPLES or y.size <= MIN_CORRELATION_SAMPLES:
                continue
            # positional pairing, not matched by timestamp
            n = min(x.size, y.size)
            correlations.append({
                "pollutant1": first,
                "pollutant2": second,
                "correlation": _round(pearson_correlation(x[:n], y[:n]), 2),
            })

    return {
        "city": city,
        "seasonal": seasonal,
        "weekly": weekly,
        "hourly": hourly_pattern,
        "correlations": correlations,
    }


# ---------- risk ----------
def assess_risk(rows: Rows, city: str = DEFAULT_CITY) -> Dict[str, Any]:
    df = _city_frame(rows, city)
    if df.empty:
        return {
            "city": city,
            "riskLevel": "unknown",
            "message": "No data available for risk assessment",
        }

    total = len(df)
    # labels outside AQI_CATEGORIES still count toward total
    counts = _column(df, "AQI_Bucket").value_counts()
    distribution = []
    for category in AQI_CATEGORIES:
        count = int(counts.get(category, 0))
        distribution.append({
            "category": category,
            "percentage": _round(count / total * 100, 1),
            "days": count,
        })

    aqi = _numeric(_column(df, "AQI"))
    recent = aqi.tail(RISK_WINDOW).dropna()
    recent_avg = float(recent.mean()) if not recent.empty else 0.0
    level, impact = risk_level_for(recent_avg)

    unhealthy_days = int((aqi > UNHEALTHY_AQI).sum())
    log.debug(f"risk {city}: recent_avg={recent_avg:.1f} level={level} unhealthy={unhealthy_days}/{total}")

    return {
        "city": city,
        "riskLevel": level,
        "healthImpact": impact,
        "currentAverage": recent_avg,
        "distribution": distribution,
        "unhealthyDaysPercentage": _round(unhealthy_days / total * 100, 1),
        "recommendations": health_recommendations(level),
    }

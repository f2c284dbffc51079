#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
AQICN live station helpers (Kolkata)
- Pull the city feed for a fixed list of AQICN locations in parallel.
- Keep only stations that are really in the Kolkata area.
- Fall back to a bundled mock list when no API is configured or nothing survives.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from analytics import aqi_category, cigarette_equivalent
from net_utils import SESSION, HTTP_TIMEOUT

log = logging.getLogger("aqicn")

# Verified AQICN feed names for the Kolkata area
KOLKATA_LOCATIONS = [
    "kolkata",
    "howrah",
    "kolkata/us-consulate",
    "india/west-bengal/kolkata/ballygunge",
    "india/west-bengal/kolkata/fort-william",
    "india/west-bengal/kolkata/jadavpur",
    "india/west-bengal/kolkata/rabindra-bharati",
    "india/west-bengal/kolkata/victoria",
    "india/west-bengal/kolkata/bidhannagar",
    "india/west-bengal/kolkata/dum-dum",
]

KOLKATA_CENTER = (22.5726, 88.3639)
# S, N, W, E
KOLKATA_BOX = (22.3, 22.8, 88.1, 88.6)
KOLKATA_KEYWORDS = ["kolkata", "howrah", "calcutta", "কলকাতা", "west bengal"]
INDIA_MARKERS = ["india", "भारत"]

# (id, name, lat, lon, aqi, pm25, pm10)
_MOCK_STATIONS = [
    ("1", "Ballygunge, Kolkata", 22.5344, 88.3656, 171, 84, 105),
    ("2", "Fort William, Kolkata", 22.5497, 88.3420, 165, 79, 98),
    ("3", "Jadavpur, Kolkata", 22.4991, 88.3637, 183, 92, 118),
    ("4", "Rabindra Bharati University, Kolkata", 22.6534, 88.3739, 158, 75, 95),
    ("5", "Victoria Memorial, Kolkata", 22.5448, 88.3426, 176, 87, 108),
    ("6", "Rabindra Sarobar, Kolkata", 22.5167, 88.3667, 168, 81, 102),
    ("7", "Bidhannagar, Kolkata", 22.5780, 88.4337, 162, 77, 96),
    ("8", "Howrah", 22.5958, 88.2636, 194, 98, 125),
    ("9", "Salt Lake, Kolkata", 22.5780, 88.4337, 162, 77, 96),
    ("10", "Dum Dum, Kolkata", 22.6283, 88.4170, 179, 88, 112),
    ("11", "Park Street, Kolkata", 22.5535, 88.3583, 172, 85, 106),
    ("12", "New Town, Kolkata", 22.5867, 88.4750, 155, 72, 92),
    ("13", "Rajarhat, Kolkata", 22.6208, 88.4617, 164, 78, 98),
    ("14", "Behala, Kolkata", 22.4850, 88.3100, 186, 94, 120),
    ("15", "Kasba, Kolkata", 22.5200, 88.3800, 174, 86, 108),
]


# ---------- helpers ----------
def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def _safe(v, *keys, default=None):
    cur = v
    for k in keys:
        if isinstance(cur, dict) and (k in cur):
            cur = cur[k]
        elif isinstance(cur, list) and isinstance(k, int) and -len(cur) <= k < len(cur):
            cur = cur[k]
        else:
            return default
    return cur

def _category(aqi: Any) -> str:
    return aqi_category(aqi) if isinstance(aqi, (int, float)) else "Unknown"

def mock_stations() -> List[Dict[str, Any]]:
    now = _now_iso()
    return [
        {
            "id": sid, "name": name, "lat": lat, "lon": lon,
            "aqi": aqi, "pm25": pm25, "pm10": pm10,
            "dominant": "PM2.5", "lastUpdate": now,
            "category": _category(aqi),
            "cigarettes": cigarette_equivalent(pm25),
        }
        for sid, name, lat, lon, aqi, pm25, pm10 in _MOCK_STATIONS
    ]

def in_kolkata(lat: float, lon: float, name: str, location: str, country: str = "", city_url: str = "") -> bool:
    """Geo box AND (Indian station OR the name/location mentions Kolkata)."""
    s, n, w, e = KOLKATA_BOX
    in_geo = s <= lat <= n and w <= lon <= e
    country, city_url = country.lower(), city_url.lower()
    in_india = any(m in country for m in INDIA_MARKERS) or "/india/" in city_url
    mentions_city = any(k in name.lower() or k in location.lower() for k in KOLKATA_KEYWORDS)
    return in_geo and (in_india or mentions_city)

def parse_feed(location: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Turn one AQICN /feed/ response into a station dict, or None if rejected."""
    if payload.get("status") != "ok" or not payload.get("data"):
        return None
    data = payload["data"]
    name = _safe(data, "city", "name") or location
    lat = _safe(data, "city", "geo", 0) or KOLKATA_CENTER[0]
    lon = _safe(data, "city", "geo", 1) or KOLKATA_CENTER[1]
    country = str(_safe(data, "city", "country", default="") or "")
    city_url = str(_safe(data, "city", "url", default="") or "")

    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        lat, lon = KOLKATA_CENTER

    if not in_kolkata(lat, lon, name, location, country, city_url):
        log.info(f"Filtered out: {name} ({lat}, {lon}) country={country or 'N/A'}", extra={"location": location})
        return None

    idx = data.get("idx")
    aqi = data.get("aqi") or 0
    pm25 = _safe(data, "iaqi", "pm25", "v") or None
    return {
        "id": str(idx) if idx is not None else location,
        "name": name,
        "lat": lat,
        "lon": lon,
        "aqi": aqi,
        "pm25": pm25,
        "pm10": _safe(data, "iaqi", "pm10", "v") or None,
        "dominant": data.get("dominentpol") or "PM2.5",
        "lastUpdate": _safe(data, "time", "iso") or _now_iso(),
        "category": _category(aqi),
        "cigarettes": cigarette_equivalent(pm25) if isinstance(pm25, (int, float)) else None,
    }


# ---------- fetch ----------
def fetch_station(api_url: str, api_key: str, location: str) -> Optional[Dict[str, Any]]:
    r = SESSION.get(f"{api_url}/feed/{location}/", params={"token": api_key}, timeout=HTTP_TIMEOUT)
    r.raise_for_status()
    return parse_feed(location, r.json())

def fetch_stations(
    api_url: str,
    api_key: str,
    locations: Optional[List[str]] = None,
    max_workers: int = 10,
) -> List[Dict[str, Any]]:
    if not api_url or not api_key:
        log.info("No AQI_API_URL or AQI_API_KEY configured, using mock data")
        return mock_stations()

    locations = locations or KOLKATA_LOCATIONS
    log.info(f"Fetching real-time data from AQICN for {len(locations)} Kolkata stations")

    stations: List[Dict[str, Any]] = []
    with ThreadPoolExecutor(max_workers=max_workers) as ex:
        futs = [(loc, ex.submit(fetch_station, api_url, api_key, loc)) for loc in locations]
        # keep the configured location order
        for loc, fut in futs:
            try:
                station = fut.result()
            except Exception as e:
                log.warning(f"Failed to fetch {loc}: {e}", extra={"location": loc})
                continue
            if station is not None:
                stations.append(station)

    if stations:
        log.info(f"Fetched {len(stations)} real-time stations from AQICN")
        return stations

    log.warning("No valid stations returned from AQICN, falling back to mock data")
    return mock_stations()

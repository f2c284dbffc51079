import requests

import aqicn_api


def _feed(name="Ballygunge, Kolkata, India", geo=(22.5344, 88.3656), country="", url="", aqi=171, idx=1234):
    return {
        "status": "ok",
        "data": {
            "idx": idx,
            "aqi": aqi,
            "dominentpol": "pm25",
            "city": {"name": name, "geo": list(geo), "country": country, "url": url},
            "iaqi": {"pm25": {"v": 84}, "pm10": {"v": 105}},
            "time": {"iso": "2025-01-01T10:00:00+05:30"},
        },
    }


def test_parse_feed_keeps_kolkata_station():
    station = aqicn_api.parse_feed("india/west-bengal/kolkata/ballygunge", _feed())

    assert station == {
        "id": "1234",
        "name": "Ballygunge, Kolkata, India",
        "lat": 22.5344,
        "lon": 88.3656,
        "aqi": 171,
        "pm25": 84,
        "pm10": 105,
        "dominant": "pm25",
        "lastUpdate": "2025-01-01T10:00:00+05:30",
        "category": "Unhealthy",
        "cigarettes": 3.8,
    }


def test_parse_feed_rejects_station_outside_box():
    # AQICN resolves some names to a different "Kolkata" far away
    assert aqicn_api.parse_feed("kolkata", _feed(geo=(40.1, -74.2))) is None


def test_parse_feed_needs_india_or_city_name_inside_box():
    assert aqicn_api.parse_feed("somewhere", _feed(name="Station 7")) is None
    assert aqicn_api.parse_feed("somewhere", _feed(name="Station 7", url="https://aqicn.org/city/india/x")) is not None


def test_parse_feed_error_status():
    assert aqicn_api.parse_feed("kolkata", {"status": "error", "data": "Unknown station"}) is None


def test_missing_geo_falls_back_to_city_centre():
    payload = _feed()
    payload["data"]["city"].pop("geo")
    station = aqicn_api.parse_feed("kolkata", payload)
    assert (station["lat"], station["lon"]) == aqicn_api.KOLKATA_CENTER


def test_unconfigured_api_returns_mock_stations():
    stations = aqicn_api.fetch_stations("", "")
    assert len(stations) == 15
    assert stations[0]["id"] == "1"
    assert all(s["dominant"] == "PM2.5" for s in stations)
    assert stations[7]["cigarettes"] == 4.5


def test_failed_location_is_skipped(monkeypatch):
    def fake_fetch(api_url, api_key, location):
        if location == "howrah":
            raise requests.ConnectionError("boom")
        if location == "kolkata":
            return None
        return {"id": location, "name": location}

    monkeypatch.setattr(aqicn_api, "fetch_station", fake_fetch)
    stations = aqicn_api.fetch_stations("https://api.example", "tok", ["kolkata", "howrah", "a", "b"])
    assert [s["id"] for s in stations] == ["a", "b"]


def test_everything_failing_falls_back_to_mock(monkeypatch):
    def fake_fetch(api_url, api_key, location):
        raise requests.Timeout("slow")

    monkeypatch.setattr(aqicn_api, "fetch_station", fake_fetch)
    stations = aqicn_api.fetch_stations("https://api.example", "tok")
    assert len(stations) == 15


def test_fetch_station_builds_feed_url(monkeypatch):
    calls = {}

    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return _feed()

    def fake_get(url, params=None, timeout=None):
        calls.update(url=url, params=params, timeout=timeout)
        return FakeResponse()

    monkeypatch.setattr(aqicn_api.SESSION, "get", fake_get)
    station = aqicn_api.fetch_station("https://api.waqi.info", "tok", "howrah")

    assert calls["url"] == "https://api.waqi.info/feed/howrah/"
    assert calls["params"] == {"token": "tok"}
    assert station["id"] == "1234"


def test_non_numeric_pm25_has_no_cigarette_figure():
    payload = _feed()
    payload["data"]["iaqi"]["pm25"]["v"] = "-"
    station = aqicn_api.parse_feed("kolkata", payload)
    assert station["pm25"] == "-"
    assert station["cigarettes"] is None

from datetime import date, timedelta

import pytest


def day_rows(city, start, aqi_values, bucket="", **pollutants):
    """One row per consecutive day starting at `start` (YYYY-MM-DD)."""
    d0 = date.fromisoformat(start)
    rows = []
    for i, aqi in enumerate(aqi_values):
        row = {
            "City": city,
            "Datetime": (d0 + timedelta(days=i)).isoformat(),
            "AQI": str(aqi),
            "AQI_Bucket": bucket,
        }
        for name, values in pollutants.items():
            row[name.replace("_", ".")] = str(values[i])
        rows.append(row)
    return rows


@pytest.fixture
def make_day_rows():
    return day_rows


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()

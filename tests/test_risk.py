import pytest

from analytics import (
    AQI_CATEGORIES,
    HEALTH_RECOMMENDATIONS,
    aqi_category,
    assess_risk,
    cigarette_equivalent,
    health_recommendations,
    risk_level_for,
)


@pytest.mark.parametrize("average, level", [
    (50, "low"),
    (100, "low"),
    (120, "low-moderate"),
    (150, "low-moderate"),
    (160, "moderate"),
    (200, "moderate"),
    (250, "high"),
    (300, "high"),
    (350, "severe"),
])
def test_risk_level_thresholds(average, level):
    assert risk_level_for(average)[0] == level


def test_constant_poor_city(make_day_rows):
    rows = make_day_rows("Kolkata", "2020-01-01", [180] * 40, bucket="Poor")
    out = assess_risk(rows, "Kolkata")

    assert out["riskLevel"] == "moderate"
    assert out["currentAverage"] == 180.0
    assert out["unhealthyDaysPercentage"] == 100.0
    assert out["healthImpact"] == "Possible health effects for sensitive individuals"
    assert out["recommendations"] == HEALTH_RECOMMENDATIONS["moderate"]
    poor = next(d for d in out["distribution"] if d["category"] == "Poor")
    assert poor == {"category": "Poor", "percentage": 100.0, "days": 40}
    assert [d["category"] for d in out["distribution"]] == AQI_CATEGORIES


def test_recent_average_uses_last_thirty_rows_in_file_order(make_day_rows):
    rows = make_day_rows("Kolkata", "2020-01-01", [400] * 10 + [50] * 30, bucket="Good")
    out = assess_risk(rows, "Kolkata")

    assert out["riskLevel"] == "low"
    assert out["currentAverage"] == 50.0
    # unhealthy share looks at every row, not just the window
    assert out["unhealthyDaysPercentage"] == 25.0


def test_unrecognised_labels_still_count_toward_total(make_day_rows):
    rows = make_day_rows("Kolkata", "2020-01-01", [40, 45, 42], bucket="Good")
    rows.append({"City": "Kolkata", "Datetime": "2020-01-04", "AQI": "44", "AQI_Bucket": "good"})
    out = assess_risk(rows, "Kolkata")

    by_cat = {d["category"]: d for d in out["distribution"]}
    assert by_cat["Good"]["percentage"] == 75.0
    assert sum(d["percentage"] for d in out["distribution"]) == pytest.approx(75.0)


def test_percentages_rounded_to_one_decimal(make_day_rows):
    rows = make_day_rows("Kolkata", "2020-01-01", [10, 20, 30], bucket="Satisfactory")
    rows[0]["AQI_Bucket"] = "Good"
    out = assess_risk(rows, "Kolkata")
    by_cat = {d["category"]: d["percentage"] for d in out["distribution"]}
    assert by_cat["Good"] == 33.3
    assert by_cat["Satisfactory"] == 66.7


def test_invalid_aqi_excluded_from_recent_average(make_day_rows):
    rows = make_day_rows("Kolkata", "2020-01-01", ["", 210, "NA", 230])
    out = assess_risk(rows, "Kolkata")
    assert out["currentAverage"] == 220.0
    assert out["riskLevel"] == "high"
    assert out["unhealthyDaysPercentage"] == 50.0


def test_no_rows_for_city():
    out = assess_risk([], "Kolkata")
    assert out["riskLevel"] == "unknown"
    assert "message" in out


def test_recommendation_lists():
    for level, recs in HEALTH_RECOMMENDATIONS.items():
        assert 3 <= len(recs) <= 5
        assert health_recommendations(level) == recs
    assert health_recommendations("unknown") == HEALTH_RECOMMENDATIONS["low"]


def test_live_reading_helpers():
    assert aqi_category(42) == "Good"
    assert aqi_category(150) == "Unhealthy for Sensitive"
    assert aqi_category(301) == "Hazardous"
    assert aqi_category(None) == "Unknown"
    assert cigarette_equivalent(44) == pytest.approx(2.0)
    assert cigarette_equivalent(84) == 3.8
    assert cigarette_equivalent(None) is None

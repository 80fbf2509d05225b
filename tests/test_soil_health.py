"""Unit tests for the Soil Health Index calculator."""

from __future__ import annotations

import math

import pytest

from models.records import NutrientStatus, SensorReading, SoilHealthBand
from services.soil_health import (
    DEFAULT_WEIGHTS,
    NORMALIZERS,
    InvalidReadingError,
    SoilHealthCalculator,
    classify,
    compute_soil_health_index,
    normalize_humidity,
    normalize_nitrogen,
    normalize_ph,
    normalize_phosphorus,
    normalize_potassium,
    normalize_soil_moisture,
    normalize_temperature,
    nutrient_status,
    score_reading,
)


def _reading(**overrides: float) -> SensorReading:
    values = {
        "nitrogen": 120.0,
        "phosphorus": 200.0,
        "potassium": 200.0,
        "soil_ph": 6.75,
        "soil_moisture": 30.0,
        "temperature": 25.0,
        "humidity": 60.0,
    }
    values.update(overrides)
    return SensorReading(**values)


def test_optimal_reading_scores_full_marks() -> None:
    result = score_reading(_reading())

    assert result.percent == 100.0
    assert result.band is SoilHealthBand.excellent
    assert all(score == 1.0 for score in result.sub_scores.values())


def test_all_zero_reading_scores_zero() -> None:
    reading = SensorReading(0, 0, 0, 0, 0, 0, 0)

    assert compute_soil_health_index(reading) == 0.0
    assert score_reading(reading).band is SoilHealthBand.poor


def test_weights_sum_to_one() -> None:
    assert math.isclose(math.fsum(DEFAULT_WEIGHTS.values()), 1.0)
    assert set(DEFAULT_WEIGHTS) == set(NORMALIZERS)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, 0.0), (40, 0.5), (80, 1.0), (120, 1.0), (180, 1.0), (210, 0.5), (240, 0.0), (500, 0.0), (-10, 0.0)],
)
def test_nitrogen_curve(value: float, expected: float) -> None:
    assert normalize_nitrogen(value) == pytest.approx(expected)


@pytest.mark.parametrize("normalize", [normalize_phosphorus, normalize_potassium])
def test_phosphorus_and_potassium_share_curve(normalize) -> None:
    assert normalize(0) == 0.0
    assert normalize(55) == pytest.approx(0.5)
    assert normalize(110) == 1.0
    assert normalize(350) == 1.0
    assert normalize(375) == pytest.approx(0.5)
    assert normalize(400) == 0.0
    assert normalize(1000) == 0.0


def test_nitrogen_is_monotonic_around_plateau() -> None:
    rising = [normalize_nitrogen(n) for n in range(0, 81, 5)]
    falling = [normalize_nitrogen(n) for n in range(180, 241, 5)]

    assert all(a < b for a, b in zip(rising, rising[1:]))
    assert all(a > b for a, b in zip(falling, falling[1:]))
    assert {normalize_nitrogen(n) for n in range(80, 181)} == {1.0}


@pytest.mark.parametrize(
    ("normalize", "peak", "half_width"),
    [
        (normalize_ph, 6.75, 1.75),
        (normalize_soil_moisture, 30, 20),
        (normalize_temperature, 25, 10),
        (normalize_humidity, 60, 20),
    ],
)
def test_triangular_metrics_are_symmetric(normalize, peak: float, half_width: float) -> None:
    assert normalize(peak) == 1.0
    assert normalize(peak - half_width) == 0.0
    assert normalize(peak + half_width) == 0.0
    for distance in (0.25, 0.5, 1.0, half_width / 2, half_width * 3):
        assert normalize(peak - distance) == pytest.approx(normalize(peak + distance))


def test_normalizers_are_idempotent_under_clamping() -> None:
    for normalize in NORMALIZERS.values():
        for value in (-50, 0, 5, 6.75, 30, 95, 250, 1000):
            score = normalize(value)
            assert 0.0 <= score <= 1.0
            assert max(0.0, min(1.0, score)) == score


def test_nitrogen_at_upper_boundary_scores_zero() -> None:
    result = score_reading(_reading(nitrogen=240))

    assert result.sub_scores["nitrogen"] == 0.0
    assert result.percent == pytest.approx(80.0)


@pytest.mark.parametrize(
    ("percent", "band"),
    [
        (0, SoilHealthBand.poor),
        (39.999, SoilHealthBand.poor),
        (40, SoilHealthBand.moderate),
        (59.9, SoilHealthBand.moderate),
        (60, SoilHealthBand.good),
        (79.99, SoilHealthBand.good),
        (80, SoilHealthBand.excellent),
        (100, SoilHealthBand.excellent),
    ],
)
def test_classify_boundaries_belong_to_upper_band(percent: float, band: SoilHealthBand) -> None:
    assert classify(percent) is band


def test_percent_stays_in_range_for_extreme_readings() -> None:
    extremes = [-1e6, -1, 0, 1e6]
    for value in extremes:
        reading = SensorReading(value, value, value, value, value, value, value)
        assert 0.0 <= compute_soil_health_index(reading) <= 100.0


@pytest.mark.parametrize("bad_value", [float("nan"), float("inf"), float("-inf"), None, "12"])
def test_non_finite_or_missing_values_are_rejected(bad_value) -> None:
    with pytest.raises(InvalidReadingError) as excinfo:
        score_reading(_reading(humidity=bad_value))

    assert excinfo.value.field == "humidity"
    assert isinstance(excinfo.value, ValueError)


def test_classify_rejects_nan() -> None:
    with pytest.raises(InvalidReadingError):
        classify(float("nan"))


def test_from_mapping_leaves_absent_metrics_unset() -> None:
    reading = SensorReading.from_mapping({"nitrogen": 100})

    assert reading.nitrogen == 100
    assert reading.humidity is None
    with pytest.raises(InvalidReadingError):
        score_reading(reading)


def test_custom_weights_must_sum_to_one() -> None:
    weights = dict(DEFAULT_WEIGHTS, nitrogen=0.5)

    with pytest.raises(ValueError, match="sum to 1.0"):
        SoilHealthCalculator(weights)


def test_custom_weights_must_cover_every_metric() -> None:
    weights = {key: value for key, value in DEFAULT_WEIGHTS.items() if key != "humidity"}
    weights["nitrogen"] += 0.10

    with pytest.raises(ValueError, match="missing=\\['humidity'\\]"):
        SoilHealthCalculator(weights)


def test_custom_weights_change_the_aggregate() -> None:
    calculator = SoilHealthCalculator(
        {
            "nitrogen": 1.0,
            "phosphorus": 0.0,
            "potassium": 0.0,
            "soil_ph": 0.0,
            "soil_moisture": 0.0,
            "temperature": 0.0,
            "humidity": 0.0,
        }
    )

    assert calculator.compute(_reading(nitrogen=40, humidity=0)) == pytest.approx(50.0)


@pytest.mark.parametrize(
    ("nutrient", "value", "expected"),
    [
        ("nitrogen", 80, NutrientStatus.warning),
        ("nitrogen", 81, NutrientStatus.optimal),
        ("nitrogen", 180, NutrientStatus.optimal),
        ("nitrogen", 181, NutrientStatus.critical),
        ("phosphorus", 110, NutrientStatus.warning),
        ("phosphorus", 111, NutrientStatus.optimal),
        ("potassium", 350, NutrientStatus.optimal),
        ("potassium", 351, NutrientStatus.critical),
    ],
)
def test_nutrient_status(nutrient: str, value: float, expected: NutrientStatus) -> None:
    assert nutrient_status(nutrient, value) is expected


def test_nutrient_status_rejects_unknown_nutrient() -> None:
    with pytest.raises(ValueError, match="Unknown nutrient"):
        nutrient_status("soil_ph", 6.5)

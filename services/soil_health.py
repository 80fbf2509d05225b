"""Soil Health Index scoring.

Each of the seven sensor metrics is mapped onto a [0, 1] desirability score
with either a trapezoid (nutrients) or a symmetric triangle (pH, moisture,
temperature, humidity). The weighted sum is reported as a 0-100 percentage
and bucketed into a :class:`SoilHealthBand`.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Callable, Dict, Mapping, Optional

from models.records import METRIC_NAMES, NutrientStatus, ScoreResult, SensorReading, SoilHealthBand


class InvalidReadingError(ValueError):
    """Raised when a reading carries a missing or non-finite metric."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"{field} must be a finite number, got {value!r}")
        self.field = field
        self.value = value


DEFAULT_WEIGHTS: Mapping[str, float] = {
    "nitrogen": 0.20,
    "phosphorus": 0.15,
    "potassium": 0.15,
    "soil_ph": 0.15,
    "soil_moisture": 0.15,
    "temperature": 0.10,
    "humidity": 0.10,
}

# Lower bounds, checked from the top.
_BAND_THRESHOLDS = (
    (80.0, SoilHealthBand.excellent),
    (60.0, SoilHealthBand.good),
    (40.0, SoilHealthBand.moderate),
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_unit(value: float) -> float:
    return _clamp(value, 0.0, 1.0)


def clamp_percent(value: float) -> float:
    return _clamp(value, 0.0, 100.0)


def _trapezoid(value: float, rise_end: float, plateau_end: float, fall_end: float) -> float:
    if value <= rise_end:
        return clamp_unit(value / rise_end)
    if value <= plateau_end:
        return 1.0
    return clamp_unit(1 - (value - plateau_end) / (fall_end - plateau_end))


def _triangle(value: float, peak: float, half_width: float) -> float:
    return clamp_unit(1 - abs(value - peak) / half_width)


def normalize_nitrogen(value: float) -> float:
    return _trapezoid(value, 80, 180, 240)


def normalize_phosphorus(value: float) -> float:
    return _trapezoid(value, 110, 350, 400)


def normalize_potassium(value: float) -> float:
    return _trapezoid(value, 110, 350, 400)


def normalize_ph(value: float) -> float:
    return _triangle(value, 6.75, 1.75)


def normalize_soil_moisture(value: float) -> float:
    return _triangle(value, 30, 20)


def normalize_temperature(value: float) -> float:
    return _triangle(value, 25, 10)


def normalize_humidity(value: float) -> float:
    return _triangle(value, 60, 20)


NORMALIZERS: Mapping[str, Callable[[float], float]] = {
    "nitrogen": normalize_nitrogen,
    "phosphorus": normalize_phosphorus,
    "potassium": normalize_potassium,
    "soil_ph": normalize_ph,
    "soil_moisture": normalize_soil_moisture,
    "temperature": normalize_temperature,
    "humidity": normalize_humidity,
}


def _require_finite(field: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidReadingError(field, value)
    candidate = float(value)
    if not math.isfinite(candidate):
        raise InvalidReadingError(field, value)
    return candidate


def classify(percent: float) -> SoilHealthBand:
    """Map a 0-100 percentage onto its band; each threshold belongs to the band above it."""
    value = _require_finite("percent", percent)
    for lower_bound, band in _BAND_THRESHOLDS:
        if value >= lower_bound:
            return band
    return SoilHealthBand.poor


class SoilHealthCalculator:
    """Stateless scorer; instances only differ by their weight table."""

    def __init__(self, weights: Optional[Mapping[str, float]] = None) -> None:
        table = dict(DEFAULT_WEIGHTS if weights is None else weights)
        if set(table) != set(METRIC_NAMES):
            missing = sorted(set(METRIC_NAMES) - set(table))
            unknown = sorted(set(table) - set(METRIC_NAMES))
            raise ValueError(f"Weights must cover every metric (missing={missing}, unknown={unknown})")
        total = math.fsum(table.values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Weights must sum to 1.0, got {total}")
        self._weights: Dict[str, float] = table

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self._weights)

    def sub_scores(self, reading: SensorReading) -> Dict[str, float]:
        scores: Dict[str, float] = {}
        for name in METRIC_NAMES:
            value = _require_finite(name, getattr(reading, name))
            scores[name] = clamp_unit(NORMALIZERS[name](value))
        return scores

    def compute(self, reading: SensorReading) -> float:
        return self._weighted_percent(self.sub_scores(reading))

    def score(self, reading: SensorReading) -> ScoreResult:
        scores = self.sub_scores(reading)
        percent = self._weighted_percent(scores)
        return ScoreResult(percent=percent, band=classify(percent), sub_scores=scores)

    def _weighted_percent(self, scores: Mapping[str, float]) -> float:
        weighted = math.fsum(self._weights[name] * scores[name] for name in METRIC_NAMES)
        return clamp_percent(weighted * 100)


_DEFAULT_CALCULATOR = SoilHealthCalculator()


def compute_soil_health_index(reading: SensorReading) -> float:
    return _DEFAULT_CALCULATOR.compute(reading)


def score_reading(reading: SensorReading) -> ScoreResult:
    return _DEFAULT_CALCULATOR.score(reading)


def nutrient_status(nutrient: str, value: float) -> NutrientStatus:
    """Label a macronutrient level the way the farm dashboard colours it."""
    amount = _require_finite(nutrient, value)
    if nutrient == "nitrogen":
        critical_above, optimal_from = 180, 81
    elif nutrient in ("phosphorus", "potassium"):
        critical_above, optimal_from = 350, 111
    else:
        raise ValueError(f"Unknown nutrient {nutrient!r}")

    if amount > critical_above:
        return NutrientStatus.critical
    if amount >= optimal_from:
        return NutrientStatus.optimal
    return NutrientStatus.warning

"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class SoilHealthBand(str, Enum):
    """Qualitative soil health rating, ordered from worst to best."""

    poor = "Poor"
    moderate = "Moderate"
    good = "Good"
    excellent = "Excellent"


class NutrientStatus(str, Enum):
    optimal = "optimal"
    warning = "warning"
    critical = "critical"


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A snapshot of the seven soil and climate metrics reported by a field sensor.

    Fields hold raw values until scored; a missing metric is ``None`` and the
    calculator rejects it with ``InvalidReadingError``.
    """

    nitrogen: Optional[float]
    phosphorus: Optional[float]
    potassium: Optional[float]
    soil_ph: Optional[float]
    soil_moisture: Optional[float]
    temperature: Optional[float]
    humidity: Optional[float]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SensorReading":
        """Build a reading from a mapping; absent metrics become ``None`` and fail validation later."""
        return cls(**{name: data.get(name) for name in METRIC_NAMES})

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {name: getattr(self, name) for name in METRIC_NAMES}


METRIC_NAMES: tuple[str, ...] = tuple(field.name for field in fields(SensorReading))


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Soil Health Index for one reading."""

    percent: float
    band: SoilHealthBand
    sub_scores: Dict[str, float]

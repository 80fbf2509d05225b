"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import NutrientStatus, SensorReading, SoilHealthBand


class BatchStatus(str, Enum):
    """Processing lifecycle states exposed via the API."""

    uploaded = "uploaded"
    processing = "processing"
    processed = "processed"
    partial = "partial"
    failed = "failed"


class SensorReadingIn(BaseModel):
    """Seven-metric sensor snapshot submitted for scoring."""

    model_config = ConfigDict(strict=True, allow_inf_nan=False)

    nitrogen: float = Field(..., description="Nitrogen, mg/kg.")
    phosphorus: float = Field(..., description="Phosphorus, mg/kg.")
    potassium: float = Field(..., description="Potassium, mg/kg.")
    soil_ph: float = Field(..., description="Soil pH.")
    soil_moisture: float = Field(..., description="Soil moisture, percent.")
    temperature: float = Field(..., description="Air temperature, degrees Celsius.")
    humidity: float = Field(..., description="Relative humidity, percent.")

    def to_reading(self) -> SensorReading:
        return SensorReading(**self.model_dump())


class SoilHealthResponse(BaseModel):
    percent: float = Field(..., ge=0, le=100)
    band: SoilHealthBand
    sub_scores: Dict[str, float] = Field(default_factory=dict)
    nutrient_status: Dict[str, NutrientStatus] = Field(default_factory=dict)


class BatchUploadResponse(BaseModel):
    """Immediate response payload after accepting a CSV batch."""

    batch_id: str = Field(..., description="Generated identifier for the uploaded batch.")


class RowScore(BaseModel):
    row_number: int = Field(..., ge=2)
    reading_id: Optional[str] = None
    percent: float = Field(..., ge=0, le=100)
    band: SoilHealthBand


class BatchSummary(BaseModel):
    """Aggregate metrics computed over the scored rows of a batch."""

    row_count: int = Field(..., ge=0)
    min_percent: Optional[float] = None
    max_percent: Optional[float] = None
    mean_percent: Optional[float] = None
    per_band_count: Dict[SoilHealthBand, int] = Field(default_factory=dict)


class RowError(BaseModel):
    """Details about a row that failed validation or parsing."""

    row_number: int = Field(..., ge=1)
    reason: str


class BatchResult(BaseModel):
    """Full record representing a scored batch."""

    batch_id: str
    filename: str
    status: BatchStatus
    uploaded_at: datetime
    processed_at: Optional[datetime] = None
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from start to finish."
    )
    summary: Optional[BatchSummary] = None
    scores: List[RowScore] = Field(default_factory=list)
    errors: List[RowError] = Field(default_factory=list)

"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile, status

from app.schemas import BatchResult, BatchUploadResponse, SensorReadingIn, SoilHealthResponse
from services.batch import BatchScoringService, build_default_batch_service
from services.soil_health import nutrient_status, score_reading

router = APIRouter()

_NUTRIENTS = ("nitrogen", "phosphorus", "potassium")


def get_batch_service() -> BatchScoringService:
    return build_default_batch_service()


@router.post(
    "/soil-health",
    response_model=SoilHealthResponse,
    summary="Score a single sensor reading.",
)
async def score_soil_health(payload: SensorReadingIn) -> SoilHealthResponse:
    reading = payload.to_reading()
    result = score_reading(reading)
    statuses = {name: nutrient_status(name, getattr(reading, name)) for name in _NUTRIENTS}
    return SoilHealthResponse(
        percent=result.percent,
        band=result.band,
        sub_scores=result.sub_scores,
        nutrient_status=statuses,
    )


@router.post(
    "/batches",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BatchUploadResponse,
    summary="Upload a CSV of sensor readings for background scoring.",
)
async def upload_batch(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="CSV file with one sensor reading per row."),
    service: BatchScoringService = Depends(get_batch_service),
) -> BatchUploadResponse:
    try:
        batch_id = service.enqueue_batch(background_tasks, file)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return BatchUploadResponse(batch_id=batch_id)


@router.get(
    "/batches",
    response_model=list[BatchResult],
    summary="List scored batches, newest first.",
)
async def list_batches(
    service: BatchScoringService = Depends(get_batch_service),
) -> list[BatchResult]:
    return service.list_batches()


@router.get(
    "/batches/{batch_id}",
    response_model=BatchResult,
    summary="Fetch status, summary and per-row scores for a batch.",
)
async def get_batch(
    batch_id: str,
    service: BatchScoringService = Depends(get_batch_service),
) -> BatchResult:
    try:
        return service.fetch_batch(batch_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Batch {batch_id!r} not found.",
        ) from exc


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}

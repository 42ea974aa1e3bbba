"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import CalculationRequest, CalculationResponse, ErrorResponse, RealtimeResponse
from services.estimator import (
    EstimatorService,
    NoReadingError,
    ReadingFetchError,
    build_default_estimator,
)

NO_DATA_MESSAGE = "Could not retrieve data from the database."
SERVER_ERROR_MESSAGE = "A server error occurred."

router = APIRouter()

_error_responses = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def get_estimator() -> EstimatorService:
    return build_default_estimator()


def _server_error(exc: Exception) -> HTTPException:
    detail = NO_DATA_MESSAGE if isinstance(exc, NoReadingError) else SERVER_ERROR_MESSAGE
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )


@router.get(
    "/api/realtime",
    response_model=RealtimeResponse,
    responses=_error_responses,
    summary="Latest temperature readings for the monitored device.",
)
async def get_realtime(
    estimator: EstimatorService = Depends(get_estimator),
) -> RealtimeResponse:
    try:
        snapshot = await estimator.latest_temperatures()
    except (NoReadingError, ReadingFetchError) as exc:
        raise _server_error(exc) from exc
    return RealtimeResponse.from_snapshot(snapshot)


@router.post(
    "/api/calculate",
    response_model=CalculationResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        **_error_responses,
    },
    summary="Estimate current heating cost and heat recovery benefit.",
)
async def calculate(
    payload: CalculationRequest,
    estimator: EstimatorService = Depends(get_estimator),
) -> CalculationResponse:
    try:
        result = await estimator.estimate(
            flow=payload.flow,
            cost_type=payload.cost_type,
            cost_unit=payload.cost_unit,
            operating_hours=payload.operating_hours,
            operating_days=payload.operating_days,
        )
    except (NoReadingError, ReadingFetchError) as exc:
        raise _server_error(exc) from exc
    return CalculationResponse.from_result(result)


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

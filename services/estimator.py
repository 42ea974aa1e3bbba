"""Orchestrates reading retrieval and cost estimation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from datastore.readings import ReadingStore, build_default_store
from models.records import TelemetryReading
from services.calculator import EnergyCostCalculator
from settings import get_settings

logger = logging.getLogger(__name__)


class EstimatorError(Exception):
    """Base class for failures surfaced to API callers."""


class NoReadingError(EstimatorError):
    """The store holds no reading for the configured device."""


class ReadingFetchError(EstimatorError):
    """The store could not be queried."""


@dataclass(frozen=True)
class TemperatureSnapshot:
    temp_c1: float
    temp_c2: float
    temp_c3: float
    temp_c4: float


@dataclass(frozen=True)
class CalculationResult:
    """Per-basis and annualized costs, each rounded to two decimals."""

    current_cost: float
    yearly_cost: float
    recovery_benefit: float
    yearly_recovery_benefit: float


class EstimatorService:
    """Coordinates the reading store and the calculator for one device."""

    def __init__(
        self,
        store: ReadingStore,
        calculator: EnergyCostCalculator,
        device_id: str,
    ) -> None:
        self.store = store
        self.calculator = calculator
        self.device_id = device_id

    async def latest_temperatures(self) -> TemperatureSnapshot:
        reading = await self._fetch_latest()
        return TemperatureSnapshot(
            temp_c1=reading.temp_c1,
            temp_c2=reading.temp_c2,
            temp_c3=reading.temp_c3,
            temp_c4=reading.temp_c4,
        )

    async def estimate(
        self,
        flow: float,
        cost_type: object,
        cost_unit: float,
        operating_hours: float,
        operating_days: float,
    ) -> CalculationResult:
        """Price the current heat load and the recovered heat for the latest reading.

        Current energy spans the inlet (tempC1) to the outlet (tempC4); the
        recovered energy spans the inlet to the recovery stage (tempC2).
        Yearly figures multiply the rounded per-basis cost by hours and days
        without further validation.
        """
        reading = await self._fetch_latest()

        current_energy_kj = self.calculator.energy(reading.temp_c4 - reading.temp_c1, flow)
        recovery_energy_kj = self.calculator.energy(reading.temp_c2 - reading.temp_c1, flow)

        current_cost = self.calculator.cost(current_energy_kj, cost_type, cost_unit)
        recovery_benefit = self.calculator.cost(recovery_energy_kj, cost_type, cost_unit)

        annual_factor = operating_hours * operating_days
        result = CalculationResult(
            current_cost=current_cost,
            yearly_cost=round(current_cost * annual_factor, 2),
            recovery_benefit=recovery_benefit,
            yearly_recovery_benefit=round(recovery_benefit * annual_factor, 2),
        )
        logger.info(
            "Computed heat recovery estimate",
            extra={"device_id": self.device_id, "cost_type": cost_type},
        )
        return result

    async def close(self) -> None:
        await self.store.close()

    async def _fetch_latest(self) -> TelemetryReading:
        start_time = time.perf_counter()
        try:
            reading: Optional[TelemetryReading] = await self.store.fetch_latest(self.device_id)
        except Exception as exc:
            logger.exception(
                "Failed to fetch latest reading",
                extra={"device_id": self.device_id, "error_type": type(exc).__name__},
            )
            raise ReadingFetchError("Failed to fetch the latest reading.") from exc

        fetch_ms = int((time.perf_counter() - start_time) * 1000)
        if reading is None:
            logger.warning(
                "No readings found for device",
                extra={"device_id": self.device_id, "fetch_ms": fetch_ms},
            )
            raise NoReadingError(f"No readings found for device {self.device_id!r}.")

        logger.debug(
            "Fetched latest reading",
            extra={
                "device_id": self.device_id,
                "reading_time": reading.time,
                "fetch_ms": fetch_ms,
            },
        )
        return reading


@lru_cache
def build_default_estimator() -> EstimatorService:
    """Factory that wires the estimator with the configured store."""
    settings = get_settings()
    return EstimatorService(
        store=build_default_store(),
        calculator=EnergyCostCalculator(),
        device_id=settings.device_id,
    )

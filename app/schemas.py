"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.estimator import CalculationResult, TemperatureSnapshot


class CalculationRequest(BaseModel):
    """Operating parameters submitted to the calculate endpoint."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    flow: float = Field(..., description="Volumetric flow rate of the heated water.")
    cost_type: Any = Field(
        ...,
        alias="costType",
        description="Pricing model: electricity or one of the supported fuels. "
        "Unrecognized values are priced at zero.",
    )
    cost_unit: float = Field(
        ..., alias="costUnit", description="Price per kWh or per native fuel unit."
    )
    operating_hours: float = Field(
        ..., alias="operatingHours", description="Operating hours per day."
    )
    operating_days: float = Field(
        ..., alias="operatingDays", description="Operating days per year."
    )

    @field_validator("cost_type")
    @classmethod
    def require_cost_type(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("costType is required")
        return value


class Temperatures(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temp_c1: float = Field(..., alias="tempC1")
    temp_c2: float = Field(..., alias="tempC2")
    temp_c3: float = Field(..., alias="tempC3")
    temp_c4: float = Field(..., alias="tempC4")


class RealtimeResponse(BaseModel):
    """Latest temperatures reported by the monitored device."""

    temperature: Temperatures

    @classmethod
    def from_snapshot(cls, snapshot: TemperatureSnapshot) -> "RealtimeResponse":
        return cls(
            temperature=Temperatures(
                temp_c1=snapshot.temp_c1,
                temp_c2=snapshot.temp_c2,
                temp_c3=snapshot.temp_c3,
                temp_c4=snapshot.temp_c4,
            )
        )


def _format_money(value: float) -> str:
    # -0.0 is falsy, so it never renders as "-0.00".
    return f"{value:.2f}" if value else "0.00"


class CalculationResponse(BaseModel):
    """Cost figures formatted as two-decimal strings."""

    model_config = ConfigDict(populate_by_name=True)

    current_cost: str = Field(..., alias="currentCost")
    yearly_cost: str = Field(..., alias="yearlyCost")
    recovery_benefit: str = Field(..., alias="recoveryBenefit")
    yearly_recovery_benefit: str = Field(..., alias="yearlyRecoveryBenefit")

    @classmethod
    def from_result(cls, result: CalculationResult) -> "CalculationResponse":
        return cls(
            current_cost=_format_money(result.current_cost),
            yearly_cost=_format_money(result.yearly_cost),
            recovery_benefit=_format_money(result.recovery_benefit),
            yearly_recovery_benefit=_format_money(result.yearly_recovery_benefit),
        )


class ErrorResponse(BaseModel):
    error: str

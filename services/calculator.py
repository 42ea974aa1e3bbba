"""Thermal energy and cost conversion for heat recovery estimates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

ELECTRICITY = "electricity"
PROPANE = "propane"
KEROSENE = "kerosene"
HEAVY_FUEL_OIL = "heavy_fuel_oil"
CITY_GAS_13A = "city_gas_13a"

# MJ released per native fuel unit.
FUEL_ENERGY_DENSITY_MJ: Mapping[str, float] = MappingProxyType(
    {
        PROPANE: 50.3,
        KEROSENE: 36.4,
        HEAVY_FUEL_OIL: 39.6,
        CITY_GAS_13A: 45.8,
    }
)

# Labels sent by the Japanese front end.
COST_TYPE_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "電気": ELECTRICITY,
        "プロパンガス": PROPANE,
        "灯油": KEROSENE,
        "重油": HEAVY_FUEL_OIL,
        "ガス(13A)": CITY_GAS_13A,
    }
)

COST_TYPES = (ELECTRICITY, *FUEL_ENERGY_DENSITY_MJ)


@dataclass(frozen=True)
class ThermalConstants:
    """Physical constants and pricing tables the calculator works from."""

    specific_heat_kj_per_kg_c: float = 4.186
    density_kg_per_m3: float = 1000.0
    kj_per_kwh: float = 3600.0
    fuel_energy_density_mj: Mapping[str, float] = field(
        default_factory=lambda: FUEL_ENERGY_DENSITY_MJ
    )


def normalize_cost_type(cost_type: object) -> Optional[str]:
    """Map a raw cost type label onto a canonical key, or ``None``."""
    if not isinstance(cost_type, str):
        return None
    candidate = cost_type.strip()
    candidate = COST_TYPE_ALIASES.get(candidate, candidate)
    if candidate in COST_TYPES:
        return candidate
    return None


class EnergyCostCalculator:
    """Pure calculation component that can be unit tested in isolation."""

    def __init__(self, constants: Optional[ThermalConstants] = None) -> None:
        self.constants = constants or ThermalConstants()

    def energy(self, temp_diff: float, flow_rate: float) -> float:
        """Thermal energy in kJ moved by water at ``flow_rate`` across ``temp_diff``.

        Negative differentials yield negative energy; callers use the sign.
        """
        constants = self.constants
        return (
            temp_diff
            * flow_rate
            * constants.density_kg_per_m3
            * constants.specific_heat_kj_per_kg_c
        )

    def cost(self, energy_kj: float, cost_type: object, unit_price: float) -> float:
        """Price ``energy_kj`` under the given pricing model, rounded to cents.

        Unknown cost types are logged and priced at zero.
        """
        key = normalize_cost_type(cost_type)
        if key == ELECTRICITY:
            energy_kwh = energy_kj / self.constants.kj_per_kwh
            cost = energy_kwh * unit_price
        elif key is not None and key in self.constants.fuel_energy_density_mj:
            density = self.constants.fuel_energy_density_mj[key]
            fuel_consumption = energy_kj / (density * 1000)
            cost = fuel_consumption * unit_price
        else:
            logger.warning(
                "Invalid cost type; pricing at zero",
                extra={"cost_type": cost_type},
            )
            return 0.0
        return round(cost, 2)


_default_calculator = EnergyCostCalculator()


def calculate_energy(temp_diff: float, flow_rate: float) -> float:
    return _default_calculator.energy(temp_diff, flow_rate)


def calculate_cost(energy_kj: float, cost_type: object, unit_price: float) -> float:
    return _default_calculator.cost(energy_kj, cost_type, unit_price)

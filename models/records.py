"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

TEMPERATURE_FIELDS = ("tempC1", "tempC2", "tempC3", "tempC4")


@dataclass(frozen=True, slots=True)
class TelemetryReading:
    """A single telemetry document written by the ingestion process."""

    device: str
    time: Any
    temp_c1: float
    temp_c2: float
    temp_c3: float
    temp_c4: float

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "TelemetryReading":
        """Build a reading from a raw store document.

        Raises ``ValueError`` when a temperature is missing or not numeric.
        """
        temperatures = []
        for name in TEMPERATURE_FIELDS:
            raw = document.get(name)
            if raw is None or isinstance(raw, bool):
                raise ValueError(f"Reading is missing numeric field {name!r}.")
            try:
                value = float(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Reading field {name!r} is not numeric: {raw!r}") from exc
            if math.isnan(value):
                raise ValueError(f"Reading field {name!r} is not a number.")
            temperatures.append(value)

        return cls(
            device=str(document.get("device", "")),
            time=document.get("time"),
            temp_c1=temperatures[0],
            temp_c2=temperatures[1],
            temp_c3=temperatures[2],
            temp_c4=temperatures[3],
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "device": self.device,
            "time": self.time,
            "tempC1": self.temp_c1,
            "tempC2": self.temp_c2,
            "tempC3": self.temp_c3,
            "tempC4": self.temp_c4,
        }

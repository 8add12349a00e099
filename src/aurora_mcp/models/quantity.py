"""Physical quantities decoded from inverter responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Unit(str, Enum):
    WATT = "W"
    VOLT = "V"
    AMPERE = "A"
    HERTZ = "Hz"
    KILOWATT_HOUR = "kWh"
    CELSIUS = "°C"
    MEGAOHM = "MOhm"
    RPM = "rpm"


@dataclass(frozen=True)
class Quantity:
    """A value paired with its unit and the time it was read."""

    value: float
    unit: Unit
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )

    def as_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "value": self.value,
            "unit": self.unit.value,
        }

    def __str__(self) -> str:
        return f"{self.value:g} {self.unit.value}"

"""Decoded values: quantities, symbolic states, and converters."""

from .quantity import Quantity, Unit
from .state import (
    AlarmCode,
    DcDcStatus,
    GlobalState,
    Identification,
    InverterState,
    InverterStatus,
    ManufactureDate,
    TransmissionState,
    UnknownCode,
    VersionInfo,
)

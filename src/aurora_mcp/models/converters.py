"""Raw field to physical value conversion.

DSP readings arrive as 32-bit integers. In fixed-point mode each channel
has one scale factor (grid power is reported in tenths of a watt, so a raw
2345 is 234.5 W). Some firmware reports the same four bytes as an IEEE 754
single-precision float instead; :func:`decode_ieee754` handles that case.
Energy counters are in watt-hours and are converted to kilowatt-hours.
"""

from __future__ import annotations

import struct
from datetime import datetime, timedelta
from enum import Enum, IntEnum

from ..protocol.commands import MeasurementChannel, parse_channel
from .quantity import Quantity, Unit
from .state import (
    AlarmCode,
    DcDcStatus,
    GlobalState,
    InverterStatus,
    TransmissionState,
    UnknownCode,
)

# Inverter clock counts seconds from this local-time epoch
INVERTER_EPOCH = datetime(2000, 1, 1)

ENERGY_DIVISOR = 1000  # Wh -> kWh


class DspFormat(str, Enum):
    """How the four value bytes of a DSP measurement are encoded."""

    FIXED_POINT = "fixed_point"
    IEEE754 = "ieee754"


_C = MeasurementChannel

# channel -> (unit, fixed-point divisor)
CHANNEL_UNITS: dict[MeasurementChannel, tuple[Unit, int]] = {
    _C.GRID_VOLTAGE: (Unit.VOLT, 10),
    _C.GRID_CURRENT: (Unit.AMPERE, 100),
    _C.GRID_POWER: (Unit.WATT, 10),
    _C.FREQUENCY: (Unit.HERTZ, 100),
    _C.BULK_VOLTAGE: (Unit.VOLT, 10),
    _C.LEAKAGE_CURRENT_DCDC: (Unit.AMPERE, 100),
    _C.LEAKAGE_CURRENT_INVERTER: (Unit.AMPERE, 100),
    _C.INPUT1_POWER: (Unit.WATT, 10),
    _C.INPUT2_POWER: (Unit.WATT, 10),
    _C.INVERTER_TEMPERATURE: (Unit.CELSIUS, 10),
    _C.BOOSTER_TEMPERATURE: (Unit.CELSIUS, 10),
    _C.INPUT1_VOLTAGE: (Unit.VOLT, 10),
    _C.INPUT1_CURRENT: (Unit.AMPERE, 100),
    _C.INPUT2_VOLTAGE: (Unit.VOLT, 10),
    _C.INPUT2_CURRENT: (Unit.AMPERE, 100),
    _C.GRID_VOLTAGE_DCDC: (Unit.VOLT, 10),
    _C.GRID_FREQUENCY_DCDC: (Unit.HERTZ, 100),
    _C.ISOLATION_RESISTANCE: (Unit.MEGAOHM, 100),
    _C.BULK_VOLTAGE_DCDC: (Unit.VOLT, 10),
    _C.AVERAGE_GRID_VOLTAGE: (Unit.VOLT, 10),
    _C.BULK_MID_VOLTAGE: (Unit.VOLT, 10),
    _C.PEAK_POWER: (Unit.WATT, 10),
    _C.PEAK_POWER_TODAY: (Unit.WATT, 10),
    _C.GRID_VOLTAGE_NEUTRAL: (Unit.VOLT, 10),
    _C.WIND_GENERATOR_FREQUENCY: (Unit.HERTZ, 100),
    _C.GRID_VOLTAGE_NEUTRAL_PHASE: (Unit.VOLT, 10),
    _C.GRID_CURRENT_PHASE_R: (Unit.AMPERE, 100),
    _C.GRID_CURRENT_PHASE_S: (Unit.AMPERE, 100),
    _C.GRID_CURRENT_PHASE_T: (Unit.AMPERE, 100),
    _C.FREQUENCY_PHASE_R: (Unit.HERTZ, 100),
    _C.FREQUENCY_PHASE_S: (Unit.HERTZ, 100),
    _C.FREQUENCY_PHASE_T: (Unit.HERTZ, 100),
    _C.BULK_VOLTAGE_POSITIVE: (Unit.VOLT, 10),
    _C.BULK_VOLTAGE_NEGATIVE: (Unit.VOLT, 10),
    _C.SUPERVISOR_TEMPERATURE: (Unit.CELSIUS, 10),
    _C.ALIM_TEMPERATURE: (Unit.CELSIUS, 10),
    _C.HEAT_SINK_TEMPERATURE: (Unit.CELSIUS, 10),
    _C.TEMPERATURE_1: (Unit.CELSIUS, 10),
    _C.TEMPERATURE_2: (Unit.CELSIUS, 10),
    _C.TEMPERATURE_3: (Unit.CELSIUS, 10),
    _C.FAN_SPEED_1: (Unit.RPM, 1),
    _C.FAN_SPEED_2: (Unit.RPM, 1),
    _C.FAN_SPEED_3: (Unit.RPM, 1),
    _C.FAN_SPEED_4: (Unit.RPM, 1),
    _C.FAN_SPEED_5: (Unit.RPM, 1),
    _C.POWER_SATURATION_LIMIT: (Unit.WATT, 10),
    _C.RING_BULK_REFERENCE: (Unit.VOLT, 10),
    _C.MICRO_PANEL_VOLTAGE: (Unit.VOLT, 10),
    _C.GRID_VOLTAGE_PHASE_R: (Unit.VOLT, 10),
    _C.GRID_VOLTAGE_PHASE_S: (Unit.VOLT, 10),
    _C.GRID_VOLTAGE_PHASE_T: (Unit.VOLT, 10),
}


def decode_ieee754(raw: int) -> float:
    """Reinterpret a 32-bit integer as a big-endian IEEE 754 float."""
    return struct.unpack(">f", raw.to_bytes(4, "big"))[0]


def scale_measurement(
    channel: MeasurementChannel,
    raw: int,
    dsp_format: DspFormat = DspFormat.FIXED_POINT,
) -> Quantity:
    """Convert a raw DSP reading to a :class:`Quantity` in the channel's unit."""
    unit, divisor = CHANNEL_UNITS[parse_channel(channel)]
    if DspFormat(dsp_format) is DspFormat.IEEE754:
        return Quantity(decode_ieee754(raw), unit)
    return Quantity(raw / divisor, unit)


def scale_energy(raw: int) -> Quantity:
    """Convert a watt-hour counter to kilowatt-hours."""
    return Quantity(raw / ENERGY_DIVISOR, Unit.KILOWATT_HOUR)


def _lookup(enum_cls: type[IntEnum], raw: int):
    try:
        return enum_cls(raw)
    except ValueError:
        return UnknownCode(raw)


def to_transmission_state(raw: int) -> TransmissionState | UnknownCode:
    return _lookup(TransmissionState, raw)


def to_global_state(raw: int) -> GlobalState | UnknownCode:
    return _lookup(GlobalState, raw)


def to_inverter_status(raw: int) -> InverterStatus | UnknownCode:
    return _lookup(InverterStatus, raw)


def to_dcdc_status(raw: int) -> DcDcStatus | UnknownCode:
    return _lookup(DcDcStatus, raw)


def to_alarm(raw: int) -> AlarmCode | UnknownCode:
    return _lookup(AlarmCode, raw)


def seconds_to_datetime(seconds: int) -> datetime:
    """Inverter clock value to a naive datetime in the inverter's local time."""
    return INVERTER_EPOCH + timedelta(seconds=seconds)


def datetime_to_seconds(when: datetime) -> int:
    """Naive local datetime to seconds since the inverter epoch.

    Aware datetimes have their tzinfo dropped; the inverter keeps wall time.
    """
    delta = when.replace(tzinfo=None) - INVERTER_EPOCH
    return int(delta.total_seconds())

"""Command registry.

Each logical command is identified by its one-byte opcode. The registry
maps every command to a parameter encoder (logical arguments to the six
parameter bytes of a request) and a payload decoder (six response bytes to
raw fields). Both are pure functions, so every command can be tested
without a transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Callable

from . import parser
from .errors import InvalidParameterError, UnsupportedCommandError

PARAM_SIZE = 6
MAX_TIMESTAMP = 0xFFFFFFFF


class Command(IntEnum):
    """Opcodes for the supported requests."""

    GET_STATE = 50
    GET_PART_NUMBER = 52
    GET_VERSION = 58
    GET_DSP_MEASUREMENT = 59
    GET_SERIAL_NUMBER = 63
    GET_MANUFACTURE_DATE = 65
    GET_TIME_DATE = 70
    SET_TIME_DATE = 71
    GET_FIRMWARE_RELEASE = 72
    GET_CUMULATIVE_ENERGY = 78
    GET_LAST_ALARMS = 86


class MeasurementChannel(IntEnum):
    """DSP measurement selectors for :attr:`Command.GET_DSP_MEASUREMENT`."""

    GRID_VOLTAGE = 1
    GRID_CURRENT = 2
    GRID_POWER = 3
    FREQUENCY = 4
    BULK_VOLTAGE = 5
    LEAKAGE_CURRENT_DCDC = 6
    LEAKAGE_CURRENT_INVERTER = 7
    INPUT1_POWER = 8
    INPUT2_POWER = 9
    INVERTER_TEMPERATURE = 21
    BOOSTER_TEMPERATURE = 22
    INPUT1_VOLTAGE = 23
    INPUT1_CURRENT = 25
    INPUT2_VOLTAGE = 26
    INPUT2_CURRENT = 27
    GRID_VOLTAGE_DCDC = 28
    GRID_FREQUENCY_DCDC = 29
    ISOLATION_RESISTANCE = 30
    BULK_VOLTAGE_DCDC = 31
    AVERAGE_GRID_VOLTAGE = 32
    BULK_MID_VOLTAGE = 33
    PEAK_POWER = 34
    PEAK_POWER_TODAY = 35
    GRID_VOLTAGE_NEUTRAL = 36
    WIND_GENERATOR_FREQUENCY = 37
    GRID_VOLTAGE_NEUTRAL_PHASE = 38
    GRID_CURRENT_PHASE_R = 39
    GRID_CURRENT_PHASE_S = 40
    GRID_CURRENT_PHASE_T = 41
    FREQUENCY_PHASE_R = 42
    FREQUENCY_PHASE_S = 43
    FREQUENCY_PHASE_T = 44
    BULK_VOLTAGE_POSITIVE = 45
    BULK_VOLTAGE_NEGATIVE = 46
    SUPERVISOR_TEMPERATURE = 47
    ALIM_TEMPERATURE = 48
    HEAT_SINK_TEMPERATURE = 49
    TEMPERATURE_1 = 50
    TEMPERATURE_2 = 51
    TEMPERATURE_3 = 52
    FAN_SPEED_1 = 53
    FAN_SPEED_2 = 54
    FAN_SPEED_3 = 55
    FAN_SPEED_4 = 56
    FAN_SPEED_5 = 57
    POWER_SATURATION_LIMIT = 58
    RING_BULK_REFERENCE = 59
    MICRO_PANEL_VOLTAGE = 60
    GRID_VOLTAGE_PHASE_R = 61
    GRID_VOLTAGE_PHASE_S = 62
    GRID_VOLTAGE_PHASE_T = 63


class EnergyPeriod(IntEnum):
    """Accumulation windows for :attr:`Command.GET_CUMULATIVE_ENERGY`."""

    DAILY = 0
    WEEKLY = 1
    # 2 is not assigned by the protocol
    MONTHLY = 3
    YEARLY = 4
    TOTAL = 5
    PARTIAL = 6


def _enum_member(enum_cls: type[IntEnum], value: Any, label: str) -> IntEnum:
    if isinstance(value, bool):
        raise InvalidParameterError(f"Invalid {label}: {value!r}")
    if isinstance(value, str):
        try:
            return enum_cls[value.upper()]
        except KeyError:
            raise InvalidParameterError(f"Unknown {label} {value!r}") from None
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidParameterError(
            f"Unknown {label} {value!r}. Valid: {[m.name.lower() for m in enum_cls]}"
        ) from None


def parse_channel(value: Any) -> MeasurementChannel:
    """Coerce a channel name or selector byte into a :class:`MeasurementChannel`."""
    return _enum_member(MeasurementChannel, value, "measurement channel")


def parse_period(value: Any) -> EnergyPeriod:
    """Coerce a period name or selector byte into an :class:`EnergyPeriod`."""
    return _enum_member(EnergyPeriod, value, "energy period")


def _pad(params: bytes) -> bytes:
    return params.ljust(PARAM_SIZE, b"\x00")


def encode_no_params(*args: Any) -> bytes:
    if args:
        raise InvalidParameterError(f"Command takes no arguments, got {args!r}")
    return _pad(b"")


def encode_measurement(channel: Any, global_measure: bool = True) -> bytes:
    """Encode a DSP selector and the global/module flag.

    With ``global_measure`` set, three-phase and master/slave inverters
    report the value for the whole unit rather than for one module.
    """
    selector = parse_channel(channel)
    return _pad(bytes([selector.value, 1 if global_measure else 0]))


def encode_energy_period(period: Any) -> bytes:
    return _pad(bytes([parse_period(period).value]))


def encode_timestamp(seconds: Any) -> bytes:
    """Encode seconds since the inverter epoch (2000-01-01) as big-endian u32."""
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise InvalidParameterError(f"Timestamp must be an int, got {seconds!r}")
    if not 0 <= seconds <= MAX_TIMESTAMP:
        raise InvalidParameterError(
            f"Timestamp must be 0-{MAX_TIMESTAMP} seconds since 2000-01-01, got {seconds}"
        )
    return _pad(seconds.to_bytes(4, "big"))


@dataclass(frozen=True)
class CommandSpec:
    """Registry entry: how to build a command and read its response."""

    command: Command
    arity: int
    encode_params: Callable[..., bytes]
    decode_payload: Callable[[bytes], Any]
    description: str = ""

    @property
    def opcode(self) -> int:
        return self.command.value


COMMANDS: MappingProxyType[Command, CommandSpec] = MappingProxyType({
    Command.GET_STATE: CommandSpec(
        Command.GET_STATE, 0, encode_no_params, parser.decode_state,
        "Global, inverter, DC/DC and alarm state",
    ),
    Command.GET_PART_NUMBER: CommandSpec(
        Command.GET_PART_NUMBER, 0, encode_no_params, parser.decode_ascii,
        "Six character part number",
    ),
    Command.GET_VERSION: CommandSpec(
        Command.GET_VERSION, 0, encode_no_params, parser.decode_status_text,
        "Model, grid standard, transformer and type codes",
    ),
    Command.GET_DSP_MEASUREMENT: CommandSpec(
        Command.GET_DSP_MEASUREMENT, 2, encode_measurement, parser.decode_raw_value,
        "One DSP measurement selected by channel",
    ),
    Command.GET_SERIAL_NUMBER: CommandSpec(
        Command.GET_SERIAL_NUMBER, 0, encode_no_params, parser.decode_ascii,
        "Six character serial number",
    ),
    Command.GET_MANUFACTURE_DATE: CommandSpec(
        Command.GET_MANUFACTURE_DATE, 0, encode_no_params, parser.decode_week_year,
        "Manufacturing week and year",
    ),
    Command.GET_TIME_DATE: CommandSpec(
        Command.GET_TIME_DATE, 0, encode_no_params, parser.decode_raw_value,
        "Inverter clock, seconds since 2000-01-01",
    ),
    Command.SET_TIME_DATE: CommandSpec(
        Command.SET_TIME_DATE, 4, encode_timestamp, parser.decode_raw_value,
        "Set the inverter clock",
    ),
    Command.GET_FIRMWARE_RELEASE: CommandSpec(
        Command.GET_FIRMWARE_RELEASE, 0, encode_no_params, parser.decode_status_text,
        "Four character firmware release",
    ),
    Command.GET_CUMULATIVE_ENERGY: CommandSpec(
        Command.GET_CUMULATIVE_ENERGY, 1, encode_energy_period, parser.decode_raw_value,
        "Energy counter for one accumulation period, in Wh",
    ),
    Command.GET_LAST_ALARMS: CommandSpec(
        Command.GET_LAST_ALARMS, 0, encode_no_params, parser.decode_alarms,
        "Last four alarm codes, oldest first",
    ),
})


def get_spec(command: Command | int) -> CommandSpec:
    """Look up the registry entry for a command or raw opcode."""
    try:
        return COMMANDS[Command(command)]
    except (ValueError, KeyError):
        raise UnsupportedCommandError(f"Unknown command opcode {command!r}") from None

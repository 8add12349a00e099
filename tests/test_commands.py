"""Tests for the command registry, parameter encoders and payload decoders."""

import pytest

from aurora_mcp.protocol.commands import (
    COMMANDS,
    Command,
    EnergyPeriod,
    MeasurementChannel,
    encode_energy_period,
    encode_measurement,
    encode_no_params,
    encode_timestamp,
    get_spec,
    parse_channel,
    parse_period,
)
from aurora_mcp.protocol.errors import (
    InvalidParameterError,
    MalformedFrameError,
    UnsupportedCommandError,
)
from aurora_mcp.protocol.parser import (
    AlarmFields,
    RawValueFields,
    StateFields,
    decode_alarms,
    decode_ascii,
    decode_raw_value,
    decode_state,
    decode_status_text,
    decode_week_year,
)


def test_command_enum_values():
    """Verify key opcodes match the protocol."""
    assert Command.GET_STATE == 50
    assert Command.GET_DSP_MEASUREMENT == 59
    assert Command.SET_TIME_DATE == 71
    assert Command.GET_CUMULATIVE_ENERGY == 78
    assert Command.GET_LAST_ALARMS == 86


def test_every_command_registered():
    assert set(COMMANDS) == set(Command)
    for command, spec in COMMANDS.items():
        assert spec.command is command
        assert spec.opcode == command.value


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        COMMANDS[Command.GET_STATE] = None


def test_get_spec_by_opcode():
    assert get_spec(59).command is Command.GET_DSP_MEASUREMENT


@pytest.mark.parametrize("opcode", [0, 51, 99, 255])
def test_get_spec_unknown(opcode):
    with pytest.raises(UnsupportedCommandError):
        get_spec(opcode)


def test_encode_no_params():
    assert encode_no_params() == bytes(6)
    with pytest.raises(InvalidParameterError):
        encode_no_params(1)


def test_encode_measurement():
    """Channel selector then the global flag, zero padded."""
    assert encode_measurement(MeasurementChannel.GRID_POWER) == bytes([3, 1, 0, 0, 0, 0])
    assert encode_measurement(21, global_measure=False) == bytes([21, 0, 0, 0, 0, 0])
    assert encode_measurement("grid_voltage")[0] == 1


@pytest.mark.parametrize("channel", [0, 10, 24, 64, 255, "power", True])
def test_encode_measurement_invalid_channel(channel):
    with pytest.raises(InvalidParameterError):
        encode_measurement(channel)


def test_encode_energy_period():
    assert encode_energy_period(EnergyPeriod.DAILY) == bytes(6)
    assert encode_energy_period("total") == bytes([5, 0, 0, 0, 0, 0])
    assert encode_energy_period(6) == bytes([6, 0, 0, 0, 0, 0])


@pytest.mark.parametrize("period", [2, 7, -1, "hourly"])
def test_encode_energy_period_invalid(period):
    """Selector 2 is unassigned and must be rejected like any other bad value."""
    with pytest.raises(InvalidParameterError):
        encode_energy_period(period)


def test_encode_timestamp():
    assert encode_timestamp(0x12345678) == bytes([0x12, 0x34, 0x56, 0x78, 0, 0])


@pytest.mark.parametrize("seconds", [-1, 0x100000000, 1.5, "10"])
def test_encode_timestamp_invalid(seconds):
    with pytest.raises(InvalidParameterError):
        encode_timestamp(seconds)


def test_parse_helpers():
    assert parse_channel("Inverter_Temperature") is MeasurementChannel.INVERTER_TEMPERATURE
    assert parse_period("Weekly") is EnergyPeriod.WEEKLY
    assert parse_period(4) is EnergyPeriod.YEARLY


def test_decode_state():
    assert decode_state(bytes([0, 6, 2, 2, 2, 0])) == StateFields(0, 6, 2, 2, 2, 0)


def test_decode_ascii():
    assert decode_ascii(b"123456").text == "123456"
    assert decode_ascii(b"-3G79\x00").text == "-3G79"


def test_decode_status_text():
    fields = decode_status_text(bytes([0, 6]) + b"C016")
    assert (fields.transmission_state, fields.global_state, fields.text) == (0, 6, "C016")


def test_decode_raw_value():
    fields = decode_raw_value(bytes([0, 6, 0, 0, 0x09, 0x29]))
    assert fields == RawValueFields(transmission_state=0, global_state=6, raw=2345)
    assert decode_raw_value(bytes([0, 6, 0xFF, 0xFF, 0xFF, 0xFF])).raw == 0xFFFFFFFF


def test_decode_week_year():
    fields = decode_week_year(bytes([0, 6]) + b"2312")
    assert (fields.week, fields.year) == (23, 12)
    with pytest.raises(MalformedFrameError):
        decode_week_year(bytes([0, 6, 0, 0, 0, 0]))


def test_decode_alarms():
    assert decode_alarms(bytes([0, 6, 0, 3, 19, 1])) == AlarmFields(0, 6, (0, 3, 19, 1))


@pytest.mark.parametrize("decoder", [
    decode_state, decode_ascii, decode_status_text,
    decode_raw_value, decode_week_year, decode_alarms,
])
def test_decoders_reject_wrong_length(decoder):
    with pytest.raises(MalformedFrameError):
        decoder(bytes(5))

"""Tests for InverterClient over a scripted bus."""

import struct
from datetime import datetime

import pytest

from aurora_mcp.client import InverterClient
from aurora_mcp.models.converters import DspFormat
from aurora_mcp.models.quantity import Unit
from aurora_mcp.models.state import (
    AlarmCode,
    DcDcStatus,
    GlobalState,
    InverterStatus,
    TransmissionState,
    UnknownCode,
)
from aurora_mcp.protocol.commands import Command, EnergyPeriod, MeasurementChannel
from aurora_mcp.protocol.errors import (
    CommandRejectedError,
    CommunicationFailure,
    InvalidAddressError,
    InvalidParameterError,
)
from aurora_mcp.protocol.framing import encode_request
from aurora_mcp.transport.session import SessionConfig, TransportSession

from fake_channel import FakeChannel, response


def make_client(responses=(), address=2, **kwargs):
    channel = FakeChannel(responses)
    session = TransportSession(
        channel, SessionConfig(backoff=0.0), sleep=lambda _: None
    )
    return InverterClient(session, address, **kwargs), channel


@pytest.mark.parametrize("address", [0, 1, 64, 255])
def test_invalid_address_rejected_at_construction(address):
    session = TransportSession(FakeChannel())
    with pytest.raises(InvalidAddressError):
        InverterClient(session, address)


def test_clients_share_a_session():
    channel = FakeChannel([response(0, 6, 2, 2, 2, 0), response(0, 1, 0, 0, 0, 0)])
    session = TransportSession(channel)
    InverterClient(session, 2).get_state()
    InverterClient(session, 3).get_state()
    assert [frame[0] for frame in channel.written] == [2, 3]


def test_get_state():
    client, channel = make_client([response(0, 6, 2, 2, 2, 0)])
    state = client.get_state()
    assert channel.written == [encode_request(2, Command.GET_STATE)]
    assert state.transmission_state is TransmissionState.OK
    assert state.global_state is GlobalState.RUN
    assert state.inverter_state is InverterStatus.RUN
    assert state.dcdc1_state is DcDcStatus.MPPT
    assert state.alarm is AlarmCode.NO_ALARM
    assert state.is_running
    assert state.to_dict()["global_state"] == "RUN"


def test_get_state_unknown_codes():
    client, _ = make_client([response(0, 250, 99, 2, 77, 200)])
    state = client.get_state()
    assert state.global_state == UnknownCode(250)
    assert state.inverter_state == UnknownCode(99)
    assert state.dcdc2_state == UnknownCode(77)
    assert state.alarm.name == "UNKNOWN_200"
    assert not state.is_running


def test_get_measurement_grid_power():
    """Grid power request to address 2 returning raw 2345 reads 234.5 W."""
    client, channel = make_client([response(0, 6, 0, 0, 0x09, 0x29)])
    q = client.get_measurement(MeasurementChannel.GRID_POWER)
    assert channel.written[0][:8] == bytes([2, 59, 3, 1, 0, 0, 0, 0])
    assert q.value == 234.5
    assert q.unit is Unit.WATT


def test_get_measurement_module_value_by_name():
    client, channel = make_client([response(0, 6, 0, 0, 0x01, 0x90)])
    q = client.get_measurement("inverter_temperature", global_measure=False)
    assert channel.written[0][2:4] == bytes([21, 0])
    assert q.value == 40.0
    assert q.unit is Unit.CELSIUS


def test_get_measurement_ieee754():
    value = struct.pack(">f", 231.5)
    client, _ = make_client([response(0, 6, *value)], dsp_format="ieee754")
    assert client.dsp_format is DspFormat.IEEE754
    assert client.get_measurement(MeasurementChannel.GRID_VOLTAGE).value == 231.5


def test_invalid_channel_does_no_io():
    client, channel = make_client([response(0, 6, 0, 0, 0, 0)])
    with pytest.raises(InvalidParameterError):
        client.get_measurement(10)
    assert channel.written == []


def test_get_daily_energy():
    """Daily energy request is [2, 78, 0, ...]; raw 12345 Wh reads 12.345 kWh."""
    client, channel = make_client([response(0, 6, 0, 0, 0x30, 0x39)])
    q = client.get_cumulative_energy(EnergyPeriod.DAILY)
    assert channel.written[0][:8] == bytes([2, 78, 0, 0, 0, 0, 0, 0])
    assert q.value == 12.345
    assert q.unit is Unit.KILOWATT_HOUR


def test_corrupt_responses_never_reach_the_converter(monkeypatch):
    calls = []
    monkeypatch.setattr("aurora_mcp.client.scale_energy", lambda raw: calls.append(raw))
    good = response(0, 6, 0, 0, 0x30, 0x39)
    corrupt = good[:-1] + bytes([good[-1] ^ 0xFF])
    client, channel = make_client([corrupt, corrupt, corrupt])
    with pytest.raises(CommunicationFailure):
        client.get_cumulative_energy("daily")
    assert len(channel.written) == 3
    assert calls == []


def test_rejected_command():
    client, _ = make_client([response(51, 6, 0, 0, 0, 0)])
    with pytest.raises(CommandRejectedError) as exc_info:
        client.get_cumulative_energy(EnergyPeriod.PARTIAL)
    assert exc_info.value.transmission_state == "COMMAND_NOT_IMPLEMENTED"
    assert exc_info.value.command == "GET_CUMULATIVE_ENERGY"


def test_get_alarms():
    client, _ = make_client([response(0, 6, 0, 3, 19, 120)])
    alarms = client.get_alarms()
    assert alarms[:3] == [AlarmCode.NO_ALARM, AlarmCode.INPUT_UV, AlarmCode.OVER_TEMPERATURE]
    assert alarms[3] == UnknownCode(120)


def test_get_identification():
    client, channel = make_client([
        response(*b"123456"),
        response(0, 6, *b"C016"),
        response(*b"-3G79-"),
    ])
    ident = client.get_identification()
    assert ident.serial_number == "123456"
    assert ident.firmware_version == "C.0.1.6"
    assert ident.part_number == "-3G79-"
    assert [frame[1] for frame in channel.written] == [63, 72, 52]


def test_get_version():
    client, _ = make_client([response(0, 6, *b"iANH")])
    version = client.get_version()
    assert version.model_code == "i"
    assert str(version) == "iANH"


def test_get_manufacture_date():
    client, _ = make_client([response(0, 6, *b"2312")])
    date = client.get_manufacture_date()
    assert (date.week, date.full_year) == (23, 2012)


def test_get_time():
    client, _ = make_client([response(0, 6, 0, 0x01, 0x51, 0x80)])
    assert client.get_time() == datetime(2000, 1, 2)


def test_set_time():
    client, channel = make_client([response(0, 6, 0, 0, 0, 0)])
    client.set_time(datetime(2000, 1, 2))
    assert channel.written[0][:8] == bytes([2, 71, 0, 0x01, 0x51, 0x80, 0, 0])

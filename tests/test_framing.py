"""Tests for request encoding and response decoding."""

import pytest

from aurora_mcp.protocol.commands import Command, MeasurementChannel
from aurora_mcp.protocol.errors import (
    ChecksumError,
    InvalidAddressError,
    InvalidParameterError,
    MalformedFrameError,
    UnsupportedCommandError,
)
from aurora_mcp.protocol.framing import (
    REQUEST_SIZE,
    RequestFrame,
    ResponseFrame,
    build_request,
    decode_response,
    encode_request,
)
from aurora_mcp.utils.crc import append_checksum, checksum


def test_encode_state_request():
    """State request to address 2 is [2, 50, 0 x 6, crc_lo, crc_hi]."""
    frame = encode_request(2, Command.GET_STATE)
    crc = checksum(bytes([2, 50, 0, 0, 0, 0, 0, 0]))
    assert frame == bytes([2, 50, 0, 0, 0, 0, 0, 0, crc & 0xFF, crc >> 8])


def test_encode_request_size():
    """Every request frame is exactly 10 bytes."""
    for command in Command:
        assert len(encode_request(5, command)) == REQUEST_SIZE


def test_encode_request_accepts_opcode():
    assert encode_request(2, 50) == encode_request(2, Command.GET_STATE)


def test_encode_request_pads_params():
    frame = encode_request(3, Command.GET_DSP_MEASUREMENT, b"\x03\x01")
    assert frame[:8] == bytes([3, 59, 3, 1, 0, 0, 0, 0])


@pytest.mark.parametrize("address", [0, 1, 64, 255, -1])
def test_encode_rejects_reserved_and_out_of_range_addresses(address):
    with pytest.raises(InvalidAddressError):
        encode_request(address, Command.GET_STATE)


@pytest.mark.parametrize("address", [2, 63])
def test_encode_accepts_boundary_addresses(address):
    assert encode_request(address, Command.GET_STATE)[0] == address


def test_encode_rejects_non_int_address():
    with pytest.raises(InvalidAddressError):
        encode_request("2", Command.GET_STATE)
    with pytest.raises(InvalidAddressError):
        encode_request(True, Command.GET_STATE)


def test_encode_rejects_unknown_opcode():
    with pytest.raises(UnsupportedCommandError):
        encode_request(2, 99)


def test_encode_rejects_long_params():
    with pytest.raises(InvalidParameterError):
        encode_request(2, Command.GET_STATE, bytes(7))


def test_build_request_uses_registry():
    request = build_request(2, Command.GET_DSP_MEASUREMENT, MeasurementChannel.GRID_POWER)
    assert isinstance(request, RequestFrame)
    assert request.params == bytes([3, 1, 0, 0, 0, 0])
    assert request.raw == encode_request(2, Command.GET_DSP_MEASUREMENT, request.params)
    assert "GET_DSP_MEASUREMENT" in repr(request)


def test_decode_response_splits_status_and_payload():
    frame = decode_response(append_checksum(bytes([0, 6, 0x11, 0x22, 0x33, 0x44])))
    assert frame.data == bytes([0, 6, 0x11, 0x22, 0x33, 0x44])
    assert frame.status == bytes([0, 6])
    assert frame.payload == bytes([0x11, 0x22, 0x33, 0x44])


@pytest.mark.parametrize("length", [0, 6, 7, 9, 10])
def test_decode_response_wrong_length(length):
    with pytest.raises(MalformedFrameError):
        decode_response(bytes(length))


def test_decode_response_corrupt_final_byte():
    """A response with a corrupted last byte is rejected before any decoding."""
    frame = bytearray(append_checksum(bytes([0, 6, 0, 0, 0x09, 0x29])))
    frame[-1] ^= 0xFF
    with pytest.raises(ChecksumError):
        decode_response(bytes(frame))


def test_response_frame_repr():
    r = repr(ResponseFrame(data=bytes([0, 6, 1, 2, 3, 4])))
    assert "00 06 01 02 03 04" in r

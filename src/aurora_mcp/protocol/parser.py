"""Response payload decoders.

Each decoder takes the six data bytes of a checksum-validated response
(see :mod:`.framing`) and extracts the raw fields for one response layout.
Nothing here converts to physical units; that is the job of
:mod:`aurora_mcp.models.converters`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from .errors import MalformedFrameError

DATA_SIZE = 6


@dataclass(frozen=True)
class StateFields:
    """State request (50) response: six state bytes."""

    transmission_state: int
    global_state: int
    inverter_state: int
    dcdc1_state: int
    dcdc2_state: int
    alarm_state: int


@dataclass(frozen=True)
class AsciiFields:
    """Six ASCII characters with no status bytes (part and serial number)."""

    text: str


@dataclass(frozen=True)
class StatusTextFields:
    """Status bytes followed by four ASCII characters."""

    transmission_state: int
    global_state: int
    text: str


@dataclass(frozen=True)
class RawValueFields:
    """Status bytes followed by a 32-bit big-endian value."""

    transmission_state: int
    global_state: int
    raw: int


@dataclass(frozen=True)
class WeekYearFields:
    """Manufacture date (65): week and two-digit year as ASCII digit pairs."""

    transmission_state: int
    global_state: int
    week: int
    year: int


@dataclass(frozen=True)
class AlarmFields:
    """Last alarms (86): four alarm codes, oldest first."""

    transmission_state: int
    global_state: int
    alarms: tuple[int, int, int, int]


def _check(data: bytes) -> bytes:
    if len(data) != DATA_SIZE:
        raise MalformedFrameError(
            f"Response data must be {DATA_SIZE} bytes, got {len(data)}"
        )
    return bytes(data)


def _ascii(data: bytes) -> str:
    return data.decode("ascii", errors="replace").strip("\x00 ")


def decode_state(data: bytes) -> StateFields:
    data = _check(data)
    return StateFields(*data)


def decode_ascii(data: bytes) -> AsciiFields:
    return AsciiFields(text=_ascii(_check(data)))


def decode_status_text(data: bytes) -> StatusTextFields:
    data = _check(data)
    return StatusTextFields(
        transmission_state=data[0],
        global_state=data[1],
        text=_ascii(data[2:]),
    )


def decode_raw_value(data: bytes) -> RawValueFields:
    """Decode status bytes and an unsigned 32-bit big-endian value.

    Used by DSP measurements, cumulative energy and the inverter clock.
    """
    data = _check(data)
    (raw,) = struct.unpack(">I", data[2:])
    return RawValueFields(transmission_state=data[0], global_state=data[1], raw=raw)


def decode_week_year(data: bytes) -> WeekYearFields:
    data = _check(data)
    digits = data[2:]
    if not digits.isdigit():
        raise MalformedFrameError(
            f"Manufacture date is not ASCII digits: {digits.hex(' ')}"
        )
    return WeekYearFields(
        transmission_state=data[0],
        global_state=data[1],
        week=int(digits[:2]),
        year=int(digits[2:]),
    )


def decode_alarms(data: bytes) -> AlarmFields:
    data = _check(data)
    return AlarmFields(
        transmission_state=data[0],
        global_state=data[1],
        alarms=(data[2], data[3], data[4], data[5]),
    )

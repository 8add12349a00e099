"""Request/response frame codec.

Request layout (controller to inverter)::

    +---------+--------+----------------------+--------+--------+
    | Address | Opcode | Parameters           | CRC lo | CRC hi |
    | 1 byte  | 1 byte | 6 bytes, zero padded | 1 byte | 1 byte |
    +---------+--------+----------------------+--------+--------+

Response layout (inverter to controller)::

    +----------------------------------------------+--------+--------+
    | Data                                         | CRC lo | CRC hi |
    | 6 bytes (usually transmission state, global  | 1 byte | 1 byte |
    | state, then a 4-byte command payload)        |        |        |
    +----------------------------------------------+--------+--------+

The checksum covers every byte before it.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.crc import append_checksum, checksum
from .commands import COMMANDS, Command
from .errors import (
    ChecksumError,
    InvalidAddressError,
    InvalidParameterError,
    MalformedFrameError,
    UnsupportedCommandError,
)

REQUEST_SIZE = 10
RESPONSE_SIZE = 8
PARAM_SIZE = 6
RESPONSE_DATA_SIZE = 6
MIN_ADDRESS = 2
MAX_ADDRESS = 63


@dataclass(frozen=True)
class RequestFrame:
    """An encoded 10-byte request."""

    address: int
    command: Command
    params: bytes
    raw: bytes

    def __repr__(self) -> str:
        return (
            f"RequestFrame(address={self.address}, command={self.command.name}, "
            f"raw={self.raw.hex(' ')})"
        )


@dataclass(frozen=True)
class ResponseFrame:
    """A checksum-validated response, with the CRC stripped."""

    data: bytes

    @property
    def status(self) -> bytes:
        """Transmission state and global state bytes."""
        return self.data[:2]

    @property
    def payload(self) -> bytes:
        """The four command-specific bytes following the status."""
        return self.data[2:]

    def __repr__(self) -> str:
        return f"ResponseFrame(data={self.data.hex(' ')})"


def validate_address(address: int) -> int:
    """Return ``address`` if it is assignable on the bus, else raise."""
    if isinstance(address, bool) or not isinstance(address, int):
        raise InvalidAddressError(address)
    if not MIN_ADDRESS <= address <= MAX_ADDRESS:
        raise InvalidAddressError(address)
    return address


def resolve_command(command: Command | int) -> Command:
    """Map a command or raw opcode onto a registered :class:`Command`."""
    try:
        resolved = Command(command)
    except ValueError:
        raise UnsupportedCommandError(f"Unknown command opcode {command!r}") from None
    if resolved not in COMMANDS:
        raise UnsupportedCommandError(f"Command {resolved.name} is not registered")
    return resolved


def encode_request(address: int, command: Command | int, params: bytes = b"") -> bytes:
    """Encode a request frame.

    Args:
        address: Inverter bus address, 2-63.
        command: Registered command (or its opcode).
        params: Up to six parameter bytes; shorter values are zero padded.

    Returns:
        The 10-byte frame, checksum included.
    """
    validate_address(address)
    cmd = resolve_command(command)
    if len(params) > PARAM_SIZE:
        raise InvalidParameterError(
            f"At most {PARAM_SIZE} parameter bytes allowed, got {len(params)}"
        )
    body = bytes([address, cmd.value]) + bytes(params).ljust(PARAM_SIZE, b"\x00")
    return append_checksum(body)


def build_request(address: int, command: Command | int, *args) -> RequestFrame:
    """Encode ``command`` with its logical arguments via the command registry."""
    cmd = resolve_command(command)
    spec = COMMANDS[cmd]
    params = spec.encode_params(*args)
    raw = encode_request(address, cmd, params)
    return RequestFrame(address=address, command=cmd, params=params, raw=raw)


def decode_response(data: bytes) -> ResponseFrame:
    """Validate an 8-byte response and strip its checksum.

    Raises:
        MalformedFrameError: If ``data`` is not exactly 8 bytes.
        ChecksumError: If the trailing checksum does not match.
    """
    if len(data) != RESPONSE_SIZE:
        raise MalformedFrameError(
            f"Response must be {RESPONSE_SIZE} bytes, got {len(data)}"
        )
    body = bytes(data[:RESPONSE_DATA_SIZE])
    received = int.from_bytes(data[RESPONSE_DATA_SIZE:], "little")
    expected = checksum(body)
    if received != expected:
        raise ChecksumError(
            f"Checksum mismatch: received 0x{received:04X}, expected 0x{expected:04X} "
            f"(frame {bytes(data).hex(' ')})"
        )
    return ResponseFrame(data=body)

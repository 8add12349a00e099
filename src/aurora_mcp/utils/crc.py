"""CRC-16 used by every Aurora frame.

The Aurora protocol uses the CCITT polynomial in its bit-reversed form
(0x8408), an initial value of 0xFFFF and a final one's complement, also
known as CRC-16/X-25. The two checksum bytes travel low byte first.
"""

from __future__ import annotations

POLYNOMIAL = 0x8408
INITIAL_VALUE = 0xFFFF


def _build_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ POLYNOMIAL
            else:
                crc >>= 1
        table.append(crc)
    return tuple(table)


_TABLE = _build_table()


def crc16(data: bytes) -> int:
    """Calculate the Aurora CRC-16 over ``data``.

    Args:
        data: Bytes to checksum (any length, including empty).

    Returns:
        The 16-bit checksum as an ``int``.
    """
    crc = INITIAL_VALUE
    for byte in data:
        crc = (crc >> 8) ^ _TABLE[(crc ^ byte) & 0xFF]
    return ~crc & 0xFFFF


checksum = crc16


def append_checksum(data: bytes) -> bytes:
    """Return ``data`` followed by its checksum, low byte first."""
    return bytes(data) + crc16(data).to_bytes(2, "little")


def verify(data: bytes) -> bool:
    """Check that the last two bytes of ``data`` are the checksum of the rest."""
    if len(data) < 2:
        return False
    expected = int.from_bytes(data[-2:], "little")
    return crc16(data[:-2]) == expected

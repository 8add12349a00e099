"""Tests for the Aurora CRC-16."""

import random

from aurora_mcp.utils.crc import append_checksum, checksum, crc16, verify


def test_crc16_check_value():
    """CRC-16/X-25 check value for the standard '123456789' input."""
    assert crc16(b"123456789") == 0x906E


def test_crc16_empty():
    """CRC of empty data is the complemented initial value."""
    assert crc16(b"") == 0x0000


def test_crc16_deterministic():
    """Same input should always produce same output."""
    data = bytes([2, 50, 0, 0, 0, 0, 0, 0])
    assert crc16(data) == crc16(data)
    assert checksum(data) == crc16(data)


def test_crc16_different_inputs():
    """Different inputs should produce different CRCs."""
    assert crc16(b"\x01") != crc16(b"\x02")


def test_append_checksum_low_byte_first():
    data = bytes([2, 59, 3, 1, 0, 0, 0, 0])
    framed = append_checksum(data)
    value = crc16(data)
    assert len(framed) == 10
    assert framed[:8] == data
    assert framed[8] == value & 0xFF
    assert framed[9] == (value >> 8) & 0xFF


def test_verify_accepts_valid_frame():
    assert verify(append_checksum(b"\x00\x06\x02\x02\x02\x00"))


def test_verify_rejects_short_input():
    assert not verify(b"")
    assert not verify(b"\x00")


def test_single_bit_flip_always_detected():
    """Flipping any one bit of a framed message must fail verification."""
    rng = random.Random(1234)
    for _ in range(200):
        length = rng.choice([6, 8])
        frame = append_checksum(bytes(rng.randrange(256) for _ in range(length)))
        assert verify(frame)
        for bit in range(len(frame) * 8):
            corrupted = bytearray(frame)
            corrupted[bit // 8] ^= 1 << (bit % 8)
            assert not verify(bytes(corrupted)), f"bit {bit} of {frame.hex()}"

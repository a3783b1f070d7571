"""Bit helpers and big-endian conversion between numbers and raw bytes."""

from __future__ import annotations

import struct
from collections.abc import Iterable


def bit_set1(a: int, n: int) -> int:
    """Return ``a`` with bit ``n`` set."""
    return a | (1 << n)


def bit_set0(a: int, n: int) -> int:
    """Return ``a`` with bit ``n`` cleared."""
    return a & ~(1 << n)


def bit_get(a: int, n: int) -> int:
    """Return ``a`` masked to bit ``n`` (zero when the bit is clear)."""
    return a & (1 << n)


def _unpack(order: str, code: str, size: int, data: bytes, count: int | None) -> list:
    raw = bytes(data)
    if count is None:
        count = len(raw) // size
    if count < 0:
        raise ValueError(f"count must not be negative: {count}")
    needed = count * size
    if len(raw) < needed:
        raise ValueError(f"need {needed} bytes for {count} values, got {len(raw)}")
    return list(struct.unpack(f"{order}{count}{code}", raw[:needed]))


def hex_to_int8_big(data: bytes, count: int | None = None) -> list[int]:
    """Decode signed 8-bit values."""
    return _unpack(">", "b", 1, data, count)


def hex_to_int16_big(data: bytes, count: int | None = None) -> list[int]:
    """Decode big-endian signed 16-bit values."""
    return _unpack(">", "h", 2, data, count)


def hex_to_uint16_big(data: bytes, count: int | None = None) -> list[int]:
    """Decode big-endian unsigned 16-bit values."""
    return _unpack(">", "H", 2, data, count)


def hex_to_int32_big(data: bytes, count: int | None = None) -> list[int]:
    """Decode big-endian signed 32-bit values."""
    return _unpack(">", "i", 4, data, count)


def hex_to_fp32_big(data: bytes, count: int | None = None) -> list[float]:
    """Decode big-endian IEEE-754 single precision values."""
    return _unpack(">", "f", 4, data, count)


def hex_to_fp32(data: bytes, count: int | None = None) -> list[float]:
    """Decode single precision values stored in the host's byte order."""
    return _unpack("=", "f", 4, data, count)


def int16_to_hex_big(values: Iterable[int]) -> bytes:
    """Encode integers as big-endian 16-bit words, keeping the low 16 bits."""
    return b"".join((v & 0xFFFF).to_bytes(2, "big") for v in values)


def int32_to_hex_big(values: Iterable[int]) -> bytes:
    """Encode integers as big-endian 32-bit words, keeping the low 32 bits."""
    return b"".join((v & 0xFFFFFFFF).to_bytes(4, "big") for v in values)


def fp32_to_hex_big(values: Iterable[float]) -> bytes:
    """Encode floats as big-endian IEEE-754 single precision values."""
    items = list(values)
    return struct.pack(f">{len(items)}f", *items)


def hex_to_str(data: bytes) -> str:
    """Render bytes as lower-case hex pairs, each followed by a space."""
    return "".join(f"{b:02x} " for b in bytes(data))
"""CRC-16/MODBUS checksum (reflected polynomial 0xA001, initial value 0xFFFF)."""

from __future__ import annotations

from collections.abc import Iterable

_POLYNOMIAL = 0xA001


def _build_table() -> tuple[int, ...]:
    table = []
    for value in range(256):
        crc = value
        for _ in range(8):
            crc = (crc >> 1) ^ _POLYNOMIAL if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_TABLE = _build_table()


def modbus(data: Iterable[int]) -> int:
    """Return the CRC-16/MODBUS checksum of ``data``.

    The low byte of the result is the one transmitted first.
    """
    crc = 0xFFFF
    for byte in data:
        crc = (crc >> 8) ^ _TABLE[(crc ^ byte) & 0xFF]
    return crc
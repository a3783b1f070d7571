import pytest

from rclink.crc16 import modbus


def test_empty_input_keeps_initial_value():
    assert modbus(b"") == 0xFFFF


def test_standard_check_value():
    assert modbus(b"123456789") == 0x4B37


@pytest.mark.parametrize(
    "payload",
    [b"\x01", b"\xaa\x55\x08\x7f", bytes(range(64)), b"\xff" * 10, b"hello world"],
)
def test_appending_crc_little_endian_gives_zero_residue(payload):
    crc = modbus(payload)
    framed = payload + bytes([crc & 0xFF, (crc >> 8) & 0xFF])
    assert modbus(framed) == 0


@pytest.mark.parametrize("payload", [b"abc", bytes(range(256)), b"\x00" * 5])
def test_result_is_sixteen_bits(payload):
    assert 0 <= modbus(payload) <= 0xFFFF


def test_accepts_any_iterable_of_ints():
    payload = b"\x10\x20\x30\x40"
    assert modbus(list(payload)) == modbus(payload)
    assert modbus(bytearray(payload)) == modbus(payload)


def test_single_bit_change_changes_crc():
    assert modbus(b"\x00\x01\x02") != modbus(b"\x00\x01\x03")
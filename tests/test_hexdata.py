import struct

import pytest

from rclink import hexdata


def test_bit_operations():
    assert hexdata.bit_set1(0, 3) == 8
    assert hexdata.bit_set0(0b1111, 0) == 0b1110
    assert hexdata.bit_get(0b1010, 1) == 0b10
    assert hexdata.bit_get(0b1010, 2) == 0


def test_bit_set_then_clear_round_trip():
    for n in range(16):
        value = 0x5A5A
        assert hexdata.bit_set0(hexdata.bit_set1(value, n), n) == value & ~(1 << n)


def test_int16_encoding_is_big_endian():
    assert hexdata.int16_to_hex_big([0x1234]) == b"\x12\x34"


def test_int16_signed_round_trip():
    values = [0, 1, -1, 32767, -32768, 1000]
    encoded = hexdata.int16_to_hex_big(values)
    assert len(encoded) == 2 * len(values)
    assert hexdata.hex_to_int16_big(encoded) == values


def test_uint16_reads_same_bytes_unsigned():
    encoded = hexdata.int16_to_hex_big([-1, 5])
    assert hexdata.hex_to_uint16_big(encoded) == [0xFFFF, 5]


def test_int32_round_trip():
    values = [0, -1, 2**31 - 1, -(2**31), 123456]
    assert hexdata.hex_to_int32_big(hexdata.int32_to_hex_big(values)) == values


def test_int8_decoding_is_signed():
    assert hexdata.hex_to_int8_big(bytes([0x7F, 0x80, 0xFF])) == [127, -128, -1]


def test_fp32_big_known_bytes():
    assert hexdata.fp32_to_hex_big([1.0]) == b"\x3f\x80\x00\x00"


def test_fp32_big_round_trip():
    values = [0.5, -2.25, 1024.0, 0.0]
    assert hexdata.hex_to_fp32_big(hexdata.fp32_to_hex_big(values)) == values


def test_fp32_host_order():
    raw = struct.pack("=2f", 1.5, -2.25)
    assert hexdata.hex_to_fp32(raw) == [1.5, -2.25]


def test_count_limits_decoding():
    encoded = hexdata.int16_to_hex_big([1, 2, 3])
    assert hexdata.hex_to_int16_big(encoded, 2) == [1, 2]


def test_count_beyond_data_raises():
    with pytest.raises(ValueError):
        hexdata.hex_to_int32_big(b"\x00\x00\x00\x01", 2)


def test_negative_count_raises():
    with pytest.raises(ValueError):
        hexdata.hex_to_int8_big(b"\x01", -1)


def test_hex_to_str():
    assert hexdata.hex_to_str(b"\xaa\x55\x0f") == "aa 55 0f "
    assert hexdata.hex_to_str(b"") == ""
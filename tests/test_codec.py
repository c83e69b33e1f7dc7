import math

import pytest

from smvcan.codec import Frame, get_first, get_id_field, get_last, pack_double, unpack_double


@pytest.mark.parametrize("first", range(16))
@pytest.mark.parametrize("last", [0, 1, 7, 15])
def test_id_field_round_trip(first, last):
    id_field = get_id_field(first, last)
    assert get_first(id_field) == first
    assert get_last(id_field) == last


def test_id_field_fits_standard_identifier():
    assert get_id_field(15, 15) <= 0x7FF


def test_get_first_ignores_low_bits():
    assert get_first(get_id_field(3, 0) | 0x7F) == 3


def test_pack_double_known_bytes():
    assert pack_double(1.0) == b"\x00\x00\x00\x00\x00\x00\xf0\x3f"
    assert pack_double(0.0) == bytes(8)


@pytest.mark.parametrize("value", [0.0, -1.5, 3.14159, 1e300, -2.5e-310])
def test_double_round_trip(value):
    encoded = pack_double(value)
    assert len(encoded) == 8
    assert unpack_double(encoded) == value


def test_double_round_trip_nan():
    encoded = pack_double(float("nan"))
    assert encoded == b"\x00\x00\x00\x00\x00\x00\xf8\x7f"
    result = unpack_double(encoded)
    assert math.isnan(result)
    assert pack_double(result) == encoded


def test_unpack_double_wrong_length():
    with pytest.raises(ValueError):
        unpack_double(b"\x00" * 7)


def test_frame_dlc_and_data():
    frame = Frame(id=get_id_field(2, 3), data=bytearray(pack_double(2.0)))
    assert frame.dlc == 8
    assert unpack_double(frame.data) == 2.0


def test_frame_rejects_long_data():
    with pytest.raises(ValueError):
        Frame(id=1, data=bytes(9))


def test_frame_rejects_large_standard_id():
    with pytest.raises(ValueError):
        Frame(id=0x800)


def test_frame_accepts_extended_id():
    frame = Frame(id=0x1FFFFFFF, extended=True)
    assert frame.id == 0x1FFFFFFF
    assert frame.dlc == 0
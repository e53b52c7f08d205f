import struct

import pytest

from a2sdecode.reader import (Cursor, TrailingData, UnexpectedByte, UnexpectedEof, Unrecognized,
                              ensure_consumed, lookup, unpack_bool, unpack_byte, unpack_float,
                              unpack_long, unpack_longlong, unpack_many, unpack_null,
                              unpack_opt_byte, unpack_short, unpack_string, unpack_ulong,
                              unpack_ushort)


def test_cursor_is_not_modified_by_reads():
    cursor = Cursor(b'\x01\x02\x03')
    value, after = unpack_byte(cursor)
    assert value == 1
    assert cursor.offset == 0
    assert after.offset == 1
    assert after.remaining() == 2
    assert bytes(after.rest()) == b'\x02\x03'


def test_rest_is_a_view():
    cursor = Cursor(b'abcdef').advance(2)
    assert isinstance(cursor.rest(), memoryview)
    assert cursor.rest().tobytes() == b'cdef'


def test_fixed_width_readers_are_little_endian():
    data = (struct.pack('<h', -2) + struct.pack('<H', 65534) + struct.pack('<l', -5)
            + struct.pack('<L', 0xDEADBEEF) + struct.pack('<Q', 0x0130000003A5F1E) + struct.pack('<f', 1.5))
    cursor = Cursor(data)
    short, cursor = unpack_short(cursor)
    ushort, cursor = unpack_ushort(cursor)
    long_, cursor = unpack_long(cursor)
    ulong, cursor = unpack_ulong(cursor)
    longlong, cursor = unpack_longlong(cursor)
    float_, cursor = unpack_float(cursor)
    assert (short, ushort, long_, ulong, longlong, float_) == (-2, 65534, -5, 0xDEADBEEF, 0x0130000003A5F1E, 1.5)
    assert cursor.at_end()


def test_short_read_raises_unexpected_eof():
    cursor = Cursor(b'\x00\x01\x02\x03\x04').advance(2)
    with pytest.raises(UnexpectedEof) as e:
        unpack_long(cursor)
    assert e.value.offset == 2
    assert e.value.code == 'unexpected_eof'


def test_bool():
    assert unpack_bool(Cursor(b'\x00'))[0] is False
    assert unpack_bool(Cursor(b'\x02'))[0] is True


def test_string():
    value, cursor = unpack_string(Cursor(b'abc\x00d'))
    assert value == 'abc'
    assert cursor.offset == 4


def test_empty_string():
    value, cursor = unpack_string(Cursor(b'\x00'))
    assert value == ''
    assert cursor.at_end()


def test_string_without_terminator():
    with pytest.raises(UnexpectedEof):
        unpack_string(Cursor(b'sv_conta'))


def test_string_replaces_invalid_utf8():
    value, _ = unpack_string(Cursor(b'a\xffb\x00'))
    assert value == 'a\ufffdb'


def test_null_byte():
    value, cursor = unpack_null(Cursor(b'\x00'))
    assert value == 0
    assert cursor.at_end()


def test_nonzero_null_byte():
    with pytest.raises(UnexpectedByte) as e:
        unpack_null(Cursor(b'\x07'))
    assert e.value.code == 'unexpected_byte'
    assert e.value.offset == 0


def test_optional_byte():
    assert unpack_opt_byte(Cursor(b''))[0] is None
    assert unpack_opt_byte(Cursor(b'\x09'))[0] == 9


def test_many_stops_at_first_incomplete_item():
    items, cursor = unpack_many(unpack_short, Cursor(b'\x01\x00\x02\x00\x03'), 5)
    assert items == [1, 2]
    assert cursor.offset == 4


def test_many_respects_limit():
    items, cursor = unpack_many(unpack_byte, Cursor(b'\x01\x02\x03'), 2)
    assert items == [1, 2]
    assert cursor.remaining() == 1


def test_ensure_consumed():
    ensure_consumed(Cursor(b'ab').advance(2))
    with pytest.raises(TrailingData) as e:
        ensure_consumed(Cursor(b'abc').advance(1))
    assert e.value.offset == 1
    assert e.value.code == 'trailing_data'


def test_error_message_contains_offset():
    with pytest.raises(UnexpectedEof, match=r'offset 3'):
        unpack_long(Cursor(b'\x00\x00\x00\x00').advance(3))


def test_lookup():
    table = {0x64: 'dedicated'}
    assert lookup(table, 0x64) == 'dedicated'
    assert lookup(table, 0x78) == Unrecognized(0x78)
    assert lookup(table, 0x78) != Unrecognized(0x79)
    assert repr(Unrecognized(0x78)) == 'Unrecognized(0x78)'

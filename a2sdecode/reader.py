"""Primitive field readers for A2S payloads.

Every reader takes a Cursor and returns ``(value, cursor)`` where the new
cursor sits just past the consumed bytes. Cursors are never modified in
place, so a failed read simply leaves the caller holding the old one.
"""

import struct


class Cursor(object):
    """Immutable read position over a byte buffer."""

    __slots__ = ('_data', '_offset')

    def __init__(self, data, offset=0):
        # bytes(b) hands back the same object, anything else is copied once
        self._data = bytes(data)
        self._offset = offset

    @property
    def data(self):
        return self._data

    @property
    def offset(self):
        return self._offset

    def __repr__(self):
        return f'Cursor(offset={self._offset}, remaining={self.remaining()})'

    def remaining(self):
        return len(self._data) - self._offset

    def at_end(self):
        return self.remaining() <= 0

    def rest(self):
        """Return the unread bytes as a view, without copying."""
        return memoryview(self._data)[self._offset:]

    def advance(self, count):
        return Cursor._at(self._data, self._offset + count)

    def find(self, value):
        return self._data.find(value, self._offset)

    def take(self, count):
        """Return a view of the next ``count`` bytes and the cursor after them."""
        if self.remaining() < count:
            raise UnexpectedEof(
                f'needed {count} bytes, {max(self.remaining(), 0)} left', self._offset)
        view = memoryview(self._data)[self._offset:self._offset + count]
        return view, self.advance(count)

    @classmethod
    def _at(cls, data, offset):
        cursor = cls.__new__(cls)
        cursor._data = data
        cursor._offset = offset
        return cursor


def as_cursor(data):
    if isinstance(data, Cursor):
        return data
    return Cursor(data)


def _unpack(fmt, cursor):
    raw, cursor = cursor.take(struct.calcsize(fmt))
    return struct.unpack(fmt, raw)[0], cursor


def unpack_byte(cursor):
    return _unpack('<B', cursor)

def unpack_short(cursor):
    return _unpack('<h', cursor)

def unpack_ushort(cursor):
    return _unpack('<H', cursor)

def unpack_long(cursor):
    return _unpack('<l', cursor)

def unpack_ulong(cursor):
    return _unpack('<L', cursor)

def unpack_longlong(cursor):
    return _unpack('<Q', cursor)

def unpack_float(cursor):
    return _unpack('<f', cursor)


def unpack_bool(cursor):
    """One byte, zero is False and anything else is True."""
    value, cursor = unpack_byte(cursor)
    return value != 0, cursor


def unpack_string(cursor):
    """Read a null terminated string.

    Servers are not strict about UTF-8, so undecodable bytes are replaced
    instead of failing the whole response.
    """
    end = cursor.find(b'\x00')
    if end < 0:
        raise UnexpectedEof('string is missing its null terminator', cursor.offset)
    raw, cursor = cursor.take(end - cursor.offset)
    return bytes(raw).decode('utf-8', errors='replace'), cursor.advance(1)


def unpack_null(cursor):
    """Read a placeholder byte that must be zero."""
    value, after = unpack_byte(cursor)
    if value != 0:
        raise UnexpectedByte(f'expected a null byte, got 0x{value:02X}', cursor.offset)
    return value, after


def unpack_opt_byte(cursor):
    """Read one byte if there is one. An empty cursor gives None, not an error."""
    if cursor.at_end():
        return None, cursor
    return unpack_byte(cursor)


def unpack_many(unpack, cursor, limit):
    """Decode up to ``limit`` items with ``unpack``, stopping quietly at the first
    one that runs out of bytes. The cursor is left after the last whole item.
    """
    items = []
    while len(items) < limit:
        try:
            item, cursor = unpack(cursor)
        except UnexpectedEof:
            break
        items.append(item)
    return items, cursor


def ensure_consumed(cursor):
    if not cursor.at_end():
        raise TrailingData(f'{cursor.remaining()} unread bytes', cursor.offset)
    return cursor


class Unrecognized(object):
    """Raw value of an enumerated field that matched none of the known members."""

    __slots__ = ('raw',)

    def __init__(self, raw):
        self.raw = raw

    def __eq__(self, other):
        return isinstance(other, Unrecognized) and other.raw == self.raw

    def __hash__(self):
        return hash((Unrecognized, self.raw))

    def __repr__(self):
        return f'Unrecognized(0x{self.raw:02X})'


def lookup(table, raw):
    """Map a raw byte through ``table``, keeping unknown values as Unrecognized."""
    try:
        return table[raw]
    except KeyError:
        return Unrecognized(raw)


class DecodeError(Exception):
    """Base class for all decoding errors. ``offset`` is where decoding stopped."""
    code = 'decode_error'

    def __init__(self, message, offset):
        super().__init__(message)
        self.offset = offset

    def __str__(self):
        return f'{self.args[0]} (offset {self.offset})'

class UnexpectedEof(DecodeError):
    """Raised when a field runs past the end of the buffer."""
    code = 'unexpected_eof'

class TrailingData(DecodeError):
    """Raised when a payload has bytes left over after a complete decode."""
    code = 'trailing_data'

class UnexpectedByte(DecodeError):
    """Raised when a fixed placeholder byte holds the wrong value."""
    code = 'unexpected_byte'

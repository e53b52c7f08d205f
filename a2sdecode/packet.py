"""Packet envelope and split packet headers.

Every A2S datagram starts with a little-endian long: -1 for a response that
fits in one packet, -2 for one fragment of a split response. The fragment
header differs between GoldSource and Source servers and nothing in the
datagram says which one it is, so callers pick the decoder.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from a2sdecode.reader import (DecodeError, Unrecognized, as_cursor, unpack_byte,
                              unpack_long, unpack_ulong, unpack_ushort)

# Is the response split among many packets or just one?
WHOLE = -1
SPLIT = -2

# App ids whose servers leave the size field out of split packets
SIZE_FIELD_OMITTED_APPS = frozenset([215, 17550, 17700])
# Same, but only for one protocol version of the app
SIZE_FIELD_OMITTED_APP_PROTOCOLS = frozenset([(240, 7)])


class MessageType(Enum):
    INFO_REQUEST = 0x54              # 'T'
    INFO_RESPONSE = 0x49             # 'I'
    GOLDSOURCE_INFO_RESPONSE = 0x6D  # 'm'
    PLAYER_REQUEST = 0x55            # 'U'
    PLAYER_RESPONSE = 0x44           # 'D'
    RULES_REQUEST = 0x56             # 'V'
    RULES_RESPONSE = 0x45            # 'E'
    PING_REQUEST = 0x69              # 'i'
    PING_RESPONSE = 0x6A             # 'j'
    CHALLENGE_REQUEST = 0x57         # 'W'
    CHALLENGE_RESPONSE = 0x41        # 'A'

    @property
    def tag(self):
        return bytes([self.value])


def message_type(raw):
    """Return the MessageType for a tag byte, or Unrecognized."""
    try:
        return MessageType(raw)
    except ValueError:
        return Unrecognized(raw)


@dataclass(frozen=True)
class SinglePacket:
    message_type: MessageType
    payload: memoryview


@dataclass(frozen=True)
class CompressionInfo:
    decompressed_size: int
    crc32: int


@dataclass(frozen=True)
class Fragment:
    """One datagram of a split response.

    ``size`` is only sent by Source servers (and not all of them).
    ``compression`` is only present on fragment 0 of a compressed response.
    """
    id: int
    total_count: int
    sequence_number: int
    size: Optional[int]
    compression: Optional[CompressionInfo]
    payload: memoryview

    @property
    def compressed(self):
        return self.compression is not None


def fragment_has_size_field(app_id, protocol=None):
    """Whether split packets from this game carry the Source size field."""
    if app_id in SIZE_FIELD_OMITTED_APPS:
        return False
    if (app_id, protocol) in SIZE_FIELD_OMITTED_APP_PROTOCOLS:
        return False
    return True


def _packet_header(cursor):
    start = cursor.offset
    header, cursor = unpack_long(cursor)
    if header not in (WHOLE, SPLIT):
        raise MalformedEnvelope(f'unknown packet header {header}', start)
    return header, cursor


def is_split(datagram):
    header, _ = _packet_header(as_cursor(datagram))
    return header == SPLIT


def decode_packet(datagram, goldsource=False, size_included=True):
    """Classify a raw datagram and decode its envelope.

    Returns a SinglePacket or a Fragment. ``goldsource`` picks the fragment
    header layout and ``size_included`` is passed on to the Source one.
    """
    header, cursor = _packet_header(as_cursor(datagram))
    if header == WHOLE:
        return decode_single_packet(cursor)
    if goldsource:
        return decode_goldsource_fragment(cursor)
    return decode_source_fragment(cursor, size_included)


def decode_single_packet(data):
    """Decode the message tag and payload following a -1 header."""
    cursor = as_cursor(data)
    start = cursor.offset
    tag, cursor = unpack_byte(cursor)
    typ = message_type(tag)
    if isinstance(typ, Unrecognized):
        raise UnrecognizedMessageType(tag, start)
    return SinglePacket(typ, cursor.rest())


def decode_goldsource_fragment(data):
    """Decode a GoldSource split header following a -2 header.

    The high nibble of the packet byte is this fragment's number and the low
    nibble is the total number of fragments.
    """
    cursor = as_cursor(data)
    resp_id, cursor = unpack_long(cursor)
    number, cursor = unpack_byte(cursor)
    return Fragment(
        id=resp_id,
        total_count=number & 0x0F,
        sequence_number=number >> 4,
        size=None,
        compression=None,
        payload=cursor.rest(),
    )


def decode_source_fragment(data, size_included=True):
    """Decode a Source split header following a -2 header.

    ``size_included`` must be False for the games listed in
    SIZE_FIELD_OMITTED_APPS; see fragment_has_size_field().
    """
    cursor = as_cursor(data)
    resp_id, cursor = unpack_long(cursor)
    total, cursor = unpack_byte(cursor)
    number, cursor = unpack_byte(cursor)

    size = None
    if size_included:
        size, cursor = unpack_ushort(cursor)

    # The high bit of the id marks a compressed response, the sizes are only
    # sent with the first fragment
    compression = None
    if number == 0 and resp_id < 0:
        decompressed_size, cursor = unpack_long(cursor)
        crc32, cursor = unpack_ulong(cursor)
        compression = CompressionInfo(decompressed_size, crc32)
        logging.debug('Split response %s is compressed (%s bytes, crc %08X)',
                      resp_id, decompressed_size, crc32)

    return Fragment(
        id=resp_id,
        total_count=total,
        sequence_number=number,
        size=size,
        compression=compression,
        payload=cursor.rest(),
    )


class MalformedEnvelope(DecodeError):
    """Raised when a datagram does not start with an A2S packet header."""
    code = 'malformed_envelope'

class UnrecognizedMessageType(DecodeError):
    """Raised for a tag byte outside the known message types.

    Callers may drop these packets quietly, they are not transport errors.
    """
    code = 'unrecognized_message_type'

    def __init__(self, tag, offset):
        super().__init__(f'unrecognized message type 0x{tag:02X}', offset)
        self.tag = tag

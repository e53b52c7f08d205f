import contextlib
import logging
import socket
import struct
import sys

from a2sdecode.info import GoldSourceInfo, PreGoldSourceInfo, SourceInfo, decode_info
from a2sdecode.packet import (WHOLE, MessageType, SinglePacket, decode_packet,
                              fragment_has_size_field)
from a2sdecode.ping import decode_challenge, decode_ping
from a2sdecode.player import decode_players
from a2sdecode.requests import A2S_INFO_STRING
from a2sdecode.rules import decode_rules

PACKETSIZE = 4096
DEFAULT_TIMEOUT = 5.0

# Sent in place of a challenge to ask the server for one
CHALLENGE = -1


class QueryException(Exception):
    """Raised when a server does not answer, or answers with something unusable."""
    pass


@contextlib.contextmanager
def get_managed_query(address, **kwargs):
    """ Yields a connected SourceQuery (closes its socket when leaving context). """
    query = SourceQuery(**kwargs)
    query.connect(address)
    try:
        yield query
    finally:
        query.close()


class SourceQuery(object):
    """A2S client for a single server.

    Parameters:
        timeout (float) seconds to wait for each datagram
        goldsource (bool) decode split responses with the GoldSource header
        strict (bool) reject info responses with bytes left over
    """

    def __init__(self, timeout=DEFAULT_TIMEOUT, goldsource=False, strict=False):
        self.udpsock = None
        self.address = None
        self.timeout = timeout
        self.goldsource = goldsource
        self.strict = strict
        # Learned from info(), decides whether split packets have a size field
        self.app_id = None
        self.protocol = None

    def connect(self, address):
        self.address = address
        self.udpsock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.udpsock.settimeout(self.timeout)
        try:
            self.udpsock.connect(address)
        except OSError as e:
            self.udpsock.close()
            raise QueryException(f'Could not connect to {address}: {e}') from e

    def close(self):
        if self.udpsock:
            self.udpsock.close()
            self.udpsock = None

    def _send(self, typ, body=b''):
        try:
            self.udpsock.send(pack_long(WHOLE) + typ.tag + body)
        except OSError as e:
            raise QueryException(f'Failed to send {typ.name}: {e}') from e

    def _recv(self):
        try:
            return self.udpsock.recv(PACKETSIZE)
        except socket.timeout:
            logging.warning('Query %s: No response after %ss', self.address, self.timeout)
            raise QueryException(f'Timed out after {self.timeout}s waiting for {self.address}')
        except OSError as e:
            raise QueryException(f'Failed to receive from {self.address}: {e}') from e

    def _size_included(self):
        if self.app_id is None:
            return True
        return fragment_has_size_field(self.app_id, self.protocol)

    def _decode(self, raw):
        return decode_packet(raw, goldsource=self.goldsource, size_included=self._size_included())

    def _receive(self):
        """Receive one response, gathering all fragments if it is split."""
        packet = self._decode(self._recv())
        if isinstance(packet, SinglePacket):
            return packet

        logging.info('Query %s: Split response %s, %s packets', self.address, packet.id, packet.total_count)
        fragments = {packet.sequence_number: packet}
        while len(fragments) < packet.total_count:
            fragment = self._decode(self._recv())
            if isinstance(fragment, SinglePacket) or fragment.id != packet.id:
                raise QueryException('Received an unrelated packet in the middle of a split response')
            fragments[fragment.sequence_number] = fragment

        combined = self._decode(combine_fragments(fragments.values()))
        if not isinstance(combined, SinglePacket):
            raise QueryException('Reassembled response is not a single packet')
        return combined

    def _request(self, typ, expected, body=b'', challenge=None):
        """Send a request and return the response, answering a challenge once if asked."""
        self._send(typ, body if challenge is None else body + pack_long(challenge))
        packet = self._receive()

        if packet.message_type == MessageType.CHALLENGE_RESPONSE:
            challenge = decode_challenge(packet.payload)
            logging.info('Query %s: Resending %s with challenge %s', self.address, typ.name, challenge)
            self._send(typ, body + pack_long(challenge))
            packet = self._receive()

        if packet.message_type not in expected:
            raise QueryException(f'Expected {" or ".join(t.name for t in expected)}, '
                                 f'got {packet.message_type.name}')
        return packet

    def info(self):
        packet = self._request(MessageType.INFO_REQUEST,
                               (MessageType.INFO_RESPONSE, MessageType.GOLDSOURCE_INFO_RESPONSE),
                               pack_string(A2S_INFO_STRING))
        info = decode_info(packet.message_type, packet.payload, strict=self.strict)
        if isinstance(info, SourceInfo):
            self.app_id = info.app_id
            self.protocol = info.protocol
        elif isinstance(info, (GoldSourceInfo, PreGoldSourceInfo)):
            # Split responses will use the GoldSource header from now on
            self.goldsource = True
        return info

    def players(self):
        packet = self._request(MessageType.PLAYER_REQUEST, (MessageType.PLAYER_RESPONSE,),
                               challenge=CHALLENGE)
        return decode_players(packet.payload)

    def rules(self):
        packet = self._request(MessageType.RULES_REQUEST, (MessageType.RULES_RESPONSE,),
                               challenge=CHALLENGE)
        return decode_rules(packet.payload)

    def ping(self):
        packet = self._request(MessageType.PING_REQUEST, (MessageType.PING_RESPONSE,))
        return decode_ping(packet.payload)


def combine_fragments(fragments):
    """Join the payloads of a complete set of fragments in packet order."""
    fragments = sorted(fragments, key=lambda fragment: fragment.sequence_number)
    if not fragments:
        raise QueryException('No fragments to combine')
    if any(fragment.compressed for fragment in fragments):
        raise QueryException('Compressed split responses are not supported')

    numbers = [fragment.sequence_number for fragment in fragments]
    if numbers != list(range(fragments[0].total_count)):
        raise QueryException(f'Incomplete split response, have packets {numbers} '
                             f'of {fragments[0].total_count}')
    return b''.join(bytes(fragment.payload) for fragment in fragments)


def pack_byte(val):
    return struct.pack('<B', val)

def pack_long(val):
    return struct.pack('<l', val)

def pack_string(val):
    if isinstance(val, str):
        val = val.encode('utf-8')
    return val + b'\x00'


if __name__ == '__main__':
    host, port = sys.argv[1].rsplit(':', 1)
    with get_managed_query((host, int(port))) as query:
        print(query.info())
        print(query.players())

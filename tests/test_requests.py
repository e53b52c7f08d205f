import struct

import pytest

from a2sdecode.reader import TrailingData, UnexpectedEof
from a2sdecode.requests import (ChallengeRequest, InfoRequest, MalformedRequest, decode_info_request,
                                decode_player_request, decode_rules_request)

QUERY = b'Source Engine Query\x00'


def test_info_request():
    assert decode_info_request(QUERY) == InfoRequest('Source Engine Query', None, b'')


def test_info_request_with_challenge():
    request = decode_info_request(QUERY + struct.pack('<l', 0x4A5B6C7D))
    assert request.challenge == 0x4A5B6C7D
    assert request.remaining == b''


def test_info_request_keeps_short_padding():
    request = decode_info_request(QUERY + b'\xff\xff\xff')
    assert request.challenge is None
    assert request.remaining == b'\xff\xff\xff'


def test_info_request_keeps_bytes_after_challenge():
    request = decode_info_request(QUERY + struct.pack('<l', -1) + b'\x01\x02')
    assert request.challenge == -1
    assert request.remaining == b'\x01\x02'


def test_wrong_info_request():
    with pytest.raises(MalformedRequest) as e:
        decode_info_request(b'Source Engine Quer\x00')
    assert e.value.code == 'malformed_request'
    assert e.value.offset == 0


@pytest.mark.parametrize('decode', [decode_player_request, decode_rules_request])
def test_challenge_requests(decode):
    assert decode(struct.pack('<l', -1)) == ChallengeRequest(-1)
    assert decode(struct.pack('<l', 99)) == ChallengeRequest(99)
    with pytest.raises(TrailingData):
        decode(struct.pack('<l', 99) + b'\x00')
    with pytest.raises(UnexpectedEof):
        decode(b'\xff\xff')

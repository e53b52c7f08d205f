"""Decoders for the requests a client sends.

Useful on the server side, or to inspect captured traffic. The payload
starts after the -1 header and the request's tag byte.
"""

from dataclasses import dataclass
from typing import Optional

from a2sdecode.reader import (DecodeError, as_cursor, ensure_consumed, unpack_long,
                              unpack_string)

A2S_INFO_STRING = 'Source Engine Query'


@dataclass(frozen=True)
class InfoRequest:
    payload: str
    challenge: Optional[int] = None
    # Extra bytes some newer clients append; kept rather than rejected
    remaining: bytes = b''


@dataclass(frozen=True)
class ChallengeRequest:
    """A2S_PLAYER and A2S_RULES requests. -1 asks the server for a challenge."""
    challenge: int


def decode_info_request(payload):
    cursor = as_cursor(payload)
    start = cursor.offset
    text, cursor = unpack_string(cursor)
    if text != A2S_INFO_STRING:
        raise MalformedRequest(f'unexpected info request payload {text!r}', start)

    challenge = None
    if cursor.remaining() >= 4:
        challenge, cursor = unpack_long(cursor)
    return InfoRequest(text, challenge, bytes(cursor.rest()))


def decode_player_request(payload):
    return _decode_challenge_request(payload)


def decode_rules_request(payload):
    return _decode_challenge_request(payload)


def _decode_challenge_request(payload):
    challenge, cursor = unpack_long(as_cursor(payload))
    ensure_consumed(cursor)
    return ChallengeRequest(challenge)


class MalformedRequest(DecodeError):
    """Raised when a request's fixed payload does not match the protocol."""
    code = 'malformed_request'

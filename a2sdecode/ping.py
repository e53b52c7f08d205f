"""A2A_PING and S2C_CHALLENGE response decoders.

Both are tiny, and both reject anything left over after their one field.
"""

from a2sdecode.reader import as_cursor, ensure_consumed, unpack_long, unpack_string

# What Source servers answer to a ping, GoldSource servers send an empty string
SOURCE_PING_RESPONSE = '00000000000000'


def decode_ping(payload):
    text, cursor = unpack_string(as_cursor(payload))
    ensure_consumed(cursor)
    return text


def decode_challenge(payload):
    """Return the challenge number a server wants echoed back in the next request."""
    challenge, cursor = unpack_long(as_cursor(payload))
    ensure_consumed(cursor)
    return challenge

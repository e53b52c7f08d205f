import struct

import pytest


def cstr(text):
    return text.encode('utf-8') + b'\x00'


@pytest.fixture
def goldsource_info_payload():
    """Counter-Strike 1.6 answering with the obsolete 'm' response."""
    return (
        cstr('77.111.194.110:27015')
        + cstr('FR - VeryGames.net - Deatmatch - only surf_ski - ngR')
        + cstr('surf_ski')
        + cstr('cstrike')
        + cstr('Counter-Strike')
        + bytes([0x0C, 0x12, 0x2F])
        + b'dl'
        + b'\x00'                      # visibility
        + b'\x01'                      # is a Half-Life mod
        + cstr('www.counter-strike.net')
        + cstr('')
        + b'\x00'
        + bytes.fromhex('01000000')    # version
        + bytes.fromhex('009EF70A')    # size
        + b'\x00\x01'                  # type, dll
        + b'\x01\x00'                  # vac, bots
    )


@pytest.fixture
def source_info_payload():
    """Counter-Strike: Source without any extra data."""
    return (
        b'\x02'
        + cstr('game2xs.com Counter-Strike Source #1')
        + cstr('de_dust')
        + cstr('cstrike')
        + cstr('Counter-Strike: Source')
        + bytes.fromhex('F000')
        + bytes([0x05, 0x10, 0x04])
        + b'dl'
        + b'\x00\x00'
        + cstr('1.0.0.22')
    )


@pytest.fixture
def the_ship_info_payload():
    return (
        b'\x07'
        + cstr('Ship Server')
        + cstr('batavier')
        + cstr('ship')
        + cstr('The Ship')
        + bytes.fromhex('6009')
        + bytes([0x01, 0x05, 0x00])
        + b'lw'
        + b'\x00\x00'
        + bytes([0x01, 0x03, 0x03])
        + cstr('1.0.0.4')
    )


@pytest.fixture
def players_payload():
    return (
        b'\x02'
        + b'\x01' + cstr('[D]---->T.N.W<----') + struct.pack('<l', 14) + bytes.fromhex('B4970044')
        + b'\x02' + cstr('Killer !!!') + struct.pack('<l', 5) + bytes.fromhex('6924D943')
    )


@pytest.fixture
def the_ship_players_payload():
    payload = b'\x06'
    for i in range(5):
        payload += bytes([i]) + cstr(f'Shipmate{i + 1}') + struct.pack('<l', 0) + struct.pack('<f', -1.0)
    payload += b'\x07' + cstr('(1)LandLubber') + struct.pack('<l', 0) + bytes.fromhex('D38E6845')
    payload += struct.pack('<ll', 0, 2500) * 6
    return payload


@pytest.fixture
def rules_payload():
    return struct.pack('<h', 2) + cstr('sv_gravity') + cstr('800') + cstr('mp_friendlyfire') + cstr('0')

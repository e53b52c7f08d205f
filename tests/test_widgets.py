from datetime import datetime

import discord
import pytest

from a2sdecode.info import decode_goldsource_info, decode_source_info
from a2sdecode.player import decode_players
from a2sdecode.rules import RulesRecord, Rule
from utils import EMPTY_FIELD
from cogs.server_widgets import (create_offline_embed, create_players_embed, create_rules_embed,
                                 create_server_embed, playercount_color)

ADDRESS = ('1.2.3.4', 27015)
NOON = datetime(2021, 6, 1, 12, 34, 56)


def visible_fields(embed):
    return {field.name: field.value for field in embed.fields if field.name != EMPTY_FIELD}


def test_source_server_embed(source_info_payload):
    embed = create_server_embed(ADDRESS, decode_source_info(source_info_payload), NOON)
    assert embed.title == 'game2xs.com Counter-Strike Source #1'
    assert embed.description == 'Counter-Strike: Source'
    assert embed.author.name == '1.2.3.4:27015'
    assert embed.footer.text == 'Last updated: 12:34:56'
    assert visible_fields(embed) == {
        'Players': '5/16 (4 bots)',
        'Map': 'de_dust',
        'Server type': 'Dedicated',
        'Environment': 'Linux',
        'Password': 'No',
        'VAC': 'Insecure',
        'Version': '1.0.0.22',
    }
    # Padded to full rows of three
    assert len(embed.fields) % 3 == 0


def test_goldsource_server_embed(goldsource_info_payload):
    embed = create_server_embed('cs.example.com:27015', decode_goldsource_info(goldsource_info_payload), NOON)
    fields = visible_fields(embed)
    assert embed.author.name == 'cs.example.com:27015'
    assert fields['Players'] == '12/18'
    assert fields['VAC'] == 'Secured'
    assert 'Version' not in fields


def test_the_ship_server_embed(the_ship_info_payload):
    embed = create_server_embed(ADDRESS, decode_source_info(the_ship_info_payload), NOON)
    fields = visible_fields(embed)
    assert fields['Game mode'] == 'Elimination'
    assert fields['Server type'] == 'Listen'
    assert fields['Environment'] == 'Windows'


def test_unknown_server_type(source_info_payload):
    payload = bytearray(source_info_payload)
    payload[payload.index(b'dl')] = ord('x')
    embed = create_server_embed(ADDRESS, decode_source_info(bytes(payload)), NOON)
    assert visible_fields(embed)['Server type'] == 'Unknown (120)'


@pytest.mark.parametrize('players, max_players, color', [
    (16, 16, discord.Color.dark_red()),
    (13, 16, discord.Color.red()),
    (8, 16, discord.Color.orange()),
    (4, 16, discord.Color.gold()),
    (1, 16, discord.Color.green()),
    (0, 16, None),
    (0, 0, None),
])
def test_playercount_color(players, max_players, color):
    assert playercount_color(players, max_players) == color


def test_players_embed(players_payload):
    embed = create_players_embed(ADDRESS, decode_players(players_payload))
    assert embed.title == 'Players (2/2)'
    lines = embed.description.split('\n')
    assert lines[0].startswith('`  14`')
    assert lines[0].endswith('8m34s')
    assert 'Killer !!!' in lines[1]


def test_the_ship_players_embed(the_ship_players_payload):
    embed = create_players_embed(ADDRESS, decode_players(the_ship_players_payload))
    assert '0 deaths, $2500' in embed.description


def test_players_embed_limit(the_ship_players_payload):
    embed = create_players_embed(ADDRESS, decode_players(the_ship_players_payload), limit=4)
    assert embed.description.split('\n')[-1] == '...and 2 more'


def test_empty_players_embed():
    embed = create_players_embed(ADDRESS, decode_players(b''))
    assert embed.title == 'Players (0/0)'
    assert embed.description == 'No players online'


def test_rules_embed():
    record = RulesRecord(3, [Rule('sv_gravity', '800'), Rule('mp_timelimit', '25')], 'sv_conta')
    embed = create_rules_embed(ADDRESS, record)
    assert embed.title == 'Rules (3)'
    assert 'sv_gravity = 800\nmp_timelimit = 25' in embed.description
    assert embed.footer.text == 'Response was cut off after 2 rules'


def test_offline_embed():
    embed = create_offline_embed('1.2.3.4:27015', 'Timed out', NOON)
    assert embed.title == 'Server offline'
    assert embed.description == '`Timed out`'
    assert embed.footer.text == 'Last updated: 12:34:56'

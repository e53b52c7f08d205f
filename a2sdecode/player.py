"""A2S_PLAYER response decoder."""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from a2sdecode.reader import (as_cursor, ensure_consumed, unpack_byte, unpack_float,
                              unpack_long, unpack_many, unpack_opt_byte, unpack_string)


@dataclass(frozen=True)
class ShipPlayerExtension:
    deaths: int
    money: int


@dataclass(frozen=True)
class PlayerEntry:
    index: int
    name: str
    score: int
    duration: float  # seconds connected
    ship_extension: Optional[ShipPlayerExtension] = None


@dataclass(frozen=True)
class PlayerRecord:
    player_count: int
    player_data: List[PlayerEntry] = field(default_factory=list)


def decode_players(payload):
    """Decode a player payload.

    ``player_count`` includes players that are still connecting, and those
    have no entry, so fewer entries than declared is normal. The Ship sends
    a second list with deaths and money after the regular one; it is only
    attached when it has exactly one item per decoded player.
    """
    cursor = as_cursor(payload)

    # Some servers send nothing at all when nobody is connected
    player_count, cursor = unpack_opt_byte(cursor)
    if player_count is None:
        return PlayerRecord(0, [])

    players, cursor = unpack_many(_unpack_player, cursor, player_count)
    extensions, cursor = unpack_many(_unpack_ship_extension, cursor, player_count)

    if len(players) < player_count:
        logging.debug('Player response lists %s of %s players', len(players), player_count)

    if extensions and len(extensions) == len(players):
        players = [replace(player, ship_extension=extension)
                   for player, extension in zip(players, extensions)]
    elif extensions:
        logging.debug('Ignoring %s ship records for %s players', len(extensions), len(players))

    ensure_consumed(cursor)
    return PlayerRecord(player_count, players)


def _unpack_player(cursor):
    index, cursor = unpack_byte(cursor)
    name, cursor = unpack_string(cursor)
    score, cursor = unpack_long(cursor)
    duration, cursor = unpack_float(cursor)
    return PlayerEntry(index, name, score, duration), cursor


def _unpack_ship_extension(cursor):
    deaths, cursor = unpack_long(cursor)
    money, cursor = unpack_long(cursor)
    return ShipPlayerExtension(deaths, money), cursor

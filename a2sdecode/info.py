"""A2S_INFO response decoders.

There are three layouts in the wild and they are decoded by three separate
entry points. The message tag already tells Source ('I') and GoldSource
('m') apart; the pre-GoldSource layout has to be asked for explicitly.

Reference: https://developer.valvesoftware.com/wiki/Server_queries#A2S_INFO
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from a2sdecode.packet import MessageType, UnrecognizedMessageType
from a2sdecode.reader import (Unrecognized, as_cursor, ensure_consumed, lookup,
                              unpack_bool, unpack_byte, unpack_long, unpack_longlong,
                              unpack_null, unpack_opt_byte, unpack_short, unpack_string,
                              unpack_ushort)

# The Ship and its tutorial/variant builds. This is a list, not a range.
THE_SHIP_APP_IDS = frozenset([2400, 2401, 2402, 2412, 2430, 2405, 2406])

# Extra Data Flag bits
EDF_PORT = 0x80
EDF_STEAM_ID = 0x10
EDF_SOURCE_TV = 0x40
EDF_KEYWORDS = 0x20
EDF_GAME_ID = 0x01


class ServerType(Enum):
    DEDICATED = 'd'
    NON_DEDICATED = 'l'
    SOURCE_TV = 'p'

class Environment(Enum):
    LINUX = 'l'
    WINDOWS = 'w'
    MAC = 'm'

class ModType(Enum):
    SINGLE_AND_MULTIPLAYER = 0
    MULTIPLAYER_ONLY = 1

class ModDLL(Enum):
    HALF_LIFE = 0
    CUSTOM = 1

class TheShipGameMode(Enum):
    HUNT = 0
    ELIMINATION = 1
    DUEL = 2
    DEATHMATCH = 3
    VIP_TEAM = 4
    TEAM_ELIMINATION = 5


# GoldSource sends upper case letters, Source lower case
SERVER_TYPES = {
    ord('D'): ServerType.DEDICATED, ord('d'): ServerType.DEDICATED,
    ord('L'): ServerType.NON_DEDICATED, ord('l'): ServerType.NON_DEDICATED,
    ord('P'): ServerType.SOURCE_TV, ord('p'): ServerType.SOURCE_TV,
}

ENVIRONMENTS = {
    ord('L'): Environment.LINUX, ord('l'): Environment.LINUX,
    ord('W'): Environment.WINDOWS, ord('w'): Environment.WINDOWS,
    ord('M'): Environment.MAC, ord('m'): Environment.MAC,
    ord('O'): Environment.MAC, ord('o'): Environment.MAC,
}

MOD_TYPES = {member.value: member for member in ModType}
MOD_DLLS = {member.value: member for member in ModDLL}
THE_SHIP_GAME_MODES = {member.value: member for member in TheShipGameMode}


@dataclass(frozen=True)
class HalfLifeMod:
    link: str
    download_link: str
    version: int
    size: int
    mod_type: Union[ModType, Unrecognized]
    dll: Union[ModDLL, Unrecognized]


@dataclass(frozen=True)
class PreGoldSourceInfo:
    """Info from servers that predate VAC: no VAC flag and no bot count."""
    address: str
    name: str
    map: str
    folder: str
    game: str
    players: int
    max_players: int
    protocol: int
    server_type: Union[ServerType, Unrecognized]
    environment: Union[Environment, Unrecognized]
    visibility: bool
    mod_half_life: bool
    mod_fields: Optional[HalfLifeMod]


@dataclass(frozen=True)
class GoldSourceInfo:
    address: str
    name: str
    map: str
    folder: str
    game: str
    players: int
    max_players: int
    protocol: int
    server_type: Union[ServerType, Unrecognized]
    environment: Union[Environment, Unrecognized]
    visibility: bool
    mod_half_life: bool
    mod_fields: Optional[HalfLifeMod]
    vac: bool
    bots: int


@dataclass(frozen=True)
class TheShipFields:
    mode: Union[TheShipGameMode, Unrecognized]
    witnesses: int  # witnesses needed to arrest a player
    duration: int   # seconds a player must be witnessed before the arrest


@dataclass(frozen=True)
class ExtraDataFields:
    port: Optional[int] = None
    steam_id: Optional[int] = None
    source_tv_port: Optional[int] = None
    source_tv_name: Optional[str] = None
    keywords: Optional[str] = None
    game_id: Optional[int] = None


@dataclass(frozen=True)
class SourceInfo:
    protocol: int
    name: str
    map: str
    folder: str
    game: str
    app_id: int
    players: int
    max_players: int
    bots: int
    server_type: Union[ServerType, Unrecognized]
    environment: Union[Environment, Unrecognized]
    visibility: bool
    vac: bool
    the_ship: Optional[TheShipFields]
    version: str
    extra_data_flag: int
    extra_data_fields: ExtraDataFields

    @property
    def full_app_id(self):
        """App id taken from the 64 bit game id when the server sent one.

        The 16 bit app_id field truncates newer ids, the low 24 bits of the
        game id do not.
        """
        if self.extra_data_fields.game_id is None:
            return self.app_id
        return self.extra_data_fields.game_id & 0xFFFFFF


InfoRecord = Union[PreGoldSourceInfo, GoldSourceInfo, SourceInfo]


def decode_info(typ, payload, strict=True):
    """Decode an info payload with the decoder matching its message tag."""
    if isinstance(typ, Unrecognized):
        raise UnrecognizedMessageType(typ.raw, 0)
    if typ == MessageType.INFO_RESPONSE:
        return decode_source_info(payload, strict)
    if typ == MessageType.GOLDSOURCE_INFO_RESPONSE:
        return decode_goldsource_info(payload, strict)
    raise UnrecognizedMessageType(typ.value, 0)


def decode_source_info(payload, strict=True):
    """Decode a Source ('I') info payload.

    With ``strict`` the payload must be used up completely. Lenient mode
    accepts leftovers, which old servers produce when they truncate the
    response to a single packet.
    """
    cursor = as_cursor(payload)
    protocol, cursor = unpack_byte(cursor)
    name, cursor = unpack_string(cursor)
    map_name, cursor = unpack_string(cursor)
    folder, cursor = unpack_string(cursor)
    game, cursor = unpack_string(cursor)
    app_id, cursor = unpack_short(cursor)
    players, cursor = unpack_byte(cursor)
    max_players, cursor = unpack_byte(cursor)
    bots, cursor = unpack_byte(cursor)
    server_type, cursor = _unpack_enum(SERVER_TYPES, cursor)
    environment, cursor = _unpack_enum(ENVIRONMENTS, cursor)
    visibility, cursor = unpack_bool(cursor)
    vac, cursor = unpack_bool(cursor)

    the_ship = None
    if app_id in THE_SHIP_APP_IDS:
        the_ship, cursor = _unpack_the_ship(cursor)

    version, cursor = unpack_string(cursor)

    # Older servers stop after the version string
    edf, cursor = unpack_opt_byte(cursor)
    if edf is None:
        edf = 0
    extra_data_fields, cursor = _unpack_extra_data(cursor, edf)

    _finish(cursor, strict)
    return SourceInfo(
        protocol=protocol,
        name=name,
        map=map_name,
        folder=folder,
        game=game,
        app_id=app_id,
        players=players,
        max_players=max_players,
        bots=bots,
        server_type=server_type,
        environment=environment,
        visibility=visibility,
        vac=vac,
        the_ship=the_ship,
        version=version,
        extra_data_flag=edf,
        extra_data_fields=extra_data_fields,
    )


def decode_goldsource_info(payload, strict=True):
    """Decode an obsolete GoldSource ('m') info payload."""
    fields, cursor = _unpack_goldsource_fields(as_cursor(payload))
    vac, cursor = unpack_bool(cursor)
    bots, cursor = unpack_byte(cursor)
    _finish(cursor, strict)
    return GoldSourceInfo(vac=vac, bots=bots, **fields)


def decode_pre_goldsource_info(payload, strict=True):
    """Decode the GoldSource layout as sent before the VAC and bot bytes existed."""
    fields, cursor = _unpack_goldsource_fields(as_cursor(payload))
    _finish(cursor, strict)
    return PreGoldSourceInfo(**fields)


def _unpack_goldsource_fields(cursor):
    fields = {}
    fields['address'], cursor = unpack_string(cursor)
    fields['name'], cursor = unpack_string(cursor)
    fields['map'], cursor = unpack_string(cursor)
    fields['folder'], cursor = unpack_string(cursor)
    fields['game'], cursor = unpack_string(cursor)
    fields['players'], cursor = unpack_byte(cursor)
    fields['max_players'], cursor = unpack_byte(cursor)
    fields['protocol'], cursor = unpack_byte(cursor)
    fields['server_type'], cursor = _unpack_enum(SERVER_TYPES, cursor)
    fields['environment'], cursor = _unpack_enum(ENVIRONMENTS, cursor)
    fields['visibility'], cursor = unpack_bool(cursor)
    fields['mod_half_life'], cursor = unpack_bool(cursor)

    fields['mod_fields'] = None
    if fields['mod_half_life']:
        fields['mod_fields'], cursor = _unpack_mod_fields(cursor)
    return fields, cursor


def _unpack_mod_fields(cursor):
    link, cursor = unpack_string(cursor)
    download_link, cursor = unpack_string(cursor)
    _, cursor = unpack_null(cursor)
    version, cursor = unpack_long(cursor)
    size, cursor = unpack_long(cursor)
    mod_type, cursor = _unpack_enum(MOD_TYPES, cursor)
    dll, cursor = _unpack_enum(MOD_DLLS, cursor)
    return HalfLifeMod(link, download_link, version, size, mod_type, dll), cursor


def _unpack_the_ship(cursor):
    mode, cursor = _unpack_enum(THE_SHIP_GAME_MODES, cursor)
    witnesses, cursor = unpack_byte(cursor)
    duration, cursor = unpack_byte(cursor)
    return TheShipFields(mode, witnesses, duration), cursor


def _unpack_extra_data(cursor, edf):
    # Bits are independent, but the fields always come in this order
    fields = {}
    if edf & EDF_PORT:
        fields['port'], cursor = unpack_ushort(cursor)
    if edf & EDF_STEAM_ID:
        fields['steam_id'], cursor = unpack_longlong(cursor)
    if edf & EDF_SOURCE_TV:
        fields['source_tv_port'], cursor = unpack_ushort(cursor)
        fields['source_tv_name'], cursor = unpack_string(cursor)
    if edf & EDF_KEYWORDS:
        fields['keywords'], cursor = unpack_string(cursor)
    if edf & EDF_GAME_ID:
        fields['game_id'], cursor = unpack_longlong(cursor)
    return ExtraDataFields(**fields), cursor


def _unpack_enum(table, cursor):
    raw, cursor = unpack_byte(cursor)
    return lookup(table, raw), cursor


def _finish(cursor, strict):
    if strict:
        ensure_consumed(cursor)
    elif not cursor.at_end():
        logging.debug('Ignoring %s trailing bytes after info response', cursor.remaining())

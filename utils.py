import discord
import logging

from a2sdecode.info import ServerType, Environment
from a2sdecode.reader import Unrecognized


DEFAULTS = {
    "command_prefix": "r!",
    "query_timeout": "5",
    "query_strict_info": "false",
    "widget_interval": "30",
    "error_message_emoji": ":no_entry_sign:",
    "log_directory": "logs",
}

SERVER_TYPE_NAMES = {
    ServerType.DEDICATED: "Dedicated",
    ServerType.NON_DEDICATED: "Listen",
    ServerType.SOURCE_TV: "SourceTV",
}

# These are special characters that can not be seen
EMPTY_FIELD = "‏‎ "

ENVIRONMENT_NAMES = {
    Environment.LINUX: "Linux",
    Environment.WINDOWS: "Windows",
    Environment.MAC: "Mac",
}


class Config:

    def __init__(self, path: str = "config.txt"):
        self.path = path
        self.update()

    def update(self):
        self.config = {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for line in f.readlines():
                    line = line.strip("\n").split("=", 1)
                    if len(line) == 2:
                        self.config[line[0].strip()] = line[1].strip()
        except FileNotFoundError:
            logging.warning('Config file %s not found, using defaults', self.path)

    def get(self, key: str, alternative_value=None, update_config=False):
        if update_config:
            self.update()
        try:
            res = self.config[key]
        except KeyError:
            res = alternative_value if alternative_value is not None else DEFAULTS.get(key)
        return res

    def get_float(self, key: str, alternative_value=None):
        return float(self.get(key, alternative_value))

    def get_bool(self, key: str, alternative_value=None):
        return str(self.get(key, alternative_value)).lower() in ("1", "true", "yes", "on")


def parse_address(address: str, default_port: int = 27015):
    """ Turn "host:port" (port optional) into a (host, port) tuple """
    host, sep, port = address.strip().rpartition(":")
    if not sep:
        return address.strip(), default_port
    if not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid server address {address!r}")
    return host, int(port)


def enum_name(value, names=None):
    if isinstance(value, Unrecognized):
        return f"Unknown ({value.raw})"
    return (names or {}).get(value, value.name.replace("_", " ").title())


def format_duration(seconds):
    seconds = max(int(seconds), 0)
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    output = "%dh%dm%ds" % (h, m, s)
    if output.startswith("0h"):
        output = output.replace("0h", "", 1)
    if output.startswith("0m"):
        output = output.replace("0m", "", 1)
    return output


def add_empty_fields(embed):
    try: fields = len(embed.fields)
    except AttributeError: fields = 0
    if fields > 3:
        empty_fields_to_add = 3 - (fields % 3)
        if empty_fields_to_add in [1, 2]:
            for i in range(empty_fields_to_add):
                embed.add_field(name=EMPTY_FIELD, value=EMPTY_FIELD)
    return embed


def base_embed(address, title: str = None, description: str = None, color=None):
    if isinstance(address, tuple):
        address = "%s:%s" % address
    embed = discord.Embed(title=title, description=description, color=color)
    embed.set_author(name=address)
    return embed

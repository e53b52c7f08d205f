"""A2S_RULES response decoder."""

import logging
from dataclasses import dataclass, field
from typing import List

from a2sdecode.reader import TrailingData, as_cursor, unpack_many, unpack_short, unpack_string


@dataclass(frozen=True)
class Rule:
    name: str
    value: str


@dataclass(frozen=True)
class RulesRecord:
    """Decoded rules.

    Old engines squeeze the rules into a single packet and cut the last one
    off mid-way; whatever could not be decoded is kept in ``remaining``.
    """
    rule_count: int
    rules: List[Rule] = field(default_factory=list)
    remaining: str = ''


def decode_rules(payload):
    cursor = as_cursor(payload)
    rule_count, cursor = unpack_short(cursor)
    rules, cursor = unpack_many(_unpack_rule, cursor, rule_count)

    remaining = bytes(cursor.rest())
    if remaining and len(rules) == rule_count:
        raise TrailingData(f'{len(remaining)} bytes after the last rule', cursor.offset)
    if remaining:
        logging.debug('Rules response truncated after %s of %s rules', len(rules), rule_count)

    return RulesRecord(rule_count, rules, remaining.decode('utf-8', errors='replace'))


def _unpack_rule(cursor):
    name, cursor = unpack_string(cursor)
    value, cursor = unpack_string(cursor)
    return Rule(name, value), cursor

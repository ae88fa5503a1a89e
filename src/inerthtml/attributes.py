"""Quote-aware key/value splitting for tag attributes and inline CSS.

Neither HTML attributes nor CSS declarations use backslash escapes for
quotes, so quoted runs can simply be blanked out before splitting. Separators
inside quotes then cannot be mistaken for structure::

    text = 'foo="a b=c" bar=off'
    flat = 'foo=_______ bar=off'
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from .checks import CheckerError, UnknownCheckerError
from .entities import decode_attribute, encode_attribute
from .rules import Rule, find_rule
from .tokenizer import unprotect

if TYPE_CHECKING:
    from .sanitizer import Sanitizer


class MapEvents(Protocol):
    def unterminated_map_string(self, text: str) -> None: ...

    def bad_map_key(self, key: str) -> None: ...


_QUOTED = re.compile(r"\"[^\"]*(\"|\Z)|'[^']*('|\Z)")
_KEY = re.compile(r"[A-Za-z0-9_-]+")
# PHP-style trim set; wider Unicode whitespace stays part of the value.
_TRIM = " \t\n\r\0\x0b"


def parse_map(text: str, item_sep: str, key_sep: str, events: MapEvents) -> dict[str, str | None]:
    """Split `text` into an ordered ``{key: raw value}`` map.

    ``key`` without separator maps to None, ``key=`` to ``""``. Keys are
    always non-empty and made of ``[A-Za-z0-9_-]``; other keys, including an
    empty one before a separator (``=x``), are reported through `events` and
    dropped. Blank items are skipped. An unterminated quote discards the
    whole text.
    """
    unterminated = False

    def blank(m: re.Match[str]) -> str:
        nonlocal unterminated
        if not m.group(1) and not m.group(2):
            unterminated = True
        return "_" * len(m.group(0))

    flat = _QUOTED.sub(blank, text)
    if unterminated:
        events.unterminated_map_string(text)
        return {}

    result: dict[str, str | None] = {}
    pos = 0
    for item in flat.split(item_sep):
        raw_key, sep, _ = item.partition(key_sep)
        key = raw_key.strip(_TRIM)
        if not key and not sep:
            pass
        elif not _KEY.fullmatch(key):
            events.bad_map_key(key)
        elif sep:
            value_start = pos + len(raw_key) + len(key_sep)
            result[key] = text[value_start : pos + len(item)].strip(_TRIM)
        else:
            result[key] = None
        pos += len(item) + len(item_sep)
    return result


def _unquote(sanitizer: Sanitizer, value: str) -> str:
    """Return the inside of a quoted value, dropping anything after the closing quote."""
    quote = value[0]
    inner = value[1:]
    close = inner.find(quote)
    if close != len(inner) - 1:
        sanitizer.attribute_value_tail(value)
    return inner[:close]


def parse_attributes(sanitizer: Sanitizer, rules: Sequence[Rule], text: str) -> dict[str, str]:
    """Validate the raw attribute text of an opening tag.

    Returns ``{name: encoded value}`` for every attribute that is allowed by
    `rules` or the policy's global rules and whose value passed its checker.
    Values are ready to be placed between double quotes.
    """
    policy = sanitizer.policy
    result: dict[str, str] = {}

    for name, raw in parse_map(text, " ", "=", sanitizer).items():
        name = name.lower()
        rule = find_rule(rules, name) or find_rule(policy.global_attributes, name)
        if rule is None:
            sanitizer.bad_attribute(name, raw)
            continue

        if raw is None:
            raw = name
        if raw[:1] in ('"', "'"):
            raw = _unquote(sanitizer, raw)
        value = decode_attribute(unprotect(raw))

        if rule.checker:
            try:
                value = policy.checks.check(rule.checker, value, sanitizer)
            except UnknownCheckerError as exc:
                sanitizer.undefined_checker(exc.name, f'attribute "{name}"')
                continue
            except CheckerError as exc:
                sanitizer.bad_attribute_value(name, value, exc)
                continue

        result[name] = encode_attribute(value)

    return result

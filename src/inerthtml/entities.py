"""HTML character reference escaping and decoding.

Escaping is the "no double encoding" flavour: ``&`` that already starts a
valid character reference is left alone, every other ``&`` and all ``<`` /
``>`` are escaped. Quotes are not touched in text.

Decoding follows the attribute-value rules of WHATWG section 13.2.5.72:
named references, decimal and hex numeric references, and the legacy
semicolon-less names (only when not followed by an alphanumeric or ``=``).
"""

from __future__ import annotations

import html.entities
import re

# Keys of html5 include the trailing semicolon where one is required
# ("amp;", "lang;"); legacy names appear both with and without it.
_HTML5_ENTITIES = html.entities.html5

NAMED_ENTITIES: dict[str, str] = {}
for _key, _value in _HTML5_ENTITIES.items():
    NAMED_ENTITIES[_key[:-1] if _key.endswith(";") else _key] = _value

LEGACY_ENTITIES = frozenset(key for key in _HTML5_ENTITIES if not key.endswith(";"))

# C1 remapping for numeric references (WHATWG 13.2.5.80).
NUMERIC_REPLACEMENTS = {
    0x00: "\ufffd",
    0x80: "\u20ac",
    0x82: "\u201a",
    0x83: "\u0192",
    0x84: "\u201e",
    0x85: "\u2026",
    0x86: "\u2020",
    0x87: "\u2021",
    0x88: "\u02c6",
    0x89: "\u2030",
    0x8A: "\u0160",
    0x8B: "\u2039",
    0x8C: "\u0152",
    0x8E: "\u017d",
    0x91: "\u2018",
    0x92: "\u2019",
    0x93: "\u201c",
    0x94: "\u201d",
    0x95: "\u2022",
    0x96: "\u2013",
    0x97: "\u2014",
    0x98: "\u02dc",
    0x99: "\u2122",
    0x9A: "\u0161",
    0x9B: "\u203a",
    0x9C: "\u0153",
    0x9E: "\u017e",
    0x9F: "\u0178",
}

_CHAR_REF = re.compile(r"&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")
_AMP_OR_BRACKET = re.compile(r"&|<|>")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def is_valid_reference(body: str) -> bool:
    """Check the part between ``&`` and ``;`` of a character reference."""
    if body.startswith(("#x", "#X")):
        digits = body[2:].lstrip("0")
        return len(digits) <= 6 and _codepoint_ok(int(digits or "0", 16))
    if body.startswith("#"):
        digits = body[1:].lstrip("0")
        return len(digits) <= 7 and _codepoint_ok(int(digits or "0", 10))
    return body + ";" in _HTML5_ENTITIES


def _codepoint_ok(codepoint: int) -> bool:
    return 0 < codepoint <= 0x10FFFF and not 0xD800 <= codepoint <= 0xDFFF


def escape_text(text: str) -> str:
    """Escape markup delimiters without encoding existing references twice."""
    if "&" not in text and "<" not in text and ">" not in text:
        return text

    keep: set[int] = set()
    for m in _CHAR_REF.finditer(text):
        if is_valid_reference(m.group(1)):
            keep.add(m.start())

    def replace(m: re.Match[str]) -> str:
        ch = m.group(0)
        if ch == "<":
            return "&lt;"
        if ch == ">":
            return "&gt;"
        return "&" if m.start() in keep else "&amp;"

    return _AMP_OR_BRACKET.sub(replace, text)


def encode_attribute(value: str) -> str:
    """Encode a decoded value for use inside a double-quoted attribute."""
    return value.replace("&", "&amp;").replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


def decode_numeric_entity(digits: str, *, is_hex: bool = False) -> str | None:
    digits = digits.lstrip("0") or "0"
    if len(digits) > 8:
        return "\ufffd"
    try:
        codepoint = int(digits, 16 if is_hex else 10)
    except ValueError:
        return None
    if codepoint in NUMERIC_REPLACEMENTS:
        return NUMERIC_REPLACEMENTS[codepoint]
    if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
        return "\ufffd"
    return chr(codepoint)


def decode_attribute(text: str) -> str:
    """Decode every character reference the way a browser does in attributes."""
    if "&" not in text:
        return text

    result: list[str] = []
    i = 0
    length = len(text)
    while i < length:
        amp = text.find("&", i)
        if amp == -1:
            result.append(text[i:])
            break
        result.append(text[i:amp])
        i = amp
        j = i + 1

        if j < length and text[j] == "#":
            j += 1
            is_hex = j < length and text[j] in "xX"
            if is_hex:
                j += 1
            start = j
            while j < length and (text[j] in _HEX_DIGITS if is_hex else text[j].isdigit()):
                j += 1
            decoded = decode_numeric_entity(text[start:j], is_hex=is_hex) if j > start else None
            if decoded is None:
                result.append(text[i:j])
                i = j
                continue
            result.append(decoded)
            i = j + 1 if j < length and text[j] == ";" else j
            continue

        while j < length and text[j].isascii() and text[j].isalnum():
            j += 1
        name = text[i + 1 : j]
        if not name:
            result.append("&")
            i += 1
            continue

        if j < length and text[j] == ";" and name + ";" in _HTML5_ENTITIES:
            result.append(NAMED_ENTITIES[name])
            i = j + 1
            continue

        # Longest legacy prefix, honoring the attribute-value exception.
        for k in range(len(name), 0, -1):
            prefix = name[:k]
            if prefix in LEGACY_ENTITIES:
                after = i + 1 + k
                follower = text[after] if after < length else ""
                if follower and (follower.isalnum() or follower == "="):
                    break
                result.append(NAMED_ENTITIES[prefix])
                i = after
                break
        else:
            result.append(text[i:j])
            i = j
            continue
        if i == amp:
            result.append("&")
            i += 1

    return "".join(result)

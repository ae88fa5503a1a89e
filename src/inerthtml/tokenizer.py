"""Escaping pre-pass, tag scanner and post-pass.

The sanitizer never parses raw markup. `prepare()` escapes the whole input
first, `tokenize()` then finds ``&lt;tag ...&gt;`` shaped runs in the escaped
buffer, and `finish()` undoes the temporary protection of literal ``&lt;`` /
``&gt;`` once the validated tags have been written back.
"""

from __future__ import annotations

import re

from .entities import escape_text
from .tokens import Token

# Literal "&lt;" / "&gt;" in the input would look like tag delimiters after
# escaping, so they are encoded once more until finish().
_PROTECT = re.compile(r"&([lg]t;)")
_UNPROTECT = re.compile(r"&amp;([lg]t;)")

_COMMENT = re.compile(r"&lt;!--(.*?)(?:--&gt;|\Z)", re.DOTALL)
_LINE_BREAK = re.compile(r"\r\n|\n|\r")

# Outside of kept comment markers the buffer holds no raw "<" or ">", so a
# tag token can never contain or straddle a marker.
_TAG = r"&lt;(/?)([a-zA-Z0-9]+)(\s[^<>]*?)?(/?)&gt;"
_TAG_PATTERN = re.compile(_TAG)
_TAG_OR_COMMENT_PATTERN = re.compile(_TAG + r"|<!--|-->")


def prepare(text: str, *, keep_comments: bool = False) -> str:
    output = _PROTECT.sub(r"&amp;\1", text)
    output = escape_text(output)
    replacement = r"<!--\1-->" if keep_comments else ""
    return _COMMENT.sub(replacement, output)


def finish(text: str, *, line_breaks: str | None = "\n") -> str:
    output = unprotect(text)
    if line_breaks is not None:
        output = _LINE_BREAK.sub(lambda _: line_breaks, output)
    return output


def unprotect(text: str) -> str:
    """Undo `prepare()`'s extra encoding of literal ``&lt;`` / ``&gt;``."""
    return _UNPROTECT.sub(r"&\1", text)


def tokenize(buffer: str, *, comments: bool = False) -> list[Token]:
    pattern = _TAG_OR_COMMENT_PATTERN if comments else _TAG_PATTERN
    tokens: list[Token] = []
    for m in pattern.finditer(buffer):
        text = m.group(0)
        if m.group(2) is None:
            marker = "start" if text == "<!--" else "end"
            tokens.append(Token(text, m.start(), comment=marker))
            continue
        tokens.append(
            Token(
                text,
                m.start(),
                closing=bool(m.group(1)),
                name=m.group(2),
                attributes=m.group(3) or "",
                self_closing=bool(m.group(4)),
            )
        )
    return tokens

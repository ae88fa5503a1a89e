"""Glob-style matching for attribute and CSS property names.

Only ``*`` (any run, including empty) and ``?`` (exactly one character) are
special; every other character matches itself. Matching is case-sensitive.
"""

from __future__ import annotations

WILDCARDS = frozenset("*?")


def has_wildcard(pattern: str) -> bool:
    return any(ch in WILDCARDS for ch in pattern)


def match(pattern: str, name: str) -> bool:
    """Return True if `name` matches the whole of `pattern`."""
    p = n = 0
    star = -1
    resume = 0
    plen = len(pattern)
    nlen = len(name)

    while n < nlen:
        if p < plen and (pattern[p] == "?" or (pattern[p] != "*" and pattern[p] == name[n])):
            p += 1
            n += 1
        elif p < plen and pattern[p] == "*":
            # Remember the star and try matching it against nothing first.
            star = p
            resume = n
            p += 1
        elif star != -1:
            p = star + 1
            resume += 1
            n = resume
        else:
            return False

    while p < plen and pattern[p] == "*":
        p += 1
    return p == plen

"""Rendering of validated tags."""

from __future__ import annotations

from collections.abc import Mapping


def serialize_start_tag(name: str, attrs: Mapping[str, str] | None = None) -> str:
    """Render ``<name a="v" ...>``; `attrs` values must already be encoded."""
    parts: list[str] = ["<", name]
    for key, value in (attrs or {}).items():
        parts.extend([" ", key, '="', value, '"'])
    parts.append(">")
    return "".join(parts)


def serialize_end_tag(name: str) -> str:
    return f"</{name}>"

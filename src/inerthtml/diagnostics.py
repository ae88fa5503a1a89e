"""Warnings produced while sanitizing.

Every discarded or altered construct produces one `SanitizeWarning`. Warnings
never abort sanitizing; they describe what was left escaped and where.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .tokens import StackItem, Token


class SanitizeWarning:
    """A non-fatal diagnostic tied to a token.

    `opener` is the stack item of the opening tag involved (if any) and
    `closer` the closing token (if any). Positions reported by
    `opener_info` / `closer_info` are offsets into the escaped working
    buffer; the ``tag`` text is the escaped form as it appeared there.
    """

    __slots__ = ("closer", "message", "opener", "token_index")

    def __init__(
        self,
        message: str,
        token_index: int,
        opener: StackItem | None = None,
        closer: Token | None = None,
    ) -> None:
        self.message = message
        self.token_index = token_index
        self.opener = opener
        self.closer = closer

    @property
    def opener_info(self) -> dict[str, Any] | None:
        if self.opener is None:
            return None
        token = self.opener.token
        return {"tag_name": token.name, "tag": token.text, "pos": token.start}

    @property
    def closer_info(self) -> dict[str, Any] | None:
        if self.closer is None:
            return None
        return {"tag_name": self.closer.name, "tag": self.closer.text, "pos": self.closer.start}

    def as_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "token_index": self.token_index,
            "opener": self.opener_info,
            "closer": self.closer_info,
        }

    def __repr__(self) -> str:
        return f"SanitizeWarning({self.message!r}, token_index={self.token_index})"

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SanitizeWarning):
            return NotImplemented
        return (
            self.message == other.message
            and self.token_index == other.token_index
            and self.opener == other.opener
            and self.closer == other.closer
        )

    __hash__ = None  # type: ignore[assignment]


class Diagnostics:
    """Append-only warning log.

    A disabled log accepts `warn()` calls and records nothing, which keeps
    pathological inputs with huge warning counts cheap.
    """

    __slots__ = ("_items", "enabled")

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self._items: list[SanitizeWarning] = []

    def warn(
        self,
        message: str,
        token_index: int,
        opener: StackItem | None = None,
        closer: Token | None = None,
    ) -> None:
        if self.enabled:
            self._items.append(SanitizeWarning(message, token_index, opener, closer))

    def clear(self) -> None:
        self._items.clear()

    def __iter__(self) -> Iterator[SanitizeWarning]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> SanitizeWarning:
        return self._items[index]

    def as_list(self) -> list[SanitizeWarning]:
        return list(self._items)

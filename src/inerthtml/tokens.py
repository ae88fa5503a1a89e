from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

CommentMarker = Literal["start", "end"]


@dataclass(frozen=True, slots=True)
class Token:
    """One tag (or comment marker) found in the escaped buffer.

    `start` is an offset into the escaped working buffer, not into the
    original input. `attributes` is the raw, still escaped text between the
    tag name and the closing delimiter (``" href=\"x\""``), or ``""``.
    """

    text: str
    start: int
    closing: bool = False
    name: str = ""
    attributes: str = ""
    self_closing: bool = False
    comment: CommentMarker | None = None

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def tag(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class StackItem:
    """An opening tag waiting for its closer.

    `shift` is the rewriter's cumulative length delta at the time the item
    was created; ``token.start + shift`` is where the token sat in the output
    at that moment.
    """

    tag: str
    token: Token
    shift: int = 0

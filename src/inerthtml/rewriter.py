from __future__ import annotations

from .tokens import StackItem, Token


class Rewriter:
    """Replaces validated tags in the escaped buffer.

    Edits are recorded against offsets of the original escaped buffer and
    applied in one left-to-right pass by `apply()`, so the order in which
    pairs are validated does not matter for correctness. `shift` still tracks
    the cumulative length delta so stack items can report where their token
    sits in the output at the time they were captured.
    """

    __slots__ = ("_edits", "buffer", "shift")

    def __init__(self, buffer: str) -> None:
        self.buffer = buffer
        self.shift = 0
        self._edits: dict[int, tuple[int, str]] = {}

    def position(self, item: StackItem) -> int:
        return item.token.start + item.shift

    def replace(self, token: Token, replacement: str) -> int:
        """Schedule `replacement` in place of `token` and return the length delta."""
        if token.start in self._edits:
            raise ValueError(f"token at {token.start} was already replaced")
        self._edits[token.start] = (token.end, replacement)
        delta = len(replacement) - len(token.text)
        self.shift += delta
        return delta

    def __len__(self) -> int:
        return len(self._edits)

    def apply(self) -> str:
        if not self._edits:
            return self.buffer
        parts: list[str] = []
        pos = 0
        for start in sorted(self._edits):
            end, replacement = self._edits[start]
            parts.append(self.buffer[pos:start])
            parts.append(replacement)
            pos = end
        parts.append(self.buffer[pos:])
        return "".join(parts)

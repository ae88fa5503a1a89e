"""Named value checkers for attribute values and CSS declarations.

A checker is one validator or a list of them; a value is accepted only if
every member accepts it. Validators come in two kinds:

- `Pattern`: a regular expression. Plain strings are matched from the start
  of the value (``re.match``); precompiled patterns are used as written
  (``search``), which allows unanchored or flag-carrying expressions.
  The default checkers are ASCII-only: ``\\w`` and ``\\d`` do not match
  other scripts.
- `Predicate`: a callable ``(value, sanitizer) -> bool | str``. ``True``
  accepts the value as is, ``False`` rejects it and a string accepts it in
  the returned, transformed form.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .sanitizer import Sanitizer

PredicateFunc = Callable[[str, "Sanitizer"], Union[bool, str]]


class CheckerError(Exception):
    """A value could not be accepted by a checker."""


class UnknownCheckerError(CheckerError):
    def __init__(self, name: str) -> None:
        super().__init__(f'undefined checker "{name}"')
        self.name = name


class ValueRejectedError(CheckerError):
    def __init__(self, value: str, reason: str | None = None) -> None:
        super().__init__(reason or "rejected by checker")
        self.value = value
        self.reason = reason


@dataclass(frozen=True, slots=True)
class Pattern:
    regex: re.Pattern[str]
    anchored: bool = True

    @classmethod
    def of(cls, pattern: str | re.Pattern[str], flags: int = 0) -> Pattern:
        if isinstance(pattern, re.Pattern):
            return cls(pattern, anchored=False)
        return cls(re.compile(pattern, flags), anchored=True)

    def __call__(self, value: str, sanitizer: Sanitizer) -> bool:
        found = self.regex.match(value) if self.anchored else self.regex.search(value)
        if found is None:
            raise ValueRejectedError(value, f"value mismatching {self.regex.pattern}")
        return True


@dataclass(frozen=True, slots=True)
class Predicate:
    func: PredicateFunc

    def __call__(self, value: str, sanitizer: Sanitizer) -> bool | str:
        return self.func(value, sanitizer)


Validator = Union[Pattern, Predicate]


def compile_checker(spec: Any) -> tuple[Validator, ...]:
    """Normalize one checker entry to a tuple of validators."""
    items = spec if isinstance(spec, (list, tuple)) else [spec]
    validators: list[Validator] = []
    for item in items:
        if isinstance(item, (Pattern, Predicate)):
            validators.append(item)
        elif isinstance(item, (str, re.Pattern)):
            validators.append(Pattern.of(item))
        elif callable(item):
            validators.append(Predicate(item))
        else:
            raise TypeError(f"unsupported checker member: {item!r}")
    if not validators:
        raise ValueError("checker must contain at least one validator")
    return tuple(validators)


class CheckerRegistry(Mapping[str, tuple[Validator, ...]]):
    """Read-only mapping of checker name to its validators."""

    __slots__ = ("_checkers",)

    def __init__(self, checkers: Mapping[str, Any] | None = None) -> None:
        self._checkers: dict[str, tuple[Validator, ...]] = {}
        for name, spec in (checkers or {}).items():
            self._checkers[str(name)] = compile_checker(spec)

    def __getitem__(self, name: str) -> tuple[Validator, ...]:
        return self._checkers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._checkers)

    def __len__(self) -> int:
        return len(self._checkers)

    def __repr__(self) -> str:
        return f"CheckerRegistry({sorted(self._checkers)!r})"

    def merged(self, checkers: Mapping[str, Any]) -> CheckerRegistry:
        merged = CheckerRegistry()
        merged._checkers = {**self._checkers, **CheckerRegistry(checkers)._checkers}
        return merged

    def check(self, name: str, value: str, sanitizer: Sanitizer) -> str:
        """Run `value` through every validator of checker `name`.

        Returns the accepted value, possibly transformed by a predicate.
        """
        validators = self._checkers.get(name)
        if validators is None:
            raise UnknownCheckerError(name)

        for validator in validators:
            result = validator(value, sanitizer)
            if result is False:
                raise ValueRejectedError(value)
            if result is not True:
                value = str(result)
        return value


def _ascii(pattern: str) -> Pattern:
    return Pattern.of(pattern, re.ASCII)


DEFAULT_CHECKS: dict[str, Any] = {
    "filename": _ascii(r"[\w\- .]+\Z"),
    "lang2": _ascii(r"\w\w\Z"),
    "mime": _ascii(r"[\w-]+/[\w-]+\Z"),
    "datetime": _ascii(r"\d\d\d\d-\d\d-\d\dT\d\d:\d\d:\d\d\w*\Z"),
    "url": [_ascii(r"((https?|ftp)://|/[^\\/]|#)"), _ascii(r"[^\\]+\Z")],
    "imgurl": [_ascii(r"((https?|ftp)://|/[^\\/]|data:image/\w+;base64,)"), _ascii(r"[^\\]+\Z")],
    "map": _ascii(r"#[\w\- .]+\Z"),
}

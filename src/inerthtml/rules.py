"""Attribute rules and tag specifications.

A rule is written compactly as ``[!]name[ checker]``:

- ``!`` marks the attribute as required; a tag missing it is discarded.
- ``name`` is the attribute (or CSS property) name and may contain ``*`` and
  ``?`` wildcards, e.g. ``data-*``.
- ``checker`` names an entry of the policy's checkers. Without one the value
  is kept unchecked.

A tag specification is either a list of rules (optionally for a single tag
such as ``<br>`` that has no closer) or an alias of another tag, in which case
the alias target's rules apply and the target's name is emitted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .wildcard import has_wildcard, match


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    checker: str | None = None
    required: bool = False

    @classmethod
    def parse(cls, text: str) -> Rule:
        text = text.strip()
        required = text.startswith("!")
        name, _, checker = text.lstrip("!").partition(" ")
        if not name:
            raise ValueError(f"empty rule name in {text!r}")
        return cls(name, checker.strip() or None, required)

    def matches(self, name: str) -> bool:
        if has_wildcard(self.name):
            return match(self.name, name)
        return self.name == name

    def __str__(self) -> str:
        prefix = "!" if self.required else ""
        return f"{prefix}{self.name} {self.checker}" if self.checker else f"{prefix}{self.name}"


@dataclass(frozen=True, slots=True)
class TagRules:
    rules: tuple[Rule, ...] = ()
    single: bool = False


@dataclass(frozen=True, slots=True)
class TagAlias:
    target: str


TagSpec = TagRules | TagAlias


class TagSpecError(Exception):
    """A tag name could not be resolved to a set of rules."""

    def __init__(self, tag: str, message: str) -> None:
        super().__init__(message)
        self.tag = tag


class AliasCycleError(TagSpecError):
    pass


class UnknownAliasError(TagSpecError):
    pass


def compile_rules(rules: Iterable[str | Rule]) -> tuple[Rule, ...]:
    if isinstance(rules, str):
        raise TypeError("rules must be a list of rule strings, not a single string")
    return tuple(rule if isinstance(rule, Rule) else Rule.parse(rule) for rule in rules)


def compile_tag_spec(key: str, value: TagSpec | str | Iterable[str | Rule]) -> tuple[str, TagSpec]:
    """Read one entry of the compact tag table.

    ``".img": [...]`` declares a single tag, ``"b": "strong"`` an alias and
    ``"p": [...]`` an ordinary tag. Already compiled specs pass through.
    """
    single = key.startswith(".")
    name = key[1:] if single else key
    name = name.lower()
    if not name:
        raise ValueError("tag name must not be empty")

    if isinstance(value, TagAlias):
        return name, value
    if isinstance(value, TagRules):
        return name, TagRules(value.rules, single or value.single)
    if isinstance(value, str):
        if single:
            raise ValueError(f"single tag {name!r} cannot be an alias")
        return name, TagAlias(value.lower())
    return name, TagRules(compile_rules(value), single)


def find_rule(rules: Iterable[Rule], name: str) -> Rule | None:
    for rule in rules:
        if rule.matches(name):
            return rule
    return None


def resolve_tag(tags: Mapping[str, TagSpec], name: str) -> tuple[str, TagRules]:
    """Follow aliases from `name` to the tag whose rules apply."""
    seen: set[str] = set()
    spec = tags.get(name)
    while isinstance(spec, TagAlias):
        if name in seen:
            raise AliasCycleError(name, f"recursive tag alias of {name}")
        seen.add(name)
        name = spec.target
        spec = tags.get(name)
    if spec is None:
        raise UnknownAliasError(name, f"tag alias points to undefined tag {name}")
    return name, spec


def is_single(tags: Mapping[str, TagSpec], name: str) -> bool:
    try:
        return resolve_tag(tags, name)[1].single
    except TagSpecError:
        return False

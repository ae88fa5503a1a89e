"""Inline ``style`` cleaning.

The style value is split into ``property: value`` declarations with the same
quote-aware splitter used for attributes. Only properties listed in the
policy's style rules survive; their values go through the rule's checker
when one is named.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .attributes import parse_map
from .checks import CheckerError, UnknownCheckerError
from .rules import find_rule

if TYPE_CHECKING:
    from .sanitizer import Sanitizer


def clean_css(sanitizer: Sanitizer, text: str) -> str:
    """Return ``prop: value; prop: value`` made of the declarations that passed."""
    policy = sanitizer.policy
    declarations: list[str] = []

    for prop, value in parse_map(text, ";", ":", sanitizer).items():
        # "a: b; this; c: d" and "a: b; this: ; c: d" are skipped quietly.
        if not value:
            continue
        prop = prop.lower()
        rule = find_rule(policy.styles, prop)
        if rule is None:
            sanitizer.bad_style_prop(prop, value)
            continue

        if rule.checker:
            try:
                value = policy.checks.check(rule.checker, value, sanitizer)
            except UnknownCheckerError as exc:
                sanitizer.undefined_checker(exc.name, f'property "{prop}"')
                continue
            except CheckerError as exc:
                sanitizer.bad_style(prop, value, exc)
                continue

        declarations.append(f"{prop}: {value}")

    return "; ".join(declarations)


def css_checker(value: str, sanitizer: Sanitizer) -> bool | str:
    """Checker predicate for ``style``; rejects values with nothing left."""
    cleaned = clean_css(sanitizer, value)
    return cleaned if cleaned else False

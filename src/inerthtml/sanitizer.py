"""The escape-then-readmit sanitizer.

All markup in the input is escaped first. The tag tokens found in the
escaped buffer are then matched against a stack of open tags; only pairs that
nest properly and pass attribute validation on both sides (and single tags
that pass on their own) are turned back into live markup. Anything uncertain
stays escaped:

1. Openers are pushed; single tags (``<br>``) are validated on the spot and
   never pushed. Their closers (``</br>``) are left escaped.
2. A closer that matches the top of the stack pops it and the pair is
   validated together.
3. A closer that matches a deeper opener discards (leaves escaped) every
   opener above it, then is processed again against that opener.
4. A closer with no opener at all is left escaped and the stack is kept.
5. Tags not in the policy, closers carrying attributes, ``</x/>`` and
   ``<x/>`` on non-single tags are left escaped.
6. Openers still on the stack at the end stay escaped.

Validation means: unknown attributes are dropped, values with a checker are
checked (and possibly rewritten), and if a required attribute is missing the
whole pair stays escaped.
"""

from __future__ import annotations

import logging
import re
from typing import Union

from .attributes import parse_attributes
from .checks import CheckerError
from .diagnostics import Diagnostics, SanitizeWarning
from .policy import DEFAULT_POLICY, SanitizerPolicy
from .rewriter import Rewriter
from .rules import Rule, TagSpecError, resolve_tag
from .serialize import serialize_end_tag, serialize_start_tag
from .tokenizer import finish, prepare, tokenize
from .tokens import StackItem, Token

logger = logging.getLogger(__name__)

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")

HtmlInput = Union[str, bytes, bytearray, None]


class EncodingError(ValueError):
    """The input is not valid UTF-8 (or contains lone surrogates)."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"input must be valid UTF-8: {detail}")
        self.detail = detail


def _ensure_text(html: HtmlInput) -> str:
    if html is None:
        return ""
    if isinstance(html, (bytes, bytearray)):
        try:
            return bytes(html).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(str(exc)) from exc
    if not isinstance(html, str):
        raise TypeError(f"expected str or bytes, got {type(html).__name__}")
    m = _LONE_SURROGATE.search(html)
    if m is not None:
        raise EncodingError(f"lone surrogate U+{ord(m.group(0)):04X} at position {m.start()}")
    return html


class Sanitizer:
    """Sanitizes HTML strings according to a `SanitizerPolicy`.

    Warnings accumulate across `clean()` calls until `clear_warnings()`.
    Everything else is reset per call, but one instance must not be used
    from several threads at once; create one per thread instead (the policy
    itself can be shared).
    """

    __slots__ = (
        "_closer",
        "_diagnostics",
        "_index",
        "_opener",
        "_rewriter",
        "_stack",
        "_tokens",
        "input",
        "output",
        "policy",
    )

    def __init__(self, policy: SanitizerPolicy = DEFAULT_POLICY, *, collect_warnings: bool = True) -> None:
        self.policy = policy
        self.input = ""
        self.output = ""
        self._diagnostics = Diagnostics(enabled=collect_warnings)
        self._tokens: list[Token] = []
        self._stack: list[StackItem] = []
        self._rewriter = Rewriter("")
        self._index = -1
        self._opener: StackItem | None = None
        self._closer: Token | None = None

    @property
    def warnings(self) -> list[SanitizeWarning]:
        return self._diagnostics.as_list()

    @property
    def tokens(self) -> list[Token]:
        """Tokens of the most recent `clean()` call."""
        return list(self._tokens)

    def clear_warnings(self) -> None:
        self._diagnostics.clear()

    def warn(self, message: str) -> None:
        """Record a warning tied to the token currently being processed."""
        self._diagnostics.warn(message, self._index, self._opener, self._closer)

    # Events. Each records one warning and may be overridden in a subclass,
    # e.g. to reword it. The output does not depend on them.

    def bad_closing_markup(self) -> None:
        """A ``</tag/>`` token."""
        self.warn("bad </markup/> - tag discarded")

    def xml_not_single_tag(self) -> None:
        """A ``<tag/>`` token for a tag that is not single (or unknown)."""
        self.warn("disallowed XML-style <tag /> - tag discarded")

    def closing_single(self) -> None:
        """A closer of a single tag, such as ``</br>``."""
        self.warn("closing single tag - tag discarded")

    def bad_tag(self) -> None:
        """A tag missing from the policy."""
        self.warn("disallowed tag - tag discarded")

    def closing_with_attributes(self) -> None:
        """A closer carrying attributes. The opener, if any, stays on the stack."""
        self.warn("closing tag has attribute(s) - tag discarded")

    def bad_nesting(self, removed: list[StackItem] | None = None) -> None:
        """A closer that does not match the top of the stack.

        `removed` lists the openers discarded to reach a deeper match, or is
        None when the closer had no opener at all.
        """
        if removed:
            discarded = "".join(f"<{item.tag}>" for item in removed)
            self.warn(f"bad nesting (premature closing tag) - discarded opened {discarded}")
        else:
            self.warn("bad nesting (no opening tag) - tag discarded")

    def unclosed_tag(self, item: StackItem) -> None:
        self.warn(f"unclosed <{item.tag}> - tag discarded")

    def bad_tag_spec(self, error: TagSpecError) -> None:
        """An alias cycle or an alias to an undefined tag."""
        self.warn(f"{error} - tag discarded")

    def missing_required(self, rule: Rule) -> None:
        self.warn(f'missing required attribute "{rule.name}" - tag discarded')

    def unbalanced_comment(self, token: Token) -> None:
        self.warn(f"unbalanced comment marker {token.text} - processing stopped")

    def unterminated_map_string(self, text: str) -> None:
        self.warn(f'token contains unterminated string: "{text}" - attributes discarded')

    def bad_map_key(self, key: str) -> None:
        self.warn(f'bad attribute key name "{key}" - attribute discarded')

    def bad_attribute(self, name: str, value: str | None) -> None:
        self.warn(f'disallowed attribute "{name}": "{value}" - attribute discarded')

    def attribute_value_tail(self, value: str) -> None:
        self.warn(f'attribute value has a tail: "{value}" - tail discarded')

    def bad_attribute_value(self, name: str, value: str, error: CheckerError) -> None:
        """A value rejected by its checker; `error` says which validator refused it."""
        self.warn(f'bad value of "{name}" attribute: "{value}" ({error}) - attribute discarded')

    def bad_style_prop(self, prop: str, value: str) -> None:
        self.warn(f'disallowed style property "{prop}": "{value}" - property discarded')

    def bad_style(self, prop: str, value: str, error: CheckerError) -> None:
        self.warn(f'bad style of "{prop}": "{value}" ({error}) - property discarded')

    def undefined_checker(self, checker: str, target: str) -> None:
        """A rule names a checker missing from the policy.

        `target` is ``attribute "name"`` or ``property "name"``.
        """
        self.warn(f'undefined checker "{checker}" - {target} discarded')

    def clean(self, html: HtmlInput) -> str:
        text = _ensure_text(html)
        policy = self.policy
        self.input = text

        buffer = prepare(text, keep_comments=policy.keep_comments)
        self._tokens = tokenize(buffer, comments=policy.keep_comments)
        self._stack = []
        self._rewriter = Rewriter(buffer)
        self._index = -1
        warnings_before = len(self._diagnostics)

        self._process()

        self.output = finish(self._rewriter.apply(), line_breaks=policy.line_breaks)
        logger.debug(
            "sanitized %d chars: %d tokens, %d tags restored, %d warnings",
            len(text),
            len(self._tokens),
            len(self._rewriter),
            len(self._diagnostics) - warnings_before,
        )
        return self.output

    def _process(self) -> None:
        tokens = self._tokens
        in_comment = False
        index = 0

        while index < len(tokens):
            token = tokens[index]
            self._index = index

            if token.comment is not None:
                self._opener = self._closer = None
                if in_comment == (token.comment == "start"):
                    # prepare() emits alternating markers and no tag token can
                    # swallow one, so only a hand-built buffer gets here.
                    self.unbalanced_comment(token)
                    return
                in_comment = not in_comment
            elif not in_comment and self._step(token):
                continue
            index += 1

        self._warn_unclosed()

    def _step(self, token: Token) -> bool:
        """Handle one tag token. Returns True if the same token must be processed again."""
        policy = self.policy
        tag = token.tag
        item = StackItem(tag, token, self._rewriter.shift)
        if token.closing:
            self._opener, self._closer = None, token
        else:
            self._opener, self._closer = item, None

        single = policy.is_single(tag)

        if token.self_closing and token.closing:
            self.bad_closing_markup()
        elif token.self_closing and not single:
            self.xml_not_single_tag()
        elif single:
            if token.closing:
                self.closing_single()
            else:
                rendered = self._render(item)
                if rendered is not None:
                    self._rewriter.replace(token, rendered)
        elif tag not in policy.tags:
            self.bad_tag()
        elif not token.closing:
            self._stack.append(item)
        elif token.attributes.strip():
            self.closing_with_attributes()
        elif self._stack and self._stack[-1].tag == tag:
            self._match(self._stack.pop(), item)
        else:
            return self._recover(tag)
        return False

    def _match(self, opener: StackItem, closer: StackItem) -> None:
        self._opener, self._closer = opener, closer.token
        closing = self._render(closer)
        if closing is None:
            return
        opening = self._render(opener)
        if opening is None:
            return
        # The closer comes after the opener in the buffer, so replacing it
        # first leaves the opener's recorded position valid.
        self._rewriter.replace(closer.token, closing)
        self._rewriter.replace(opener.token, opening)

    def _recover(self, tag: str) -> bool:
        removed: list[StackItem] = []
        while self._stack and self._stack[-1].tag != tag:
            removed.append(self._stack.pop())

        if self._stack:
            self._opener = self._stack[-1]
            self.bad_nesting(removed)
            return True

        self._stack = removed[::-1]
        self.bad_nesting()
        return False

    def _render(self, item: StackItem) -> str | None:
        """Validate one occurrence and return its markup, or None to keep it escaped."""
        token = item.token
        try:
            name, spec = resolve_tag(self.policy.tags, item.tag)
        except TagSpecError as exc:
            self.bad_tag_spec(exc)
            return None

        if token.closing:
            return serialize_end_tag(name)

        attrs = parse_attributes(self, spec.rules, token.attributes)
        for rule in spec.rules:
            if rule.required and not any(rule.matches(attr) for attr in attrs):
                self.missing_required(rule)
                return None
        return serialize_start_tag(name, attrs)

    def _warn_unclosed(self) -> None:
        if not self._stack:
            return
        positions = {token.start: i for i, token in enumerate(self._tokens)}
        self._closer = None
        for item in self._stack:
            self._index = positions[item.token.start]
            self._opener = item
            self.unclosed_tag(item)


def sanitize(html: HtmlInput, *, policy: SanitizerPolicy = DEFAULT_POLICY) -> tuple[str, list[SanitizeWarning]]:
    """Return the sanitized HTML and the warnings produced on the way."""
    sanitizer = Sanitizer(policy)
    output = sanitizer.clean(html)
    return output, sanitizer.warnings


def clean(html: HtmlInput, *, policy: SanitizerPolicy = DEFAULT_POLICY) -> str:
    """Return the sanitized HTML only; no warnings are collected."""
    return Sanitizer(policy, collect_warnings=False).clean(html)

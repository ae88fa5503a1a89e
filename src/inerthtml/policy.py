"""Allow-list configuration for the sanitizer.

A `SanitizerPolicy` is immutable and can be shared between any number of
`Sanitizer` instances and threads. Derive variants with
`dataclasses.replace()` or the `with_*` helpers::

    policy = DEFAULT_POLICY.with_tags({"iframe": ["!src url"]})
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .checks import DEFAULT_CHECKS, CheckerRegistry
from .css import css_checker
from .rules import Rule, TagSpec, compile_rules, compile_tag_spec, is_single


@dataclass(frozen=True, slots=True)
class SanitizerPolicy:
    """Which tags, attributes and CSS properties may survive as markup.

    - `tags` maps a tag name to its attribute rules (see `inerthtml.rules`
      for the compact notation). A leading ``.`` on the key declares a single
      tag (``".br": []``); a string value declares an alias (``"b": "strong"``).
    - `global_attributes` are rules allowed on every tag. Required markers
      are ignored here; only a tag's own rules can make an attribute required.
    - `checks` maps checker names used by rules to validators.
    - `styles` are the rules for inline CSS properties.
    - `line_breaks` replaces every line break of the output; None keeps them.
    - `keep_comments` restores ``<!-- -->`` comments (their content stays
      escaped) instead of removing them.

    All tag names are normalized to lowercase.
    """

    tags: Mapping[str, Any]
    global_attributes: Iterable[Any] = ()
    checks: Mapping[str, Any] = field(default_factory=dict)
    styles: Iterable[Any] = ()
    line_breaks: str | None = "\n"
    keep_comments: bool = False

    def __post_init__(self) -> None:
        normalized: dict[str, TagSpec] = {}
        for key, value in self.tags.items():
            name, spec = compile_tag_spec(str(key), value)
            normalized[name] = spec
        object.__setattr__(self, "tags", normalized)

        object.__setattr__(self, "global_attributes", compile_rules(self.global_attributes))
        object.__setattr__(self, "styles", compile_rules(self.styles))

        if not isinstance(self.checks, CheckerRegistry):
            object.__setattr__(self, "checks", CheckerRegistry(self.checks))

        if self.line_breaks is not None and not isinstance(self.line_breaks, str):
            raise TypeError("line_breaks must be a string or None")

    def is_single(self, tag: str) -> bool:
        return is_single(self.tags, tag)

    def with_tags(self, tags: Mapping[str, Any]) -> SanitizerPolicy:
        """Return a copy with `tags` added to (or replacing) the current ones."""
        merged: dict[str, Any] = dict(self.tags)
        for key, value in tags.items():
            name, spec = compile_tag_spec(str(key), value)
            merged[name] = spec
        return replace(self, tags=merged)

    def without_tags(self, *names: str) -> SanitizerPolicy:
        drop = {name.lower() for name in names}
        return replace(self, tags={k: v for k, v in self.tags.items() if k not in drop})

    def with_checks(self, checks: Mapping[str, Any]) -> SanitizerPolicy:
        return replace(self, checks=CheckerRegistry(self.checks).merged(checks))

    def with_styles(self, styles: Iterable[str | Rule]) -> SanitizerPolicy:
        return replace(self, styles=(*self.styles, *compile_rules(styles)))


DEFAULT_GLOBAL_ATTRIBUTES = ["class", "dir", "id", "lang lang2", "style css", "title", "data-*"]

DEFAULT_STYLES = [
    "color",
    "background*",
    "border*",
    "box-shadow",
    "clear",
    "display",
    "float",
    "height",
    "overflow*",
    "padding*",
    "width",
    "vertical-align",
    "align-*",
    "flex*",
    "justify-content",
    "margin*",
    "max-height",
    "max-width",
    "min-height",
    "min-width",
    "order",
    "letter-spacing",
    "line-height",
    "tab-size",
    "text-*",
    "white-space",
    "word-*",
    "font*",
    "direction",
    "unicode-bidi",
    "caption-side",
    "empty-cells",
    "table-layout",
    "list-style-*",
    "animation*",
    "backface-visibility",
    "perspective*",
    "transform*",
    "transition*",
    "box-sizing",
    "cursor",
    "icon",
    "outline*",
    "resize",
    "column*",
    "page-break-*",
]

DEFAULT_TAGS: dict[str, Any] = {
    "a": ["download filename", "!href url", "hreflang lang2", "rel", "target filename", "type mime"],
    "abbr": [],
    "acronym": "abbr",
    "address": [],
    ".area": [
        "alt",
        "!coords",
        "download filename",
        "!href url",
        "hreflang lang2",
        "rel",
        "shape filename",
        "target filename",
        "type mime",
    ],
    "article": [],
    "aside": [],
    "audio": ["autoplay", "controls", "loop", "muted", "preload", "!src url"],
    "b": [],
    "bdi": [],
    "bdo": ["!dir"],
    "big": [],
    "blockquote": ["cite url"],
    ".br": [],
    "caption": ["align"],
    "center": [],
    "cite": [],
    "code": [],
    ".col": ["align", "span", "valign", "width"],
    "colgroup": ["align", "span", "valign", "width"],
    "dd": [],
    "del": ["cite url", "datetime datetime"],
    "details": ["open"],
    "dfn": [],
    "dialog": ["open"],
    "div": ["align"],
    "dl": [],
    "dt": [],
    "em": [],
    "fieldset": ["disabled"],
    "figcaption": [],
    "figure": [],
    "footer": [],
    "h1": ["align"],
    "h2": ["align"],
    "h3": ["align"],
    "h4": ["align"],
    "h5": ["align"],
    "h6": ["align"],
    "header": [],
    ".hr": ["align", "width"],
    "i": [],
    ".img": ["align", "alt", "height", "!src imgurl", "usemap map", "width"],
    ".input": ["align", "disabled", "placeholder", "readonly", "size", "width"],
    "ins": ["cite url", "datetime datetime"],
    "kbd": [],
    "legend": ["align"],
    "li": ["type", "value"],
    "main": [],
    "map": ["!name filename"],
    "mark": [],
    "meter": ["high", "low", "max", "min", "optimum", "value"],
    "nav": [],
    "ol": ["reversed", "start", "type"],
    "p": ["align"],
    "pre": ["width"],
    ".progress": ["!max", "!value"],
    "q": ["cite url"],
    "rp": [],
    "rt": [],
    "ruby": [],
    "s": "del",
    "samp": [],
    "section": [],
    "small": [],
    ".source": ["src url", "type mime"],
    "span": [],
    "strike": "s",
    "strong": [],
    "sub": [],
    "summary": [],
    "sup": [],
    "table": ["align", "rules", "sortable", "width"],
    "tbody": ["align", "valign"],
    "td": ["align", "colspan", "height", "rowspan", "valign", "width"],
    "textarea": ["cols", "disabled", "placeholder", "readonly", "rows", "wrap"],
    "tfoot": ["align", "valign"],
    "th": ["align", "colspan", "height", "rowspan", "valign", "width"],
    "thead": ["align", "valign"],
    "time": ["datetime datetime"],
    "tr": ["align", "valign"],
    ".track": ["default", "kind", "label", "!src url", "srclang lang2"],
    "tt": "kbd",
    "u": [],
    "ul": ["type"],
    "var": [],
    "video": ["autoplay", "controls", "height", "loop", "poster url", "preload", "!src url", "width"],
    ".wbr": [],
}


DEFAULT_POLICY: SanitizerPolicy = SanitizerPolicy(
    tags=DEFAULT_TAGS,
    global_attributes=DEFAULT_GLOBAL_ATTRIBUTES,
    checks={**DEFAULT_CHECKS, "css": css_checker},
    styles=DEFAULT_STYLES,
)

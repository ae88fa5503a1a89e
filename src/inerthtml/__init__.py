from .checks import CheckerRegistry, Pattern, Predicate
from .css import clean_css
from .diagnostics import Diagnostics, SanitizeWarning
from .policy import DEFAULT_POLICY, SanitizerPolicy
from .rules import Rule, TagAlias, TagRules
from .sanitizer import EncodingError, Sanitizer, clean, sanitize
from .tokens import StackItem, Token

__all__ = [
    "DEFAULT_POLICY",
    "CheckerRegistry",
    "Diagnostics",
    "EncodingError",
    "Pattern",
    "Predicate",
    "Rule",
    "SanitizeWarning",
    "Sanitizer",
    "SanitizerPolicy",
    "StackItem",
    "TagAlias",
    "TagRules",
    "Token",
    "clean",
    "clean_css",
    "sanitize",
]

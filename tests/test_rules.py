import re
import unittest

from inerthtml import CheckerRegistry, Pattern, Predicate, Rule, TagAlias, TagRules
from inerthtml.checks import DEFAULT_CHECKS, UnknownCheckerError, ValueRejectedError, compile_checker
from inerthtml.rules import (
    AliasCycleError,
    UnknownAliasError,
    compile_rules,
    compile_tag_spec,
    find_rule,
    is_single,
    resolve_tag,
)
from inerthtml.wildcard import has_wildcard, match


class TestWildcard(unittest.TestCase):
    def test_plain_names(self) -> None:
        assert not has_wildcard("href")
        assert match("href", "href")
        assert not match("href", "hre")
        assert not match("href", "HREF")

    def test_star(self) -> None:
        assert has_wildcard("data-*")
        assert match("data-*", "data-")
        assert match("data-*", "data-user-id")
        assert not match("data-*", "data")
        assert match("*", "")
        assert match("a*b*c", "axxbyyc")
        assert not match("a*b*c", "axxbyy")

    def test_question_mark(self) -> None:
        assert match("h?", "h1")
        assert not match("h?", "h")
        assert not match("h?", "h12")

    def test_backtracking(self) -> None:
        assert match("*-radius", "border-top-left-radius")
        assert match("a*aab", "aaaaaab")


class TestRule(unittest.TestCase):
    def test_parse(self) -> None:
        assert Rule.parse("href") == Rule("href")
        assert Rule.parse("!src url") == Rule("src", "url", required=True)
        assert Rule.parse("  lang  lang2 ") == Rule("lang", "lang2")

    def test_parse_rejects_empty(self) -> None:
        with self.assertRaises(ValueError):
            Rule.parse("!")

    def test_str_round_trips_notation(self) -> None:
        assert str(Rule.parse("!src url")) == "!src url"
        assert str(Rule.parse("data-*")) == "data-*"

    def test_find_rule_first_match_wins(self) -> None:
        rules = (Rule("data-id", "num"), Rule("data-*"))
        assert find_rule(rules, "data-id") is rules[0]
        assert find_rule(rules, "data-x") is rules[1]
        assert find_rule(rules, "id") is None


class TestTagSpecs(unittest.TestCase):
    def test_compact_notation(self) -> None:
        assert compile_tag_spec(".IMG", ["!src"]) == ("img", TagRules((Rule("src", required=True),), single=True))
        assert compile_tag_spec("b", "Strong") == ("b", TagAlias("strong"))
        assert compile_tag_spec("p", []) == ("p", TagRules())

    def test_rules_must_be_a_list(self) -> None:
        with self.assertRaises(TypeError):
            compile_rules("align")

    def test_empty_name(self) -> None:
        with self.assertRaises(ValueError):
            compile_tag_spec(".", [])

    def test_resolve_alias_chain(self) -> None:
        tags = {"strike": TagAlias("s"), "s": TagAlias("del"), "del": TagRules((Rule("cite"),))}
        name, spec = resolve_tag(tags, "strike")
        assert name == "del"
        assert spec.rules == (Rule("cite"),)

    def test_resolve_cycle(self) -> None:
        tags = {"a": TagAlias("b"), "b": TagAlias("c"), "c": TagAlias("a")}
        with self.assertRaises(AliasCycleError):
            resolve_tag(tags, "a")
        assert not is_single(tags, "a")

    def test_resolve_self_alias(self) -> None:
        with self.assertRaises(AliasCycleError):
            resolve_tag({"a": TagAlias("a")}, "a")

    def test_resolve_unknown(self) -> None:
        with self.assertRaises(UnknownAliasError) as ctx:
            resolve_tag({"a": TagAlias("zz")}, "a")
        assert ctx.exception.tag == "zz"
        with self.assertRaises(UnknownAliasError):
            resolve_tag({}, "p")

    def test_single_through_alias(self) -> None:
        tags = {"linebreak": TagAlias("br"), "br": TagRules(single=True)}
        assert is_single(tags, "linebreak")


class TestCheckers(unittest.TestCase):
    def test_string_pattern_is_anchored_at_start(self) -> None:
        pattern = Pattern.of(r"\d+")
        assert pattern("123abc", None)
        with self.assertRaises(ValueRejectedError):
            pattern("abc123", None)

    def test_compiled_pattern_is_searched(self) -> None:
        pattern = Pattern.of(re.compile(r"\d+", re.ASCII))
        assert pattern("abc123", None)

    def test_compile_checker_members(self) -> None:
        validators = compile_checker([r"a", re.compile("b"), lambda v, s: True])
        assert isinstance(validators[0], Pattern)
        assert isinstance(validators[1], Pattern)
        assert isinstance(validators[2], Predicate)

    def test_compile_checker_rejects_garbage(self) -> None:
        with self.assertRaises(TypeError):
            compile_checker(42)
        with self.assertRaises(ValueError):
            compile_checker([])

    def test_all_validators_must_accept(self) -> None:
        registry = CheckerRegistry({"short-digits": [r"\d", lambda v, s: len(v) < 4]})
        assert registry.check("short-digits", "123", None) == "123"
        with self.assertRaises(ValueRejectedError):
            registry.check("short-digits", "12345", None)
        with self.assertRaises(ValueRejectedError):
            registry.check("short-digits", "abc", None)

    def test_predicate_transform_feeds_next_validator(self) -> None:
        registry = CheckerRegistry({"trimmed": [lambda v, s: v.strip(), r"\S+\Z"]})
        assert registry.check("trimmed", "  x  ", None) == "x"

    def test_unknown_checker(self) -> None:
        with self.assertRaises(UnknownCheckerError):
            CheckerRegistry().check("nope", "x", None)

    def test_merged_does_not_modify_original(self) -> None:
        base = CheckerRegistry({"a": r"a"})
        merged = base.merged({"b": r"b", "a": r"x"})
        assert set(base) == {"a"}
        assert set(merged) == {"a", "b"}
        with self.assertRaises(ValueRejectedError):
            merged.check("a", "a", None)

    def test_default_url(self) -> None:
        registry = CheckerRegistry(DEFAULT_CHECKS)
        for ok in ("https://example.com/", "ftp://x", "/path", "#top"):
            assert registry.check("url", ok, None) == ok
        for bad in ("javascript:alert(1)", "//evil.com", "data:text/html,x", "/\\evil", "http://a\\b"):
            with self.assertRaises(ValueRejectedError):
                registry.check("url", bad, None)

    def test_default_imgurl(self) -> None:
        registry = CheckerRegistry(DEFAULT_CHECKS)
        assert registry.check("imgurl", "data:image/png;base64,AAAA", None)
        with self.assertRaises(ValueRejectedError):
            registry.check("imgurl", "#x", None)

    def test_default_simple_checks(self) -> None:
        registry = CheckerRegistry(DEFAULT_CHECKS)
        assert registry.check("lang2", "en", None) == "en"
        assert registry.check("mime", "text/plain", None) == "text/plain"
        assert registry.check("datetime", "2024-01-02T03:04:05Z", None)
        assert registry.check("map", "#planets", None) == "#planets"
        for name, bad in (("lang2", "eng"), ("mime", "text"), ("filename", "a/b"), ("map", "planets")):
            with self.assertRaises(ValueRejectedError):
                registry.check(name, bad, None)

    def test_default_checks_are_ascii_only(self) -> None:
        registry = CheckerRegistry(DEFAULT_CHECKS)
        assert registry.check("filename", "report-2024 v1.txt", None)
        for name, bad in (
            ("lang2", "\u65e5\u672c"),
            ("filename", "caf\u00e9.txt"),
            ("mime", "text/\u00e9"),
            ("datetime", "\u0662024-01-02T03:04:05"),
            ("map", "#\u00e9"),
        ):
            with self.assertRaises(ValueRejectedError):
                registry.check(name, bad, None)

    def test_default_checks_stay_anchored_at_start(self) -> None:
        registry = CheckerRegistry(DEFAULT_CHECKS)
        for name, bad in (("lang2", " en"), ("url", "x#top"), ("map", "x#planets")):
            with self.assertRaises(ValueRejectedError):
                registry.check(name, bad, None)

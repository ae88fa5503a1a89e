import unittest

from inerthtml import DEFAULT_POLICY, Sanitizer, clean_css
from inerthtml.attributes import parse_attributes, parse_map
from inerthtml.entities import decode_attribute, encode_attribute, escape_text, is_valid_reference


class _Events:
    def __init__(self) -> None:
        self.reports: list[str] = []

    def unterminated_map_string(self, text: str) -> None:
        self.reports.append(f"unterminated: {text}")

    def bad_map_key(self, key: str) -> None:
        self.reports.append(f"bad key: {key}")


class TestParseMap(unittest.TestCase):
    def setUp(self) -> None:
        self.events = _Events()
        self.reports = self.events.reports

    def parse(self, text: str, item_sep: str = " ", key_sep: str = "=") -> dict:
        return parse_map(text, item_sep, key_sep, self.events)

    def test_values_keep_quotes(self) -> None:
        assert self.parse(' a="x y" b=\'1=2\' c=3') == {"a": '"x y"', "b": "'1=2'", "c": "3"}
        assert self.reports == []

    def test_flag_and_empty_value(self) -> None:
        assert self.parse(" flag empty= ") == {"flag": None, "empty": ""}

    def test_whitespace_runs(self) -> None:
        assert self.parse("  a=1    b=2  ") == {"a": "1", "b": "2"}

    def test_later_duplicate_wins(self) -> None:
        assert self.parse(" a=1 b=2 a=3") == {"a": "3", "b": "2"}

    def test_bad_keys_are_reported(self) -> None:
        assert self.parse(" ok=1 n@pe=2") == {"ok": "1"}
        assert self.reports == ["bad key: n@pe"]

    def test_empty_key_before_separator_is_reported(self) -> None:
        assert self.parse(" =x a=1") == {"a": "1"}
        assert self.reports == ["bad key: "]
        assert self.parse("color: red; : blue", ";", ":") == {"color": "red"}
        assert self.reports == ["bad key: ", "bad key: "]

    def test_unterminated_quote(self) -> None:
        assert self.parse(' a=1 b="x') == {}
        assert self.reports == ['unterminated:  a=1 b="x']

    def test_css_separators(self) -> None:
        parsed = self.parse("color: red; background: url('a;b:c'); ; x", ";", ":")
        assert parsed == {"color": "red", "background": "url('a;b:c')", "x": None}

    def test_empty(self) -> None:
        assert self.parse("") == {}
        assert self.parse("   ") == {}
        assert self.reports == []


class TestParseAttributes(unittest.TestCase):
    def test_allowed_and_global(self) -> None:
        sanitizer = Sanitizer()
        rules = DEFAULT_POLICY.tags["a"].rules
        attrs = parse_attributes(sanitizer, rules, ' HREF="/x?a=1&amp;b=2" title=hi onclick=x')
        assert attrs == {"href": "/x?a=1&amp;b=2", "title": "hi"}
        assert len(sanitizer.warnings) == 1

    def test_flag_gets_own_name(self) -> None:
        rules = DEFAULT_POLICY.tags["details"].rules
        assert parse_attributes(Sanitizer(), rules, " open") == {"open": "open"}


class TestCss(unittest.TestCase):
    def test_clean_css(self) -> None:
        sanitizer = Sanitizer()
        assert clean_css(sanitizer, "COLOR: red; behavior: url(x); Margin-Top: 1px") == "color: red; margin-top: 1px"
        assert [w.message for w in sanitizer.warnings] == [
            'disallowed style property "behavior": "url(x)" - property discarded'
        ]

    def test_style_checker(self) -> None:
        policy = DEFAULT_POLICY.with_styles(["z-index int"]).with_checks({"int": r"-?\d+\Z"})
        sanitizer = Sanitizer(policy)
        assert clean_css(sanitizer, "z-index: 10; z-index: 1e9") == ""
        assert clean_css(sanitizer, "z-index: 10") == "z-index: 10"
        assert 'bad style of "z-index": "1e9"' in sanitizer.warnings[0].message

    def test_nothing_left(self) -> None:
        assert clean_css(Sanitizer(), "position: fixed") == ""


class TestEntities(unittest.TestCase):
    def test_valid_references(self) -> None:
        assert is_valid_reference("amp")
        assert is_valid_reference("#169")
        assert is_valid_reference("#x1F600")
        assert not is_valid_reference("#0")
        assert not is_valid_reference("#xD800")
        assert not is_valid_reference("#99999999999999999999")
        assert not is_valid_reference("bogus")

    def test_escape_text(self) -> None:
        assert escape_text("plain") == "plain"
        assert escape_text("<a & b>") == "&lt;a &amp; b&gt;"
        assert escape_text("&amp &amp;") == "&amp;amp &amp;"

    def test_decode_attribute(self) -> None:
        assert decode_attribute("&lt;&#65;&#x42;&quot;") == '<AB"'
        assert decode_attribute("&#128;") == "\u20ac"
        assert decode_attribute("&#0;") == "\ufffd"
        assert decode_attribute("&#x110000;") == "\ufffd"
        assert decode_attribute("&#;") == "&#;"
        assert decode_attribute("&unknown;") == "&unknown;"

    def test_legacy_references_in_attributes(self) -> None:
        assert decode_attribute("&amp") == "&"
        assert decode_attribute("a&copy b") == "a\xa9 b"
        assert decode_attribute("?x=1&copy=2") == "?x=1&copy=2"
        assert decode_attribute("&copyx") == "&copyx"

    def test_encode_attribute(self) -> None:
        assert encode_attribute('<"a" & \'b\'>') == "&lt;&quot;a&quot; &amp; 'b'&gt;"

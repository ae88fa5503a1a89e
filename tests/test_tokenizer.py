import unittest

from inerthtml.rewriter import Rewriter
from inerthtml.tokenizer import finish, prepare, tokenize, unprotect
from inerthtml.tokens import StackItem, Token


class TestPrepare(unittest.TestCase):
    def test_escapes_markup(self) -> None:
        assert prepare("<b>x</b>") == "&lt;b&gt;x&lt;/b&gt;"

    def test_keeps_valid_references(self) -> None:
        assert prepare("&amp; &copy; &#x41; & &nope;") == "&amp; &copy; &#x41; &amp; &amp;nope;"

    def test_protects_literal_brackets(self) -> None:
        assert prepare("&lt;b&gt;") == "&amp;lt;b&amp;gt;"
        assert tokenize(prepare("&lt;b&gt;")) == []

    def test_strips_comments(self) -> None:
        assert prepare("a<!-- x -->b<!--y") == "ab"

    def test_keeps_comments_as_markers(self) -> None:
        assert prepare("a<!-- <i> -->b", keep_comments=True) == "a<!-- &lt;i&gt; -->b"

    def test_unterminated_comment_is_closed(self) -> None:
        assert prepare("a<!-- x", keep_comments=True) == "a<!-- x-->"


class TestFinish(unittest.TestCase):
    def test_unprotect(self) -> None:
        assert unprotect("&amp;lt;&amp;gt;&amp;amp;") == "&lt;&gt;&amp;amp;"

    def test_line_breaks(self) -> None:
        assert finish("a\r\nb\rc\n") == "a\nb\nc\n"
        assert finish("a\r\nb", line_breaks="<br>\n") == "a<br>\nb"
        assert finish("a\r\nb", line_breaks=None) == "a\r\nb"

    def test_replacement_is_literal(self) -> None:
        assert finish("a\nb", line_breaks="\\1") == "a\\1b"


class TestTokenize(unittest.TestCase):
    def test_open_close_and_self_closing(self) -> None:
        tokens = tokenize(prepare('<A href="x">t</a><br/>'))
        assert [(t.name, t.closing, t.self_closing) for t in tokens] == [
            ("A", False, False),
            ("a", True, False),
            ("br", False, True),
        ]
        assert tokens[0].tag == "a"
        assert tokens[0].attributes == ' href="x"'
        assert tokens[0].start == 0
        assert tokens[0].end == len('&lt;A href="x"&gt;')

    def test_attributes_may_span_lines(self) -> None:
        tokens = tokenize(prepare('<p\ntitle="a">'))
        assert tokens[0].attributes == '\ntitle="a"'

    def test_name_must_follow_bracket(self) -> None:
        assert tokenize(prepare("< b>")) == []
        assert tokenize(prepare("<b-c>")) == []

    def test_attributes_need_whitespace(self) -> None:
        assert tokenize(prepare('<b"x">')) == []

    def test_comment_markers_only_when_requested(self) -> None:
        buffer = prepare("<!-- x --><b>", keep_comments=True)
        assert [t.comment for t in tokenize(buffer, comments=True)] == ["start", "end", None]
        assert [t.name for t in tokenize(buffer)] == ["b"]

    def test_tag_never_spans_comment_marker(self) -> None:
        buffer = prepare('<b title="<!--">x</b>-->', keep_comments=True)
        assert buffer == '&lt;b title="<!--"&gt;x&lt;/b&gt;-->'
        tokens = tokenize(buffer, comments=True)
        assert [(t.comment, t.name) for t in tokens] == [("start", ""), (None, "b"), ("end", "")]
        assert tokens[1].closing

        buffer = prepare('<!-- <b title="-->">x</b>', keep_comments=True)
        assert [t.comment for t in tokenize(buffer, comments=True)] == ["start", "end", None]


class TestRewriter(unittest.TestCase):
    def test_apply_in_buffer_order(self) -> None:
        buffer = "&lt;b&gt;x&lt;/b&gt;"
        opener = Token("&lt;b&gt;", 0, name="b")
        closer = Token("&lt;/b&gt;", 10, closing=True, name="b")
        rewriter = Rewriter(buffer)
        assert rewriter.replace(closer, "</b>") == -6
        assert rewriter.replace(opener, "<b>") == -6
        assert rewriter.shift == -12
        assert len(rewriter) == 2
        assert rewriter.apply() == "<b>x</b>"

    def test_no_edits(self) -> None:
        assert Rewriter("abc").apply() == "abc"

    def test_duplicate_replace_rejected(self) -> None:
        token = Token("&lt;b&gt;", 0, name="b")
        rewriter = Rewriter("&lt;b&gt;")
        rewriter.replace(token, "<b>")
        with self.assertRaises(ValueError):
            rewriter.replace(token, "<b>")

    def test_position_uses_captured_shift(self) -> None:
        token = Token("&lt;i&gt;", 20, name="i")
        assert Rewriter("").position(StackItem("i", token, -6)) == 14

from __future__ import annotations

import unittest

from safehtml.parser import ParseError, parse_fragment


class TestParseFragment(unittest.TestCase):
    def test_builds_fragment_tree(self) -> None:
        root = parse_fragment('<p class="a" id="b">x<b>y</b></p>')
        assert root.tag_name == "#document-fragment"
        assert root.parent is None
        (p,) = root.children
        assert p.tag_name == "p"
        assert p.parent is root
        assert list(p.attributes.items()) == [("class", "a"), ("id", "b")]
        assert [child.tag_name for child in p.children] == ["#text", "b"]
        assert p.children[0].text_content == "x"
        assert p.children[1].children[0].text_content == "y"

    def test_entities_are_decoded(self) -> None:
        root = parse_fragment('<a title="a &amp; b" href="java&#x09;script:x">&lt;tag&gt; &amp;</a>')
        (link,) = root.children
        assert link.attributes["title"] == "a & b"
        assert link.attributes["href"] == "java\tscript:x"
        assert link.children[0].text_content == "<tag> &"

    def test_adjacent_text_is_merged(self) -> None:
        root = parse_fragment("a &amp; b\n c")
        assert len(root.children) == 1
        assert root.children[0].text_content == "a & b\n c"

    def test_comments_are_kept(self) -> None:
        root = parse_fragment("<!-- hi --><p>x</p>")
        assert root.children[0].tag_name == "#comment"
        assert root.children[0].text_content == " hi "

    def test_tag_and_attribute_names_are_lower_cased(self) -> None:
        root = parse_fragment('<DIV CLASS="x" OnClick="y"></DIV>')
        (div,) = root.children
        assert div.tag_name == "div"
        assert div.attributes == {"class": "x", "onclick": "y"}

    def test_duplicate_attributes_keep_first(self) -> None:
        root = parse_fragment('<a href="/first" href="javascript:x"></a>')
        assert root.children[0].attributes == {"href": "/first"}

    def test_foreign_content_records_namespace(self) -> None:
        root = parse_fragment('<svg viewBox="0 0 1 1"><a xlink:href="#x"><circle></circle></a></svg><math></math>')
        svg, math = root.children
        assert svg.namespace == "svg"
        assert svg.is_foreign
        assert svg.attributes == {"viewBox": "0 0 1 1"}
        link = svg.children[0]
        assert link.namespace == "svg"
        assert link.attributes == {"xlink:href": "#x"}
        assert math.namespace == "math"

    def test_html_elements_have_no_namespace(self) -> None:
        root = parse_fragment("<div></div>")
        assert root.children[0].namespace is None
        assert not root.children[0].is_foreign

    def test_script_content_is_text(self) -> None:
        root = parse_fragment("<script>if (a < b) { x('</p>') }</script>")
        (script,) = root.children
        assert script.children[0].tag_name == "#text"
        assert script.children[0].text_content == "if (a < b) { x('</p>') }"

    def test_malformed_markup_is_recovered(self) -> None:
        errors: list[ParseError] = []
        root = parse_fragment("<div></span><p>x", errors=errors)
        assert [child.tag_name for child in root.children] == ["div"]
        assert errors
        assert all(isinstance(error, ParseError) for error in errors)
        assert "unexpected-end-tag" in [error.code for error in errors]
        first = errors[0]
        assert first.line == 1
        assert first.column is not None

    def test_clean_markup_reports_no_errors(self) -> None:
        errors: list[ParseError] = []
        parse_fragment("<p>x</p>", errors=errors)
        assert errors == []

    def test_strict_mode_raises(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            parse_fragment("<div></span></div>", strict=True)
        assert ctx.exception.code == "unexpected-end-tag"
        assert isinstance(ctx.exception, ValueError)

    def test_deep_nesting(self) -> None:
        depth = 1500
        root = parse_fragment("<div>" * depth + "x")
        node = root
        for _ in range(depth):
            (node,) = node.children
            assert node.tag_name == "div"
        assert node.children[0].text_content == "x"


class TestParseErrorFormatting(unittest.TestCase):
    def test_str_and_repr(self) -> None:
        err = ParseError("unexpected-end-tag", line=1, column=5, message="Unexpected end tag (span).")
        assert str(err) == "(1,5): unexpected-end-tag - Unexpected end tag (span)."
        assert repr(err) == "ParseError('unexpected-end-tag', line=1, column=5)"

        bare = ParseError("eof")
        assert str(bare) == "eof"
        assert repr(bare) == "ParseError('eof')"


if __name__ == "__main__":
    unittest.main()

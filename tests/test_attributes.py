from __future__ import annotations

import unittest

from safehtml.attributes import URI_ATTRIBUTES, URI_LIST_ATTRIBUTES, is_attribute_allowed, is_safe_url
from safehtml.policy import DEFAULT_POLICY, Policy


class TestUriAttributeSet(unittest.TestCase):
    def test_set_is_fixed_and_explicit(self) -> None:
        assert isinstance(URI_ATTRIBUTES, frozenset)
        for name in ("href", "src", "cite", "action", "formaction", "poster", "background", "xlink:href"):
            assert name in URI_ATTRIBUTES
        assert "title" not in URI_ATTRIBUTES
        assert URI_LIST_ATTRIBUTES == {"srcset"}


class TestIsSafeUrl(unittest.TestCase):
    def test_relative_references_are_safe(self) -> None:
        for value in ("", "   ", "#top", "/path", "//cdn.example.com/x.js", "?q=1", "page.html", "./a:b", "../x", "a/b:c"):
            with self.subTest(value=value):
                assert is_safe_url(value)

    def test_none_is_treated_as_empty(self) -> None:
        assert is_safe_url(None)

    def test_allowed_schemes(self) -> None:
        for value in (
            "http://example.com",
            "https://example.com/a?b#c",
            "HTTPS://EXAMPLE.COM",
            "mailto:someone@example.com",
            "tel:+123456",
            "ftp://example.com/file",
            "  https://example.com  ",
        ):
            with self.subTest(value=value):
                assert is_safe_url(value)

    def test_dangerous_schemes_are_rejected(self) -> None:
        for value in (
            "javascript:alert(1)",
            "JaVaScRiPt:alert(1)",
            "  javascript:alert(1)",
            "\x01\x02javascript:alert(1)",
            "java\tscript:alert(1)",
            "java\nscript:alert(1)",
            "jav\r\nascript:alert(1)",
            "javascript\t:alert(1)",
            "vbscript:msgbox(1)",
            "data:text/html,<script>alert(1)</script>",
            "file:///etc/passwd",
            "a:b",
        ):
            with self.subTest(value=value):
                assert not is_safe_url(value)

    def test_data_urls_need_opt_in(self) -> None:
        png = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
        permissive = Policy(allowed_attributes={"img": ["src"]}, allow_data_urls=True)
        assert not is_safe_url(png)
        assert is_safe_url(png, permissive)
        assert is_safe_url("data:video/mp4;base64,AAAA", permissive)
        assert not is_safe_url("data:image/svg+xml;base64,PHN2Zz48L3N2Zz4=", permissive)
        assert not is_safe_url("data:text/html;base64,PHNjcmlwdD4=", permissive)
        assert not is_safe_url("data:image/png,raw", permissive)

    def test_scheme_list_comes_from_policy(self) -> None:
        https_only = Policy(allowed_attributes={"a": ["href"]}, allowed_schemes=["https"])
        assert is_safe_url("https://example.com", https_only)
        assert not is_safe_url("http://example.com", https_only)
        assert is_safe_url("/relative", https_only)

        custom = Policy(allowed_attributes={"a": ["href"]}, allowed_schemes=["ssh"])
        assert is_safe_url("ssh://git@example.com", custom)


class TestIsAttributeAllowed(unittest.TestCase):
    def test_tag_specific_attributes(self) -> None:
        assert is_attribute_allowed("a", "href", "https://example.com", DEFAULT_POLICY)
        assert is_attribute_allowed("a", "target", "_blank", DEFAULT_POLICY)
        assert is_attribute_allowed("img", "alt", "x", DEFAULT_POLICY)
        assert not is_attribute_allowed("div", "href", "https://example.com", DEFAULT_POLICY)
        assert not is_attribute_allowed("p", "src", "x.png", DEFAULT_POLICY)

    def test_wildcard_attributes(self) -> None:
        assert is_attribute_allowed("div", "aria-pressed", "true", DEFAULT_POLICY)
        assert is_attribute_allowed("span", "class", "test", DEFAULT_POLICY)
        assert is_attribute_allowed("a", "data-toggle", "tooltip", DEFAULT_POLICY)

    def test_event_handlers_and_style_are_rejected(self) -> None:
        for name in ("onclick", "onerror", "onload", "style", "formaction"):
            with self.subTest(name=name):
                assert not is_attribute_allowed("a", name, "x", DEFAULT_POLICY)

    def test_names_are_canonicalized(self) -> None:
        assert is_attribute_allowed("DIV", "CLASS", "x", DEFAULT_POLICY)
        assert is_attribute_allowed(" a ", "  HREF ", "https://example.com", DEFAULT_POLICY)
        assert not is_attribute_allowed("a", "   ", "x", DEFAULT_POLICY)
        assert not is_attribute_allowed("a", "", "x", DEFAULT_POLICY)

    def test_name_and_value_are_independent_gates(self) -> None:
        assert not is_attribute_allowed("a", "href", "javascript:alert(1)", DEFAULT_POLICY)
        assert not is_attribute_allowed("img", "src", " javascript:alert(1)", DEFAULT_POLICY)
        assert not is_attribute_allowed("blockquote", "cite", "vbscript:x", DEFAULT_POLICY)
        # A safe value never rescues a disallowed name
        assert not is_attribute_allowed("span", "href", "/ok", DEFAULT_POLICY)

    def test_uri_check_is_uniform_across_tags(self) -> None:
        policy = Policy(allowed_attributes={"div": ["href"], "x-widget": ["src"]})
        assert not is_attribute_allowed("div", "href", "javascript:alert(1)", policy)
        assert not is_attribute_allowed("x-widget", "src", "javascript:alert(1)", policy)
        assert is_attribute_allowed("div", "href", "/path", policy)

    def test_non_uri_attributes_are_not_protocol_checked(self) -> None:
        assert is_attribute_allowed("a", "title", "javascript:alert(1)", DEFAULT_POLICY)

    def test_empty_and_boolean_values(self) -> None:
        assert is_attribute_allowed("a", "href", "", DEFAULT_POLICY)
        assert is_attribute_allowed("a", "href", "   ", DEFAULT_POLICY)
        assert is_attribute_allowed("a", "href", None, DEFAULT_POLICY)

    def test_srcset_checks_every_candidate(self) -> None:
        assert is_attribute_allowed("img", "srcset", "a.png 1x, https://cdn.example.com/b.png 2x", DEFAULT_POLICY)
        assert is_attribute_allowed("img", "srcset", "", DEFAULT_POLICY)
        assert not is_attribute_allowed("img", "srcset", "a.png 1x, javascript:alert(1) 2x", DEFAULT_POLICY)
        assert not is_attribute_allowed("img", "srcset", "a.png 1x,javascript:alert(1) 2x", DEFAULT_POLICY)
        assert not is_attribute_allowed("img", "srcset", "a.png,,, javascript:alert(1)", DEFAULT_POLICY)
        assert is_attribute_allowed("img", "srcset", "a.png (x, y) 1x, b.png 2x", DEFAULT_POLICY)

    def test_srcset_data_urls_stay_whole(self) -> None:
        png = "data:image/png;base64,iVBORw0KGgo="
        permissive = Policy(allowed_attributes={"img": ["srcset"]}, allow_data_urls=True)
        assert is_attribute_allowed("img", "srcset", f"{png} 1x, /b.png 2x", permissive)
        assert is_attribute_allowed("img", "srcset", f"/a.png 1x,{png} 2x", permissive)
        assert not is_attribute_allowed("img", "srcset", f"{png} 1x", DEFAULT_POLICY)
        assert not is_attribute_allowed("img", "srcset", "data:text/html;base64,PHNjcmlwdD4= 1x", permissive)

    def test_only_html_whitespace_is_trimmed_from_names(self) -> None:
        assert is_attribute_allowed("a", "\tHREF\n", "/x", DEFAULT_POLICY)
        for name in ("href\x0b", "class\xa0", "class\u2028", "title\u200b"):
            with self.subTest(name=name):
                assert not is_attribute_allowed("a", name, "/x", DEFAULT_POLICY)
        assert not is_attribute_allowed("a\xa0", "href", "/x", Policy(allowed_attributes={"a": ["href"]}))

    def test_policy_defaults_to_default_policy(self) -> None:
        assert is_attribute_allowed("a", "href", "https://example.com")
        assert not is_attribute_allowed("a", "onclick", "x")

    def test_unknown_tag_only_gets_wildcard_attributes(self) -> None:
        assert is_attribute_allowed("article", "class", "x", DEFAULT_POLICY)
        assert not is_attribute_allowed("article", "href", "/x", DEFAULT_POLICY)


if __name__ == "__main__":
    unittest.main()

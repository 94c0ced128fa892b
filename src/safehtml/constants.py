"""HTML element tables shared by the parser adapter and the serializer.

References:
    - https://html.spec.whatwg.org/multipage/syntax.html#void-elements
    - https://html.spec.whatwg.org/multipage/parsing.html#parsing-html-fragments
"""

# Elements that never have an end tag
VOID_ELEMENTS = frozenset({
    "area",
    "base",
    "basefont",
    "bgsound",
    "br",
    "col",
    "embed",
    "hr",
    "img",
    "input",
    "keygen",
    "link",
    "meta",
    "param",
    "source",
    "track",
    "wbr",
})

# HTML elements whose text content is not entity-decoded by the tokenizer, so it
# must be written back verbatim. <noscript> is absent: whether its content is raw
# text depends on the scripting flag, so it is escaped like ordinary text.
RAWTEXT_ELEMENTS = frozenset({
    "iframe",
    "noembed",
    "noframes",
    "plaintext",
    "script",
    "style",
    "xmp",
})

# html5lib namespace URIs -> short names stored on Node.namespace
NAMESPACE_PREFIXES = {
    "http://www.w3.org/1999/xhtml": None,
    "http://www.w3.org/2000/svg": "svg",
    "http://www.w3.org/1998/Math/MathML": "math",
}

"""Markup parsing: html5lib does the HTML5 tree construction, this module
converts its DOM into `safehtml.node.Node` trees."""

from __future__ import annotations

import logging
from xml.dom import Node as DomNode

import html5lib
from html5lib.constants import E as HTML5LIB_ERRORS
from html5lib.html5parser import ParseError as Html5libParseError

from .constants import NAMESPACE_PREFIXES
from .node import Node

logger = logging.getLogger(__name__)

# Fragments are parsed as the contents of a <div>, like innerHTML.
FRAGMENT_CONTAINER = "div"


class ParseError(ValueError):
    """Represents a parse error with location information."""

    def __init__(self, code, line=None, column=None, message=None):
        self.code = code
        self.line = line
        self.column = column
        self.message = message or code
        super().__init__(str(self))

    def __repr__(self):
        if self.line is not None and self.column is not None:
            return f"ParseError({self.code!r}, line={self.line}, column={self.column})"
        return f"ParseError({self.code!r})"

    def __str__(self):
        if self.line is not None and self.column is not None:
            if self.message != self.code:
                return f"({self.line},{self.column}): {self.code} - {self.message}"
            return f"({self.line},{self.column}): {self.code}"
        if self.message != self.code:
            return f"{self.code} - {self.message}"
        return self.code


def _to_parse_error(entry):
    position, code, datavars = entry
    line, column = position if position else (None, None)
    try:
        message = HTML5LIB_ERRORS[code] % (datavars or {})
    except (KeyError, TypeError):
        message = code
    return ParseError(code, line=line, column=column, message=message)


def _convert_node(source):
    node_type = source.nodeType
    if node_type == DomNode.TEXT_NODE:
        return Node.text(source.data)
    if node_type == DomNode.COMMENT_NODE:
        return Node.comment(source.data)
    if node_type == DomNode.ELEMENT_NODE:
        return Node(
            source.tagName,
            source.attributes.items(),
            # html5lib already lower-cases HTML names and case-adjusts SVG/MathML ones
            preserve_attr_case=True,
            namespace=NAMESPACE_PREFIXES.get(source.namespaceURI),
        )
    return None


def _convert_fragment(dom_fragment):
    root = Node.fragment()
    # Explicit stack: deeply nested input must not hit the recursion limit
    stack = [(dom_fragment, root)]
    while stack:
        source, target = stack.pop()
        for child in source.childNodes:
            converted = _convert_node(child)
            if converted is None:
                continue
            # html5lib emits character tokens in chunks; keep one text node per run
            if converted.tag_name == "#text" and target.children and target.children[-1].tag_name == "#text":
                target.children[-1].text_content += converted.text_content
                continue
            target.append_child(converted)
            if child.childNodes:
                stack.append((child, converted))
    return root


def parse_fragment(markup, *, strict=False, errors=None):
    """Parse `markup` as an HTML fragment and return a '#document-fragment' Node.

    Args:
        markup: HTML text
        strict: raise ParseError on the first parse error instead of recovering
        errors: optional list that receives a ParseError for every recovered error

    """
    parser = html5lib.HTMLParser(
        tree=html5lib.getTreeBuilder("dom"),
        strict=strict,
        namespaceHTMLElements=False,
    )
    try:
        dom_fragment = parser.parseFragment(markup, container=FRAGMENT_CONTAINER)
    except Html5libParseError as exc:
        if parser.errors:
            raise _to_parse_error(parser.errors[-1]) from exc
        raise ParseError("parse-error", message=str(exc)) from exc

    if parser.errors:
        logger.debug("recovered from %d parse errors", len(parser.errors))
        if errors is not None:
            errors.extend(_to_parse_error(entry) for entry in parser.errors)

    return _convert_fragment(dom_fragment)

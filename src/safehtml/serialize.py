"""HTML serialization utilities for safehtml DOM nodes."""

from __future__ import annotations

from typing import Any

from .constants import RAWTEXT_ELEMENTS, VOID_ELEMENTS


def _escape_text(text: str | None) -> str:
    if not text:
        return ""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr_value(value: str | None) -> str:
    if value is None:
        return ""
    # '<' is escaped too: a value like "</noscript><img ...>" must not be able to
    # end a raw-text parent when the markup is parsed with different settings.
    return str(value).replace("&", "&amp;").replace("<", "&lt;").replace('"', "&quot;")


def _minimize_attr_value(value: str | None) -> bool:
    return value is None or value == ""


def serialize_start_tag(name: str, attrs: dict[str, str | None] | None) -> str:
    parts: list[str] = ["<", name]
    for key, value in (attrs or {}).items():
        if _minimize_attr_value(value):
            parts.extend([" ", key])
            continue
        parts.extend([" ", key, '="', _escape_attr_value(value), '"'])
    parts.append(">")
    return "".join(parts)


def serialize_end_tag(name: str) -> str:
    return f"</{name}>"


# The parser drops one newline right after these start tags; emit an extra one
# so a leading newline in the content survives a parse/serialize round trip.
_LEADING_NEWLINE_ELEMENTS: frozenset[str] = frozenset({"pre", "textarea", "listing"})


def _starts_with_newline(children: list[Any]) -> bool:
    return bool(children) and children[0].tag_name == "#text" and children[0].text_content.startswith("\n")


def _raw_text(text: str, parent: str) -> str:
    # Text from the parser can never contain the parent's end tag, but a hand-built
    # tree can; escaping it keeps the element from being closed early.
    if f"</{parent}" in text.lower():
        return _escape_text(text)
    return text


def to_html(node: Any) -> str:
    """Convert node to HTML string.

    Renders fragments, elements, text and comments. Structure and attribute
    order are preserved; nothing is pretty-printed. Iterative, so arbitrarily
    deep trees serialize without recursion.
    """
    parts: list[str] = []
    # Items are Nodes or literal end-tag strings, each with the raw-text parent
    # name in effect (None outside script/style-like elements).
    stack: list[tuple[Any, str | None]] = [(node, None)]
    while stack:
        item, raw_parent = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue

        name: str = item.tag_name

        if name == "#text":
            text = item.text_content or ""
            parts.append(_raw_text(text, raw_parent) if raw_parent else _escape_text(text))
            continue

        if name == "#comment":
            parts.append(f"<!--{item.text_content or ''}-->")
            continue

        if name == "!doctype":
            parts.append("<!DOCTYPE html>")
            continue

        if name == "#document-fragment":
            stack.extend((child, raw_parent) for child in reversed(item.children))
            continue

        # Element node
        parts.append(serialize_start_tag(name, item.attributes))
        is_html = item.namespace is None
        if is_html and name in VOID_ELEMENTS:
            continue

        if is_html and name in _LEADING_NEWLINE_ELEMENTS and _starts_with_newline(item.children):
            parts.append("\n")

        stack.append((serialize_end_tag(name), None))
        child_raw = name if is_html and name in RAWTEXT_ELEMENTS else None
        stack.extend((child, child_raw) for child in reversed(item.children))

    return "".join(parts)

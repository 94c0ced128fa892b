"""Attribute validation: name allow-listing plus URL protocol checks."""

from __future__ import annotations

import re
from collections.abc import Iterator

from .policy import ASCII_WHITESPACE, DEFAULT_POLICY, Policy, canonical_name

# Attributes whose value is navigated to or loaded. The set is owned here, not by
# the policy, so one attribute name is protocol-checked the same way on every tag.
URI_ATTRIBUTES: frozenset[str] = frozenset({
    "action",
    "background",
    "cite",
    "formaction",
    "href",
    "itemtype",
    "longdesc",
    "poster",
    "src",
    "xlink:href",
})

# Comma-separated candidate lists; every candidate URL must pass.
URI_LIST_ATTRIBUTES: frozenset[str] = frozenset({"srcset"})

# URL parsers strip leading/trailing C0 controls and spaces, and drop tab/LF/CR
# anywhere in the value ("java\tscript:" is still javascript:).
_C0_AND_SPACE = "".join(chr(c) for c in range(0x21))
_URL_NOISE = re.compile(r"[\t\n\r]")

# Relative references start with one of these, or have no ':' before them.
_RELATIVE_STARTS = ("#", "/", "?")

_DATA_URL = re.compile(
    r"data:(?:image/(?:bmp|gif|jpeg|jpg|png|tiff|webp)"
    r"|video/(?:mpeg|mp4|ogg|webm)"
    r"|audio/(?:mp3|oga|ogg|opus));base64,[\d+/a-z]+=*",
    re.IGNORECASE,
)


def _normalize_url(value: str) -> str:
    return _URL_NOISE.sub("", value.strip(_C0_AND_SPACE))


def is_safe_url(value: str | None, policy: Policy = DEFAULT_POLICY) -> bool:
    """Return True if `value` is relative or uses a scheme the policy allows.

    Empty values resolve to the current document and are accepted.
    """
    url = _normalize_url(value or "")
    if not url or url.startswith(_RELATIVE_STARTS):
        return True

    scheme, colon, _ = url.partition(":")
    if not colon or any(ch in scheme for ch in "/?#"):
        return True

    if scheme.lower() in policy.allowed_schemes:
        return True
    return policy.allow_data_urls and _DATA_URL.fullmatch(url) is not None


def _srcset_candidates(value: str) -> Iterator[str]:
    """Yield the URL of each srcset candidate.

    Follows the HTML srcset parsing rules: a URL runs to the next whitespace, so
    commas inside it (``data:image/png;base64,...``) do not split it. Trailing
    commas end the candidate; otherwise descriptors run to the next comma outside
    parentheses.
    """
    pos = 0
    length = len(value)
    while True:
        while pos < length and (value[pos] in ASCII_WHITESPACE or value[pos] == ","):
            pos += 1
        if pos >= length:
            return

        start = pos
        while pos < length and value[pos] not in ASCII_WHITESPACE:
            pos += 1
        url = value[start:pos]
        if url.endswith(","):
            yield url.rstrip(",")
            continue
        yield url

        in_parens = False
        while pos < length:
            char = value[pos]
            pos += 1
            if char == "(":
                in_parens = True
            elif char == ")":
                in_parens = False
            elif char == "," and not in_parens:
                break


def is_attribute_allowed(tag: str, attr_name: str, attr_value: str | None, policy: Policy = DEFAULT_POLICY) -> bool:
    """Decide whether one attribute survives on `tag`.

    The name must be allowed for the tag or by the wildcard entry. URL-bearing
    attributes must then also carry a safe value; both gates have to pass.
    """
    tag = canonical_name(tag)
    name = canonical_name(attr_name)
    if not name or not policy.allows_attribute_name(tag, name):
        return False

    value = attr_value or ""
    if name in URI_ATTRIBUTES:
        return is_safe_url(value, policy)
    if name in URI_LIST_ATTRIBUTES:
        return all(is_safe_url(url, policy) for url in _srcset_candidates(value))
    return True

"""HTML sanitization policy store.

A policy is an allow-list: a mapping from tag name to the attribute names that
may appear on that tag. The reserved key ``"*"`` lists attributes allowed on
every allowed tag; it never allows a tag by itself.

Policies are immutable. Customizing the default always produces a new policy
through `merge_policies`, so `DEFAULT_POLICY` can be shared freely between
concurrent calls.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Optional, Union

WILDCARD = "*"

AttributeRule = Union[str, re.Pattern]

DEFAULT_SCHEMES: frozenset[str] = frozenset({"http", "https", "mailto", "tel", "ftp"})

# Characters a prefix rule such as "data-*" may match after the prefix. Keeps
# pattern-matched names free of quotes, '=', '/' and whitespace.
_PREFIX_TAIL = r"[a-z0-9_.:\-]*"

# HTML whitespace. U+00A0, U+000B and the like stay part of a name.
ASCII_WHITESPACE = " \t\n\f\r"


class InvalidPolicy(TypeError):
    """Raised when a policy is built from malformed caller input."""


def canonical_name(name: str) -> str:
    """Lower-case `name` and trim HTML (ASCII) whitespace only."""
    return name.strip(ASCII_WHITESPACE).lower()


def _canonical_name(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise InvalidPolicy(f"{what} must be a string, got {type(value).__name__}: {value!r}")
    name = canonical_name(value)
    if not name:
        raise InvalidPolicy(f"{what} must not be empty")
    return name


def _normalize_rules(tag: str, rules: Any) -> frozenset[AttributeRule]:
    # A bare string would otherwise be iterated character by character.
    if isinstance(rules, (str, bytes)) or not isinstance(rules, Iterable):
        raise InvalidPolicy(
            f"attributes for {tag!r} must be a collection of names, got {type(rules).__name__}: {rules!r}"
        )
    normalized: set[AttributeRule] = set()
    for rule in rules:
        if isinstance(rule, re.Pattern):
            normalized.add(rule)
        else:
            normalized.add(_canonical_name(rule, f"attribute name for {tag!r}"))
    return frozenset(normalized)


def _compile_patterns(rules: frozenset[AttributeRule]) -> tuple[re.Pattern[str], ...]:
    patterns: list[re.Pattern[str]] = []
    for rule in rules:
        if isinstance(rule, re.Pattern):
            patterns.append(rule)
        elif rule.endswith(WILDCARD):
            patterns.append(re.compile(re.escape(rule[:-1]) + _PREFIX_TAIL))
    # Sort so equal policies behave identically regardless of set iteration order.
    return tuple(sorted(patterns, key=lambda p: p.pattern))


@dataclass(frozen=True, slots=True)
class Policy:
    """An allow-list driven policy for sanitizing a parsed DOM.

    - Tags that are not keys of `allowed_attributes` (ignoring ``"*"``) are removed
      together with their subtree.
    - Attributes not in `allowed_attributes[tag]` or `allowed_attributes["*"]` are
      removed.
    - Attribute rules are lower-case names. A name ending in ``*`` is a prefix
      rule (``"aria-*"``); compiled `re.Pattern` objects are matched with
      ``fullmatch``.
    - URL-valued attributes must additionally use a scheme from `allowed_schemes`,
      or be relative. `allow_data_urls` admits base64 image/video/audio data URLs.
    """

    allowed_attributes: Mapping[str, Collection[AttributeRule]]
    allowed_schemes: Collection[str] = DEFAULT_SCHEMES
    allow_data_urls: bool = False

    _patterns: Optional[Mapping[str, tuple[re.Pattern[str], ...]]] = field(
        init=False, repr=False, compare=False, default=None
    )

    def __post_init__(self) -> None:
        if not isinstance(self.allowed_attributes, Mapping):
            raise InvalidPolicy(
                f"policy must be a mapping of tag name to attribute names, got "
                f"{type(self.allowed_attributes).__name__}"
            )

        normalized: dict[str, frozenset[AttributeRule]] = {}
        for tag, rules in self.allowed_attributes.items():
            key = WILDCARD if tag == WILDCARD else _canonical_name(tag, "tag name")
            # "A" and "a" may both be given; their rules are combined.
            normalized[key] = normalized.get(key, frozenset()) | _normalize_rules(key, rules)
        object.__setattr__(self, "allowed_attributes", MappingProxyType(normalized))

        patterns = {tag: _compile_patterns(rules) for tag, rules in normalized.items()}
        object.__setattr__(self, "_patterns", MappingProxyType({k: v for k, v in patterns.items() if v}))

        if isinstance(self.allowed_schemes, (str, bytes)) or not isinstance(self.allowed_schemes, Iterable):
            raise InvalidPolicy(f"allowed_schemes must be a collection of strings, got {self.allowed_schemes!r}")
        schemes = frozenset(_canonical_name(s, "URL scheme") for s in self.allowed_schemes)
        object.__setattr__(self, "allowed_schemes", schemes)

        if not isinstance(self.allow_data_urls, bool):
            raise InvalidPolicy(f"allow_data_urls must be a bool, got {self.allow_data_urls!r}")

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(tag for tag in self.allowed_attributes if tag != WILDCARD)

    def allows_tag(self, tag: str) -> bool:
        return tag in self.allowed_attributes and tag != WILDCARD

    def allows_attribute_name(self, tag: str, name: str) -> bool:
        """Name-only check against `tag`'s rules and the wildcard rules.

        Both `tag` and `name` must already be canonical (stripped, lower-case).
        """
        for key in (tag, WILDCARD):
            rules = self.allowed_attributes.get(key)
            if rules and name in rules:
                return True
            for pattern in (self._patterns or {}).get(key, ()):
                if pattern.fullmatch(name):
                    return True
        return False

    def merge(self, *others: Policy | Mapping[str, Any]) -> Policy:
        return merge_policies(self, *others)


def coerce_policy(value: Any, *, allowed_schemes: Collection[str] = DEFAULT_SCHEMES) -> Policy:
    """Return `value` as a Policy; raw mappings are validated and wrapped."""
    if isinstance(value, Policy):
        return value
    if isinstance(value, Mapping):
        return Policy(allowed_attributes=value, allowed_schemes=allowed_schemes)
    raise InvalidPolicy(f"expected a Policy or a mapping, got {type(value).__name__}")


def merge_policies(base: Policy | Mapping[str, Any], *extensions: Policy | Mapping[str, Any]) -> Policy:
    """Combine policies into a new one.

    For every tag the allowed attributes are the union of all sides, wildcard
    included; tags only present in an extension are added. Schemes are unioned
    and `allow_data_urls` is true if any side enables it. Inputs are never mutated.
    Raw mappings contribute attributes only.
    """
    merged: dict[str, set[AttributeRule]] = {}
    schemes: set[str] = set()
    allow_data_urls = False

    for index, item in enumerate((base, *extensions)):
        # A raw mapping used as base still gets the default schemes.
        policy = coerce_policy(item, allowed_schemes=DEFAULT_SCHEMES if index == 0 else ())
        for tag, rules in policy.allowed_attributes.items():
            merged.setdefault(tag, set()).update(rules)
        schemes.update(policy.allowed_schemes)
        allow_data_urls = allow_data_urls or policy.allow_data_urls

    return Policy(allowed_attributes=merged, allowed_schemes=schemes, allow_data_urls=allow_data_urls)


def policy_from_json(data: Any) -> Policy:
    """Build a Policy from decoded JSON.

    Accepts either a plain ``{"tag": ["attr", ...]}`` mapping, or an object with
    an ``"attributes"`` mapping plus optional ``"schemes"`` and ``"data_urls"``.
    """
    if isinstance(data, Mapping) and "attributes" in data:
        return Policy(
            allowed_attributes=data["attributes"],
            allowed_schemes=data.get("schemes", DEFAULT_SCHEMES),
            allow_data_urls=data.get("data_urls", False),
        )
    return coerce_policy(data)


DEFAULT_POLICY: Policy = Policy(
    allowed_attributes={
        # Allowed on every tag below
        WILDCARD: ["class", "dir", "id", "lang", "role", "title", "aria-*", "data-*"],
        # Links and images
        "a": ["href", "target", "rel", "title"],
        "img": ["src", "srcset", "alt", "title", "width", "height"],
        "area": [],
        # Structure
        "p": [],
        "div": [],
        "span": [],
        "blockquote": ["cite"],
        # Headings
        "h1": [],
        "h2": [],
        "h3": [],
        "h4": [],
        "h5": [],
        "h6": [],
        # Lists
        "ul": [],
        "ol": [],
        "li": [],
        # Text formatting
        "b": [],
        "strong": [],
        "i": [],
        "em": [],
        "u": [],
        "s": [],
        "sub": [],
        "sup": [],
        "small": [],
        # Code
        "code": [],
        "pre": [],
        # Breaks and table columns
        "br": [],
        "hr": [],
        "col": [],
    },
)


def default_policy() -> Policy:
    """Return the shared, read-only default policy."""
    return DEFAULT_POLICY

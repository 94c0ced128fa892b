"""Allow-list sanitization of parsed markup.

`sanitize` polices a Node tree in place; `sanitize_html` is the string-in,
string-out entry point that parses, sanitizes and serializes.

Disallowed elements are removed together with their whole subtree, and
disallowed or unsafe attributes are dropped. Nothing is escaped for display and
nothing is reported: omission is the only outcome of a policy decision.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .attributes import is_attribute_allowed
from .node import Node
from .parser import parse_fragment
from .policy import DEFAULT_POLICY, Policy, coerce_policy, merge_policies
from .serialize import to_html

logger = logging.getLogger(__name__)

SanitizeFn = Callable[[str], str]


def _sanitize_attributes(node: Node, tag: str, policy: Policy) -> None:
    # Snapshot: attributes are deleted while iterating
    for name, value in list(node.attributes.items()):
        if not is_attribute_allowed(tag, name, value, policy):
            del node.attributes[name]


def sanitize(root: Node, policy: Policy | Mapping[str, Any] = DEFAULT_POLICY) -> Node:
    """Remove everything `policy` does not allow from `root`'s descendants.

    The tree is mutated in place and `root` is returned. `root` itself is never
    removed or altered. Elements whose tag is not in the policy are detached
    with their subtree; surviving elements lose every attribute that fails
    `is_attribute_allowed`. Text, comments and other non-element nodes pass
    through untouched.

    The walk is depth-first, parents before children, over a snapshot of each
    child list taken before it is pruned. It uses an explicit stack, so depth is
    bounded only by the tree, not by the interpreter's recursion limit.
    """
    policy = coerce_policy(policy)

    stack = [root]
    while stack:
        parent = stack.pop()
        doomed = []
        kept = []
        for child in tuple(parent.children):
            if not child.is_element:
                continue
            # Lower-case only: the parser keeps characters such as U+00A0 in names
            tag = child.tag_name.lower()
            if not policy.allows_tag(tag):
                doomed.append(child)
                continue
            _sanitize_attributes(child, tag, policy)
            kept.append(child)

        parent.remove_children(doomed)
        # Reversed so the first child is visited first
        stack.extend(reversed(kept))

    return root


def resolve_policy(policy: Policy | Mapping[str, Any] | None = None, *, extend_default: bool = True) -> Policy:
    """Return the effective policy for one sanitize call.

    With `extend_default` the caller's policy widens `DEFAULT_POLICY`; otherwise
    it replaces it. The shared default is never mutated.
    """
    if policy is None:
        return DEFAULT_POLICY
    if extend_default:
        return merge_policies(DEFAULT_POLICY, policy)
    return coerce_policy(policy)


def sanitize_html(
    markup: str,
    policy: Policy | Mapping[str, Any] | None = None,
    sanitize_fn: SanitizeFn | None = None,
    *,
    extend_default: bool = True,
    strict: bool = False,
) -> str:
    """Return a safe version of `markup`.

    Args:
        markup: untrusted HTML
        policy: a Policy or a ``{"tag": ["attr", ...]}`` mapping; merged into the
            default policy unless `extend_default` is False
        sanitize_fn: replaces the built-in sanitizer entirely; its return value is
            the result and no parsing or serialization happens
        extend_default: merge `policy` into the default (True) or use it alone
        strict: raise ParseError on malformed markup instead of recovering

    Empty input is returned as an empty string without any processing.
    """
    if not markup:
        return ""

    if sanitize_fn is not None:
        if not callable(sanitize_fn):
            raise TypeError(f"sanitize_fn must be callable, got {type(sanitize_fn).__name__}")
        logger.debug("custom sanitize_fn %r bypasses the built-in sanitizer", sanitize_fn)
        return sanitize_fn(markup)

    effective = resolve_policy(policy, extend_default=extend_default)
    root = parse_fragment(markup, strict=strict)
    sanitize(root, effective)
    return to_html(root)

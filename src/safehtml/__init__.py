import logging

from .attributes import URI_ATTRIBUTES, URI_LIST_ATTRIBUTES, is_attribute_allowed, is_safe_url
from .node import Node
from .parser import ParseError, parse_fragment
from .policy import DEFAULT_POLICY, InvalidPolicy, Policy, default_policy, merge_policies, policy_from_json
from .sanitize import resolve_policy, sanitize, sanitize_html
from .serialize import to_html

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_POLICY",
    "URI_ATTRIBUTES",
    "URI_LIST_ATTRIBUTES",
    "InvalidPolicy",
    "Node",
    "ParseError",
    "Policy",
    "default_policy",
    "is_attribute_allowed",
    "is_safe_url",
    "merge_policies",
    "parse_fragment",
    "policy_from_json",
    "resolve_policy",
    "sanitize",
    "sanitize_html",
    "to_html",
]

"""Command line entry point: ``python -m safehtml [FILE]``.

Reads untrusted markup from FILE (or stdin) and writes the sanitized markup to
stdout.
"""

import argparse
import json
import sys
from pathlib import Path

from .parser import ParseError
from .policy import InvalidPolicy, Policy, policy_from_json
from .sanitize import resolve_policy, sanitize_html


def build_parser():
    parser = argparse.ArgumentParser(prog="safehtml", description="Sanitize untrusted HTML against an allow-list")
    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="HTML file to sanitize (default: stdin)",
    )
    parser.add_argument(
        "--policy",
        metavar="JSON",
        help='Policy file: {"tag": ["attr", ...]} or {"attributes": {...}, "schemes": [...], "data_urls": bool}',
    )
    parser.add_argument(
        "--replace-default",
        action="store_true",
        help="Use the policy file on its own instead of merging it into the default policy",
    )
    parser.add_argument(
        "--allow-scheme",
        action="append",
        default=[],
        metavar="SCHEME",
        help="Additionally allow this URL scheme (repeatable)",
    )
    parser.add_argument(
        "--allow-data-urls",
        action="store_true",
        help="Allow base64 image/video/audio data: URLs",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first HTML parse error instead of recovering",
    )
    return parser


def load_policy(args):
    extension = None
    if args.policy:
        data = json.loads(Path(args.policy).read_text(encoding="utf-8"))
        extension = policy_from_json(data)

    policy = resolve_policy(extension, extend_default=not args.replace_default)
    if args.allow_scheme or args.allow_data_urls:
        policy = policy.merge(
            Policy(
                allowed_attributes={},
                allowed_schemes=args.allow_scheme,
                allow_data_urls=args.allow_data_urls,
            )
        )
    return policy


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        policy = load_policy(args)
    except (OSError, ValueError, InvalidPolicy) as exc:
        print(f"safehtml: invalid policy: {exc}", file=sys.stderr)
        return 2

    if args.file == "-":
        markup = sys.stdin.read()
    else:
        markup = Path(args.file).read_text(encoding="utf-8")

    try:
        result = sanitize_html(markup, policy, extend_default=False, strict=args.strict)
    except ParseError as exc:
        print(f"safehtml: parse error: {exc}", file=sys.stderr)
        return 1

    sys.stdout.write(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Random fuzzer for the sanitizer.

Feeds malformed and hostile markup through sanitize_html() and checks that the
output never carries a tag or attribute the policy rejects, that a second
sanitize() pass over the same tree changes nothing, and that sanitizing the
output again drops nothing beyond what reparsing it already normalizes.
"""

import argparse
import random
import string
import sys
import time
import traceback

from safehtml import DEFAULT_POLICY, is_attribute_allowed, parse_fragment, sanitize, sanitize_html, to_html

TAGS = [
    "div", "span", "p", "a", "img", "table", "tr", "td", "ul", "ol", "li", "b", "i",
    "form", "input", "button", "select", "option", "textarea", "script", "style",
    "title", "meta", "link", "base", "br", "hr", "h1", "h2", "pre", "code", "blockquote",
    "iframe", "object", "embed", "video", "audio", "source", "svg", "math", "template",
    "noscript", "noembed", "noframes", "xmp", "plaintext", "listing", "frameset", "marquee",
]

RAW_TEXT_TAGS = ["script", "style", "xmp", "iframe", "noembed", "noframes", "noscript"]
FORMATTING_TAGS = ["a", "b", "code", "em", "i", "s", "small", "strong", "u"]

ATTRIBUTES = [
    "id", "class", "style", "href", "src", "srcset", "alt", "title", "action", "formaction",
    "onclick", "onload", "onerror", "onmouseover", "data-x", "aria-label", "role", "target",
    "xlink:href", "background", "poster", "cite", "dir", "lang",
]

URLS = [
    "https://example.com/",
    "/relative/path",
    "page.html",
    "#frag",
    "?q=1",
    "mailto:x@example.com",
    "javascript:alert(1)",
    "JaVaScRiPt:alert(1)",
    " \x01javascript:alert(1)",
    "java\tscript:alert(1)",
    "java&#x09;script:alert(1)",
    "&#106;avascript:alert(1)",
    "javascript&colon;alert(1)",
    "vbscript:msgbox(1)",
    "data:text/html;base64,PHNjcmlwdD5hbGVydCgxKTwvc2NyaXB0Pg==",
    "data:image/png;base64,iVBORw0KGgo=",
    "a.png 1x, javascript:alert(1) 2x",
]

BREAKOUTS = [
    "</style><img src=x onerror=alert(1)>",
    "</script><script>alert(1)</script>",
    "</title><img src=x onerror=alert(1)>",
    "</textarea><img src=x onerror=alert(1)>",
    "--><img src=x onerror=alert(1)>",
    "\"><img src=x onerror=alert(1)>",
    "'><svg onload=alert(1)>",
    "<!--<img src=\"--><img src=x onerror=alert(1)//\">",
]

SPECIAL_CHARS = ["\x00", "\x01", "\x0b", "\x0c", "\x7f", "\ufffd", "\u00a0", "\u2028", "\u200b", "\ufeff"]

ENTITIES = ["&amp;", "&lt;", "&gt;", "&quot;", "&", "&amp", "&#", "&#x3c;", "&#60", "&#0;", "&unknown;", "&LT"]


def random_string(min_len=0, max_len=20):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def random_whitespace():
    ws = [" ", "\t", "\n", "\r", "\f", ""]
    return "".join(random.choices(ws, k=random.randint(0, 3)))


def fuzz_tag_name():
    strategies = [
        lambda: random.choice(TAGS),
        lambda: random.choice(TAGS).upper(),
        lambda: random.choice(TAGS) + random_string(1, 5),
        lambda: random_string(1, 10),
        lambda: random.choice(TAGS) + random.choice(SPECIAL_CHARS),
        lambda: random.choice(TAGS) + "/" + random.choice(TAGS),
    ]
    return random.choice(strategies)()


def fuzz_attribute():
    """Generate an attribute, often with a hostile value."""
    name = random.choice(ATTRIBUTES) if random.random() < 0.8 else random_string(1, 10)
    value = random.choice(
        [
            lambda: random.choice(URLS),
            lambda: random.choice(BREAKOUTS),
            lambda: random.choice(ENTITIES),
            lambda: random_string(0, 30),
            lambda: random.choice(SPECIAL_CHARS) + random.choice(URLS),
        ]
    )()
    quote_styles = [('="', '"'), ("='", "'"), ("=", ""), ("", ""), ('="', "")]
    quote_start, quote_end = random.choice(quote_styles)
    if quote_start == "=":
        value = value.replace(" ", "")
    return f"{name}{quote_start}{value}{quote_end}"


def fuzz_open_tag():
    tag = fuzz_tag_name()
    attrs = " ".join(fuzz_attribute() for _ in range(random.randint(0, 4)))
    closing = random.choice([">", "/>", " >", ""])
    return f"<{tag}{random_whitespace() or ' '}{attrs}{closing}"


def fuzz_close_tag():
    tag = fuzz_tag_name()
    return random.choice([f"</{tag}>", f"</ {tag}>", f"</{tag}", f"</{tag} x=y>"])


def fuzz_comment():
    content = random.choice([random_string(0, 30), random.choice(BREAKOUTS)])
    variants = [
        f"<!--{content}-->",
        f"<!--{content}--!>",
        f"<!--{content}",
        f"<!-->{content}",
        f"<!{content}>",
        f"<?{content}?>",
        f"<![CDATA[{content}]]>",
    ]
    return random.choice(variants)


def fuzz_text():
    strategies = [
        lambda: random_string(1, 30),
        lambda: random.choice(ENTITIES),
        lambda: "".join(random.choices(SPECIAL_CHARS, k=random.randint(1, 5))),
        lambda: "<" + random_string(1, 5),
        lambda: random_string() + ">" + random_string(),
        lambda: "\r\n" * random.randint(1, 3),
    ]
    return random.choice(strategies)()


def fuzz_raw_text():
    """Raw text elements holding markup that looks like a way out."""
    tag = random.choice(RAW_TEXT_TAGS)
    content = random.choice(BREAKOUTS + [random_string(0, 30)])
    variants = [
        f"<{tag}>{content}</{tag}>",
        f"<{tag}>{content}",
        f"<{tag}>{content}</{tag[:-1]}>{content}</{tag}>",
        f"<{tag.upper()}>{content}</{tag}>",
    ]
    return random.choice(variants)


def fuzz_foreign_content():
    content = random.choice(BREAKOUTS + [random_string(0, 20)])
    variants = [
        f"<svg>{content}</svg>",
        f"<svg><style>{content}</style></svg>",
        f"<math><mtext><table><mglyph><style>{content}</style></mglyph></table></mtext></math>",
        f"<svg><foreignObject><div>{content}</div></foreignObject></svg>",
        f"<math><annotation-xml encoding='text/html'><p>{content}</p></annotation-xml></math>",
        f"<svg><a xlink:href='javascript:alert(1)'><text>{content}</text></a></svg>",
        f"<svg><p>{content}</p></svg>",
    ]
    return random.choice(variants)


def fuzz_nested_structure(depth=0, max_depth=8):
    if depth >= max_depth or random.random() < 0.3:
        return fuzz_text()
    tag = random.choice(TAGS)
    attrs = " ".join(fuzz_attribute() for _ in range(random.randint(0, 2)))
    children = "".join(fuzz_nested_structure(depth + 1, max_depth) for _ in range(random.randint(0, 3)))
    open_tag = f"<{tag} {attrs}>" if attrs else f"<{tag}>"
    if random.random() < 0.2:
        return f"{open_tag}{children}"
    if random.random() < 0.1:
        return f"{open_tag}{children}</{random.choice(TAGS)}>"
    return f"{open_tag}{children}</{tag}>"


def fuzz_misnesting():
    formatting = random.choice(FORMATTING_TAGS)
    block = random.choice(["div", "p", "blockquote", "ul"])
    text = random_string(1, 8)
    variants = [
        f"<{formatting}>{text}<{block}>{text}</{formatting}>{text}</{block}>",
        f"<table><{formatting}>{text}<tr><td>{text}</td></tr></table>",
        f"<table><script>alert(1)</script><tr><td>{text}</td></tr></table>",
        f"<p>{text}<p>{text}<li>{text}",
        f"<{formatting}>" * 20 + text + f"</{formatting}>" * 5,
    ]
    return random.choice(variants)


def fuzz_deeply_nested():
    depth = random.randint(100, 1000)
    tag = random.choice(["div", "span", "b", "script", "object"])
    return f"<{tag}>" * depth + "content" + f"</{tag}>" * depth


def generate_fuzzed_markup():
    """Generate one fuzzed fragment."""
    parts = []
    for _ in range(random.randint(1, 15)):
        element_type = random.choices(
            [
                fuzz_open_tag,
                fuzz_close_tag,
                fuzz_comment,
                fuzz_text,
                fuzz_raw_text,
                fuzz_foreign_content,
                fuzz_nested_structure,
                fuzz_misnesting,
                fuzz_deeply_nested,
            ],
            weights=[20, 8, 6, 15, 6, 6, 10, 5, 1],
        )[0]
        parts.append(element_type())
    return "".join(parts)


def policy_violations(output):
    """Return the tags and attributes in *output* that the default policy rejects."""
    problems = []
    for node in parse_fragment(output).iter_descendants():
        if not node.is_element:
            continue
        # Exact lookups: the parser has already lower-cased HTML names
        if node.is_foreign or node.tag_name not in DEFAULT_POLICY.tags:
            problems.append(f"tag {node.tag_name!r}")
            continue
        for name, value in node.attributes.items():
            if not DEFAULT_POLICY.allows_attribute_name(node.tag_name, name) or (
                not is_attribute_allowed(node.tag_name, name, value, DEFAULT_POLICY)
            ):
                problems.append(f"attribute {name}={value!r} on {node.tag_name!r}")
    return problems


def run_fuzzer(num_tests, seed=None, verbose=False, save_failures=False):
    """Run the fuzzer against sanitize_html()."""
    if seed is not None:
        random.seed(seed)

    failures = []
    hangs = []
    successes = 0

    print(f"Fuzzing sanitize_html with {num_tests} test cases...")
    start_time = time.time()

    for i in range(num_tests):
        markup = generate_fuzzed_markup()

        if verbose and i % 100 == 0:
            print(f"  Test {i}/{num_tests}...")

        try:
            start = time.perf_counter()
            output = sanitize_html(markup)
            elapsed = time.perf_counter() - start
            problems = policy_violations(output)

            root = sanitize(parse_fragment(markup), DEFAULT_POLICY)
            once = to_html(root)
            if to_html(sanitize(root, DEFAULT_POLICY)) != once:
                problems.append("second sanitize pass changed the tree")
            if sanitize_html(output) != to_html(parse_fragment(output)):
                problems.append("re-sanitizing the output removed content")
        except Exception as e:
            failures.append({"test_num": i, "html": markup, "error": f"crash: {e}", "traceback": traceback.format_exc()})
            if verbose:
                print(f"  CRASH: Test {i}: {e}")
            continue

        if problems:
            failures.append({"test_num": i, "html": markup, "error": "; ".join(problems), "traceback": output})
            if verbose:
                print(f"  UNSOUND: Test {i}: {problems[0]}")
        elif elapsed > 5.0:
            hangs.append({"test_num": i, "html": markup, "time": elapsed})
            if verbose:
                print(f"  HANG: Test {i} took {elapsed:.2f}s")
        else:
            successes += 1

    elapsed_total = time.time() - start_time

    print(f"\n{'='*60}")
    print("FUZZING RESULTS")
    print(f"{'='*60}")
    print(f"Total tests:    {num_tests}")
    print(f"Successes:      {successes}")
    print(f"Failures:       {len(failures)}")
    print(f"Hangs (>5s):    {len(hangs)}")
    print(f"Total time:     {elapsed_total:.2f}s")
    print(f"Tests/second:   {num_tests/elapsed_total:.1f}")

    if failures:
        print(f"\n{'='*60}")
        print("FAILURE DETAILS:")
        print(f"{'='*60}")
        for failure in failures[:10]:
            print(f"\nTest #{failure['test_num']}:")
            print(f"  HTML: {failure['html'][:200]!r}...")
            print(f"  Error: {failure['error']}")
        if len(failures) > 10:
            print(f"\n... and {len(failures) - 10} more failures")

    if hangs:
        print(f"\n{'='*60}")
        print("HANG DETAILS:")
        print(f"{'='*60}")
        for hang in hangs[:5]:
            print(f"\nTest #{hang['test_num']} ({hang['time']:.2f}s):")
            print(f"  HTML: {hang['html'][:200]!r}...")

    if save_failures and (failures or hangs):
        filename = f"fuzz_failures_{int(time.time())}.txt"
        with open(filename, "w", encoding="utf-8") as f:
            f.write(f"Seed: {seed}\n\n")
            for failure in failures:
                f.write(f"=== FAILURE #{failure['test_num']} ===\n")
                f.write(f"HTML:\n{failure['html']}\n")
                f.write(f"Error: {failure['error']}\n")
                f.write(f"Detail:\n{failure['traceback']}\n\n")
            for hang in hangs:
                f.write(f"=== HANG #{hang['test_num']} ({hang['time']:.2f}s) ===\n")
                f.write(f"HTML:\n{hang['html']}\n\n")
        print(f"\nFailures saved to {filename}")

    return not failures and not hangs


def main():
    parser = argparse.ArgumentParser(description="Fuzz the HTML sanitizer with hostile input")
    parser.add_argument("--num-tests", "-n", type=int, default=1000, help="Number of test cases (default: 1000)")
    parser.add_argument("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--save-failures", action="store_true", help="Save failures to a file")
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Just print N sample fuzzed fragments (no sanitizing)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed is not None:
            random.seed(args.seed)
        for i in range(args.sample):
            print(f"=== Sample {i+1} ===")
            print(generate_fuzzed_markup())
            print()
        return

    success = run_fuzzer(args.num_tests, seed=args.seed, verbose=args.verbose, save_failures=args.save_failures)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Random fuzzer for the sanitizer.
Generates invalid/malformed HTML and checks that the output is safe and stable.
"""

import argparse
import random
import re
import string
import sys
import time
import traceback
from dataclasses import replace

from inerthtml import DEFAULT_POLICY, TagRules, clean

# Fuzzing strategies
ALLOWED_TAGS = sorted(DEFAULT_POLICY.tags)
HOSTILE_TAGS = [
    "script", "style", "iframe", "object", "embed", "svg", "math", "template", "form",
    "base", "meta", "link", "frameset", "noscript", "xmp", "plaintext", "title", "html",
]
TAGS = ALLOWED_TAGS + HOSTILE_TAGS
SINGLE_TAGS = frozenset(
    name for name, spec in DEFAULT_POLICY.tags.items() if isinstance(spec, TagRules) and spec.single
)

ATTRIBUTES = [
    "id", "class", "style", "href", "src", "alt", "title", "name", "value", "type",
    "onclick", "onload", "onerror", "data-x", "aria-label", "role", "dir", "lang",
    "disabled", "readonly", "target", "datetime", "usemap", "cite", "srcdoc", "formaction",
]

URLS = [
    "https://example.com/", "/local", "#frag", "//evil.example", "javascript:alert(1)",
    "JaVaScRiPt:alert(1)", "java&#x09;script:alert(1)", "data:text/html,<script>1</script>",
    "data:image/png;base64,AAAA", "/\\evil", "http://a\\b", "vbscript:x",
]

STYLES = [
    "color: red", "position: absolute", "background: url(javascript:x)", "behavior: url(x.htc)",
    "margin: 0", "width: expression(alert(1))", "font-family: \"a;b\"", "x", ";", ": v",
    "border-top: 1px solid 'red", "-moz-binding: url(x)",
]

ODD_CHARS = [
    "\x00", "\x0b", "\x0c", "\x7f", "\ufffd", "\u00a0", "\u2028", "\u200b", "\ufeff",
    "\u00e9", "\U0001f600",
]

# References the escaper must keep, and look-alikes it must encode.
ENTITIES = [
    "&amp;", "&lt;", "&gt;", "&quot;", "&nbsp;", "&copy;", "&notin;",
    "&", "&amp", "&ampamp;", "&#", "&#x", "&#123", "&#x;", "&unknown;", "&LT",
    "&#0;", "&#128;", "&#xD800;", "&#x10FFFF;", "&#x110000;", "&#99999999999;",
    "&amp;lt;", "&amp;gt;", "&amp;amp;lt;", "&lt;!--", "--&gt;",
]

EMITTED_TAG = re.compile(r'<(/?)([a-z0-9]+)((?: [a-z0-9_-]+="[^"<>]*")*)>')
SLOW_SECONDS = 5.0


def random_string(min_len=0, max_len=20):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def random_whitespace():
    ws = [" ", "\t", "\n", "\r", "\f", "\v", ""]
    return "".join(random.choices(ws, k=random.randint(0, 3)))


def fuzz_tag_name():
    """Generate malformed tag names."""
    strategies = [
        lambda: random.choice(TAGS),  # Valid tag
        lambda: random.choice(TAGS),
        lambda: random.choice(TAGS).upper(),  # Uppercase
        lambda: random.choice(TAGS) + random_string(1, 3),  # Tag with suffix
        lambda: random_string(1, 8),
        lambda: "",  # Empty
        lambda: random.choice(TAGS) + "/" + random.choice(TAGS),  # Slash in name
        lambda: " " + random.choice(TAGS),  # Space prefix
        lambda: random.choice(TAGS) + random.choice(ODD_CHARS),
    ]
    return random.choice(strategies)()


def fuzz_attribute():
    """Generate malformed attributes."""
    name_strategies = [
        lambda: random.choice(ATTRIBUTES),
        lambda: random.choice(ATTRIBUTES).upper(),
        lambda: random_string(1, 10),
        lambda: "",
        lambda: "on" + random_string(2, 8),  # Event handler
        lambda: "data-" + random_string(0, 6),
        lambda: random.choice(["=", '"', "'", "<", ">", "/"]),
    ]

    value_strategies = [
        lambda: random_string(0, 30),
        lambda: random.choice(URLS),
        lambda: random.choice(STYLES) + "; " + random.choice(STYLES),
        lambda: random.choice(ENTITIES),
        lambda: "<script>alert(1)</script>",
        lambda: '"' + random_string() + '"',  # Extra quotes
        lambda: "\n" * random.randint(1, 3) + random_string(),
        lambda: "",
    ]

    quote_styles = [
        ('="', '"'),
        ("='", "'"),
        ("=", ""),  # Unquoted
        ("= ", ""),  # Space after equals
        ("", ""),  # No value
        ('="', ""),  # Unclosed quote
        ('="', '"x'),  # Tail after quote
        ("==", ""),  # Double equals
    ]

    name = random.choice(name_strategies)()
    value = random.choice(value_strategies)()
    quote_start, quote_end = random.choice(quote_styles)
    return f"{name}{quote_start}{value}{quote_end}"


def fuzz_open_tag():
    """Generate malformed opening tags."""
    tag = fuzz_tag_name()
    attrs = [fuzz_attribute() for _ in range(random.randint(0, 4))]
    attr_str = " ".join(attrs)
    sep = random.choice([" ", " ", "\n", "\t", ""])

    closings = [">", ">", "/>", " />", " >", "", ">>", "/ >"]
    closing = random.choice(closings)

    openings = ["<", "< ", "<<", "<!", "</"]
    opening = random.choice(openings) if random.random() < 0.15 else "<"

    return f"{opening}{tag}{sep}{attr_str}{random_whitespace()}{closing}"


def fuzz_close_tag():
    """Generate malformed closing tags."""
    tag = fuzz_tag_name()
    variants = [
        f"</{tag}>",
        f"</{tag}>",
        f"</ {tag}>",
        f"</{tag} >",
        f"</{tag}{random_whitespace()}>",
        f"</{tag}",  # Unclosed
        f"</{tag}/>",  # Self-closing end tag
        f"<//{tag}>",  # Double slash
        f"</{tag} {fuzz_attribute()}>",  # Attribute in end tag
    ]
    return random.choice(variants)


def fuzz_comment():
    """Generate malformed comments."""
    content = random.choice([random_string(0, 30), fuzz_open_tag(), fuzz_close_tag()])
    variants = [
        f"<!--{content}-->",
        f"<!--{content}",
        f"<!--{content}--!>",
        "<!---->",
        "<!-->",
        f"<!--{content}-->{content}-->",
        f"<!--<!--{content}-->-->",
        f"-->{content}",
    ]
    return random.choice(variants)


def fuzz_text():
    """Generate text content with edge cases."""
    strategies = [
        lambda: random_string(1, 30),
        lambda: random.choice(ENTITIES),
        lambda: "".join(random.choices(ODD_CHARS, k=random.randint(1, 5))),
        lambda: "<" + random_string(1, 5),  # Incomplete tag
        lambda: "&" + random_string(1, 10),  # Incomplete entity
        lambda: random_string() + ">" + random_string(),  # Stray >
        lambda: "\r\n" * random.randint(1, 3),  # Line endings
        lambda: "&lt;" + random.choice(TAGS) + "&gt;",  # Pre-escaped tag
    ]
    return random.choice(strategies)()


def fuzz_nested_structure(depth=0, max_depth=8):
    """Generate nested (possibly invalid) structure."""
    if depth >= max_depth or random.random() < 0.3:
        return fuzz_text()

    tag = random.choice(TAGS)
    attrs = " ".join(fuzz_attribute() for _ in range(random.randint(0, 2)))
    open_tag = f"<{tag} {attrs}>" if attrs else f"<{tag}>"
    children = [fuzz_nested_structure(depth + 1, max_depth) for _ in range(random.randint(0, 3))]
    content = "".join(children)

    # Sometimes don't close tags
    if random.random() < 0.2:
        return f"{open_tag}{content}"
    # Sometimes mismatch tags
    if random.random() < 0.15:
        return f"{open_tag}{content}</{random.choice(TAGS)}>"
    return f"{open_tag}{content}</{tag}>"


def fuzz_misnested():
    """Interleave pairs so closers arrive in the wrong order."""
    tags = random.sample(ALLOWED_TAGS, k=random.randint(2, 4))
    opens = "".join(f"<{tag}>" for tag in tags)
    closes = [f"</{tag}>" for tag in tags]
    random.shuffle(closes)
    return opens + random_string(0, 5) + "".join(closes)


def generate_fuzzed_html():
    """Generate a fuzzed HTML fragment."""
    parts = []
    num_elements = random.randint(1, 20)
    for _ in range(num_elements):
        element_type = random.choices(
            [fuzz_open_tag, fuzz_close_tag, fuzz_comment, fuzz_text, fuzz_nested_structure, fuzz_misnested],
            weights=[20, 12, 6, 15, 10, 6],
        )[0]
        parts.append(element_type())
    return "".join(parts)


def check_output(output, policy):
    """Return a list of property violations for one sanitized document."""
    problems = []

    stack = []
    for m in EMITTED_TAG.finditer(output):
        closing, name = m.group(1), m.group(2)
        if name not in policy.tags:
            problems.append(f"emitted tag not in policy: {m.group(0)!r}")
        elif name in SINGLE_TAGS:
            if closing:
                problems.append(f"emitted closer of single tag: {m.group(0)!r}")
        elif closing:
            if not stack or stack.pop() != name:
                problems.append(f"unbalanced closer: {m.group(0)!r}")
        else:
            stack.append(name)
    if stack:
        problems.append(f"unclosed emitted tags: {stack}")

    residue = EMITTED_TAG.sub("", output)
    if policy.keep_comments:
        residue = residue.replace("<!--", "").replace("-->", "")
    if "<" in residue or ">" in residue:
        problems.append("raw < or > outside emitted tags")

    again = clean(output, policy=policy)
    if again != output:
        problems.append("not idempotent")

    return problems


def sanitize_one(html, policy):
    """Sanitize one input and classify the outcome as (kind, detail)."""
    try:
        start = time.perf_counter()
        output = clean(html, policy=policy)
        elapsed = time.perf_counter() - start
    except Exception:
        return "crash", traceback.format_exc()

    if elapsed > SLOW_SECONDS:
        return "slow", f"{elapsed:.2f}s"
    problems = check_output(output, policy)
    if problems:
        return "violation", "\n".join([f"output: {output[:200]!r}", *problems])
    return "ok", ""


def run_fuzzer(num_tests, seed=None, verbose=False, save_failures=False, keep_comments=False):
    if seed is not None:
        random.seed(seed)
    policy = replace(DEFAULT_POLICY, keep_comments=keep_comments)

    counts = dict.fromkeys(("ok", "violation", "crash", "slow"), 0)
    failures = []

    mode = "kept" if keep_comments else "stripped"
    print(f"Fuzzing inerthtml with {num_tests} inputs (comments {mode})...")
    start_time = time.time()

    for i in range(num_tests):
        html = generate_fuzzed_html()
        kind, detail = sanitize_one(html, policy)
        counts[kind] += 1
        if kind != "ok":
            failures.append((i, kind, html, detail))
            if verbose:
                print(f"  {kind.upper()} #{i}: {html[:80]!r}")

    elapsed_total = time.time() - start_time

    print("-" * 60)
    for kind, count in counts.items():
        print(f"{kind:<12}{count}")
    print(f"{'inputs/s':<12}{num_tests / max(elapsed_total, 1e-9):.1f}")

    for i, kind, html, detail in failures[:10]:
        print(f"\n#{i} {kind}\n  input: {html[:200]!r}")
        print("  " + detail.replace("\n", "\n  "))
    if len(failures) > 10:
        print(f"\n... and {len(failures) - 10} more")

    if save_failures and failures:
        filename = f"fuzz_failures_{int(time.time())}.txt"
        with open(filename, "w", encoding="utf-8") as f:
            f.write(f"seed: {seed}\n\n")
            for i, kind, html, detail in failures:
                f.write(f"=== #{i} {kind} ===\n{html}\n---\n{detail}\n\n")
        print(f"\nFailures saved to {filename}")

    return not failures


def main():
    parser = argparse.ArgumentParser(description="Fuzz the sanitizer with malformed markup")
    parser.add_argument("--num-tests", "-n", type=int, default=1000, help="Number of inputs (default: 1000)")
    parser.add_argument("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print every failure as it happens")
    parser.add_argument("--keep-comments", action="store_true", help="Fuzz with comments kept instead of stripped")
    parser.add_argument("--save-failures", action="store_true", help="Save failures to a file")
    parser.add_argument("--sample", type=int, metavar="N", help="Print N generated inputs and exit")
    args = parser.parse_args()

    if args.sample:
        random.seed(args.seed)
        for i in range(args.sample):
            print(f"--- sample {i + 1} ---\n{generate_fuzzed_html()}\n")
        return

    ok = run_fuzzer(
        args.num_tests,
        seed=args.seed,
        verbose=args.verbose,
        save_failures=args.save_failures,
        keep_comments=args.keep_comments,
    )
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()

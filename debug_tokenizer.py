#!/usr/bin/env python3
"""Debug script to inspect how one input is tokenized and matched."""

import os
import sys
from dataclasses import replace
from pathlib import Path

from inerthtml import DEFAULT_POLICY, Sanitizer
from inerthtml.tokenizer import prepare, tokenize


def debug_input(html, keep_comments=False):
    policy = replace(DEFAULT_POLICY, keep_comments=keep_comments)
    buffer = prepare(html, keep_comments=keep_comments)

    print("=== Input ===")
    print(repr(html))
    print("\n=== Escaped buffer ===")
    print(repr(buffer))

    print("\nTokens:")
    for index, token in enumerate(tokenize(buffer, comments=keep_comments)):
        if token.comment:
            print(f"  #{index} @{token.start} comment {token.comment}")
            continue
        flags = []
        if token.closing:
            flags.append("closing")
        if token.self_closing:
            flags.append("self-closing")
        if policy.is_single(token.tag):
            flags.append("single")
        if token.tag not in policy.tags:
            flags.append("unknown")
        print(f"  #{index} @{token.start} {token.tag} {' '.join(flags)} attrs={token.attributes!r}")

    sanitizer = Sanitizer(policy)
    output = sanitizer.clean(html)

    print("\nWarnings:")
    for warning in sanitizer.warnings:
        print(f"  #{warning.token_index}: {warning.message}")
    if not sanitizer.warnings:
        print("  (none)")

    print("\n=== Output ===")
    print(output)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python debug_tokenizer.py <html-or-file> [--keep-comments]")
        print("Example: python debug_tokenizer.py '<p><b>x</p></b>'")
        sys.exit(1)

    source = sys.argv[1]
    text = Path(source).read_text(encoding="utf-8") if os.path.isfile(source) else source
    debug_input(text, keep_comments="--keep-comments" in sys.argv[2:])

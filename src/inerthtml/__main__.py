"""Command line entry point: ``python -m inerthtml [FILE]``."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace

from .policy import DEFAULT_POLICY
from .sanitizer import EncodingError, Sanitizer
from .tokenizer import prepare


def _line_col(text: str, pos: int) -> tuple[int, int]:
    line = text.count("\n", 0, pos) + 1
    return line, pos - (text.rfind("\n", 0, pos) + 1) + 1


def _format_warning(warning, buffer: str) -> str:
    parts = [f"#{warning.token_index}: {warning.message}"]
    for label, info in (("opener", warning.opener_info), ("closer", warning.closer_info)):
        if info is not None:
            line, col = _line_col(buffer, info["pos"])
            parts.append(f"  {label} {info['tag']!r} at {line}:{col}")
    return "\n".join(parts)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="inerthtml", description="Escape all HTML except allow-listed markup")
    parser.add_argument("file", nargs="?", help="Input file (default: stdin)")
    parser.add_argument("--warnings", "-w", action="store_true", help="Print warnings to stderr")
    parser.add_argument("--json", action="store_true", help="Print output and warnings as JSON")
    parser.add_argument("--keep-comments", action="store_true", help="Keep <!-- --> comments")
    parser.add_argument(
        "--line-breaks",
        choices=["lf", "crlf", "keep"],
        default="lf",
        help="Normalize line breaks in the output (default: lf)",
    )
    args = parser.parse_args(argv)

    if args.file:
        with open(args.file, "rb") as f:
            data = f.read()
    else:
        data = sys.stdin.buffer.read()

    line_breaks = {"lf": "\n", "crlf": "\r\n", "keep": None}[args.line_breaks]
    policy = replace(DEFAULT_POLICY, keep_comments=args.keep_comments, line_breaks=line_breaks)
    sanitizer = Sanitizer(policy)

    try:
        output = sanitizer.clean(data)
    except EncodingError as exc:
        print(f"inerthtml: {exc}", file=sys.stderr)
        return 2

    if args.json:
        payload = {"output": output, "warnings": [w.as_dict() for w in sanitizer.warnings]}
        json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
        return 0

    sys.stdout.write(output)
    if args.warnings:
        # Positions refer to the escaped working buffer.
        buffer = prepare(sanitizer.input, keep_comments=policy.keep_comments)
        for warning in sanitizer.warnings:
            print(_format_warning(warning, buffer), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())

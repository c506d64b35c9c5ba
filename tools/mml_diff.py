#!/usr/bin/env python3
"""Describe the differences between two Marathon-engine files as MML.

Accepts either two Fux! physics state files (tagged chunk containers) or two
MacBinary-encoded applications (resource forks).  The MML document goes to
stdout; anything the document cannot express is reported on stderr.
"""

from __future__ import annotations

import argparse
import codecs
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mmldiff import (  # noqa: E402
    MMLDiffError,
    PhysicsState,
    decode,
    diff,
    physics_warnings,
    render,
    summarize_tags,
)
from mmldiff.diff import DEFAULT_ENCODING  # noqa: E402


def text_encoding(name: str) -> str:
    try:
        return codecs.lookup(name).name
    except LookupError:
        raise argparse.ArgumentTypeError(f"unknown text encoding: {name}") from None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate MML describing the changes from BASE to MODIFIED.")
    parser.add_argument("base", type=Path, help="Baseline file")
    parser.add_argument("modified", type=Path, help="Modified file")
    parser.add_argument(
        "--strings-only",
        action="store_true",
        help="Only compare STR# string sets (resource forks)",
    )
    parser.add_argument(
        "--encoding",
        default=DEFAULT_ENCODING,
        type=text_encoding,
        help=f"Text encoding of resource strings (default: {DEFAULT_ENCODING})",
    )
    args = parser.parse_args(argv)

    for path in (args.base, args.modified):
        if not path.exists():
            print(f"error: {path} not found", file=sys.stderr)
            return 1

    try:
        base = decode(args.base)
        modified = decode(args.modified)
        if isinstance(base, PhysicsState):
            nodes = diff(base, modified)
        else:
            nodes = diff(base, modified, strings_only=args.strings_only, encoding=args.encoding)
    except MMLDiffError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    sys.stdout.write(render(nodes, comment="Generated by mmldiff"))

    if isinstance(base, PhysicsState):
        for line in physics_warnings(base, modified):
            print(line, file=sys.stderr)
        for line in summarize_tags(base, modified).messages():
            print(line, file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

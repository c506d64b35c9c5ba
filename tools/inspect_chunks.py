#!/usr/bin/env python3
"""List the chunks of a Fux! physics state file.

One line per chunk: offset, tag, payload size, and whether the tag is
decoded, validated and skipped, or kept opaque.  Known tags whose size does
not match the mandated one are flagged.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mmldiff.chunks import KNOWN_CHUNKS, iter_chunks, tag_name  # noqa: E402
from mmldiff.errors import DecodeError  # noqa: E402


def describe(tag: bytes, size: int) -> str:
    layout = KNOWN_CHUNKS.get(tag)
    if layout is None:
        return "opaque"
    status = "skipped" if layout.target is None else f"decoded -> {layout.target}"
    if size != layout.size:
        status += f" (SIZE MISMATCH, expected {layout.size})"
    return status


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="List chunks in a physics state file.")
    parser.add_argument("file", type=Path, help="File to inspect")
    args = parser.parse_args(argv)

    if not args.file.exists():
        print(f"error: {args.file} not found", file=sys.stderr)
        return 1

    try:
        for chunk in iter_chunks(args.file):
            header = chunk.header
            print(f"0x{header.offset:06X}  {tag_name(header.tag)!r:8} {header.length:6d}  {describe(header.tag, header.length)}")
    except DecodeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

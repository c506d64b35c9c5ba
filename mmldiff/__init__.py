"""Decode legacy Marathon-engine state files and describe their differences as MML."""

from __future__ import annotations

from .changes import (  # noqa: F401
    ChangeNode,
    Diffable,
    ShapeDescriptor,
    change,
    channel_to_float,
    fixed_to_float,
)
from .chunks import (  # noqa: F401
    KNOWN_CHUNKS,
    Chunk,
    ChunkHeader,
    PhysicsState,
    decode_chunks,
    iter_chunks,
)
from .cursor import ByteCursor, Source, as_cursor  # noqa: F401
from .diff import (  # noqa: F401
    DEFAULT_TAG_CATEGORIES,
    TagDifference,
    TagSummary,
    diff,
    diff_physics,
    diff_resources,
    physics_warnings,
    summarize_tags,
)
from .errors import (  # noqa: F401
    CorruptContainer,
    DecodeError,
    DiffError,
    IncomparableSnapshots,
    InvalidEnvelope,
    MMLDiffError,
    Truncated,
    UndecodableText,
    UnexpectedCardinality,
)
from .macbinary import (  # noqa: F401
    MacBinaryHeader,
    ResourceState,
    crc16_xmodem,
    decode_resource_fork,
)
from .mml import render  # noqa: F401


def decode(source: Source) -> PhysicsState | ResourceState:
    """Decode either format.

    MacBinary envelopes always start with a zero byte; chunk tags are
    printable, so the first byte picks the decoder.
    """
    cursor = as_cursor(source)
    start = cursor.offset
    first = cursor.read_upto(1)
    cursor.seek(start)
    if first == b"\x00":
        return decode_resource_fork(cursor)
    return decode_chunks(cursor)

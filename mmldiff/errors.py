"""Exception taxonomy for decoding and diffing snapshots.

Everything subclasses ``ValueError`` so callers that treat malformed input
as a value problem keep working.
"""

from __future__ import annotations


class MMLDiffError(ValueError):
    """Base class for every fatal decode or diff failure."""


class DecodeError(MMLDiffError):
    """A source could not be decoded into a snapshot."""

    def __init__(self, message: str, *, offset: int | None = None, tag: bytes | None = None):
        super().__init__(message)
        self.offset = offset
        self.tag = tag


class Truncated(DecodeError):
    """The source ended before an expected field."""


class CorruptContainer(DecodeError):
    """A known chunk declared a payload length other than its mandated size."""


class InvalidEnvelope(DecodeError):
    """The 128-byte MacBinary header failed validation or its CRC check."""


class UnexpectedCardinality(DecodeError):
    """A fixed-count resource reported a different element count."""


class DiffError(MMLDiffError):
    """Two snapshots could not be compared."""


class IncomparableSnapshots(DiffError):
    """Key fields that must agree across snapshots do not."""


class UndecodableText(DiffError):
    """A changed string is not valid in the requested text codec."""

"""Errors raised when building or decoding pair records."""

from __future__ import annotations

from typing import Optional


class PairRecordError(ValueError):
    """Base class for pair record errors."""


class InvalidArgument(PairRecordError):
    """Raised when a record cannot be constructed (or encoded) from the given values."""


class MalformedRecord(PairRecordError):
    """Raised when external input cannot be decoded into a record.

    ``source`` and ``line_no`` are filled in by the pair-file reader so the
    offending line can be located.
    """

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        line_no: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.line_no = line_no

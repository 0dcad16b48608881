"""Error types raised by the synthesis engine."""

from __future__ import annotations


class InvalidArgument(ValueError):
    """Raised when a geometric or numeric precondition is violated."""

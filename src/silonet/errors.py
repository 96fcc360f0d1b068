"""Typed failures raised by the optimization engine."""

from __future__ import annotations

from typing import Any


class SilonetError(Exception):
    """Base class for engine errors."""


class InvalidInputError(SilonetError, ValueError):
    """Request rejected before any work was done.

    ``expected`` and ``actual`` carry enough context to build a precise
    user-facing message (for example mismatched silo/truck counts).
    """

    def __init__(self, message: str, *, expected: Any = None, actual: Any = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class UpstreamUnavailableError(SilonetError, ConnectionError):
    """The routing service could not answer. Always absorbed by a fallback."""


class OptimizationCancelled(SilonetError):
    """A run was cancelled cooperatively; no partial solution exists."""

"""Snapdiff exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class SnapdiffError(Exception):
    """Base exception for all snapdiff failures."""


class SnapdiffConfigError(SnapdiffError):
    """Raised for invalid runtime configuration."""


class SnapdiffPreconditionError(SnapdiffError):
    """Raised when invocation arguments or the result location are invalid."""


class SnapdiffTransientResourceError(SnapdiffError):
    """Raised when a diff page is not yet available and may be retried."""


class SnapdiffIOError(SnapdiffError):
    """Raised for fatal open, read, write, or create failures."""


class SnapdiffFramingError(SnapdiffError):
    """Raised when a diff page ends without a termination marker."""


class SnapdiffMetadataLookupError(SnapdiffError):
    """Raised when filesystem metadata for a diff entry cannot be read."""


class SnapdiffRunSpecError(SnapdiffError):
    """Raised for invalid or unsupported run-spec configuration."""


class SnapdiffVerificationError(SnapdiffError):
    """Raised when a result directory cannot be verified."""

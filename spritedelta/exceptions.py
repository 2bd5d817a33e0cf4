"""
Custom exception hierarchy for spritedelta.

All spritedelta exceptions inherit from SpriteDeltaError so callers can
catch the entire family with a single except clause.

Empty input and an unresolvable canvas size are *not* errors: the export
pipeline returns None for those.
"""

from __future__ import annotations


class SpriteDeltaError(Exception):
    """Base exception for all spritedelta errors."""


class ConfigError(SpriteDeltaError):
    """Raised when an export configuration file cannot be parsed."""


class ProjectError(SpriteDeltaError):
    """Raised when a project file is missing, malformed, or references missing images."""


class CompositeError(SpriteDeltaError):
    """Raised when a compositor is called with arguments it cannot honour.

    Ordinary per-frame failures (empty or out-of-range frames) are
    reported as a ``None`` result, never as this exception.
    """


class PackageError(SpriteDeltaError):
    """Raised when a playback package cannot be written or read."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class ExportCancelled(SpriteDeltaError):
    """Raised from a progress callback to stop an export between frames."""

"""Exception types raised by the engine."""
from __future__ import annotations

__all__ = [
    "InvalidConfigError",
    "AnalysisFailedError",
    "ExternalModelError",
    "SettingsError",
]


class InvalidConfigError(ValueError):
    """Raised when a render or analysis request is rejected before any allocation."""


class AnalysisFailedError(RuntimeError):
    """Raised when keyframes are requested from an analysis that produced no usable frames."""


class ExternalModelError(RuntimeError):
    """Raised when an external articulatory model returns malformed or missing output."""


class SettingsError(RuntimeError):
    """Raised when the engine settings file cannot be read."""

"""Error types raised while building observation sets and search plans."""

from __future__ import annotations

from typing import Any


class SeedFinderError(Exception):
    """Base class for input errors reported by the seed finder."""


class ConfigurationError(SeedFinderError, ValueError):
    """Raised when observations or search settings cannot produce a valid search."""


class ConflictError(SeedFinderError):
    """Raised when an observation contradicts one already stored for the same locator."""

    def __init__(self, kind: Any, locator: Any, existing: Any, rejected: Any) -> None:
        self.kind = kind
        self.locator = locator
        self.existing = existing
        self.rejected = rejected
        super().__init__(
            f"Conflicting observation for {getattr(kind, 'value', kind)} at {locator}: "
            f"already recorded {existing!r}, rejected {rejected!r}"
        )

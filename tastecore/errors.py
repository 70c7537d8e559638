from __future__ import annotations


class TasteCoreError(Exception):
    """Base error for the tastecore package."""


class InvalidParametersError(TasteCoreError):
    """Raised when a parameter payload cannot be parsed or validated."""


class ProfileNotFoundError(TasteCoreError):
    """Raised by a profile store when no record exists for an identity."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"No visual parameters stored for {identity!r}")
        self.identity = identity

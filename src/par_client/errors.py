"""Exception hierarchy for repository access.

Lower layers (transport, cache, index store) raise these; the client facade
catches ``ParClientError``, records it as the last error and reports failure
to its caller instead of propagating.
"""
from __future__ import annotations

from typing import Optional


class ParClientError(Exception):
    """Base class for all expected failures of the client."""


class TransportError(ParClientError):
    """A resource could not be fetched to a local path."""

    def __init__(self, locator: str, reason: str):
        self.locator = locator
        self.reason = reason
        super().__init__(f"Could not fetch '{locator}': {reason}")


class ParseError(ParClientError):
    """Malformed distribution name, checksum manifest or repository info."""

    def __init__(self, context: str, detail: str):
        self.context = context
        self.detail = detail
        super().__init__(f"Error parsing {context}: {detail}")


class IndexStoreError(ParClientError):
    """The index database could not be unpacked, opened, verified or read."""

    PHASES = ("unpack", "open", "lookup", "verify")

    def __init__(self, phase: str, detail: str):
        if phase not in self.PHASES:
            raise ValueError(f"Unknown index phase: {phase}")
        self.phase = phase
        self.detail = detail
        super().__init__(f"Index {phase} failed: {detail}")


class CompatibilityError(ParClientError):
    """The repository cannot be used by this client version."""

    def __init__(self, message: str, found_version: Optional[str] = None):
        self.found_version = found_version
        super().__init__(message)


class MissingRepositoryVersionError(CompatibilityError):
    """The repository info record carries no ``repository_version``."""

    def __init__(self, info_file: str):
        super().__init__(
            f"Repository info file ('{info_file}') does not contain a version."
        )


class IncompatibleVersionError(CompatibilityError):
    """The repository declares a version outside the compatible set."""

    def __init__(self, found_version: str):
        super().__init__(
            f"Repository has an incompatible version ({found_version})",
            found_version=found_version,
        )


class NotFoundError(ParClientError):
    """No usable distribution exists for a name."""

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Could not find '{name}' in the repository.")


class ChecksumMismatchError(ParClientError):
    """A fetched file does not match its published digest."""

    def __init__(self, name: str, expected: str, actual: str):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch for '{name}': expected {expected}, got {actual}"
        )

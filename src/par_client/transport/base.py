"""Transport interface and locator classification."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from par_client.constants import TransportKind
from par_client.transport.cache import LocalCache

_HTTP_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def classify_locator(uri: str) -> TransportKind:
    """Pick the access method for a repository URI.

    ``http://`` and ``https://`` select HTTP; ``file://`` URIs and bare
    paths select the local filesystem.
    """
    if not isinstance(uri, str) or not uri:
        raise ValueError("repository uri must be a non-empty string")
    if _HTTP_SCHEME.match(uri):
        return TransportKind.HTTP
    return TransportKind.LOCAL


class Transport(ABC):
    """Fetches remote resources into a LocalCache."""

    kind: TransportKind

    def __init__(self, cache: LocalCache):
        self.cache = cache

    @abstractmethod
    def fetch(self, locator: str) -> str:
        """Bring locator into the cache and return the local path.

        Raises:
            TransportError: The resource could not be retrieved.
        """

    @abstractmethod
    def join(self, base: str, *parts: str) -> str:
        """Build the locator of a resource below base."""

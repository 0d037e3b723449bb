"""Transport package.

Fetches repository resources into a local cache:
- cache.py: locator escaping and the on-disk cache
- base.py: Transport interface and URI classification
- http.py: conditional-GET transport for http/https repositories
- local.py: copying transport for paths and file:// URIs
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import requests

from par_client.constants import TransportKind
from .base import Transport, classify_locator
from .cache import LocalCache, escape_locator
from .http import HttpTransport
from .local import LocalTransport, locator_to_path

if TYPE_CHECKING:
    from par_client.config import ClientConfig


def create_transport(
    uri: str,
    cache: LocalCache,
    config: Optional["ClientConfig"] = None,
    session: Optional[requests.Session] = None,
) -> Transport:
    """Build the transport variant matching the repository URI."""
    if classify_locator(uri) is TransportKind.HTTP:
        if config is None:
            return HttpTransport(cache, session=session)
        return HttpTransport(
            cache,
            session=session,
            timeout=config.request_timeout,
            retries=config.http_retries,
            user_agent=config.user_agent,
        )
    return LocalTransport(cache)


__all__ = [
    "Transport",
    "TransportKind",
    "HttpTransport",
    "LocalTransport",
    "LocalCache",
    "classify_locator",
    "create_transport",
    "escape_locator",
    "locator_to_path",
]

"""Repository access over HTTP and HTTPS."""

from __future__ import annotations

import logging
import os
from typing import Optional

import requests

from par_client.common.http_client import HTTP_NOT_MODIFIED, HTTP_OK, build_session, mirror
from par_client.common.logging_utils import extra_context, safe_url
from par_client.constants import Constants, TransportKind
from par_client.errors import TransportError
from par_client.transport.base import Transport
from par_client.transport.cache import LocalCache

logger = logging.getLogger(__name__)


class HttpTransport(Transport):
    """Mirror remote files into the cache with conditional GETs."""

    kind = TransportKind.HTTP

    def __init__(
        self,
        cache: LocalCache,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = Constants.REQUEST_TIMEOUT,
        retries: int = Constants.HTTP_RETRY_MAX,
        user_agent: str = Constants.USER_AGENT,
    ):
        """Initialize the transport.

        Args:
            cache: Destination cache.
            session: Optional pre-configured session (tests inject mocks here).
            timeout: Request timeout in seconds.
            retries: Attempts per fetch on network exceptions.
            user_agent: User-Agent for a session created here.
        """
        super().__init__(cache)
        self.session = session if session is not None else build_session(user_agent)
        self.timeout = timeout
        self.retries = retries

    def join(self, base: str, *parts: str) -> str:
        url = base.rstrip("/")
        for part in parts:
            url += "/" + part.strip("/")
        return url

    def fetch(self, locator: str) -> str:
        self.cache.ensure_root()
        local_path = self.cache.path_for(locator)
        status, reason = mirror(
            locator,
            local_path,
            session=self.session,
            timeout=self.timeout,
            retries=self.retries,
        )
        if status not in (HTTP_OK, HTTP_NOT_MODIFIED):
            logger.warning(
                "HTTP non-2xx handled",
                extra=extra_context(
                    event="http_response",
                    component="http_transport",
                    outcome="handled_non_2xx",
                    status_code=status,
                    target=safe_url(locator),
                ),
            )
            raise TransportError(locator, f"HTTP {status} {reason}".strip())
        if not os.path.isfile(local_path):
            # 304 without a prior copy, or a body that never reached disk
            raise TransportError(locator, f"HTTP {status}: no local copy at {local_path}")
        logger.debug(
            "Fetched resource",
            extra=extra_context(
                event="fetch",
                component="http_transport",
                outcome="not_modified" if status == HTTP_NOT_MODIFIED else "downloaded",
                target=safe_url(locator),
            ),
        )
        return local_path

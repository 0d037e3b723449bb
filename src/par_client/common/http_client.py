"""Shared HTTP helpers used by the HTTP transport.

Encapsulates the conditional GET ("mirror") with retries and DEBUG traces so
the transport only deals with statuses and local paths.
"""
from __future__ import annotations

import logging
import os
import tempfile
from email.utils import formatdate, parsedate_to_datetime
from typing import Optional, Tuple

import requests

from par_client.constants import Constants
from par_client.errors import TransportError
from par_client.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_NOT_MODIFIED = 304


def build_session(user_agent: str = Constants.USER_AGENT) -> requests.Session:
    """Create a session carrying the client's User-Agent."""
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    return session


def _conditional_headers(local_path: str) -> dict:
    """If-Modified-Since header derived from an existing local copy."""
    if not os.path.isfile(local_path):
        return {}
    mtime = os.path.getmtime(local_path)
    return {"If-Modified-Since": formatdate(mtime, usegmt=True)}


def _last_modified(response: requests.Response) -> Optional[float]:
    """Timestamp from the Last-Modified header, None if absent or unparseable."""
    value = response.headers.get("Last-Modified")
    if not value:
        return None
    try:
        return parsedate_to_datetime(value).timestamp()
    except (TypeError, ValueError):
        return None


def _write_atomically(response: requests.Response, local_path: str) -> None:
    """Stream the body next to local_path and rename it into place."""
    directory = os.path.dirname(local_path) or "."
    fd, part_path = tempfile.mkstemp(prefix=Constants.PARTIAL_FILE_PREFIX, dir=directory)
    try:
        with os.fdopen(fd, "wb") as fh:
            for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    fh.write(chunk)
        os.replace(part_path, local_path)
    except BaseException:
        if os.path.exists(part_path):
            os.unlink(part_path)
        raise
    stamp = _last_modified(response)
    if stamp is not None:
        os.utime(local_path, (stamp, stamp))


def mirror(
    url: str,
    local_path: str,
    *,
    session: requests.Session,
    timeout: float = Constants.REQUEST_TIMEOUT,
    retries: int = Constants.HTTP_RETRY_MAX,
) -> Tuple[int, str]:
    """Fetch url into local_path unless the local copy is still current.

    Args:
        url: Remote resource.
        local_path: Destination file; its mtime drives If-Modified-Since.
        session: requests session to issue the GET with.
        timeout: Per-request timeout in seconds.
        retries: Attempts made on timeouts and connection errors.

    Returns:
        Tuple of (status_code, reason). 200 means the file was (re)written,
        304 means the existing copy was kept. Other statuses leave local_path
        untouched.

    Raises:
        TransportError: When every attempt failed with a network exception.
    """
    safe_target = safe_url(url)
    last_exception = None

    for attempt in range(max(1, retries)):
        headers = _conditional_headers(local_path)
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1,
                            conditional=bool(headers),
                        ),
                    )
                response = session.get(url, headers=headers, timeout=timeout, stream=True)
                try:
                    if response.status_code == HTTP_OK:
                        _write_atomically(response, local_path)
                finally:
                    response.close()
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target,
                        ),
                    )
                return response.status_code, response.reason or ""
            except requests.Timeout:
                last_exception = "timeout"
                logger.debug(
                    "HTTP timeout",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="timeout",
                        attempt=attempt + 1,
                        target=safe_target,
                    ),
                )
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = str(exc)
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="request_exception",
                        attempt=attempt + 1,
                        target=safe_target,
                    ),
                )
                continue

    raise TransportError(url, f"Request failed after {max(1, retries)} attempts: {last_exception}")

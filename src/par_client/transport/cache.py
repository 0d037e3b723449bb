"""On-disk cache mapping resource locators to local file names."""

from __future__ import annotations

import logging
import os
import re

from par_client.common.logging_utils import extra_context
from par_client.constants import Constants

logger = logging.getLogger(__name__)

_SAFE_BYTES = frozenset(b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_.")
_ESCAPED_NAME = re.compile(r"^(?:[A-Za-z0-9_.]|%[0-9A-F]{2})+$")


def _is_cache_name(entry: str) -> bool:
    return bool(_ESCAPED_NAME.match(entry)) or entry.startswith(Constants.PARTIAL_FILE_PREFIX)


def escape_locator(locator: str) -> str:
    """Percent-escape every byte of locator outside ``[A-Za-z0-9_.]``.

    The result is a single path segment and depends only on the locator,
    so repeated fetches of one resource land on the same file.
    """
    if not locator:
        raise ValueError("locator must be a non-empty string")
    return "".join(
        chr(byte) if byte in _SAFE_BYTES else "%%%02X" % byte
        for byte in locator.encode("utf-8")
    )


class LocalCache:
    """Directory of fetched resources keyed by escaped locator.

    The root is configuration, not process state; two caches with different
    roots never see each other's files.
    """

    def __init__(self, root: str):
        """Initialize the cache.

        Args:
            root: Directory holding cached files. Created on first use.
        """
        if not root:
            raise ValueError("cache root must be a non-empty path")
        self.root = os.path.abspath(root)

    def ensure_root(self) -> str:
        """Create the cache root if missing and return it."""
        os.makedirs(self.root, exist_ok=True)
        return self.root

    def path_for(self, locator: str) -> str:
        """Local path a locator is cached under."""
        return os.path.join(self.root, escape_locator(locator))

    def contains(self, locator: str) -> bool:
        """True when a cached copy of locator exists."""
        return os.path.isfile(self.path_for(locator))

    def remove(self, locator: str) -> bool:
        """Delete the cached copy of locator; returns whether a file was removed."""
        path = self.path_for(locator)
        try:
            os.unlink(path)
        except FileNotFoundError:
            return False
        logger.debug(
            "Cache entry removed",
            extra=extra_context(event="cache_remove", component="cache", target=path),
        )
        return True

    def clear(self) -> int:
        """Delete every cached entry under the root.

        Only names the escaping scheme can produce and partial downloads left
        by an interrupted write are touched, so foreign files placed in a
        shared directory survive. Returns the count removed.
        """
        if not os.path.isdir(self.root):
            return 0
        removed = 0
        for entry in os.listdir(self.root):
            path = os.path.join(self.root, entry)
            if not _is_cache_name(entry) or not os.path.isfile(path):
                continue
            try:
                os.unlink(path)
                removed += 1
            except FileNotFoundError:
                continue
        logger.debug(
            "Cache cleared",
            extra=extra_context(event="cache_clear", component="cache", target=self.root, count=removed),
        )
        return removed

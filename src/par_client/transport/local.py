"""Repository access on the local filesystem."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from urllib.parse import urlsplit
from urllib.request import url2pathname

from par_client.common.logging_utils import extra_context
from par_client.constants import Constants, TransportKind
from par_client.errors import TransportError
from par_client.transport.base import Transport

logger = logging.getLogger(__name__)


def locator_to_path(locator: str) -> str:
    """Filesystem path for a bare path or a ``file://`` URI."""
    if locator.lower().startswith("file://"):
        parts = urlsplit(locator)
        if parts.netloc and parts.netloc.lower() != "localhost":
            raise TransportError(locator, f"remote file host '{parts.netloc}' is not supported")
        return url2pathname(parts.path)
    return locator


class LocalTransport(Transport):
    """Copy repository files into the cache.

    A copy is skipped when the cached file already has the source's size and
    mtime, which is the filesystem counterpart of HTTP's not-modified.
    """

    kind = TransportKind.LOCAL

    def join(self, base: str, *parts: str) -> str:
        if base.lower().startswith("file://"):
            url = base.rstrip("/")
            for part in parts:
                url += "/" + part.strip("/")
            return url
        stripped = base.rstrip("/\\") or base
        return os.path.join(stripped, *parts)

    def fetch(self, locator: str) -> str:
        source = locator_to_path(locator)
        if not os.path.isfile(source):
            raise TransportError(locator, "not found")

        self.cache.ensure_root()
        local_path = self.cache.path_for(locator)
        if self._is_current(source, local_path):
            logger.debug(
                "Cached copy is current",
                extra=extra_context(event="fetch", component="local_transport", outcome="not_modified", target=source),
            )
            return local_path

        fd, part_path = tempfile.mkstemp(prefix=Constants.PARTIAL_FILE_PREFIX, dir=self.cache.root)
        os.close(fd)
        try:
            shutil.copy2(source, part_path)
            os.replace(part_path, local_path)
        except OSError as exc:
            if os.path.exists(part_path):
                os.unlink(part_path)
            raise TransportError(locator, str(exc)) from exc

        logger.debug(
            "Copied resource",
            extra=extra_context(event="fetch", component="local_transport", outcome="copied", target=source),
        )
        return local_path

    @staticmethod
    def _is_current(source: str, local_path: str) -> bool:
        try:
            src = os.stat(source)
            dst = os.stat(local_path)
        except FileNotFoundError:
            return False
        return src.st_size == dst.st_size and int(src.st_mtime) == int(dst.st_mtime)

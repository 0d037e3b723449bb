"""Client for PAR repositories.

``RepositoryClient`` ties the pieces together: it validates the repository
on construction, opens the module/script indexes lazily, picks the preferred
distribution for a name and fetches its archive into the local cache.

Usage::

    with RepositoryClient("https://example.org/repository") as client:
        path = client.get_module("Math::Symbolic")
        if path is None:
            raise SystemExit(client.last_error())
"""
from __future__ import annotations

import logging
import os
from typing import Dict, Mapping, Optional, Union

import requests

from par_client.common.logging_utils import extra_context, safe_url
from par_client.config import ClientConfig
from par_client.constants import Constants, IndexKind
from par_client.errors import NotFoundError, ParClientError, ParseError, TransportError
from par_client.index import IndexHandle, IndexStore
from par_client.repository.checksums import parse_checksums, verify_file
from par_client.repository.validator import RepositoryInfo, RepositoryValidator
from par_client.transport import LocalCache, Transport, create_transport
from par_client.versioning import DistributionIdentifier, Platform, parse_dist_name, select_distribution

logger = logging.getLogger(__name__)


class RepositoryClient:
    """Access a PAR repository over HTTP(S) or the local filesystem."""

    def __init__(
        self,
        uri: str,
        *,
        config: Optional[ClientConfig] = None,
        platform: Optional[Platform] = None,
        transport: Optional[Transport] = None,
        session: Optional[requests.Session] = None,
    ):
        """Create a client and validate the repository.

        Args:
            uri: Repository root: ``http(s)://...``, ``file://...`` or a path.
            config: Tunables; defaults come from the environment.
            platform: Runtime to resolve for; the running interpreter if None.
            transport: Pre-built transport (overrides scheme selection).
            session: requests session for the HTTP transport.

        Raises:
            TransportError: The repository is unreachable.
            ParseError: The repository info record is malformed.
            CompatibilityError: The repository version is missing or unsupported.
        """
        if not isinstance(uri, str) or not uri:
            raise ValueError("RepositoryClient needs a 'uri' argument.")
        self.uri = uri
        self.config = config if config is not None else ClientConfig.from_env()
        self.platform = platform if platform is not None else Platform.current()
        self.cache = transport.cache if transport is not None else LocalCache(self.config.cache_dir)
        self.transport = transport if transport is not None else create_transport(
            uri, self.cache, self.config, session=session
        )
        self._handles: Dict[IndexKind, IndexHandle] = {}
        self._last_error: Optional[ParClientError] = None
        self.index_store = IndexStore(
            self.transport,
            uri,
            temp_dir=self.config.temp_dir,
            verifier=self._verify_index_archive if self.config.verify_checksums else None,
        )

        self.info: RepositoryInfo = RepositoryValidator(self.transport, uri).validate()
        logger.info(
            "Repository ready",
            extra=extra_context(
                event="client_init",
                component="client",
                target=safe_url(uri),
                transport=self.transport.kind.value,
                repository_version=self.info.repository_version,
            ),
        )

    # -- error bookkeeping -------------------------------------------------

    @property
    def last_exception(self) -> Optional[ParClientError]:
        """Typed error of the most recent failed call, None after a success."""
        return self._last_error

    def last_error(self) -> Optional[str]:
        """Message of the most recent failed call, None after a success."""
        return str(self._last_error) if self._last_error is not None else None

    def _fail(self, exc: ParClientError, name: Optional[str] = None) -> None:
        self._last_error = exc
        logger.warning(
            "%s",
            exc,
            extra=extra_context(
                event="client_error",
                component="client",
                outcome=type(exc).__name__,
                target=name,
            ),
        )

    # -- validation --------------------------------------------------------

    def validate_repository(self) -> bool:
        """Re-run repository validation; returns False and records the error on failure."""
        self._last_error = None
        try:
            self.info = RepositoryValidator(self.transport, self.uri).validate()
        except ParClientError as exc:
            self._fail(exc)
            return False
        return True

    # -- indexes -----------------------------------------------------------

    def index(self, kind: IndexKind = IndexKind.MODULES) -> IndexHandle:
        """Open handle for kind, opening it on first use.

        Raises:
            ParClientError: Fetching, verifying, unpacking or opening failed.
        """
        handle = self._handles.get(kind)
        if handle is not None and not handle.closed:
            return handle
        self.close_index(kind)
        handle = self.index_store.open(kind)
        self._handles[kind] = handle
        return handle

    def close_index(self, kind: IndexKind) -> None:
        """Close the handle for kind and remove its temporary file, if open."""
        handle = self._handles.pop(kind, None)
        if handle is not None:
            handle.close()

    def close(self) -> None:
        """Close every open index. Safe to call repeatedly."""
        for kind in list(getattr(self, "_handles", {})):
            self.close_index(kind)

    def clear_cache(self) -> int:
        """Remove every cached download; returns the number of files removed."""
        return self.cache.clear()

    def __enter__(self) -> "RepositoryClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:  # pylint: disable=broad-exception-caught
            # Interpreter shutdown may have torn down module globals already
            pass

    # -- checksums ---------------------------------------------------------

    def checksums(self) -> Dict[str, str]:
        """Fetch and parse the repository's checksum manifest.

        Raises:
            TransportError: The manifest could not be fetched.
            ParseError: The manifest is malformed.
        """
        locator = self.transport.join(self.uri, Constants.CHECKSUMS_FILE)
        path = self.transport.fetch(locator)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                table = parse_checksums(fh)
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(Constants.CHECKSUMS_FILE, str(exc)) from exc
        return table

    def _verify_index_archive(self, local_path: str, archive_name: str) -> None:
        """Verifier hook for the index store; skips when no manifest is published.

        The manifest is fetched on every call so a re-opened index is checked
        against the digests the repository publishes now.
        """
        try:
            table = self.checksums()
        except TransportError as exc:
            logger.warning("No checksum manifest, skipping verification: %s", exc.reason)
            return
        if not verify_file(local_path, table, archive_name):
            logger.warning("No checksum published for %s", archive_name)

    # -- resolution --------------------------------------------------------

    def preferred_distribution(
        self, name: str, candidates: Mapping[str, Optional[str]]
    ) -> Optional[DistributionIdentifier]:
        """Preferred distribution among candidates for this client's platform."""
        return select_distribution(name, candidates, self.platform)

    def distribution_locator(self, dist: DistributionIdentifier) -> str:
        """Locator of a distribution archive in the repository."""
        return self.transport.join(self.uri, dist.arch, dist.runtime_version, dist.filename)

    def fetch_distribution(self, dist: Union[DistributionIdentifier, str]) -> Optional[str]:
        """Fetch a distribution archive; returns the local path or None on failure."""
        self._last_error = None
        try:
            return self._fetch_distribution(dist)
        except ParClientError as exc:
            self._fail(exc, str(dist))
            return None

    def _fetch_distribution(self, dist: Union[DistributionIdentifier, str]) -> str:
        if isinstance(dist, str):
            dist = parse_dist_name(dist)
        locator = self.distribution_locator(dist)
        try:
            path = self.transport.fetch(locator)
        except TransportError as exc:
            raise TransportError(
                exc.locator, f"Could not fetch distribution from URI '{locator}': {exc.reason}"
            ) from exc
        if not os.path.isfile(path):
            raise TransportError(locator, f"no local copy at '{path}'")
        return path

    def resolve(self, name: str, kind: IndexKind = IndexKind.MODULES) -> DistributionIdentifier:
        """Look name up and pick its preferred distribution.

        Raises:
            NotFoundError: The name is not indexed or nothing is compatible.
            ParClientError: The index could not be opened or read.
        """
        candidates = self.index(kind).lookup(name)
        if candidates is None:
            raise NotFoundError(name, f"Could not find '{name}' in the repository.")
        dist = self.preferred_distribution(name, candidates)
        if dist is None:
            raise NotFoundError(name, f"Could not find a distribution for '{name}'")
        return dist

    def resolve_and_fetch(self, name: str, kind: IndexKind = IndexKind.MODULES) -> Optional[str]:
        """Resolve name and fetch its archive.

        Returns:
            Local path of the archive, or None with the reason available from
            ``last_error()``.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("name must be a non-empty string")
        self._last_error = None
        try:
            dist = self.resolve(name, kind)
            path = self._fetch_distribution(dist)
        except ParClientError as exc:
            self._fail(exc, name)
            return None
        logger.info(
            "Fetched %s for %s",
            dist.filename,
            name,
            extra=extra_context(event="fetch", component="client", outcome="success", target=name),
        )
        return path

    def get_module(self, namespace: str) -> Optional[str]:
        """Local archive path providing a module, or None."""
        return self.resolve_and_fetch(namespace, IndexKind.MODULES)

    def get_script(self, script: str) -> Optional[str]:
        """Local archive path providing a script, or None."""
        return self.resolve_and_fetch(script, IndexKind.SCRIPTS)

"""Repository metadata loading and format-version validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

import yaml

from par_client.common.logging_utils import extra_context, safe_url
from par_client.constants import Constants
from par_client.errors import (
    IncompatibleVersionError,
    MissingRepositoryVersionError,
    ParseError,
    TransportError,
)
from par_client.transport.base import Transport

logger = logging.getLogger(__name__)


@dataclass
class RepositoryInfo:
    """Parsed ``repository_info.yml``."""

    repository_version: Optional[str]
    extra: Dict[str, Any] = field(default_factory=dict)


def parse_repository_info(text: str) -> RepositoryInfo:
    """Parse repository metadata.

    Scalars are loaded as strings (``BaseLoader``) so a version such as
    ``0.10`` keeps its spelling instead of becoming the float 0.1.

    Raises:
        ParseError: Invalid YAML or a document that is not a mapping.
    """
    try:
        data = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise ParseError(Constants.REPOSITORY_INFO_FILE, str(exc)) from exc
    if not isinstance(data, dict):
        raise ParseError(Constants.REPOSITORY_INFO_FILE, "document is not a mapping")
    extra = {key: value for key, value in data.items() if key != "repository_version"}
    version = data.get("repository_version")
    if version is not None:
        version = str(version).strip() or None
    return RepositoryInfo(repository_version=version, extra=extra)


class RepositoryValidator:
    """Fetches repository metadata and checks its format version."""

    def __init__(
        self,
        transport: Transport,
        uri: str,
        compatible_versions: FrozenSet[str] = Constants.COMPATIBLE_REPOSITORY_VERSIONS,
    ):
        self.transport = transport
        self.uri = uri
        self.compatible_versions = compatible_versions

    def fetch_info(self) -> RepositoryInfo:
        """Fetch and parse the repository info record.

        Raises:
            TransportError: The repository is unreachable.
            ParseError: The record is malformed.
        """
        locator = self.transport.join(self.uri, Constants.REPOSITORY_INFO_FILE)
        try:
            path = self.transport.fetch(locator)
        except TransportError as exc:
            raise TransportError(exc.locator, f"Repository unreachable: {exc.reason}") from exc
        try:
            with open(path, "r", encoding="utf-8") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(Constants.REPOSITORY_INFO_FILE, str(exc)) from exc
        return parse_repository_info(text)

    def check(self, info: RepositoryInfo) -> RepositoryInfo:
        """Apply the version rules to an already parsed record."""
        if info.repository_version is None:
            raise MissingRepositoryVersionError(Constants.REPOSITORY_INFO_FILE)
        if info.repository_version not in self.compatible_versions:
            raise IncompatibleVersionError(info.repository_version)
        return info

    def validate(self) -> RepositoryInfo:
        """Fetch, parse and check the repository; returns the record on success."""
        info = self.check(self.fetch_info())
        logger.debug(
            "Repository validated",
            extra=extra_context(
                event="validate",
                component="validator",
                outcome="success",
                target=safe_url(self.uri),
                repository_version=info.repository_version,
            ),
        )
        return info

"""par_client - resolve and fetch distributions from PAR repositories.

Public API:
- RepositoryClient: validate a repository, resolve names, fetch archives
- ClientConfig / load_config: runtime configuration
- select_distribution / parse_dist_name: pure resolution helpers
- error classes rooted at ParClientError
"""

from .client import RepositoryClient
from .config import ClientConfig, load_config
from .constants import Constants, IndexKind, TransportKind
from .errors import (
    ChecksumMismatchError,
    CompatibilityError,
    IncompatibleVersionError,
    IndexStoreError,
    MissingRepositoryVersionError,
    NotFoundError,
    ParClientError,
    ParseError,
    TransportError,
)
from .versioning import DistributionIdentifier, Platform, parse_dist_name, select_distribution

__version__ = "0.2.0"

__all__ = [
    "RepositoryClient",
    "ClientConfig",
    "load_config",
    "Constants",
    "IndexKind",
    "TransportKind",
    "DistributionIdentifier",
    "Platform",
    "parse_dist_name",
    "select_distribution",
    "ParClientError",
    "TransportError",
    "ParseError",
    "IndexStoreError",
    "CompatibilityError",
    "MissingRepositoryVersionError",
    "IncompatibleVersionError",
    "NotFoundError",
    "ChecksumMismatchError",
]

"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 3


class TransportKind(Enum):
    """Repository access methods.

    Args:
        Enum (string): Access methods supported by the client.
    """

    HTTP = "http"
    LOCAL = "local"


class IndexKind(Enum):
    """Index databases published by a repository.

    The value is the base name of the index file; the repository serves it
    zipped as ``<value>.zip`` with a single member named ``<value>``.
    """

    MODULES = "modules_dists.dbm"
    SCRIPTS = "scripts_dists.dbm"

    @property
    def member_name(self) -> str:
        """Name of the single member inside the zipped index."""
        return self.value

    @property
    def archive_name(self) -> str:
        """Name of the zipped index relative to the repository root."""
        return self.value + ".zip"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    CLIENT_VERSION = "0.02"
    # Repository format versions this client understands
    COMPATIBLE_REPOSITORY_VERSIONS = frozenset({CLIENT_VERSION})

    REPOSITORY_INFO_FILE = "repository_info.yml"
    CHECKSUMS_FILE = "dbm_checksums.txt"
    DIST_EXTENSION = "par"

    ANY_ARCH = "any_arch"
    ANY_VERSION = "any_version"

    CACHE_DIR_NAME = "par"
    TEMP_FILE_PREFIX = "temporary_dbm_"
    PARTIAL_FILE_PREFIX = ".part-"
    INDEX_TABLE = "dists"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "PAR_CLIENT_LOG_LEVEL"
    ENV_CACHE_DIR = "PAR_CLIENT_CACHE_DIR"
    ENV_LEGACY_CACHE_DIR = "PAR_TEMP"
    ENV_TEMP_DIR = "PAR_CLIENT_TEMP_DIR"
    ENV_TIMEOUT = "PAR_CLIENT_TIMEOUT"
    ENV_VERIFY_CHECKSUMS = "PAR_CLIENT_VERIFY_CHECKSUMS"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    USER_AGENT = "par-client/" + CLIENT_VERSION
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

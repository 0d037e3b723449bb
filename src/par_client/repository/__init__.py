"""Repository metadata validation and checksum verification."""

from .checksums import file_digest, parse_checksums, verify_file
from .validator import RepositoryInfo, RepositoryValidator, parse_repository_info

__all__ = [
    "RepositoryInfo",
    "RepositoryValidator",
    "parse_repository_info",
    "parse_checksums",
    "file_digest",
    "verify_file",
]

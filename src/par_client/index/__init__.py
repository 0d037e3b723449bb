"""Repository index access (modules and scripts)."""

from par_client.constants import IndexKind
from .store import CandidateSet, IndexHandle, IndexStore, open_index_file, unzip_member

__all__ = [
    "CandidateSet",
    "IndexHandle",
    "IndexKind",
    "IndexStore",
    "open_index_file",
    "unzip_member",
]

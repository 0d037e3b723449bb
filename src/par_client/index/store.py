"""Index databases: fetch, unpack and open the name -> candidates mapping.

A repository publishes each index zipped with a single member. The member is
an SQLite database holding ``dists(name TEXT PRIMARY KEY, candidates TEXT)``
where ``candidates`` is a JSON object of distribution file name -> declared
version. Every open unpacks into a fresh temporary file that the returned
handle owns and deletes on close.
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import sqlite3
import tempfile
import zipfile
import zlib
from collections.abc import Mapping
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional

from par_client.common.logging_utils import Timer, extra_context
from par_client.constants import Constants, IndexKind
from par_client.errors import IndexStoreError
from par_client.transport.base import Transport

logger = logging.getLogger(__name__)

CandidateSet = Dict[str, str]


def _remove_quietly(path: Optional[str]) -> None:
    if not path:
        return
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def unzip_member(archive: str, member: str, target: str) -> str:
    """Extract one member of a zip archive to target.

    Raises:
        IndexStoreError: phase ``unpack`` for unreadable archives or a missing
            member.
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            try:
                info = zf.getinfo(member)
            except KeyError as exc:
                raise IndexStoreError("unpack", f"'{archive}' has no member '{member}'") from exc
            with zf.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError) as exc:
        raise IndexStoreError("unpack", f"Could not unzip '{archive}' to '{target}': {exc}") from exc
    if not os.path.isfile(target):
        raise IndexStoreError("unpack", f"'{target}' missing after extraction")
    return target


class IndexHandle(Mapping):
    """Read-only view of one unpacked index.

    Keys are module (or script) names, values are candidate sets. The handle
    owns its temporary file; ``close`` releases the connection and deletes it.
    """

    def __init__(self, kind: IndexKind, path: str, connection: sqlite3.Connection):
        self.kind = kind
        self.path = path
        self._conn: Optional[sqlite3.Connection] = connection

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise IndexStoreError("lookup", f"{self.kind.value} index is closed")
        return self._conn

    def lookup(self, name: str) -> Optional[CandidateSet]:
        """Candidate set for name, None when the index has no such entry."""
        try:
            row = self._connection().execute(
                f"SELECT candidates FROM {Constants.INDEX_TABLE} WHERE name = ?", (name,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise IndexStoreError("lookup", f"{self.kind.value}: {exc}") from exc
        if row is None:
            return None
        try:
            candidates = json.loads(row[0])
        except (TypeError, ValueError) as exc:
            raise IndexStoreError("lookup", f"corrupt entry for '{name}': {exc}") from exc
        if not isinstance(candidates, dict):
            raise IndexStoreError("lookup", f"corrupt entry for '{name}': not a mapping")
        return {str(dist): "" if ver is None else str(ver) for dist, ver in candidates.items()}

    def __getitem__(self, name: str) -> CandidateSet:
        candidates = self.lookup(name)
        if candidates is None:
            raise KeyError(name)
        return candidates

    def __iter__(self) -> Iterator[str]:
        try:
            rows = self._connection().execute(
                f"SELECT name FROM {Constants.INDEX_TABLE} ORDER BY name"
            ).fetchall()
        except sqlite3.Error as exc:
            raise IndexStoreError("lookup", f"{self.kind.value}: {exc}") from exc
        return iter(row[0] for row in rows)

    def __len__(self) -> int:
        try:
            (count,) = self._connection().execute(
                f"SELECT COUNT(*) FROM {Constants.INDEX_TABLE}"
            ).fetchone()
        except sqlite3.Error as exc:
            raise IndexStoreError("lookup", f"{self.kind.value}: {exc}") from exc
        return count

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def close(self) -> None:
        """Close the connection and delete the temporary file. Idempotent."""
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
        path, self.path = self.path, ""
        _remove_quietly(path)

    def __enter__(self) -> "IndexHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else self.path
        return f"<IndexHandle {self.kind.name} {state}>"


def open_index_file(kind: IndexKind, path: str) -> IndexHandle:
    """Open an unpacked index read-only and check its layout.

    Raises:
        IndexStoreError: phase ``open`` when the file is not a valid index.
    """
    conn: Optional[sqlite3.Connection] = None
    try:
        conn = sqlite3.connect(Path(path).resolve().as_uri() + "?mode=ro", uri=True)
        table = conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
            (Constants.INDEX_TABLE,),
        ).fetchone()
    except sqlite3.Error as exc:
        if conn is not None:
            conn.close()
        raise IndexStoreError("open", f"'{path}' is not a valid {kind.value} index: {exc}") from exc
    if table is None:
        conn.close()
        raise IndexStoreError("open", f"'{path}' has no '{Constants.INDEX_TABLE}' table")
    return IndexHandle(kind, path, conn)


class IndexStore:
    """Opens repository indexes through a transport."""

    def __init__(
        self,
        transport: Transport,
        uri: str,
        temp_dir: Optional[str] = None,
        verifier: Optional[Callable[[str, str], None]] = None,
    ):
        """Initialize the store.

        Args:
            transport: Used to fetch the zipped index.
            uri: Repository root.
            temp_dir: Where unpacked indexes go; system default when None.
            verifier: Optional ``verifier(local_zip, archive_name)`` called
                before unpacking; raises to reject the download.
        """
        self.transport = transport
        self.uri = uri
        self.temp_dir = temp_dir
        self.verifier = verifier

    def locator(self, kind: IndexKind) -> str:
        return self.transport.join(self.uri, kind.archive_name)

    def open(self, kind: IndexKind) -> IndexHandle:
        """Fetch, unpack and open an index.

        Raises:
            TransportError: The zipped index could not be fetched.
            ChecksumMismatchError: The verifier rejected the download.
            IndexStoreError: Unpacking or opening failed.
        """
        if not isinstance(kind, IndexKind):
            raise TypeError(f"expected IndexKind, got {kind!r}")

        with Timer() as t:
            archive = self.transport.fetch(self.locator(kind))
            if self.verifier is not None:
                self.verifier(archive, kind.archive_name)

            if self.temp_dir:
                os.makedirs(self.temp_dir, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                prefix=Constants.TEMP_FILE_PREFIX, suffix=".dbm", dir=self.temp_dir
            )
            os.close(fd)
            try:
                unzip_member(archive, kind.member_name, temp_path)
                handle = open_index_file(kind, temp_path)
            except BaseException:
                _remove_quietly(temp_path)
                raise

        logger.debug(
            "Index opened",
            extra=extra_context(
                event="index_open",
                component="index_store",
                outcome="success",
                target=kind.value,
                duration_ms=t.duration_ms(),
            ),
        )
        return handle

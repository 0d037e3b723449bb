"""Checksum manifest parsing and file verification.

A manifest holds one ``<file name>\\t<digest>`` pair per line; blank lines
and ``#`` comments are ignored. Digests are base64-encoded MD5 sums without
padding.
"""
from __future__ import annotations

import base64
import hashlib
import io
from typing import Dict, IO, Iterable, Union

from par_client.errors import ChecksumMismatchError, ParseError

ChecksumSource = Union[str, bytes, IO[str], IO[bytes]]

_CONTEXT = "checksums"


def _iter_lines(source: ChecksumSource) -> Iterable[str]:
    if isinstance(source, bytes):
        source = source.decode("utf-8")
    if isinstance(source, str):
        source = io.StringIO(source)
    for line in source:
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        yield line


def parse_checksums(source: ChecksumSource) -> Dict[str, str]:
    """Parse a checksum manifest into {file name: digest}.

    Args:
        source: Manifest text, bytes, or an open text/binary stream.

    Returns:
        Mapping of file name to digest; a later line for the same name wins.

    Raises:
        ParseError: A line lacks a tab-separated name or digest. Nothing is
            returned in that case so a truncated manifest never validates.
    """
    table: Dict[str, str] = {}
    for lineno, raw in enumerate(_iter_lines(source), start=1):
        line = raw.rstrip("\r\n")
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        name, sep, digest = line.partition("\t")
        digest = digest.split("\t", 1)[0].rstrip()
        if not sep or not name or not digest:
            raise ParseError(_CONTEXT, f"line {lineno} is not '<name>\\t<digest>': {line!r}")
        table[name] = digest
    return table


def file_digest(path: str) -> str:
    """Base64 MD5 of a file, without trailing ``=`` padding."""
    md5 = hashlib.md5()
    with open(path, "rb") as fh:
        for block in iter(lambda: fh.read(64 * 1024), b""):
            md5.update(block)
    return base64.b64encode(md5.digest()).decode("ascii").rstrip("=")


def verify_file(path: str, table: Dict[str, str], name: str) -> bool:
    """Check path against the digest published for name.

    Returns:
        True when the digest matches, False when the table has no entry.

    Raises:
        ChecksumMismatchError: The digests differ.
    """
    expected = table.get(name)
    if expected is None:
        return False
    actual = file_digest(path)
    if actual != expected.rstrip("="):
        raise ChecksumMismatchError(name, expected, actual)
    return True

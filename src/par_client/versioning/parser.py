"""Distribution file name parsing utilities."""

import os
import re
from typing import List, Optional

from par_client.constants import Constants
from par_client.errors import ParseError
from .models import DistributionIdentifier

# A token that reads as a version: 1, 1_02, 0.502, .5, v5.8.7, 1.2_03
_VERSION = r"v?(?:\d+(?:_\d+)?|\d*(?:\.\d+(?:_\d+)?)+)"
_VERSION_TOKEN = re.compile(r"^" + _VERSION + r"$")
_RUNTIME_TOKEN = re.compile(r"^(?:" + _VERSION + "|" + re.escape(Constants.ANY_VERSION) + r")$")
_EXTENSIONS = re.compile(r"\.(?:par|tar\.gz|tar)$", re.IGNORECASE)


def _is_version(token: str) -> bool:
    return bool(_VERSION_TOKEN.match(token))


def _strip_name(filename: str) -> str:
    """Drop any directory part and the archive extension."""
    base = os.path.basename(filename.replace("\\", "/"))
    return _EXTENSIONS.sub("", base)


def parse_dist_name(filename: str) -> DistributionIdentifier:
    """Parse a distribution file name into its four fields.

    Exactly four hyphen-separated tokens are taken by position. With more
    tokens, name and arch contain hyphens: the version is the first token
    that looks like a version and is not directly followed by another one,
    the runtime version is the next version-like (or ``any_version``) token,
    and everything between them is the arch.

    Raises:
        ParseError: A field is missing or empty.
    """
    if not isinstance(filename, str):
        raise TypeError("distribution name must be a string")

    elements = _strip_name(filename).split("-")
    if len(elements) == 4:
        return _checked(filename, *elements)

    name_parts: List[str] = []
    version: Optional[str] = None
    while elements:
        element = elements.pop(0)
        if _is_version(element) and not (elements and _is_version(elements[0])):
            version = element
            break
        name_parts.append(element)

    arch_parts: List[str] = []
    runtime_version: Optional[str] = None
    while elements:
        element = elements.pop(0)
        if _RUNTIME_TOKEN.match(element):
            runtime_version = element
            break
        arch_parts.append(element)

    return _checked(filename, "-".join(name_parts), version, "-".join(arch_parts), runtime_version)


def _checked(
    filename: str,
    name: str,
    version: Optional[str],
    arch: str,
    runtime_version: Optional[str],
) -> DistributionIdentifier:
    missing = [
        label
        for label, value in (
            ("name", name),
            ("version", version),
            ("arch", arch),
            ("runtime version", runtime_version),
        )
        if not value
    ]
    if missing:
        raise ParseError(
            "distribution name",
            f"'{filename}' has no {', '.join(missing)}",
        )
    return DistributionIdentifier(
        name=name,
        version=version,  # type: ignore[arg-type]
        arch=arch,
        runtime_version=runtime_version,  # type: ignore[arg-type]
    )


def format_dist_name(name: str, version: str, arch: str, runtime_version: str) -> str:
    """Inverse of parse_dist_name, without the archive extension."""
    for label, value in (("name", name), ("version", version), ("arch", arch), ("runtime version", runtime_version)):
        if not value:
            raise ValueError(f"distribution {label} must be non-empty")
    return f"{name}-{version}-{arch}-{runtime_version}"


def try_parse_dist_name(filename: str) -> Optional[DistributionIdentifier]:
    """parse_dist_name that returns None instead of raising ParseError."""
    try:
        return parse_dist_name(filename)
    except ParseError:
        return None

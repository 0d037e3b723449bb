"""Data models for distributions and platform matching."""

import sys
import sysconfig
from dataclasses import dataclass

from par_client.constants import Constants


@dataclass(frozen=True)
class Platform:
    """Runtime a distribution has to be compatible with."""
    runtime_version: str
    arch: str

    @classmethod
    def current(cls) -> "Platform":
        """Platform of the running interpreter.

        The arch token has ``-`` and ``.`` replaced by ``_`` so it can never be
        mistaken for a name/version separator inside a distribution file name.
        """
        arch = sysconfig.get_platform().replace("-", "_").replace(".", "_")
        return cls(runtime_version="%d.%d" % sys.version_info[:2], arch=arch)


@dataclass(frozen=True)
class DistributionIdentifier:
    """Parsed ``<name>-<version>-<arch>-<runtime_version>`` distribution name."""
    name: str
    version: str
    arch: str
    runtime_version: str

    @property
    def any_arch(self) -> bool:
        return self.arch == Constants.ANY_ARCH

    @property
    def any_version(self) -> bool:
        return self.runtime_version == Constants.ANY_VERSION

    @property
    def tier(self) -> int:
        """Specificity score; lower is preferred."""
        return (2 if self.any_arch else 0) + (1 if self.any_version else 0)

    @property
    def basename(self) -> str:
        return f"{self.name}-{self.version}-{self.arch}-{self.runtime_version}"

    @property
    def filename(self) -> str:
        """Archive file name as stored in the repository."""
        return f"{self.basename}.{Constants.DIST_EXTENSION}"

    @property
    def repository_path(self) -> str:
        """Path of the archive relative to the repository root."""
        return f"{self.arch}/{self.runtime_version}/{self.filename}"

    def __str__(self) -> str:
        return self.filename

"""Preferred-distribution selection.

Given the candidate set an index row holds for one name, keep what can run on
the platform and pick the best: highest declared version first, then the most
specific build (exact arch and runtime before wildcards).
"""
from __future__ import annotations

import logging
import re
from typing import List, Mapping, Optional, Tuple

from packaging import version

from par_client.common.logging_utils import extra_context, is_debug_enabled
from par_client.constants import Constants
from .models import DistributionIdentifier, Platform
from .parser import try_parse_dist_name

logger = logging.getLogger(__name__)

_ZERO = version.Version("0")

# Module versions: decimal (0.502, .5, 1.02_01) or dotted (v5.8.7, 1.2.3)
_DECIMAL = re.compile(r"^(\d*)\.(\d+)$")
_DOTTED = re.compile(r"^v?\d+(?:\.\d+)*$")


def normalize_module_version(raw: str) -> Optional[str]:
    """Dotted release string that orders like the module version raw.

    Underscores are folded into the number. A decimal version is numified:
    its fraction is split into groups of three digits, so ``0.51`` becomes
    ``0.510`` and sorts above ``0.502``. Returns None when raw is neither
    decimal nor dotted.
    """
    text = raw.strip().replace("_", "")
    decimal = _DECIMAL.match(text)
    if decimal:
        whole, fraction = decimal.groups()
        fraction += "0" * (-len(fraction) % 3)
        groups = [int(fraction[i:i + 3]) for i in range(0, len(fraction), 3)]
        return ".".join(str(part) for part in [int(whole or "0")] + groups)
    if _DOTTED.match(text):
        return ".".join(str(int(part)) for part in text.lstrip("v").split("."))
    return None


def parse_declared_version(raw: Optional[str]) -> version.Version:
    """Declared module version; missing or unparseable versions count as 0."""
    if raw is None:
        return _ZERO
    normalized = normalize_module_version(str(raw))
    if normalized is None:
        return _ZERO
    return version.Version(normalized)


def is_compatible(dist: DistributionIdentifier, platform: Platform) -> bool:
    """Whether dist may be loaded on platform.

    The runtime check lets a candidate through when its runtime matches or its
    *arch* is the any-arch wildcard; an ``any_version`` runtime on its own does
    not qualify.
    """
    if dist.arch != platform.arch and dist.arch != Constants.ANY_ARCH:
        return False
    if dist.runtime_version != platform.runtime_version and dist.arch != Constants.ANY_ARCH:
        return False
    return True


def rank_candidates(
    candidates: Mapping[str, Optional[str]], platform: Platform
) -> List[Tuple[DistributionIdentifier, version.Version]]:
    """Compatible candidates, best first."""
    ranked: List[Tuple[str, DistributionIdentifier, version.Version]] = []
    for filename, declared in candidates.items():
        dist = try_parse_dist_name(filename)
        if dist is None:
            continue
        if not is_compatible(dist, platform):
            continue
        ranked.append((filename, dist, parse_declared_version(declared)))

    # version descending, tier ascending, file name for a stable total order
    ranked.sort(key=lambda item: item[0])
    ranked.sort(key=lambda item: item[1].tier)
    ranked.sort(key=lambda item: item[2], reverse=True)
    return [(dist, ver) for _, dist, ver in ranked]


def select_distribution(
    name: str,
    candidates: Optional[Mapping[str, Optional[str]]],
    platform: Platform,
) -> Optional[DistributionIdentifier]:
    """Pick the distribution to use for name, or None when nothing qualifies.

    Args:
        name: Module or script name the candidates were looked up for.
        candidates: Distribution file name -> declared version.
        platform: Runtime the result has to be compatible with.

    Returns:
        The preferred DistributionIdentifier, or None.
    """
    if not candidates:
        return None
    ranked = rank_candidates(candidates, platform)
    if not ranked:
        if is_debug_enabled(logger):
            logger.debug(
                "No compatible distribution",
                extra=extra_context(
                    event="resolve",
                    component="resolver",
                    outcome="no_match",
                    target=name,
                    candidate_count=len(candidates),
                ),
            )
        return None
    best, best_version = ranked[0]
    if is_debug_enabled(logger):
        logger.debug(
            "Selected distribution",
            extra=extra_context(
                event="resolve",
                component="resolver",
                outcome="selected",
                target=name,
                selected=best.filename,
                version=str(best_version),
                candidate_count=len(candidates),
            ),
        )
    return best

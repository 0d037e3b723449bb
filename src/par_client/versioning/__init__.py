"""Distribution naming and preferred-distribution selection."""

from .models import DistributionIdentifier, Platform
from .parser import format_dist_name, parse_dist_name, try_parse_dist_name
from .resolver import is_compatible, normalize_module_version, rank_candidates, select_distribution

__all__ = [
    "DistributionIdentifier",
    "Platform",
    "format_dist_name",
    "parse_dist_name",
    "try_parse_dist_name",
    "is_compatible",
    "normalize_module_version",
    "rank_candidates",
    "select_distribution",
]

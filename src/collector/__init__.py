"""Scan a source tree and aggregate the globals every file declares."""

from .groups import (
    DEFAULT_GROUPS,
    ConfigError,
    FileGroup,
    OriginTags,
    ScanTarget,
    enumerate_files,
    groups_from_mapping,
    load_groups,
)
from .index import (
    DEFAULT_SKIP_PATTERNS,
    GlobalsIndex,
    Occurrence,
    filter_collisions,
    search_globals,
)
from .scan import collect_globals, scan_file

__all__ = [
    "ConfigError",
    "DEFAULT_GROUPS",
    "DEFAULT_SKIP_PATTERNS",
    "FileGroup",
    "GlobalsIndex",
    "Occurrence",
    "OriginTags",
    "ScanTarget",
    "collect_globals",
    "enumerate_files",
    "filter_collisions",
    "groups_from_mapping",
    "load_groups",
    "scan_file",
    "search_globals",
]

"""
File groups: which extension API scripts to scan and how to tag them.

A group pairs an execution side (`parent` / `child`) with a platform
(`toolkit` / `browser` / `mobile`) and a glob pattern relative to the source
tree. The tags recorded on each occurrence come from that pairing.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

import yaml

from log_config import get_logger

logger = get_logger("collector.groups")


class ConfigError(RuntimeError):
    """Raised when a groups file cannot be parsed."""


@dataclass(frozen=True)
class OriginTags:
    toolkit: bool = False
    browser: bool = False
    mobile: bool = False
    parent: bool = False
    child: bool = False

    @classmethod
    def for_group(cls, side: str, platform: str) -> "OriginTags":
        return cls(
            toolkit=platform == "toolkit",
            browser=platform == "browser",
            mobile=platform == "mobile",
            parent=side == "parent",
            child=side == "child",
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OriginTags":
        return cls(**{key: bool(data.get(key, False)) for key in cls.__dataclass_fields__})

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class FileGroup:
    side: str
    platform: str
    pattern: str

    @property
    def tags(self) -> OriginTags:
        return OriginTags.for_group(self.side, self.platform)


@dataclass(frozen=True)
class ScanTarget:
    """One file to scan, with its path relative to the scanned tree."""

    path: Path
    relpath: str
    metadata: OriginTags


# The "mobile" side groups android scripts with every toolkit script; toolkit
# files already matched by parent/child keep their earlier tags.
DEFAULT_GROUPS: Tuple[FileGroup, ...] = (
    FileGroup("parent", "toolkit", "toolkit/components/extensions/parent/ext-*.js"),
    FileGroup("parent", "browser", "browser/components/extensions/parent/ext-*.js"),
    FileGroup("child", "toolkit", "toolkit/components/extensions/child/ext-*.js"),
    FileGroup("child", "browser", "browser/components/extensions/child/ext-*.js"),
    FileGroup("mobile", "toolkit", "toolkit/components/extensions/*/ext-*.js"),
    FileGroup("mobile", "mobile", "mobile/android/components/extensions/ext-*.js"),
)


def groups_from_mapping(data: Any, *, source: str = "<groups>") -> List[FileGroup]:
    """Build groups from a `{side: {platform: pattern}}` mapping, keeping its order."""
    if not isinstance(data, dict) or not data:
        raise ConfigError(f"{source}: expected a non-empty mapping of sides to platforms.")
    groups: List[FileGroup] = []
    for side, platforms in data.items():
        if not isinstance(platforms, dict) or not platforms:
            raise ConfigError(f"{source}: side {side!r} must map platforms to glob patterns.")
        for platform, pattern in platforms.items():
            if not isinstance(pattern, str) or not pattern.strip():
                raise ConfigError(
                    f"{source}: pattern for {side}/{platform} must be a non-empty string."
                )
            groups.append(FileGroup(str(side), str(platform), pattern))
    return groups


def load_groups(path: Union[str, Path]) -> List[FileGroup]:
    """Load file groups from a YAML file."""
    config_path = Path(path)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Failed to read {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc
    return groups_from_mapping(data, source=str(config_path))


def enumerate_files(
    basepath: Union[str, Path], groups: Iterable[FileGroup] = DEFAULT_GROUPS
) -> List[ScanTarget]:
    """
    Expand each group's pattern under `basepath`, in group order.

    Matches are sorted within a group. A file matched by more than one group
    is scanned once, with the tags of the first group that matched it.
    """
    root = Path(basepath)
    visited = set()
    targets: List[ScanTarget] = []
    for group in groups:
        matches = sorted(path for path in root.glob(group.pattern) if path.is_file())
        if not matches:
            logger.debug("No files match %s/%s pattern %s", group.side, group.platform, group.pattern)
        for path in matches:
            resolved = path.resolve()
            if resolved in visited:
                continue
            visited.add(resolved)
            targets.append(
                ScanTarget(
                    path=path,
                    relpath=path.relative_to(root).as_posix(),
                    metadata=group.tags,
                )
            )
    return targets


__all__ = [
    "ConfigError",
    "DEFAULT_GROUPS",
    "FileGroup",
    "OriginTags",
    "ScanTarget",
    "enumerate_files",
    "groups_from_mapping",
    "load_groups",
]

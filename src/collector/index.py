"""
Aggregation of detected globals across files.

`GlobalsIndex` maps each binding name to the ordered list of places that
declare it. Appends are guarded by a lock so scans running on worker threads
can feed one index; readers get copies.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from analyzer import DetectedGlobal, GlobalKind

from .groups import OriginTags

# Module imports every API file repeats; a name declared only this way is
# shared on purpose and not worth reporting.
DEFAULT_SKIP_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r'\.jsm"\);$'),
    re.compile(r"ExtensionParent;$"),
    re.compile(r"ExtensionCommon;$"),
    re.compile(r"ExtensionUtils;$"),
)

# Dumps written by the earlier JavaScript collector spell this kind in camel case.
_LEGACY_KINDS = {"globalThisAssignment": GlobalKind.GLOBAL_THIS_ASSIGNMENT}


@dataclass(frozen=True)
class Occurrence:
    filepath: str
    kind: GlobalKind
    jscode: str
    metadata: OriginTags

    @classmethod
    def from_detected(cls, detected: DetectedGlobal, metadata: OriginTags) -> "Occurrence":
        return cls(
            filepath=detected.source_file,
            kind=detected.kind,
            jscode=detected.source_snippet,
            metadata=metadata,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Occurrence":
        return cls(
            filepath=data["filepath"],
            kind=_LEGACY_KINDS.get(data["kind"]) or GlobalKind(data["kind"]),
            jscode=data["jscode"],
            metadata=OriginTags.from_dict(data.get("metadata") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filepath": self.filepath,
            "kind": self.kind.value,
            "metadata": self.metadata.to_dict(),
            "jscode": self.jscode,
        }


class GlobalsIndex:
    """Append-only mapping of binding name to its occurrences."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, List[Occurrence]] = {}

    def add(self, name: str, occurrence: Occurrence) -> None:
        with self._lock:
            self._entries.setdefault(name, []).append(occurrence)

    def extend(self, detected: Iterable[DetectedGlobal], metadata: OriginTags) -> int:
        """Record every global found in one file; returns how many were added."""
        items = [(item.name, Occurrence.from_detected(item, metadata)) for item in detected]
        with self._lock:
            for name, occurrence in items:
                self._entries.setdefault(name, []).append(occurrence)
        return len(items)

    def get(self, name: str) -> List[Occurrence]:
        with self._lock:
            return list(self._entries.get(name, ()))

    def names(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def as_dict(self) -> Dict[str, List[Occurrence]]:
        with self._lock:
            return {name: list(items) for name, items in self._entries.items()}

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    @classmethod
    def from_dump(cls, data: Dict[str, Sequence[Dict[str, Any]]]) -> "GlobalsIndex":
        index = cls()
        for name, items in data.items():
            for item in items:
                index.add(name, Occurrence.from_dict(item))
        return index


def filter_collisions(
    globals_map: Dict[str, Sequence[Occurrence]],
    *,
    skip_patterns: Sequence[re.Pattern[str]] = DEFAULT_SKIP_PATTERNS,
    min_occurrences: int = 2,
) -> Dict[str, List[Occurrence]]:
    """
    Keep names declared at least `min_occurrences` times.

    A name is dropped when every one of its snippets matches the same skip
    pattern.
    """
    result: Dict[str, List[Occurrence]] = {}
    for name, items in globals_map.items():
        if len(items) < min_occurrences:
            continue
        if any(all(pattern.search(item.jscode) for item in items) for pattern in skip_patterns):
            continue
        result[name] = list(items)
    return result


def search_globals(
    globals_map: Dict[str, Sequence[Occurrence]], text: Optional[str]
) -> Dict[str, List[Occurrence]]:
    """
    Sort names and keep the occurrences whose name, path or snippet contain `text`.
    """
    result: Dict[str, List[Occurrence]] = {}
    for name in sorted(globals_map):
        items = list(globals_map[name])
        if text:
            items = [
                item
                for item in items
                if text in name or text in item.filepath or text in item.jscode
            ]
        if items:
            result[name] = items
    return result


__all__ = [
    "DEFAULT_SKIP_PATTERNS",
    "GlobalsIndex",
    "Occurrence",
    "filter_collisions",
    "search_globals",
]

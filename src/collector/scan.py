"""
Batch driver: scan every file of the configured groups into one index.

Files are parsed and analysed on a thread pool. Results are merged into the
index in visitation order once each scan finishes, so the output does not
depend on which worker finishes first. The first failing scan cancels the
scans that have not started yet and its error propagates to the caller.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Union

from analyzer import DetectedGlobal
from frontend import run_frontend
from log_config import get_logger
from parser import ParseError

from .groups import DEFAULT_GROUPS, FileGroup, ScanTarget, enumerate_files
from .index import GlobalsIndex

logger = get_logger("collector")


def scan_file(
    target: ScanTarget,
    *,
    tolerant: bool = False,
    cache_dir: Optional[Union[str, Path]] = None,
) -> List[DetectedGlobal]:
    """Parse one file and return the globals it declares."""
    logger.info("Parsing file path %s", target.relpath)
    try:
        source = target.path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(
            f"File is not valid UTF-8 (byte offset {exc.start}).",
            source_name=target.relpath,
        ) from exc
    result = run_frontend(
        source,
        source_name=target.relpath,
        tolerant=tolerant,
        cache_dir=cache_dir,
    )
    return result.globals


def collect_globals(
    basepath: Union[str, Path],
    groups: Iterable[FileGroup] = DEFAULT_GROUPS,
    *,
    workers: Optional[int] = None,
    tolerant: bool = False,
    cache_dir: Optional[Union[str, Path]] = None,
    index: Optional[GlobalsIndex] = None,
) -> GlobalsIndex:
    """
    Scan all files matched by `groups` under `basepath`.

    Args:
        basepath: Root of the source tree; recorded paths are relative to it.
        groups: File groups to expand, in visitation order.
        workers: Thread pool size (`None` lets the executor decide).
        tolerant: Forwarded to the parser.
        cache_dir: Optional directory for parse artefacts.
        index: Existing index to append to; a new one is created by default.

    Returns:
        The index holding every occurrence found.

    Raises:
        ParseError: If a file cannot be decoded as UTF-8 or parsed.
        UnsupportedPatternError: If a file binds a global through an
            unsupported pattern.
    """
    targets = enumerate_files(basepath, groups)
    if index is None:
        index = GlobalsIndex()
    if not targets:
        logger.warning("No files matched under %s", basepath)
        return index

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(scan_file, target, tolerant=tolerant, cache_dir=cache_dir)
            for target in targets
        ]
        try:
            for target, future in zip(targets, futures):
                index.extend(future.result(), metadata=target.metadata)
        except BaseException:
            for future in futures:
                future.cancel()
            raise

    logger.info("Scanned %d files, found %d distinct globals", len(targets), len(index))
    return index


__all__ = ["collect_globals", "scan_file"]

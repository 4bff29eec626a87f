"""
Depth-first walk of the project tree.

The walk drives the rule engine, the media catalog and the content
transformer, appending everything it produces to a ``ReportBuffers``
sink in pre-order. An explicit work list replaces recursion so very deep
trees cannot exhaust the call stack.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from . import content, media
from .console import warn
from .rules import RuleSet

BRANCH = "├── "
LAST = "└── "
PIPE = "│   "
SPACE = "    "


@dataclass(frozen=True)
class ScanLimits:
    max_dir_items: int = 100
    keep_dir_items: int = 3
    max_file_size: int = content.MAX_FILE_SIZE
    preview_size: int = content.PREVIEW_SIZE
    media_limit: int = media.MEDIA_LIMIT
    image_probe_bytes: int = media.IMAGE_PROBE_BYTES


@dataclass(frozen=True)
class Entry:
    name: str
    path: Path
    rel: str
    is_dir: bool


@dataclass
class ScanStats:
    files: int = 0
    binary: int = 0
    shrunk: int = 0
    errors: int = 0
    unreadable_dirs: int = 0


class ReportBuffers:
    """Append-only sink for the three report regions."""

    def __init__(self) -> None:
        self._tree: List[str] = []
        self._media: List[str] = []
        self._content: List[Tuple[str, str]] = []

    def add_tree_line(self, line: str) -> None:
        self._tree.append(line)

    def add_media(self, summary: str) -> None:
        self._media.append(summary)

    def add_content(self, rel_path: str, text: str) -> None:
        self._content.append((rel_path, text))

    @property
    def tree_lines(self) -> List[str]:
        return list(self._tree)

    @property
    def media_sections(self) -> List[str]:
        return list(self._media)

    @property
    def content_sections(self) -> List[Tuple[str, str]]:
        return list(self._content)


def sort_key(entry: Entry) -> Tuple[bool, str, str]:
    """Directories first, then case-insensitive name order."""
    return (not entry.is_dir, entry.name.casefold(), entry.name)


def _rel_join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def list_entries(directory: Path, rel_dir: str) -> List[Entry]:
    """All children of ``directory``. Symlinks are listed but never followed."""
    entries: List[Entry] = []
    with os.scandir(directory) as it:
        for child in it:
            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            entries.append(Entry(child.name, Path(child.path), _rel_join(rel_dir, child.name), is_dir))
    return entries


# Work items: a directory to visit, an entry to render, or a finished tree line
@dataclass(frozen=True)
class _VisitDir:
    path: Path
    rel: str
    prefix: str


@dataclass(frozen=True)
class _RenderEntry:
    entry: Entry
    prefix: str
    is_last: bool


_Work = Union[_VisitDir, _RenderEntry, str]


@dataclass
class TreeWalker:
    root: Path
    rules: RuleSet
    limits: ScanLimits = field(default_factory=ScanLimits)
    verbose: bool = False
    transform: Callable[..., content.ContentResult] = content.transform
    stats: ScanStats = field(default_factory=ScanStats)

    def walk(self, sink: Optional[ReportBuffers] = None) -> ReportBuffers:
        sink = sink if sink is not None else ReportBuffers()
        sink.add_tree_line("/")
        stack: List[_Work] = [_VisitDir(self.root, "", "")]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                sink.add_tree_line(item)
            elif isinstance(item, _VisitDir):
                stack.extend(reversed(self._visit(item, sink)))
            else:
                child = self._render(item, sink)
                if child is not None:
                    stack.append(child)
        return sink

    def _visit(self, work: _VisitDir, sink: ReportBuffers) -> List[_Work]:
        try:
            entries = list_entries(work.path, work.rel)
        except OSError as e:
            self.stats.unreadable_dirs += 1
            warn(f"Could not list {work.rel or '/'}: {e}", self.verbose)
            sink.add_tree_line(f"{work.prefix}{LAST}[read failed: {e.strerror or e}]")
            return []

        kept = [e for e in entries if self.rules.keeps(e.rel, e.is_dir)]

        summary = media.catalog(
            work.path,
            work.rel,
            kept,
            limit=self.limits.media_limit,
            probe_bytes=self.limits.image_probe_bytes,
        )
        if summary:
            sink.add_media(summary)

        kept.sort(key=sort_key)
        total = len(kept)
        pruned = total > self.limits.max_dir_items
        shown = kept[: self.limits.keep_dir_items] if pruned else kept

        work_items: List[_Work] = [
            _RenderEntry(entry, work.prefix, i == len(shown) - 1 and not pruned)
            for i, entry in enumerate(shown)
        ]
        if pruned:
            omitted = total - len(shown)
            work_items.append(f"{work.prefix}{LAST}... ({total} total, {omitted} omitted)")
        return work_items

    def _render(self, work: _RenderEntry, sink: ReportBuffers) -> Optional[_VisitDir]:
        entry = work.entry
        connector = LAST if work.is_last else BRANCH
        if entry.is_dir:
            sink.add_tree_line(f"{work.prefix}{connector}{entry.name}/")
            return _VisitDir(entry.path, entry.rel, work.prefix + (SPACE if work.is_last else PIPE))

        sink.add_tree_line(f"{work.prefix}{connector}{entry.name}")
        result = self.transform(
            entry.path,
            max_size=self.limits.max_file_size,
            preview_size=self.limits.preview_size,
        )
        self._count(entry, result)
        text = content.render(result, preview_size=self.limits.preview_size)
        if text:
            sink.add_content(entry.rel, text)
        return None

    def _count(self, entry: Entry, result: content.ContentResult) -> None:
        if isinstance(result, content.Skipped):
            self.stats.binary += 1
            return
        self.stats.files += 1
        if isinstance(result, (content.Truncated, content.Pruned)):
            self.stats.shrunk += 1
        elif isinstance(result, content.Failed):
            self.stats.errors += 1
            warn(f"Could not read {entry.rel}: {result.message}", self.verbose)

"""
Core entry points: ``detect`` and ``scan``.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .console import info, success
from .errors import InvalidRootError
from .projects import Detected, Overridden, ProjectType, detect_project_type, project_config
from .report import ReportHeader, assemble, default_output_dir, output_filename, write_report
from .rules import RuleSet
from .walker import ScanLimits, ScanStats, TreeWalker


def resolve_root(root: Union[str, Path]) -> Path:
    try:
        resolved = Path(root).resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}")
    if not resolved.exists():
        raise InvalidRootError(f"Root directory '{resolved}' does not exist")
    if not resolved.is_dir():
        raise InvalidRootError(f"Root path '{resolved}' is not a directory")
    return resolved


def detect(root: Union[str, Path], verbose: bool = False) -> Detected:
    """Detect the project type of ``root``."""
    resolved = resolve_root(root)
    try:
        return detect_project_type(resolved, verbose)
    except OSError as e:
        raise InvalidRootError(f"Could not read directory '{resolved}': {e}")


def _project_type(root: Path, project_type: Union[None, str, ProjectType], verbose: bool) -> ProjectType:
    if project_type is None:
        return detect(root, verbose)
    if isinstance(project_type, str):
        return Overridden(project_type)
    return project_type


def build_report(
    root: Union[str, Path],
    project_type: Union[None, str, ProjectType] = None,
    extra_excludes: Optional[Iterable[str]] = None,
    extra_includes: Optional[Iterable[str]] = None,
    limits: Optional[ScanLimits] = None,
    now: Optional[datetime.datetime] = None,
    verbose: bool = False,
) -> Tuple[ReportHeader, str, ScanStats]:
    """Walk ``root`` and return ``(header, document, stats)`` without writing anything."""
    resolved = resolve_root(root)
    kind = _project_type(resolved, project_type, verbose)
    excludes: List[str] = [p for p in extra_excludes or [] if p.strip()]
    includes: List[str] = [p for p in extra_includes or [] if p.strip()]

    rules = RuleSet.from_sources(resolved, project_config(kind.label), excludes, includes, verbose)
    header = ReportHeader.for_root(resolved, kind, excludes, includes, now)

    info(f"Scanning {resolved} as {kind.label} …", verbose)
    walker = TreeWalker(resolved, rules, limits or ScanLimits(), verbose)
    buffers = walker.walk()
    return header, assemble(header, buffers), walker.stats


def scan(
    root: Union[str, Path],
    project_type: Union[None, str, ProjectType] = None,
    extra_excludes: Optional[Iterable[str]] = None,
    extra_includes: Optional[Iterable[str]] = None,
    out_dir: Optional[Union[str, Path]] = None,
    limits: Optional[ScanLimits] = None,
    verbose: bool = False,
) -> Path:
    """Scan ``root`` and write the Markdown snapshot. Returns the report path.

    ``project_type`` may be a label (treated as a user override), a
    ``Detected``/``Overridden`` value, or ``None`` to auto-detect.
    """
    header, document, stats = build_report(
        root,
        project_type=project_type,
        extra_excludes=extra_excludes,
        extra_includes=extra_includes,
        limits=limits,
        verbose=verbose,
    )
    target_dir = Path(out_dir) if out_dir is not None else default_output_dir()
    out_path = write_report(document, target_dir, output_filename(header))

    success(
        f"Done → {out_path}. "
        f"{stats.files} files written, {stats.binary} binary skipped, "
        f"{stats.shrunk} shrunk, {stats.errors} unreadable.",
        verbose,
    )
    return out_path

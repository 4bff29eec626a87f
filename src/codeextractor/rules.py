"""
Exclude / force-include rule engine.

Exclude patterns use gitignore syntax and are aggregated, in order, from
the shared defaults, the project type's list, caller-supplied extras and
the project's own ``.gitignore``. Include patterns are checked first and
always win, so a file buried in an ignored tree can still be rescued.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pathspec

from .console import info, warn
from .errors import ConfigFileError
from .projects import DEFAULT_IGNORES, ProjectConfig

_WILDCARD_CHARS = frozenset("*?[")


class Decision(enum.Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    PASS = "pass"


def _compile(lines: Iterable[str]) -> "pathspec.PathSpec":
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def _clean(patterns: Optional[Iterable[str]]) -> List[str]:
    return [p.strip() for p in patterns or () if p and p.strip()]


# Ignore-file utilities
def load_gitignore(root: Path, verbose: bool = False) -> List[str]:
    gitignore_path = root / ".gitignore"
    if not gitignore_path.is_file():
        return []
    try:
        with gitignore_path.open("r", encoding="utf-8") as fh:
            lines = fh.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        warn(f"Could not read .gitignore, skipping it: {e}", verbose)
        return []
    info("Loaded .gitignore rules", verbose)
    return lines


def load_extra_patterns(config_path: Path) -> List[str]:
    """Read one pattern per line from ``config_path``, skipping blanks and ``#`` comments."""
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            return [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")


def _has_wildcard(pattern: str) -> bool:
    return any(ch in _WILDCARD_CHARS for ch in pattern)


def _literal_path(pattern: str) -> str:
    """Normalize a literal include pattern to a bare relative POSIX path."""
    path = pattern.replace("\\", "/")
    if path.startswith("./"):
        path = path[2:]
    return path.strip("/")


class RuleSet:
    """Decides, per relative path, whether an entry is kept.

    ``decide`` is pure: nothing is cached between calls, so the same
    instance can be reused across scans of an unchanged tree.
    """

    def __init__(
        self,
        exclude_patterns: Sequence[str] = (),
        include_patterns: Sequence[str] = (),
    ) -> None:
        self.exclude_patterns: List[str] = list(exclude_patterns)
        self.include_patterns: List[str] = _clean(include_patterns)
        self._exclude_spec = _compile(self.exclude_patterns)
        self._include_spec = _compile(self.include_patterns)
        self._wildcard_include = any(_has_wildcard(p) for p in self.include_patterns)
        self._literal_includes = [
            _literal_path(p) for p in self.include_patterns if not _has_wildcard(p)
        ]

    @classmethod
    def from_sources(
        cls,
        root: Path,
        config: ProjectConfig,
        extra_excludes: Optional[Iterable[str]] = None,
        extra_includes: Optional[Iterable[str]] = None,
        verbose: bool = False,
    ) -> "RuleSet":
        excludes: List[str] = []
        excludes.extend(DEFAULT_IGNORES)
        excludes.extend(config.ignore_patterns)
        excludes.extend(_clean(extra_excludes))
        excludes.extend(load_gitignore(root, verbose))
        return cls(excludes, _clean(extra_includes))

    def is_force_included(self, rel_path: str, is_dir: bool) -> bool:
        if not self.include_patterns:
            return False
        if self._include_spec.match_file(rel_path):
            return True
        if not is_dir:
            return False
        if self._include_spec.match_file(rel_path + "/"):
            return True
        # Wildcards can match anywhere below, so let every directory through
        if self._wildcard_include:
            return True
        prefix = rel_path + "/"
        return any(lit.startswith(prefix) for lit in self._literal_includes)

    def is_excluded(self, rel_path: str, is_dir: bool) -> bool:
        if self._exclude_spec.match_file(rel_path):
            return True
        return is_dir and self._exclude_spec.match_file(rel_path + "/")

    def decide(self, rel_path: str, is_dir: bool) -> Decision:
        if self.is_force_included(rel_path, is_dir):
            return Decision.INCLUDE
        if self.is_excluded(rel_path, is_dir):
            return Decision.EXCLUDE
        return Decision.PASS

    def keeps(self, rel_path: str, is_dir: bool) -> bool:
        return self.decide(rel_path, is_dir) is not Decision.EXCLUDE

"""
Project types: labels, their ignore lists, and root-level detection.

Detection looks only at the root listing and ``package.json``. Rules are
tried in priority order and the first match wins; Electron comes before
Vue/React because Electron apps usually wrap one of them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from .console import warn

# Ignored for every project type
DEFAULT_IGNORES: List[str] = [
    "node_modules",
    ".git",
    ".svn",
    ".DS_Store",
    "Thumbs.db",
    "dist",
    "build",
    "coverage",
    ".idea",
    ".vscode",
    "*.log",
    "yarn.lock",
    "package-lock.json",
    "pnpm-lock.yaml",
]

UNKNOWN = "unknown"
GENERIC_NODE = "generic-node"


@dataclass(frozen=True)
class Detected:
    label: str


@dataclass(frozen=True)
class Overridden:
    label: str


ProjectType = Union[Detected, Overridden]


@dataclass(frozen=True)
class ProjectConfig:
    ignore_patterns: List[str] = field(default_factory=list)


PROJECT_CONFIGS: Dict[str, ProjectConfig] = {
    "flutter": ProjectConfig([".dart_tool", ".idea", "ios/Flutter", "android/.gradle", "build"]),
    "electron": ProjectConfig(["dist", "out", "release", "release-builds", "build", "compile"]),
    "vue": ProjectConfig([".nuxt", "dist", "dist-ssr"]),
    "react": ProjectConfig([".next", "build", "out"]),
    "nodejs": ProjectConfig(["test", "tests", "coverage"]),
    GENERIC_NODE: ProjectConfig(["test", "tests", "coverage"]),
    "generic-web": ProjectConfig([".sass-cache", "bower_components"]),
}

# Labels offered for manual override, in menu order
KNOWN_TYPES: List[str] = [
    "generic-web",
    "nodejs",
    "vue",
    "react",
    "flutter",
    "electron",
    "android",
    "ios",
    UNKNOWN,
]


def project_config(label: str) -> ProjectConfig:
    """Ignore configuration for ``label``; unknown labels get no extra rules."""
    return PROJECT_CONFIGS.get(label, ProjectConfig())


# Detection helpers
def has_dependency(package: Optional[Dict[str, Any]], names: Iterable[str]) -> bool:
    if not package:
        return False
    deps: Dict[str, Any] = {}
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = package.get(key)
        if isinstance(section, dict):
            deps.update(section)
    return any(deps.get(name) for name in names)


_BACKEND_FRAMEWORKS = ["express", "koa", "hapi", "fastify", "nestjs", "@nestjs/core", "egg", "thinkjs"]
_WEB_DEPS = [
    "jquery", "bootstrap", "bulma", "tailwindcss",
    "webpack", "parcel", "vite", "rollup", "gulp", "grunt",
]


def _is_flutter(files: Set[str], package: Optional[dict], root: Path) -> bool:
    return "pubspec.yaml" in files


def _is_electron(files: Set[str], package: Optional[dict], root: Path) -> bool:
    return has_dependency(package, ["electron"])


def _is_vue(files: Set[str], package: Optional[dict], root: Path) -> bool:
    return has_dependency(package, ["vue", "nuxt"])


def _is_react(files: Set[str], package: Optional[dict], root: Path) -> bool:
    return has_dependency(package, ["react", "react-dom", "next"]) and not has_dependency(
        package, ["react-native"]
    )


def _is_node(files: Set[str], package: Optional[dict], root: Path) -> bool:
    if not package:
        return False
    return has_dependency(package, _BACKEND_FRAMEWORKS) or bool(package.get("bin"))


def _is_web(files: Set[str], package: Optional[dict], root: Path) -> bool:
    if has_dependency(package, _WEB_DEPS):
        return True
    if "index.html" in files:
        return True
    if (root / "public" / "index.html").exists() or (root / "src" / "index.html").exists():
        return True
    has_css = "css" in files or "styles" in files
    has_js = "js" in files or "scripts" in files
    return has_css and has_js


Predicate = Callable[[Set[str], Optional[dict], Path], bool]

DETECTION_RULES: List[Tuple[Predicate, str]] = [
    (_is_flutter, "flutter"),
    (_is_electron, "electron"),
    (_is_vue, "vue"),
    (_is_react, "react"),
    (_is_node, "nodejs"),
    (_is_web, "generic-web"),
]


def _read_package_json(root: Path, verbose: bool) -> Optional[dict]:
    path = root / "package.json"
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        warn(f"package.json could not be read, ignoring dependencies: {e}", verbose)
        return None
    return data if isinstance(data, dict) else None


def detect_project_type(root: Path, verbose: bool = False) -> Detected:
    """Return the first matching detection rule's label for ``root``."""
    files = {p.name for p in root.iterdir()}
    package = _read_package_json(root, verbose) if "package.json" in files else None

    for predicate, label in DETECTION_RULES:
        if predicate(files, package, root):
            return Detected(label)

    # A package.json with no frontend or backend markers is most likely a library or tool
    if package is not None:
        return Detected(GENERIC_NODE)
    return Detected(UNKNOWN)

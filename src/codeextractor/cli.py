"""
CLI entrypoint for codeextractor.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .console import error, info
from .core import detect, scan
from .errors import CodeExtractorError
from .projects import KNOWN_TYPES
from .rules import load_extra_patterns


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="codeextractor",
        description="Generate a Markdown snapshot (tree, media, file contents) of a project.",
    )
    p.add_argument("root", type=Path, nargs="?", default=Path("."), help="Project root dir")
    p.add_argument(
        "-t",
        "--type",
        dest="project_type",
        help=f"Project type to use instead of auto-detection (e.g. {', '.join(KNOWN_TYPES)})",
    )
    p.add_argument(
        "-e",
        "--exclude",
        nargs="+",
        action="extend",
        default=[],
        metavar="PATTERN",
        help="Extra exclude patterns (gitignore syntax)",
    )
    p.add_argument(
        "-i",
        "--include",
        nargs="+",
        action="extend",
        default=[],
        metavar="PATTERN",
        help="Patterns that are always included, even inside excluded directories",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra exclude patterns (one per line)",
    )
    p.add_argument(
        "--out-dir",
        type=Path,
        help="Output directory (default: ./output)",
    )
    p.add_argument("--detect", action="store_true", help="Print the detected project type and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        ns = _parse_args(argv)

        if ns.detect:
            print(detect(ns.root, verbose=ns.verbose).label)
            return 0

        excludes = list(ns.exclude)
        if ns.config:
            excludes.extend(load_extra_patterns(ns.config.resolve()))
            info(f"Loaded extra patterns from {ns.config}", ns.verbose)

        out_path = scan(
            ns.root,
            project_type=ns.project_type,
            extra_excludes=excludes,
            extra_includes=ns.include,
            out_dir=ns.out_dir,
            verbose=ns.verbose,
        )
        if not ns.verbose:
            print(out_path)
        return 0

    except CodeExtractorError as e:
        error(str(e))
        return 1
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

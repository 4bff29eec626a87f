"""
Code Extractor - snapshot a project into a single Markdown document.

The package walks a project tree, filters it through gitignore-style
exclude rules and force-include rules, and writes one document holding
the directory tree, a catalog of media assets and the text of every
non-binary file, shrinking oversized files along the way.
"""

__version__ = "0.1.0"
__author__ = "Code Extractor Team"

from .core import build_report, detect, scan
from .errors import (
    CodeExtractorError,
    ConfigFileError,
    InvalidRootError,
    OutputError,
)

__all__ = [
    "__version__",
    "build_report",
    "detect",
    "scan",
    "CodeExtractorError",
    "ConfigFileError",
    "InvalidRootError",
    "OutputError",
]

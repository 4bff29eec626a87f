"""
Per-file content transformation.

Small text files are emitted verbatim. Files over the size limit are
parsed as JSON and structurally pruned when that succeeds, otherwise
only their head and tail are kept. Binary files produce nothing.
"""

from __future__ import annotations

import codecs
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

KIB = 1024
MAX_FILE_SIZE = 100 * KIB
PREVIEW_SIZE = 5 * KIB
PRUNE_THRESHOLD = 100
PRUNE_KEEP = 3
PRUNE_MAX_DEPTH = 10
BINARY_PROBE_BYTES = 512

DEPTH_PLACEHOLDER = "... (nesting too deep, omitted)"

_BOMS = (
    codecs.BOM_UTF8,
    codecs.BOM_UTF32_LE,
    codecs.BOM_UTF32_BE,
    codecs.BOM_UTF16_LE,
    codecs.BOM_UTF16_BE,
)


@dataclass(frozen=True)
class Skipped:
    reason: str = "binary"


@dataclass(frozen=True)
class Raw:
    text: str


@dataclass(frozen=True)
class Truncated:
    head: str
    tail: str
    omitted: int
    size: int


@dataclass(frozen=True)
class Pruned:
    value: Any
    size: int


@dataclass(frozen=True)
class Failed:
    message: str


ContentResult = Union[Skipped, Raw, Truncated, Pruned, Failed]


# Binary sniffing
def looks_binary(sample: bytes) -> bool:
    """Guess whether ``sample`` (the first bytes of a file) is binary."""
    if not sample:
        return False
    if sample.startswith(_BOMS):
        return False
    if b"\x00" in sample:
        return True
    if sample.startswith(b"%PDF-"):
        return True

    suspicious = sum(1 for b in sample if b < 7 or 14 < b < 32)
    try:
        # final=False so a multi-byte sequence cut off at the end of the sample is fine
        codecs.getincrementaldecoder("utf-8")().decode(sample, final=False)
    except UnicodeDecodeError:
        suspicious += sum(1 for b in sample if b > 127)
    return suspicious * 10 > len(sample)


def is_binary_file(path: Path) -> bool:
    with path.open("rb") as fh:
        return looks_binary(fh.read(BINARY_PROBE_BYTES))


# Structural JSON pruning
def prune(
    value: Any,
    depth: int = 0,
    threshold: int = PRUNE_THRESHOLD,
    keep: int = PRUNE_KEEP,
    max_depth: int = PRUNE_MAX_DEPTH,
) -> Any:
    """Shrink large lists/dicts in a parsed JSON value, recursively.

    Containers with more than ``threshold`` items keep their first
    ``keep`` items plus one marker reporting the true size. Anything
    nested deeper than ``max_depth`` becomes :data:`DEPTH_PLACEHOLDER`.
    """
    if depth > max_depth:
        return DEPTH_PLACEHOLDER

    def child(v: Any) -> Any:
        return prune(v, depth + 1, threshold, keep, max_depth)

    if isinstance(value, list):
        total = len(value)
        if total > threshold:
            kept = [child(item) for item in value[:keep]]
            kept.append(f"... ({total} items total, {total - keep} omitted)")
            return kept
        return [child(item) for item in value]

    if isinstance(value, dict):
        total = len(value)
        if total > threshold:
            out = {key: child(value[key]) for key in list(value)[:keep]}
            out["..."] = f"({total} keys total, {total - keep} omitted)"
            return out
        return {key: child(v) for key, v in value.items()}

    return value


def _kib(size: int) -> str:
    return f"{size / KIB:.2f}KB"


def _positioned_read(fh, offset: int, length: int) -> str:
    fh.seek(offset)
    return fh.read(length).decode("utf-8", errors="replace")


def transform(
    path: Path,
    max_size: int = MAX_FILE_SIZE,
    preview_size: int = PREVIEW_SIZE,
) -> ContentResult:
    """Decide how ``path`` appears in the report. Never raises on I/O errors."""
    try:
        if is_binary_file(path):
            return Skipped()

        size = path.stat().st_size
        if size <= max_size:
            return Raw(path.read_bytes().decode("utf-8", errors="replace"))

        try:
            value = json.loads(path.read_bytes().decode("utf-8"))
        except (ValueError, RecursionError):
            # Not JSON, or nested too deeply for the parser
            pass
        else:
            return Pruned(prune(value), size)

        with path.open("rb") as fh:
            head = _positioned_read(fh, 0, preview_size)
            tail = _positioned_read(fh, max(0, size - preview_size), preview_size)
        return Truncated(head, tail, size - 2 * preview_size, size)
    except OSError as e:
        return Failed(str(e))


def render(result: ContentResult, preview_size: int = PREVIEW_SIZE) -> Optional[str]:
    """Text for a content section, or ``None`` when nothing should be emitted."""
    if isinstance(result, Skipped):
        return None
    if isinstance(result, Raw):
        return result.text
    if isinstance(result, Failed):
        return f"[read failed: {result.message}]"
    if isinstance(result, Pruned):
        body = json.dumps(result.value, indent=2, ensure_ascii=False)
        return (
            f"/* [large file] structured JSON (original size: {_kib(result.size)})\n"
            f" * pruned: arrays/objects over {PRUNE_THRESHOLD} items keep only the first {PRUNE_KEEP}\n"
            f" */\n"
            f"{body}"
        )
    if isinstance(result, Truncated):
        preview_kib = f"{preview_size / KIB:g}KB"
        return (
            f"/* [large file] unstructured text (original size: {_kib(result.size)})\n"
            f" * showing the first {preview_kib} and the last {preview_kib}\n"
            f" */\n\n"
            f"{result.head}"
            f"\n\n\n... ({result.omitted} bytes omitted) ...\n\n\n"
            f"{result.tail}"
        )
    raise TypeError(f"unknown content result: {result!r}")


def fence_for(text: str, char: str = "`", minimum: int = 4) -> str:
    """Return a fence longer than any run of ``char`` inside ``text``."""
    runs = re.findall(re.escape(char) + "+", text)
    longest = max((len(r) for r in runs), default=0)
    return char * max(minimum, longest + 1)

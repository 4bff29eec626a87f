"""
Per-directory media catalog.

Images, audio and video files among a directory's kept entries are
listed largest first. Image dimensions are read by Pillow from a
buffer holding only the start of the file.
"""

from __future__ import annotations

import enum
import io
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from PIL import Image

KIB = 1024
IMAGE_PROBE_BYTES = 512 * KIB
MEDIA_LIMIT = 200
MAX_WORKERS = 8
NOT_AVAILABLE = "N/A"

IMAGE_EXTS = frozenset([".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp", ".ico", ".tiff"])
AUDIO_EXTS = frozenset([".mp3", ".wav", ".aac", ".ogg", ".flac", ".m4a"])
VIDEO_EXTS = frozenset([".mp4", ".avi", ".mov", ".mkv", ".webm", ".flv", ".wmv"])


class MediaKind(enum.Enum):
    IMAGE = "Image"
    AUDIO = "Audio"
    VIDEO = "Video"


@dataclass(frozen=True)
class MediaItem:
    name: str
    size: int
    kind: MediaKind
    dimensions: Optional[str] = None


def classify(name: str) -> Optional[MediaKind]:
    ext = Path(name).suffix.lower()
    if ext in IMAGE_EXTS:
        return MediaKind.IMAGE
    if ext in AUDIO_EXTS:
        return MediaKind.AUDIO
    if ext in VIDEO_EXTS:
        return MediaKind.VIDEO
    return None


def format_size(num_bytes: int) -> str:
    """Human-readable size: ``1536`` -> ``"1.5 KB"``."""
    if num_bytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(num_bytes)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[i]}"


def image_size(data: bytes) -> Tuple[int, int]:
    """Return ``(width, height)`` read from an image header buffer.

    Pillow only parses the header on open, so a truncated buffer is
    enough. Raises ``ValueError`` when the format is not recognized.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (OSError, SyntaxError, Image.DecompressionBombError) as e:
        raise ValueError(f"unsupported or truncated image header: {e}") from e


def probe_dimensions(path: Path, size: int, probe_bytes: int = IMAGE_PROBE_BYTES) -> str:
    try:
        with path.open("rb") as fh:
            header = fh.read(min(size, probe_bytes))
        width, height = image_size(header)
    except (OSError, ValueError):
        return NOT_AVAILABLE
    return f"{width}x{height}"


def _collect(path: Path, kind: MediaKind, probe_bytes: int) -> Optional[MediaItem]:
    try:
        size = path.stat().st_size
    except OSError:
        return None
    dimensions = probe_dimensions(path, size, probe_bytes) if kind is MediaKind.IMAGE else None
    return MediaItem(path.name, size, kind, dimensions)


def collect_media(
    dir_path: Path,
    entries: Iterable,
    probe_bytes: int = IMAGE_PROBE_BYTES,
) -> List[MediaItem]:
    """Stat and probe the media files among ``entries``, largest first."""
    jobs = []
    for entry in entries:
        if entry.is_dir:
            continue
        kind = classify(entry.name)
        if kind is not None:
            jobs.append((dir_path / entry.name, kind))
    if not jobs:
        return []

    with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(jobs))) as pool:
        results = list(pool.map(lambda job: _collect(job[0], job[1], probe_bytes), jobs))

    items = [item for item in results if item is not None]
    items.sort(key=lambda item: (-item.size, item.name))
    return items


def catalog(
    dir_path: Path,
    rel_dir: str,
    entries: Iterable,
    limit: int = MEDIA_LIMIT,
    probe_bytes: int = IMAGE_PROBE_BYTES,
) -> Optional[str]:
    """Markdown media summary for one directory, or ``None`` when it has no media."""
    items = collect_media(dir_path, entries, probe_bytes)
    if not items:
        return None

    total = len(items)
    lines = [f"### {rel_dir or '/'}", ""]
    if total > limit:
        lines.append(f"> {total} media files, showing the {limit} largest")
    else:
        lines.append(f"{total} media files")
    lines.append("")

    for n, item in enumerate(items[:limit], start=1):
        line = f"{n}. [{item.kind.value}] {item.name} - {format_size(item.size)}"
        if item.dimensions:
            line += f" (dimensions: {item.dimensions})"
        lines.append(line)
    return "\n".join(lines) + "\n"

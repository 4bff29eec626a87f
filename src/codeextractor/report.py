"""
Markdown report assembly and output.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .content import fence_for
from .errors import OutputError
from .projects import ProjectType
from .walker import ReportBuffers

OUTPUT_DIR_NAME = "output"
REPORT_EXT = "md"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ReportHeader:
    project_name: str
    parent_name: str
    project_type: ProjectType
    generated_at: datetime.datetime
    extra_excludes: List[str] = field(default_factory=list)
    extra_includes: List[str] = field(default_factory=list)

    @classmethod
    def for_root(
        cls,
        root: Path,
        project_type: ProjectType,
        extra_excludes: Optional[List[str]] = None,
        extra_includes: Optional[List[str]] = None,
        now: Optional[datetime.datetime] = None,
    ) -> "ReportHeader":
        return cls(
            project_name=root.name,
            parent_name=root.parent.name,
            project_type=project_type,
            generated_at=now or datetime.datetime.now(),
            extra_excludes=list(extra_excludes or []),
            extra_includes=list(extra_includes or []),
        )


def _code_list(patterns: List[str]) -> str:
    return ", ".join(f"`{p}`" for p in patterns)


def fence_tag(rel_path: str) -> str:
    suffix = Path(rel_path).suffix
    return suffix[1:].lower() if len(suffix) > 1 else "text"


def render_header(header: ReportHeader) -> str:
    lines = [
        f"# Project Snapshot: {header.project_name}",
        "",
        f"- **Project:** {header.project_name}",
        f"- **Type:** {header.project_type.label}",
        f"- **Parent directory:** {header.parent_name}",
        f"- **Generated:** {header.generated_at.strftime(TIMESTAMP_FORMAT)}",
    ]
    if header.extra_excludes:
        lines.append(f"- **Extra excludes:** {_code_list(header.extra_excludes)}")
    if header.extra_includes:
        lines.append(f"- **Extra includes:** {_code_list(header.extra_includes)}")
    return "\n".join(lines) + "\n"


def render_tree(tree_lines: List[str]) -> str:
    body = "\n".join(tree_lines)
    fence = fence_for(body)
    return f"## Directory Tree\n\n{fence}text\n{body}\n{fence}\n"


def render_media(sections: List[str]) -> str:
    return "## Media Assets\n\n" + "\n".join(sections)


def render_content(sections: List[tuple]) -> str:
    parts = ["## File Contents\n"]
    for rel_path, text in sections:
        fence = fence_for(text)
        body = text if text.endswith("\n") else text + "\n"
        parts.append(f"\n### {rel_path}\n\n{fence}{fence_tag(rel_path)}\n{body}{fence}\n")
    return "".join(parts)


def assemble(header: ReportHeader, buffers: ReportBuffers) -> str:
    """Header, tree, media (when any), then file contents."""
    blocks = [render_header(header), render_tree(buffers.tree_lines)]
    media_sections = buffers.media_sections
    if media_sections:
        blocks.append(render_media(media_sections))
    blocks.append(render_content(buffers.content_sections))
    return "\n".join(blocks)


def output_filename(header: ReportHeader, ext: str = REPORT_EXT) -> str:
    return f"{header.project_name}-{header.project_type.label}-{header.parent_name}.{ext}"


def default_output_dir() -> Path:
    return Path.cwd() / OUTPUT_DIR_NAME


def write_report(text: str, out_dir: Path, filename: str) -> Path:
    """Write ``text`` to ``out_dir/filename``, replacing any previous report."""
    try:
        out_dir = out_dir.resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output directory '{out_dir}': {e}")

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(f"Could not create directory '{out_dir}': {e}")

    out_path = out_dir / filename
    try:
        with out_path.open("w", encoding="utf-8", newline="\n") as out_fh:
            out_fh.write(text)
    except OSError as e:
        raise OutputError(f"Could not write '{out_path}': {e}")
    return out_path

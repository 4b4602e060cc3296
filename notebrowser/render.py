"""Plain-text/ANSI renderers for trees, search outcomes and tags."""

from __future__ import annotations

from pathlib import Path

from pygments.console import colorize

from .file_tree_model.index import DirectoryIndex
from .file_tree_model.mutations import MutationResult
from .search.controller import SearchOutcome, SearchStatus
from .search.content import SearchResult
from .tags.store import Tag


def _paint(color_key: str, text: str, color: bool) -> str:
    return colorize(color_key, text) if color else text


def highlight_preview(result: SearchResult, color: bool = True) -> str:
    """Preview line with every highlighted span painted."""
    text = result.preview_line
    if not color or not result.highlighted_spans:
        return text
    out: list[str] = []
    cursor = 0
    for start, end in result.highlighted_spans:
        if start < cursor:
            continue
        out.append(text[cursor:start])
        out.append(colorize("yellow", text[start:end]))
        cursor = end
    out.append(text[cursor:])
    return "".join(out)


def render_tree(index: DirectoryIndex, color: bool = True) -> str:
    """Indented listing of every materialized node; ``▸`` marks unloaded folders."""
    lines: list[str] = []
    for depth, node in index.walk_loaded():
        indent = "  " * depth
        if node.is_directory:
            marker = "▾" if node.is_loaded else "▸"
            lines.append(f"{indent}{marker} {_paint('blue', node.name + '/', color)}")
        else:
            lines.append(f"{indent}  {node.name}")
    return "\n".join(lines) + ("\n" if lines else "")


def _display_path(path: Path, root: Path | None) -> str:
    if root is not None:
        try:
            return str(path.relative_to(root))
        except ValueError:
            pass
    return str(path)


def render_search_outcome(outcome: SearchOutcome, color: bool = True) -> str:
    if outcome.status is SearchStatus.IDLE:
        return "Enter a search term to find matches across all files\n"
    if outcome.status is not SearchStatus.RESULTS:
        return f"{outcome.message}\n"

    count = outcome.file_count
    lines = [f"{count} {'file' if count == 1 else 'files'} found"]
    for result in outcome.results:
        matches = "match" if result.match_count == 1 else "matches"
        label = _display_path(result.path, outcome.root)
        lines.append(f"{_paint('bold', label, color)}  ({result.match_count} {matches})")
        if result.preview_line:
            lines.append(f"    {highlight_preview(result, color)}")
    return "\n".join(lines) + "\n"


def render_tags(tags: list[Tag], color: bool = True) -> str:
    if not tags:
        return "No tags defined\n"
    width = max(len(tag.id) for tag in tags)
    lines = [f"{tag.id.ljust(width)}  {tag.color}  {_paint('bold', tag.name, color)}" for tag in tags]
    return "\n".join(lines) + "\n"


def render_tag_chips(tags: list[Tag], max_display: int = 3) -> str:
    """Compact ``[a] [b] +2`` indicator for an item's tags."""
    if not tags:
        return ""
    shown = " ".join(f"[{tag.name}]" for tag in tags[:max_display])
    hidden = len(tags) - max_display
    return f"{shown} +{hidden}" if hidden > 0 else shown


def render_mutation(result: MutationResult) -> str:
    if result.success:
        return f"{result.operation}: {result.path}\n"
    return f"{result.message}\n"

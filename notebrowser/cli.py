"""Command-line front door for notebrowser.

Parses CLI options, resolves the workspace root, and dispatches one command
against a ``WorkspaceSession``. Failures surface as ``SystemExit`` messages
naming the failed operation.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import config
from .errors import ErrorKind, TagStoreError, WorkspaceError
from .render import render_mutation, render_search_outcome, render_tag_chips, render_tags, render_tree
from .search.content import SearchQuery
from .search.controller import SearchStatus
from .session import WorkspaceSession
from .tags.store import DEFAULT_COLOR


def confirm(message: str) -> bool:
    """Ask a yes/no question on stdin; anything but ``y``/``yes`` declines."""
    try:
        answer = input(f"{message} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _resolve(raw: str | Path) -> Path:
    return Path(raw).expanduser().resolve()


def _workspace_root(args: argparse.Namespace) -> Path:
    if getattr(args, "root", None):
        return _resolve(args.root)
    last = config.load_last_workspace()
    if last is not None and last.is_dir():
        return last
    return Path.cwd().resolve()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notebrowser",
        description="Browse, search and tag a folder of notes.",
    )
    parser.add_argument("--root", default=None, help="Workspace folder. Defaults to the last one opened.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    tree = commands.add_parser("tree", help="Print the workspace tree.")
    tree.add_argument("path", nargs="?", default=None, help="Folder to open as the workspace.")
    tree.add_argument("--expand", action="append", default=[], metavar="PATH", help="Folder to expand (repeatable).")
    tree.add_argument("--all", action="store_true", help="Expand every folder.")
    tree.add_argument(
        "--hidden",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show dot-files and remember the choice.",
    )

    search = commands.add_parser("search", help="Search file contents under the workspace.")
    search.add_argument("query")
    search.add_argument("--case-sensitive", action=argparse.BooleanOptionalAction, default=None)
    search.add_argument("--whole-word", action=argparse.BooleanOptionalAction, default=None)
    search.add_argument("--ext", action="append", default=None, metavar="EXT", help="Only search files with EXT.")
    search.add_argument("--in", dest="scope", default=None, metavar="PATH", help="Search below PATH only.")
    search.add_argument("--save-defaults", action="store_true", help="Remember these options for later searches.")

    mkdir = commands.add_parser("mkdir", help="Create a folder.")
    mkdir.add_argument("parent")
    mkdir.add_argument("name")

    touch = commands.add_parser("touch", help="Create an empty file.")
    touch.add_argument("parent")
    touch.add_argument("name")
    touch.add_argument("--content", default="", help="Initial file content.")

    rm = commands.add_parser("rm", help="Delete a file or folder.")
    rm.add_argument("path")
    rm.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")

    rename = commands.add_parser("rename", help="Rename an item within its folder.")
    rename.add_argument("path")
    rename.add_argument("new_name")

    mv = commands.add_parser("mv", help="Move an item into another folder.")
    mv.add_argument("source")
    mv.add_argument("dest_dir")
    mv.add_argument("--overwrite", action="store_true", help="Replace a same-named item at the destination.")

    tags = commands.add_parser("tags", help="Manage tags.")
    tag_commands = tags.add_subparsers(dest="tag_command", required=True)
    tag_commands.add_parser("list", help="List tag definitions.")
    create = tag_commands.add_parser("create", help="Define a tag.")
    create.add_argument("name")
    create.add_argument("--color", default=DEFAULT_COLOR)
    update = tag_commands.add_parser("update", help="Rename or recolor a tag.")
    update.add_argument("tag_id")
    update.add_argument("name")
    update.add_argument("--color", default=None)
    delete = tag_commands.add_parser("delete", help="Delete a tag and its assignments.")
    delete.add_argument("tag_id")
    assign = tag_commands.add_parser("assign", help="Replace an item's tags.")
    assign.add_argument("path")
    assign.add_argument("tag_ids", nargs="*")
    toggle = tag_commands.add_parser("toggle", help="Add or remove one tag on an item.")
    toggle.add_argument("path")
    toggle.add_argument("tag_id")
    untag = tag_commands.add_parser("untag", help="Remove every tag from an item.")
    untag.add_argument("path")
    query = tag_commands.add_parser("query", help="List items carrying any of the tags.")
    query.add_argument("tag_ids", nargs="+")
    show = tag_commands.add_parser("show", help="Show an item's tags.")
    show.add_argument("path")
    return parser


async def _open(session: WorkspaceSession, root: Path) -> None:
    try:
        await session.open(root)
    except WorkspaceError as exc:
        raise SystemExit(f"Failed to open folder: {exc}") from exc
    config.save_last_workspace(root)


async def _expand_all(session: WorkspaceSession) -> None:
    pending = [session.require_root()]
    while pending:
        path = pending.pop()
        await session.expand(path)
        for child in session.index.children_of(path) or []:
            if child.is_directory:
                pending.append(child.path)


async def _cmd_tree(session: WorkspaceSession, args: argparse.Namespace, color: bool) -> str:
    if args.all:
        await _expand_all(session)
    for raw in args.expand:
        target = _resolve(raw)
        # Expand every ancestor first so the target node exists in the index.
        root = session.require_root()
        chain = [parent for parent in reversed(target.parents) if root in parent.parents] + [target]
        for path in chain:
            result = await session.expand(path)
            if not result.success:
                raise SystemExit(f"Failed to expand {path}: {result.error}")
    return render_tree(session.index, color)


async def _cmd_search(session: WorkspaceSession, args: argparse.Namespace, color: bool) -> str:
    case_default, word_default, ext_default = config.load_search_defaults()
    query = SearchQuery(
        text=args.query,
        case_sensitive=case_default if args.case_sensitive is None else args.case_sensitive,
        whole_word=word_default if args.whole_word is None else args.whole_word,
        extension_filter=frozenset(args.ext) if args.ext else ext_default,
    )
    if args.save_defaults:
        config.save_search_defaults(query.case_sensitive, query.whole_word, sorted(query.extension_filter))
    scope = _resolve(args.scope) if args.scope else None
    outcome = await session.search.run(query, scope)
    rendered = render_search_outcome(outcome, color)
    if outcome.status is SearchStatus.ERROR:
        raise SystemExit(rendered.rstrip("\n"))
    return rendered


async def _cmd_tags(session: WorkspaceSession, args: argparse.Namespace, color: bool) -> str:
    store = session.tags
    if store is None:
        raise SystemExit("Failed to open tags: No folder opened")
    try:
        if args.tag_command == "list":
            return render_tags(await store.list_tags(), color)
        if args.tag_command == "create":
            tag = await store.create_tag(args.name, args.color)
            return f"created tag {tag.id} ({tag.name})\n"
        if args.tag_command == "update":
            current = (await store.load()).find(args.tag_id)
            if current is None:
                raise SystemExit(f"Failed to update tag: unknown tag {args.tag_id}")
            tag = await store.update_tag(args.tag_id, args.name, args.color or current.color)
            return f"updated tag {args.tag_id} ({tag.name if tag else args.name})\n"
        if args.tag_command == "delete":
            if not await store.delete_tag(args.tag_id):
                raise SystemExit(f"Failed to delete tag: unknown tag {args.tag_id}")
            return f"deleted tag {args.tag_id}\n"
        if args.tag_command == "assign":
            item = _resolve(args.path)
            await store.set_assignment(item, args.tag_ids)
            chips = render_tag_chips(await store.tags_for_item(item))
            return (chips or "no tags") + "\n"
        if args.tag_command == "toggle":
            await store.toggle_assignment(_resolve(args.path), args.tag_id)
            chips = render_tag_chips(await store.tags_for_item(_resolve(args.path)))
            return (chips or "no tags") + "\n"
        if args.tag_command == "untag":
            removed = await store.remove_item(_resolve(args.path))
            return "removed all tags\n" if removed else "no tags\n"
        if args.tag_command == "query":
            matches = sorted(await store.query_by_tags(args.tag_ids))
            return "".join(f"{path}\n" for path in matches) or "No matching items\n"
        if args.tag_command == "show":
            assigned = await store.tags_for_item(_resolve(args.path))
            chips = render_tag_chips(assigned, max_display=max(1, len(assigned)))
            return (chips or "no tags") + "\n"
    except (ValueError, TagStoreError) as exc:
        raise SystemExit(f"Failed to {args.tag_command} tag: {exc}") from exc
    raise SystemExit(f"unknown tags command: {args.tag_command}")


async def run_command(args: argparse.Namespace) -> str:
    """Execute parsed ``args`` and return the text to print."""
    color = not args.no_color and sys.stdout.isatty()
    root = _resolve(args.path) if args.command == "tree" and args.path else _workspace_root(args)
    if args.command == "tree" and args.hidden is not None:
        config.save_show_hidden(args.hidden)
    session = WorkspaceSession(
        show_hidden=config.load_show_hidden(),
        settle_delay=config.load_settle_delay_seconds(),
    )
    await _open(session, root)
    try:
        if args.command == "tree":
            return await _cmd_tree(session, args, color)
        if args.command == "search":
            return await _cmd_search(session, args, color)
        if args.command == "tags":
            return await _cmd_tags(session, args, color)

        if args.command == "mkdir":
            result = await session.create_folder(_resolve(args.parent), args.name)
        elif args.command == "touch":
            result = await session.create_file(_resolve(args.parent), args.name, args.content)
        elif args.command == "rm":
            target = _resolve(args.path)
            if not args.yes and not confirm(f"Are you sure you want to delete {target}?"):
                raise SystemExit(f"{ErrorKind.CANCELLED.value}: delete of {target} was not confirmed")
            result = await session.delete_item(target)
        elif args.command == "rename":
            result = await session.rename_to(_resolve(args.path), args.new_name)
        elif args.command == "mv":
            result = await session.move(_resolve(args.source), _resolve(args.dest_dir), overwrite=args.overwrite)
        else:
            raise SystemExit(f"unknown command: {args.command}")
        if result.success and result.path is not None and session.root_path == result.path:
            config.save_last_workspace(result.path)
    except TagStoreError as exc:
        raise SystemExit(f"Failed to update tags: {exc}") from exc
    finally:
        session.dispose()

    if not result.success:
        raise SystemExit(render_mutation(result).rstrip("\n"))
    return render_mutation(result)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run one notebrowser command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output = asyncio.run(run_command(args))
    sys.stdout.write(output)


if __name__ == "__main__":
    main()

import argparse
import sys
from typing import Optional, List

from linemarks.core.storage import ConfigManager, JsonEntryRepository, StorageError
from linemarks.core.utils import setup_logging
from linemarks.services.controller import BookmarksController
from linemarks.services.documents import FileDocument, FileRename


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linemarks",
        description="Line bookmarks for text files, organized in nested groups",
    )
    parser.add_argument("--store", help="Bookmark JSON file (overrides config.ini)")
    parser.add_argument("--config", default="config.ini", help="Path to config.ini")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show bookmarks and groups as a tree")

    add = sub.add_parser("add", help="Bookmark a line of a file")
    add.add_argument("label")
    add.add_argument("file")
    add.add_argument("line", type=int, help="1-based line number")
    add.add_argument("--group", help="Group to put the bookmark in")

    add_group = sub.add_parser("add-group", help="Create a group")
    add_group.add_argument("label")
    add_group.add_argument("--group", help="Parent group")

    rename = sub.add_parser("rename", help="Change the label of a bookmark or group")
    rename.add_argument("label")
    rename.add_argument("new_label")

    delete = sub.add_parser("delete", help="Delete a bookmark or group (all entries when omitted)")
    delete.add_argument("label", nargs="?")

    move = sub.add_parser("move", help="Move entries before a target or into a group")
    move.add_argument("labels", nargs="+")
    move.add_argument("--onto", help="Target entry; omit to move to the top level")

    expand = sub.add_parser("expand", help="Mark a group as expanded")
    expand.add_argument("label")
    collapse = sub.add_parser("collapse", help="Mark a group as collapsed")
    collapse.add_argument("label")

    jump = sub.add_parser("jump", help="Print file:line of a bookmark")
    jump.add_argument("label")

    renamed = sub.add_parser("file-renamed", help="Follow a file or directory rename")
    renamed.add_argument("old_path")
    renamed.add_argument("new_path")

    deleted = sub.add_parser("file-deleted", help="Drop bookmarks of deleted files")
    deleted.add_argument("paths", nargs="+")

    return parser


def print_tree(controller: BookmarksController, parent: Optional[str] = None, depth: int = 0) -> None:
    for entry in controller.children_of(parent):
        indent = "  " * depth
        if entry.is_group:
            marker = "-" if entry.is_expanded else "+"
            print(f"{indent}{marker} {entry.label}/")
            print_tree(controller, entry.label, depth + 1)
        else:
            print(f"{indent}  {entry.describe()}  {entry.text}")


def run_command(controller: BookmarksController, args) -> bool:
    if args.command == "list":
        print_tree(controller)
        return True
    if args.command == "add":
        document = FileDocument(args.file)
        return controller.add_bookmark(args.label, args.file, args.line - 1, document=document,
                                       group=args.group) is not None
    if args.command == "add-group":
        return controller.add_group(args.label, group=args.group) is not None
    if args.command == "rename":
        return controller.rename_label(args.label, args.new_label)
    if args.command == "delete":
        return controller.remove(args.label)
    if args.command == "move":
        return controller.handle_drop(args.labels, args.onto)
    if args.command in ("expand", "collapse"):
        return controller.set_expanded(args.label, args.command == "expand")
    if args.command == "jump":
        bookmark = controller.store.by_label(args.label)
        if bookmark is None or bookmark.is_group:
            return False
        print(f"{bookmark.file_path}:{bookmark.line_number + 1}")
        return True
    if args.command == "file-renamed":
        controller.on_files_renamed([FileRename(args.old_path, args.new_path)])
        return True
    if args.command == "file-deleted":
        controller.on_files_deleted(args.paths)
        return True
    return False


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config)
    log_settings = config_manager.get_logging_settings()
    logger = setup_logging(log_settings['file'], log_settings['level'],
                           log_settings['max_bytes'], log_settings['backup_count'])

    store_path = args.store or config_manager.get_store_path()
    controller = BookmarksController(JsonEntryRepository(store_path), logger=logger)
    try:
        controller.load()
        ok = run_command(controller, args)
    except StorageError as e:
        logger.error("Storage failure: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2

    if not ok:
        print(f"error: '{args.command}' was rejected", file=sys.stderr)
        return 1
    return 0

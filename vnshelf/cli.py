"""
vnshelf command line.

Usage: python -m vnshelf [--debug] [--db PATH] <command> ...

Commands:
    dirs list|add DIR|remove DIR   manage library directories
    sync                           rescan the library directories
    list                           list catalogued games
    show PATH                      show one game
    rename PATH TITLE | --reset    set or clear a custom title
    random [--remote]              pick a random local (or VNDB) game
    characters PATH                list a game's characters
    wipe --yes                     delete the whole catalog
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from vnshelf import __version__
from vnshelf.controllers.library_controller import LibraryController
from vnshelf.exceptions import NoRandomEntryFoundError, VnshelfError
from vnshelf.metadata.vndb import VndbClient
from vnshelf.models.catalog import CatalogEntry
from vnshelf.registry.catalog_store import CatalogStore
from vnshelf.services.artwork_service import ArtworkService
from vnshelf.services.metadata_service import MetadataService
from vnshelf.utils.logging_setup import setup_logging
from vnshelf.utils.markup import vndb_to_markdown

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vnshelf", description="Local visual novel library catalog")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--db", metavar="PATH", help="Catalog database file (default: data dir)")
    parser.add_argument("--no-log-file", action="store_true", help="Only log to stderr")

    commands = parser.add_subparsers(dest="command", required=True)

    dirs = commands.add_parser("dirs", help="Manage library directories")
    dirs_actions = dirs.add_subparsers(dest="action", required=True)
    dirs_actions.add_parser("list", help="Show library directories")
    dirs_add = dirs_actions.add_parser("add", help="Add a library directory and rescan")
    dirs_add.add_argument("directory")
    dirs_remove = dirs_actions.add_parser("remove", help="Remove a library directory and rescan")
    dirs_remove.add_argument("directory")

    commands.add_parser("sync", help="Rescan the library directories")
    commands.add_parser("list", help="List catalogued games")

    show = commands.add_parser("show", help="Show one game")
    show.add_argument("path")

    rename = commands.add_parser("rename", help="Set or clear a custom title")
    rename.add_argument("path")
    rename.add_argument("title", nargs="?")
    rename.add_argument("--reset", action="store_true", help="Go back to the VNDB/folder title")

    refresh = commands.add_parser("refresh", help="Fetch VNDB metadata again for one game")
    refresh.add_argument("path")

    rand = commands.add_parser("random", help="Pick a random game")
    rand.add_argument("--remote", action="store_true", help="Pick from all of VNDB instead")

    characters = commands.add_parser("characters", help="List a game's characters")
    characters.add_argument("path")

    wipe = commands.add_parser("wipe", help="Delete the whole catalog")
    wipe.add_argument("--yes", action="store_true", help="Confirm deletion")

    return parser


def format_entry(entry: CatalogEntry) -> str:
    platforms = [name for name, flag in (
        ("mac", entry.installation.supports_mac),
        ("linux", entry.installation.supports_unix),
        ("windows", entry.installation.supports_win),
    ) if flag]
    version = entry.installation.version or "-"
    return f"{entry.display_title}  [{version}]  ({', '.join(platforms) or 'no launcher'})  {entry.path}"


def format_details(entry: CatalogEntry) -> str:
    lines = [format_entry(entry)]
    launch = entry.launch_path()
    if launch:
        lines.append(f"Launch: {launch}")
    remote = entry.remote
    if remote is None:
        lines.append("No VNDB metadata.")
        return "\n".join(lines)

    lines.append(f"VNDB: {remote.vndb_id} ({remote.dev_status.name.replace('_', ' ').lower()})")
    if remote.rating is not None:
        lines.append(f"Rating: {remote.rating:.2f} / 5")
    if remote.developers:
        lines.append("Developers: " + ", ".join(dev.name for dev in remote.developers))
    if remote.tags:
        lines.append("Tags: " + ", ".join(tag.name for tag in remote.tags))
    if remote.description:
        lines.append("")
        lines.append(vndb_to_markdown(remote.description))
    return "\n".join(lines)


async def run_command(args: argparse.Namespace, library: LibraryController) -> int:
    if args.command == "dirs":
        if args.action == "add":
            await library.add_library_directory(args.directory)
        elif args.action == "remove":
            await library.remove_library_directory(args.directory)
        for directory in library.library_directories:
            print(directory)
        return 0

    if args.command == "wipe":
        if not args.yes:
            print("Refusing to wipe without --yes", file=sys.stderr)
            return 2
        library.wipe()
        print("Catalog wiped.")
        return 0

    if args.command == "sync":
        result = await library.resync()
        print(f"{len(result.inserted)} added, {len(result.updated)} updated, "
              f"{len(result.deleted)} removed, {len(result.unchanged)} unchanged")
        for path in result.failed_deletes:
            print(f"Could not remove {path}", file=sys.stderr)
        for path in result.unreadable:
            print(f"Could not read {path}, kept in the catalog", file=sys.stderr)
        return 0

    if args.command == "random" and args.remote:
        try:
            remote = await library.random_remote_entry()
        except NoRandomEntryFoundError as e:
            print(str(e), file=sys.stderr)
            return 1
        print(f"{remote.title} ({remote.vndb_id})")
        return 0

    await library.load_games()

    if args.command == "list":
        for entry in sorted(library.games, key=lambda e: e.display_title.lower()):
            print(format_entry(entry))
        return 0

    if args.command == "random":
        entry = library.random_game()
        if entry is None:
            print("The library is empty.", file=sys.stderr)
            return 1
        print(format_entry(entry))
        return 0

    if args.command == "characters":
        for character in await library.get_characters(args.path):
            print(f"{character.first_name} {character.last_name}".strip())
        return 0

    if args.command == "refresh":
        entry = await library.refresh_metadata(args.path)
        if entry is None:
            print(f"No metadata found for {args.path}", file=sys.stderr)
            return 1
        print(format_details(entry))
        return 0

    entry = library.select(args.path)
    if entry is None:
        print(f"No game at {args.path}", file=sys.stderr)
        return 1

    if args.command == "show":
        print(format_details(entry))
        return 0

    if args.command == "rename":
        if args.reset:
            entry = library.update_selected_game(reset=["title"])
        elif args.title:
            entry = library.update_selected_game(title=args.title)
        else:
            print("Give a title or --reset", file=sys.stderr)
            return 2
        print(format_entry(entry))
        return 0

    return 2


async def _main(args: argparse.Namespace) -> int:
    with CatalogStore.open(args.db) as store:
        async with VndbClient() as client:
            metadata_service = MetadataService(client, ArtworkService(client))
            library = LibraryController(store, metadata_service)
            return await run_command(args, library)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log_file = setup_logging(debug=args.debug, log_to_file=not args.no_log_file)
    if log_file:
        logger.debug(f"Logging to {log_file}")

    try:
        return asyncio.run(_main(args))
    except VnshelfError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())

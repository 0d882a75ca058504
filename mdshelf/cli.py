"""The command line: creating a new book and cleaning its build output."""

from __future__ import annotations

import argparse
import logging
import subprocess
import sys
import tomllib
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from mdshelf.clean import clean_directory
from mdshelf.init import BookBuilder
from mdshelf.loader import BookLoadError
from mdshelf.ordering import config_get

__all__ = ["build_parser", "get_author_name", "main"]

log = logging.getLogger(__name__)

_DEFAULT_BUILD_DIR = "book"


def _add_dest_dir(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-d",
        "--dest-dir",
        dest="dest_dir",
        metavar="dest-dir",
        type=Path,
        help=(
            "Output directory for the book. Relative paths are interpreted relative "
            "to the book's root directory. If omitted, build.build-dir from "
            "book.toml is used, or ./book by default."
        ),
    )


def _add_root_dir(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument("dir", nargs="?", type=Path, help=help_text)


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the ``init`` and ``clean`` commands."""
    parser = argparse.ArgumentParser(
        prog="mdshelf", description="Creates and manages books written in Markdown"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser(
        "init", help="Creates the boilerplate structure and files for a new book"
    )
    _add_root_dir(
        init,
        "Directory to create the book in (defaults to the current directory when omitted)",
    )
    init.add_argument("--force", action="store_true", help="Skips confirmation prompts")
    init.add_argument("--title", help="Sets the book title")
    init.add_argument(
        "--ignore",
        choices=["none", "git"],
        help="Creates a VCS ignore file (i.e. .gitignore)",
    )

    clean = commands.add_parser("clean", help="Deletes a built book")
    _add_dest_dir(clean)
    _add_root_dir(
        clean,
        "Root directory for the book (defaults to the current directory when omitted)",
    )
    return parser


def get_author_name() -> str | None:
    """The user name from the git configuration, if git has one."""
    try:
        result = subprocess.run(
            ["git", "config", "--get", "user.name"],
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError:
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def _book_dir(args: argparse.Namespace) -> Path:
    if args.dir is None:
        return Path.cwd()
    return args.dir if args.dir.is_absolute() else Path.cwd() / args.dir


def _confirm() -> bool:
    sys.stdout.flush()
    return sys.stdin.readline().strip() in {"Y", "y", "yes", "Yes"}


def _request_book_title() -> str | None:
    print("What title would you like to give the book? ")
    sys.stdout.flush()
    answer = sys.stdin.readline().strip()
    return answer or None


def _execute_init(args: argparse.Namespace) -> None:
    book_dir = _book_dir(args)

    if args.ignore is not None:
        create_gitignore = args.ignore == "git"
    elif not args.force:
        print("\nDo you want a .gitignore to be created? (y/n)")
        create_gitignore = _confirm()
    else:
        create_gitignore = False

    if args.title is not None:
        title = args.title
    elif args.force:
        title = None
    else:
        title = _request_book_title()

    book: dict[str, Any] = {"authors": [], "language": "en", "src": "src"}
    if title is not None:
        book["title"] = title
    author = get_author_name()
    if author is not None:
        log.debug("Obtained user name from gitconfig: %r", author)
        book["authors"].append(author)

    BookBuilder(book_dir, {"book": book}, create_gitignore).build()
    print("\nAll done, no errors...")


def _load_config(book_dir: Path) -> dict[str, Any]:
    location = book_dir / "book.toml"
    if not location.exists():
        return {}
    with location.open("rb") as handle:
        return tomllib.load(handle)


def _execute_clean(args: argparse.Namespace) -> None:
    book_dir = _book_dir(args)
    if args.dest_dir is not None:
        target = args.dest_dir
    else:
        configured = config_get(_load_config(book_dir), "build.build-dir")
        target = book_dir / (configured if isinstance(configured, str) else _DEFAULT_BUILD_DIR)
    try:
        report = clean_directory(target)
    except OSError as err:
        err.add_note("Unable to remove the build directory")
        raise
    print(report)


def main(argv: Sequence[str] | None = None) -> int:
    """Run a command; returns the process exit status."""
    args = build_parser().parse_args(argv)
    handlers = {"init": _execute_init, "clean": _execute_clean}
    try:
        handlers[args.command](args)
    except (OSError, BookLoadError, RuntimeError, tomllib.TOMLDecodeError) as err:
        print(f"Error: {err}", file=sys.stderr)
        for note in getattr(err, "__notes__", ()):
            print(f"\tCaused by: {note}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
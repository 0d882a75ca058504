"""Setting up a new book: its directories, stub chapters and ``book.toml``."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import tomli_w

from mdshelf.book import Book
from mdshelf.loader import BookLoadError, load_book
from mdshelf.ordering import config_get

__all__ = ["BookBuilder"]

log = logging.getLogger(__name__)

_DEFAULT_SRC = "src"
_DEFAULT_BUILD_DIR = "book"


def _default_config() -> dict[str, Any]:
    return {"book": {"authors": [], "language": "en", "src": _DEFAULT_SRC}}


def _without_none(value: Any) -> Any:
    """Drop ``None`` values, which TOML cannot represent."""
    if isinstance(value, Mapping):
        return {
            key: _without_none(item) for key, item in value.items() if item is not None
        }
    if isinstance(value, list):
        return [_without_none(item) for item in value if item is not None]
    return value


@contextmanager
def _context(message: str) -> Iterator[None]:
    try:
        yield
    except OSError as err:
        err.add_note(message)
        raise


class BookBuilder:
    """Creates the layout of a new book in ``root`` and loads the result."""

    def __init__(
        self,
        root: str | Path,
        config: Mapping[str, Any] | None = None,
        create_gitignore: bool = False,
    ) -> None:
        self.root = Path(root)
        self.config: dict[str, Any] = (
            copy.deepcopy(dict(config)) if config is not None else _default_config()
        )
        self.create_gitignore = create_gitignore

    @property
    def src_dir(self) -> Path:
        """The directory holding the book's Markdown sources."""
        src = config_get(self.config, "book.src")
        return self.root / (src if isinstance(src, str) else _DEFAULT_SRC)

    @property
    def build_dir_name(self) -> str:
        """The configured build directory, relative to the root."""
        build_dir = config_get(self.config, "build.build-dir")
        return build_dir if isinstance(build_dir, str) else _DEFAULT_BUILD_DIR

    def build(self) -> Book:
        """Create directories, stub files, ``.gitignore`` and ``book.toml``, then load the book."""
        log.info("Creating a new book with stub content")

        with _context("Unable to create directory structure"):
            self._create_directory_structure()
        with _context("Unable to create stub files"):
            self._create_stub_files()
        if self.create_gitignore:
            with _context("Unable to create .gitignore"):
                self._build_gitignore()
        with _context("Unable to write config to book.toml"):
            self._write_book_toml()

        create_missing = config_get(self.config, "build.create-missing")
        try:
            return load_book(
                self.src_dir,
                create_missing if isinstance(create_missing, bool) else True,
            )
        except BookLoadError as err:
            log.error("%s", err)
            raise RuntimeError(
                "The BookBuilder should always create a valid book. "
                "If you are seeing this it is a bug and should be reported."
            ) from err

    def _create_directory_structure(self) -> None:
        log.debug("Creating directory tree")
        self.root.mkdir(parents=True, exist_ok=True)
        self.src_dir.mkdir(parents=True, exist_ok=True)
        (self.root / self.build_dir_name).mkdir(parents=True, exist_ok=True)

    def _create_stub_files(self) -> None:
        log.debug("Creating example book contents")
        summary = self.src_dir / "SUMMARY.md"
        if summary.exists():
            log.debug("Existing summary found, no need to create stub files.")
            return
        summary.write_text(
            "# Summary\n\n- [Chapter 1](./chapter_1.md)\n", encoding="utf-8", newline="\n"
        )
        (self.src_dir / "chapter_1.md").write_text(
            "# Chapter 1\n", encoding="utf-8", newline="\n"
        )

    def _build_gitignore(self) -> None:
        log.debug("Creating .gitignore")
        (self.root / ".gitignore").write_text(
            f"{self.build_dir_name}\n", encoding="utf-8", newline="\n"
        )

    def _write_book_toml(self) -> None:
        log.debug("Writing book.toml")
        text = tomli_w.dumps(_without_none(self.config))
        (self.root / "book.toml").write_bytes(text.encode("utf-8"))
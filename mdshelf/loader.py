"""Loading a book from its source directory on disk."""

from __future__ import annotations

import logging
from pathlib import Path

from mdshelf.book import Book, BookItem, Chapter
from mdshelf.items import Link, PartTitle, SectionNumber, Separator, Summary, SummaryItem
from mdshelf.summary import SummaryParseError, parse_summary

__all__ = [
    "BookLoadError",
    "create_missing_chapters",
    "load_book",
    "load_book_from_disk",
    "load_chapter",
    "load_summary_item",
]

log = logging.getLogger(__name__)

_UTF8_BOM = b"\xef\xbb\xbf"


class BookLoadError(Exception):
    """Raised when a book cannot be read from disk."""


def _escape_brackets(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def load_book(src_dir: str | Path, create_missing: bool = False) -> Book:
    """Load a book from its ``src`` directory, guided by its ``SUMMARY.md``."""
    src_dir = Path(src_dir)
    summary_md = src_dir / "SUMMARY.md"
    try:
        summary_text = summary_md.read_text(encoding="utf-8")
    except OSError as err:
        raise BookLoadError(
            f"Couldn't open SUMMARY.md in {str(src_dir)!r} directory: {err}"
        ) from err
    except UnicodeDecodeError as err:
        raise BookLoadError(f"Unable to read {summary_md}: {err}") from err

    try:
        summary = parse_summary(summary_text)
    except SummaryParseError as err:
        raise BookLoadError(
            f"Summary parsing failed for file={str(summary_md)!r}: {err}"
        ) from err

    if create_missing:
        try:
            create_missing_chapters(src_dir, summary)
        except OSError as err:
            raise BookLoadError(f"Unable to create missing chapters: {err}") from err

    return load_book_from_disk(summary, src_dir)


def create_missing_chapters(src_dir: str | Path, summary: Summary) -> None:
    """Create a stub file for every linked chapter that does not exist yet."""
    src_dir = Path(src_dir)
    pending: list[SummaryItem] = list(summary.all_items())
    while pending:
        item = pending.pop()
        if not isinstance(item, Link):
            continue
        if item.location is not None:
            filename = src_dir / item.location
            if not filename.exists():
                filename.parent.mkdir(parents=True, exist_ok=True)
                log.debug("Creating missing file %s", filename)
                filename.write_text(
                    f"# {_escape_brackets(item.name)}\n", encoding="utf-8", newline="\n"
                )
        pending.extend(item.nested_items)


def load_book_from_disk(summary: Summary, src_dir: str | Path) -> Book:
    """Load every chapter named by ``summary``, relative to ``src_dir``."""
    log.debug("Loading the book from disk")
    return Book(
        sections=[load_summary_item(item, src_dir, []) for item in summary.all_items()]
    )


def load_summary_item(
    item: SummaryItem, src_dir: str | Path, parent_names: list[str]
) -> BookItem:
    """Turn one summary entry into a book item, loading chapters from disk."""
    if isinstance(item, Separator):
        return Separator()
    if isinstance(item, PartTitle):
        return PartTitle(item.title)
    return load_chapter(item, src_dir, parent_names)


def _read_chapter(link: Link, location: Path) -> str:
    try:
        with location.open("rb") as handle:
            raw = handle.read()
    except OSError as err:
        raise BookLoadError(f"Chapter file not found, {link.location}: {err}") from err
    if raw.startswith(_UTF8_BOM):
        raw = raw[len(_UTF8_BOM):]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as err:
        raise BookLoadError(f'Unable to read "{link.name}" ({location}): {err}') from err


def load_chapter(link: Link, src_dir: str | Path, parent_names: list[str]) -> Chapter:
    """Load the chapter a link points to, together with its nested chapters."""
    src_dir = Path(src_dir)

    if link.location is not None:
        log.debug("Loading %s (%s)", link.name, link.location)
        location = link.location if link.location.is_absolute() else src_dir / link.location
        content = _read_chapter(link, location)
        try:
            stripped = location.relative_to(src_dir)
        except ValueError as err:
            raise BookLoadError(
                f"Chapter {location} is not inside the book source {src_dir}"
            ) from err
        chapter = Chapter(
            name=link.name,
            content=content,
            path=stripped,
            source_path=stripped,
            parent_names=list(parent_names),
        )
    else:
        chapter = Chapter.draft(link.name, list(parent_names))

    if link.number is not None:
        chapter.number = SectionNumber(list(link.number.parts))

    sub_parents = [*parent_names, link.name]
    chapter.sub_items = [
        load_summary_item(item, src_dir, sub_parents) for item in link.nested_items
    ]
    return chapter
"""The in-memory tree of a book: chapters, separators and part titles."""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Callable, Iterator, Mapping, MutableSequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mdshelf.items import PartTitle, SectionNumber, Separator

__all__ = [
    "Book",
    "BookItem",
    "Chapter",
    "book_from_json",
    "book_to_json",
    "for_each_mut",
]


@dataclass
class Chapter:
    """A chapter, usually backed by one Markdown file, possibly with sub-chapters.

    ``path`` is the location relative to ``SUMMARY.md`` and may be rewritten by
    preprocessors; ``source_path`` always names the real file. Both are
    ``None`` for a draft chapter.
    """

    name: str = ""
    content: str = ""
    number: SectionNumber | None = None
    sub_items: list[BookItem] = field(default_factory=list)
    path: Path | None = None
    source_path: Path | None = None
    parent_names: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.path is not None and not isinstance(self.path, Path):
            self.path = Path(self.path)
        if self.source_path is not None and not isinstance(self.source_path, Path):
            self.source_path = Path(self.source_path)

    @classmethod
    def draft(cls, name: str, parent_names: list[str] | None = None) -> Chapter:
        """Create a draft chapter that has no source file and no content."""
        return cls(name=name, parent_names=list(parent_names or []))

    def is_draft(self) -> bool:
        """Whether the chapter has no source file."""
        return self.path is None

    def __str__(self) -> str:
        if self.number is not None:
            return f"{self.number} {self.name}"
        return self.name


BookItem = Chapter | Separator | PartTitle


def _depth_first(items: list[BookItem]) -> Iterator[BookItem]:
    pending: deque[BookItem] = deque(items)
    while pending:
        item = pending.popleft()
        if isinstance(item, Chapter):
            pending.extendleft(reversed(item.sub_items))
        yield item


def for_each_mut(
    func: Callable[[BookItem], BookItem | None],
    items: MutableSequence[BookItem],
) -> None:
    """Apply ``func`` to every item, visiting a chapter's children before it.

    ``func`` may change an item in place; if it returns an item, that item
    replaces the one visited.
    """
    for index, item in enumerate(items):
        if isinstance(item, Chapter):
            for_each_mut(func, item.sub_items)
        replacement = func(item)
        if replacement is not None:
            items[index] = replacement


@dataclass
class Book:
    """A book: an ordered list of top-level items."""

    sections: list[BookItem] = field(default_factory=list)

    def __iter__(self) -> Iterator[BookItem]:
        """Iterate depth-first over every item in the book."""
        return _depth_first(self.sections)

    def for_each_mut(self, func: Callable[[BookItem], BookItem | None]) -> None:
        """Apply ``func`` to every item in the book; see :func:`for_each_mut`."""
        for_each_mut(func, self.sections)

    def push_item(self, item: BookItem) -> Book:
        """Append an item to the top level of the book."""
        self.sections.append(item)
        return self


def _path_to_json(path: Path | None) -> str | None:
    return None if path is None else str(path)


def _path_from_json(value: Any) -> Path | None:
    return None if value is None else Path(value)


def _chapter_to_json(chapter: Chapter) -> dict[str, Any]:
    return {
        "name": chapter.name,
        "content": chapter.content,
        "number": None if chapter.number is None else list(chapter.number.parts),
        "sub_items": [_item_to_json(item) for item in chapter.sub_items],
        "path": _path_to_json(chapter.path),
        "source_path": _path_to_json(chapter.source_path),
        "parent_names": list(chapter.parent_names),
    }


def _item_to_json(item: BookItem) -> Any:
    if isinstance(item, Chapter):
        return {"Chapter": _chapter_to_json(item)}
    if isinstance(item, Separator):
        return "Separator"
    if isinstance(item, PartTitle):
        return {"PartTitle": item.title}
    raise TypeError(f"not a book item: {item!r}")


def _chapter_from_json(data: Mapping[str, Any]) -> Chapter:
    number = data.get("number")
    return Chapter(
        name=data["name"],
        content=data["content"],
        number=None if number is None else SectionNumber([int(n) for n in number]),
        sub_items=[_item_from_json(item) for item in data.get("sub_items", [])],
        path=_path_from_json(data.get("path")),
        source_path=_path_from_json(data.get("source_path")),
        parent_names=list(data.get("parent_names", [])),
    )


def _item_from_json(data: Any) -> BookItem:
    if data == "Separator":
        return Separator()
    if isinstance(data, Mapping) and len(data) == 1:
        (kind, value), = data.items()
        if kind == "Chapter" and isinstance(value, Mapping):
            return _chapter_from_json(value)
        if kind == "PartTitle" and isinstance(value, str):
            return PartTitle(value)
    raise ValueError(f"unknown book item: {data!r}")


def book_to_json(book: Book) -> dict[str, Any]:
    """Turn a book into JSON-compatible data."""
    return {
        "sections": [_item_to_json(item) for item in book.sections],
        "__non_exhaustive": None,
    }


def book_from_json(data: Mapping[str, Any] | str | bytes) -> Book:
    """Build a book from JSON data, or from JSON text."""
    if isinstance(data, (str, bytes)):
        data = json.loads(data)
    if not isinstance(data, Mapping):
        raise ValueError("a book must be a JSON object")
    try:
        sections = data["sections"]
        return Book(sections=[_item_from_json(item) for item in sections])
    except (KeyError, TypeError) as err:
        raise ValueError(f"malformed book: {err}") from err
"""The building blocks of a parsed ``SUMMARY.md``: links, separators and part titles."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from itertools import chain
from pathlib import Path


@dataclass
class SectionNumber:
    """A section number such as ``1.2.3``, held as a list of integers."""

    parts: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.parts = list(self.parts)

    def __str__(self) -> str:
        if not self.parts:
            return "0"
        return "".join(f"{part}." for part in self.parts)

    def __iter__(self) -> Iterator[int]:
        return iter(self.parts)

    def __len__(self) -> int:
        return len(self.parts)

    def __getitem__(self, index: int) -> int:
        return self.parts[index]


@dataclass
class Link:
    """An entry in ``SUMMARY.md`` such as ``[Some section](./path/to/file.md)``.

    A ``location`` of ``None`` marks a draft chapter with no source file.
    """

    name: str = ""
    location: Path | None = field(default_factory=Path)
    number: SectionNumber | None = None
    nested_items: list[SummaryItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.location is not None and not isinstance(self.location, Path):
            self.location = Path(self.location)


@dataclass(frozen=True)
class Separator:
    """A horizontal rule (``---``) between items."""


@dataclass(frozen=True)
class PartTitle:
    """The title of a part of the numbered chapters."""

    title: str


SummaryItem = Link | Separator | PartTitle


@dataclass
class Summary:
    """The parsed ``SUMMARY.md``, describing how the book is laid out."""

    title: str | None = None
    prefix_chapters: list[SummaryItem] = field(default_factory=list)
    numbered_chapters: list[SummaryItem] = field(default_factory=list)
    suffix_chapters: list[SummaryItem] = field(default_factory=list)

    def all_items(self) -> Iterator[SummaryItem]:
        """Yield the top-level items: prefix, then numbered, then suffix chapters."""
        sections: Iterable[list[SummaryItem]] = (
            self.prefix_chapters,
            self.numbered_chapters,
            self.suffix_chapters,
        )
        return chain.from_iterable(sections)
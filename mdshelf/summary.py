"""Parser for ``SUMMARY.md``, the file that lays out the chapters of a book.

The summary has a title, some unnumbered prefix chapters, one or more parts
of numbered (and possibly nested) chapters, and unnumbered suffix chapters::

    summary           ::= title prefix_chapters numbered_chapters suffix_chapters
    title             ::= "# " TEXT | EPSILON
    prefix_chapters   ::= item*
    suffix_chapters   ::= item*
    numbered_chapters ::= part+
    part              ::= title dotted_item+
    dotted_item       ::= INDENT* DOT_POINT item
    item              ::= link | separator
    separator         ::= "---"
    link              ::= "[" TEXT "]" "(" TEXT ")"
    DOT_POINT         ::= "-" | "*"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from markdown_it import MarkdownIt
from markdown_it.token import Token

from mdshelf.items import Link, PartTitle, SectionNumber, Separator, Summary, SummaryItem

__all__ = ["SummaryParseError", "SummaryParser", "parse_summary"]

log = logging.getLogger(__name__)


class SummaryParseError(Exception):
    """Raised when ``SUMMARY.md`` does not follow the expected layout."""


def _keep_url(url: str) -> str:
    return url


_MARKDOWN = MarkdownIt("commonmark")
# Link destinations are file paths; keep them exactly as written.
_MARKDOWN.normalizeLink = _keep_url  # type: ignore[method-assign]

_TAG_NAMES = {
    "bullet_list": "list",
    "ordered_list": "list",
    "list_item": "item",
    "em": "emphasis",
}


@dataclass(frozen=True)
class _Event:
    """One step of a flat Markdown event stream."""

    kind: str
    tag: str = ""
    level: int = 0
    value: str = ""
    offset: int = field(default=0, compare=False)

    def is_start(self, tag: str, level: int | None = None) -> bool:
        return (
            self.kind == "start"
            and self.tag == tag
            and (level is None or self.level == level)
        )

    def is_end(self, tag: str, level: int | None = None) -> bool:
        return (
            self.kind == "end"
            and self.tag == tag
            and (level is None or self.level == level)
        )


def _tag_of(token: Token) -> str:
    base = token.type.rsplit("_", 1)[0]
    return _TAG_NAMES.get(base, base)


def _level_of(token: Token) -> int:
    if token.tag.startswith("h") and token.tag[1:].isdigit():
        return int(token.tag[1:])
    return 0


def _inline_events(children: Iterable[Token], offset: int) -> Iterator[_Event]:
    for child in children:
        kind = child.type
        if kind in ("text", "text_special", "entity"):
            yield _Event("text", value=child.content, offset=offset)
        elif kind == "code_inline":
            yield _Event("code", value=child.content, offset=offset)
        elif kind == "softbreak":
            yield _Event("softbreak", offset=offset)
        elif kind == "hardbreak":
            yield _Event("hardbreak", offset=offset)
        elif kind == "html_inline":
            yield _Event("inline_html", value=child.content, offset=offset)
        elif kind == "image":
            yield _Event("start", "image", value=str(child.attrs.get("src", "")), offset=offset)
            yield from _inline_events(child.children or [], offset)
            yield _Event("end", "image", offset=offset)
        elif child.nesting == 1:
            href = str(child.attrs.get("href", "")) if kind == "link_open" else ""
            yield _Event("start", _tag_of(child), value=href, offset=offset)
        elif child.nesting == -1:
            yield _Event("end", _tag_of(child), offset=offset)


def _events(text: str) -> Iterator[_Event]:
    """Turn Markdown text into a flat stream of start/end/text events."""
    line_starts = [0] + [index + 1 for index, char in enumerate(text) if char == "\n"]
    offset = 0
    for token in _MARKDOWN.parse(text):
        if token.map:
            offset = line_starts[min(token.map[0], len(line_starts) - 1)]
        if token.hidden:
            # Paragraphs of tight list items carry no event of their own.
            continue
        kind = token.type
        if kind == "inline":
            yield from _inline_events(token.children or [], offset)
        elif kind == "hr":
            yield _Event("rule", offset=offset)
        elif kind == "html_block":
            yield _Event("start", "html_block", offset=offset)
            yield _Event("html", value=token.content, offset=offset)
            yield _Event("end", "html_block", offset=offset)
        elif kind in ("fence", "code_block"):
            yield _Event("start", "code_block", offset=offset)
            yield _Event("text", value=token.content, offset=offset)
            yield _Event("end", "code_block", offset=offset)
        elif token.nesting == 1:
            yield _Event("start", _tag_of(token), _level_of(token), offset=offset)
        elif token.nesting == -1:
            yield _Event("end", _tag_of(token), _level_of(token), offset=offset)


def _stringify_events(events: Iterable[_Event]) -> str:
    """Drop all styling from a run of events and keep the plain text."""
    pieces: list[str] = []
    for event in events:
        if event.kind in ("text", "code"):
            pieces.append(event.value)
        elif event.kind == "softbreak":
            pieces.append(" ")
    return "".join(pieces)


def _update_section_numbers(sections: Iterable[SummaryItem], level: int, by: int) -> None:
    for section in sections:
        if isinstance(section, Link):
            if section.number is not None:
                section.number.parts[level] += by
            _update_section_numbers(section.nested_items, level, by)


class SummaryParser:
    """A recursive-descent parser over the Markdown events of a ``SUMMARY.md``."""

    def __init__(self, text: str) -> None:
        self._src = text
        self._stream = _events(text)
        self._offset = 0
        self._back: _Event | None = None
        self._root_items = 0

    def _current_location(self) -> tuple[int, int]:
        previous = self._src[: self._offset]
        line = previous.count("\n") + 1
        start_of_line = max(previous.rfind("\n"), 0)
        return line, self._offset - start_of_line

    def _parse_error(self, message: str) -> SummaryParseError:
        line, col = self._current_location()
        return SummaryParseError(
            f"failed to parse SUMMARY.md line {line}, column {col}: {message}"
        )

    def _push_back(self, event: _Event) -> None:
        if self._back is not None:
            raise RuntimeError("only one event can be pushed back")
        self._back = event

    def _next_event(self) -> _Event | None:
        if self._back is not None:
            event, self._back = self._back, None
            return event
        event = next(self._stream, None)
        if event is not None:
            self._offset = event.offset
        return event

    def _collect_until_end(self, tag: str, level: int | None = None) -> list[_Event]:
        collected: list[_Event] = []
        for event in self._stream:
            if event.is_end(tag, level):
                return collected
            collected.append(event)
        log.debug("Reached end of stream without finding the end of %s", tag)
        return collected

    def parse(self) -> Summary:
        """Parse the whole summary text."""
        title = self.parse_title()
        stages = (
            ("prefix", lambda: self.parse_affix(True)),
            ("numbered", self.parse_parts),
            ("suffix", lambda: self.parse_affix(False)),
        )
        results: list[list[SummaryItem]] = []
        for label, stage in stages:
            try:
                results.append(stage())
            except SummaryParseError as err:
                raise SummaryParseError(
                    f"There was an error parsing the {label} chapters: {err}"
                ) from err
        prefix, numbered, suffix = results
        return Summary(
            title=title,
            prefix_chapters=prefix,
            numbered_chapters=numbered,
            suffix_chapters=suffix,
        )

    def parse_title(self) -> str | None:
        """Parse a leading level-one heading, skipping HTML such as comments."""
        while (event := self._next_event()) is not None:
            if event.is_start("heading", 1):
                return _stringify_events(self._collect_until_end("heading", 1))
            if event.kind in ("html", "inline_html") or event.tag == "html_block":
                continue
            self._push_back(event)
            return None
        return None

    def parse_affix(self, is_prefix: bool) -> list[SummaryItem]:
        """Parse the unnumbered chapters before or after the numbered ones."""
        items: list[SummaryItem] = []
        log.debug("Parsing %s items", "prefix" if is_prefix else "suffix")
        while (event := self._next_event()) is not None:
            if event.is_start("list") or event.is_start("heading", 1):
                if is_prefix:
                    self._push_back(event)
                    break
                raise self._parse_error("Suffix chapters cannot be followed by a list")
            if event.is_start("link"):
                items.append(self._parse_link(event.value))
            elif event.kind == "rule":
                items.append(Separator())
        return items

    def parse_parts(self) -> list[SummaryItem]:
        """Parse every part of numbered chapters, numbering them continuously."""
        parts: list[SummaryItem] = []
        self._root_items = 0
        while (event := self._next_event()) is not None:
            if event.is_start("paragraph"):
                self._push_back(event)
                break
            title: str | None = None
            if event.is_start("heading", 1):
                title = _stringify_events(self._collect_until_end("heading", 1))
            else:
                self._push_back(event)
            try:
                numbered = self.parse_numbered()
            except SummaryParseError as err:
                raise SummaryParseError(
                    f"There was an error parsing the numbered chapters: {err}"
                ) from err
            if title is not None:
                parts.append(PartTitle(title))
            parts.extend(numbered)
        return parts

    def parse_numbered(self) -> list[SummaryItem]:
        """Parse the numbered chapters of a single part."""
        items: list[SummaryItem] = []
        first = True
        while (event := self._next_event()) is not None:
            if event.is_start("paragraph"):
                if not first:
                    self._push_back(event)
                    break
            elif event.is_start("heading", 1):
                self._push_back(event)
                break
            elif event.is_start("list"):
                self._push_back(event)
                bunch = self._parse_nested_numbered(SectionNumber())
                # Lists resumed after a rule or comment restart at 1.
                _update_section_numbers(bunch, 0, self._root_items)
                self._root_items += len(bunch)
                items.extend(bunch)
            elif event.kind == "start":
                closing = _Event("end", event.tag, event.level)
                while (inner := self._next_event()) is not None and inner != closing:
                    pass
            elif event.kind == "rule":
                items.append(Separator())
            first = False
        return items

    def _parse_link(self, href: str) -> Link:
        href = href.replace("%20", " ")
        name = _stringify_events(self._collect_until_end("link"))
        return Link(name=name, location=Path(href) if href else None)

    def _parse_nested_numbered(self, parent: SectionNumber) -> list[SummaryItem]:
        log.debug("Parsing numbered chapters at level %s", parent)
        items: list[Link] = []
        while (event := self._next_event()) is not None:
            if event.is_start("item"):
                items.append(self._parse_nested_item(parent, len(items)))
            elif event.is_start("list"):
                if not items:
                    continue
                last = items[-1]
                assert last.number is not None
                last.nested_items = self._parse_nested_numbered(last.number)
            elif event.is_end("list"):
                break
        return list(items)

    def _parse_nested_item(self, parent: SectionNumber, existing: int) -> Link:
        while True:
            event = self._next_event()
            if event is not None and event.is_start("paragraph"):
                continue
            if event is not None and event.is_start("link"):
                link = self._parse_link(event.value)
                link.number = SectionNumber([*parent.parts, existing + 1])
                return link
            log.warning("Expected a start of a link, actually got %r", event)
            raise self._parse_error(
                "The link items for nested chapters must only contain a hyperlink"
            )


def parse_summary(text: str) -> Summary:
    """Parse the text of a ``SUMMARY.md`` file."""
    return SummaryParser(text).parse()
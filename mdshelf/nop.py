"""A preprocessor that changes nothing, run as an external command."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from mdshelf.book import Book, book_from_json, book_to_json
from mdshelf.ordering import config_get
from mdshelf.pipeline import Preprocessor

__all__ = ["BUILT_AGAINST", "NopPreprocessor", "PreprocessorContext", "main", "parse_input"]

log = logging.getLogger(__name__)

BUILT_AGAINST = "0.4.40"

_VERSION = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)


@dataclass
class PreprocessorContext:
    """What a preprocessor is told about the book being built."""

    root: Path
    config: dict[str, Any] = field(default_factory=dict)
    renderer: str = ""
    mdbook_version: str = ""

    def __post_init__(self) -> None:
        self.root = Path(self.root)


class NopPreprocessor(Preprocessor):
    """A preprocessor that returns the book untouched."""

    name = "nop-preprocessor"

    def run(self, ctx: PreprocessorContext, book: Book) -> Book:
        """Return the book unchanged, or fail if configured with ``blow-up``."""
        table = config_get(ctx.config, f"preprocessor.{self.name}")
        if isinstance(table, Mapping) and "blow-up" in table:
            raise RuntimeError("Boom!!1!")
        return book

    def supports_renderer(self, renderer: str) -> bool:
        return renderer != "not-supported"


def parse_input(stream: IO[str] | IO[bytes]) -> tuple[PreprocessorContext, Book]:
    """Read the ``[context, book]`` JSON pair that a preprocessor receives."""
    data = json.load(stream)
    if not isinstance(data, list) or len(data) != 2:
        raise ValueError("expected a JSON array of [context, book]")
    ctx_data, book_data = data
    if not isinstance(ctx_data, Mapping):
        raise ValueError("the preprocessor context must be a JSON object")
    try:
        ctx = PreprocessorContext(
            root=Path(ctx_data["root"]),
            config=dict(ctx_data["config"]),
            renderer=str(ctx_data["renderer"]),
            mdbook_version=str(ctx_data["mdbook_version"]),
        )
    except (KeyError, TypeError) as err:
        raise ValueError(f"malformed preprocessor context: {err}") from err
    return ctx, book_from_json(book_data)


def _parse_version(text: str) -> tuple[int, int, int]:
    match = _VERSION.match(text.strip())
    if match is None:
        raise ValueError(f"invalid version: {text!r}")
    major, minor, patch = (int(part) for part in match.groups()[:3])
    return major, minor, patch


def _caret_matches(requirement: str, version: str) -> bool:
    """Whether ``version`` is compatible with ``requirement`` under caret rules."""
    req = _parse_version(requirement)
    ver = _parse_version(version)
    if ver < req:
        return False
    if req[0] > 0:
        return ver[0] == req[0]
    if req[1] > 0:
        return ver[:2] == req[:2]
    return ver == req


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nop-preprocessor",
        description="A preprocessor which does precisely nothing",
    )
    commands = parser.add_subparsers(dest="command")
    supports = commands.add_parser(
        "supports", help="Check whether a renderer is supported by this preprocessor"
    )
    supports.add_argument("renderer")
    return parser


def _handle_preprocessing(pre: Preprocessor) -> None:
    ctx, book = parse_input(sys.stdin)
    if not _caret_matches(BUILT_AGAINST, ctx.mdbook_version):
        print(
            f"Warning: The {pre.name} plugin was built against version {BUILT_AGAINST} "
            f"of mdbook, but we're being called from version {ctx.mdbook_version}",
            file=sys.stderr,
        )
    processed = pre.run(ctx, book)
    json.dump(book_to_json(processed), sys.stdout)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the preprocessor; returns the process exit status."""
    args = _build_parser().parse_args(argv)
    preprocessor = NopPreprocessor()

    if args.command == "supports":
        return 0 if preprocessor.supports_renderer(args.renderer) else 1

    try:
        _handle_preprocessing(preprocessor)
    except (ValueError, RuntimeError) as err:
        print(err, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
"""Which renderers and preprocessors take part in building a book, and where output goes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mdshelf.book import Book
from mdshelf.ordering import DEFAULT_PREPROCESSORS, config_get, custom_command

if TYPE_CHECKING:
    from mdshelf.nop import PreprocessorContext

__all__ = [
    "BUILTIN_RENDERERS",
    "Preprocessor",
    "RendererSpec",
    "build_dir_for",
    "determine_renderers",
    "preprocessor_should_run",
]

BUILTIN_RENDERERS: tuple[str, ...] = ("html", "markdown")
_DEFAULT_BUILD_DIR = "book"


class Preprocessor(ABC):
    """A step that transforms a book before it is handed to a renderer."""

    name: str = ""

    @abstractmethod
    def run(self, ctx: PreprocessorContext, book: Book) -> Book:
        """Process ``book`` and return the result."""

    def supports_renderer(self, renderer: str) -> bool:
        """Whether this preprocessor should run for the named renderer."""
        return True


@dataclass(frozen=True)
class RendererSpec:
    """A renderer chosen to run: a built-in one, or an external command."""

    name: str
    command: str | None = None

    @property
    def is_builtin(self) -> bool:
        """Whether this renderer ships with the package."""
        return self.command is None


def determine_renderers(config: Mapping[str, Any]) -> list[RendererSpec]:
    """Work out the renderers from the ``output`` table, defaulting to HTML."""
    output = config_get(config, "output")
    renderers: list[RendererSpec] = []
    if isinstance(output, Mapping):
        for key, table in output.items():
            if key in BUILTIN_RENDERERS:
                renderers.append(RendererSpec(key))
            else:
                renderers.append(RendererSpec(key, custom_command(key, table)))
    return renderers or [RendererSpec("html")]


def _use_default_preprocessors(config: Mapping[str, Any]) -> bool:
    value = config_get(config, "build.use-default-preprocessors")
    return value if isinstance(value, bool) else True


def preprocessor_should_run(
    preprocessor: Preprocessor, renderer_name: str, config: Mapping[str, Any]
) -> bool:
    """Decide whether ``preprocessor`` runs for ``renderer_name``.

    Default preprocessors, when enabled, run wherever they support the
    renderer. Otherwise an explicit ``preprocessor.<name>.renderers`` list
    decides, and without one the preprocessor itself is asked.
    """
    if _use_default_preprocessors(config) and preprocessor.name in DEFAULT_PREPROCESSORS:
        return preprocessor.supports_renderer(renderer_name)

    explicit = config_get(config, f"preprocessor.{preprocessor.name}.renderers")
    if isinstance(explicit, list):
        return any(isinstance(name, str) and name == renderer_name for name in explicit)

    return preprocessor.supports_renderer(renderer_name)


def build_dir_for(
    root: str | Path,
    config: Mapping[str, Any],
    renderers: Sequence[RendererSpec],
    backend_name: str,
) -> Path:
    """Where a renderer puts its output.

    With a single renderer this is the configured build directory itself;
    with several, each renderer gets its own subdirectory of it.
    """
    configured = config_get(config, "build.build-dir")
    build_dir = Path(root) / (configured if isinstance(configured, str) else _DEFAULT_BUILD_DIR)
    if len(renderers) <= 1:
        return build_dir
    return build_dir / backend_name
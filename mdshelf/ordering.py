"""Choosing which preprocessors run on a book, and in what order."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

__all__ = [
    "DEFAULT_PREPROCESSORS",
    "ConfigError",
    "PreprocessorSpec",
    "config_get",
    "custom_command",
    "determine_preprocessors",
]

log = logging.getLogger(__name__)

LINKS = "links"
INDEX = "index"
DEFAULT_PREPROCESSORS: tuple[str, ...] = (LINKS, INDEX)


class ConfigError(Exception):
    """Raised when the book configuration cannot be interpreted."""


@dataclass(frozen=True)
class PreprocessorSpec:
    """A preprocessor chosen to run: a built-in one, or an external command."""

    name: str
    command: str | None = None

    @property
    def is_builtin(self) -> bool:
        """Whether this is one of the preprocessors that ship with the package."""
        return self.command is None


def config_get(config: Mapping[str, Any], key: str) -> Any:
    """Look up a dotted key such as ``output.html.theme``; ``None`` if absent."""
    value: Any = config
    for part in key.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


def custom_command(key: str, table: Any) -> str:
    """The command configured for an external plugin, or its conventional default."""
    if isinstance(table, Mapping):
        command = table.get("command")
        if isinstance(command, str):
            return command
    return f"mdbook-{key}"


def _use_default_preprocessors(config: Mapping[str, Any]) -> bool:
    value = config_get(config, "build.use-default-preprocessors")
    return value if isinstance(value, bool) else True


def _string_list(value: Any, name: str, field: str) -> list[str]:
    if not isinstance(value, list):
        raise ConfigError(f"Expected preprocessor.{name}.{field} to be an array")
    if not all(isinstance(entry, str) for entry in value):
        raise ConfigError(f"Expected preprocessor.{name}.{field} to contain strings")
    return list(value)


class _Ordering:
    """Names with "must run before" links, released a layer at a time."""

    def __init__(self) -> None:
        self._predecessors: dict[str, set[str]] = {}

    def insert(self, name: str) -> None:
        self._predecessors.setdefault(name, set())

    def add_dependency(self, before: str, after: str) -> None:
        self.insert(before)
        self.insert(after)
        self._predecessors[after].add(before)

    def pop_all(self) -> list[str]:
        ready = sorted(
            name for name, preds in self._predecessors.items() if not preds
        )
        for name in ready:
            del self._predecessors[name]
        for preds in self._predecessors.values():
            preds.difference_update(ready)
        return ready

    def __len__(self) -> int:
        return len(self._predecessors)


def determine_preprocessors(config: Mapping[str, Any]) -> list[PreprocessorSpec]:
    """Work out which preprocessors to run, ordered by their before/after rules.

    Preprocessors with no ordering between them run in code-point order of
    their names. A cycle in the rules is a :class:`ConfigError`.
    """
    use_defaults = _use_default_preprocessors(config)
    ordering = _Ordering()

    if use_defaults:
        for name in DEFAULT_PREPROCESSORS:
            ordering.insert(name)

    table = config_get(config, "preprocessor")
    if not isinstance(table, Mapping):
        table = {}

    def exists(name: str) -> bool:
        return (use_defaults and name in DEFAULT_PREPROCESSORS) or name in table

    for name, entry in table.items():
        ordering.insert(name)
        if not isinstance(entry, Mapping):
            continue

        if "before" in entry:
            for later in _string_list(entry["before"], name, "before"):
                if exists(later):
                    ordering.add_dependency(name, later)
                else:
                    # Only warn, so preprocessors can be toggled without
                    # having to fix every ordering rule that mentions them.
                    log.warning(
                        'preprocessor.%s.after contains "%s", which was not found',
                        name,
                        later,
                    )

        if "after" in entry:
            for earlier in _string_list(entry["after"], name, "after"):
                if exists(earlier):
                    ordering.add_dependency(earlier, name)
                else:
                    log.warning(
                        'preprocessor.%s.before contains "%s", which was not found',
                        name,
                        earlier,
                    )

    specs: list[PreprocessorSpec] = []
    while layer := ordering.pop_all():
        for name in layer:
            if name in DEFAULT_PREPROCESSORS:
                specs.append(PreprocessorSpec(name))
            else:
                specs.append(PreprocessorSpec(name, custom_command(name, table[name])))

    if len(ordering):
        raise ConfigError("Cyclic dependency detected in preprocessors")
    return specs
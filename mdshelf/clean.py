"""Removing a built book and reporting what was removed."""

from __future__ import annotations

import math
import shutil
from dataclasses import dataclass
from pathlib import Path

__all__ = ["CleanReport", "clean_directory", "human_readable_bytes"]

_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")


def human_readable_bytes(num_bytes: int) -> tuple[float, str]:
    """Express a byte count as ``(quantity, unit)`` with binary prefixes."""
    if num_bytes <= 0:
        return float(num_bytes), _UNITS[0]
    index = min(int(math.log2(num_bytes) / 10), len(_UNITS) - 1)
    return num_bytes / 1024**index, _UNITS[index]


@dataclass(frozen=True)
class CleanReport:
    """How many files, directories and bytes were removed."""

    files_removed: int = 0
    dirs_removed: int = 0
    bytes_removed: int = 0

    def __str__(self) -> str:
        files, dirs = self.files_removed, self.dirs_removed
        if files == 0:
            if dirs == 0:
                what = "0 files"
            elif dirs == 1:
                what = "1 directory"
            else:
                what = f"{dirs} directories"
        elif files == 1:
            what = "1 file"
        else:
            what = f"{files} files"

        text = f"Removed {what}"
        if self.bytes_removed == 0:
            return text
        if self.bytes_removed < 1024:
            return f"{text}, {self.bytes_removed}B total"
        quantity, unit = human_readable_bytes(self.bytes_removed)
        return f"{text}, {quantity:.2f}{unit} total"


def clean_directory(path: str | Path) -> CleanReport:
    """Delete ``path`` and everything in it, counting what goes.

    A path that does not exist is left alone and reported as nothing removed.
    """
    root = Path(path)
    if not root.exists():
        return CleanReport()

    files = dirs = total = 0
    layer = [root]
    while layer:
        children: list[Path] = []
        for entry in layer:
            try:
                # May over-count hard links and ignores block sizes.
                total += entry.stat().st_size
            except OSError:
                pass
            if entry.is_file():
                files += 1
            elif entry.is_dir():
                dirs += 1
                children.extend(entry.iterdir())
        layer = children

    shutil.rmtree(root)
    return CleanReport(files_removed=files, dirs_removed=dirs, bytes_removed=total)
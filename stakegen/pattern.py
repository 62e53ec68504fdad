"""Filename patterns for generated keyfiles."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Set

from .config import PATTERN_PLACEHOLDER
from .errors import PatternCollision


def render(pattern: str, index: int) -> Path:
    """Return ``pattern`` with every ``{}`` replaced by ``index``.

    >>> render("keys/key{}.sk", 3)
    PosixPath('keys/key3.sk')
    """
    return Path(pattern.replace(PATTERN_PLACEHOLDER, str(index)))


def render_range(pattern: str, count: int, *, suffix: str = "") -> List[Path]:
    """Return the paths for indices ``1..count``."""
    return [Path(f"{render(pattern, i)}{suffix}") for i in range(1, count + 1)]


def check_unique_paths(paths: Iterable[Path]) -> None:
    """Raise :class:`PatternCollision` on the first path seen twice."""
    seen: Set[Path] = set()
    for path in paths:
        key = Path(path).expanduser().absolute()
        if key in seen:
            raise PatternCollision(path)
        seen.add(key)


__all__ = ["render", "render_range", "check_unique_paths"]

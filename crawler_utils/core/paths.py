"""Separator normalization and parent trimming for crawler-reported paths.

Paths arrive from archives and tools built on both Windows and POSIX, so every
helper here rewrites ``\\`` to ``/`` before comparing anything. The helpers are
total: ``None``, ``""`` and the ``MISSING`` marker (no argument given) are handed
back unchanged instead of raising.
"""

from __future__ import annotations

from typing import Any, Optional, Union


class _Missing:
    """Marker for an argument that was not supplied at all (distinct from ``None``)."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

PathValue = Union[str, None, _Missing]


def normalize_path(path: PathValue = MISSING) -> PathValue:
    if not isinstance(path, str) or not path:
        return path
    return path.replace("\\", "/")


def normalize_paths(paths: Any = MISSING) -> Any:
    if not isinstance(paths, (list, tuple)):
        return paths
    return [normalize_path(path) for path in paths]


def trim_parents(path: PathValue = MISSING, parent: PathValue = MISSING) -> PathValue:
    """Return ``path`` relative to ``parent`` when it lives underneath it.

    A path outside ``parent`` comes back separator-normalized but otherwise as given.
    """
    if not isinstance(path, str) or not path:
        return path
    normalized = normalize_path(path)
    if not isinstance(parent, str) or not parent:
        return normalized

    prefix = normalize_path(parent)
    if not normalized.startswith(prefix):
        return normalized
    rest = normalized[len(prefix) :]
    if rest.startswith("/"):
        rest = rest[1:]
    return rest


def trim_all_parents(paths: Any = MISSING, parent: PathValue = MISSING) -> Any:
    if not isinstance(paths, (list, tuple)):
        return paths
    return [trim_parents(path, parent) for path in paths]

"""Removal of empty attributes that carry no meaning when left unset."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Union

PathLike = Union[str, Sequence[str]]

# Paths (relative to the model root) under which empty values are dropped.
OMIT_EMPTY_PATTERNS: tuple[tuple[str, ...], ...] = (("services", "*", "dns"),)


def _segments(path: PathLike) -> tuple[str, ...]:
    if isinstance(path, str):
        return tuple(path.split(".")) if path else ()
    return tuple(path)


def path_matches(path: PathLike, pattern: PathLike) -> bool:
    """Tell whether ``path`` matches ``pattern``, where ``*`` matches any one segment.

    Both may be given as dotted strings or as sequences of segments.
    """
    segments = _segments(path)
    expected = _segments(pattern)
    if len(segments) != len(expected):
        return False
    return all(want in ("*", got) for got, want in zip(segments, expected))


def _must_omit(path: tuple[str, ...]) -> bool:
    return any(path_matches(path, pattern) for pattern in OMIT_EMPTY_PATTERNS)


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _omit(data: Any, path: tuple[str, ...]) -> Any:
    if isinstance(data, dict):
        omit_here = _must_omit(path)
        return {
            key: _omit(value, path + (key,))
            for key, value in data.items()
            if not (omit_here and _is_empty(value))
        }
    if isinstance(data, list):
        omit_here = _must_omit(path)
        return [
            _omit(item, path + ("[]",))
            for item in data
            if not (omit_here and _is_empty(item))
        ]
    return data


def omit_empty(model: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``model`` without empty entries where they are irrelevant."""
    return _omit(model, ())
"""Resolution of paths relative to a project working directory."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path
from typing import Optional


def _join(*parts: str) -> str:
    joined = os.path.join(*parts)
    return os.path.normpath(joined) if joined else ""


def abs_path(working_dir: str, file_path: str) -> str:
    """Resolve ``file_path`` against ``working_dir``, expanding a leading ``~``."""
    if file_path.startswith("~"):
        rest = file_path[1:].lstrip("/" + os.sep)
        return _join(str(Path.home()), rest)
    if os.path.isabs(file_path):
        return file_path
    return _join(working_dir, file_path)


def abs_compose_files(compose_files: Iterable[str]) -> list[str]:
    """Return the absolute form of every compose file path."""
    return [os.path.abspath(name) for name in compose_files]


def resolve_paths(base_path: str, values: Optional[Iterable[str]]) -> Optional[list[str]]:
    """Resolve each of ``values`` against ``base_path``; ``None`` stays ``None``."""
    if values is None:
        return None
    return [abs_path(base_path, value) for value in values]


def resolve_relative_paths(
    working_dir: str, compose_files: Iterable[str]
) -> tuple[str, list[str]]:
    """Return the absolute working directory and absolute compose file paths."""
    return os.path.abspath(working_dir), abs_compose_files(compose_files)
"""Project names, extension attributes and volume path conversion."""

from __future__ import annotations

import json
import ntpath
import re
from collections.abc import Callable, Mapping
from typing import Any, Optional

from .omit_empty import path_matches

EXTENSIONS_KEY = "#extensions"

_NAME_CHARACTER = re.compile(r"[a-z0-9_-]")

# Paths whose keys are user-chosen names, never extension attributes.
_USER_DEFINED_KEYS: tuple[tuple[str, ...], ...] = (
    ("services",),
    ("services", "*", "depends_on"),
    ("volumes",),
    ("networks",),
    ("secrets",),
    ("configs",),
)


def normalize_project_name(name: str) -> str:
    """Lower-case ``name``, keep only allowed characters and strip leading ``_``/``-``."""
    return "".join(_NAME_CHARACTER.findall(name.lower())).lstrip("_-")


def invalid_project_name_error(name: str) -> ValueError:
    """Build the error reported for a project name that is not normalized."""
    quoted = json.dumps(name, ensure_ascii=False)
    return ValueError(
        f"invalid project name {quoted}: must consist only of lowercase alphanumeric "
        "characters, hyphens, and underscores as well as start with a letter or number"
    )


def _process(
    model: dict[str, Any],
    path: tuple[str, ...],
    extensions: Mapping[str, Callable[[Any], Any]],
) -> dict[str, Any]:
    user_defined = any(path_matches(path, pattern) for pattern in _USER_DEFINED_KEYS)
    result: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    for key, value in model.items():
        if not user_defined and key.startswith("x-"):
            extras[key] = value
            continue
        if isinstance(value, dict):
            value = _process(value, path + (key,), extensions)
        elif isinstance(value, list):
            value = [
                _process(item, path + (str(index),), extensions)
                if isinstance(item, dict)
                else item
                for index, item in enumerate(value)
            ]
        result[key] = value
    for name, raw in extras.items():
        factory = extensions.get(name)
        if factory is not None:
            extras[name] = factory(raw)
    if extras:
        result[EXTENSIONS_KEY] = extras
    return result


def process_extensions(
    model: dict[str, Any],
    extensions: Optional[Mapping[str, Callable[[Any], Any]]] = None,
) -> dict[str, Any]:
    """Move ``x-*`` attributes of every mapping under its ``#extensions`` key.

    ``extensions`` maps known extension names to a callable converting the raw
    value into the object to keep.
    """
    return _process(model, (), extensions or {})


def convert_volume_path(source: str) -> str:
    """Turn a Windows drive path such as ``c:\\data`` into ``/c/data``."""
    drive, _ = ntpath.splitdrive(source)
    if len(drive) != 2:
        return source
    converted = f"/{drive[0].lower()}{source[len(drive):]}"
    return converted.replace("\\", "/")
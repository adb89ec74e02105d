"""Parsing of compose YAML sources into plain dictionaries with string keys."""

from __future__ import annotations

from typing import Any, Union

from .reset import load_documents


def _format_key(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "<nil>"
    return repr(key)


def format_invalid_key_error(key_prefix: str, key: Any) -> ValueError:
    """Build the error reported for a mapping key that is not a string."""
    location = "at top level" if not key_prefix else f"in {key_prefix}"
    return ValueError(f"Non-string key {location}: {_format_key(key)}")


def _child_prefix(key_prefix: str, key: str) -> str:
    return key if not key_prefix else f"{key_prefix}.{key}"


def convert_to_string_keys(value: Any, key_prefix: str = "") -> Any:
    """Return ``value`` with every mapping checked to have string keys only.

    Raises ``ValueError`` naming the location of the first non-string key.
    """
    if isinstance(value, dict):
        converted: dict[str, Any] = {}
        for key, entry in value.items():
            if not isinstance(key, str):
                raise format_invalid_key_error(key_prefix, key)
            converted[key] = convert_to_string_keys(entry, _child_prefix(key_prefix, key))
        return converted
    if isinstance(value, list):
        return [
            convert_to_string_keys(entry, f"{key_prefix}[{index}]")
            for index, entry in enumerate(value)
        ]
    return value


def parse_yaml(source: Union[str, bytes]) -> dict[str, Any]:
    """Parse the first document of ``source`` into a mapping with string keys."""
    documents = load_documents(source)
    try:
        value, _ = next(documents)
    except StopIteration:
        raise ValueError("no YAML document found") from None
    finally:
        documents.close()
    if not isinstance(value, dict):
        raise ValueError("Top-level object must be a mapping")
    return convert_to_string_keys(value, "")
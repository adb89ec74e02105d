"""Handling of the ``!reset`` and ``!override`` YAML tags.

A :class:`ResetProcessor` removes tagged nodes from a YAML document while
recording their location, so the same locations can later be cleared from a
model that was loaded before.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any, Optional, Union

import yaml
from yaml.resolver import BaseResolver

from .omit_empty import path_matches

RESET_TAG = "!reset"
OVERRIDE_TAG = "!override"

_BOOL_TAG = "tag:yaml.org,2002:bool"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"
_MERGE_KEY = "<<"

Path = tuple[str, ...]


class _ComposeLoader(yaml.SafeLoader):
    """Safe loader using YAML 1.2 booleans and keeping timestamps as strings."""


_ComposeLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag not in (_BOOL_TAG, _TIMESTAMP_TAG)
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_ComposeLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _default_tag(node: yaml.Node, resolver: _ComposeLoader) -> str:
    if isinstance(node, yaml.MappingNode):
        return BaseResolver.DEFAULT_MAPPING_TAG
    if isinstance(node, yaml.SequenceNode):
        return BaseResolver.DEFAULT_SEQUENCE_TAG
    return resolver.resolve(yaml.ScalarNode, node.value, (True, False))


def _children(node: yaml.Node) -> list[yaml.Node]:
    if isinstance(node, yaml.MappingNode):
        return [child for pair in node.value for child in pair]
    if isinstance(node, yaml.SequenceNode):
        return list(node.value)
    return []


def _strip_custom_tags(root: yaml.Node, resolver: _ComposeLoader) -> None:
    """Give nodes tagged ``!reset`` or ``!override`` the tag they would have untagged."""
    seen: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        if node.tag in (RESET_TAG, OVERRIDE_TAG):
            node.tag = _default_tag(node, resolver)
        stack.extend(_children(node))


class ResetProcessor:
    """Records the paths tagged ``!reset`` or ``!override`` in a YAML document."""

    def __init__(self) -> None:
        self.paths: list[Path] = []
        self._visited: dict[int, Path] = {}

    def decode(self, node: Optional[yaml.Node]) -> Any:
        """Resolve the tags in ``node`` and construct the Python value it holds.

        Nodes tagged ``!reset`` are dropped; nodes tagged ``!override`` are kept.
        Both have their location recorded. A self-referencing document raises
        ``ValueError``.
        """
        if node is None:
            return None
        self._visited = {}
        try:
            resolved = self._resolve(node, ())
        finally:
            self._visited = {}
        if resolved is None:
            return None
        constructor = _ComposeLoader("")
        try:
            _strip_custom_tags(resolved, constructor)
            return constructor.construct_document(resolved)
        finally:
            constructor.dispose()

    def _resolve(self, node: yaml.Node, path: Path) -> Optional[yaml.Node]:
        if _MERGE_KEY in path[1:]:
            index = path.index(_MERGE_KEY, 1)
            path = path[:index] + path[index + 1:]

        previous = self._visited.get(id(node))
        if (
            previous
            and len(path) > len(previous)
            and path[: len(previous)] == previous
        ):
            raise ValueError(f"cycle detected at path: {'.'.join(path)}")
        self._visited[id(node)] = path

        if node.tag == RESET_TAG:
            self.paths.append(path)
            return None
        if node.tag == OVERRIDE_TAG:
            self.paths.append(path)
            return node

        if isinstance(node, yaml.SequenceNode):
            kept = []
            for index, child in enumerate(node.value):
                resolved = self._resolve(child, path + (str(index),))
                if resolved is not None:
                    kept.append(resolved)
            node.value = kept
        elif isinstance(node, yaml.MappingNode):
            pairs = []
            for key_node, value_node in node.value:
                key = key_node.value if isinstance(key_node, yaml.ScalarNode) else ""
                resolved = self._resolve(value_node, path + (key,))
                if resolved is not None:
                    pairs.append((key_node, resolved))
            node.value = pairs
        return node

    def apply(self, target: Any) -> None:
        """Remove from ``target``, in place, every mapping entry at a recorded path."""
        self._apply(target, ())

    def _apply(self, target: Any, path: Path) -> None:
        if isinstance(target, dict):
            for key in list(target):
                following = path + (str(key),)
                if any(path_matches(following, pattern) for pattern in self.paths):
                    del target[key]
                    continue
                self._apply(target[key], following)
        elif isinstance(target, list):
            for index, item in enumerate(target):
                following = path + (f"[{index}]",)
                if any(path_matches(following, pattern) for pattern in self.paths):
                    continue
                self._apply(item, following)


def load_documents(source: Union[str, bytes]) -> Iterator[tuple[Any, ResetProcessor]]:
    """Yield each document of ``source`` with the processor that decoded it."""
    loader = _ComposeLoader(source)
    try:
        while loader.check_node():
            node = loader.get_node()
            processor = ResetProcessor()
            yield processor.decode(node), processor
    finally:
        loader.dispose()
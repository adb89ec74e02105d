"""Normalization of a compose model: canonical positions and implicit defaults."""

from __future__ import annotations

import posixpath
from collections.abc import Callable
from typing import Any, Optional

PULL_POLICY_IF_NOT_PRESENT = "if_not_present"
PULL_POLICY_MISSING = "missing"
SERVICE_CONDITION_STARTED = "service_started"
SERVICE_PREFIX = "service:"
CONTAINER_PREFIX = "container:"

_NAMESPACES = ("network_mode", "ipc", "pid", "uts", "cgroup")
_NAMED_RESOURCES = ("networks", "volumes", "configs", "secrets")
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})

Lookup = Callable[[str], Optional[str]]


def _implicit_dependency(restart: bool) -> dict[str, Any]:
    return {
        "condition": SERVICE_CONDITION_STARTED,
        "restart": restart,
        "required": True,
    }


def _clean_path(path: str) -> str:
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _is_true(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value) in _TRUE_WORDS


def resolve(value: Any, lookup: Lookup, keep_empty: bool) -> tuple[Any, bool]:
    """Fill unset entries of a list or mapping from ``lookup``.

    Returns the resolved value and whether it should be kept.
    """
    if isinstance(value, list):
        resolved = []
        for item in value:
            entry, keep = resolve(item, lookup, keep_empty)
            if keep:
                resolved.append(entry)
        return resolved, True
    if isinstance(value, dict):
        mapping: dict[str, Any] = {}
        for key, item in value.items():
            if item is not None:
                mapping[key] = item
                continue
            found = lookup(key)
            if found is not None:
                mapping[key] = found
            elif keep_empty:
                mapping[key] = None
        return mapping, True
    if isinstance(value, str):
        if "=" in value:
            return value, True
        found = lookup(value)
        if found is not None:
            return f"{value}={found}", True
        if keep_empty:
            return value, True
        return "", False
    return value, False


def _normalize_networks(model: dict[str, Any]) -> None:
    networks = model.get("networks") or {}
    uses_default = False

    for service in (model.get("services") or {}).values():
        if service is None or "network_mode" in service:
            continue
        declared = service.get("networks")
        if not declared:
            service["networks"] = {"default": None}
            uses_default = True
        elif "default" in declared:
            uses_default = True

    if uses_default and "default" not in networks:
        networks["default"] = None
    if networks:
        model["networks"] = networks


def _set_name_from_key(model: dict[str, Any]) -> None:
    for section in _NAMED_RESOURCES:
        if section not in model:
            continue
        toplevel = model[section]
        for key, resource in list(toplevel.items()):
            resource = resource if resource is not None else {}
            if resource.get("name") is None:
                if "external" in resource and _is_true(resource["external"]):
                    resource["name"] = key
                else:
                    resource["name"] = f"{model.get('name')}_{key}"
            toplevel[key] = resource


def _normalize_service(service: dict[str, Any], lookup: Lookup) -> None:
    if service.get("pull_policy") == PULL_POLICY_IF_NOT_PRESENT:
        service["pull_policy"] = PULL_POLICY_MISSING

    if "build" in service:
        build = service["build"]
        if build.get("context") is None:
            build["context"] = "."
        if build.get("dockerfile") is None and build.get("dockerfile_inline") is None:
            build["dockerfile"] = "Dockerfile"
        if "args" in build:
            build["args"], _ = resolve(build["args"], lookup, False)

    if "environment" in service:
        service["environment"], _ = resolve(service["environment"], lookup, True)

    depends_on = service.get("depends_on") or {}

    for link in service.get("links") or []:
        parts = link.split(":")
        name = parts[0] if len(parts) == 2 else link
        depends_on.setdefault(name, _implicit_dependency(True))

    for namespace in _NAMESPACES:
        ref = service.get(namespace)
        if isinstance(ref, str) and ref.startswith(SERVICE_PREFIX):
            shared = ref[len(SERVICE_PREFIX):]
            depends_on.setdefault(shared, _implicit_dependency(True))

    for volume in service.get("volumes") or []:
        volume["target"] = _clean_path(volume["target"])

    for source in service.get("volumes_from") or []:
        if not source.startswith(CONTAINER_PREFIX):
            depends_on.setdefault(source.split(":")[0], _implicit_dependency(False))

    if depends_on:
        service["depends_on"] = depends_on


def normalize(model: dict[str, Any], env: Optional[dict[str, str]]) -> dict[str, Any]:
    """Normalize ``model`` in place and return it.

    Deprecated attributes move to their canonical position, implicit
    dependencies and networks are added, and resources get their names.
    """
    environment = env or {}
    _normalize_networks(model)

    services = model.get("services")
    if services is not None:
        for name, service in list(services.items()):
            service = service if service is not None else {}
            _normalize_service(service, environment.get)
            services[name] = service

    _set_name_from_key(model)
    return model
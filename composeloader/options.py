"""Loading options, config file descriptions and resource loaders."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], None]
OptionSetter = Callable[["Options"], None]

_warned_versions: set[str] = set()


@runtime_checkable
class ResourceLoader(Protocol):
    """Resolver for resources referenced from compose files."""

    def accept(self, path: str) -> bool:
        """Tell whether ``path`` uses a protocol this loader supports."""

    def load(self, path: str) -> str:
        """Return the path to a local copy of the resource at ``path``."""

    def dir(self, path: str) -> str:
        """Return the resource's parent folder, relative where possible."""


def _join(*parts: str) -> str:
    joined = os.path.join(*parts)
    return os.path.normpath(joined) if joined else ""


def _relative(base: str, target: str) -> Optional[str]:
    base = base or "."
    if os.path.isabs(base) != os.path.isabs(target):
        return None
    try:
        return os.path.relpath(target, base)
    except ValueError:
        return None


@dataclass(frozen=True)
class LocalResourceLoader:
    """Loader for files on the local file system; accepts every path."""

    working_dir: str = ""

    def _abs(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return _join(self.working_dir, path)

    def accept(self, path: str) -> bool:
        """Accept any file-system path: this loader is tried last."""
        return isinstance(path, (str, os.PathLike))

    def load(self, path: str) -> str:
        """Return ``path`` made absolute against the working directory."""
        return self._abs(path)

    def dir(self, original_path: str) -> str:
        """Return the folder holding ``original_path``, relative to the working directory."""
        path = self._abs(original_path)
        if not os.path.isdir(path):
            path = self._abs(os.path.dirname(original_path))
        relative = _relative(self.working_dir, path)
        return path if relative is None else relative


@dataclass
class ConfigFile:
    """One compose file: its name and either its raw content or a parsed model."""

    filename: str = ""
    content: Optional[bytes] = None
    config: Optional[dict[str, Any]] = None


@dataclass
class ConfigDetails:
    """The set of compose files to load with their working directory and environment."""

    working_dir: str = ""
    config_files: list[ConfigFile] = field(default_factory=list)
    environment: Optional[dict[str, str]] = None


@dataclass
class Options:
    """Settings controlling how a compose model is loaded."""

    skip_validation: bool = False
    skip_interpolation: bool = False
    skip_normalization: bool = False
    resolve_paths: bool = False
    convert_windows_paths: bool = False
    skip_consistency_check: bool = False
    skip_extends: bool = False
    skip_include: bool = False
    skip_resolve_environment: bool = False
    skip_default_values: bool = False
    interpolate: Any = None
    discard_env_files: bool = False
    project_name: str = ""
    project_name_imperatively_set: bool = False
    profiles: list[str] = field(default_factory=list)
    resource_loaders: list[ResourceLoader] = field(default_factory=list)
    known_extensions: dict[str, Any] = field(default_factory=dict)
    listeners: list[Listener] = field(default_factory=list)

    def process_event(self, event: str, metadata: dict[str, Any]) -> None:
        """Pass ``event`` and its metadata to every listener, in order."""
        for listener in self.listeners:
            listener(event, metadata)

    def remote_resource_loaders(self) -> list[ResourceLoader]:
        """Return the configured loaders without the local file loader."""
        loaders: list[ResourceLoader] = []
        last = len(self.resource_loaders) - 1
        for index, loader in enumerate(self.resource_loaders):
            if isinstance(loader, LocalResourceLoader):
                if index != last:
                    logger.warning(
                        "misconfiguration of ResourceLoaders: localResourceLoader should be last"
                    )
                continue
            loaders.append(loader)
        return loaders

    def set_project_name(self, name: str, imperatively_set: bool) -> None:
        """Set the project name and whether the caller chose it explicitly."""
        self.project_name = name
        self.project_name_imperatively_set = imperatively_set

    def clone(self) -> Options:
        """Return a copy for nested loads.

        Environment resolution and default-value settings are not carried over.
        """
        return replace(self, skip_resolve_environment=False, skip_default_values=False)

    def _warn_obsolete_version(self, filename: str) -> None:
        if filename not in _warned_versions:
            logger.warning(
                "%s: the attribute `version` is obsolete, it will be ignored, "
                "please remove it to avoid potential confusion",
                filename,
            )
        _warned_versions.add(filename)


@dataclass(frozen=True)
class CycleTracker:
    """Chain of ``extends`` references followed so far, used to detect cycles."""

    loaded: tuple[tuple[str, str], ...] = ()

    def add(self, filename: str, service: str) -> CycleTracker:
        """Return a tracker extended with ``service`` from ``filename``.

        Raises ``ValueError`` describing the chain if the reference was already seen.
        """
        reference = (filename, service)
        if reference in self.loaded:
            first_file, first_service = self.loaded[0]
            lines = ["Circular reference:", f"  {first_service} in {first_file}"]
            lines.extend(
                f"  extends {name} in {file}"
                for file, name in (*self.loaded[1:], reference)
            )
            raise ValueError("\n".join(lines))
        return CycleTracker(self.loaded + (reference,))


def with_discard_env_files(options: Options) -> None:
    """Discard ``env_file`` entries once they are resolved into ``environment``."""
    options.discard_env_files = True


def with_skip_validation(options: Options) -> None:
    """Skip validation while loading."""
    options.skip_validation = True


def with_profiles(profiles: Iterable[str]) -> OptionSetter:
    """Return an option setter enabling ``profiles``."""
    chosen = list(profiles)

    def apply(options: Options) -> None:
        options.profiles = chosen

    return apply


def load_config_files(
    config_files: Iterable[str], working_dir: str, *args: OptionSetter
) -> ConfigDetails:
    """Fetch ``config_files`` through the resource loaders and describe local copies.

    The working directory comes from the first remote resource, otherwise
    ``working_dir`` is used. ``-`` stands for standard input and is kept as is.
    """
    names = list(config_files)
    if not names:
        raise FileNotFoundError("no configuration file provided: not found")

    options = Options()
    for setter in args:
        setter(options)
    loaders: list[ResourceLoader] = [*options.resource_loaders, LocalResourceLoader()]

    details = ConfigDetails()
    for name in names:
        if name == "-":
            details.config_files.append(ConfigFile(filename=name))
            continue
        entry = ConfigFile()
        for loader in loaders:
            if not loader.accept(name):
                continue
            local = loader.load(name)
            if not details.working_dir and not isinstance(loader, LocalResourceLoader):
                details.working_dir = os.path.dirname(local)
            entry = ConfigFile(filename=os.path.abspath(local))
            break
        details.config_files.append(entry)

    if not details.working_dir:
        details.working_dir = working_dir
    return details
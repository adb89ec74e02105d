import logging
import os

import pytest

from composeloader.options import (
    ConfigFile,
    CycleTracker,
    LocalResourceLoader,
    Options,
    load_config_files,
    with_discard_env_files,
    with_profiles,
    with_skip_validation,
)


class CustomLoader:
    def __init__(self, base, prefix):
        self.base = base
        self.prefix = prefix

    def accept(self, path):
        return path.startswith(self.prefix + ":")

    def _path(self, path):
        return os.path.join(self.base, self.prefix, path[len(self.prefix) + 1:])

    def load(self, path):
        local = self._path(path)
        if not os.path.exists(local):
            raise FileNotFoundError(local)
        return os.path.abspath(local)

    def dir(self, path):
        return os.path.dirname(self._path(path))


def test_cycle_tracker_detects_circular_reference():
    tracker = CycleTracker().add("compose.yaml", "a").add("compose.yaml", "b")
    with pytest.raises(ValueError) as excinfo:
        tracker.add("compose.yaml", "a")
    assert str(excinfo.value) == (
        "Circular reference:\n"
        "  a in compose.yaml\n"
        "  extends b in compose.yaml\n"
        "  extends a in compose.yaml"
    )


def test_cycle_tracker_branches_are_independent():
    root = CycleTracker().add("f.yaml", "a")
    branch = root.add("f.yaml", "b")
    assert root.loaded == (("f.yaml", "a"),)
    assert branch.loaded == (("f.yaml", "a"), ("f.yaml", "b"))
    assert root.add("other.yaml", "a").loaded[-1] == ("other.yaml", "a")


def test_local_loader_accepts_everything():
    assert LocalResourceLoader().accept("remote:anything") is True


def test_local_loader_load(tmp_path):
    loader = LocalResourceLoader(str(tmp_path))
    assert loader.load("sub/x.yaml") == os.path.join(str(tmp_path), "sub", "x.yaml")
    absolute = str(tmp_path / "y.yaml")
    assert loader.load(absolute) == absolute


def test_local_loader_dir(tmp_path):
    (tmp_path / "a").mkdir()
    loader = LocalResourceLoader(str(tmp_path))
    assert loader.dir("a") == "a"
    assert loader.dir("a/compose.yaml") == "a"
    assert loader.dir("compose.yaml") == "."


def test_remote_resource_loaders_excludes_local(caplog):
    remote = CustomLoader("/tmp", "remote")
    options = Options(resource_loaders=[remote, LocalResourceLoader()])
    with caplog.at_level(logging.WARNING, logger="composeloader.options"):
        assert options.remote_resource_loaders() == [remote]
    assert "misconfiguration" not in caplog.text


def test_remote_resource_loaders_warns_when_local_not_last(caplog):
    remote = CustomLoader("/tmp", "remote")
    options = Options(resource_loaders=[LocalResourceLoader(), remote])
    with caplog.at_level(logging.WARNING, logger="composeloader.options"):
        assert options.remote_resource_loaders() == [remote]
    assert "localResourceLoader should be last" in caplog.text


def test_process_event_calls_listeners_in_order():
    seen = []
    options = Options(
        listeners=[
            lambda event, meta: seen.append(("first", event, meta)),
            lambda event, meta: seen.append(("second", event, meta)),
        ]
    )
    options.process_event("extends", {"service": "foo"})
    assert seen == [
        ("first", "extends", {"service": "foo"}),
        ("second", "extends", {"service": "foo"}),
    ]


def test_set_project_name():
    options = Options()
    options.set_project_name("project", True)
    assert options.project_name == "project"
    assert options.project_name_imperatively_set is True


def test_clone_copies_settings():
    options = Options(
        skip_validation=True,
        resolve_paths=True,
        profiles=["debug"],
        skip_default_values=True,
        skip_resolve_environment=True,
    )
    options.set_project_name("demo", False)
    copy = options.clone()
    assert copy.skip_validation is True
    assert copy.resolve_paths is True
    assert copy.profiles == ["debug"]
    assert copy.project_name == "demo"
    assert copy.skip_default_values is False
    assert copy.skip_resolve_environment is False
    copy.skip_validation = False
    assert options.skip_validation is True


def test_option_setters():
    options = Options()
    with_discard_env_files(options)
    with_skip_validation(options)
    with_profiles(["a", "b"])(options)
    assert options.discard_env_files is True
    assert options.skip_validation is True
    assert options.profiles == ["a", "b"]


def test_load_config_files_requires_files():
    with pytest.raises(FileNotFoundError, match="no configuration file provided"):
        load_config_files([], "/work")


def test_load_config_files_local_and_stdin():
    details = load_config_files(["-", "compose.yaml"], "/work")
    assert details.working_dir == "/work"
    assert details.config_files == [
        ConfigFile(filename="-"),
        ConfigFile(filename=os.path.abspath("compose.yaml")),
    ]


def test_load_config_files_remote_sets_working_dir(tmp_path):
    remote_dir = tmp_path / "remote"
    remote_dir.mkdir()
    (remote_dir / "compose.yaml").write_text("services: {}\n")
    loader = CustomLoader(str(tmp_path), "remote")

    def use_remote(options):
        options.resource_loaders = [loader]

    details = load_config_files(["remote:compose.yaml", "local.yaml"], "/work", use_remote)
    assert details.working_dir == str(remote_dir)
    assert details.config_files[0].filename == str(remote_dir / "compose.yaml")
    assert details.config_files[1].filename == os.path.abspath("local.yaml")


def test_load_config_files_missing_remote(tmp_path):
    loader = CustomLoader(str(tmp_path), "remote")

    def use_remote(options):
        options.resource_loaders = [loader]

    with pytest.raises(FileNotFoundError):
        load_config_files(["remote:unavailable.yaml"], "/work", use_remote)
# composeloader

Building blocks for reading Compose application files (`compose.yaml`) into
plain Python dictionaries. Each step is a separate function. You can combine
the steps you need.

## Installation

```
pip install composeloader
```

## Modules

### `composeloader.yamlmodel`: parsing

`parse_yaml(source)` parses the first document of a YAML string or byte
string. It returns a dictionary.

- If the top level is not a mapping, it raises
  `ValueError("Top-level object must be a mapping")`.
- Every mapping key must be a string. `convert_to_string_keys` checks this and
  raises a `ValueError` that names the location, for example
  `Non-string key in services: 123` or
  `Non-string key in networks.default.ipam.config[0]: 123`.

Booleans follow YAML 1.2. Only `true`/`false` (any capitalisation of the
first letter, or all caps) are booleans, so `yes` stays a string.
Timestamps are kept as strings.

### `composeloader.reset`: `!reset` and `!override`

`load_documents(source)` yields `(value, processor)` for each document in a
multi-document YAML source.

- Values tagged `!reset` are removed from the document.
- Values tagged `!override` are kept.
- The processor records the path of every tagged value.

`ResetProcessor.apply(model)` removes mapping entries at those recorded paths
from a model that was loaded earlier. It changes the model in place.

A YAML alias that refers back into itself raises
`ValueError("cycle detected at path: ...")`.

### `composeloader.normalize`: normalization

`normalize(model, env)` changes the model in place and returns it. It:

- connects services that have no networks and no `network_mode` to an
  implicit `default` network, and declares that network;
- sets the build defaults `context: .` and `dockerfile: Dockerfile`, unless
  `dockerfile_inline` is given;
- fills unset `environment` entries and build `args` from `env`;
- turns `pull_policy: if_not_present` into `missing`;
- cleans volume `target` paths;
- adds the `depends_on` entries implied by `links`, `volumes_from` and
  `service:` references in `network_mode`, `ipc`, `pid`, `uts` and `cgroup`.
  Dependencies that are already declared are left as they are;
- names networks, volumes, configs and secrets that have no `name`. An
  external resource gets its key as its name. Any other resource gets
  `<project>_<key>`.

`resolve(value, lookup, keep_empty)` is the helper that fills entries. It
takes a list or a mapping and returns `(resolved, keep)`.

### `composeloader.omit_empty`: empty values

- `omit_empty(model)` returns a copy of the model. The copy has no `None` or
  empty-string entries where they mean nothing; at present that is under
  `services.*.dns`.
- `path_matches(path, pattern)` compares dotted paths or sequences of path
  segments. `*` in the pattern matches any one segment.

### `composeloader.paths`: paths

- `abs_path(working_dir, file_path)` resolves `file_path` against
  `working_dir`. A leading `~` is expanded to the home directory.
- `resolve_paths(base_path, values)` applies `abs_path` to each value.
  `None` stays `None`.
- `abs_compose_files(files)` makes every file path absolute.
- `resolve_relative_paths(working_dir, files)` returns the absolute working
  directory together with the absolute file paths.

### `composeloader.naming`: project names, extensions, Windows paths

- `normalize_project_name(name)` lowercases the name and keeps only letters,
  digits, `-` and `_`. It then strips leading `-` and `_`.
- `invalid_project_name_error(name)` builds the `ValueError` reported for a
  name that is not normalized.
- `process_extensions(model, extensions)` moves `x-*` attributes of every
  mapping into an `#extensions` entry of that mapping.
  - Keys that are user-chosen names are left in place: service, volume,
    network, secret and config names, and `depends_on` entries.
  - `extensions` maps an extension name to a callable. The callable converts
    the raw value.
- `convert_volume_path(source)` turns a Windows drive path such as
  `C:\data` into `/c/data`.

### `composeloader.options`: options and resource loaders

- `Options` holds the loading settings as a dataclass.
  - `process_event` calls the registered listeners.
  - `remote_resource_loaders` returns every loader except the local one.
  - `set_project_name` sets the project name and whether the caller chose it
    explicitly.
  - `clone` returns a copy for nested loads.
- `with_discard_env_files`, `with_skip_validation` and `with_profiles(...)`
  are option setters.
- `ConfigFile` and `ConfigDetails` describe the files to load.
- `LocalResourceLoader` resolves local file paths. It accepts every path.
- `CycleTracker.add(filename, service)` follows an `extends` chain. It raises
  `ValueError("Circular reference: ...")` when a reference repeats.
- `load_config_files(files, working_dir, *setters)` passes each file name
  through the resource loaders and returns a `ConfigDetails` of local paths.
  - An empty list raises `FileNotFoundError`.
  - `-` is kept unchanged.

## Example

```python
from composeloader.yamlmodel import parse_yaml
from composeloader.normalize import normalize

model = parse_yaml(b"""
name: myproject
services:
  web:
    image: nginx
    environment:
      - FOO
""")
model = normalize(model, {"FOO": "bar"})

print(model["services"]["web"]["environment"])   # ['FOO=bar']
print(model["networks"]["default"])              # {'name': 'myproject_default'}
```

```python
from composeloader.naming import normalize_project_name

normalize_project_name("_My Project!")   # 'myproject'
```

## What it does not do

There is no single "load a project" entry point, and there is no command-line
tool. The package does not:

- interpolate `${VARIABLE}` references;
- validate against the Compose schema;
- follow `extends` or `include`;
- merge several files together;
- bind the model into typed service objects;
- check a project for consistency, such as undefined networks, volumes or
  dependency cycles.

A caller that needs these steps must provide them. The functions here can be
combined with that code.

## Running the tests

```
pip install -e ".[test]"
pytest
```
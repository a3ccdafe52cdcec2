# condalocate

condalocate finds conda installations and the environments they hold. It reads
`.condarc` files, `~/.conda/environments.txt`, well-known install locations and the
`conda-meta` directory of each environment. Discovery itself does not run conda; only
`CondaInfo.from_executable` and the telemetry helpers that use it start a `conda`
process.

## Installation

```
pip install condalocate
```

## Finding every conda environment

`Reporter` collects what is found in its `managers`, `environments` and `telemetry`
lists. A manager that has already been reported is recorded only once.

```python
from condalocate.locator import Conda, Reporter

conda = Conda()          # reads os.environ, with the current user's home directory
reporter = Reporter()
conda.find(reporter)

for manager in reporter.managers:
    print("manager:", manager.executable, manager.version)
for env in reporter.environments:
    print("env:", env.name, env.prefix, env.version, env.arch)
```

`Conda` also accepts an `EnvVariables` object, built for instance with
`EnvVariables.from_environ(environ, home, root, known_global_search_locations)` from
`condalocate.env_variables`. To take a particular conda executable into account, call
`conda.configure("/path/to/conda")` before `find`.

To handle results as they arrive, subclass `Reporter` and override
`report_manager`, `report_environment` and `report_telemetry`.

An environment is named `base` when it is a conda install, otherwise after its folder.
When the environment does not live inside the install that manages it, its name is
`None`.

## Identifying a single environment

```python
from pathlib import Path
from condalocate.locator import PythonEnv

prefix = Path("/opt/miniconda3/envs/data")
env = conda.try_from(PythonEnv(executable=prefix / "bin" / "python", prefix=prefix))
if env is not None:
    print(env.name, env.version, env.arch, env.manager)
```

If no prefix is given, `try_from` looks at the executable's folder and, when that is
`bin` or `Scripts`, at the folder above it. `find_and_report(reporter, conda_dir)`
reports every environment of one conda install.

## Smaller building blocks

- `condalocate.utils.is_conda_install(path)` and `is_conda_env(path)` check a directory.
- `condalocate.conda_rc.Condarc.from_env_vars(env_vars)` gathers the `envs_dirs` and
  `envs_path` entries of every condarc on the search path (`get_conda_rc_search_paths`);
  `Condarc.from_path(path)` reads one file or directory, and
  `parse_conda_rc_contents(text)` parses YAML text.
- `condalocate.package.CondaPackageInfo.from_path(prefix, Package.PYTHON)` reads the
  version and architecture of a package recorded in `conda-meta`.
- `condalocate.environments.CondaEnvironment.from_path(prefix, None)` describes one
  environment, including the conda install that created it;
  `get_activation_command(env, manager, name)` returns a `conda run` command line.
- `condalocate.manager.CondaManager.from_path(prefix)` finds the conda executable and
  version that manage an environment; `find_conda_binary(env_vars)` searches the PATH.
- `condalocate.environment_locations.get_conda_environment_paths(env_vars, None)` lists
  every environment prefix it can find.
- `condalocate.conda_info.CondaInfo.from_executable("conda")` runs `conda info --json`
  and returns `None` if conda cannot be run or its output cannot be parsed.

## Diagnostics

`Conda.find_and_report_missing_envs(reporter, conda_executable)` asks conda for its own
list of environments and, if some were not discovered, sends a
`MissingCondaEnvironments` event to `reporter.report_telemetry`; it returns `True` when
it did so. `Conda.get_info_for_telemetry(conda_executable)` returns a
`CondaTelemetryInfo` summary of the condarc files, environment directories and
`environments.txt` entries it found.

## What it does not do

condalocate is a library only: it has no command-line tool and no server. It finds
conda environments only; other kinds of Python environment are not reported.

## Running the tests

```
pip install -e ".[test]"
pytest
```
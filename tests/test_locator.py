import json
from pathlib import Path

from condalocate.env_variables import EnvVariables
from condalocate.environments import EnvManagerType, PythonEnvironmentKind
from condalocate.locator import Conda, PythonEnv, Reporter
from condalocate.package import Architecture

PYTHON_BUILD = "hdf0ec26_0_cpython"
CONDA_BUILD = "py310hca03da5_0"


def _make_env(prefix: Path, python_version=None, conda_version=None, extra_history=()):
    meta = prefix / "conda-meta"
    meta.mkdir(parents=True)
    lines = list(extra_history)
    if python_version:
        (prefix / "bin").mkdir(exist_ok=True)
        (prefix / "bin" / "python").write_text("")
        lines.append(f"+conda-forge/linux-64::python-{python_version}-{PYTHON_BUILD}")
        (meta / f"python-{python_version}-{PYTHON_BUILD}.json").write_text(
            json.dumps({"channel": "conda-forge/linux-64", "version": python_version})
        )
    if conda_version:
        (prefix / "bin").mkdir(exist_ok=True)
        (prefix / "bin" / "conda").write_text("")
        lines.append(f"+defaults::conda-{conda_version}-{CONDA_BUILD}")
        (meta / f"conda-{conda_version}-{CONDA_BUILD}.json").write_text(
            json.dumps({"channel": "pkgs/main/linux-64", "version": conda_version})
        )
    (meta / "history").write_text("\n".join(lines) + "\n")


def _make_install(prefix: Path):
    _make_env(prefix, python_version="3.10.9", conda_version="23.1.0")
    (prefix / "condabin").mkdir()
    _make_env(prefix / "envs" / "myenv", python_version="3.12.2")


def _env_vars(tmp_path: Path, home: Path) -> EnvVariables:
    root = tmp_path / "root"
    root.mkdir(exist_ok=True)
    return EnvVariables(home=home, root=root)


def test_find_conda_env_without_manager(tmp_path):
    path = tmp_path / "conda_env_without_manager" / "env_python_3"
    _make_env(path, python_version="3.12.2")
    locator = Conda(EnvVariables())

    env = locator.try_from(PythonEnv(path / "bin" / "python", path))

    assert env.prefix == path
    assert env.arch == Architecture.X64
    assert env.kind == PythonEnvironmentKind.CONDA
    assert env.executable == path / "bin" / "python"
    assert env.version == "3.12.2"
    assert env.manager is None
    assert env.name == "env_python_3"


def test_find_conda_env_without_manager_but_detect_manager_from_history(tmp_path):
    base = tmp_path / "conda_env_without_manager_but_found_in_history"
    conda_dir = base / "some_other_location" / "conda_install"
    _make_env(conda_dir, conda_version="23.1.0")
    (conda_dir / "condabin").mkdir()
    path = base / "env_python_3"
    _make_env(
        path,
        python_version="3.12.2",
        extra_history=[f"# cmd: {conda_dir / 'bin' / 'conda'} create -n env_python_3"],
    )
    locator = Conda(EnvVariables())

    env = locator.try_from(PythonEnv(path / "bin" / "python", path))

    assert env.prefix == path
    assert env.arch == Architecture.X64
    assert env.kind == PythonEnvironmentKind.CONDA
    assert env.executable == path / "bin" / "python"
    assert env.version == "3.12.2"
    assert env.manager.executable == conda_dir / "bin" / "conda"
    assert env.manager.version == "23.1.0"
    assert env.name is None


def test_try_from_derives_prefix_from_executable(tmp_path):
    path = tmp_path / "env"
    _make_env(path, python_version="3.11.4")
    locator = Conda(EnvVariables())

    env = locator.try_from(PythonEnv(path / "bin" / "python"))

    assert env.prefix == path
    assert env.version == "3.11.4"
    assert locator.environments[path] == env


def test_try_from_rejects_non_conda(tmp_path):
    exe = tmp_path / "venv" / "bin" / "python"
    exe.parent.mkdir(parents=True)
    exe.write_text("")
    locator = Conda(EnvVariables())

    assert locator.try_from(PythonEnv(exe, tmp_path / "venv")) is None


def test_try_from_root_install_has_manager_and_base_name(tmp_path):
    install = tmp_path / "miniconda3"
    _make_install(install)
    locator = Conda(EnvVariables())

    env = locator.try_from(PythonEnv(install / "bin" / "python", install))

    assert env.name == "base"
    assert env.manager.tool == EnvManagerType.CONDA
    assert env.manager.executable == install / "bin" / "conda"
    assert env.manager.version == "23.1.0"
    assert env.version == "3.10.9"


def test_supported_categories():
    assert Conda(EnvVariables()).supported_categories() == [PythonEnvironmentKind.CONDA]


def test_find_reports_install_and_envs(tmp_path):
    home = tmp_path / "home"
    install = home / "miniconda3"
    _make_install(install)
    locator = Conda(_env_vars(tmp_path, home))
    reporter = Reporter()

    locator.find(reporter)

    by_prefix = {e.prefix: e for e in reporter.environments}
    base = by_prefix[install]
    myenv = by_prefix[install / "envs" / "myenv"]
    assert base.name == "base"
    assert myenv.name == "myenv"
    assert myenv.version == "3.12.2"
    assert myenv.manager.executable == install / "bin" / "conda"
    assert base.manager == myenv.manager
    assert any(m.executable == install / "bin" / "conda" for m in reporter.managers)
    assert install in locator.managers


def test_find_and_report(tmp_path):
    install = tmp_path / "anaconda3"
    _make_install(install)
    locator = Conda(EnvVariables())
    reporter = Reporter()

    locator.find_and_report(reporter, install)

    prefixes = sorted(e.prefix for e in reporter.environments)
    assert prefixes == [install, install / "envs" / "myenv"]
    assert [m.version for m in reporter.managers] == ["23.1.0"]


def test_find_and_report_ignores_non_install(tmp_path):
    path = tmp_path / "env"
    _make_env(path, python_version="3.12.2")
    locator = Conda(EnvVariables())
    reporter = Reporter()

    locator.find_and_report(reporter, path)

    assert reporter.environments == []
    assert reporter.managers == []


def test_find_and_report_missing_envs_without_conda(tmp_path):
    locator = Conda(EnvVariables())
    reporter = Reporter()

    assert locator.find_and_report_missing_envs(reporter, tmp_path / "no-conda") is False
    assert reporter.telemetry == []


def test_get_info_for_telemetry(tmp_path):
    home = tmp_path / "home"
    install = home / "miniconda3"
    _make_install(install)
    other = tmp_path / "listed_env"
    _make_env(other)
    (home / ".conda").mkdir()
    (home / ".conda" / "environments.txt").write_text(
        f"{other}\n{tmp_path / 'gone'}\n"
    )
    locator = Conda(_env_vars(tmp_path, home))
    locator.configure(install / "bin" / "conda")

    info = locator.get_info_for_telemetry(tmp_path / "no-conda")

    assert info.can_spawn_conda is False
    assert info.environments_txt == home / ".conda" / "environments.txt"
    assert info.environments_txt_exists is True
    assert info.environments_from_txt == [other]
    assert info.user_provided_env_found is True


def test_get_info_for_telemetry_without_home(tmp_path):
    locator = Conda(EnvVariables(root=tmp_path))

    info = locator.get_info_for_telemetry(tmp_path / "no-conda")

    assert info.environments_txt is None
    assert info.environments_txt_exists is None
    assert info.user_provided_env_found is None
    assert info.environments_from_txt == []


def test_reporter_deduplicates_managers(tmp_path):
    install = tmp_path / "miniforge3"
    _make_install(install)
    locator = Conda(EnvVariables())
    reporter = Reporter()

    locator.find_and_report(reporter, install)
    locator.find_and_report(Reporter(), install)

    assert len(reporter.managers) == 1
    assert len(reporter.environments) == 2
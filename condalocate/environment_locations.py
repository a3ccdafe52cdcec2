"""Finding the directories on disk that hold conda installs and environments."""

from __future__ import annotations

import logging
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import platformdirs

from .conda_rc import Condarc, get_conda_rc_search_paths
from .env_variables import EnvVariables
from .utils import expand_path, is_conda_env, is_conda_install, norm_case

logger = logging.getLogger(__name__)

_APP_NAME = "conda"
_INSTALL_NAMES = (
    "anaconda",
    "anaconda3",
    "miniconda",
    "miniconda3",
    "miniforge3",
    "micromamba",
)


def _unique_sorted(paths) -> list[Path]:
    return sorted(set(paths))


def get_conda_environment_paths(env_vars: EnvVariables, conda_executable=None) -> list[Path]:
    """Return every conda environment (install roots included) that can be found."""
    start = time.monotonic()
    sources = (
        lambda: get_conda_envs_from_environment_txt(env_vars),
        lambda: _get_conda_environment_paths_from_conda_rc(env_vars),
        lambda: _get_conda_environment_paths_from_known_paths(env_vars),
        lambda: get_known_conda_install_locations(env_vars, conda_executable),
    )
    candidates: list[Path] = []
    with ThreadPoolExecutor() as pool:
        for found in pool.map(lambda source: source(), sources):
            candidates.extend(found)

    candidates = _unique_sorted(norm_case(p) for p in candidates)
    existing = [p for p in candidates if p.exists()]

    result: list[Path] = []
    if existing:
        with ThreadPoolExecutor() as pool:
            for envs in pool.map(get_environments, existing):
                result.extend(envs)

    result = _unique_sorted(result)
    logger.debug(
        "Time taken to get conda environment paths: %.3fs", time.monotonic() - start
    )
    return result


def _get_conda_environment_paths_from_conda_rc(env_vars: EnvVariables) -> list[Path]:
    """Environment dirs listed in condarc files, plus the folders holding those files."""
    env_dirs: list[Path] = []
    for rc_location in get_conda_rc_search_paths(env_vars):
        if not rc_location.exists():
            continue
        conda_rc = Condarc.from_path(rc_location)
        if conda_rc is not None:
            logger.debug(
                "Conda environments in .condarc %s %s", conda_rc.files, conda_rc.env_dirs
            )
            env_dirs.extend(d for d in conda_rc.env_dirs if d.exists())
        if rc_location.is_dir():
            env_dirs.append(rc_location)
        elif rc_location.is_file():
            env_dirs.append(rc_location.parent)

    conda_rc = Condarc.from_env_vars(env_vars)
    if conda_rc is not None:
        logger.debug(
            "Conda environments in .condarc %s %s", conda_rc.files, conda_rc.env_dirs
        )
        env_dirs.extend(conda_rc.env_dirs)
    else:
        logger.debug("No Conda environments in .condarc")
    return env_dirs


def _split_search_path(value: str) -> list[Path]:
    return [expand_path(entry) for entry in value.split(os.pathsep) if entry]


def _get_conda_environment_paths_from_known_paths(env_vars: EnvVariables) -> list[Path]:
    env_paths: list[Path] = []
    if env_vars.home is not None:
        home = Path(env_vars.home)
        known = [
            home / relative
            for relative in (
                ".conda/envs",
                "/opt/conda/envs",
                "C:/Anaconda/envs",
                "AppData/Local/conda/envs",
                "AppData/Local/conda/conda/envs",
                "envs",
                "my-envs",
            )
        ]
        user_data_dir = platformdirs.user_data_dir(_APP_NAME, appauthor=False)
        if user_data_dir:
            known.append(Path(user_data_dir) / "envs")
        if env_vars.conda_envs_path is not None:
            known.extend(_split_search_path(env_vars.conda_envs_path))
        if env_vars.anaconda_project_envs_path is not None:
            known.extend(_split_search_path(env_vars.anaconda_project_envs_path))
        if env_vars.project_dir is not None:
            known.append(expand_path(env_vars.project_dir))

        for directory in known:
            try:
                entries = list(directory.iterdir())
            except OSError:
                continue
            env_paths.extend(entry for entry in entries if entry.is_dir())

    env_paths.extend(Path(p) for p in env_vars.known_global_search_locations)
    env_paths = [p for p in _unique_sorted(env_paths) if p.exists()]
    logger.debug("Conda environments in known paths %s", env_paths)
    return env_paths


def _conda_envs_in(directory: Path) -> list[Path]:
    try:
        entries = list(directory.iterdir())
    except OSError:
        return []
    return [entry for entry in entries if is_conda_env(entry)]


def get_environments(conda_dir) -> list[Path]:
    """Return the conda environments at or directly under ``conda_dir``.

    ``conda_dir`` may be an install (its base env, the envs in ``envs`` and
    those listed in its condarc), a single env, a folder holding ``envs``, or
    an ``envs`` folder itself.
    """
    conda_dir = Path(conda_dir)
    envs: list[Path] = []
    if is_conda_install(conda_dir):
        envs.append(conda_dir)
        envs.extend(_conda_envs_in(conda_dir / "envs"))
        conda_rc = Condarc.from_path(conda_dir)
        if conda_rc is not None:
            envs.extend(conda_rc.env_dirs)
    elif is_conda_env(conda_dir):
        envs.append(conda_dir)
    elif (conda_dir / "envs").exists():
        envs.extend(_conda_envs_in(conda_dir / "envs"))
    else:
        envs.extend(_conda_envs_in(conda_dir))
    return _unique_sorted(envs)


def get_conda_envs_from_environment_txt(env_vars: EnvVariables) -> list[Path]:
    """Return the existing environments listed in ``~/.conda/environments.txt``."""
    if env_vars.home is None:
        return []
    environment_txt = Path(env_vars.home) / ".conda" / "environments.txt"
    try:
        contents = environment_txt.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []
    logger.debug("Found environments.txt file %s", environment_txt)
    envs: list[Path] = []
    for line in contents.splitlines():
        if not line:
            continue
        env = norm_case(Path(line))
        logger.debug("Conda env in environments.txt file %s", env)
        if env.exists():
            envs.append(env)
    return envs


def _env_var_locations(env_vars: EnvVariables, include_mamba: bool) -> list[Path]:
    values = [env_vars.conda_root, env_vars.conda_prefix]
    if include_mamba:
        values.append(env_vars.mamba_root_prefix)
    values.extend([env_vars.conda_dir, env_vars.conda])
    return [expand_path(v) for v in values if v is not None]


def _windows_install_locations(env_vars: EnvVariables, conda_executable) -> list[Path]:
    system_drive = os.environ.get("SYSTEMDRIVE", "C")
    known: list[Path] = []
    for value in (env_vars.programdata, env_vars.allusersprofile, env_vars.userprofile):
        if value:
            base = Path(value)
            known.extend(
                base / n for n in ("anaconda3", "miniconda3", "miniforge3", "micromamba")
            )
    home_drive = env_vars.homedrive or ""
    if home_drive:
        if home_drive.endswith(":"):
            home_drive = f"{home_drive}\\"
        base = Path(home_drive)
        known.extend(
            base / n for n in ("anaconda3", "miniconda", "miniforge3", "micromamba")
        )
    known.extend(_env_var_locations(env_vars, include_mamba=False))

    app_data = Path(os.environ.get("LOCALAPPDATA", ""))
    if env_vars.home is not None:
        home = Path(env_vars.home)
        prefixes = [
            home,
            home / ".conda",
            home / ".local",
            Path("C:\\ProgramData"),
            Path(f"{system_drive}:\\ProgramData"),
            Path("C:\\"),
            Path(f"{system_drive}:\\"),
            app_data,
        ]
        for prefix in prefixes:
            known.extend(prefix / n for n in _INSTALL_NAMES)
        known.append(Path("C:\\ProgramData\\conda\\conda"))
        known.append(Path(f"{system_drive}:\\ProgramData\\conda\\conda"))
        known.append(home / ".conda")
        known.append(home / ".local")
        known.append(app_data / "conda" / "conda")
        known.append(home / "AppData" / "Local" / "conda" / "conda")

    # Keep the on-disk casing so the same folder is not reported twice.
    known = [norm_case(p) for p in _unique_sorted(known)]
    conda_dir = get_conda_dir_from_exe(conda_executable)
    if conda_dir is not None:
        known.append(conda_dir)
    return _unique_sorted(known)


def _unix_install_locations(env_vars: EnvVariables, conda_executable) -> list[Path]:
    known = [
        Path(p)
        for p in (
            "/anaconda",
            "/anaconda3",
            "/miniconda",
            "/miniconda3",
            "/miniforge",
            "/miniforge3",
            "/micromamba",
        )
    ]
    known.extend(_env_var_locations(env_vars, include_mamba=True))
    if env_vars.home is not None:
        home = Path(env_vars.home)
        prefixes = [
            home,
            home / "opt",
            home / ".conda",
            home / ".local",
            Path("/opt"),
            Path("/usr/share"),
            Path("/usr/local"),
            Path("/usr"),
        ]
        if sys.platform == "darwin":
            prefixes.append(Path("/opt/homebrew"))
        else:
            prefixes.append(Path("/home/linuxbrew/.linuxbrew"))
        for prefix in prefixes:
            known.extend(prefix / n for n in _INSTALL_NAMES)
        known.append(Path("/opt") / "conda")
        known.append(home / ".conda")
        known.append(home / ".local")
    conda_dir = get_conda_dir_from_exe(conda_executable)
    if conda_dir is not None:
        known.append(conda_dir)
    return [p for p in _unique_sorted(known) if p.exists()]


def get_known_conda_install_locations(env_vars: EnvVariables, conda_executable=None) -> list[Path]:
    """Return the usual places where conda installations live."""
    if os.name == "nt":
        return _windows_install_locations(env_vars, conda_executable)
    return _unix_install_locations(env_vars, conda_executable)


def get_conda_dir_from_exe(conda_executable) -> Path | None:
    """Return the conda install holding ``conda_executable``, if it can be told."""
    if conda_executable is None:
        return None
    conda_executable = Path(conda_executable)
    # The executable sits either in the root prefix or in its bin/Scripts folder.
    start = conda_executable.parent if conda_executable.is_file() else conda_executable
    if is_conda_env(start):
        return start
    parent = start.parent
    if parent != start and is_conda_env(parent):
        return parent
    return None
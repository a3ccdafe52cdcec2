"""Telemetry about conda environments that discovery failed to find."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .conda_info import CondaInfo
from .conda_rc import Condarc
from .env_variables import EnvVariables
from .environments import (
    PythonEnvironment,
    PythonEnvironmentKind,
    get_conda_environment_info,
)
from .manager import CondaManager
from .utils import is_conda_install

logger = logging.getLogger(__name__)


@dataclass
class MissingCondaEnvironments:
    """Counts describing environments conda knows of but discovery missed."""

    missing: int = 0
    env_dirs_not_found: int | None = None
    user_provided_conda_exe: bool | None = None
    root_prefix_not_found: bool | None = None
    conda_prefix_not_found: bool | None = None
    conda_manager_not_found: bool | None = None
    sys_rc_not_found: bool | None = None
    user_rc_not_found: bool | None = None
    other_rc_not_found: int | None = None
    missing_env_dirs_from_sys_rc: int | None = None
    missing_env_dirs_from_user_rc: int | None = None
    missing_env_dirs_from_other_rc: int | None = None
    missing_from_sys_rc_env_dirs: int | None = None
    missing_from_user_rc_env_dirs: int | None = None
    missing_from_other_rc_env_dirs: int | None = None


def report_missing_envs(
    reporter,
    env_vars: EnvVariables,
    possibly_missing_envs,
    known_envs: list[PythonEnvironment],
    conda_info: CondaInfo,
    user_provided_conda_exe: bool,
) -> MissingCondaEnvironments:
    """Analyse why environments were missed and send the result to ``reporter``.

    ``reporter`` needs a ``report_telemetry(event)`` method; the event sent is
    also returned.
    """
    missing_envs = (
        _log_and_find_missing_envs(possibly_missing_envs, known_envs, conda_info) or []
    )
    known_conda_rcs = _get_all_known_conda_rc(env_vars, known_envs)
    conda_manager_not_found = not any(
        e.kind == PythonEnvironmentKind.CONDA and e.manager is not None
        for e in known_envs
    )
    discovered_conda_rcs = {f for rc in known_conda_rcs for f in rc.files}
    discovered_env_dirs = {d for rc in known_conda_rcs for d in rc.env_dirs}
    known_env_prefixes = {e.prefix for e in known_envs if e.prefix is not None}

    root_prefix_not_found = False
    conda_prefix_not_found = False
    if conda_info.root_prefix is not None and conda_info.root_prefix not in known_env_prefixes:
        logger.warning("Root prefix %s not found", conda_info.root_prefix)
        root_prefix_not_found = True
    if (
        conda_info.conda_prefix is not None
        and conda_info.conda_prefix not in known_env_prefixes
    ):
        logger.warning("Conda prefix %s not found", conda_info.conda_prefix)
        conda_prefix_not_found = True

    conda_env_dirs: list[Path] = []
    sources = (
        ("sys", [conda_info.sys_rc_path] if conda_info.sys_rc_path else []),
        ("user", [conda_info.user_rc_path] if conda_info.user_rc_path else []),
        ("other", conda_info.config_files),
    )
    counts = {}
    for config_type, config_files in sources:
        rc_not_found, missing_from_rc, missing_dirs, env_dirs = _count_missing_envs(
            discovered_conda_rcs,
            discovered_env_dirs,
            missing_envs,
            config_files,
            config_type,
        )
        counts[config_type] = (rc_not_found, missing_from_rc, missing_dirs)
        conda_env_dirs.extend(env_dirs)

    missing_conda_env_dirs = len(set(conda_env_dirs) - discovered_env_dirs)
    sys_counts, user_counts, other_counts = counts["sys"], counts["user"], counts["other"]

    # Zero counts and false flags are reported as absent (None).
    event = MissingCondaEnvironments(
        missing=len(missing_envs),
        env_dirs_not_found=missing_conda_env_dirs or None,
        user_provided_conda_exe=True if user_provided_conda_exe else None,
        root_prefix_not_found=True if root_prefix_not_found else None,
        conda_prefix_not_found=True if conda_prefix_not_found else None,
        conda_manager_not_found=True if conda_manager_not_found else None,
        sys_rc_not_found=True if sys_counts[0] > 0 else None,
        user_rc_not_found=True if user_counts[0] > 0 else None,
        other_rc_not_found=other_counts[0] or None,
        missing_env_dirs_from_sys_rc=sys_counts[2] or None,
        missing_env_dirs_from_user_rc=user_counts[2] or None,
        missing_env_dirs_from_other_rc=other_counts[2] or None,
        missing_from_sys_rc_env_dirs=sys_counts[1] or None,
        missing_from_user_rc_env_dirs=user_counts[1] or None,
        missing_from_other_rc_env_dirs=other_counts[1] or None,
    )
    reporter.report_telemetry(event)
    return event


def get_conda_rcs_and_env_dirs(
    env_vars: EnvVariables, known_envs: list[PythonEnvironment]
) -> tuple[list[Path], list[Path]]:
    """Return the condarc files found and the environment directories they list."""
    known_conda_rcs = _get_all_known_conda_rc(env_vars, known_envs)
    files = [f for rc in known_conda_rcs for f in rc.files]
    env_dirs = [d for rc in known_conda_rcs for d in rc.env_dirs]
    return files, env_dirs


def _log_and_find_missing_envs(
    possibly_missing_envs, known_envs: list[PythonEnvironment], conda_info: CondaInfo
) -> list[Path] | None:
    missing_envs = [Path(p) for p in possibly_missing_envs]
    if not missing_envs:
        return None
    known_prefixes = [e.prefix for e in known_envs if e.prefix is not None]
    manager = CondaManager.from_info(conda_info.executable, conda_info)
    for path in list(missing_envs):
        if path in known_prefixes:
            continue
        env = get_conda_environment_info(path, manager)
        if env is not None:
            logger.warning(
                "Failed to find conda env %s without spawning conda %s",
                env.prefix,
                conda_info.executable,
            )
        else:
            missing_envs = [p for p in missing_envs if p != path]
    return missing_envs or None


def _get_all_known_conda_rc(
    env_vars: EnvVariables, known_envs: list[PythonEnvironment]
) -> list[Condarc]:
    conda_rcs = []
    rc = Condarc.from_env_vars(env_vars)
    if rc is not None:
        conda_rcs.append(rc)
    for env in known_envs:
        if env.prefix is None or not is_conda_install(env.prefix):
            continue
        rc = Condarc.from_path(env.prefix)
        if rc is not None:
            conda_rcs.append(rc)
    return conda_rcs


def _count_missing_envs(
    discovered_conda_rcs: set[Path],
    discovered_env_dirs: set[Path],
    missing_envs: list[Path],
    config_files,
    config_type: str,
) -> tuple[int, int, int, list[Path]]:
    conda_rc_not_found = 0
    missing_from_rc_env_dirs = 0
    missing_env_dirs_from_rc = 0
    env_dirs: list[Path] = []

    for rc in (Path(f) for f in config_files):
        if not rc.exists() or rc in discovered_conda_rcs:
            continue
        discovered_conda_rcs.add(rc)
        conda_rc_not_found += 1
        logger.warning("%s Conda condarc not found: %s", config_type, rc)

        cfg = Condarc.from_path(rc)
        if cfg is None:
            continue
        for env_dir in (d for d in cfg.env_dirs if d.exists()):
            env_dirs.append(env_dir)
            if env_dir not in discovered_env_dirs:
                missing_env_dirs_from_rc += 1
                logger.warning(
                    "Environment dir %s is missing from %s rc env dirs",
                    env_dir,
                    config_type,
                )
            for env in missing_envs:
                if env.is_relative_to(env_dir):
                    missing_from_rc_env_dirs += 1
                    logger.warning(
                        "Environment %s is missing from %s rc env dirs",
                        env,
                        config_type,
                    )

    return conda_rc_not_found, missing_from_rc_env_dirs, missing_env_dirs_from_rc, env_dirs
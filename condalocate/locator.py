"""Locating conda environments and reporting them along with their managers."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .conda_info import CondaInfo
from .env_variables import EnvVariables
from .environment_locations import (
    get_conda_dir_from_exe,
    get_conda_environment_paths,
    get_conda_envs_from_environment_txt,
    get_environments,
)
from .environments import (
    CondaEnvironment,
    EnvManager,
    PythonEnvironment,
    PythonEnvironmentKind,
    get_conda_environment_info,
)
from .manager import CondaManager
from .telemetry import get_conda_rcs_and_env_dirs, report_missing_envs
from .utils import is_conda_env, is_conda_install, norm_case

logger = logging.getLogger(__name__)


class Reporter:
    """Thread-safe collector of discovered managers, environments and telemetry.

    A manager already reported is not recorded a second time.
    """

    def __init__(self) -> None:
        self.managers: list[EnvManager] = []
        self.environments: list[PythonEnvironment] = []
        self.telemetry: list[object] = []
        self._lock = threading.Lock()

    def report_manager(self, manager: EnvManager) -> None:
        """Record an environment manager."""
        with self._lock:
            if manager not in self.managers:
                self.managers.append(manager)

    def report_environment(self, env: PythonEnvironment) -> None:
        """Record a discovered environment."""
        with self._lock:
            self.environments.append(env)

    def report_telemetry(self, event) -> None:
        """Record a telemetry event."""
        with self._lock:
            self.telemetry.append(event)


@dataclass
class PythonEnv:
    """A Python interpreter to identify, optionally with its prefix and version."""

    executable: Path
    prefix: Path | None = None
    version: str | None = None

    def __post_init__(self) -> None:
        self.executable = Path(self.executable)
        if self.prefix is not None:
            self.prefix = Path(self.prefix)


@dataclass
class CondaTelemetryInfo:
    """Diagnostic information about conda discovery."""

    can_spawn_conda: bool
    conda_rcs: list[Path] = field(default_factory=list)
    env_dirs: list[Path] = field(default_factory=list)
    environments_txt: Path | None = None
    environments_txt_exists: bool | None = None
    user_provided_env_found: bool | None = None
    environments_from_txt: list[Path] = field(default_factory=list)


class Conda:
    """Locator for conda environments and the conda installs managing them."""

    def __init__(self, env_vars: EnvVariables | None = None) -> None:
        if env_vars is None:
            env_vars = EnvVariables.from_environ(home=Path.home())
        self.env_vars = env_vars
        self.environments: dict[Path, PythonEnvironment] = {}
        self.managers: dict[Path, CondaManager] = {}
        self._conda_executable: Path | None = None
        self._lock = threading.RLock()

    def _clear(self) -> None:
        with self._lock:
            self.environments.clear()
            self.managers.clear()

    def configure(self, conda_executable) -> None:
        """Use ``conda_executable`` as the user's conda; None leaves it unchanged."""
        if conda_executable is not None:
            with self._lock:
                self._conda_executable = Path(conda_executable)

    def supported_categories(self) -> list[PythonEnvironmentKind]:
        """Return the kinds of environment this locator reports."""
        return [PythonEnvironmentKind.CONDA]

    def _get_manager(self, conda_dir: Path) -> CondaManager | None:
        with self._lock:
            manager = self.managers.get(conda_dir)
            if manager is not None:
                return manager
            manager = CondaManager.from_path(conda_dir)
            if manager is not None:
                self.managers[conda_dir] = manager
            return manager

    def try_from(self, env: PythonEnv) -> PythonEnvironment | None:
        """Identify ``env`` as a conda environment; None if it is not one."""
        prefix = env.prefix
        if prefix is None:
            parent = env.executable.parent
            if is_conda_env(parent):
                # Executable in the prefix itself, as in a Windows root install.
                prefix = parent
            elif parent.name in ("bin", "Scripts") and is_conda_env(parent.parent):
                prefix = parent.parent
        if prefix is None or not is_conda_env(prefix):
            return None

        with self._lock:
            known = self.environments.get(prefix)
            if known is not None:
                return known
            conda_env = get_conda_environment_info(prefix)
            if conda_env is None:
                return None
            conda_dir = conda_env.conda_dir
            if conda_dir is None:
                logger.error("Unable to find Conda Manager for env: %s", conda_env)
                result = conda_env.to_python_environment(None, None)
            else:
                manager = self._get_manager(conda_dir)
                if manager is None:
                    logger.error(
                        "Unable to find Conda Manager for env (even though we have a conda_dir): %s",
                        conda_env,
                    )
                    result = conda_env.to_python_environment(conda_dir, None)
                else:
                    result = conda_env.to_python_environment(
                        conda_dir, manager.to_manager()
                    )
            self.environments[prefix] = result
            return result

    def _store(self, prefix: Path, env: PythonEnvironment) -> None:
        with self._lock:
            self.environments[prefix] = env

    def _find_in_path(self, reporter: Reporter, path: Path) -> None:
        conda_env = get_conda_environment_info(path)
        if conda_env is None:
            return
        prefix = conda_env.prefix
        conda_dir = conda_env.conda_dir

        if conda_dir is None:
            # Reported even without a manager: clients can activate it by other means.
            logger.error("Unable to find Conda Manager for the Conda env: %s", conda_env)
            env = conda_env.to_python_environment(None, None)
            self._store(prefix, env)
            reporter.report_environment(env)
            return

        with self._lock:
            if prefix in self.environments:
                return
            manager = self.managers.get(conda_dir)

        if manager is None:
            manager = CondaManager.from_path(conda_dir)
            if manager is not None:
                with self._lock:
                    self.managers[conda_dir] = manager

        if manager is not None:
            env = conda_env.to_python_environment(
                manager.conda_dir, manager.to_manager()
            )
            self._store(prefix, env)
            reporter.report_manager(manager.to_manager())
            reporter.report_environment(env)
        else:
            logger.error(
                "Unable to find Conda Manager for Conda env (even though we have a conda_dir %s): %s",
                conda_dir,
                conda_env,
            )
            env = conda_env.to_python_environment(conda_dir, None)
            self._store(prefix, env)
            reporter.report_environment(env)

    def find(self, reporter: Reporter) -> None:
        """Discover every conda environment and report it, clearing earlier results."""
        self._clear()
        with self._lock:
            executable = self._conda_executable
        paths = get_conda_environment_paths(self.env_vars, executable)
        if not paths:
            return
        with ThreadPoolExecutor() as pool:
            futures = [pool.submit(self._find_in_path, reporter, p) for p in paths]
        for future in futures:
            error = future.exception()
            if error is not None:
                logger.error("Failed to inspect conda environment: %s", error)

    def find_and_report(self, reporter: Reporter, conda_dir) -> None:
        """Report the environments of the conda install at ``conda_dir``."""
        conda_dir = Path(conda_dir)
        if not is_conda_install(conda_dir):
            return
        manager = CondaManager.from_path(conda_dir)
        if manager is None or manager.conda_dir is None:
            return
        install_dir = manager.conda_dir
        with self._lock:
            self.managers[install_dir] = manager

        for conda_env in _get_conda_environments(get_environments(install_dir), manager):
            with self._lock:
                if conda_env.prefix in self.environments:
                    continue
                env = conda_env.to_python_environment(install_dir, manager.to_manager())
                self.environments[conda_env.prefix] = env
            reporter.report_manager(manager.to_manager())
            reporter.report_environment(env)

    def find_and_report_missing_envs(self, reporter: Reporter, conda_executable=None) -> bool:
        """Ask conda for its environments and report telemetry on any not found.

        Returns True when telemetry was reported.
        """
        user_provided_conda_exe = conda_executable is not None
        conda_info = CondaInfo.from_executable(conda_executable)
        if conda_info is None:
            return False
        with self._lock:
            environments = dict(self.environments)
        new_envs = [p for p in conda_info.envs if p not in environments]
        if not new_envs:
            return False
        report_missing_envs(
            reporter,
            self.env_vars,
            new_envs,
            list(environments.values()),
            conda_info,
            user_provided_conda_exe,
        )
        return True

    def get_info_for_telemetry(self, conda_executable=None) -> CondaTelemetryInfo:
        """Gather diagnostic information about conda discovery."""
        can_spawn_conda = CondaInfo.from_executable(conda_executable) is not None
        with self._lock:
            environments = list(self.environments.values())
            configured_exe = self._conda_executable
        conda_rcs, env_dirs = get_conda_rcs_and_env_dirs(self.env_vars, environments)

        environments_txt = None
        environments_txt_exists = None
        if self.env_vars.home is not None:
            environments_txt = Path(self.env_vars.home) / ".conda" / "environments.txt"
            environments_txt_exists = environments_txt.exists()

        envs_found = get_conda_environment_paths(self.env_vars, configured_exe)
        user_provided_env_found = None
        conda_dir = get_conda_dir_from_exe(configured_exe)
        if conda_dir is not None:
            user_provided_env_found = norm_case(conda_dir) in envs_found

        return CondaTelemetryInfo(
            can_spawn_conda=can_spawn_conda,
            conda_rcs=conda_rcs,
            env_dirs=env_dirs,
            environments_txt=environments_txt,
            environments_txt_exists=environments_txt_exists,
            user_provided_env_found=user_provided_env_found,
            environments_from_txt=get_conda_envs_from_environment_txt(self.env_vars),
        )


def _get_conda_environments(paths, manager: CondaManager | None) -> list[CondaEnvironment]:
    paths = list(paths)
    if not paths:
        return []
    with ThreadPoolExecutor() as pool:
        found = pool.map(lambda p: get_conda_environment_info(p, manager), paths)
        return [env for env in found if env is not None]
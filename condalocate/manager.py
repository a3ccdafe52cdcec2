"""Locating the conda executable that manages an environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .conda_info import CondaInfo
from .env_variables import EnvVariables
from .environments import (
    EnvManager,
    EnvManagerType,
    get_conda_installation_used_to_create_conda_env,
)
from .package import CondaPackageInfo, Package
from .utils import is_conda_env


def _relative_conda_executables() -> list[Path]:
    if os.name == "nt":
        return [Path("Scripts") / "conda.exe", Path("Scripts") / "conda.bat"]
    return [Path("bin") / "conda"]


def _conda_bin_names() -> list[str]:
    if os.name == "nt":
        return ["conda.exe", "conda.bat"]
    return ["conda"]


def get_conda_executable(path) -> Path | None:
    """Return the conda executable inside the install directory ``path``."""
    path = Path(path)
    for relative in _relative_conda_executables():
        exe = path / relative
        if exe.exists():
            return exe
    return None


def find_conda_binary(env_vars: EnvVariables) -> Path | None:
    """Find the conda binary on the PATH held in ``env_vars``."""
    if env_vars.path is None:
        return None
    for entry in env_vars.path.split(os.pathsep):
        for name in _conda_bin_names():
            candidate = Path(entry) / name
            if candidate.is_file() or candidate.is_symlink():
                return candidate
    return None


def _grand_parent(path: Path) -> Path | None:
    parent = path.parent
    if parent == path:
        return None
    grand_parent = parent.parent
    if grand_parent == parent:
        return None
    return grand_parent


@dataclass
class CondaManager:
    """A conda executable together with its version and install directory."""

    executable: Path
    version: str | None = None
    conda_dir: Path | None = None

    def to_manager(self) -> EnvManager:
        """Return the generic manager description of this conda."""
        return EnvManager(
            tool=EnvManagerType.CONDA, executable=self.executable, version=self.version
        )

    @classmethod
    def from_path(cls, path) -> CondaManager | None:
        """Find the conda that manages the environment at ``path``."""
        path = Path(path)
        if not is_conda_env(path):
            return None
        manager = _get_conda_manager(path)
        if manager is not None:
            return manager
        # Possibly an environment inside the install's `envs` folder.
        path = _grand_parent(path)
        if path is None:
            return None
        manager = _get_conda_manager(path)
        if manager is not None:
            return manager
        conda_dir = get_conda_installation_used_to_create_conda_env(path)
        if conda_dir is None:
            return None
        return _get_conda_manager(conda_dir)

    @classmethod
    def from_info(cls, executable, info: CondaInfo) -> CondaManager:
        """Build a manager from the output of ``conda info``."""
        return cls(
            executable=Path(executable),
            version=info.conda_version,
            conda_dir=info.conda_prefix,
        )


def _get_conda_manager(path: Path) -> CondaManager | None:
    exe = get_conda_executable(path)
    if exe is None:
        return None
    package = CondaPackageInfo.from_path(path, Package.CONDA)
    if package is None:
        return None
    return CondaManager(executable=exe, version=package.version, conda_dir=path)
"""Describing conda environments and the installation that created them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .package import Architecture, CondaPackageInfo, Package
from .utils import (
    find_executable,
    find_executables,
    is_conda_env,
    is_conda_install,
    norm_case,
    resolve_symlink,
)

logger = logging.getLogger(__name__)


class EnvManagerType(Enum):
    """Tools that manage Python environments."""

    CONDA = "Conda"


@dataclass
class EnvManager:
    """An environment manager executable and its version."""

    tool: EnvManagerType
    executable: Path
    version: str | None = None


class PythonEnvironmentKind(Enum):
    """Kinds of Python environment that can be reported."""

    CONDA = "Conda"


@dataclass
class PythonEnvironment:
    """A discovered Python environment as reported to clients."""

    kind: PythonEnvironmentKind | None = None
    name: str | None = None
    executable: Path | None = None
    version: str | None = None
    prefix: Path | None = None
    arch: Architecture | None = None
    symlinks: list[Path] | None = None
    manager: EnvManager | None = None


@dataclass
class CondaEnvironment:
    """A conda environment found on disk."""

    prefix: Path
    executable: Path | None = None
    version: str | None = None
    conda_dir: Path | None = None
    arch: Architecture | None = None
    _extra: dict = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_path(cls, path, manager=None) -> CondaEnvironment | None:
        """Inspect the directory ``path``; None if it is not a conda environment."""
        return get_conda_environment_info(path, manager)

    def to_python_environment(
        self, conda_dir=None, conda_manager: EnvManager | None = None
    ) -> PythonEnvironment:
        """Convert to a reportable environment.

        A name is only given when the environment lives inside ``conda_dir``,
        since only then can it be activated by name.
        """
        if is_conda_install(self.prefix):
            name: str | None = "base"
        else:
            name = self.prefix.name
        if conda_dir is not None and not self.prefix.is_relative_to(Path(conda_dir)):
            name = None
        return PythonEnvironment(
            kind=PythonEnvironmentKind.CONDA,
            name=name,
            executable=self.executable,
            version=self.version,
            prefix=self.prefix,
            arch=self.arch,
            symlinks=find_executables(self.prefix),
            manager=conda_manager,
        )


def get_conda_environment_info(env_path, manager=None) -> CondaEnvironment | None:
    """Gather details of the conda environment at ``env_path``.

    ``manager`` may be any object with a ``conda_dir`` attribute; when it
    names an installation that one is used instead of searching for it.
    """
    env_path = Path(env_path)
    if not is_conda_env(env_path):
        return None

    conda_dir = getattr(manager, "conda_dir", None) if manager is not None else None
    if conda_dir is None:
        conda_dir = get_conda_installation_used_to_create_conda_env(env_path)
    else:
        conda_dir = Path(conda_dir)

    if conda_dir is not None:
        if conda_dir.exists():
            logger.debug("Conda install folder %s found for env %s", conda_dir, env_path)
        else:
            logger.warning(
                "Conda install folder %s does not exist, hence will not be used for %s",
                conda_dir,
                env_path,
            )
            conda_dir = None
    else:
        logger.debug("Conda install folder not found for %s", env_path)

    executable = find_executable(env_path)
    if executable is None:
        return CondaEnvironment(prefix=env_path, conda_dir=conda_dir)
    package = CondaPackageInfo.from_path(env_path, Package.PYTHON)
    if package is None:
        return CondaEnvironment(prefix=env_path, executable=executable, conda_dir=conda_dir)
    return CondaEnvironment(
        prefix=env_path,
        executable=executable,
        version=package.version,
        conda_dir=conda_dir,
        arch=package.arch,
    )


def get_conda_installation_used_to_create_conda_env(env_path) -> Path | None:
    """Return the conda installation that created the environment at ``env_path``.

    The install is recognised when ``env_path`` is the install itself, when it
    sits in the install's ``envs`` folder, or from the ``# cmd:`` line in
    ``conda-meta/history``.
    """
    env_path = Path(env_path)
    if is_conda_install(env_path):
        return env_path

    parents = env_path.parents
    if len(parents) >= 2 and is_conda_install(parents[1]):
        return parents[1]

    try:
        history = (env_path / "conda-meta" / "history").read_text(
            encoding="utf-8", errors="replace"
        )
    except OSError:
        return None
    for raw in history.splitlines():
        line = raw.strip()
        lower = line.lower()
        if lower.startswith("# cmd:") and " create -" in lower:
            conda_dir = get_conda_dir_from_cmd(line)
            if conda_dir is not None and is_conda_install(conda_dir):
                return conda_dir
            break
    return None


def get_conda_dir_from_cmd(cmd_line: str) -> Path | None:
    """Derive a conda install directory from a ``# cmd: ... create -...`` history line."""
    lower = cmd_line.lower()
    marker = lower.find("# cmd:")
    end = lower.find(" create -")
    if marker < 0 or end < 0:
        return None
    start = marker + len("# cmd:")
    exe_text = cmd_line[start:end].strip()
    if not exe_text:
        return None
    conda_exe = Path(exe_text)
    conda_exe = resolve_symlink(conda_exe) or conda_exe

    parent = conda_exe.parent
    if not parent.name:
        return None
    if parent.name.lower() in ("bin", "scripts"):
        return norm_case(parent.parent)

    # e.g. <install>/lib/python3.10/site-packages/conda/__main__.py
    text = str(parent)
    if "site-packages" in text and "lib" in text:
        while "lib" in str(parent) and not str(parent).endswith("lib"):
            if parent.parent == parent:
                break
            parent = parent.parent
        if parent.name == "lib":
            parent = parent.parent
    return norm_case(parent)


def get_activation_command(
    env: CondaEnvironment, manager: EnvManager, name: str | None = None
) -> list[str]:
    """Return the command line that runs Python inside ``env`` via conda."""
    conda_exe = str(manager.executable)
    if name is not None:
        return [conda_exe, "run", "-n", name, "python"]
    return [conda_exe, "run", "-p", str(env.prefix), "python"]
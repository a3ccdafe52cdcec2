"""Filesystem helpers for recognising conda installs and environments."""

from __future__ import annotations

import os
import re
from pathlib import Path

_PYTHON_EXE = re.compile(r"^python(\d+(\.\d+)?)?(\.exe)?$", re.IGNORECASE)


def _is_windows() -> bool:
    return os.name == "nt"


def _looks_like_install(path: Path) -> bool:
    return ((path / "condabin").exists() or (path / "envs").exists()) and (
        path / "conda-meta"
    ).exists()


def is_conda_install(path) -> bool:
    """Return True if ``path`` is the root directory of a conda installation."""
    path = Path(path)
    if not _looks_like_install(path):
        return False
    # An ordinary env can carry a condabin or envs folder too; if its
    # grandparent is an install, this directory is just an env inside it.
    grand_parent = path.parent.parent
    if grand_parent != path.parent and _looks_like_install(grand_parent):
        return False
    return True


def is_conda_env(path) -> bool:
    """Return True if ``path`` is a conda environment (the base env included)."""
    return (Path(path) / "conda-meta").is_dir()


def change_root_of_path(path, new_root) -> Path:
    """Re-anchor an absolute path under ``new_root``; used to sandbox system paths."""
    path = Path(path)
    if _is_windows() or new_root is None:
        return path
    return Path(new_root) / str(path)[1:]


def expand_path(path) -> Path:
    """Expand a leading ``~`` and environment variables in ``path``."""
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def norm_case(path) -> Path:
    """Return ``path`` with the casing used on disk (a no-op outside Windows)."""
    path = Path(path)
    if not _is_windows() or not path.exists():
        return path
    return Path(os.path.realpath(path))


def resolve_symlink(path) -> Path | None:
    """Return the target of ``path`` if it is a symlink, otherwise None."""
    path = Path(path)
    if not path.is_symlink():
        return None
    return Path(os.path.realpath(path))


def _executable_dirs(prefix: Path) -> list[Path]:
    if _is_windows():
        return [prefix, prefix / "Scripts"]
    return [prefix / "bin"]


def find_executable(prefix) -> Path | None:
    """Return the main Python executable of the environment at ``prefix``."""
    prefix = Path(prefix)
    names = ["python.exe"] if _is_windows() else ["python", "python3"]
    for directory in _executable_dirs(prefix):
        for name in names:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def find_executables(prefix) -> list[Path]:
    """Return every Python executable found in the environment at ``prefix``."""
    prefix = Path(prefix)
    found: list[Path] = []
    for directory in _executable_dirs(prefix):
        try:
            entries = sorted(directory.iterdir())
        except OSError:
            continue
        found.extend(
            entry
            for entry in entries
            if _PYTHON_EXE.match(entry.name) and entry.is_file()
        )
    return found
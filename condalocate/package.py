"""Reading package metadata from a conda environment's ``conda-meta`` folder."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class Architecture(Enum):
    """CPU architecture a package was built for."""

    X64 = "x64"
    X86 = "x86"


class Package(Enum):
    """Packages whose metadata the locator inspects."""

    CONDA = "conda"
    PYTHON = "python"

    def to_name(self) -> str:
        """Return the package name as it appears in conda metadata."""
        return self.value

    def __str__(self) -> str:
        return self.value.capitalize()


# e.g. python-3.12.2-hdf0ec26_0_cpython.json, conda-23.1.0-py310hca03da5_0.json
_VERSION_IN_FILE_NAME = {
    Package.CONDA: re.compile(r"^conda-([\d+\.*]*)-.*.json$"),
    Package.PYTHON: re.compile(r"^python-([\d+\.*]*)-.*.json$"),
}

# e.g. +conda-forge/osx-arm64::python-3.12.2-hdf0ec26_0_cpython
_VERSION_IN_HISTORY = {
    Package.CONDA: re.compile(r".*conda-([\d+\.*]*)-(.*)"),
    Package.PYTHON: re.compile(r".*python-([\d+\.*]*)-(.*)"),
}


@dataclass
class CondaPackageInfo:
    """Version and build details of one installed conda package."""

    package: Package
    path: Path
    version: str
    arch: Architecture | None = None

    @classmethod
    def from_path(cls, path, package: Package) -> CondaPackageInfo | None:
        """Look up ``package`` in the environment at ``path``."""
        return get_conda_package_info(path, package)


def get_conda_package_info(path, package: Package) -> CondaPackageInfo | None:
    """Return details of ``package`` installed in the environment at ``path``.

    The history file is consulted first; if it does not lead to the package,
    every JSON file in ``conda-meta`` is examined instead.
    """
    path = Path(path)
    info = _from_history(path, package)
    if info is not None:
        return info
    logger.warning(
        "Unable to find conda package %s in %s, trying slower approach", package, path
    )
    return _from_package_json(path, package)


def _read_meta(path: Path) -> dict | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    for key in ("channel", "version"):
        if data.get(key) is not None and not isinstance(data[key], str):
            return None
    return data


def _arch_from_channel(channel: str | None) -> Architecture | None:
    # 64-bit channels end in e.g. win-64 or osx-arm64, 32-bit ones in win-32.
    if channel is None:
        return None
    if channel.endswith("64"):
        return Architecture.X64
    if channel.endswith("32"):
        return Architecture.X86
    return None


def _from_history(path: Path, package: Package) -> CondaPackageInfo | None:
    meta_dir = path / "conda-meta"
    try:
        contents = (meta_dir / "history").read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    name = package.to_name()
    entry = f":{name}-"
    regex = _VERSION_IN_HISTORY[package]
    for line in contents.splitlines():
        if entry not in line:
            continue
        match = regex.search(line)
        if match is None:
            continue
        version, build = match.group(1), match.group(2)
        package_path = meta_dir / f"{name}-{version}-{build}.json"
        meta = _read_meta(package_path)
        if meta is None:
            continue
        arch = _arch_from_channel(meta.get("channel"))
        if meta.get("version") is not None:
            return CondaPackageInfo(
                package=package, path=package_path, version=meta["version"], arch=arch
            )
        logger.warning(
            "Unable to find version for package %s in %s", package, package_path
        )
    return None


def _from_package_json(path: Path, package: Package) -> CondaPackageInfo | None:
    prefix = f"{package.to_name()}-"
    regex = _VERSION_IN_FILE_NAME[package]
    try:
        entries = sorted((path / "conda-meta").iterdir())
    except OSError:
        return None
    for entry in entries:
        file_name = entry.name
        if not (file_name.startswith(prefix) and file_name.endswith(".json")):
            continue
        match = regex.match(file_name)
        if match is None:
            continue
        meta = _read_meta(entry)
        arch = _arch_from_channel(meta.get("channel")) if meta is not None else None
        return CondaPackageInfo(
            package=package, path=entry, version=match.group(1), arch=arch
        )
    return None
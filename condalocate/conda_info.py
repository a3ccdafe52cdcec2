"""Querying a conda executable for its own view of the installation."""

from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .utils import resolve_symlink

logger = logging.getLogger(__name__)

_DEFAULT_EXECUTABLE = "conda"


@dataclass
class CondaInfo:
    """Output of ``conda info --json`` for one conda executable."""

    executable: Path
    envs: list[Path] = field(default_factory=list)
    conda_prefix: Path | None = None
    conda_version: str = ""
    envs_dirs: list[Path] = field(default_factory=list)
    config_files: list[Path] = field(default_factory=list)
    rc_path: Path | None = None
    sys_rc_path: Path | None = None
    user_rc_path: Path | None = None
    root_prefix: Path | None = None

    @classmethod
    def from_executable(cls, executable=None) -> CondaInfo | None:
        """Run ``<executable> info --json``; None if conda cannot be run or parsed.

        ``executable`` defaults to ``conda`` as found on the PATH.
        """
        exe = Path(executable) if executable is not None else Path(_DEFAULT_EXECUTABLE)
        if os.name != "nt":
            exe = resolve_symlink(exe) or exe
        user_provided = str(exe) != _DEFAULT_EXECUTABLE

        logger.debug("Executing Conda: %s info --json", exe)
        try:
            result = subprocess.run(
                [str(exe), "info", "--json"], capture_output=True, check=False
            )
        except OSError as err:
            # Not worth a warning when conda simply is not installed.
            if user_provided:
                logger.warning("Failed to execute conda info %s", err)
            return None

        if result.returncode != 0:
            if user_provided:
                stderr = (result.stderr or b"").decode("utf-8", errors="replace")
                logger.warning(
                    "Failed to get conda info using %s (%s) %s",
                    exe,
                    result.returncode,
                    stderr,
                )
            return None

        output = (result.stdout or b"").decode("utf-8", errors="replace")
        return parse_conda_info_json(output, exe)


def _optional_path(data: dict, key: str) -> Path | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return Path(value)


def _path_list(data: dict, key: str) -> list[Path]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"{key} must be a list of strings")
    return [Path(v) for v in value]


def parse_conda_info_json(output: str, executable) -> CondaInfo | None:
    """Build a :class:`CondaInfo` from ``conda info --json`` text; None if malformed.

    ``envs_path`` is an alias of ``envs_dirs``; its entries follow those of
    ``envs_dirs``.
    """
    executable = Path(executable)
    try:
        data = json.loads(output.strip())
        if not isinstance(data, dict):
            raise TypeError("conda info output must be a JSON object")
        version = data.get("conda_version")
        if version is not None and not isinstance(version, str):
            raise TypeError("conda_version must be a string")
        envs_dirs = _path_list(data, "envs_dirs") + _path_list(data, "envs_path")
        return CondaInfo(
            executable=executable,
            envs=_path_list(data, "envs"),
            conda_prefix=_optional_path(data, "conda_prefix"),
            conda_version=version or "",
            envs_dirs=envs_dirs,
            config_files=_path_list(data, "config_files"),
            rc_path=_optional_path(data, "rc_path"),
            sys_rc_path=_optional_path(data, "sys_rc_path"),
            user_rc_path=_optional_path(data, "user_rc_path"),
            root_prefix=_optional_path(data, "root_prefix"),
        )
    except (ValueError, TypeError) as err:
        logger.error(
            "Conda Execution for %s produced an output that could not be parsed as JSON: %s",
            executable,
            err,
        )
        return None
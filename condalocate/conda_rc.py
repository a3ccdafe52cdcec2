"""Discovery and parsing of ``.condarc`` configuration files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .env_variables import EnvVariables
from .utils import change_root_of_path, expand_path

logger = logging.getLogger(__name__)

_POSSIBLE_CONDA_RC_FILES = (".condarc", "condarc", ".condarc.d")
_SUPPORTED_EXTENSIONS = ("yaml", "yml")


@dataclass
class Condarc:
    """Config files found and the environment directories they list."""

    files: list[Path] = field(default_factory=list)
    env_dirs: list[Path] = field(default_factory=list)

    @classmethod
    def from_env_vars(cls, env_vars: EnvVariables) -> Condarc | None:
        """Collect every condarc on the search path; None if nothing was found."""
        result = cls()
        for candidate in get_conda_rc_search_paths(env_vars):
            found = cls.from_path(candidate)
            if found is not None:
                result.env_dirs.extend(found.env_dirs)
                result.files.extend(found.files)
        return result if result.env_dirs or result.files else None

    @classmethod
    def from_path(cls, path) -> Condarc | None:
        """Read a condarc file, or every condarc-like file in a directory."""
        path = Path(path)
        result = cls()
        if path.is_file():
            parsed = _parse_conda_rc(path)
            if parsed is not None:
                result.env_dirs.extend(parsed.env_dirs)
                result.files.append(path)
        elif path.is_dir():
            try:
                entries = sorted(path.iterdir())
            except OSError:
                entries = []
            for entry in entries:
                if not entry.is_file() or not _is_conda_rc_name(entry):
                    continue
                parsed = _parse_conda_rc(entry)
                if parsed is not None:
                    result.env_dirs.extend(parsed.env_dirs)
                    result.files.append(entry)
        return result if result.env_dirs or result.files else None


def _is_conda_rc_name(path: Path) -> bool:
    name = path.name.lower()
    extension = path.suffix[1:].lower()
    return (
        name in _POSSIBLE_CONDA_RC_FILES
        or extension in _SUPPORTED_EXTENSIONS
        or "condarc" in name
    )


def get_conda_rc_search_paths(env_vars: EnvVariables) -> list[Path]:
    """Return every location where conda looks for configuration, without duplicates."""
    paths: list[Path] = []
    if os.name == "nt":
        drive = os.environ.get("SYSTEMDRIVE", "C")
        paths.extend(
            Path(p)
            for p in (
                "C:\\ProgramData\\conda\\.condarc",
                "C:\\ProgramData\\conda\\condarc",
                "C:\\ProgramData\\conda\\condarc.d",
                "C:\\ProgramData\\conda\\.mambarc",
                f"{drive}:\\ProgramData\\conda\\.condarc",
                f"{drive}:\\ProgramData\\conda\\condarc",
                f"{drive}:\\ProgramData\\conda\\condarc.d",
            )
        )
    else:
        paths.extend(
            change_root_of_path(Path(p), env_vars.root)
            for p in (
                "/etc/conda/.condarc",
                "/etc/conda/condarc",
                "/etc/conda/condarc.d",
                "/etc/conda/mambarc",
                "/var/lib/conda/.condarc",
                "/var/lib/conda/condarc",
                "/var/lib/conda/condarc.d",
                "/var/lib/conda/.mambarc",
            )
        )
    if env_vars.conda_root is not None:
        conda_root = expand_path(env_vars.conda_root)
        paths.extend(
            conda_root / n for n in (".condarc", "condarc", ".condarc.d", ".mambarc")
        )
    if env_vars.xdg_config_home is not None:
        xdg = Path(env_vars.xdg_config_home)
        paths.extend(xdg / n for n in (".condarc", "condarc", ".condarc.d", ".mambarc"))
    if env_vars.home is not None:
        home = Path(env_vars.home)
        config = home / ".config" / "conda"
        dot_conda = home / ".conda"
        paths.extend(
            [
                config / ".condarc",
                config / "condarc",
                config / "condarc.d",
                dot_conda / ".condarc",
                dot_conda / "condarc",
                dot_conda / "condarc.d",
                home / ".condarc",
                home / "condarc",
                home / "condarc.d",
                home / ".mambarc",
            ]
        )
    if env_vars.conda_prefix is not None:
        prefix = expand_path(env_vars.conda_prefix)
        paths.extend(
            prefix / n for n in (".condarc", "condarc", ".condarc.d", ".mamabarc")
        )
    if env_vars.conda_dir is not None:
        conda_dir = expand_path(env_vars.conda_dir)
        paths.extend(conda_dir / n for n in (".condarc", "condarc", ".condarc.d"))
    if env_vars.condarc is not None:
        paths.append(expand_path(env_vars.condarc))
    if env_vars.mambarc is not None:
        paths.append(expand_path(env_vars.mambarc))
    return list(dict.fromkeys(paths))


def _parse_conda_rc(path: Path) -> Condarc | None:
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    parsed = parse_conda_rc_contents(contents)
    logger.debug("conda_rc: %s with env_dirs %s", path, parsed.env_dirs)
    return Condarc(files=[path], env_dirs=parsed.env_dirs)


def parse_conda_rc_contents(contents: str) -> Condarc:
    """Extract ``envs_dirs`` and ``envs_path`` entries from condarc YAML text."""
    env_dirs: list[Path] = []
    try:
        docs = list(yaml.safe_load_all(contents))
    except yaml.YAMLError:
        return Condarc()
    if not docs or not isinstance(docs[0], dict):
        return Condarc()
    doc = docs[0]
    for key in ("envs_dirs", "envs_path"):
        items = doc.get(key)
        if not isinstance(items, list):
            continue
        for item in items:
            if not isinstance(item, str) or not item:
                continue
            env_dir = expand_path(item.strip())
            logger.debug("%s: %r parsed as %s", key, item.strip(), env_dir)
            env_dirs.append(env_dir)
    return Condarc(env_dirs=env_dirs)
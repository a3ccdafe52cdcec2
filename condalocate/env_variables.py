"""Snapshot of the environment variables that steer conda discovery."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class EnvVariables:
    """Values read from the process environment relevant to conda."""

    home: Path | None = None
    # Only set in tests, to sandbox system-wide locations.
    root: Path | None = None
    path: str | None = None
    userprofile: str | None = None
    allusersprofile: str | None = None
    programdata: str | None = None
    homedrive: str | None = None
    conda_root: str | None = None
    conda_dir: str | None = None
    conda: str | None = None
    conda_prefix: str | None = None
    mamba_root_prefix: str | None = None
    conda_envs_path: str | None = None
    condarc: str | None = None
    mambarc: str | None = None
    anaconda_project_envs_path: str | None = None
    project_dir: str | None = None
    xdg_config_home: str | None = None
    known_global_search_locations: list[Path] = field(default_factory=list)

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        home=None,
        root=None,
        known_global_search_locations: Iterable | None = None,
    ) -> EnvVariables:
        """Build from a mapping of variables (``os.environ`` when omitted)."""
        if environ is None:
            environ = os.environ
        get = environ.get
        return cls(
            home=Path(home) if home is not None else None,
            root=Path(root) if root is not None else None,
            path=get("PATH"),
            userprofile=get("USERPROFILE"),
            allusersprofile=get("ALLUSERSPROFILE"),
            programdata=get("PROGRAMDATA"),
            homedrive=get("HOMEDRIVE"),
            conda_root=get("CONDA_ROOT"),
            conda_dir=get("CONDA_DIR"),
            conda=get("CONDA"),
            conda_prefix=get("CONDA_PREFIX"),
            mamba_root_prefix=get("MAMBA_ROOT_PREFIX"),
            conda_envs_path=get("CONDA_ENVS_PATH"),
            condarc=get("CONDARC"),
            mambarc=get("MAMBARC"),
            anaconda_project_envs_path=get("ANACONDA_PROJECT_ENVS_PATH"),
            project_dir=get("PROJECT_DIR"),
            xdg_config_home=get("XDG_CONFIG_HOME"),
            known_global_search_locations=[
                Path(p) for p in (known_global_search_locations or ())
            ],
        )
from pathlib import Path

from condalocate.conda_rc import (
    Condarc,
    get_conda_rc_search_paths,
    parse_conda_rc_contents,
)
from condalocate.env_variables import EnvVariables
from condalocate.utils import expand_path


def create_env_variables(home, root):
    return EnvVariables(home=Path(home), root=Path(root))


def test_parse_conda_rc_both_keys(monkeypatch):
    monkeypatch.setenv("HOME", "/home/someone")
    cfg = """
channels:
  - conda-forge
  - nodefaults
channel_priority: strict
envs_dirs:
  - /Users/username/dev/envs # Testing 1,2,3
  - /opt/conda/envs
envs_path:
  - /opt/somep lace/envs
  - ~/dev/envs2 # Testing 1,2,3
"""
    assert parse_conda_rc_contents(cfg).env_dirs == [
        Path("/Users/username/dev/envs"),
        Path("/opt/conda/envs"),
        Path("/opt/somep lace/envs"),
        expand_path(Path("~/dev/envs2")),
    ]
    assert parse_conda_rc_contents(cfg).env_dirs[3] == Path("/home/someone/dev/envs2")


def test_parse_conda_rc_envs_dirs_only():
    cfg = """
channels:
  - conda-forge
  - nodefaults
channel_priority: strict
envs_dirs:
  - /Users/username/dev/envs # Testing 1,2,3
  - /opt/conda/envs
"""
    assert parse_conda_rc_contents(cfg).env_dirs == [
        Path("/Users/username/dev/envs"),
        Path("/opt/conda/envs"),
    ]


def test_parse_conda_rc_envs_path_only(monkeypatch):
    monkeypatch.setenv("HOME", "/home/someone")
    cfg = """
channels:
  - conda-forge
  - nodefaults
channel_priority: strict
envs_path:
  - /opt/somep lace/envs
  - ~/dev/envs2 # Testing 1,2,3
"""
    assert parse_conda_rc_contents(cfg).env_dirs == [
        Path("/opt/somep lace/envs"),
        expand_path(Path("~/dev/envs2")),
    ]


def test_parse_conda_rc_without_env_dirs():
    cfg = """
channels:
  - conda-forge
  - nodefaults
channel_priority: strict
"""
    parsed = parse_conda_rc_contents(cfg)
    assert parsed.env_dirs == []
    assert parsed.files == []


def test_parse_invalid_or_empty_yaml():
    assert parse_conda_rc_contents("").env_dirs == []
    assert parse_conda_rc_contents("envs_dirs: [unclosed").env_dirs == []


def test_no_conda_rc(tmp_path):
    root = tmp_path / "root_empty"
    root.mkdir()
    home = tmp_path / "user_home_with_environments_txt"
    (home / ".conda").mkdir(parents=True)
    (home / ".conda" / "environments.txt").write_text("/some/env\n")
    env = create_env_variables(home, root)
    assert Condarc.from_env_vars(env) is None


def test_finds_conda_rc(tmp_path):
    root = tmp_path / "conda_rc" / "root"
    root.mkdir(parents=True)
    home = tmp_path / "conda_rc" / "user_home"
    home.mkdir(parents=True)
    (home / ".condarc").write_text(
        "envs_dirs:\n"
        "  - /Users/donjayamanne/temp/sample-conda-envs-folder2\n"
        "  - /Users/donjayamanne/temp/sample-conda-envs-folder\n"
    )
    env = create_env_variables(home, root)
    conda_rc = Condarc.from_env_vars(env)
    assert conda_rc.env_dirs == [
        Path("/Users/donjayamanne/temp/sample-conda-envs-folder2"),
        Path("/Users/donjayamanne/temp/sample-conda-envs-folder"),
    ]
    assert conda_rc.files == [home / ".condarc"]


def test_finds_conda_rc_from_conda_root_env_variable(tmp_path):
    root = tmp_path / "conda_rc_conda_root_var" / "root"
    root.mkdir(parents=True)
    home = tmp_path / "conda_rc_conda_root_var" / "user_home"
    conda_root = home / "conda_root_variable_path"
    conda_root.mkdir(parents=True)
    (conda_root / ".condarc").write_text(
        "envs_dirs:\n"
        "  - /Users/donjayamanne/sample-conda-envs-folder2-from_conda_root\n"
        "  - /Users/donjayamanne/sample-conda-envs-folder-from_conda_root\n"
    )
    env = create_env_variables(home, root)
    env.conda_root = str(conda_root)
    conda_rc = Condarc.from_env_vars(env)
    assert (
        Path("/Users/donjayamanne/sample-conda-envs-folder2-from_conda_root")
        in conda_rc.env_dirs
    )
    assert (
        Path("/Users/donjayamanne/sample-conda-envs-folder-from_conda_root")
        in conda_rc.env_dirs
    )


def test_finds_conda_rc_from_root(tmp_path):
    root = tmp_path / "conda_rc_root" / "root"
    (root / "etc" / "conda").mkdir(parents=True)
    (root / "etc" / "conda" / ".condarc").write_text(
        "envs_dirs:\n"
        "  - /Users/donjayamanne/root-folder2\n"
        "  - /Users/donjayamanne/root-folder\n"
    )
    home = tmp_path / "conda_rc_root" / "user_home"
    home.mkdir(parents=True)
    env = create_env_variables(home, root)
    conda_rc = Condarc.from_env_vars(env)
    assert Path("/Users/donjayamanne/root-folder2") in conda_rc.env_dirs
    assert Path("/Users/donjayamanne/root-folder") in conda_rc.env_dirs


def test_from_path_directory_picks_condarc_like_files(tmp_path):
    rc_dir = tmp_path / "condarc.d"
    rc_dir.mkdir()
    (rc_dir / "extra.yml").write_text("envs_dirs:\n  - /envs/from/yml\n")
    (rc_dir / "notes.txt").write_text("envs_dirs:\n  - /envs/ignored\n")
    conda_rc = Condarc.from_path(rc_dir)
    assert conda_rc.env_dirs == [Path("/envs/from/yml")]
    assert conda_rc.files == [rc_dir / "extra.yml"]


def test_from_path_file_without_env_dirs_still_lists_file(tmp_path):
    rc = tmp_path / ".condarc"
    rc.write_text("channels:\n  - conda-forge\n")
    conda_rc = Condarc.from_path(rc)
    assert conda_rc.files == [rc]
    assert conda_rc.env_dirs == []


def test_from_path_missing_is_none(tmp_path):
    assert Condarc.from_path(tmp_path / "does-not-exist") is None


def test_search_paths_rooted_and_unique(tmp_path):
    root = tmp_path / "root"
    home = tmp_path / "home"
    env = create_env_variables(home, root)
    env.condarc = str(home / ".condarc")
    paths = get_conda_rc_search_paths(env)
    assert root / "etc" / "conda" / ".condarc" in paths
    assert home / ".condarc" in paths
    assert Path("/etc/conda/.condarc") not in paths
    assert len(paths) == len(set(paths))


def test_search_paths_include_environment_overrides(tmp_path):
    env = EnvVariables(
        root=tmp_path,
        xdg_config_home=str(tmp_path / "xdg"),
        conda_prefix=str(tmp_path / "prefix"),
        conda_dir=str(tmp_path / "dir"),
        mambarc=str(tmp_path / "custom_mambarc"),
    )
    paths = get_conda_rc_search_paths(env)
    assert tmp_path / "xdg" / "condarc" in paths
    assert tmp_path / "prefix" / ".condarc" in paths
    assert tmp_path / "dir" / ".condarc.d" in paths
    assert tmp_path / "custom_mambarc" in paths
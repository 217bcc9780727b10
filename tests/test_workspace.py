from __future__ import annotations

from pathlib import Path

import pytest

from study_quiz.core import workspace as workspace_mod


def test_ensure_workspace_creates_subdirectories(tmp_path: Path):
    layout = workspace_mod.ensure_workspace(path=tmp_path / "home")
    for key in ("config", "logs", "results", "users"):
        assert layout.path_for(key).is_dir()
    assert layout.home == tmp_path / "home"


def test_env_override_is_used(tmp_path: Path):
    env = {workspace_mod.WORKSPACE_ENV: str(tmp_path / "from-env")}
    layout = workspace_mod.ensure_workspace(env=env)
    assert layout.home == tmp_path / "from-env"


def test_create_false_does_not_touch_disk(tmp_path: Path):
    layout = workspace_mod.ensure_workspace(path=tmp_path / "lazy", create=False)
    assert not layout.home.exists()
    assert layout.path_for("config") == tmp_path / "lazy" / "config"


def test_file_in_place_of_home_is_rejected(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(workspace_mod.WorkspaceError):
        workspace_mod.ensure_workspace(path=blocker)


def test_unknown_directory_key(tmp_path: Path):
    layout = workspace_mod.ensure_workspace(path=tmp_path / "home")
    with pytest.raises(workspace_mod.WorkspaceError):
        layout.path_for("cache")

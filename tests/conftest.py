from pathlib import Path

import pytest

from tmux_workspace.config import LayoutSpec
from tmux_workspace.config import WorkspaceRequest
from tmux_workspace.tmux import FakeTmuxAdapter


OUTSIDE: dict[str, str] = {}
INSIDE = {"TMUX": "/tmp/tmux-1000/default,4242,0"}


@pytest.fixture()
def adapter() -> FakeTmuxAdapter:
    return FakeTmuxAdapter()


@pytest.fixture()
def request_factory(tmp_path: Path):
    def _make(**overrides) -> WorkspaceRequest:
        data = {
            "session": "proj",
            "window": "main",
            "directory": tmp_path,
            "layout": LayoutSpec(panes=3, descriptor="D"),
            "commands": ["cmd0", "cmd1"],
        }
        data.update(overrides)
        return WorkspaceRequest(**data)

    return _make


@pytest.fixture(autouse=True)
def _clear_tmux_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMUX", raising=False)
    monkeypatch.delenv("TMUX_WORKSPACE_CONFIG", raising=False)

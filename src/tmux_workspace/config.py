"""Configuration loading for tmux-workspace."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from typing import Mapping
from typing import Optional

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator
from pydantic import model_validator

CONFIG_ENV = "TMUX_WORKSPACE_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.tmux_workspace/workspaces.yaml")

# Two side-by-side panes, as printed by ``tmux-workspace layout``.
DEFAULT_LAYOUT_DESCRIPTOR = "34ed,230x56,0,0{132x56,0,0,3,97x56,133,0,222}"


class LayoutSpec(BaseModel):
    """Minimum pane count plus the tmux layout string to apply verbatim."""

    panes: int = Field(default=2, ge=1, alias="count")
    descriptor: str = DEFAULT_LAYOUT_DESCRIPTOR

    model_config = {"populate_by_name": True}


class WorkspaceRequest(BaseModel):
    """Everything needed to provision one workspace."""

    session: str
    window: str
    directory: Path = Field(alias="dir")
    layout: LayoutSpec = Field(default_factory=LayoutSpec)
    commands: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("directory")
    @classmethod
    def _expand_directory(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def cwd(self) -> str:
        return str(self.directory)


class WorkspaceConfig(BaseModel):
    """Top-level configuration file."""

    tmux_bin: str = "tmux"
    socket: str = "default"
    reapply_on_reuse: bool = True
    workspaces: dict[str, WorkspaceRequest] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_workspace_defaults(cls, data: Any) -> Any:
        """Default ``session`` to the entry key and ``window`` to the directory name."""
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        entries = payload.get("workspaces")
        if not isinstance(entries, dict):
            return payload

        filled: dict[str, Any] = {}
        for key, entry in entries.items():
            if not isinstance(entry, dict):
                filled[key] = entry
                continue
            entry = dict(entry)
            entry.setdefault("session", key)
            directory = entry.get("dir", entry.get("directory"))
            if "window" not in entry and directory:
                entry["window"] = Path(str(directory)).expanduser().name or key
            filled[key] = entry
        payload["workspaces"] = filled
        return payload

    def workspace(self, name: str) -> WorkspaceRequest:
        try:
            return self.workspaces[name]
        except KeyError:
            available = ", ".join(sorted(self.workspaces)) or "none"
            raise ValueError(f"Unknown workspace {name!r}; available: {available}") from None


def resolve_config_path(explicit: Path | None = None, environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    if explicit is not None:
        return explicit.expanduser()
    if env.get(CONFIG_ENV):
        return Path(env[CONFIG_ENV]).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def load_workspace_config(path: Path) -> WorkspaceConfig:
    if not path.exists():
        return WorkspaceConfig()
    raw = load_yaml(path)
    try:
        config = WorkspaceConfig.model_validate(raw or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid workspace config at {path}: {exc}") from exc
    return config

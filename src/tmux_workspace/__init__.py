"""Provision tmux sessions, windows and panes from a declarative workspace."""

from .config import LayoutSpec, WorkspaceConfig, WorkspaceRequest
from .provision import ProvisionResult, capture_layout, provision_workspace
from .tmux import FakeTmuxAdapter, TmuxAdapter

__all__ = [
    "LayoutSpec",
    "WorkspaceConfig",
    "WorkspaceRequest",
    "ProvisionResult",
    "capture_layout",
    "provision_workspace",
    "FakeTmuxAdapter",
    "TmuxAdapter",
]

"""Exception hierarchy for workspace provisioning."""
from __future__ import annotations


class TmuxError(Exception):
    """Base exception for failures talking to tmux."""


class TmuxCommandError(TmuxError):
    """A tmux invocation exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"`{' '.join(self.command)}` exited with {returncode}{detail}")


class WorkspaceError(Exception):
    """Base exception for provisioning failures."""


class DiscoveryError(WorkspaceError):
    """Sessions, windows or panes could not be listed."""


class CreationError(WorkspaceError):
    """tmux rejected creating a session, window or pane."""


class AddressingError(WorkspaceError):
    """A session/window that should exist could not be resolved."""


class LayoutError(WorkspaceError):
    """The layout instruction could not be delivered."""


class DispatchError(WorkspaceError):
    """A startup command could not be sent to its pane."""


class AttachError(WorkspaceError):
    """Attaching or switching the client to the workspace failed."""


class CleanupError(WorkspaceError):
    """The placeholder window of a new session could not be removed."""

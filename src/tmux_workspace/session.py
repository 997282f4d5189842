"""Window management within a single tmux session."""
from __future__ import annotations

import logging

from .config import WorkspaceRequest
from .errors import AddressingError
from .errors import CleanupError
from .errors import CreationError
from .errors import TmuxError
from .targets import sanitize_name
from .tmux import TmuxAdapter
from .topology import SessionView
from .topology import WindowView
from .topology import discover_windows
from .window import WindowController

logger = logging.getLogger(__name__)


class SessionController:
    """Find, create and remove windows of one session."""

    def __init__(self, adapter: TmuxAdapter, session: SessionView, *, reapply_on_reuse: bool = True) -> None:
        self._adapter = adapter
        self.session = session
        self.reapply_on_reuse = reapply_on_reuse

    @property
    def name(self) -> str:
        return self.session.name

    def refresh_windows(self) -> None:
        self.session.windows = discover_windows(self._adapter, self.session.tmux_name)

    def find_or_create_window(self, request: WorkspaceRequest) -> WindowController:
        existing = self.session.find_window(request.window)
        if existing is not None:
            logger.info("Reusing window %s", existing.target())
            controller = WindowController(self._adapter, existing, request.cwd)
            if self.reapply_on_reuse:
                self._setup(controller, request)
            return controller

        window = self._create_window(request.window, request.cwd)
        controller = WindowController(self._adapter, window, request.cwd)
        self._setup(controller, request)
        return controller

    def remove_window(self, name: str) -> None:
        try:
            window = self.session.find_window(name)
        except AddressingError as exc:
            raise CleanupError(f"could not remove window {name!r}: {exc}") from exc
        target = window.target(0) if window else f"{self.session.tmux_name}:{sanitize_name(name)}.0"
        try:
            self._adapter.kill_window(target)
        except TmuxError as exc:
            raise CleanupError(f"could not remove window {target}: {exc}") from exc
        logger.info("Removed window %s", target)

    def _create_window(self, name: str, cwd: str) -> WindowView:
        window_name = sanitize_name(name)
        try:
            self._adapter.new_window(self.session.tmux_name, window_name, cwd, detached=True)
        except TmuxError as exc:
            raise CreationError(f"could not create window {self.name}:{window_name}: {exc}") from exc
        self.refresh_windows()
        window = self.session.find_window(window_name)
        if window is None:
            raise AddressingError(f"window {self.name}:{window_name} missing right after creation")
        logger.info("Created window %s in %s", window.target(), cwd)
        return window

    def _setup(self, controller: WindowController, request: WorkspaceRequest) -> None:
        controller.apply_layout(request.layout)
        controller.dispatch_initial_commands(request.commands)

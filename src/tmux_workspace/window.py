"""Pane topology of a single window: growth, layout, startup commands, attach."""
from __future__ import annotations

import logging
import shlex
from enum import Enum
from typing import Mapping
from typing import Optional
from typing import Sequence

from .config import LayoutSpec
from .errors import AttachError
from .errors import CreationError
from .errors import DispatchError
from .errors import LayoutError
from .errors import TmuxError
from .tmux import TmuxAdapter
from .tmux import in_tmux
from .topology import PaneDirectory
from .topology import PaneView
from .topology import WindowView

logger = logging.getLogger(__name__)

ENTER = "Enter"


class AttachMode(str, Enum):
    """Where the invoking process runs relative to tmux."""

    OUTSIDE = "outside"
    INSIDE = "inside"

    @classmethod
    def detect(cls, environ: Optional[Mapping[str, str]] = None) -> "AttachMode":
        return cls.INSIDE if in_tmux(environ) else cls.OUTSIDE


class WindowController:
    """Owns one window's panes and drives every mutation against it."""

    def __init__(self, adapter: TmuxAdapter, window: WindowView, directory: str) -> None:
        self._adapter = adapter
        self._panes = PaneDirectory(adapter)
        self.window = window
        self.directory = directory

    @property
    def name(self) -> str:
        return self.window.name

    @property
    def session_name(self) -> str:
        return self.window.session_name

    @property
    def number_of_panes(self) -> int:
        return self.window.number_of_panes

    @property
    def panes(self) -> list[PaneView]:
        return self.window.panes

    def target(self, pane: int = 0) -> str:
        return self.window.target(pane)

    def reload_panes(self) -> None:
        panes = self._panes.list_panes(self.session_name, self.name, target=self.window.tmux_ref())
        self.window.panes = panes
        self.window.number_of_panes = len(panes)

    def get_pane(self, index: int) -> Optional[PaneView]:
        return self.window.get_pane(index)

    def send_keys(self, keys: Sequence[str], pane: int = 0) -> None:
        self._adapter.send_keys(self.target(pane), list(keys))

    def ensure_pane_count(self, target: int) -> int:
        """Split pane 0 until the window has at least ``target`` panes.

        Returns the number of splits performed. Panes created before a failed
        split are left in place.
        """
        self.reload_panes()
        splits = 0
        while self.number_of_panes < target:
            try:
                self._adapter.split_window(self.target(0), self.directory)
            except TmuxError as exc:
                raise CreationError(
                    f"could not split {self.target(0)} ({self.number_of_panes}/{target} panes): {exc}"
                ) from exc
            splits += 1
            # splitting may renumber panes
            self.reload_panes()
        if splits:
            logger.debug("Split %s %d time(s) to reach %d panes", self.target(0), splits, target)
        return splits

    def apply_layout(self, layout: LayoutSpec) -> None:
        self.ensure_pane_count(layout.panes)
        # typed into the pane's shell, so it must use the same binary and socket
        prefix = self._adapter.command_line(["select-layout", "-t", shlex.quote(self.target(0))])
        command = f'{prefix} "{layout.descriptor}"'
        try:
            self.send_keys([command, ENTER])
        except TmuxError as exc:
            raise LayoutError(f"could not apply layout to {self.target(0)}: {exc}") from exc
        self.reload_panes()

    def dispatch_initial_commands(self, commands: Sequence[str]) -> int:
        """Send command ``i`` to pane ``i``; commands without a pane are skipped."""
        sent = 0
        for index, command in enumerate(commands):
            pane = self.get_pane(index)
            if pane is None:
                logger.debug("No pane %d in %s, skipping %r", index, self.target(0), command)
                continue
            try:
                self._adapter.send_keys(pane.target, [command, ENTER])
            except TmuxError as exc:
                raise DispatchError(f"could not send command to {pane.target}: {exc}") from exc
            sent += 1
        return sent

    def attach(self, environ: Optional[Mapping[str, str]] = None) -> AttachMode:
        mode = AttachMode.detect(environ)
        target = self.target(0)
        try:
            if mode is AttachMode.INSIDE:
                # nested attach is refused by tmux, move the current client instead
                self._adapter.switch_client(target)
            else:
                self._adapter.attach_session(target)
        except TmuxError as exc:
            raise AttachError(f"could not attach to {target}: {exc}") from exc
        logger.info("Attached to %s (%s tmux)", target, mode.value)
        return mode

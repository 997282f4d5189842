"""Adapter around the tmux CLI for workspace discovery and mutation."""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from dataclasses import field
from typing import Mapping
from typing import Optional
from typing import Sequence

from .errors import TmuxCommandError
from .errors import TmuxError

logger = logging.getLogger(__name__)


def in_tmux(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when the current process runs inside a tmux client."""
    env = os.environ if environ is None else environ
    return "TMUX" in env


@dataclass(frozen=True)
class SessionRecord:
    name: str


@dataclass(frozen=True)
class WindowRecord:
    index: int
    name: str
    panes: int
    is_active: bool = False
    layout: str = ""


@dataclass(frozen=True)
class PaneRecord:
    index: int
    pane_id: str = ""


class TmuxAdapter:
    """Thin wrapper mapping workspace intents onto tmux subcommands."""

    def __init__(self, tmux_bin: str = "tmux", socket: str | None = None) -> None:
        self.tmux_bin = tmux_bin
        self.socket = socket

    def _tmux_command(self, args: list[str]) -> list[str]:
        cmd = [self.tmux_bin]
        if self.socket and self.socket != "default":
            cmd += ["-L", self.socket]
        cmd.extend(args)
        return cmd

    def _run(self, args: list[str], *, interactive: bool = False) -> subprocess.CompletedProcess:
        cmd = self._tmux_command(args)
        logger.debug("running %s", cmd)
        try:
            if interactive:
                # attach needs the caller's terminal, so nothing is captured
                return subprocess.run(cmd, check=True)
            return subprocess.run(cmd, check=True, text=True, capture_output=True)
        except FileNotFoundError as exc:
            raise TmuxError(f"tmux binary not found: {self.tmux_bin}") from exc
        except subprocess.CalledProcessError as exc:
            raise TmuxCommandError(cmd, exc.returncode, exc.stderr or "") from exc

    def is_available(self) -> bool:
        try:
            self._run(["-V"])
        except TmuxError:
            return False
        return True

    # Discovery ---------------------------------------------------------
    def list_sessions(self) -> list[SessionRecord]:
        try:
            proc = self._run(["list-sessions", "-F", "#{session_name}"])
        except TmuxCommandError as exc:
            # a server that is not running simply has no sessions yet
            if "no server running" in exc.stderr or "error connecting to" in exc.stderr:
                return []
            raise
        return [SessionRecord(name=line) for line in proc.stdout.splitlines() if line.strip()]

    def list_windows(self, session: str | None = None) -> list[WindowRecord]:
        """List windows of ``session``, or of the current session when omitted."""
        args = ["list-windows"]
        if session is not None:
            args += ["-t", session]
        args += ["-F", "#{window_index}\t#{window_name}\t#{window_panes}\t#{?window_active,1,0}\t#{window_layout}"]
        proc = self._run(args)
        windows: list[WindowRecord] = []
        for line in proc.stdout.splitlines():
            if not line:
                continue
            parts = line.split("\t", 4)
            if len(parts) < 5:
                parts += [""] * (5 - len(parts))
            index, name, panes, active_flag, layout = parts
            windows.append(
                WindowRecord(
                    index=int(index),
                    name=name,
                    panes=int(panes) if panes else 0,
                    is_active=active_flag == "1",
                    layout=layout,
                )
            )
        return windows

    def list_panes(self, target: str) -> list[PaneRecord]:
        proc = self._run(["list-panes", "-t", target, "-F", "#{pane_index}\t#{pane_id}"])
        panes: list[PaneRecord] = []
        for line in proc.stdout.splitlines():
            if not line:
                continue
            index, _, pane_id = line.partition("\t")
            panes.append(PaneRecord(index=int(index), pane_id=pane_id))
        return sorted(panes, key=lambda pane: pane.index)

    def active_window_layout(self) -> str:
        for window in self.list_windows():
            if not window.is_active:
                continue
            if not window.layout:
                raise TmuxError("layout invalid")
            return window.layout
        raise TmuxError("No active tmux window")

    def command_line(self, args: list[str]) -> str:
        """Render a tmux invocation as shell text, e.g. to type into a pane."""
        return " ".join(self._tmux_command(args))

    # Mutation ----------------------------------------------------------
    def new_session(self, name: str, *, detached: bool = True) -> None:
        args = ["new-session"]
        if detached:
            args.append("-d")
        args += ["-s", name]
        self._run(args)

    def new_window(self, session: str, name: str, cwd: str, *, detached: bool = True) -> None:
        args = ["new-window"]
        if detached:
            args.append("-d")
        args += ["-t", f"{session}:", "-n", name, "-c", cwd]
        self._run(args)

    def split_window(self, target: str, cwd: str) -> None:
        self._run(["split-window", "-t", target, "-c", cwd])

    def send_keys(self, target: str, keys: Sequence[str]) -> None:
        self._run(["send-keys", "-t", target, *keys])

    def kill_window(self, target: str) -> None:
        self._run(["kill-window", "-t", target])

    def attach_session(self, target: str) -> None:
        self._run(["attach-session", "-t", target], interactive=True)

    def switch_client(self, target: str) -> None:
        self._run(["switch-client", "-t", target])


@dataclass
class _FakeWindow:
    index: int
    name: str
    panes: list[PaneRecord] = field(default_factory=list)
    cwd: str = ""


class FakeTmuxAdapter(TmuxAdapter):
    """Testing double that keeps the session/window/pane tree in memory."""

    default_window_name = "shell"

    def __init__(
        self,
        *,
        fail_after: dict[str, int] | None = None,
        active_layout: str | None = None,
    ) -> None:
        super().__init__(tmux_bin="tmux")
        self._sessions: dict[str, list[_FakeWindow]] = {}
        self._pane_counter = 0
        self._counts: dict[str, int] = {}
        self.fail_after = dict(fail_after or {})
        self.active_layout = active_layout
        self.calls: list[tuple[str, ...]] = []
        self.sent_keys: dict[str, list[list[str]]] = {}

    def _record(self, command: str, *args: str) -> None:
        self.calls.append((command, *args))
        count = self._counts.get(command, 0) + 1
        self._counts[command] = count
        limit = self.fail_after.get(command)
        if limit is not None and count > limit:
            raise TmuxCommandError([command, *args], 1, f"injected {command} failure")

    def _allocate_pane(self, index: int) -> PaneRecord:
        self._pane_counter += 1
        return PaneRecord(index=index, pane_id=f"%{self._pane_counter}")

    def _resolve(self, target: str, command: str) -> tuple[_FakeWindow, int]:
        session, _, rest = target.partition(":")
        window_name, _, pane = rest.rpartition(".") if "." in rest else (rest, "", "0")
        for window in self._sessions.get(session, []):
            if window.name == window_name or window_name == str(window.index):
                return window, int(pane or 0)
        raise TmuxCommandError([command, "-t", target], 1, f"can't find window: {target}")

    def commands(self, name: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == name]

    # Test setup helpers ------------------------------------------------
    def add_window(self, session: str, name: str, panes: int = 1) -> None:
        windows = self._sessions.setdefault(session, [])
        next_index = max((window.index for window in windows), default=-1) + 1
        window = _FakeWindow(index=next_index, name=name)
        window.panes = [self._allocate_pane(i) for i in range(panes)]
        windows.append(window)

    def window_names(self, session: str) -> list[str]:
        return [window.name for window in self._sessions.get(session, [])]

    def pane_count(self, session: str, window: str) -> int:
        for candidate in self._sessions.get(session, []):
            if candidate.name == window:
                return len(candidate.panes)
        raise KeyError(f"{session}:{window}")

    # TmuxAdapter interface ---------------------------------------------
    def is_available(self) -> bool:
        return True

    def list_sessions(self) -> list[SessionRecord]:
        self._record("list-sessions")
        return [SessionRecord(name=name) for name in self._sessions]

    def list_windows(self, session: str | None = None) -> list[WindowRecord]:
        self._record("list-windows", session or "")
        if session is None or session not in self._sessions:
            raise TmuxCommandError(["list-windows", "-t", str(session)], 1, f"can't find session: {session}")
        return [
            WindowRecord(index=window.index, name=window.name, panes=len(window.panes))
            for window in self._sessions[session]
        ]

    def list_panes(self, target: str) -> list[PaneRecord]:
        self._record("list-panes", target)
        window, _ = self._resolve(target, "list-panes")
        return sorted(window.panes, key=lambda pane: pane.index)

    def active_window_layout(self) -> str:
        self._record("list-windows")
        if self.active_layout is None:
            raise TmuxError("No active tmux window")
        return self.active_layout

    def new_session(self, name: str, *, detached: bool = True) -> None:  # noqa: ARG002
        self._record("new-session", name)
        if name in self._sessions:
            raise TmuxCommandError(["new-session", "-s", name], 1, f"duplicate session: {name}")
        self.add_window(name, self.default_window_name)

    def new_window(self, session: str, name: str, cwd: str, *, detached: bool = True) -> None:  # noqa: ARG002
        self._record("new-window", session, name, cwd)
        if session not in self._sessions:
            raise TmuxCommandError(["new-window", "-t", session], 1, f"can't find session: {session}")
        self.add_window(session, name)
        self._sessions[session][-1].cwd = cwd

    def split_window(self, target: str, cwd: str) -> None:  # noqa: ARG002
        self._record("split-window", target)
        window, _ = self._resolve(target, "split-window")
        window.panes.append(self._allocate_pane(len(window.panes)))

    def send_keys(self, target: str, keys: Sequence[str]) -> None:
        self._record("send-keys", target, *keys)
        window, pane = self._resolve(target, "send-keys")
        if pane not in {p.index for p in window.panes}:
            raise TmuxCommandError(["send-keys", "-t", target], 1, f"can't find pane: {target}")
        self.sent_keys.setdefault(target, []).append(list(keys))

    def kill_window(self, target: str) -> None:
        self._record("kill-window", target)
        window, _ = self._resolve(target, "kill-window")
        session = target.partition(":")[0]
        self._sessions[session].remove(window)

    def attach_session(self, target: str) -> None:
        self._record("attach-session", target)

    def switch_client(self, target: str) -> None:
        self._record("switch-client", target)

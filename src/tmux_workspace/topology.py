"""Snapshots of the sessions, windows and panes tmux currently reports."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Optional

from .errors import AddressingError
from .errors import CreationError
from .errors import DiscoveryError
from .errors import TmuxError
from .targets import find_collisions
from .targets import pane_target
from .targets import sanitize_name
from .targets import window_target
from .tmux import TmuxAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaneView:
    session_name: str
    window_name: str
    index: int
    pane_id: str = ""
    window_ref: str = ""

    @property
    def target(self) -> str:
        if self.window_ref:
            return f"{self.window_ref}.{self.index}"
        return pane_target(self.session_name, self.window_name, self.index)


@dataclass
class WindowView:
    """One window as last reported by tmux.

    ``panes`` may lag ``number_of_panes`` until the owning controller
    reloads them; never rely on either across a mutating call.
    """

    name: str
    session_name: str
    number_of_panes: int
    panes: list[PaneView] = field(default_factory=list)
    index: int = 0
    raw_name: str = ""
    raw_session_name: str = ""

    def get_pane(self, index: int) -> Optional[PaneView]:
        return next((pane for pane in self.panes if pane.index == index), None)

    def tmux_ref(self) -> str:
        """Window part of a tmux target that resolves to this exact window.

        Names that only exist in sanitized form in tmux are addressed by name;
        otherwise ``session:index`` is used since the sanitized name would not
        resolve.
        """
        raw_session = self.raw_session_name or self.session_name
        raw_window = self.raw_name or self.name
        if raw_session == self.session_name and raw_window == self.name:
            return window_target(self.session_name, self.name)
        return f"{raw_session}:{self.index}"

    def target(self, pane: int = 0) -> str:
        return f"{self.tmux_ref()}.{pane}"


@dataclass
class SessionView:
    name: str
    windows: list[WindowView] = field(default_factory=list)
    raw_name: str = ""

    @property
    def tmux_name(self) -> str:
        return self.raw_name or self.name

    def find_window(self, name: str) -> Optional[WindowView]:
        wanted = sanitize_name(name)
        matches = [window for window in self.windows if window.name == wanted]
        if len(matches) > 1:
            raw = ", ".join(repr(window.raw_name) for window in matches)
            raise AddressingError(f"window name {wanted!r} is ambiguous in session {self.name!r}: {raw}")
        return matches[0] if matches else None

    def has_window(self, name: str) -> bool:
        return self.find_window(name) is not None


class PaneDirectory:
    """Read-only view of the panes in a window, queried fresh on every call."""

    def __init__(self, adapter: TmuxAdapter) -> None:
        self._adapter = adapter

    def list_panes(self, session: str, window: str, *, target: str | None = None) -> list[PaneView]:
        session_name = sanitize_name(session)
        window_name = sanitize_name(window)
        lookup = target or window_target(session_name, window_name)
        try:
            records = self._adapter.list_panes(lookup)
        except TmuxError as exc:
            raise DiscoveryError(f"could not list panes of {lookup}: {exc}") from exc
        return [
            PaneView(
                session_name=session_name,
                window_name=window_name,
                index=record.index,
                pane_id=record.pane_id,
                window_ref=lookup,
            )
            for record in sorted(records, key=lambda record: record.index)
        ]


def discover_windows(adapter: TmuxAdapter, session: str) -> list[WindowView]:
    """List the windows of ``session`` (its raw tmux name) with their panes."""
    try:
        records = adapter.list_windows(session)
    except TmuxError as exc:
        raise DiscoveryError(f"could not list windows of session {session!r}: {exc}") from exc

    collisions = find_collisions(record.name for record in records)
    for sanitized, raw in collisions.items():
        logger.warning("Windows %s in session %s all address as %r", raw, session, sanitized)

    directory = PaneDirectory(adapter)
    session_name = sanitize_name(session)
    windows: list[WindowView] = []
    for record in records:
        window = WindowView(
            name=sanitize_name(record.name),
            session_name=session_name,
            number_of_panes=record.panes,
            index=record.index,
            raw_name=record.name,
            raw_session_name=session,
        )
        window.panes = directory.list_panes(session_name, record.name, target=window.tmux_ref())
        windows.append(window)
    return windows


class TmuxState:
    """Snapshot of every tmux session, refreshed wholesale after mutations."""

    def __init__(self, adapter: TmuxAdapter) -> None:
        self.adapter = adapter
        self.sessions: list[SessionView] = []
        self.refresh()

    def refresh(self) -> None:
        try:
            records = self.adapter.list_sessions()
        except TmuxError as exc:
            raise DiscoveryError(f"could not list tmux sessions: {exc}") from exc

        for sanitized, raw in find_collisions(record.name for record in records).items():
            logger.warning("Sessions %s all address as %r", raw, sanitized)

        self.sessions = [
            SessionView(
                name=sanitize_name(record.name),
                windows=discover_windows(self.adapter, record.name),
                raw_name=record.name,
            )
            for record in records
        ]
        logger.debug("Discovered %d tmux sessions", len(self.sessions))

    def find_session(self, name: str) -> Optional[SessionView]:
        wanted = sanitize_name(name)
        matches = [session for session in self.sessions if session.name == wanted]
        if len(matches) > 1:
            raw = ", ".join(repr(session.raw_name) for session in matches)
            raise AddressingError(f"session name {wanted!r} is ambiguous: {raw}")
        return matches[0] if matches else None

    def has_session(self, name: str) -> bool:
        return self.find_session(name) is not None

    def create_session(self, name: str) -> SessionView:
        session_name = sanitize_name(name)
        try:
            self.adapter.new_session(session_name, detached=True)
        except TmuxError as exc:
            raise CreationError(f"could not create session {session_name!r}: {exc}") from exc
        self.refresh()
        session = self.find_session(session_name)
        if session is None:
            raise AddressingError(f"session {session_name!r} missing right after creation")
        logger.info("Created session %s", session_name)
        return session

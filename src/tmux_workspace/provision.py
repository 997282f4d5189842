"""Top-level workspace provisioning."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping
from typing import Optional

from .config import WorkspaceRequest
from .errors import AddressingError
from .errors import CleanupError
from .errors import DiscoveryError
from .errors import TmuxError
from .session import SessionController
from .tmux import TmuxAdapter
from .topology import TmuxState
from .window import AttachMode
from .window import WindowController

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    state: TmuxState
    window: WindowController
    created_session: bool
    attach_mode: AttachMode
    placeholder: Optional[str] = None
    cleanup_error: Optional[CleanupError] = None


def provision_workspace(
    adapter: TmuxAdapter,
    request: WorkspaceRequest,
    *,
    environ: Optional[Mapping[str, str]] = None,
    reapply_on_reuse: bool = True,
) -> ProvisionResult:
    """Make ``request`` exist in tmux and bring it to the foreground.

    An existing session is reused; a new one is created detached and its
    default window is removed once the workspace window is attached. A
    failure removing that window is logged and returned, not raised.
    """
    state = TmuxState(adapter)
    placeholder: Optional[str] = None

    session = state.find_session(request.session)
    if session is None:
        session = state.create_session(request.session)
        if not session.windows:
            raise AddressingError(f"new session {session.name!r} has no default window")
        placeholder = session.windows[0].name
    created_session = placeholder is not None

    controller = SessionController(adapter, session, reapply_on_reuse=reapply_on_reuse)
    window = controller.find_or_create_window(request)
    if placeholder == window.name:
        # the requested window is the session's default window
        placeholder = None
    attach_mode = window.attach(environ)

    cleanup_error: Optional[CleanupError] = None
    if placeholder is not None:
        try:
            controller.remove_window(placeholder)
        except CleanupError as exc:
            logger.warning("Placeholder cleanup failed: %s", exc)
            cleanup_error = exc

    state.refresh()
    return ProvisionResult(
        state=state,
        window=window,
        created_session=created_session,
        attach_mode=attach_mode,
        placeholder=placeholder,
        cleanup_error=cleanup_error,
    )


def capture_layout(adapter: TmuxAdapter) -> str:
    """Return the active window's layout string for reuse in a config file."""
    try:
        return adapter.active_window_layout()
    except TmuxError as exc:
        raise DiscoveryError(f"could not read the active window layout: {exc}") from exc

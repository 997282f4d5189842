"""Build tmux target strings (``session:window.pane``)."""
from __future__ import annotations

import re
from typing import Iterable

SUBSTITUTE = "-"

# tmux splits targets on ``:`` and ``.``; a window named ``coc.nvim`` would
# otherwise be read as window ``coc`` pane ``nvim``.
_UNSAFE = re.compile(r"[.\s]")


def sanitize_name(name: str) -> str:
    return _UNSAFE.sub(SUBSTITUTE, name)


def window_target(session: str, window: str) -> str:
    return f"{sanitize_name(session)}:{sanitize_name(window)}"


def pane_target(session: str, window: str, pane: int = 0) -> str:
    return f"{window_target(session, window)}.{pane}"


def find_collisions(names: Iterable[str]) -> dict[str, list[str]]:
    """Group distinct raw names that map to the same sanitized name."""
    groups: dict[str, list[str]] = {}
    for name in names:
        bucket = groups.setdefault(sanitize_name(name), [])
        if name not in bucket:
            bucket.append(name)
    return {key: raw for key, raw in groups.items() if len(raw) > 1}

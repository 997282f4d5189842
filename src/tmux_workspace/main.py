"""CLI entry point for tmux-workspace."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from .config import LayoutSpec
from .config import WorkspaceConfig
from .config import WorkspaceRequest
from .config import load_workspace_config
from .config import resolve_config_path
from .errors import TmuxError
from .errors import WorkspaceError
from .provision import capture_layout
from .provision import provision_workspace
from .tmux import TmuxAdapter

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tmux-workspace", description="Provision reproducible tmux workspaces")
    parser.add_argument("--config", type=Path, default=None, help="Path to workspaces YAML")
    parser.add_argument("--tmux-bin", default=None, help="tmux binary to use")
    parser.add_argument("--socket", default=None, help="tmux socket name (equivalent to tmux -L)")
    parser.add_argument("--log-level", type=str, default=os.getenv("LOG_LEVEL", "WARNING"))
    sub = parser.add_subparsers(dest="command", required=True)

    open_cmd = sub.add_parser("open", help="Create or reuse a workspace and attach to it")
    open_cmd.add_argument("name", nargs="?", help="Workspace name from the config file")
    open_cmd.add_argument("--session", help="Session name")
    open_cmd.add_argument("--window", help="Window name")
    open_cmd.add_argument("--dir", type=Path, default=None, help="Working directory for new panes")
    open_cmd.add_argument("--panes", type=int, default=None, help="Minimum number of panes")
    open_cmd.add_argument("--layout", default=None, help="tmux layout string to apply")
    open_cmd.add_argument(
        "--command",
        dest="commands",
        action="append",
        default=None,
        help="Startup command, one per pane in order (repeatable)",
    )

    sub.add_parser("layout", help="Print the active window's layout string")
    sub.add_parser("list", help="List configured workspaces")
    return parser


def build_request(args: argparse.Namespace, config: WorkspaceConfig) -> WorkspaceRequest:
    if args.name:
        base = config.workspace(args.name)
    else:
        if not args.session:
            raise ValueError("either a workspace name or --session is required")
        directory = (args.dir or Path.cwd()).expanduser()
        base = WorkspaceRequest(
            session=args.session,
            window=args.window or directory.name or args.session,
            directory=directory,
        )

    layout = base.layout
    if args.panes is not None or args.layout is not None:
        layout = LayoutSpec(
            panes=args.panes if args.panes is not None else layout.panes,
            descriptor=args.layout if args.layout is not None else layout.descriptor,
        )
    return base.model_copy(
        update={
            "session": args.session or base.session,
            "window": args.window or base.window,
            "directory": args.dir.expanduser() if args.dir else base.directory,
            "layout": layout,
            "commands": args.commands if args.commands is not None else base.commands,
        }
    )


def cmd_open(args: argparse.Namespace, config: WorkspaceConfig, adapter: TmuxAdapter) -> None:
    request = build_request(args, config)
    if not adapter.is_available():
        raise TmuxError(f"tmux is not available (tried {adapter.tmux_bin!r})")
    result = provision_workspace(adapter, request, reapply_on_reuse=config.reapply_on_reuse)
    if result.cleanup_error is not None:
        print(f"warning: {result.cleanup_error}", file=sys.stderr)


def cmd_layout(args: argparse.Namespace, config: WorkspaceConfig, adapter: TmuxAdapter) -> None:  # noqa: ARG001
    print(capture_layout(adapter))


def cmd_list(args: argparse.Namespace, config: WorkspaceConfig, adapter: TmuxAdapter) -> None:  # noqa: ARG001
    if not config.workspaces:
        print("No workspaces configured")
        return
    for name, request in sorted(config.workspaces.items()):
        line = f"{name} -> {request.session}:{request.window} (@ {request.directory})"
        line += f" [panes={request.layout.panes}, commands={len(request.commands)}]"
        print(line)


def _build_adapter(args: argparse.Namespace, config: WorkspaceConfig) -> TmuxAdapter:
    return TmuxAdapter(
        tmux_bin=args.tmux_bin or config.tmux_bin,
        socket=args.socket or config.socket,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handlers = {"open": cmd_open, "layout": cmd_layout, "list": cmd_list}
    try:
        config = load_workspace_config(resolve_config_path(args.config))
        handlers[args.command](args, config, _build_adapter(args, config))
        return 0
    except (WorkspaceError, TmuxError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI bootstrap
    sys.exit(main())

"""niri-setup command line entry point.

Without a subcommand the interactive menu is started. ``run`` executes a
single action non-interactively and ``actions`` lists what is available.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table

from niri_setup.core.actions import ActionContext, ActionKind, build_catalog, find_action
from niri_setup.core.bootstrap import BootstrapError, ensure_runtime_dir
from niri_setup.core.config import ConfigError, SetupConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DEFAULT_DEBUG_LOG = os.path.join(tempfile.gettempdir(), "niri-setup-debug.log")


def configure_logging(level: str, log_file: Optional[str]) -> None:
    kwargs = {"level": getattr(logging, level.upper(), logging.INFO), "format": LOG_FORMAT, "force": True}
    if log_file:
        kwargs["filename"] = log_file
    logging.basicConfig(**kwargs)


def load_config(path: Optional[str]) -> SetupConfig:
    if not path:
        return SetupConfig()
    return SetupConfig.from_file(path)


def cmd_menu(config: SetupConfig) -> int:
    """Launch the interactive Textual menu."""
    from nsctl.tui_textual import run_textual

    return run_textual(config)


def cmd_run(config: SetupConfig, name: str, console: Console) -> int:
    catalog = build_catalog(config)
    spec = find_action(catalog, name)
    if spec is None or spec.handler is None:
        console.print(f"[red]Unknown action: {name}[/red]")
        return 2

    console.print(f"[blue]Executing: {spec.label}[/blue]")
    ctx = ActionContext(config=config)
    if spec.kind is ActionKind.INSTALL:
        with console.status(spec.progress):
            result = spec.handler(ctx)
    else:
        result = spec.handler(ctx)

    for line in result.lines:
        console.print(line, markup=False, highlight=False)
    if not result.ok:
        console.print(f"[red]Error: {result.error}[/red]")
        return 1
    return 0


def cmd_actions(config: SetupConfig, console: Console) -> int:
    table = Table(title=config.app_title)
    table.add_column("Name", style="cyan")
    table.add_column("Action", style="bold")
    table.add_column("Description", style="dim")
    for spec in build_catalog(config):
        if spec.handler is None:
            continue
        table.add_row(spec.slug, spec.label, spec.description)
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="niri-setup", description="Niri setup assistant for GhostBSD")
    parser.add_argument("--config", help="Path to a niri-setup YAML configuration")
    parser.add_argument("--log-level", default=os.environ.get("NIRI_SETUP_LOG_LEVEL", "INFO"), help="Logging level (default: INFO)")
    parser.add_argument("--log-file", default=None, help=f"Diagnostic log file (menu default: {DEFAULT_DEBUG_LOG})")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("menu", help="Interactive setup menu (default)")
    p_run = sub.add_parser("run", help="Run a single action without the menu")
    p_run.add_argument("action", help="Action name: install, setup, configure, validate, save-logs")
    sub.add_parser("actions", help="List available actions")
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    command = args.command or "menu"

    log_file = args.log_file
    if command == "menu" and not log_file:
        log_file = DEFAULT_DEBUG_LOG
    configure_logging(args.log_level, log_file)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    console = Console()
    if command == "actions":
        return cmd_actions(config, console)

    try:
        runtime_dir = ensure_runtime_dir(config.runtime_base)
    except BootstrapError as exc:
        logger.critical("%s", exc)
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1
    logger.info("XDG_RUNTIME_DIR=%s", runtime_dir)

    if command == "run":
        try:
            return cmd_run(config, args.action, console)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user.[/yellow]")
            return 130
    return cmd_menu(config)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())

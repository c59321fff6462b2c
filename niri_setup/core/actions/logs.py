"""Persist the session log buffer."""
from __future__ import annotations

import logging
from pathlib import Path

from niri_setup.core.actions.base import ActionContext, ActionResult

logger = logging.getLogger(__name__)


def save_logs(ctx: ActionContext) -> ActionResult:
    """Append the buffered log lines to the configured log file."""
    path = Path(ctx.config.log_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a") as fh:
            for line in ctx.logs:
                fh.write(line + "\n")
    except OSError as exc:
        logger.error("Cannot write %s: %s", path, exc)
        return ActionResult.failure(f"Failed to write to log file: {exc}")
    return ActionResult(lines=(f"Logs saved to {path}",))

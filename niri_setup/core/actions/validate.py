"""Run the compositor's own config validator."""
from __future__ import annotations

from niri_setup.core.actions.base import ActionContext, ActionResult
from niri_setup.utils.cmd_runner import run_command


def validate_config(ctx: ActionContext) -> ActionResult:
    config = ctx.config
    argv = [config.compositor, "validate", "-c", str(config.config_path())]
    result = run_command(argv, timeout=config.command_timeout)
    if not result.success:
        return ActionResult(
            lines=(f"Validation failed: {result.output}",),
            error=f"{config.compositor} validate exited with status {result.returncode}",
        )
    return ActionResult(lines=(f"{config.display_name} configuration is valid.",))

"""Package installation through pkg(8)."""
from __future__ import annotations

import logging
from typing import List, Optional

from niri_setup.core.actions.base import ActionContext, ActionResult
from niri_setup.core.config import SetupConfig
from niri_setup.utils.cmd_runner import run_command

logger = logging.getLogger(__name__)


def is_package_installed(package: str, timeout: Optional[float] = None) -> bool:
    return run_command(["pkg", "info", package], timeout=timeout).success


def install_package(config: SetupConfig, package: str):
    return run_command(
        config.privileged(["pkg", "install", "-y", package]),
        timeout=config.command_timeout,
    )


def install_packages(ctx: ActionContext) -> ActionResult:
    """Install every configured package that pkg does not already know about.

    A failed install is recorded and the loop moves on to the next package;
    the action fails overall when at least one package failed.
    """
    config = ctx.config
    lines: List[str] = []
    failed: List[str] = []

    for package in config.packages:
        if is_package_installed(package, timeout=config.command_timeout):
            lines.append(f"Already installed: {package}")
            continue

        result = install_package(config, package)
        if not result.success:
            logger.warning("Install of %s failed (rc=%s)", package, result.returncode)
            lines.append(f"Failed to install {package}: {result.output.strip()}")
            failed.append(package)
            continue

        lines.append(f"Successfully installed {package}")

    if failed:
        lines.append("")
        lines.append(f"Failed packages ({len(failed)}): {', '.join(failed)}")
        return ActionResult(lines=tuple(lines), error=f"{len(failed)} packages failed to install")
    return ActionResult(lines=tuple(lines))

"""Install the compositor configuration file."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from niri_setup.core.actions.base import ActionContext, ActionResult, launch_hint
from niri_setup.core.config import SetupConfig
from niri_setup.core.hardware import find_render_device

logger = logging.getLogger(__name__)

RENDER_DEVICE_KEY = "render-drm-device"
BUNDLED_TEMPLATE_DIR = Path(__file__).resolve().parents[2] / "data"


def executable_dir() -> Path:
    return Path(sys.argv[0] or ".").resolve().parent


def template_candidates(config: SetupConfig) -> List[Path]:
    if config.template_path:
        return [Path(config.template_path).expanduser()]
    return [
        executable_dir() / config.template_name,
        Path(os.getcwd()) / config.template_name,
        BUNDLED_TEMPLATE_DIR / config.template_name,
    ]


def locate_template(config: SetupConfig) -> Optional[Path]:
    for candidate in template_candidates(config):
        if candidate.is_file():
            return candidate
    return None


def render_device_block(device: Path) -> str:
    return (
        "\n// Explicitly set the DRM render device for EGL display creation.\n"
        "debug {\n"
        f"    {RENDER_DEVICE_KEY} \"{device}\"\n"
        "}\n"
    )


def build_config_text(template: str, device: Optional[Path]) -> str:
    if device is not None and RENDER_DEVICE_KEY not in template:
        return template + render_device_block(device)
    return template


def configure_compositor(ctx: ActionContext) -> ActionResult:
    """Copy the template into ~/.config/<compositor>/, replacing any existing file."""
    config = ctx.config

    source = locate_template(config)
    if source is None:
        where = " or ".join(str(p.parent) for p in template_candidates(config))
        return ActionResult.failure(f"{config.template_name} not found in {where}")

    dest_dir = config.config_dir()
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return ActionResult.failure(f"Failed to create config directory: {exc}")

    try:
        template = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return ActionResult.failure(f"Failed to read source config: {exc}")

    device = find_render_device(config.dri_dir, config.render_node_prefix)
    text = build_config_text(template, device)

    dest = config.config_path()
    try:
        dest.write_text(text, encoding="utf-8")
    except OSError as exc:
        return ActionResult.failure(f"Failed to write config: {exc}")
    logger.info("Wrote %s from %s", dest, source)

    lines = [f"{config.display_name} configuration copied to {dest}"]
    if device is not None:
        lines.append(f"DRM render device set to: {device}")
    lines.append("")
    lines.extend(launch_hint(config))
    return ActionResult(lines=tuple(lines))

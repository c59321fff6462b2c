"""Host preparation: services, groups, kernel module, profile and GPU check."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Mapping, Optional

from niri_setup.core.actions.base import (
    ActionContext,
    ActionResult,
    Step,
    StepOutcome,
    launch_hint,
    make_step,
    run_step,
    run_steps,
)
from niri_setup.core.config import SetupConfig
from niri_setup.core.hardware import device_accessible, find_render_device

logger = logging.getLogger(__name__)

ALREADY_RUNNING = ("already running",)
ALREADY_LOADED = ("already loaded", "module already loaded")


def current_user(environ: Optional[Mapping[str, str]] = None) -> str:
    if environ is None:
        environ = os.environ
    return environ.get("USER") or environ.get("LOGNAME") or ""


def service_steps(config: SetupConfig) -> List[Step]:
    steps: List[Step] = []
    for service in config.services:
        steps.append(
            make_step(
                f"Enabling {service} service",
                config.privileged(["sysrc", f"{service}_enable=YES"]),
            )
        )
        steps.append(
            make_step(
                f"Starting {service} service",
                config.privileged(["service", service, "start"]),
                benign=ALREADY_RUNNING,
            )
        )
    return steps


def kernel_module_steps(config: SetupConfig) -> List[Step]:
    module = config.kernel_module
    label = module.upper()
    return [
        make_step(
            f"Loading {label} kernel module",
            config.privileged(["kldload", module]),
            benign=ALREADY_LOADED,
        ),
        make_step(
            f"Persisting {label} module to boot",
            config.privileged(["sysrc", f"kld_list+={module}"]),
        ),
    ]


def ensure_profile_line(profile: Path, marker: str, lines: List[str]) -> bool:
    """Append ``lines`` to ``profile`` unless ``marker`` already occurs in it.

    The existing contents are matched as bytes, so a profile that is not
    valid UTF-8 is still appended to. Returns True when the file was
    changed. OSError propagates.
    """
    try:
        content = profile.read_bytes()
    except FileNotFoundError:
        content = b""
    if marker.encode() in content:
        return False
    with profile.open("a", encoding="utf-8") as fh:
        if content and not content.endswith(b"\n"):
            fh.write("\n")
        for line in lines:
            fh.write(line + "\n")
    return True


def configure_profile(config: SetupConfig, uid: Optional[int] = None) -> tuple[List[str], bool]:
    """Add the session exports to the user's profile; returns (log lines, ok)."""
    profile = config.profile_path()
    logs: List[str] = []
    ok = True
    exports = [
        (
            "XDG_RUNTIME_DIR",
            [
                "",
                "# Set XDG_RUNTIME_DIR for Wayland compositors",
                f"export XDG_RUNTIME_DIR={config.runtime_dir(uid)}",
            ],
        ),
        ("LIBSEAT_BACKEND", [f"export LIBSEAT_BACKEND={config.seat_backend}"]),
    ]
    for marker, lines in exports:
        try:
            added = ensure_profile_line(profile, marker, lines)
        except OSError as exc:
            logger.error("Cannot update %s: %s", profile, exc)
            logs.append(f"Warning: Could not write to {profile}: {exc}")
            ok = False
            continue
        if added:
            value = lines[-1].split("export ", 1)[1]
            logs.append(f"Added {value} to {profile}: OK")
        else:
            logs.append(f"{marker} already in .profile: OK")
    return logs, ok


def check_render_device(config: SetupConfig) -> List[str]:
    device = find_render_device(config.dri_dir, config.render_node_prefix)
    if device is None:
        return [
            f"Warning: No DRM render device found in {config.dri_dir}/",
            "  GPU drivers may not be loaded. Check that drm and your GPU kernel module are loaded.",
        ]
    logs = [f"Found DRM render device: {device}"]
    ok, err = device_accessible(device)
    if ok:
        logs.append(f"DRM render device {device} is accessible: OK")
    else:
        logs.append(f"Warning: Cannot access {device}: {err} (check {config.video_group} group membership)")
    return logs


def _record(lines: List[str], outcomes: List[StepOutcome]) -> int:
    """Append each outcome's log line; returns how many steps failed."""
    lines.extend(outcome.log_line() for outcome in outcomes)
    return sum(1 for outcome in outcomes if not outcome.ok)


def setup_system(ctx: ActionContext, environ: Optional[Mapping[str, str]] = None) -> ActionResult:
    config = ctx.config
    timeout = config.command_timeout
    lines: List[str] = []
    failures = 0

    failures += _record(lines, run_steps(service_steps(config), timeout=timeout))

    user = current_user(environ)
    if user:
        step = make_step(
            f"Adding user '{user}' to {config.video_group} group",
            config.privileged(["pw", "groupmod", config.video_group, "-m", user]),
        )
        failures += _record(lines, [run_step(step, timeout=timeout)])
    else:
        lines.append(f"Warning: Could not determine current user for {config.video_group} group setup")

    failures += _record(lines, run_steps(kernel_module_steps(config), timeout=timeout))

    profile_lines, profile_ok = configure_profile(config)
    lines.extend(profile_lines)
    if not profile_ok:
        failures += 1

    lines.extend(check_render_device(config))

    lines.append("")
    if failures:
        lines.append(f"System setup finished with {failures} failed step(s).")
    else:
        lines.append(
            "System setup complete. You may need to log out and back in for group changes to take effect."
        )
    lines.append("")
    lines.extend(launch_hint(config))

    error = f"{failures} system setup steps failed" if failures else None
    return ActionResult(lines=tuple(lines), error=error)

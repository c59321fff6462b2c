"""Setup actions offered by the menu.

Each handler takes an ActionContext and returns a single ActionResult.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from niri_setup.core.config import SetupConfig

from .base import ActionContext, ActionKind, ActionResult, ActionSpec, Step, StepOutcome
from .configure import configure_compositor
from .install import install_packages
from .logs import save_logs
from .system import setup_system
from .validate import validate_config

EXIT_LABEL = "Exit"


def build_catalog(config: SetupConfig) -> List[ActionSpec]:
    """Return the fixed, ordered menu for ``config``."""
    name = config.display_name
    return [
        ActionSpec(
            f"Install {name}",
            "Install the compositor and its packages",
            ActionKind.INSTALL,
            install_packages,
            slug="install",
            progress=f"Installing {name}...",
        ),
        ActionSpec(
            "Setup System",
            "Enable services, groups, kernel module and profile",
            ActionKind.INSTALL,
            setup_system,
            slug="setup",
            progress="Setting up the system...",
        ),
        ActionSpec(
            f"Configure {name}",
            f"Copy {config.template_name} into place",
            ActionKind.TASK,
            configure_compositor,
            slug="configure",
            progress=f"Configuring {name}...",
        ),
        ActionSpec(
            "Validate Config",
            f"Run '{config.compositor} validate'",
            ActionKind.TASK,
            validate_config,
            slug="validate",
            progress=f"Validating {name} config...",
        ),
        ActionSpec(
            "Save Logs",
            f"Append session logs to {config.log_file}",
            ActionKind.TASK,
            save_logs,
            slug="save-logs",
            progress="Saving logs...",
        ),
        ActionSpec(EXIT_LABEL, "Leave the setup assistant", ActionKind.TASK, None, slug="exit"),
    ]


def find_action(catalog: Sequence[ActionSpec], name: str) -> Optional[ActionSpec]:
    """Look an action up by label (case-insensitive) or slug."""
    wanted = name.strip().lower()
    for spec in catalog:
        if wanted in (spec.label.lower(), spec.slug):
            return spec
    return None


__all__ = [
    "ActionContext",
    "ActionKind",
    "ActionResult",
    "ActionSpec",
    "EXIT_LABEL",
    "Step",
    "StepOutcome",
    "build_catalog",
    "configure_compositor",
    "find_action",
    "install_packages",
    "save_logs",
    "setup_system",
    "validate_config",
]

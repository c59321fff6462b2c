"""niri-setup - Wayland compositor setup assistant for GhostBSD/FreeBSD."""

from .core.bootstrap import BootstrapError, ensure_runtime_dir
from .core.config import ConfigError, SetupConfig, Theme
from .core.actions import ActionContext, ActionResult, ActionSpec, build_catalog
from .core.state_machine import SessionState, initial_state, reduce

__version__ = "1.0.0"
__all__ = [
    "ActionContext",
    "ActionResult",
    "ActionSpec",
    "BootstrapError",
    "ConfigError",
    "SessionState",
    "SetupConfig",
    "Theme",
    "build_catalog",
    "ensure_runtime_dir",
    "initial_state",
    "reduce",
]

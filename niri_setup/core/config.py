"""Configuration helpers for niri-setup."""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml

from niri_setup.core.bootstrap import runtime_dir_path


DEFAULT_PACKAGES = (
    "drm-kmod",
    "mesa-libs",
    "mesa-dri",
    "consolekit2",
    "dbus",
    "niri",
    "xwayland-satellite",
    "seatd",
    "waybar",
    "grim",
    "jq",
    "wofi",
    "alacritty",
    "pam_xdg",
    "fuzzel",
    "swaylock",
    "foot",
    "wlsunset",
    "swaybg",
    "mako",
    "swayidle",
)


class ConfigError(ValueError):
    """Raised when a configuration file cannot be used."""


@dataclass(frozen=True)
class Theme:
    """Colours and sizes used by the menu screens."""

    accent: str = "#00ff00"
    dim: str = "color(240)"
    log: str = "color(63)"
    warning: str = "yellow"
    error: str = "red"
    view_width: int = 50
    menu_item_width: int = 25


@dataclass(frozen=True)
class SetupConfig:
    """Immutable settings shared by every action and the UI."""

    compositor: str = "niri"
    packages: tuple[str, ...] = DEFAULT_PACKAGES
    services: tuple[str, ...] = ("dbus", "seatd")
    video_group: str = "video"
    kernel_module: str = "drm"
    seat_backend: str = "consolekit2"
    privilege_command: str = "sudo"
    runtime_base: str = "/tmp"
    dri_dir: str = "/dev/dri"
    render_node_prefix: str = "renderD"
    log_file: str = field(default_factory=lambda: os.path.join(tempfile.gettempdir(), "nirisetup.log"))
    template_name: str = "config.kdl"
    template_path: Optional[str] = None
    home_dir: Optional[str] = None
    command_timeout: Optional[float] = None
    title: str = ""
    theme: Theme = field(default_factory=Theme)

    @classmethod
    def from_file(cls, path: str | Path) -> "SetupConfig":
        try:
            data = yaml.safe_load(Path(path).read_text())
        except OSError as exc:
            raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SetupConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values: Dict[str, Any] = dict(data)
        for key in ("packages", "services"):
            if key in values:
                values[key] = _as_str_tuple(key, values[key])
        if "theme" in values:
            theme = values["theme"] or {}
            if not isinstance(theme, dict):
                raise ConfigError("theme must be a mapping")
            theme_known = {f.name for f in fields(Theme)}
            bad = sorted(set(theme) - theme_known)
            if bad:
                raise ConfigError(f"Unknown theme keys: {', '.join(bad)}")
            values["theme"] = Theme(**theme)
        if values.get("command_timeout") is not None:
            try:
                values["command_timeout"] = float(values["command_timeout"])
            except (TypeError, ValueError) as exc:
                raise ConfigError("command_timeout must be a number of seconds") from exc
        return cls(**values)

    def with_overrides(self, **changes: Any) -> "SetupConfig":
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------
    @property
    def display_name(self) -> str:
        return self.compositor[:1].upper() + self.compositor[1:]

    @property
    def app_title(self) -> str:
        return self.title or f"{self.display_name} Setup Assistant for GhostBSD"

    def home_path(self) -> Path:
        return Path(self.home_dir).expanduser() if self.home_dir else Path.home()

    def config_dir(self) -> Path:
        return self.home_path() / ".config" / self.compositor

    def config_path(self) -> Path:
        return self.config_dir() / self.template_name

    def profile_path(self) -> Path:
        return self.home_path() / ".profile"

    def runtime_dir(self, uid: Optional[int] = None) -> Path:
        return runtime_dir_path(self.runtime_base, uid)

    def privileged(self, argv: Sequence[str]) -> list[str]:
        """Prefix ``argv`` with the privilege helper, if one is configured."""
        if self.privilege_command:
            return [*self.privilege_command.split(), *argv]
        return list(argv)


def _as_str_tuple(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"{key} must be a list of strings")
    return tuple(str(v) for v in value)

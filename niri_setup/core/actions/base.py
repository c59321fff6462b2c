"""Shared building blocks for setup actions."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from niri_setup.core.config import SetupConfig
from niri_setup.utils.cmd_runner import CommandResult, matches_any, run_command


@dataclass(frozen=True)
class Step:
    """One external command plus a human-readable description."""

    description: str
    argv: tuple[str, ...]
    benign: tuple[str, ...] = ()


@dataclass(frozen=True)
class StepOutcome:
    step: Step
    result: CommandResult
    benign_hit: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result.success or self.benign_hit is not None

    def log_line(self) -> str:
        if self.result.success:
            return f"{self.step.description}: OK"
        if self.benign_hit is not None:
            return f"{self.step.description}: {self.benign_hit}"
        return f"Warning: {self.step.description}: {self.result.output.strip()}"


@dataclass(frozen=True)
class ActionResult:
    """Aggregated outcome of an action: log lines and an optional error."""

    lines: tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        return "\n".join(self.lines)

    @classmethod
    def failure(cls, message: str, error: Optional[str] = None) -> "ActionResult":
        return cls(lines=(message,), error=error or message)


@dataclass(frozen=True)
class ActionContext:
    """Immutable input handed to an action handler."""

    config: SetupConfig
    logs: tuple[str, ...] = ()


class ActionKind(enum.Enum):
    INSTALL = "install"
    TASK = "task"


Handler = Callable[[ActionContext], ActionResult]


@dataclass(frozen=True)
class ActionSpec:
    """A menu entry bound to the handler that implements it."""

    label: str
    description: str
    kind: ActionKind
    handler: Optional[Handler] = field(default=None, compare=False)
    slug: str = ""
    progress: str = ""


def run_step(step: Step, timeout: Optional[float] = None) -> StepOutcome:
    result = run_command(step.argv, timeout=timeout)
    benign = None
    if not result.success:
        benign = matches_any(result.output, step.benign)
    return StepOutcome(step=step, result=result, benign_hit=benign)


def run_steps(steps: Iterable[Step], timeout: Optional[float] = None) -> List[StepOutcome]:
    """Run every step in order; a failing step never stops the ones after it."""
    return [run_step(step, timeout=timeout) for step in steps]


def make_step(description: str, argv: Sequence[str], benign: Sequence[str] = ()) -> Step:
    return Step(description=description, argv=tuple(argv), benign=tuple(benign))


def launch_hint(config: SetupConfig) -> list[str]:
    return [
        f"To start {config.compositor}, switch to a TTY (Ctrl+Alt+F2) and run:",
        f"  LIBSEAT_BACKEND={config.seat_backend} ck-launch-session dbus-launch {config.compositor} --session",
    ]

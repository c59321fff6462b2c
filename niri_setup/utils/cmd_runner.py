"""Central, test-injectable subprocess runner used across the project.

This module exposes:
- run(cmd, **kwargs): proxy to the current runner (defaults to subprocess.run)
- set_runner(runner): set a custom runner for tests (callable with same signature)
- reset_runner(): restore default
- run_command(argv, timeout=None): run one external program to completion and
  return its merged stdout+stderr together with the exit status

The runner should accept the same parameters as subprocess.run and return
an object with attributes: returncode, stdout, stderr when text output is
captured. Tests can inject a lightweight callable (e.g., FakeSubprocess).
"""
from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

# Default runner is subprocess.run
_runner: Callable = subprocess.run

MISSING_PROGRAM_RC = 127
TIMEOUT_RC = 124


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    argv: tuple[str, ...]
    output: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0


def run(cmd, **kwargs):
    """Run command via the currently configured runner.

    Accepts the same args as subprocess.run and returns whatever the runner returns.
    """
    return _runner(cmd, **kwargs)


def set_runner(runner: Callable):
    """Set custom runner for tests.

    runner: callable(cmd, **kwargs) -> CompletedProcess-like
    """
    global _runner
    _runner = runner


def reset_runner():
    """Reset runner to subprocess.run."""
    global _runner
    _runner = subprocess.run


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(argv: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
    """Run ``argv`` to completion and capture stdout and stderr as one stream.

    The call blocks the calling thread. Failures are returned, not raised:
    a program that cannot be started reports returncode 127 and a command
    that exceeds ``timeout`` reports returncode 124.
    """
    argv_t = tuple(argv)
    logger.info("CMD %s", format_argv(argv_t))
    try:
        proc = run(
            list(argv_t),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout, format_argv(argv_t))
        return CommandResult(argv_t, f"timed out after {timeout}s", TIMEOUT_RC)
    except OSError as exc:
        logger.warning("Could not start %s: %s", argv_t[0], exc)
        return CommandResult(argv_t, str(exc), MISSING_PROGRAM_RC)

    output = proc.stdout or ""
    # Fake runners may still hand back stderr separately
    extra = getattr(proc, "stderr", None)
    if extra:
        output = f"{output}{extra}"
    if output:
        logger.debug("OUTPUT %s", output.strip())
    return CommandResult(argv_t, output, proc.returncode)


def matches_any(output: str, patterns: Iterable[str]) -> Optional[str]:
    """Return the first benign-failure pattern contained in ``output``."""
    for pattern in patterns:
        if pattern and pattern in output:
            return pattern
    return None

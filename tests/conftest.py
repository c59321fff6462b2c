"""Test configuration and fixtures."""
from pathlib import Path

import pytest

from niri_setup.core.actions import ActionContext
from niri_setup.core.config import SetupConfig
from niri_setup.utils import cmd_runner
from tests.utils.fake_subprocess import FakeSubprocess


@pytest.fixture
def fake_runner():
    """Install a FakeSubprocess as the command runner for the duration of a test."""
    fake = FakeSubprocess()
    cmd_runner.set_runner(fake)
    yield fake
    cmd_runner.reset_runner()


@pytest.fixture
def setup_config(tmp_path: Path) -> SetupConfig:
    """A configuration that keeps every path inside tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    dri = tmp_path / "dri"
    dri.mkdir()
    return SetupConfig(
        packages=("dbus", "niri", "waybar"),
        home_dir=str(home),
        dri_dir=str(dri),
        runtime_base=str(tmp_path / "run"),
        log_file=str(tmp_path / "logs" / "nirisetup.log"),
    )


@pytest.fixture
def ctx(setup_config: SetupConfig) -> ActionContext:
    return ActionContext(config=setup_config)

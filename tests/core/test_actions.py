import subprocess
import sys
from pathlib import Path

from niri_setup.core.actions import (
    ActionContext,
    ActionKind,
    build_catalog,
    configure_compositor,
    find_action,
    install_packages,
    save_logs,
    validate_config,
)
from niri_setup.core.actions import configure
from niri_setup.core.actions.base import make_step, run_steps
from niri_setup.core.config import SetupConfig
from niri_setup.utils import cmd_runner


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
def test_catalog_order_and_kinds():
    catalog = build_catalog(SetupConfig())
    assert [spec.label for spec in catalog] == [
        "Install Niri",
        "Setup System",
        "Configure Niri",
        "Validate Config",
        "Save Logs",
        "Exit",
    ]
    assert [spec.kind for spec in catalog[:2]] == [ActionKind.INSTALL, ActionKind.INSTALL]
    assert all(spec.kind is ActionKind.TASK for spec in catalog[2:])
    assert catalog[-1].handler is None


def test_find_action_by_slug_or_label():
    catalog = build_catalog(SetupConfig())
    assert find_action(catalog, "save-logs").label == "Save Logs"
    assert find_action(catalog, "configure niri").slug == "configure"
    assert find_action(catalog, "reboot") is None


# ---------------------------------------------------------------------------
# Step sequencing
# ---------------------------------------------------------------------------
def test_run_steps_runs_every_step_in_order(fake_runner):
    fake_runner.when("service dbus start").then_fail("dbus already running")
    fake_runner.when("kldload").then_fail("kldload: can't load drm: Operation not permitted")
    steps = [
        make_step("Starting dbus service", ["service", "dbus", "start"], benign=["already running"]),
        make_step("Loading DRM kernel module", ["kldload", "drm"], benign=["already loaded"]),
        make_step("Persisting DRM module to boot", ["sysrc", "kld_list+=drm"]),
    ]

    outcomes = run_steps(steps)

    assert fake_runner.calls == ["service dbus start", "kldload drm", "sysrc kld_list+=drm"]
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[0].log_line() == "Starting dbus service: already running"
    assert outcomes[1].log_line().startswith("Warning: Loading DRM kernel module: kldload:")
    assert outcomes[2].log_line() == "Persisting DRM module to boot: OK"


# ---------------------------------------------------------------------------
# Install
# ---------------------------------------------------------------------------
def test_install_skips_present_packages(fake_runner, ctx):
    fake_runner.when("pkg info dbus").then_stdout("dbus-1.14")
    fake_runner.when("pkg info").then_fail("pkg: No package(s) matching")

    result = install_packages(ctx)

    assert result.ok
    assert not fake_runner.ran("pkg install -y dbus")
    assert fake_runner.ran("sudo pkg install -y niri")
    assert fake_runner.ran("sudo pkg install -y waybar")
    assert result.lines == (
        "Already installed: dbus",
        "Successfully installed niri",
        "Successfully installed waybar",
    )


def test_failed_install_reported_and_loop_continues(fake_runner, ctx):
    fake_runner.when("pkg info").then_fail("not installed")
    fake_runner.when("pkg install -y niri").then_fail("pkg: No packages available to install matching 'niri'")

    result = install_packages(ctx)

    assert not result.ok
    assert result.error == "1 packages failed to install"
    assert fake_runner.ran("pkg install -y waybar")
    assert "Failed to install niri: pkg: No packages available to install matching 'niri'" in result.lines
    assert "Successfully installed waybar" in result.lines
    assert result.lines[-1] == "Failed packages (1): niri"


def test_install_continues_past_undecodable_package_output(ctx):
    script = "import sys; sys.stdout.buffer.write(b'bad \\xff\\xfe byte'); sys.exit(1)"

    def runner(cmd, **kwargs):
        joined = " ".join(cmd)
        if joined == "sudo pkg install -y niri":
            return subprocess.run([sys.executable, "-c", script], **kwargs)
        if joined.startswith("pkg info"):
            return subprocess.CompletedProcess(cmd, 1, stdout="not installed", stderr=None)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr=None)

    cmd_runner.set_runner(runner)
    try:
        result = install_packages(ctx)
    finally:
        cmd_runner.reset_runner()

    assert not result.ok
    assert result.lines[0] == "Successfully installed dbus"
    assert result.lines[1].startswith("Failed to install niri: bad ")
    assert result.lines[2] == "Successfully installed waybar"
    assert result.lines[-1] == "Failed packages (1): niri"


# ---------------------------------------------------------------------------
# Configure
# ---------------------------------------------------------------------------
def _with_template(setup_config: SetupConfig, tmp_path: Path, text: str) -> SetupConfig:
    template = tmp_path / "template.kdl"
    template.write_text(text)
    return setup_config.with_overrides(template_path=str(template))


def test_configure_overwrites_existing_file(setup_config, tmp_path):
    config = _with_template(setup_config, tmp_path, "layout { gaps 8; }\n")
    dest = config.config_path()
    dest.parent.mkdir(parents=True)
    dest.write_text("stale user content that must disappear\n" * 10)

    result = configure_compositor(ActionContext(config=config))

    assert result.ok
    assert dest.read_text() == "layout { gaps 8; }\n"
    assert result.lines[0] == f"Niri configuration copied to {dest}"


def test_configure_appends_render_device_block(setup_config, tmp_path):
    config = _with_template(setup_config, tmp_path, "layout {}\n")
    dri = Path(config.dri_dir)
    for name in ("renderD129", "renderD128", "card0"):
        (dri / name).write_text("")

    result = configure_compositor(ActionContext(config=config))

    text = config.config_path().read_text()
    assert text.startswith("layout {}\n")
    assert f'render-drm-device "{dri / "renderD128"}"' in text
    assert "renderD129" not in text
    assert f"DRM render device set to: {dri / 'renderD128'}" in result.lines


def test_configure_keeps_existing_render_device_setting(setup_config, tmp_path):
    template = 'debug {\n    render-drm-device "/dev/dri/renderD130"\n}\n'
    config = _with_template(setup_config, tmp_path, template)
    (Path(config.dri_dir) / "renderD128").write_text("")

    configure_compositor(ActionContext(config=config))

    assert config.config_path().read_text() == template


def test_configure_template_search_falls_back_to_cwd(setup_config, tmp_path, monkeypatch):
    workdir = tmp_path / "work"
    workdir.mkdir()
    (workdir / "config.kdl").write_text("// from cwd\n")
    monkeypatch.chdir(workdir)
    monkeypatch.setattr("sys.argv", [str(tmp_path / "bin" / "niri-setup")])

    result = configure_compositor(ActionContext(config=setup_config))

    assert result.ok
    assert setup_config.config_path().read_text() == "// from cwd\n"


def test_configure_without_template_fails(setup_config, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(configure, "BUNDLED_TEMPLATE_DIR", tmp_path / "nowhere")
    monkeypatch.setattr("sys.argv", [str(tmp_path / "bin" / "niri-setup")])

    result = configure_compositor(ActionContext(config=setup_config))

    assert not result.ok
    assert "config.kdl not found" in result.status
    assert not setup_config.config_path().exists()


def test_configure_rejects_template_that_is_not_utf8(setup_config, tmp_path):
    template = tmp_path / "template.kdl"
    template.write_bytes(b"// caf\xe9\nlayout {}\n")
    config = setup_config.with_overrides(template_path=str(template))

    result = configure_compositor(ActionContext(config=config))

    assert not result.ok
    assert result.status.startswith("Failed to read source config: ")
    assert not config.config_path().exists()


def test_configure_falls_back_to_bundled_template(setup_config, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("sys.argv", [str(tmp_path / "bin" / "niri-setup")])

    result = configure_compositor(ActionContext(config=setup_config))

    assert result.ok
    bundled = configure.BUNDLED_TEMPLATE_DIR / "config.kdl"
    assert bundled.is_file()
    assert setup_config.config_path().read_text().startswith(bundled.read_text())


# ---------------------------------------------------------------------------
# Validate
# ---------------------------------------------------------------------------
def test_validate_success(fake_runner, ctx):
    result = validate_config(ctx)
    assert result.ok
    assert result.lines == ("Niri configuration is valid.",)
    assert fake_runner.calls == [f"niri validate -c {ctx.config.config_path()}"]


def test_validate_failure_passes_output_through(fake_runner, ctx):
    fake_runner.when("niri validate").then_fail("error: unexpected node `layoutt`")
    result = validate_config(ctx)
    assert not result.ok
    assert result.status == "Validation failed: error: unexpected node `layoutt`"


# ---------------------------------------------------------------------------
# Save logs
# ---------------------------------------------------------------------------
def test_save_logs_appends_without_truncating(setup_config):
    log_file = Path(setup_config.log_file)

    first = save_logs(ActionContext(config=setup_config, logs=("first run",)))
    second = save_logs(ActionContext(config=setup_config, logs=("second run", "more")))

    assert first.ok and second.ok
    assert log_file.read_text() == "first run\nsecond run\nmore\n"
    assert second.lines == (f"Logs saved to {log_file}",)


def test_save_logs_reports_unwritable_path(setup_config, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    config = setup_config.with_overrides(log_file=str(blocker / "nirisetup.log"))

    result = save_logs(ActionContext(config=config, logs=("x",)))

    assert not result.ok
    assert "Failed to write to log file" in result.status

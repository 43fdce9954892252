"""Tests for hostdock.deploy.teardown: removing an app completely."""

import pytest

from hostdock.deploy.teardown import TeardownError, run_teardown
from hostdock.topology.model import Topology
from hostdock.topology.render import RenderContext, render
from hostdock.topology.writer import write_units


@pytest.fixture
def installed(settings, demo_app):
    write_units(settings.systemd_dir, render(Topology("demo", ("web", "worker"), ("postgres",)), RenderContext.for_app(demo_app)))
    write_units(settings.systemd_dir, render(Topology("demo-api", ("web",)), RenderContext.for_app(demo_app)))
    (demo_app / "compose.postgres.yml").write_text("services: {}\n")
    return settings


async def test_teardown_removes_everything(ctx, installed, runner, demo_app):
    settings = installed
    await run_teardown(ctx, "demo")

    assert sorted(p.name for p in settings.systemd_dir.iterdir()) == ["app-demo-api-web.service", "app-demo-api.target"]
    assert not demo_app.exists()
    assert not settings.repo_dir("demo").exists()

    stops = [c[-1] for c in runner.systemctl("stop")]
    assert stops[0] == "app-demo.target"
    assert sorted(stops) == ["app-demo-acc.service", "app-demo-web.service", "app-demo-worker.service", "app-demo.target"]
    (down,) = runner.find("docker", "compose", "-p", "demo-acc")
    assert down[-2:] == ["down", "-v"]
    assert runner.index("systemctl", "--user", "daemon-reload") < runner.index("docker", "compose")


async def test_teardown_volume_failure_is_a_warning(ctx, installed, runner, demo_app, caplog):
    runner.respond(["docker", "compose"], rc=1, stderr="no such volume\n")
    await run_teardown(ctx, "demo")
    assert "failed to remove accessory containers/volumes: no such volume" in caplog.text
    assert not demo_app.exists()


async def test_teardown_reports_failed_step(ctx, installed, runner, demo_app):
    runner.respond(["systemctl", "--user", "daemon-reload"], rc=1, stderr="Access denied\n")
    with pytest.raises(TeardownError) as exc:
        await run_teardown(ctx, "demo")
    assert exc.value.step == "daemon-reload"
    assert "Access denied" in str(exc.value)
    # later steps never ran
    assert demo_app.exists()


async def test_teardown_process_stop_failure_is_a_warning(ctx, installed, runner, demo_app, caplog):
    runner.respond(["systemctl", "--user", "stop", "app-demo-worker.service"], rc=5, stderr="Unit not loaded.\n")
    await run_teardown(ctx, "demo")
    assert "failed to stop app-demo-worker.service" in caplog.text
    assert not (installed.systemd_dir / "app-demo-worker.service").exists()
    assert not demo_app.exists()


async def test_teardown_target_stop_failure_aborts(ctx, installed, runner, demo_app):
    runner.respond(["systemctl", "--user", "stop", "app-demo.target"], rc=1, stderr="Access denied\n")
    with pytest.raises(TeardownError) as exc:
        await run_teardown(ctx, "demo")
    assert exc.value.step == "stop units"
    assert (installed.systemd_dir / "app-demo.target").exists()


async def test_teardown_of_unknown_app(ctx, runner, settings):
    await run_teardown(ctx, "ghost")
    assert runner.calls == [["systemctl", "--user", "daemon-reload"]]


async def test_teardown_dry_run(ctx, installed, demo_app):
    ctx.dry_run = True
    await run_teardown(ctx, "demo")
    assert demo_app.exists()
    assert (installed.systemd_dir / "app-demo-web.service").exists()

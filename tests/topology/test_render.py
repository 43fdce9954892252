"""Tests for hostdock.topology.render: unit descriptors from a Topology."""

from pathlib import Path

from hostdock.topology import naming
from hostdock.topology.model import Topology, UnitSpec
from hostdock.topology.render import RenderContext, render, serialize_unit

APP_DIR = Path("/srv/apps/demo")


def _ctx(scaled_roles=("worker",)):
    return RenderContext.for_app(APP_DIR, scaled_roles)


def _units(topology, ctx=None):
    return dict(render(topology, ctx or _ctx()))


def _lines(body, key):
    return [line.split("=", 1)[1] for line in body.splitlines() if line.startswith(f"{key}=")]


# ── serialisation ───────────────────────────────────────────────────


def test_serialize_unit_format():
    spec = UnitSpec(
        name="x.service",
        kind=naming.KIND_PROCESS,
        description="X",
        after=["default.target", "y.service"],
        wants=["y.service"],
        part_of="z.target",
        service=[("Type", "oneshot"), ("Environment", "A=1"), ("Environment", "B=2")],
        wanted_by="z.target",
    )
    assert serialize_unit(spec) == (
        "[Unit]\n"
        "Description=X\n"
        "After=default.target y.service\n"
        "Wants=y.service\n"
        "PartOf=z.target\n"
        "\n"
        "[Service]\n"
        "Type=oneshot\n"
        "Environment=A=1\n"
        "Environment=B=2\n"
        "\n"
        "[Install]\n"
        "WantedBy=z.target\n"
    )


def test_stack_target_has_no_service_section():
    units = _units(Topology("demo", ("web",)))
    body = units["app-demo.target"]
    assert "[Service]" not in body
    assert "Wants=app-demo-web.service\n" in body
    assert "WantedBy=default.target" in body


# ── graph shape ─────────────────────────────────────────────────────


def test_no_accessories_emits_no_accessory_unit():
    units = _units(Topology("demo", ("web", "worker")))
    assert sorted(units) == ["app-demo-web.service", "app-demo-worker.service", "app-demo.target"]
    for body in units.values():
        assert "app-demo-acc.service" not in body


def test_accessories_wired_into_every_process():
    units = _units(Topology("demo", ("web", "worker"), ("postgres", "redis")))
    assert "app-demo-acc.service" in units
    for role in ("web", "worker"):
        body = units[naming.process_unit("demo", role)]
        assert "app-demo-acc.service" in _lines(body, "Wants")[0].split()
        assert "app-demo-acc.service" in _lines(body, "After")[0].split()
        assert _lines(body, "PartOf") == ["app-demo.target"]
        assert _lines(body, "WantedBy") == ["app-demo.target"]


def test_stack_target_wants_every_unit():
    units = _units(Topology("demo", ("web", "worker"), ("postgres",)))
    wants = _lines(units["app-demo.target"], "Wants")[0].split()
    assert wants == ["app-demo-acc.service", "app-demo-web.service", "app-demo-worker.service"]


def test_accessory_unit_is_not_part_of_the_target():
    units = _units(Topology("demo", ("web",), ("postgres",)))
    body = units["app-demo-acc.service"]
    assert "PartOf=" not in body
    assert "EnvironmentFile=" not in body


def test_empty_topology_renders_nothing():
    assert render(Topology("demo"), _ctx()) == []


# ── compose commands ────────────────────────────────────────────────


def test_accessory_overlays_in_sorted_order():
    units = _units(Topology("demo", ("web",), ("redis", "postgres")))
    body = units["app-demo-acc.service"]
    assert "Environment=PROJECT_NAME=demo-acc" in body
    assert (
        "Environment=COMPOSE_ACC=/srv/apps/demo/compose.postgres.yml:/srv/apps/demo/compose.redis.yml" in body
    )
    (start,) = _lines(body, "ExecStart")
    assert start.endswith(
        "-f /srv/apps/demo/compose.postgres.yml -f /srv/apps/demo/compose.redis.yml up -d"
    )
    assert _lines(body, "ExecStop")[0].endswith(" stop")


def test_process_unit_starts_only_its_service():
    units = _units(Topology("demo", ("web", "worker")))
    body = units["app-demo-web.service"]
    (start,) = _lines(body, "ExecStart")
    assert start.startswith("/usr/bin/docker compose -p ${PROJECT_NAME} -f ${COMPOSE_BASE}")
    assert start.endswith("up -d --remove-orphans web")
    # every process overlay is loaded so --remove-orphans never removes a sibling role
    assert "-f /srv/apps/demo/compose.web.yml -f /srv/apps/demo/compose.worker.yml" in start
    assert "EnvironmentFile=-/srv/apps/demo/.env" in body
    assert _lines(body, "ExecStop")[0].endswith("stop web")
    assert "Restart=no" in body


def test_docker_wait_precedes_start():
    body = _units(Topology("demo", ("web",)))["app-demo-web.service"]
    lines = body.splitlines()
    pre = next(i for i, line in enumerate(lines) if line.startswith("ExecStartPre="))
    start = next(i for i, line in enumerate(lines) if line.startswith("ExecStart="))
    assert pre < start
    assert "docker version" in lines[pre]


# ── scaled roles ────────────────────────────────────────────────────


def test_worker_gets_scale_line():
    units = _units(Topology("demo", ("web", "worker")))
    (post,) = _lines(units["app-demo-worker.service"], "ExecStartPost")
    assert post.startswith("/bin/sh -c '")
    assert "--scale worker=$${WORKER_SCALE:-1} worker'" in post
    assert "ExecStartPost" not in units["app-demo-web.service"]


def test_scaled_roles_are_configurable():
    units = _units(Topology("demo", ("web", "jobs", "worker")), _ctx(scaled_roles=["jobs"]))
    assert "--scale jobs=$${JOBS_SCALE:-1} jobs" in units["app-demo-jobs.service"]
    assert "ExecStartPost" not in units["app-demo-worker.service"]


def test_no_scaled_roles():
    units = _units(Topology("demo", ("worker",)), _ctx(scaled_roles=[]))
    assert "ExecStartPost" not in units["app-demo-worker.service"]


# ── determinism ─────────────────────────────────────────────────────


def test_render_is_deterministic_across_input_order():
    a = render(Topology("demo", ("worker", "web", "clock"), ("redis", "postgres")), _ctx())
    b = render(Topology("demo", ("clock", "web", "worker", "web"), ("postgres", "redis")), _ctx())
    assert a == b


def test_unit_bodies_end_with_single_newline():
    for _, body in render(Topology("demo", ("web",), ("postgres",)), _ctx()):
        assert body.endswith("\n")
        assert not body.endswith("\n\n")

"""Tests for hostdock.topology.discovery: reading back the installed topology."""

import pytest

from hostdock.topology.discovery import discover, discover_accessories, discover_processes, parse_compose_acc
from hostdock.topology.model import Topology
from hostdock.topology.render import RenderContext, render
from hostdock.topology.writer import write_units


@pytest.fixture
def dirs(tmp_path):
    units = tmp_path / "units"
    app_dir = tmp_path / "demo"
    units.mkdir()
    app_dir.mkdir()
    (app_dir / "compose.yml").write_text("networks: {}\n")
    return units, app_dir


def _install(units, app_dir, topology):
    write_units(units, render(topology, RenderContext.for_app(app_dir)))


# ── processes ───────────────────────────────────────────────────────


def test_discover_processes(dirs):
    units, app_dir = dirs
    _install(units, app_dir, Topology("demo", ("web", "worker"), ("postgres",)))
    _install(units, app_dir, Topology("demo-api", ("web", "clock")))
    assert discover_processes(units, "demo") == ["web", "worker"]
    assert discover_processes(units, "demo-api") == ["clock", "web"]


def test_missing_unit_dir_is_an_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        discover_processes(tmp_path / "nope", "demo")


# ── accessories ─────────────────────────────────────────────────────


def test_parse_compose_acc():
    text = "[Service]\nEnvironment=COMPOSE_ACC=/a/compose.redis.yml:/a/compose.postgres.yml\n"
    assert parse_compose_acc(text) == ["/a/compose.redis.yml", "/a/compose.postgres.yml"]
    assert parse_compose_acc('Environment=COMPOSE_ACC="/a/compose.redis.yml"\n') == ["/a/compose.redis.yml"]
    assert parse_compose_acc("Environment=COMPOSE_ACC=\n") is None
    assert parse_compose_acc("[Service]\n") is None


def test_accessory_unit_is_authoritative(dirs):
    units, app_dir = dirs
    _install(units, app_dir, Topology("demo", ("web",), ("redis", "postgres")))
    # a stray overlay on disk is ignored while the unit lists accessories
    (app_dir / "compose.mysql.yml").write_text("services: {}\n")
    assert discover_accessories(units, app_dir, "demo", ["web"]) == ["postgres", "redis"]


def test_malformed_accessory_unit_falls_back_to_files(dirs):
    units, app_dir = dirs
    (units / "app-demo-acc.service").write_text("[Service]\nExecStart=/bin/true\n")
    (app_dir / "compose.web.yml").write_text("services: {}\n")
    (app_dir / "compose.postgres.yml").write_text("services: {}\n")
    assert discover_accessories(units, app_dir, "demo", ["web"]) == ["postgres"]


def test_file_fallback_excludes_base_and_processes(dirs):
    units, app_dir = dirs
    for name in ("web", "worker", "redis"):
        (app_dir / f"compose.{name}.yml").write_text("services: {}\n")
    (app_dir / "Procfile").write_text("web: x\n")
    assert discover_accessories(units, app_dir, "demo", ["web", "worker"]) == ["redis"]


def test_missing_app_dir_is_an_error(dirs):
    units, app_dir = dirs
    with pytest.raises(FileNotFoundError):
        discover_accessories(units, app_dir.parent / "other", "other")


# ── discover ────────────────────────────────────────────────────────


def test_discover_round_trips_installed_topology(dirs):
    units, app_dir = dirs
    topology = Topology("demo", ("worker", "web"), ("postgres",))
    _install(units, app_dir, topology)
    assert discover(units, app_dir, "demo") == topology


def test_discover_empty(dirs):
    units, app_dir = dirs
    assert discover(units, app_dir, "demo") == Topology("demo")

"""Tests for hostdock.deploy.units: topology sync helpers."""

from hostdock.deploy.units import accessory_changed, current_topology, summarize
from hostdock.topology.model import Topology, WriteOutcome


def test_summarize():
    outcomes = {
        "app-demo.target": WriteOutcome.UPDATED,
        "app-demo-acc.service": WriteOutcome.CREATED,
        "app-demo-web.service": WriteOutcome.UPDATED,
    }
    assert summarize(outcomes) == "1 created, 2 updated, 0 unchanged"


def test_accessory_changed():
    assert accessory_changed({"app-demo-acc.service": WriteOutcome.CREATED}, "demo")
    assert not accessory_changed({"app-demo-acc.service": WriteOutcome.UNCHANGED}, "demo")
    assert not accessory_changed({}, "demo")


def test_current_topology_ignores_new_manifest_roles(ctx, demo_app):
    # overlays written for a first deploy must not read back as accessories
    (demo_app / "compose.web.yml").write_text("services: {}\n")
    (demo_app / "compose.clock.yml").write_text("services: {}\n")
    (demo_app / "compose.redis.yml").write_text("services: {}\n")
    assert current_topology(ctx, "demo", extra_processes=["web", "clock"]) == Topology("demo", (), ("redis",))

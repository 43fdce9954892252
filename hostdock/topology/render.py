"""Render a Topology into systemd unit descriptors.

Each unit kind is described by a UnitSpec built from data, and
serialize_unit is the only place that emits unit-file text.
"""

from dataclasses import dataclass
from pathlib import Path

from hostdock.topology import naming
from hostdock.topology.model import Topology, UnitSpec

DOCKER = "/usr/bin/docker"
WAIT_FOR_DOCKER = (
    "/usr/bin/bash -lc 'for i in {1..30}; do docker version >/dev/null 2>&1 && exit 0; "
    "sleep 1; done; echo \"Docker unavailable\" >&2; exit 1'"
)
ONESHOT = [("Type", "oneshot"), ("RemainAfterExit", "yes")]


@dataclass(frozen=True)
class ScaleExtension:
    """Post-start scale line for roles that run several replicas.

    The replica count comes from ``<ROLE>_SCALE`` in the app's environment
    file and defaults to 1. The command runs through ``sh`` because systemd
    itself does not understand ``${VAR:-default}``.
    """

    roles: frozenset

    def service_lines(self, role: str, compose: str) -> list[tuple[str, str]]:
        if role not in self.roles:
            return []
        var = f"{role.upper().replace('.', '_')}_SCALE"
        cmd = f"{compose} up -d --no-recreate --scale {role}=$${{{var}:-1}} {role}"
        return [("ExecStartPost", f"/bin/sh -c '{cmd}'")]


@dataclass(frozen=True)
class RenderContext:
    """Fixed path conventions the renderer needs besides the Topology."""

    app_dir: Path
    env_file: Path | None = None
    extensions: tuple = ()

    @classmethod
    def for_app(cls, app_dir, scaled_roles=("worker",)) -> "RenderContext":
        app_dir = Path(app_dir)
        extensions = (ScaleExtension(frozenset(scaled_roles)),) if scaled_roles else ()
        return cls(app_dir=app_dir, env_file=app_dir / ".env", extensions=extensions)

    @property
    def base_file(self) -> Path:
        return self.app_dir / naming.BASE_COMPOSE_FILE

    def overlay(self, name: str) -> Path:
        return self.app_dir / naming.overlay_file(name)


def serialize_unit(spec: UnitSpec) -> str:
    """Serialise a UnitSpec into unit-file text."""
    lines = ["[Unit]", f"Description={spec.description}"]
    if spec.after:
        lines.append(f"After={' '.join(spec.after)}")
    if spec.wants:
        lines.append(f"Wants={' '.join(spec.wants)}")
    if spec.part_of:
        lines.append(f"PartOf={spec.part_of}")
    lines.append("")
    if spec.service:
        lines.append("[Service]")
        lines.extend(f"{key}={value}" for key, value in spec.service)
        lines.append("")
    lines.append("[Install]")
    lines.append(f"WantedBy={spec.wanted_by}")
    return "\n".join(lines) + "\n"


def _compose_cmd(files: list[Path]) -> str:
    parts = [DOCKER, "compose", "-p", "${PROJECT_NAME}", "-f", "${COMPOSE_BASE}"]
    for path in files:
        parts += ["-f", str(path)]
    return " ".join(parts)


def stack_spec(topology: Topology) -> UnitSpec:
    wants = []
    if topology.has_accessories:
        wants.append(naming.accessory_unit(topology.app))
    wants += [naming.process_unit(topology.app, role) for role in topology.processes]
    return UnitSpec(
        name=naming.stack_unit(topology.app),
        kind=naming.KIND_STACK,
        description=f"App {topology.app} stack",
        after=["default.target"],
        wants=wants,
    )


def accessory_spec(topology: Topology, ctx: RenderContext) -> UnitSpec:
    app = topology.app
    overlays = [ctx.overlay(name) for name in topology.accessories]
    compose = _compose_cmd(overlays)
    service = ONESHOT + [
        ("ExecStartPre", WAIT_FOR_DOCKER),
        ("Environment", f"PROJECT_NAME={app}-{naming.ACCESSORY_ROLE}"),
        ("Environment", f"COMPOSE_BASE={ctx.base_file}"),
        ("Environment", f"COMPOSE_ACC={':'.join(str(p) for p in overlays)}"),
        ("WorkingDirectory", str(ctx.app_dir)),
        ("ExecStart", f"{compose} up -d"),
        ("ExecStop", f"{compose} stop"),
        ("Restart", "no"),
    ]
    return UnitSpec(
        name=naming.accessory_unit(app),
        kind=naming.KIND_ACCESSORY,
        description=f"App {app} accessories ({', '.join(topology.accessories)})",
        after=["default.target"],
        service=service,
    )


def process_spec(topology: Topology, role: str, ctx: RenderContext) -> UnitSpec:
    app = topology.app
    after = ["default.target"]
    wants = []
    if topology.has_accessories:
        after.append(naming.accessory_unit(app))
        wants.append(naming.accessory_unit(app))

    # Every process overlay, so --remove-orphans keeps the sibling roles.
    overlays = [ctx.overlay(name) for name in topology.processes]
    compose = _compose_cmd(overlays)
    service = ONESHOT + [
        ("ExecStartPre", WAIT_FOR_DOCKER),
        ("Environment", f"PROJECT_NAME={app}"),
        ("Environment", f"COMPOSE_BASE={ctx.base_file}"),
        ("Environment", f"COMPOSE_OVERLAYS={':'.join(str(p) for p in overlays)}"),
    ]
    if ctx.env_file is not None:
        service.append(("EnvironmentFile", f"-{ctx.env_file}"))
    service += [
        ("WorkingDirectory", str(ctx.app_dir)),
        ("ExecStart", f"{compose} up -d --remove-orphans {role}"),
    ]
    for ext in ctx.extensions:
        service += ext.service_lines(role, compose)
    service += [
        ("ExecStop", f"{compose} stop {role}"),
        ("Restart", "no"),
    ]
    return UnitSpec(
        name=naming.process_unit(app, role),
        kind=naming.KIND_PROCESS,
        description=f"App {app} {role} process",
        after=after,
        wants=wants,
        part_of=naming.stack_unit(app),
        service=service,
        wanted_by=naming.stack_unit(app),
    )


def build_specs(topology: Topology, ctx: RenderContext) -> list[UnitSpec]:
    specs = [stack_spec(topology)]
    if topology.has_accessories:
        specs.append(accessory_spec(topology, ctx))
    specs += [process_spec(topology, role, ctx) for role in topology.processes]
    return specs


def render(topology: Topology, ctx: RenderContext) -> list[tuple[str, str]]:
    """Render every unit of *topology* as (unit name, body) pairs.

    Pure: the output depends only on the topology's name sets and *ctx*.
    """
    if not topology.processes and not topology.accessories:
        return []
    return [(spec.name, serialize_unit(spec)) for spec in build_specs(topology, ctx)]

"""Deploy and rollback pipelines.

Deploy states run strictly in order and each one is a gate:

    export -> topology update -> build -> accessory readiness -> migrate
    -> cutover -> health gate -> cleanup

A failure aborts the remaining states. Nothing is rolled back
automatically; ``rollback`` is a separate, explicitly invoked pipeline.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from hostdock.config import load_app_config
from hostdock.deploy.accessories import wait_for_accessories
from hostdock.deploy.compose import generate_base_compose, generate_process_overlay
from hostdock.deploy.units import accessory_changed, current_topology, summarize, sync_units
from hostdock.envfile import read_env_file
from hostdock.errors import HostdockError
from hostdock.host import docker
from hostdock.host.git import export_commit
from hostdock.host.health import wait_for_healthy
from hostdock.host.lock import app_lock
from hostdock.procfile import load_processes
from hostdock.redact import register_secrets
from hostdock.topology import naming
from hostdock.topology.model import Topology
from hostdock.topology.writer import write_if_changed

logger = logging.getLogger(__name__)


@dataclass
class DeployResult:
    """What a finished deploy did."""

    app: str
    sha: str
    topology: Topology
    tags: docker.ImageTags
    outcomes: dict = field(default_factory=dict)
    states: list[str] = field(default_factory=list)


def _load(ctx, app):
    config = load_app_config(ctx.settings.config_file(app))
    env = read_env_file(ctx.settings.env_file(app))
    register_secrets(env, config.secrets)
    return config


def write_compose_files(ctx, config, processes) -> None:
    """Ensure compose.yml exists and (re)write each process overlay."""
    app_dir = ctx.settings.app_dir(config.app)
    base = app_dir / naming.BASE_COMPOSE_FILE
    if not base.exists():
        write_if_changed(base, generate_base_compose(config.network))
        logger.info(f"created {base}")
    for role, command in sorted(processes.items()):
        path = app_dir / naming.overlay_file(role)
        outcome = write_if_changed(path, generate_process_overlay(config, role, command))
        if outcome.changed:
            logger.info(f"{outcome.value} {path}")


async def update_topology(ctx, config, worktree) -> tuple[Topology, dict]:
    """Merge the exported manifest into the installed topology and sync units."""
    processes = load_processes(worktree)
    logger.info(f"processes: {', '.join(sorted(processes))}")
    installed = current_topology(ctx, config.app, extra_processes=processes)
    desired = installed.with_processes(processes).validate()
    if desired.accessories:
        logger.info(f"accessories: {', '.join(desired.accessories)}")
    if not ctx.dry_run:
        write_compose_files(ctx, config, processes)
    outcomes = await sync_units(ctx, desired, config)
    logger.info(f"units: {summarize(outcomes)}")
    if not ctx.dry_run:
        remove_stale_overlays(ctx, config.app, set(installed.processes) - set(desired.processes))
    return desired, outcomes


def remove_stale_overlays(ctx, app, roles):
    """Delete compose overlays of roles that left the topology."""
    app_dir = ctx.settings.app_dir(app)
    for role in sorted(roles):
        path = app_dir / naming.overlay_file(role)
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        logger.info(f"removed {path}")


async def ensure_accessories(ctx, topology, outcomes):
    """Start the accessory group if needed and wait until each accessory is ready."""
    app = topology.app
    unit = naming.accessory_unit(app)
    systemctl = ctx.systemctl(app)
    if accessory_changed(outcomes, app):
        await systemctl.apply_unit_changes(unit)
    elif not await systemctl.is_active(unit):
        await systemctl.enable(unit, now=True)
    await wait_for_accessories(ctx, app, topology.accessories)


async def activate(ctx, topology):
    """Enable every unit of *topology* and restart the stack target."""
    app = topology.app
    systemctl = ctx.systemctl(app)
    for role in topology.processes:
        await systemctl.enable(naming.process_unit(app, role))
    await systemctl.enable(naming.stack_unit(app))
    await systemctl.restart(naming.stack_unit(app))


async def health_gate(ctx, config):
    health = config.health
    if not health.url:
        logger.warning("warning: no health.url configured, skipping health gate")
        return
    if ctx.dry_run:
        logger.info(f"[dry-run] wait for {health.url}")
        return
    await wait_for_healthy(
        health.url,
        health.timeout_seconds,
        health.interval_seconds,
        app=config.app,
        mode=health.mode,
        run_cmd=ctx.run_cmd,
        network=config.network,
        transport=ctx.http_transport,
        sleep=ctx.sleep,
    )


def cleanup(worktree):
    try:
        shutil.rmtree(worktree)
    except OSError as e:
        logger.warning(f"warning: failed to clean up worktree at {worktree}: {e}")


async def run_deploy(ctx, app, sha, branch="master") -> DeployResult:
    """Export, build, migrate and activate *sha* of *app*."""
    settings = ctx.settings
    config = _load(ctx, app)
    tags = docker.tag_for(config.image, sha, branch)
    states = []

    with app_lock(settings.lock_file(app), app):
        logger.info(f"exporting {app} {branch} ({docker.short_sha(sha)})")
        worktree = await export_commit(settings.repo_dir(app), sha, dry_run=ctx.dry_run)
        states.append("export")
        try:
            topology, outcomes = await update_topology(ctx, config, worktree)
            states.append("topology")

            logger.info(f"building {tags.sha}")
            dockerfile = Path(worktree) / "Dockerfile"
            if not dockerfile.exists():
                if not ctx.dry_run:
                    raise HostdockError(f"Dockerfile not found at: {dockerfile}")
                logger.info(f"[dry-run] {dockerfile} not exported, building anyway")
            await docker.build_and_push(
                ctx.run_cmd, worktree, tags.build_tags, dockerfile=dockerfile, platforms=config.platforms, app=app
            )
            states.append("build")

            if topology.accessories:
                await ensure_accessories(ctx, topology, outcomes)
                states.append("accessories")

            if config.migrations.command:
                logger.info("running migrations")
                await docker.run_migrations(
                    ctx.run_cmd,
                    tags.sha,
                    config.migrations.command,
                    config.network,
                    env=config.migrations.env,
                    env_file=settings.env_file(app),
                    cwd=settings.app_dir(app),
                    app=app,
                )
                states.append("migrate")

            logger.info(f"promoting {tags.sha} to {tags.latest}")
            await docker.retag_latest(ctx.run_cmd, tags.sha, tags.latest, app=app)
            await activate(ctx, topology)
            states.append("cutover")

            logger.info("waiting for health")
            await health_gate(ctx, config)
            states.append("health")
        finally:
            cleanup(worktree)

    logger.info(f"deploy of {app} {docker.short_sha(sha)} complete")
    return DeployResult(app=app, sha=sha, topology=topology, tags=tags, outcomes=outcomes, states=states)


async def run_rollback(ctx, app, sha_or_tag) -> str:
    """Point ``latest`` back at a previous build, restart and health-gate."""
    settings = ctx.settings
    config = _load(ctx, app)
    source = docker.rollback_ref(config.image, sha_or_tag)
    latest = f"{config.image}:latest"

    with app_lock(settings.lock_file(app), app):
        logger.info(f"retagging {source} -> {latest}")
        await docker.retag_latest(ctx.run_cmd, source, latest, app=app)
        logger.info("restarting stack")
        await ctx.systemctl(app).restart(naming.stack_unit(app))
        logger.info("waiting for health")
        await health_gate(ctx, config)

    logger.info(f"rollback of {app} to {source} complete")
    return source


async def restart_app(ctx, app):
    await ctx.systemctl(app).restart(naming.stack_unit(app))

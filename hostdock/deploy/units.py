"""Bring installed units in line with a desired topology."""

import logging

from hostdock.topology import naming
from hostdock.topology.discovery import discover_accessories, discover_processes
from hostdock.topology.model import Topology, WriteOutcome
from hostdock.topology.reconcile import find_orphans, reconcile
from hostdock.topology.render import RenderContext, render
from hostdock.topology.writer import write_units

logger = logging.getLogger(__name__)


def current_topology(ctx, app, extra_processes=()) -> Topology:
    """Installed topology of *app*.

    *extra_processes* (e.g. roles from a new manifest) are excluded from
    the accessory filesystem fallback so their overlays are not mistaken for
    accessories on a first deploy.
    """
    settings = ctx.settings
    settings.systemd_dir.mkdir(parents=True, exist_ok=True)
    processes = discover_processes(settings.systemd_dir, app)
    known = set(processes) | set(extra_processes)
    accessories = discover_accessories(settings.systemd_dir, settings.app_dir(app), app, known)
    return Topology(app, tuple(processes), tuple(accessories))


async def sync_units(ctx, desired: Topology, config) -> dict[str, WriteOutcome]:
    """Reconcile orphans, write the desired unit set, then daemon-reload.

    Orphans go first so that a removed role is stopped before the new
    topology is activated.
    """
    settings = ctx.settings
    systemctl = ctx.systemctl(desired.app)

    if ctx.dry_run:
        for name in find_orphans(settings.systemd_dir, desired):
            logger.info(f"[dry-run] remove orphaned unit {name}")
    else:
        await reconcile(systemctl, settings.systemd_dir, desired)

    render_ctx = RenderContext.for_app(settings.app_dir(desired.app), config.scaled_roles)
    outcomes = write_units(settings.systemd_dir, render(desired, render_ctx), dry_run=ctx.dry_run)
    await systemctl.reload()
    return outcomes


def accessory_changed(outcomes, app) -> bool:
    outcome = outcomes.get(naming.accessory_unit(app))
    return outcome is not None and outcome.changed


def summarize(outcomes) -> str:
    counts = {o: 0 for o in WriteOutcome}
    for outcome in outcomes.values():
        counts[outcome] += 1
    return ", ".join(f"{counts[o]} {o.value}" for o in WriteOutcome)

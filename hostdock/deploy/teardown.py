"""Remove every artifact of an application from the host."""

import contextlib
import logging
import shutil

from hostdock.errors import HostdockError
from hostdock.host.docker import compose_argv
from hostdock.host.lock import app_lock
from hostdock.topology import naming
from hostdock.topology.discovery import discover_accessories, discover_processes
from hostdock.topology.reconcile import installed_units

logger = logging.getLogger(__name__)


class TeardownError(HostdockError):
    """A teardown step failed; ``step`` names it."""

    def __init__(self, step, cause):
        self.step = step
        super().__init__(f"teardown step '{step}' failed: {cause}")


async def _stop_units(ctx, app, units):
    systemctl = ctx.systemctl(app)
    target = naming.stack_unit(app)
    # Target first: its PartOf cascade stops the process units.
    ordered = sorted(units, key=lambda name: (name != target, name))
    for name in ordered:
        if name == target:
            await systemctl.stop(name)
            await systemctl.disable(name)
            continue
        try:
            await systemctl.stop(name)
            await systemctl.disable(name)
        except HostdockError as e:
            logger.warning(f"warning: failed to stop {name}: {e}")


def _remove_unit_files(ctx, units):
    for name in sorted(units):
        path = ctx.settings.systemd_dir / name
        if ctx.dry_run:
            logger.info(f"[dry-run] remove {path}")
            continue
        path.unlink(missing_ok=True)
        logger.debug(f"removed {path}")


async def _remove_accessory_volumes(ctx, app, accessories):
    app_dir = ctx.settings.app_dir(app)
    files = [app_dir / naming.BASE_COMPOSE_FILE] + [app_dir / naming.overlay_file(a) for a in accessories]
    argv = compose_argv(f"{app}-{naming.ACCESSORY_ROLE}", files, "down", "-v")
    rc, _, stderr = await ctx.run_cmd(argv, cwd=str(app_dir), timeout=300)
    if rc != 0:
        logger.warning(f"warning: failed to remove accessory containers/volumes: {stderr.strip() or f'exit {rc}'}")


def _remove_tree(ctx, path, label):
    if not path.exists():
        logger.debug(f"{label} not found: {path} (skipping)")
        return
    if ctx.dry_run:
        logger.info(f"[dry-run] remove {path}")
        return
    shutil.rmtree(path)
    logger.info(f"removed {label}: {path}")


@contextlib.contextmanager
def _step(name):
    logger.info(f"teardown: {name}")
    try:
        yield
    except (HostdockError, OSError) as e:
        raise TeardownError(name, e) from e


async def run_teardown(ctx, app):
    """Stop units, delete unit files, reload, drop volumes, repo and app dir.

    Steps run in that order; the first hard failure is raised as a
    TeardownError naming the step. Volume cleanup is best effort.
    """
    settings = ctx.settings
    app_dir = settings.app_dir(app)
    with app_lock(settings.lock_file(app), app):
        units, accessories = set(), []
        if settings.systemd_dir.exists():
            units = installed_units(settings.systemd_dir, app)
            if app_dir.is_dir():
                processes = discover_processes(settings.systemd_dir, app)
                accessories = discover_accessories(settings.systemd_dir, app_dir, app, processes)

        with _step("stop units"):
            await _stop_units(ctx, app, units)
        with _step("remove unit files"):
            _remove_unit_files(ctx, units)
        with _step("daemon-reload"):
            await ctx.systemctl(app).reload()
        if accessories:
            with _step("remove accessory volumes"):
                await _remove_accessory_volumes(ctx, app, accessories)
        with _step("remove git repository"):
            _remove_tree(ctx, settings.repo_dir(app), "git repository")
        with _step("remove app directory"):
            _remove_tree(ctx, app_dir, "app directory")

    logger.info(f"app '{app}' has been completely removed")

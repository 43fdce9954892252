"""Remove installed units that no longer belong to the desired topology."""

import logging
from pathlib import Path

from hostdock.errors import HostdockError
from hostdock.topology import naming
from hostdock.topology.model import Topology

logger = logging.getLogger(__name__)


def installed_units(systemd_dir, app: str) -> set[str]:
    """Unit files in *systemd_dir* owned by exactly *app*."""
    return {
        path.name
        for path in Path(systemd_dir).iterdir()
        if naming.parse_unit_name(path.name, app=app) is not None
    }


def find_orphans(systemd_dir, desired: Topology) -> list[str]:
    """Installed service units of the app that *desired* does not produce.

    The stack target is never an orphan while the app exists; teardown is
    the only path that removes it.
    """
    expected = desired.expected_units()
    orphans = [
        name
        for name in installed_units(systemd_dir, desired.app)
        if name not in expected and name != naming.stack_unit(desired.app)
    ]
    return sorted(orphans)


async def reconcile(systemctl, systemd_dir, desired: Topology) -> list[str]:
    """Stop, disable and delete orphaned units; best effort.

    Failures are logged as warnings and never abort the loop. Returns the
    names whose unit files were removed.
    """
    removed = []
    for name in find_orphans(systemd_dir, desired):
        logger.info(f"removing orphaned unit {name}")
        try:
            await systemctl.stop(name)
        except HostdockError as e:
            logger.warning(f"warning: failed to stop {name}: {e}")
        try:
            await systemctl.disable(name)
        except HostdockError as e:
            logger.warning(f"warning: failed to disable {name}: {e}")
        try:
            (Path(systemd_dir) / name).unlink()
            removed.append(name)
        except OSError as e:
            logger.warning(f"warning: failed to delete {Path(systemd_dir) / name}: {e}")
    return removed

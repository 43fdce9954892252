"""Deploy library: topology sync, deploy/rollback pipelines, accessories, teardown."""

from hostdock.deploy.accessories import ACCESSORY_KINDS, add_accessory, get_kind, wait_for_accessories
from hostdock.deploy.context import HostContext
from hostdock.deploy.init import init_app
from hostdock.deploy.pipeline import DeployResult, restart_app, run_deploy, run_rollback
from hostdock.deploy.teardown import TeardownError, run_teardown
from hostdock.deploy.units import current_topology, sync_units

__all__ = [
    "ACCESSORY_KINDS",
    "DeployResult",
    "HostContext",
    "TeardownError",
    "add_accessory",
    "current_topology",
    "get_kind",
    "init_app",
    "restart_app",
    "run_deploy",
    "run_rollback",
    "run_teardown",
    "sync_units",
    "wait_for_accessories",
]

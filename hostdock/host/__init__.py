"""Host collaborators: command transport, systemd, docker, git, health, locking."""

from hostdock.host.shell import make_run_cmd, run_checked
from hostdock.host.systemd import Systemctl

__all__ = ["Systemctl", "make_run_cmd", "run_checked"]

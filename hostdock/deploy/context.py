"""Per-invocation dependencies handed to every deploy operation."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable

from hostdock.config import Settings
from hostdock.host.shell import make_run_cmd
from hostdock.host.systemd import Systemctl


@dataclass
class HostContext:
    """Settings plus the command transport for one CLI invocation."""

    settings: Settings
    run_cmd: Callable[..., Any]
    dry_run: bool = False
    sleep: Callable[[float], Any] = field(default=asyncio.sleep)
    http_transport: Any = None

    @classmethod
    def create(cls, settings=None, dry_run=False) -> "HostContext":
        return cls(
            settings=settings or Settings.from_env(),
            run_cmd=make_run_cmd(dry_run=dry_run),
            dry_run=dry_run,
        )

    def systemctl(self, app=None) -> Systemctl:
        return Systemctl(self.run_cmd, user_mode=self.settings.user_mode, app=app)

"""Init-system lifecycle controller (systemctl wrapper)."""

import logging

from hostdock.host.shell import run_checked

logger = logging.getLogger(__name__)


class Systemctl:
    """Named-unit operations over ``systemctl`` (``--user`` in user mode)."""

    def __init__(self, run_cmd, user_mode=True, app=None):
        self.run_cmd = run_cmd
        self.user_mode = user_mode
        self.app = app

    def _argv(self, *args):
        base = ["systemctl", "--user"] if self.user_mode else ["systemctl"]
        return base + list(args)

    async def _run(self, action, *args):
        return await run_checked(self.run_cmd, action, self._argv(*args), app=self.app, timeout=300)

    async def reload(self):
        """Re-read unit files from disk; required after every write pass."""
        await self._run("systemctl daemon-reload", "daemon-reload")

    async def enable(self, unit, now=False):
        args = ["enable", "--now", unit] if now else ["enable", unit]
        await self._run(f"enable {unit}", *args)

    async def disable(self, unit):
        await self._run(f"disable {unit}", "disable", unit)

    async def start(self, unit):
        await self._run(f"start {unit}", "start", unit)

    async def stop(self, unit):
        await self._run(f"stop {unit}", "stop", unit)

    async def restart(self, unit):
        await self._run(f"restart {unit}", "restart", unit)

    async def is_active(self, unit) -> bool:
        rc, stdout, _ = await self.run_cmd(self._argv("is-active", unit), timeout=60)
        return rc == 0 and stdout.strip() in ("active", "")

    async def apply_unit_changes(self, unit):
        """Bring *unit* up to date with its (possibly rewritten) unit file.

        Active units are enabled and restarted; inactive ones are enabled and
        started once, so a fresh unit is never started and then restarted.
        """
        if await self.is_active(unit):
            logger.info(f"{unit} is active, restarting")
            await self.enable(unit)
            await self.restart(unit)
        else:
            logger.info(f"{unit} is inactive, enabling and starting")
            await self.enable(unit, now=True)

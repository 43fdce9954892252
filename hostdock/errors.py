"""Exception hierarchy shared by every hostdock component."""

import shlex


class HostdockError(Exception):
    """Base class for failures reported to the operator as a single line."""


class ConfigError(HostdockError):
    """Invalid or missing configuration, manifest or CLI input."""


class LockHeldError(HostdockError):
    """Another invocation is already operating on the same application."""


class CommandError(HostdockError):
    """An external command exited non-zero."""

    def __init__(self, action, command, returncode, app=None, stderr=""):
        self.action = action
        self.command = list(command)
        self.returncode = returncode
        self.app = app
        self.stderr = stderr
        scope = f"[{app}] " if app else ""
        detail = f": {stderr.strip().splitlines()[-1]}" if stderr.strip() else ""
        super().__init__(
            f"{scope}{action} failed (exit {returncode}): {shlex.join(self.command)}{detail}"
        )


class ReadinessTimeout(HostdockError):
    """An accessory did not become ready within the attempt ceiling."""


class HealthCheckTimeout(HostdockError):
    """The health gate never passed after cutover.

    Unlike every other failure the new release is already running when this
    is raised, so the message points the operator at ``rollback``.
    """

    def __init__(self, app, target, timeout):
        self.app = app
        self.target = target
        self.timeout = timeout
        super().__init__(
            f"[{app}] deploy activated but health check never passed within {timeout:g}s ({target}); "
            f"containers are running the new release, run 'hostdock rollback {app} <sha>' to revert"
        )

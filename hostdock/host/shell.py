"""External command execution: the run_cmd transport used by every host wrapper."""

import asyncio
import logging
import shlex

from hostdock.errors import CommandError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600


def make_run_cmd(dry_run=False):
    """Create a run_cmd coroutine for local execution.

    ``run_cmd(command, cwd=None, timeout=600, log_output=False, env=None)``
    takes an argv list and returns ``(returncode, stdout, stderr)``. With
    *log_output* the output streams into the log line by line as it arrives.
    """

    async def run_cmd(command, cwd=None, timeout=DEFAULT_TIMEOUT, log_output=False, env=None):
        display = shlex.join(command)
        if dry_run:
            logger.info(f"[dry-run] {display}")
            return 0, "", ""

        logger.debug(f"run: {display}" + (f" (in {cwd})" if cwd else ""))
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error(f"Error: '{command[0]}' not found. Is it installed and on PATH?")
            return 127, "", f"'{command[0]}' not found"

        try:
            if log_output:
                stdout_lines, stderr_lines = [], []

                async def _read_stream(pipe, lines, level):
                    async for raw_line in pipe:
                        line = raw_line.decode(errors="replace").rstrip("\n")
                        logger.log(level, line)
                        lines.append(line)

                await asyncio.wait_for(
                    asyncio.gather(
                        _read_stream(proc.stdout, stdout_lines, logging.INFO),
                        _read_stream(proc.stderr, stderr_lines, logging.ERROR),
                        proc.wait(),
                    ),
                    timeout=timeout,
                )
                return proc.returncode, "\n".join(stdout_lines), "\n".join(stderr_lines)

            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            stdout = stdout_bytes.decode(errors="replace") if stdout_bytes else ""
            stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""
            return proc.returncode, stdout, stderr
        except TimeoutError:
            logger.error(f"Command timed out after {timeout}s: {display}")
            proc.kill()
            await proc.wait()
            return 124, "", f"timed out after {timeout}s"

    return run_cmd


async def run_checked(run_cmd, action, command, app=None, **kwargs):
    """Run *command* and raise CommandError on a non-zero exit."""
    rc, stdout, stderr = await run_cmd(command, **kwargs)
    if rc != 0:
        raise CommandError(action, command, rc, app=app, stderr=stderr)
    return stdout

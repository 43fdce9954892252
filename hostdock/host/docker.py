"""Container runtime wrappers: build/push, retag, migrations, readiness polling."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from hostdock.errors import ReadinessTimeout
from hostdock.host.shell import run_checked

logger = logging.getLogger(__name__)

READINESS_ATTEMPTS = 60
READINESS_INTERVAL = 1.0


@dataclass
class ImageTags:
    """Image references produced by one build."""

    sha: str
    branch_sha: str
    candidate: str
    latest: str

    @property
    def build_tags(self) -> list[str]:
        """Tags pushed by the build; ``latest`` is only moved at cutover."""
        return [self.sha, self.branch_sha, self.candidate]


def short_sha(sha: str) -> str:
    return sha[:7]


def tag_for(image: str, sha: str, branch: str) -> ImageTags:
    short = short_sha(sha)
    return ImageTags(
        sha=f"{image}:{short}",
        branch_sha=f"{image}:{branch.replace('/', '-')}-{short}",
        candidate=f"{image}:candidate",
        latest=f"{image}:latest",
    )


def rollback_ref(image: str, sha_or_tag: str) -> str:
    """Image reference for a rollback target.

    Hex strings are treated as commit SHAs and shortened to the build tag;
    anything else is used as an explicit tag.
    """
    if all(c in "0123456789abcdef" for c in sha_or_tag.lower()) and len(sha_or_tag) >= 7:
        return f"{image}:{short_sha(sha_or_tag)}"
    return f"{image}:{sha_or_tag}"


async def build_and_push(run_cmd, context, tags, dockerfile=None, platforms=None, app=None):
    """``docker buildx build --push`` of *context* with every tag in *tags*."""
    command = ["docker", "buildx", "build", "--push"]
    if platforms:
        command += ["--platform", platforms]
    for tag in tags:
        command += ["-t", tag]
    if dockerfile:
        command += ["--file", str(dockerfile)]
    command.append(str(context))
    await run_checked(run_cmd, "build image", command, app=app, timeout=3600, log_output=True)


async def retag_latest(run_cmd, from_ref: str, latest_ref: str, app=None):
    """Point *latest_ref* at *from_ref* in the registry (pull, tag, push)."""
    await run_checked(run_cmd, "pull image", ["docker", "pull", from_ref], app=app, timeout=1800, log_output=True)
    await run_checked(run_cmd, "tag image", ["docker", "tag", from_ref, latest_ref], app=app, timeout=60)
    await run_checked(run_cmd, "push image", ["docker", "push", latest_ref], app=app, timeout=1800, log_output=True)


def migration_command(image_ref, command, network, env=None, env_file=None) -> list[str]:
    argv = ["docker", "run", "--rm"]
    if env_file is not None:
        argv += ["--env-file", str(env_file)]
    for key, value in sorted((env or {}).items()):
        argv += ["-e", f"{key}={value}"]
    argv += ["--network", network, image_ref]
    return argv + list(command)


async def run_migrations(run_cmd, image_ref, command, network, env=None, env_file=None, cwd=None, app=None):
    """Run the one-shot migration *command* in a fresh container of *image_ref*.

    A missing env file is a warning, not a failure: the container simply
    starts without it.
    """
    if env_file is not None and not Path(env_file).exists():
        logger.warning(f"warning: {env_file} not found, running migrations without it")
        env_file = None
    argv = migration_command(image_ref, command, network, env=env, env_file=env_file)
    await run_checked(run_cmd, "run migrations", argv, app=app, cwd=cwd, timeout=3600, log_output=True)


async def wait_until_ready(
    run_cmd,
    command,
    label,
    expect=None,
    attempts=READINESS_ATTEMPTS,
    interval=READINESS_INTERVAL,
    sleep=asyncio.sleep,
):
    """Poll *command* until it exits 0 (and prints *expect*, if given).

    Raises ReadinessTimeout after *attempts* tries spaced *interval* apart.
    """
    for attempt in range(1, attempts + 1):
        rc, stdout, _ = await run_cmd(command, timeout=30)
        if rc == 0 and (expect is None or expect in stdout):
            logger.debug(f"{label} ready after {attempt} attempt(s)")
            return attempt
        if attempt < attempts:
            await sleep(interval)
    raise ReadinessTimeout(f"{label} not ready after {attempts} attempts")


def compose_argv(project, files, *args) -> list[str]:
    argv = ["docker", "compose", "-p", project]
    for path in files:
        argv += ["-f", str(path)]
    return argv + list(args)

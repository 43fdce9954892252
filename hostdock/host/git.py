"""VCS collaborators: streaming revision export and bare repository setup."""

import asyncio
import logging
import os
import shlex
import shutil
import stat
import tempfile
from pathlib import Path

from hostdock.errors import CommandError, HostdockError
from hostdock.host.shell import run_checked

logger = logging.getLogger(__name__)

COPY_CHUNK = 64 * 1024


async def _pump(reader, writer):
    """Copy *reader* into *writer* until EOF, then close *writer*."""
    try:
        while True:
            chunk = await reader.read(COPY_CHUNK)
            if not chunk:
                break
            writer.write(chunk)
            await writer.drain()
    except (BrokenPipeError, ConnectionResetError):
        logger.debug("extract side closed its input early")
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            pass


def make_export_dir(sha: str, base=None) -> Path:
    """Create a unique ``hostdock-<short>-XXXX`` directory under *base*."""
    base = Path(base) if base is not None else Path(tempfile.gettempdir()).resolve()
    return Path(tempfile.mkdtemp(prefix=f"hostdock-{sha[:7]}-", dir=base))


async def export_commit(repo_dir, sha: str, base=None, dry_run=False) -> Path:
    """Materialise *sha* of *repo_dir* into a fresh temporary directory.

    ``git archive`` and ``tar -x`` run concurrently; a separate copy task
    moves bytes between them so neither side buffers the whole archive.
    Both exit codes are checked.
    """
    repo_dir = Path(repo_dir)
    if not dry_run and not repo_dir.exists():
        raise HostdockError(f"git repository not found at: {repo_dir}")

    target = make_export_dir(sha, base)
    archive_cmd = ["git", "--git-dir", str(repo_dir), "archive", sha]
    extract_cmd = ["tar", "-xC", str(target)]
    if dry_run:
        logger.info(f"[dry-run] {shlex.join(archive_cmd)} | {shlex.join(extract_cmd)}")
        return target

    logger.debug(f"exporting {sha} from {repo_dir} to {target}")
    try:
        await _archive_into(archive_cmd, extract_cmd)
    except BaseException:
        shutil.rmtree(target, ignore_errors=True)
        raise
    logger.debug(f"exported {sha} to {target}")
    return target


async def _archive_into(archive_cmd, extract_cmd):
    archive = await asyncio.create_subprocess_exec(*archive_cmd, stdout=asyncio.subprocess.PIPE)
    try:
        extract = await asyncio.create_subprocess_exec(*extract_cmd, stdin=asyncio.subprocess.PIPE)
    except OSError:
        archive.kill()
        await archive.wait()
        raise

    copier = asyncio.create_task(_pump(archive.stdout, extract.stdin))
    archive_rc, extract_rc, _ = await asyncio.gather(archive.wait(), extract.wait(), copier)

    if archive_rc != 0:
        raise CommandError("git archive", archive_cmd, archive_rc)
    if extract_rc != 0:
        raise CommandError("tar extract", extract_cmd, extract_rc)


POST_RECEIVE_HOOK = """#!/bin/sh
# Installed by hostdock: deploy every pushed branch head.
set -e
while read oldrev newrev refname; do
  case "$refname" in
    refs/heads/*) ;;
    *) continue ;;
  esac
  if [ "$newrev" = "0000000000000000000000000000000000000000" ]; then
    continue
  fi
  branch="${{refname#refs/heads/}}"
  {hostdock} deploy --app {app} --sha "$newrev" --branch "$branch"
done
"""


def render_post_receive_hook(app: str, hostdock_bin: str = "hostdock") -> str:
    return POST_RECEIVE_HOOK.format(app=shlex.quote(app), hostdock=shlex.quote(hostdock_bin))


async def init_bare_repo(run_cmd, repo_dir, app: str, hostdock_bin: str = "hostdock"):
    """Create the bare repository and its post-receive deploy hook (idempotent)."""
    repo_dir = Path(repo_dir)
    if not (repo_dir / "HEAD").exists():
        repo_dir.parent.mkdir(parents=True, exist_ok=True)
        await run_checked(run_cmd, "git init", ["git", "init", "--bare", str(repo_dir)], app=app)
    hook = repo_dir / "hooks" / "post-receive"
    hook.parent.mkdir(parents=True, exist_ok=True)
    hook.write_text(render_post_receive_hook(app, hostdock_bin))
    hook.chmod(hook.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return hook


def repo_remote_uri(repo_dir, user=None, host=None) -> str:
    user = user or os.environ.get("USER", "deploy")
    host = host or os.uname().nodename
    return f"ssh://{user}@{host}{Path(repo_dir)}"

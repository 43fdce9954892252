"""CLI subcommands. Each module exposes a register_*_command(subparsers)."""

import asyncio
import logging
import sys

from hostdock.deploy.context import HostContext
from hostdock.errors import HostdockError

logger = logging.getLogger(__name__)


def make_context(args) -> HostContext:
    return HostContext.create(dry_run=getattr(args, "dry_run", False))


def run_async(coro):
    """Run *coro* to completion; hostdock and OS errors exit 1 with a one-line message."""
    try:
        return asyncio.run(coro)
    except (HostdockError, OSError) as e:
        logger.error(f"error: {e}")
        sys.exit(1)

"""Restart command."""

import logging

from hostdock.commands import make_context, run_async
from hostdock.deploy.pipeline import restart_app

logger = logging.getLogger(__name__)


def handle_restart(args):
    """Handle the restart command."""
    run_async(restart_app(make_context(args), args.app))
    logger.info(f"restarted {args.app}")


def register_restart_command(subparsers):
    """Register the restart subcommand."""
    parser = subparsers.add_parser("restart", help="Restart every process of an app")
    parser.add_argument("--app", required=True, help="Application name")
    parser.set_defaults(func=handle_restart)

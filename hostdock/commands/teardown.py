"""Teardown command: remove an app and everything hostdock created for it."""

import logging
import sys

from hostdock.commands import make_context, run_async
from hostdock.deploy.teardown import run_teardown

logger = logging.getLogger(__name__)


def _confirm(app) -> bool:
    logger.info(f"This will permanently remove '{app}': units, accessory volumes, git repository and app directory.")
    try:
        answer = input(f"Type the app name ({app}) to confirm: ")
    except EOFError:
        return False
    return answer.strip() == app


def handle_teardown(args):
    """Handle the teardown command."""
    if not args.force and not args.dry_run and not _confirm(args.app):
        logger.error("aborted")
        sys.exit(1)
    run_async(run_teardown(make_context(args), args.app))


def register_teardown_command(subparsers):
    """Register the teardown subcommand."""
    parser = subparsers.add_parser("teardown", help="Remove an app completely")
    parser.add_argument("--app", required=True, help="Application name")
    parser.add_argument("--force", action="store_true", help="Skip the confirmation prompt")
    parser.set_defaults(func=handle_teardown)

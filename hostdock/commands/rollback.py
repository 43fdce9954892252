"""Rollback command: re-point latest at an earlier build."""

from hostdock.commands import make_context, run_async
from hostdock.deploy.pipeline import run_rollback


def handle_rollback(args):
    """Handle the rollback command."""
    run_async(run_rollback(make_context(args), args.app, args.sha))


def register_rollback_command(subparsers):
    """Register the rollback subcommand."""
    parser = subparsers.add_parser("rollback", help="Roll an app back to a previous image")
    parser.add_argument("app", help="Application name")
    parser.add_argument("sha", help="Commit SHA (7+ hex chars) or explicit image tag")
    parser.set_defaults(func=handle_rollback)

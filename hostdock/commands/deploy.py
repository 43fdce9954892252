"""Deploy command: invoked by the post-receive hook for each pushed commit."""

import logging

from hostdock.commands import make_context, run_async
from hostdock.deploy.pipeline import run_deploy
from hostdock.deploy.units import summarize

logger = logging.getLogger(__name__)


def handle_deploy(args):
    """Handle the deploy command."""
    ctx = make_context(args)
    result = run_async(run_deploy(ctx, args.app, args.sha, branch=args.branch))
    logger.info(f"{result.tags.sha} is live ({summarize(result.outcomes)})")


def register_deploy_command(subparsers):
    """Register the deploy subcommand."""
    parser = subparsers.add_parser("deploy", help="Build and activate a pushed commit")
    parser.add_argument("--app", required=True, help="Application name")
    parser.add_argument("--sha", required=True, help="Commit to deploy")
    parser.add_argument("--branch", default="master", help="Branch the commit was pushed to (default: master)")
    parser.set_defaults(func=handle_deploy)

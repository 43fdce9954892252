"""Accessories command: provision databases and caches next to an app."""

import logging

from hostdock.commands import make_context, run_async
from hostdock.deploy.accessories import ACCESSORY_KINDS, add_accessory

logger = logging.getLogger(__name__)


def handle_accessory_add(args):
    """Handle 'accessories add'."""
    ctx = make_context(args)
    topology = run_async(
        add_accessory(
            ctx,
            args.app,
            args.kind,
            version=args.version,
            user=args.user,
            database=args.database,
            password=args.password,
        )
    )
    logger.info(f"{args.kind} is running for {args.app} (accessories: {', '.join(topology.accessories)})")


def register_accessories_command(subparsers):
    """Register the accessories subcommand and its actions."""
    parser = subparsers.add_parser("accessories", help="Manage app accessories")
    actions = parser.add_subparsers(dest="action", required=True)

    add = actions.add_parser("add", help="Add an accessory (postgres, redis)")
    add.add_argument("kind", choices=sorted(ACCESSORY_KINDS), help="Accessory type")
    add.add_argument("--app", required=True, help="Application name")
    add.add_argument("--version", default=None, help="Image version (default: per accessory)")
    add.add_argument("--user", default=None, help="Database user (postgres)")
    add.add_argument("--database", default=None, help="Database name (postgres)")
    add.add_argument("--password", default=None, help="Database password (postgres, default: generated)")
    add.set_defaults(func=handle_accessory_add)

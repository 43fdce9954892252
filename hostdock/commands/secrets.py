"""Secrets command: edit the app's .env file.

Values never reach the log; 'list' only shows which keys are set. Running
processes pick up changes on the next restart or deploy.
"""

import logging
import sys

from hostdock.commands import make_context
from hostdock.envfile import merge_env, parse_assignment, read_env_file, remove_keys
from hostdock.errors import HostdockError

logger = logging.getLogger(__name__)


def _env_path(args):
    settings = make_context(args).settings
    if not settings.app_dir(args.app).is_dir():
        raise HostdockError(f"unknown app '{args.app}' (no {settings.app_dir(args.app)})")
    return settings.env_file(args.app)


def handle_secrets_set(args):
    try:
        path = _env_path(args)
        updates = dict(parse_assignment(a) for a in args.assignments)
        if args.dry_run:
            logger.info(f"[dry-run] set {', '.join(updates)} in {path}")
            return
        _, changed = merge_env(path, updates, overwrite=set(updates))
    except (HostdockError, OSError) as e:
        logger.error(f"error: {e}")
        sys.exit(1)
    if changed:
        logger.info(f"set {', '.join(changed)}; run 'hostdock restart --app {args.app}' to apply")
    else:
        logger.info("no changes")


def handle_secrets_list(args):
    try:
        values = read_env_file(_env_path(args))
    except (HostdockError, OSError) as e:
        logger.error(f"error: {e}")
        sys.exit(1)
    for key in sorted(values):
        logger.info(key)


def handle_secrets_unset(args):
    try:
        path = _env_path(args)
        if args.dry_run:
            logger.info(f"[dry-run] unset {', '.join(args.keys)} in {path}")
            return
        removed = remove_keys(path, args.keys)
    except (HostdockError, OSError) as e:
        logger.error(f"error: {e}")
        sys.exit(1)
    missing = [key for key in args.keys if key not in removed]
    if missing:
        logger.warning(f"warning: not set: {', '.join(missing)}")
    if removed:
        logger.info(f"unset {', '.join(removed)}; run 'hostdock restart --app {args.app}' to apply")


def register_secrets_command(subparsers):
    """Register the secrets subcommand and its actions."""
    parser = subparsers.add_parser("secrets", help="Manage app environment variables")
    actions = parser.add_subparsers(dest="action", required=True)

    set_parser = actions.add_parser("set", help="Set one or more KEY=VALUE pairs")
    set_parser.add_argument("--app", required=True, help="Application name")
    set_parser.add_argument("assignments", nargs="+", metavar="KEY=VALUE")
    set_parser.set_defaults(func=handle_secrets_set)

    list_parser = actions.add_parser("list", help="List the keys that are set")
    list_parser.add_argument("--app", required=True, help="Application name")
    list_parser.set_defaults(func=handle_secrets_list)

    unset_parser = actions.add_parser("unset", help="Remove keys")
    unset_parser.add_argument("--app", required=True, help="Application name")
    unset_parser.add_argument("keys", nargs="+", metavar="KEY")
    unset_parser.set_defaults(func=handle_secrets_unset)

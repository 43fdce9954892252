#!/usr/bin/env python3
"""Single-host git-push deploys on docker compose and systemd: CLI entrypoint."""

import argparse

from hostdock import __version__
from hostdock.commands.accessories import register_accessories_command
from hostdock.commands.deploy import register_deploy_command
from hostdock.commands.init import register_init_command
from hostdock.commands.logs import register_logs_command
from hostdock.commands.restart import register_restart_command
from hostdock.commands.rollback import register_rollback_command
from hostdock.commands.secrets import register_secrets_command
from hostdock.commands.teardown import register_teardown_command
from hostdock.logging_setup import setup_cli_logging


def build_parser():
    parser = argparse.ArgumentParser(description="Git-push deploys for docker compose apps on one host")
    parser.add_argument("--version", action="version", version=f"hostdock {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging (unit diffs, every command run)")
    parser.add_argument("--dry-run", action="store_true", help="Print commands and unit changes without applying them")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_init_command(subparsers)
    register_deploy_command(subparsers)
    register_rollback_command(subparsers)
    register_restart_command(subparsers)
    register_accessories_command(subparsers)
    register_secrets_command(subparsers)
    register_logs_command(subparsers)
    register_teardown_command(subparsers)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_cli_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()

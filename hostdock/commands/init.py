"""Init command: prepare a new app for 'git push' deploys."""

import shutil
import sys

from hostdock.commands import make_context, run_async
from hostdock.deploy.init import init_app


def handle_init(args):
    """Handle the init command."""
    hostdock_bin = shutil.which("hostdock") or sys.argv[0]
    run_async(
        init_app(
            make_context(args),
            args.app,
            args.image,
            args.domain,
            args.port,
            network=args.network,
            resolver=args.resolver,
            hostdock_bin=hostdock_bin,
        )
    )


def register_init_command(subparsers):
    """Register the init subcommand."""
    parser = subparsers.add_parser("init", help="Create app directory, config and git repository")
    parser.add_argument("--app", required=True, help="Application name")
    parser.add_argument("--image", required=True, help="Registry image, e.g. registry.example.com/myapp")
    parser.add_argument("--domain", default="", help="Public domain routed to the web process")
    parser.add_argument("--port", type=int, default=3000, help="Port the web process listens on (default: 3000)")
    parser.add_argument("--network", default="traefik_proxy", help="Docker network shared with the proxy")
    parser.add_argument("--resolver", default="myresolver", help="Traefik certificate resolver")
    parser.set_defaults(func=handle_init)

"""Logs command: docker compose logs over the app's process overlays."""

from hostdock.commands import make_context, run_async
from hostdock.host import docker
from hostdock.host.shell import run_checked
from hostdock.topology import naming
from hostdock.topology.discovery import discover_processes


def logs_command(settings, app, follow=False, tail=None, service=None) -> list[str]:
    app_dir = settings.app_dir(app)
    files = [app_dir / naming.BASE_COMPOSE_FILE]
    files += [app_dir / naming.overlay_file(role) for role in discover_processes(settings.systemd_dir, app)]
    args = ["logs"]
    if follow:
        args.append("-f")
    if tail is not None:
        args += ["-n", str(tail)]
    if service:
        args.append(service)
    return docker.compose_argv(app, files, *args)


async def _show_logs(ctx, args):
    command = logs_command(ctx.settings, args.app, follow=args.follow, tail=args.tail, service=args.service)
    await run_checked(
        ctx.run_cmd, "logs", command, app=args.app, cwd=ctx.settings.app_dir(args.app), timeout=None, log_output=True
    )


def handle_logs(args):
    """Handle the logs command."""
    ctx = make_context(args)
    run_async(_show_logs(ctx, args))


def register_logs_command(subparsers):
    """Register the logs subcommand."""
    parser = subparsers.add_parser("logs", help="Show container logs for an app")
    parser.add_argument("app", help="Application name")
    parser.add_argument("-f", "--follow", action="store_true", help="Follow log output")
    parser.add_argument("-n", "--tail", type=int, default=100, help="Lines to show per container (default: 100)")
    parser.add_argument("-s", "--service", default=None, help="Only this process role")
    parser.set_defaults(func=handle_logs)

"""Initialise an application: directory, config, compose base, git repo."""

import logging

from hostdock.config import AppConfig, HealthConfig, MigrationsConfig, dump_app_config
from hostdock.deploy.compose import generate_base_compose
from hostdock.envfile import merge_env
from hostdock.errors import ConfigError
from hostdock.host.git import init_bare_repo, repo_remote_uri
from hostdock.topology import naming
from hostdock.topology.writer import write_if_changed

logger = logging.getLogger(__name__)


def default_config(app, image, domain, port, network="traefik_proxy", resolver="myresolver") -> AppConfig:
    return AppConfig(
        app=app,
        image=image,
        domain=domain,
        service_port=port,
        resolver=resolver,
        network=network,
        health=HealthConfig(url=f"http://{app}-web-1:{port}/healthz"),
        migrations=MigrationsConfig(env={"RAILS_ENV": "production"}),
        secrets=["RAILS_MASTER_KEY", "SECRET_KEY_BASE"],
    )


async def init_app(ctx, app, image, domain, port, network="traefik_proxy", resolver="myresolver", hostdock_bin="hostdock"):
    """Create everything an app needs before its first push.

    Existing .env values and an existing hostdock.yml are left alone. Units
    are rendered by the first deploy.
    """
    if not naming.is_valid_app(app):
        raise ConfigError(f"invalid app name: {app!r}")
    settings = ctx.settings
    app_dir = settings.app_dir(app)
    app_dir.mkdir(parents=True, exist_ok=True)

    merge_env(settings.env_file(app), {"APP": app, "DOMAIN": domain, "SERVICE_PORT": str(port)})

    config = default_config(app, image, domain, port, network=network, resolver=resolver)
    config_path = settings.config_file(app)
    if not config_path.exists():
        write_if_changed(config_path, dump_app_config(config))
    base = app_dir / naming.BASE_COMPOSE_FILE
    write_if_changed(base, generate_base_compose(network))
    logger.info(f"wrote {base}, {config_path} and {settings.env_file(app)}")

    repo_dir = settings.repo_dir(app)
    await init_bare_repo(ctx.run_cmd, repo_dir, app, hostdock_bin=hostdock_bin)
    logger.info(f"created git repository at {repo_dir}")
    logger.info(f"To deploy from your local machine, add a git remote:\n  git remote add production {repo_remote_uri(repo_dir)}")
    return config

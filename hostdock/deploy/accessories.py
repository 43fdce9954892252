"""Accessory kinds (postgres, redis) and the ``accessories add`` operation."""

import logging
from dataclasses import dataclass
from typing import Callable

from hostdock.config import load_app_config
from hostdock.deploy.units import accessory_changed, current_topology, sync_units
from hostdock.envfile import generate_password, merge_env, read_env_file
from hostdock.errors import ConfigError, HostdockError
from hostdock.host.docker import wait_until_ready
from hostdock.host.lock import app_lock
from hostdock.topology import naming
from hostdock.topology.writer import write_if_changed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessoryKind:
    """Everything hostdock knows about one accessory kind."""

    name: str
    default_version: str
    container_suffix: str
    compose: Callable[..., str]
    env: Callable[..., dict]
    readiness: list[str]
    expect: str | None = None

    def container(self, app: str) -> str:
        return f"{app}_{self.container_suffix}"

    def readiness_command(self, app: str) -> list[str]:
        return ["docker", "exec", self.container(app)] + self.readiness


def _postgres_compose(app, version, network):
    return f"""services:
  pg:
    image: postgres:{version}
    container_name: {app}_pg
    restart: unless-stopped
    environment:
      POSTGRES_USER: ${{POSTGRES_USER}}
      POSTGRES_PASSWORD: ${{POSTGRES_PASSWORD}}
      POSTGRES_DB: ${{POSTGRES_DB}}
    volumes:
      - ./pgdata:/var/lib/postgresql/data
    networks: [{network}]
    expose: ["5432"]
    healthcheck:
      test: ["CMD-SHELL", "pg_isready -U $$POSTGRES_USER -d $$POSTGRES_DB || exit 1"]
      interval: 5s
      timeout: 3s
      retries: 10
"""


def _postgres_env(app, user=None, database=None, password=None, existing=None):
    existing = existing or {}
    user = user or existing.get("POSTGRES_USER") or app
    database = database or existing.get("POSTGRES_DB") or app
    password = password or existing.get("POSTGRES_PASSWORD") or generate_password()
    return {
        "POSTGRES_USER": user,
        "POSTGRES_PASSWORD": password,
        "POSTGRES_DB": database,
        "DATABASE_URL": f"postgres://{user}:{password}@{app}_pg:5432/{database}",
    }


def _redis_compose(app, version, network):
    return f"""services:
  redis:
    image: redis:{version}
    container_name: {app}_redis
    restart: unless-stopped
    volumes:
      - ./redisdata:/data
    networks: [{network}]
    expose: ["6379"]
    healthcheck:
      test: ["CMD", "redis-cli", "ping"]
      interval: 5s
      timeout: 3s
      retries: 10
"""


def _redis_env(app, **_):
    return {"REDIS_URL": f"redis://{app}_redis:6379/0"}


ACCESSORY_KINDS = {
    "postgres": AccessoryKind(
        name="postgres",
        default_version="17",
        container_suffix="pg",
        compose=_postgres_compose,
        env=_postgres_env,
        readiness=["sh", "-c", 'pg_isready -U "$POSTGRES_USER" -d "$POSTGRES_DB"'],
    ),
    "redis": AccessoryKind(
        name="redis",
        default_version="7",
        container_suffix="redis",
        compose=_redis_compose,
        env=_redis_env,
        readiness=["redis-cli", "ping"],
        expect="PONG",
    ),
}


def get_kind(name: str) -> AccessoryKind:
    try:
        return ACCESSORY_KINDS[name]
    except KeyError:
        supported = ", ".join(sorted(ACCESSORY_KINDS))
        raise ConfigError(f"unsupported accessory type: {name} (supported: {supported})") from None


async def wait_for_accessories(ctx, app: str, accessories, attempts=60, interval=1.0):
    """Readiness gate over every accessory of a known kind."""
    for name in accessories:
        kind = ACCESSORY_KINDS.get(name)
        if kind is None:
            logger.debug(f"no readiness probe for accessory '{name}', skipping")
            continue
        logger.info(f"waiting for {name} to be ready...")
        await wait_until_ready(
            ctx.run_cmd,
            kind.readiness_command(app),
            f"{app} {name}",
            expect=kind.expect,
            attempts=attempts,
            interval=interval,
            sleep=ctx.sleep,
        )
        logger.info(f"{name} is ready")


async def add_accessory(ctx, app, kind_name, version=None, user=None, database=None, password=None):
    """Provision accessory *kind_name* for *app* and bring it up.

    Generated credentials are kept on re-add; explicit *user*, *database* or
    *password* values replace the stored ones.
    """
    kind = get_kind(kind_name)
    settings = ctx.settings
    app_dir = settings.app_dir(app)
    if not app_dir.is_dir():
        raise HostdockError(f"app directory does not exist: {app_dir}. Run 'hostdock init' first.")
    config = load_app_config(settings.config_file(app))

    with app_lock(settings.lock_file(app), app):
        overlay = app_dir / naming.overlay_file(kind.name)
        outcome = write_if_changed(overlay, kind.compose(app, version or kind.default_version, config.network))
        logger.info(f"{outcome.value} {overlay}")

        existing = read_env_file(settings.env_file(app))
        env_values = kind.env(app, user=user, database=database, password=password, existing=existing)
        overwrite = set()
        if kind.name == "postgres":
            if user:
                overwrite |= {"POSTGRES_USER", "DATABASE_URL"}
            if database:
                overwrite |= {"POSTGRES_DB", "DATABASE_URL"}
            if password:
                overwrite |= {"POSTGRES_PASSWORD", "DATABASE_URL"}
        _, changed = merge_env(settings.env_file(app), env_values, overwrite=overwrite)
        if changed:
            logger.info(f"updated {settings.env_file(app)}: {', '.join(changed)} (chmod 600)")
        else:
            logger.info(f"{kind.name} environment variables already present in {settings.env_file(app)}")

        installed = current_topology(ctx, app)
        desired = installed.with_accessories(set(installed.accessories) | {kind.name}).validate()
        outcomes = await sync_units(ctx, desired, config)

        systemctl = ctx.systemctl(app)
        acc_unit = naming.accessory_unit(app)
        if accessory_changed(outcomes, app):
            await systemctl.apply_unit_changes(acc_unit)
        elif not await systemctl.is_active(acc_unit):
            await systemctl.enable(acc_unit, now=True)
        await wait_for_accessories(ctx, app, [kind.name])
        if desired.processes:
            await systemctl.restart(naming.stack_unit(app))
    return desired

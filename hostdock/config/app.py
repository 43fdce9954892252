"""Application config (hostdock.yml) dataclasses and loader."""

import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from hostdock.errors import ConfigError

_DURATION_RE = re.compile(r"^(\d+)(ms|s|m)$")
_DURATION_SCALE = {"ms": 0.001, "s": 1.0, "m": 60.0}

HEALTH_MODES = ("auto", "direct", "network")


def parse_duration(value) -> float:
    """Parse '250ms', '2s' or '5m' into seconds."""
    match = _DURATION_RE.match(str(value).strip())
    if match is None:
        raise ConfigError(f"bad duration: {value!r} (expected <n>ms, <n>s or <n>m)")
    return int(match.group(1)) * _DURATION_SCALE[match.group(2)]


@dataclass
class HealthConfig:
    """Health gate target and timing."""

    url: str = ""
    interval: str = "2s"
    timeout: str = "45s"
    mode: str = "auto"

    @property
    def interval_seconds(self) -> float:
        return parse_duration(self.interval)

    @property
    def timeout_seconds(self) -> float:
        return parse_duration(self.timeout)


@dataclass
class MigrationsConfig:
    """One-shot migration command run before cutover."""

    command: list[str] = field(default_factory=lambda: ["bin/rails", "db:migrate"])
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class AppConfig:
    """Complete per-application configuration."""

    app: str
    image: str
    domain: str = ""
    service_port: int = 3000
    resolver: str = "myresolver"
    network: str = "traefik_proxy"
    platforms: str = "linux/amd64"
    health: HealthConfig = field(default_factory=HealthConfig)
    migrations: MigrationsConfig = field(default_factory=MigrationsConfig)
    secrets: list[str] = field(default_factory=list)
    scaled_roles: list[str] = field(default_factory=lambda: ["worker"])

    @classmethod
    def from_dict(cls, d: dict) -> "AppConfig":
        """Build an AppConfig from a parsed hostdock.yml mapping.

        Both ``service_port`` and the camelCase ``servicePort`` spelling are
        accepted.
        """
        for key in ("app", "image"):
            if not d.get(key):
                raise ConfigError(f"missing required config key '{key}'")

        health_dict = d.get("health") or {}
        health = HealthConfig(
            url=health_dict.get("url", ""),
            interval=str(health_dict.get("interval", "2s")),
            timeout=str(health_dict.get("timeout", "45s")),
            mode=health_dict.get("mode", "auto"),
        )
        if health.mode not in HEALTH_MODES:
            raise ConfigError(f"health.mode must be one of {', '.join(HEALTH_MODES)}, got '{health.mode}'")
        # Fail early on malformed durations rather than mid-deploy.
        parse_duration(health.interval)
        parse_duration(health.timeout)

        mig_dict = d.get("migrations") or {}
        command = mig_dict.get("command", MigrationsConfig().command)
        if isinstance(command, str):
            command = command.split()
        migrations = MigrationsConfig(
            command=[str(c) for c in (command or [])],
            env={str(k): str(v) for k, v in (mig_dict.get("env") or {}).items()},
        )

        return cls(
            app=d["app"],
            image=d["image"],
            domain=d.get("domain", ""),
            service_port=int(d.get("service_port", d.get("servicePort", 3000))),
            resolver=d.get("resolver", "myresolver"),
            network=d.get("network", "traefik_proxy"),
            platforms=d.get("platforms", "linux/amd64"),
            health=health,
            migrations=migrations,
            secrets=list(d.get("secrets") or []),
            scaled_roles=list(d.get("scaled_roles", ["worker"]) or []),
        )

    def to_dict(self) -> dict:
        return {
            "app": self.app,
            "image": self.image,
            "domain": self.domain,
            "service_port": self.service_port,
            "resolver": self.resolver,
            "network": self.network,
            "platforms": self.platforms,
            "health": {
                "url": self.health.url,
                "interval": self.health.interval,
                "timeout": self.health.timeout,
                "mode": self.health.mode,
            },
            "migrations": {"command": list(self.migrations.command), "env": dict(self.migrations.env)},
            "secrets": list(self.secrets),
            "scaled_roles": list(self.scaled_roles),
        }


def load_app_config(path) -> AppConfig:
    """Load hostdock.yml from *path*."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"App config not found: {path}")
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return AppConfig.from_dict(data)


def dump_app_config(config: AppConfig) -> str:
    return yaml.safe_dump(config.to_dict(), sort_keys=False)

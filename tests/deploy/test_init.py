"""Tests for hostdock.deploy.init: preparing a new app."""

import pytest

from hostdock.config import load_app_config
from hostdock.deploy.init import init_app
from hostdock.envfile import read_env_file
from hostdock.errors import ConfigError


async def test_init_app(ctx, settings, runner):
    config = await init_app(ctx, "shop", "registry.example.com/shop", "shop.example.com", 4000)

    app_dir = settings.app_dir("shop")
    assert (app_dir / "compose.yml").exists()
    assert load_app_config(settings.config_file("shop")) == config
    assert config.health.url == "http://shop-web-1:4000/healthz"
    env = read_env_file(settings.env_file("shop"))
    assert env == {"APP": "shop", "DOMAIN": "shop.example.com", "SERVICE_PORT": "4000"}
    assert runner.calls == [["git", "init", "--bare", str(settings.repo_dir("shop"))]]
    assert (settings.repo_dir("shop") / "hooks" / "post-receive").exists()


async def test_init_keeps_existing_config(ctx, settings):
    await init_app(ctx, "shop", "registry.example.com/shop", "shop.example.com", 4000)
    path = settings.config_file("shop")
    path.write_text(path.read_text().replace("shop.example.com", "shop.example.org"))

    await init_app(ctx, "shop", "registry.example.com/shop", "shop.example.com", 4000)
    assert load_app_config(path).domain == "shop.example.org"


async def test_init_rejects_bad_name(ctx):
    with pytest.raises(ConfigError, match="invalid app name"):
        await init_app(ctx, "../etc", "img", "", 3000)

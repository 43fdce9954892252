"""Tests for hostdock.deploy.compose: base file and process overlays."""

import yaml

from hostdock.config import AppConfig
from hostdock.deploy.compose import generate_base_compose, generate_process_overlay


def _config(**overrides):
    values = {"app": "demo", "image": "registry.example.com/demo", "domain": "demo.example.com", "service_port": 3000}
    values.update(overrides)
    return AppConfig(**values)


def test_base_compose():
    doc = yaml.safe_load(generate_base_compose("traefik_proxy"))
    assert doc["networks"]["traefik_proxy"] == {"external": True, "name": "traefik_proxy"}


def test_web_overlay_has_proxy_labels():
    doc = yaml.safe_load(generate_process_overlay(_config(), "web", "bin/rails server -p $PORT"))
    web = doc["services"]["web"]
    assert web["image"] == "registry.example.com/demo:latest"
    assert web["command"] == ["/bin/sh", "-c", "bin/rails server -p $$PORT"]
    assert "traefik.http.routers.demo.rule=Host(`demo.example.com`)" in web["labels"]
    assert "traefik.http.services.demo.loadbalancer.server.port=3000" in web["labels"]
    assert web["networks"] == ["traefik_proxy"]


def test_worker_overlay_is_private():
    doc = yaml.safe_load(generate_process_overlay(_config(), "worker", "bundle exec sidekiq"))
    assert "labels" not in doc["services"]["worker"]


def test_overlay_without_command_uses_image_default():
    doc = yaml.safe_load(generate_process_overlay(_config(domain=""), "web"))
    assert "command" not in doc["services"]["web"]
    assert "labels" not in doc["services"]["web"]

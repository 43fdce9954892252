"""Compose file generation: base file and per-process overlays."""

import json

WEB_ROLE = "web"


def generate_base_compose(network):
    """Base compose.yml shared by the app and accessory projects."""
    return f"""# Managed by hostdock. Per-role services live in compose.<role>.yml.
networks:
  {network}:
    external: true
    name: {network}
"""


def _proxy_labels(app, domain, port, resolver, network):
    labels = [
        "traefik.enable=true",
        f"traefik.http.routers.{app}.rule=Host(`{domain}`)",
        f"traefik.http.routers.{app}.entrypoints=websecure",
        f"traefik.http.routers.{app}.tls.certresolver={resolver}",
        f"traefik.http.services.{app}.loadbalancer.server.port={port}",
        f"traefik.docker.network={network}",
    ]
    return "\n".join(f"      - {json.dumps(label)}" for label in labels)


def generate_process_overlay(config, role, command=None):
    """compose.<role>.yml for one process role of *config*'s app.

    *command* is the Procfile command; ``$`` is doubled so compose does not
    interpolate it. Only the web role is published through the proxy.
    """
    command_line = ""
    if command:
        escaped = command.replace("$", "$$")
        command_line = f'\n    command: ["/bin/sh", "-c", {json.dumps(escaped)}]'

    labels_block = ""
    if role == WEB_ROLE and config.domain:
        labels = _proxy_labels(config.app, config.domain, config.service_port, config.resolver, config.network)
        labels_block = f"\n    labels:\n{labels}"

    return f"""# Managed by hostdock: process role '{role}'.
services:
  {role}:
    image: {config.image}:latest
    restart: unless-stopped
    env_file: [.env]
    networks: [{config.network}]{command_line}{labels_block}
"""

"""Health gate: poll an HTTP endpoint until it answers or a deadline passes."""

import asyncio
import logging
from urllib.parse import urlparse

import httpx

from hostdock.errors import HealthCheckTimeout

logger = logging.getLogger(__name__)

PROBE_IMAGE = "curlimages/curl:latest"
REQUEST_TIMEOUT = 3.0


def resolve_mode(url: str, mode: str = "auto") -> str:
    """'direct' or 'network' for *url*.

    In auto mode a bare hostname (no dots, not localhost) is taken to be a
    container name that only resolves on the app's docker network.
    """
    if mode != "auto":
        return mode
    host = urlparse(url).hostname or ""
    if host == "localhost" or "." in host or ":" in host:
        return "direct"
    return "network"


async def http_probe(client: httpx.AsyncClient, url: str) -> bool:
    try:
        resp = await client.get(url)
    except httpx.HTTPError as e:
        logger.debug(f"health probe {url}: {e}")
        return False
    return resp.is_success or resp.is_redirect


def make_network_probe(run_cmd, network: str):
    """Probe that curls *url* from a throwaway container on *network*."""

    async def probe(url):
        command = [
            "docker", "run", "--rm", "--network", network, PROBE_IMAGE,
            "-fsS", "-o", "/dev/null", "--max-time", str(int(REQUEST_TIMEOUT)), url,
        ]
        rc, _, _ = await run_cmd(command, timeout=60)
        return rc == 0

    return probe


async def poll(probe, url, timeout, interval, app="app", sleep=asyncio.sleep, clock=None):
    """Call ``probe(url)`` every *interval* seconds until it succeeds.

    Raises HealthCheckTimeout once *timeout* seconds have elapsed.
    """
    clock = clock or asyncio.get_running_loop().time
    deadline = clock() + timeout
    attempts = 0
    while True:
        attempts += 1
        if await probe(url):
            logger.debug(f"{url} healthy after {attempts} attempt(s)")
            return attempts
        if clock() + interval > deadline:
            raise HealthCheckTimeout(app, url, timeout)
        await sleep(interval)


async def wait_for_healthy(
    url,
    timeout,
    interval,
    app="app",
    mode="auto",
    run_cmd=None,
    network=None,
    transport=None,
    sleep=asyncio.sleep,
):
    """Run the health gate against *url* (seconds for *timeout*/*interval*)."""
    if resolve_mode(url, mode) == "network":
        if run_cmd is None or not network:
            raise ValueError("network health probes need run_cmd and a network")
        logger.info(f"probing {url} from inside network {network}")
        return await poll(make_network_probe(run_cmd, network), url, timeout, interval, app=app, sleep=sleep)

    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=transport, follow_redirects=False) as client:

        async def probe(target):
            return await http_probe(client, target)

        return await poll(probe, url, timeout, interval, app=app, sleep=sleep)

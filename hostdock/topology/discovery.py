"""Recover an application's installed topology from the host."""

import logging
import re
from pathlib import Path

from hostdock.topology import naming
from hostdock.topology.model import Topology

logger = logging.getLogger(__name__)

_COMPOSE_ACC_RE = re.compile(r'^Environment=COMPOSE_ACC=(?:"([^"]+)"|([^\r\n]+))$', re.MULTILINE)


def discover_processes(systemd_dir, app: str) -> list[str]:
    """Process roles with an installed ``app-<app>-<role>.service``."""
    roles = set()
    for path in Path(systemd_dir).iterdir():
        parsed = naming.parse_unit_name(path.name, app=app)
        if parsed is not None and parsed.kind == naming.KIND_PROCESS:
            roles.add(parsed.role)
    return sorted(roles)


def parse_compose_acc(unit_text: str) -> list[str] | None:
    """Overlay paths listed in ``Environment=COMPOSE_ACC=``, or None."""
    match = _COMPOSE_ACC_RE.search(unit_text)
    if match is None:
        return None
    raw = match.group(1) or match.group(2)
    parts = [p.strip() for p in raw.split(":") if p.strip()]
    return parts or None


def _accessories_from_unit(unit_path: Path) -> list[str] | None:
    try:
        text = unit_path.read_text()
    except (OSError, UnicodeDecodeError):
        return None
    paths = parse_compose_acc(text)
    if paths is None:
        return None
    names = [naming.parse_overlay_file(Path(p).name) for p in paths]
    names = [n for n in names if n]
    return names or None


def discover_accessories(systemd_dir, app_dir, app: str, known_processes=()) -> list[str]:
    """Accessory names of *app*.

    The installed accessory-group unit is authoritative when it lists any
    overlays; otherwise ``compose.<name>.yml`` files in the app directory
    that are neither the base file nor a process overlay are used.
    """
    unit_path = Path(systemd_dir) / naming.accessory_unit(app)
    if unit_path.exists():
        names = _accessories_from_unit(unit_path)
        if names is not None:
            return sorted(set(names))
        logger.debug(f"{unit_path} lists no accessories, scanning {app_dir}")

    processes = set(known_processes)
    names = set()
    for path in Path(app_dir).iterdir():
        if path.name == naming.BASE_COMPOSE_FILE or not path.is_file():
            continue
        name = naming.parse_overlay_file(path.name)
        if name is None or name in processes:
            continue
        names.add(name)
    return sorted(names)


def discover(systemd_dir, app_dir, app: str) -> Topology:
    """Installed topology of *app*.

    A missing systemd or app directory raises FileNotFoundError.
    """
    processes = discover_processes(systemd_dir, app)
    accessories = discover_accessories(systemd_dir, app_dir, app, processes)
    return Topology(app, tuple(processes), tuple(accessories))

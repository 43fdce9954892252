"""Unit naming convention shared by the renderer, discovery and reconciler.

    app-<app>.target          stack aggregate
    app-<app>-acc.service     accessory group
    app-<app>-<role>.service  one per process role
"""

import re
from typing import NamedTuple

UNIT_PREFIX = "app-"
ACCESSORY_ROLE = "acc"
TARGET_SUFFIX = ".target"
SERVICE_SUFFIX = ".service"

KIND_STACK = "stack-aggregate"
KIND_ACCESSORY = "accessory-group"
KIND_PROCESS = "process"

_ROLE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.]*$")
_APP_RE = re.compile(r"^[a-z0-9][a-z0-9_.-]*$")


class ParsedUnitName(NamedTuple):
    app: str
    kind: str
    role: str | None


def is_valid_role(role: str) -> bool:
    """Roles may not contain '-' so that parsing back is unambiguous."""
    return bool(_ROLE_RE.match(role)) and role != ACCESSORY_ROLE


def is_valid_app(app: str) -> bool:
    return bool(_APP_RE.match(app))


def stack_unit(app: str) -> str:
    return f"{UNIT_PREFIX}{app}{TARGET_SUFFIX}"


def accessory_unit(app: str) -> str:
    return f"{UNIT_PREFIX}{app}-{ACCESSORY_ROLE}{SERVICE_SUFFIX}"


def process_unit(app: str, role: str) -> str:
    return f"{UNIT_PREFIX}{app}-{role}{SERVICE_SUFFIX}"


def unit_name(app: str, role: str | None = None) -> str:
    """Unit name for *role*; ``None`` is the stack target, 'acc' the accessory group."""
    if role is None:
        return stack_unit(app)
    if role == ACCESSORY_ROLE:
        return accessory_unit(app)
    return process_unit(app, role)


def parse_unit_name(name: str, app: str | None = None) -> ParsedUnitName | None:
    """Parse a unit file name back into (app, kind, role).

    App names may contain '-', role names may not, so a service name splits
    at its last '-'. When *app* is given only units owned by exactly that
    app are accepted, which keeps ``app-foo-bar-web.service`` (app
    ``foo-bar``) from being claimed by app ``foo``.
    """
    if not name.startswith(UNIT_PREFIX):
        return None
    stem = name[len(UNIT_PREFIX):]

    if stem.endswith(TARGET_SUFFIX):
        owner = stem[: -len(TARGET_SUFFIX)]
        if not owner or (app is not None and owner != app):
            return None
        return ParsedUnitName(owner, KIND_STACK, None)

    if not stem.endswith(SERVICE_SUFFIX):
        return None
    stem = stem[: -len(SERVICE_SUFFIX)]
    owner, sep, role = stem.rpartition("-")
    if not sep or not owner or not role:
        return None
    if app is not None and owner != app:
        return None
    if role == ACCESSORY_ROLE:
        return ParsedUnitName(owner, KIND_ACCESSORY, None)
    if not is_valid_role(role):
        return None
    return ParsedUnitName(owner, KIND_PROCESS, role)


def overlay_file(name: str) -> str:
    """Compose overlay file name for a process role or accessory."""
    return f"compose.{name}.yml"


def parse_overlay_file(filename: str) -> str | None:
    if not (filename.startswith("compose.") and filename.endswith(".yml")):
        return None
    stem = filename[len("compose."): -len(".yml")]
    return stem or None


BASE_COMPOSE_FILE = "compose.yml"

"""Reading and writing the app's .env file."""

import os
import re
import secrets
import string
from pathlib import Path

from dotenv import dotenv_values

from hostdock.errors import ConfigError
from hostdock.topology.writer import write_if_changed

PASSWORD_ALPHABET = string.ascii_letters + string.digits
PASSWORD_LENGTH = 32
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def generate_password(length=PASSWORD_LENGTH) -> str:
    """Random alphanumeric password (safe inside URLs without escaping)."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def is_valid_key(key: str) -> bool:
    return bool(_KEY_RE.match(key))


def read_env_file(path) -> dict[str, str]:
    path = Path(path)
    if not path.exists():
        return {}
    return {k: (v if v is not None else "") for k, v in dotenv_values(path, interpolate=False).items()}


def _quote(value: str) -> str:
    if value == "" or re.search(r"[\s#'\"$\\]", value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def render_env(values: dict[str, str]) -> str:
    return "".join(f"{key}={_quote(value)}\n" for key, value in values.items())


def write_env_file(path, values: dict[str, str]):
    """Write *values* to *path* with mode 0600; returns the WriteOutcome."""
    outcome = write_if_changed(path, render_env(values), mode=0o600)
    os.chmod(path, 0o600)
    return outcome


def merge_env(path, updates: dict[str, str], overwrite=()) -> tuple[dict[str, str], list[str]]:
    """Add *updates* keys missing from *path*; keys in *overwrite* replace existing values.

    Returns the merged mapping and the keys that changed. Nothing is
    written when no key changed.
    """
    values = read_env_file(path)
    changed = []
    for key, value in updates.items():
        if key in values and key not in overwrite:
            continue
        if values.get(key) != value:
            values[key] = value
            changed.append(key)
    if changed:
        write_env_file(path, values)
    return values, changed


def parse_assignment(text: str) -> tuple[str, str]:
    """Split a KEY=VALUE command-line argument."""
    key, sep, value = text.partition("=")
    if not sep or not is_valid_key(key):
        raise ConfigError(f"expected KEY=VALUE with a valid variable name, got {text!r}")
    return key, value


def remove_keys(path, keys) -> list[str]:
    """Drop *keys* from the env file at *path*; returns the keys that were present."""
    values = read_env_file(path)
    removed = [key for key in keys if key in values]
    if removed:
        for key in removed:
            del values[key]
        write_env_file(path, values)
    return removed

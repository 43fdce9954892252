"""Procfile (process manifest) parsing.

    web: bundle exec rails server -p $PORT
    worker: bundle exec sidekiq
"""

from pathlib import Path

from hostdock.errors import ConfigError
from hostdock.topology import naming

PROCFILE = "Procfile"
DEFAULT_PROCESSES = {"web": None}


def parse_procfile_text(text: str, source="Procfile") -> dict[str, str]:
    processes = {}
    for line_num, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        name, sep, command = line.partition(":")
        if not sep:
            raise ConfigError(
                f"Invalid Procfile format at {source}:{line_num}: expected 'process_name: command', got '{line}'"
            )
        name, command = name.strip(), command.strip()
        if not name:
            raise ConfigError(f"Invalid Procfile format at {source}:{line_num}: empty process name")
        if not command:
            raise ConfigError(f"Invalid Procfile format at {source}:{line_num}: empty command for process '{name}'")
        if not naming.is_valid_role(name):
            raise ConfigError(f"Invalid process name '{name}' at {source}:{line_num}")
        if name in processes:
            raise ConfigError(f"Duplicate process name '{name}' at {source}:{line_num}")
        processes[name] = command
    return processes


def parse_procfile(path) -> dict[str, str]:
    path = Path(path)
    return parse_procfile_text(path.read_text(), source=str(path))


def load_processes(tree) -> dict[str, str | None]:
    """Roles declared by the Procfile in *tree*, or an implicit ``web``."""
    path = Path(tree) / PROCFILE
    if path.is_file():
        processes = parse_procfile(path)
        if processes:
            return processes
    return dict(DEFAULT_PROCESSES)

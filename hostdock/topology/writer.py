"""Idempotent, atomic unit file writes."""

import logging
import os
import tempfile
from difflib import unified_diff
from pathlib import Path

from hostdock.topology.model import WriteOutcome

logger = logging.getLogger(__name__)


def normalize(text: str) -> str:
    """Strip trailing whitespace per line (and trailing blank lines)."""
    return "\n".join(line.rstrip() for line in text.splitlines()).rstrip("\n")


def _read_existing(path: Path) -> str:
    try:
        return path.read_text()
    except FileNotFoundError:
        return ""


def classify(existing: str, desired: str) -> WriteOutcome:
    """Outcome of replacing *existing* text (empty if absent) with *desired*."""
    if normalize(existing) == normalize(desired):
        return WriteOutcome.UNCHANGED
    return WriteOutcome.UPDATED if existing else WriteOutcome.CREATED


def preview(path, desired: str) -> WriteOutcome:
    """What write_if_changed would report, without touching the file."""
    return classify(_read_existing(Path(path)), desired)


def write_if_changed(path, desired: str, mode: int = 0o644) -> WriteOutcome:
    """Write *desired* to *path* unless it already holds equivalent text.

    Changed content goes to a sibling temp file that is fsynced and then
    renamed over *path*, so readers see either the old or the new file.
    """
    path = Path(path)
    existing = _read_existing(path)
    outcome = classify(existing, desired)
    if outcome is WriteOutcome.UNCHANGED:
        return outcome

    if existing:
        diff = "".join(
            unified_diff(existing.splitlines(True), desired.splitlines(True), str(path), str(path))
        )
        logger.debug(f"{path} changed:\n{diff}")

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w") as f:
            f.write(desired)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    return outcome


def write_units(directory, units, dry_run=False) -> dict[str, WriteOutcome]:
    """Write rendered (name, body) pairs into *directory*."""
    directory = Path(directory)
    outcomes = {}
    for name, body in units:
        if dry_run:
            outcome = preview(directory / name, body)
        else:
            outcome = write_if_changed(directory / name, body)
        outcomes[name] = outcome
        if outcome.changed:
            prefix = "[dry-run] " if dry_run else ""
            logger.info(f"{prefix}{outcome.value} {directory / name}")
        else:
            logger.debug(f"unchanged {directory / name}")
    return outcomes

"""Per-application advisory lock."""

import contextlib
import fcntl
import logging
import os
from pathlib import Path

from hostdock.errors import LockHeldError

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def app_lock(lock_path, app: str):
    """Hold an exclusive flock on *lock_path* for the duration of the block.

    Does not wait: a lock held by another invocation raises LockHeldError.
    """
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o644)
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            raise LockHeldError(f"another hostdock operation is already running for '{app}' ({lock_path})") from None
        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        logger.debug(f"acquired {lock_path}")
        try:
            yield lock_path
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)

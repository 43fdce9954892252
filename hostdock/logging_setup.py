"""CLI logging setup: plain %(message)s format on stdout."""

import logging
import sys

from hostdock.redact import SecretRedactingFilter


def setup_cli_logging(verbose=False):
    """Configure the root logger for one CLI invocation.

    *verbose* comes straight from the command line and only selects the
    level; nothing else in the package reads it.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
    # Third-party request logs are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

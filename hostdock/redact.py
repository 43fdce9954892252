"""Centralized secret redaction for log output."""

import logging
import os
import re

# Env vars whose values should be redacted from all output
_SECRET_ENV_VARS = [
    "POSTGRES_PASSWORD",
    "DATABASE_URL",
    "REDIS_URL",
    "RAILS_MASTER_KEY",
    "SECRET_KEY_BASE",
]

_MIN_SECRET_LENGTH = 8  # skip short values to avoid false positives

_extra_values: set[str] = set()
_patterns: list[re.Pattern] | None = None


def _collect_secret_values() -> set[str]:
    values = set(_extra_values)
    for var in _SECRET_ENV_VARS:
        val = os.environ.get(var, "")
        if len(val) >= _MIN_SECRET_LENGTH:
            values.add(val)
    return values


def _build_patterns(values: set[str]) -> list[re.Pattern]:
    # Longer values first so a URL containing a password is replaced whole
    return [re.compile(re.escape(v)) for v in sorted(values, key=len, reverse=True)]


def _get_patterns() -> list[re.Pattern]:
    global _patterns
    if _patterns is None:
        _patterns = _build_patterns(_collect_secret_values())
    return _patterns


def register_secrets(env: dict[str, str], keys=()):
    """Redact the values of *keys* (plus the built-in secret names) found in *env*."""
    global _patterns
    names = set(_SECRET_ENV_VARS) | set(keys)
    for name in names:
        val = env.get(name) or ""
        if len(val) >= _MIN_SECRET_LENGTH:
            _extra_values.add(val)
    _patterns = None


def redact_secrets(text: str) -> str:
    """Replace known secret values with '***'."""
    return _apply(text, _get_patterns())


def _apply(text: str, patterns: list[re.Pattern]) -> str:
    for p in patterns:
        text = p.sub("***", text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Logging filter that replaces secret values in log records with '***'.

    Handles both f-string messages (msg is pre-formatted) and
    %-style messages (msg + args).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        patterns = _get_patterns()
        if patterns:
            record.msg = _apply(str(record.msg), patterns)
            if record.args:
                if isinstance(record.args, dict):
                    record.args = {k: _apply(v, patterns) if isinstance(v, str) else v for k, v in record.args.items()}
                elif isinstance(record.args, tuple):
                    record.args = tuple(_apply(a, patterns) if isinstance(a, str) else a for a in record.args)
        return True

"""Log sanitization filter to keep secrets out of logs.

Redacts bearer tokens, Authorization header values, ``secret=``/``token=``
style assignments and any explicitly registered secret (such as the
configured cron secret) before a record is emitted.

Usage:
    from training_engine.utils.log_sanitizer import install_log_sanitizer

    install_log_sanitizer(extra_secrets=[settings.cron_secret])
"""

import logging
import re
from typing import Any, Iterable, Optional


REDACTED = "[REDACTED]"


class LogSanitizationFilter(logging.Filter):
    """Logging filter that redacts sensitive values from log messages."""

    # Order matters - more specific patterns come first
    PATTERNS: list[tuple[re.Pattern, str]] = [
        (re.compile(r'Bearer\s+[a-zA-Z0-9_\-\.=]+', re.IGNORECASE), 'Bearer [REDACTED_TOKEN]'),
        (re.compile(r'(Authorization["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
    ]

    def __init__(self, extra_secrets: Optional[Iterable[str]] = None):
        super().__init__()
        # Short values would redact ordinary words
        self.extra_secrets = [s for s in (extra_secrets or []) if s and len(s) >= 8]

    def sanitize(self, text: str) -> str:
        """Redact sensitive content from a string."""
        for secret in self.extra_secrets:
            text = text.replace(secret, REDACTED)
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def _sanitize_arg(self, arg: Any) -> Any:
        if isinstance(arg, str):
            return self.sanitize(arg)
        return arg

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.sanitize(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self._sanitize_arg(a) for a in record.args)
        elif isinstance(record.args, dict):
            record.args = {k: self._sanitize_arg(v) for k, v in record.args.items()}
        return True


def install_log_sanitizer(
    extra_secrets: Optional[Iterable[str]] = None,
    logger: Optional[logging.Logger] = None,
) -> LogSanitizationFilter:
    """Attach a sanitization filter to a logger (root by default) and its handlers."""
    target = logger or logging.getLogger()
    sanitizer = LogSanitizationFilter(extra_secrets)

    for existing in list(target.filters):
        if isinstance(existing, LogSanitizationFilter):
            target.removeFilter(existing)
    target.addFilter(sanitizer)

    for handler in target.handlers:
        for existing in list(handler.filters):
            if isinstance(existing, LogSanitizationFilter):
                handler.removeFilter(existing)
        handler.addFilter(sanitizer)

    return sanitizer

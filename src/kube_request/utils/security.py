"""Log sanitization and secure logging setup.

Bearer tokens and basic credentials travel in the Authorization header of
every call and upgraded session. Everything here exists so they never
reach a log line in clear text.
"""

import copy
import logging
import re
import sys
from typing import Any, Dict, Mapping, Optional

from ..config.settings import get_settings

# Patterns for sensitive data detection
SENSITIVE_PATTERNS = {
    "jwt_token": re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    "bearer_token": re.compile(r"Bearer\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    "basic_auth": re.compile(r"Basic\s+[A-Za-z0-9+/=]+", re.IGNORECASE),
}

# Headers that should never be logged
SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-auth-token",
    "x-remote-user",
}


def sanitize_string(value: str, partial: bool = False) -> str:
    """Redact credentials embedded in a string.

    Only the matching fragment is replaced, the surrounding text survives.

    :param value: String to sanitize
    :type value: str
    :param partial: If True, show length instead of full redaction
    :type partial: bool
    :return: Sanitized string with sensitive data redacted
    :rtype: str
    """
    if not value:
        return value
    for pattern_name, pattern in SENSITIVE_PATTERNS.items():

        def _replace(match: "re.Match[str]") -> str:
            if partial:
                return f"<{pattern_name}:length={len(match.group(0))}>"
            return f"<{pattern_name}:REDACTED>"

        value = pattern.sub(_replace, value)
    return value


def sanitize_headers(headers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Sanitize HTTP headers for logging.

    :param headers: Mapping of HTTP headers
    :type headers: Optional[Mapping[str, Any]]
    :return: Sanitized copy of the headers
    :rtype: Dict[str, Any]
    """
    if not headers:
        return {}
    sanitized = copy.deepcopy(dict(headers))
    for key, value in sanitized.items():
        if key.lower() in SENSITIVE_HEADERS:
            if isinstance(value, str) and len(value) > 0:
                sanitized[key] = f"<REDACTED:length={len(value)}>"
            else:
                sanitized[key] = "<REDACTED>"
        elif isinstance(value, str):
            sanitized[key] = sanitize_string(value)
    return sanitized


def sanitize_url(url: str) -> str:
    """Redact token-like query parameters from a URL.

    :param url: URL to sanitize
    :type url: str
    :return: Sanitized URL
    :rtype: str
    """
    if not url:
        return url
    for param in ("token", "access_token", "password", "secret"):
        url = re.sub(rf"([?&]{param}=)[^&\s]+", r"\1<REDACTED>", url, flags=re.IGNORECASE)
    return url


class SanitizingFormatter(logging.Formatter):
    """Formatter that automatically sanitizes sensitive data."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with automatic sanitization.

        :param record: Log record to format
        :type record: logging.LogRecord
        :return: Sanitized log message
        :rtype: str
        """
        try:
            if record.args:
                try:
                    record.msg = sanitize_string(record.msg % record.args)
                    record.args = None
                except (TypeError, ValueError):
                    record.msg = sanitize_string(str(record.msg))
                    record.args = tuple(
                        sanitize_string(a) if isinstance(a, str) else a
                        for a in record.args
                    )
            else:
                record.msg = sanitize_string(str(record.msg))
        except Exception as e:
            # The logging system must keep working even if sanitization breaks
            print(f"Warning: Failed to sanitize log record: {e}", file=sys.stderr)

        return super().format(record)


_LOGGING_CONFIGURED = False


def setup_secure_logging(level: Optional[str] = None, force: bool = False) -> None:
    """Set up logging with automatic sanitization.

    Installs a single stream handler using ``SanitizingFormatter`` on the
    root logger. Repeated calls are no-ops unless ``force`` is set.

    :param level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
        defaults to ``Settings.log_level``
    :type level: Optional[str]
    :param force: Reconfigure even if already configured
    :type force: bool
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED and not force:
        logging.getLogger(__name__).debug(
            "Logging already configured, skipping duplicate setup"
        )
        return

    if level is None:
        level = get_settings().log_level

    formatter = SanitizingFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )

    # httpx logs full request lines at INFO; keep them at WARNING unless debugging
    if level.upper() != "DEBUG":
        for name in ("httpx", "httpcore", "websockets"):
            logging.getLogger(name).setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True

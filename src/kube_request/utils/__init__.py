"""Utility helpers: query encoding, TLS and log sanitization."""

from .query import encode_query, join_url, query_pairs, websocket_url
from .security import (
    SanitizingFormatter,
    sanitize_headers,
    sanitize_string,
    sanitize_url,
    setup_secure_logging,
)

__all__ = [
    "encode_query",
    "join_url",
    "query_pairs",
    "websocket_url",
    "SanitizingFormatter",
    "sanitize_headers",
    "sanitize_string",
    "sanitize_url",
    "setup_secure_logging",
]

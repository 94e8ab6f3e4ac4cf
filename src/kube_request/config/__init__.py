"""Configuration for the request backend."""

from .connection import ConfigIssue, ConnectionConfig, IssueSeverity
from .settings import Settings, get_settings

__all__ = [
    "ConfigIssue",
    "ConnectionConfig",
    "IssueSeverity",
    "Settings",
    "get_settings",
]

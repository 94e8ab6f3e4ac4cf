"""Process-wide settings for the request backend.

Settings are loaded from environment variables prefixed with
``KUBE_REQUEST_`` and from an optional ``.env`` file. They provide the
defaults a connection falls back to when its own configuration is silent.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    :param timeout: Default request timeout in seconds
    :type timeout: float
    :param connect_timeout: Timeout for establishing connections and sockets
    :type connect_timeout: float
    :param http2: Negotiate HTTP/2 when the ``h2`` package is installed
    :type http2: bool
    :param user_agent: User-Agent header sent with every call
    :type user_agent: str
    :param session_max_messages: Cap on frames buffered per streaming session
    :type session_max_messages: Optional[int]
    :param log_level: Logging level for the application
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_prefix="KUBE_REQUEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    timeout: float = Field(30.0, description="Default request timeout in seconds")
    connect_timeout: float = Field(
        10.0, description="Connect timeout for HTTP and WebSocket connections"
    )
    http2: bool = Field(False, description="Enable HTTP/2 when h2 is available")
    user_agent: str = Field("kube-request", description="User-Agent header value")
    session_max_messages: Optional[int] = Field(
        None,
        description="Maximum frames buffered per streaming session (None = unbounded)",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("timeout", "connect_timeout")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("session_max_messages")
    @classmethod
    def _positive_cap(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("session_max_messages must be positive")
        return v


def get_settings() -> Settings:
    """Return settings freshly read from the environment."""
    return Settings()

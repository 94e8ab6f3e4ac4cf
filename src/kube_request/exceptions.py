"""Structured exception classes for the Kubernetes request backend."""

import json
from typing import Any, Dict, List, Optional, Union


class KubeRequestError(Exception):
    """Base exception for all request backend errors.

    This exception serves as the parent class for every error raised by
    the dispatcher, the credential refresh path and streaming sessions,
    providing a consistent interface for error handling.

    :param message: Human-readable error message
    :param code: Optional error code for programmatic handling
    :param details: Optional dictionary containing additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[Union[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception with message, code, and details."""
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format.

        :return: Dictionary containing error code, message, and details
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        :return: JSON-encoded string representation of the exception
        """
        return json.dumps(self.to_dict(), default=str)


class ConfigurationError(KubeRequestError):
    """Raised for configuration-related errors.

    Raised when connection validation fails, when a credential provider
    kind is unknown, or when no implementation is registered for a kind.

    :param message: Description of the configuration error
    :param setting: Optional name of the problematic setting
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        """Initialize configuration error with message and optional setting."""
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)
        self.setting = setting


class AuthenticationError(KubeRequestError):
    """Raised when a call cannot be authenticated.

    :param message: Description of the authentication failure
    :param details: Optional additional context about the failure
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize authentication error with message and optional details."""
        super().__init__(message=message, code="AUTHENTICATION_ERROR", details=details)


class CredentialRefreshError(AuthenticationError):
    """Raised when a credential provider fails to produce a fresh token.

    Refresh failures are never retried; the original provider error is
    chained as ``__cause__`` and kept on ``original_error``.

    :param message: Description of the refresh failure
    :param provider_type: Optional provider kind that failed
    :param original_error: Optional exception raised by the provider
    """

    def __init__(
        self,
        message: str,
        provider_type: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize refresh error with message and provider context."""
        details = {}
        if provider_type:
            details["provider_type"] = provider_type
        if original_error:
            details["original_error"] = str(original_error)
            details["error_type"] = type(original_error).__name__
        super().__init__(message=message, details=details)
        self.code = "CREDENTIAL_REFRESH_ERROR"
        self.provider_type = provider_type
        self.original_error = original_error


class TransportError(KubeRequestError):
    """Raised when the request never produced an HTTP response.

    Covers connection refused, DNS failures and protocol errors raised by
    the HTTP client. This layer never retries them.

    :param message: Description of the transport failure
    :param url: Optional URL that was being requested
    :param original_error: Optional underlying client exception
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize transport error with message and request context."""
        details = {}
        if url:
            details["url"] = url
        if original_error:
            details["error_type"] = type(original_error).__name__
        super().__init__(message=message, code="TRANSPORT_ERROR", details=details)
        self.url = url
        self.original_error = original_error


class RequestTimeoutError(TransportError):
    """Raised when a request exceeds the configured timeout.

    :param message: Description of the timeout error
    :param url: Optional URL that timed out
    :param original_error: Optional underlying client exception
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize timeout error with message and request context."""
        super().__init__(message=message, url=url, original_error=original_error)
        self.code = "TIMEOUT_ERROR"


class HTTPStatusError(KubeRequestError):
    """Raised when the API server answers with a non-2xx status.

    Unlike the other errors, ``code`` mirrors the HTTP status so callers
    can switch on ``err.code == 404`` the same way they use
    ``err.status_code``.

    :param message: Message taken from the response body
    :param status_code: HTTP status code of the response
    :param body: Decoded response body
    """

    def __init__(self, message: str, status_code: int, body: Any = None):
        """Initialize status error with message, status and body."""
        details: Dict[str, Any] = {"status_code": status_code}
        if body is not None:
            details["response_body"] = body
        super().__init__(message=message, code=status_code, details=details)
        self.status_code = status_code
        self.body = body


class FrameProtocolError(KubeRequestError):
    """Raised when an inbound channel frame cannot be decoded.

    Streaming sessions catch this error, drop the offending frame and keep
    reading.

    :param message: Description of the protocol violation
    :param channel_index: Optional channel byte that was received
    """

    def __init__(self, message: str, channel_index: Optional[int] = None):
        """Initialize frame error with message and optional channel byte."""
        details = {}
        if channel_index is not None:
            details["channel_index"] = channel_index
        super().__init__(message=message, code="FRAME_PROTOCOL_ERROR", details=details)
        self.channel_index = channel_index


class StreamingSessionError(KubeRequestError):
    """Raised when an upgraded session fails at the socket level.

    Carries the frames decoded before the failure so output is not lost.

    :param message: Description of the session failure
    :param messages: Frames received before the failure
    :param original_error: Optional exception raised by the socket
    """

    def __init__(
        self,
        message: str,
        messages: Optional[List[Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize session error with message and partial output."""
        self.messages = list(messages or [])
        details: Dict[str, Any] = {"messages_received": len(self.messages)}
        if original_error:
            details["original_error"] = str(original_error)
            details["error_type"] = type(original_error).__name__
        super().__init__(message=message, code="STREAMING_SESSION_ERROR", details=details)
        self.original_error = original_error

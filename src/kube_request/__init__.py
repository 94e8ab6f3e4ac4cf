"""HTTP(S) request backend for Kubernetes API clients.

The backend sends REST calls with bearer or basic credentials, refreshes
expired credentials once on 401/403, and switches to a multiplexed
WebSocket session (``base64.channel.k8s.io``) when the server demands an
upgrade, as it does for ``exec`` and ``attach``.

:var __version__: Current package version
:type __version__: str
"""

from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    CredentialRefreshError,
    FrameProtocolError,
    HTTPStatusError,
    KubeRequestError,
    RequestTimeoutError,
    StreamingSessionError,
    TransportError,
)
from .models import (
    ApiResponse,
    CallDescriptor,
    Channel,
    Credential,
    Frame,
    ProviderSpec,
    SessionResult,
)
from .transport import ByteStream, Request, SessionState, StreamingSession

__version__ = "0.1.0"

__all__ = [
    "Request",
    "ByteStream",
    "SessionState",
    "StreamingSession",
    "ApiResponse",
    "CallDescriptor",
    "Channel",
    "Credential",
    "Frame",
    "ProviderSpec",
    "SessionResult",
    "KubeRequestError",
    "AuthenticationError",
    "ConfigurationError",
    "CredentialRefreshError",
    "FrameProtocolError",
    "HTTPStatusError",
    "RequestTimeoutError",
    "StreamingSessionError",
    "TransportError",
]

"""Request dispatcher for the Kubernetes API.

``Request`` sends one logical call per ``http()`` invocation and decides
how it is delivered:

1. ``stream=True`` calls return a live ``ByteStream`` without inspecting
   the response.
2. Plain calls are sent with the current credential. A response carrying
   the upgrade sentinel is replaced by a ``StreamingSession`` on the same
   path and query.
3. A 401/403 on a connection with a refreshable credential triggers one
   refresh and exactly one retry.
4. Non-2xx responses raise ``HTTPStatusError``; everything else returns an
   ``ApiResponse``.

Examples:
    >>> async with Request(url="https://k8s:6443", auth={"bearer": token}) as req:
    ...     res = await req.http({"method": "GET", "pathname": "/api/v1/namespaces"})
"""

import base64
import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from ..auth.refresh import refresh_credential
from ..config.connection import ConfigIssue, ConnectionConfig
from ..config.settings import Settings, get_settings
from ..exceptions import AuthenticationError, ConfigurationError, HTTPStatusError
from ..models import ApiResponse, CallDescriptor, Credential, SessionResult
from ..utils.query import query_pairs, websocket_url
from ..utils.security import sanitize_headers, sanitize_url
from ..utils.tls import build_ssl_context
from .session import StreamingSession
from .streams import ByteStream, iter_json_objects, transport_error_from

logger = logging.getLogger(__name__)

UPGRADE_STATUS = "Failure"
UPGRADE_CODE = 400
UPGRADE_MESSAGE = "Upgrade request required"

AUTH_RETRY_STATUSES = (401, 403)

CallOptions = Union[CallDescriptor, Mapping[str, Any]]


def is_upgrade_required(body: Any) -> bool:
    """Return whether a response body asks for a protocol upgrade.

    :param body: Decoded response body
    :return: True for ``{status: Failure, code: 400, message: Upgrade request required}``
    """
    return (
        isinstance(body, dict)
        and body.get("status") == UPGRADE_STATUS
        and body.get("code") == UPGRADE_CODE
        and body.get("message") == UPGRADE_MESSAGE
    )


def authorization_header(credential: Optional[Credential]) -> Optional[str]:
    """Return the Authorization header value for a credential, if any."""
    if credential is None:
        return None
    if credential.bearer:
        return f"Bearer {credential.bearer}"
    if credential.username is not None:
        raw = f"{credential.username}:{credential.password or ''}".encode("utf-8")
        return f"Basic {base64.b64encode(raw).decode('ascii')}"
    return None


def error_message(body: Any, status_code: int) -> str:
    """Derive an error message from a failed response body."""
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    if isinstance(body, (str, bytes)) and body:
        return body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    if body:
        return str(body)
    return f"Request failed with status {status_code}"


class Request:
    """HTTP(S) transport for a single API server connection.

    The connection owns its ``httpx.AsyncClient`` and the current
    credential. A successful refresh replaces the credential for every
    later call on the connection; calls already in flight keep the
    credential they were sent with.

    :param config: Connection configuration, or ``None`` to build one from
        keyword options. Keyword options override keys of a dict config
    :type config: Optional[ConnectionConfig]
    :param settings: Process settings; read from the environment by default
    :type settings: Optional[Settings]
    :param transport: Optional httpx transport (tests inject a mock here)
    :type transport: Optional[httpx.AsyncBaseTransport]
    :param ws_connect: Optional WebSocket connect function for upgrades
    :type ws_connect: Optional[Callable[..., Any]]
    :raises ConfigurationError: When validation reports an error, or when
        keyword options accompany a ``ConnectionConfig`` instance
    """

    def __init__(
        self,
        config: Optional[Union[ConnectionConfig, Dict[str, Any]]] = None,
        *,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        ws_connect: Optional[Callable[..., Any]] = None,
        **options: Any,
    ):
        if config is None:
            config = ConnectionConfig.from_options(options)
        elif isinstance(config, dict):
            config = ConnectionConfig.from_options({**config, **options})
        elif options:
            raise ConfigurationError(
                f"Unexpected connection options with a ConnectionConfig: {sorted(options)}",
                setting=sorted(options)[0],
            )
        self.config: ConnectionConfig = config
        self.settings = settings or get_settings()

        self.issues: List[ConfigIssue] = config.validate_connection()
        errors = [i for i in self.issues if i.is_error]
        if errors:
            raise ConfigurationError(
                "; ".join(i.message for i in errors), setting=errors[0].setting
            )
        for issue in self.issues:
            logger.warning(f"Connection config ({issue.setting}): {issue.message}")

        self._credential: Optional[Credential] = config.auth
        self._ssl = build_ssl_context(config)
        self._ws_connect = ws_connect
        self._client = self._create_client(transport)

    def _create_client(self, transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
        http2_flag = self.settings.http2
        if http2_flag:
            try:
                import h2  # type: ignore  # noqa: F401
            except ImportError:
                logger.warning(
                    "HTTP/2 requested but 'h2' package not installed; falling back to HTTP/1.1"
                )
                http2_flag = False

        kwargs: Dict[str, Any] = {
            "base_url": self.config.url,
            "timeout": httpx.Timeout(
                self.config.timeout or self.settings.timeout,
                connect=self.settings.connect_timeout,
            ),
            "headers": {"User-Agent": self.settings.user_agent, **self.config.headers},
            "http2": http2_flag,
        }
        if self._ssl is not None:
            kwargs["verify"] = self._ssl
        if transport is not None:
            kwargs["transport"] = transport
        return httpx.AsyncClient(**kwargs)

    @property
    def credential(self) -> Optional[Credential]:
        """The credential attached to new calls."""
        return self._credential

    def validate(self) -> List[ConfigIssue]:
        """Re-run connection validation and return the issues found."""
        return self.config.validate_connection()

    async def refresh_auth(self) -> Credential:
        """Refresh the connection credential through its provider.

        :return: The new current credential
        :raises ConfigurationError: If the credential is not refreshable
        :raises CredentialRefreshError: If the provider fails
        """
        current = self._credential
        if current is None or not current.refreshable:
            raise ConfigurationError(
                "Connection credential has no refresh provider", setting="auth.provider"
            )
        refreshed = await refresh_credential(current)
        # Last write wins; concurrent refreshes are not serialized
        self._credential = refreshed
        return refreshed

    def _build_request(self, call: CallDescriptor, credential: Optional[Credential]) -> httpx.Request:
        headers = dict(call.headers)
        if not call.no_auth:
            value = authorization_header(credential)
            if value is not None:
                headers["Authorization"] = value

        body_kwargs: Dict[str, Any] = {}
        if call.body is not None:
            if call.json_body or isinstance(call.body, (dict, list)):
                body_kwargs["json"] = call.body
            else:
                body_kwargs["content"] = call.body

        return self._client.build_request(
            call.method,
            call.path,
            params=query_pairs(call.qs),
            headers=headers,
            **body_kwargs,
        )

    @staticmethod
    def _decode_body(response: httpx.Response, as_json: bool) -> Any:
        if not as_json:
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _send(self, call: CallDescriptor) -> Tuple[httpx.Response, Any]:
        request = self._build_request(call, self._credential)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"=== SEND: {request.method} {sanitize_url(str(request.url))}")
            logger.debug(f"    Headers: {sanitize_headers(dict(request.headers))}")
        try:
            response = await self._client.send(request)
        except httpx.TransportError as e:
            logger.warning(f"Transport failure for {request.method} {call.path}: {e}")
            raise transport_error_from(e, request) from e
        logger.debug(f"=== RECV: {response.status_code} for {request.method} {call.path}")
        return response, self._decode_body(response, call.json_body)

    async def _request(self, call: CallDescriptor) -> Union[ApiResponse, SessionResult]:
        response, body = await self._send(call)

        if is_upgrade_required(body):
            logger.info(f"Upgrade required for {call.method} {call.path}; opening streaming session")
            return await self.open_session(call).wait()

        if (
            response.status_code in AUTH_RETRY_STATUSES
            and not call.no_auth
            and self._credential is not None
            and self._credential.refreshable
        ):
            logger.info(
                f"Got {response.status_code} for {call.method} {call.path}; "
                "refreshing credential and retrying once"
            )
            await self.refresh_auth()
            response, body = await self._send(call)

        return ApiResponse(
            status_code=response.status_code,
            body=body,
            headers=dict(response.headers),
        )

    def open_session(self, options: CallOptions) -> StreamingSession:
        """Build a streaming session for a call, without starting it.

        :param options: Call options or descriptor
        :return: Session ready to be started, iterated or awaited
        :raises AuthenticationError: If no credential is available and the
            call is not ``no_auth``
        """
        call = self._descriptor(options)
        headers = {**self.config.headers, **call.headers}
        if not call.no_auth:
            value = authorization_header(self._credential)
            if value is None:
                raise AuthenticationError(
                    f"Cannot upgrade {call.method} {call.path}: no credential available",
                    details={"path": call.path},
                )
            headers["Authorization"] = value

        return StreamingSession(
            websocket_url(self.config.url, call.path, call.qs),
            headers,
            ssl=self._ssl,
            connect=self._ws_connect,
            open_timeout=self.settings.connect_timeout,
            max_messages=self.settings.session_max_messages,
        )

    @staticmethod
    def _descriptor(options: CallOptions) -> CallDescriptor:
        if isinstance(options, CallDescriptor):
            return options
        return CallDescriptor.from_options(options)

    async def http(self, options: CallOptions) -> Union[ApiResponse, SessionResult, ByteStream]:
        """Invoke a REST call against the API server.

        :param options: Call options (``method``, ``pathname``, ``qs`` or
            ``parameters``, ``headers``, ``body``, ``stream``, ``noAuth``,
            ``json``) or a prepared descriptor
        :return: ``ApiResponse`` for plain calls, ``SessionResult`` for
            upgraded calls, ``ByteStream`` for ``stream=True``
        :raises TransportError: If the server could not be reached
        :raises CredentialRefreshError: If the refresh after a 401/403 fails
        :raises HTTPStatusError: For non-2xx responses
        :raises StreamingSessionError: If an upgraded session fails
        """
        call = self._descriptor(options)
        if call.stream:
            return ByteStream(self._client, self._build_request(call, self._credential))

        result = await self._request(call)
        if isinstance(result, SessionResult):
            return result
        if not 200 <= result.status_code <= 299:
            raise HTTPStatusError(
                error_message(result.body, result.status_code),
                status_code=result.status_code,
                body=result.body,
            )
        return result

    async def get_log_byte_stream(
        self, options: Mapping[str, Any]
    ) -> Union[ApiResponse, SessionResult, ByteStream]:
        """Return a live byte stream, e.g. for following pod logs.

        ``stream`` defaults to True; an explicit ``stream`` option wins.
        """
        return await self.http({"stream": True, **options})

    async def get_watch_object_stream(self, options: Mapping[str, Any]) -> AsyncIterator[Any]:
        """Return an async iterator of decoded watch events."""
        stream = await self.http({**options, "stream": True})
        return iter_json_objects(stream)

    async def get_web_socket(self, options: CallOptions) -> StreamingSession:
        """Open a streaming session directly, skipping the plain request."""
        session = self.open_session(options)
        session.start()
        return session

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "Request":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

"""Streaming session used once a call has been upgraded.

The session owns one WebSocket speaking ``base64.channel.k8s.io``. Every
inbound message is decoded into a channel frame and appended to an ordered
log. Consumers either iterate ``frames()`` while the socket is live or
await ``wait()`` for the terminal result.

Usage::

    session = StreamingSession(url, headers={"Authorization": "Bearer ..."})
    async for frame in session.frames():
        print(frame.channel.label, frame.message)
    result = await session.wait()
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Union

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosedError

from ..exceptions import FrameProtocolError, StreamingSessionError
from ..models import Channel, Frame, SessionResult
from ..utils.security import sanitize_headers, sanitize_url
from .frames import SUBPROTOCOL, decode_frame, encode_frame

logger = logging.getLogger(__name__)

# Default timeout for the WebSocket opening handshake (seconds).
DEFAULT_OPEN_TIMEOUT = 10.0


class SessionState(str, Enum):
    """Lifecycle of a streaming session."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"

    @property
    def terminal(self) -> bool:
        return self in (SessionState.CLOSED, SessionState.ERRORED)


class StreamingSession:
    """Multiplexed duplex session over a WebSocket.

    The session buffers every frame for its whole lifetime and applies no
    backpressure, so ``max_messages`` should be set for long-running,
    chatty channels.

    :param url: ``ws://`` or ``wss://`` URL of the upgraded call
    :param headers: Headers sent with the opening handshake
    :param ssl: SSL context for ``wss://`` URLs
    :param connect: WebSocket connect function, defaults to websockets
    :param open_timeout: Handshake timeout in seconds
    :param max_messages: Optional cap on buffered frames
    """

    def __init__(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        *,
        ssl: Any = None,
        connect: Optional[Callable[..., Any]] = None,
        open_timeout: Optional[float] = DEFAULT_OPEN_TIMEOUT,
        max_messages: Optional[int] = None,
    ) -> None:
        self.url = url
        self.headers = dict(headers or {})
        self.messages: List[Frame] = []
        self.dropped = 0
        self._overflowed = False
        self._ssl = ssl
        self._connect = connect or ws_connect
        self._open_timeout = open_timeout
        self._max_messages = max_messages
        self._state = SessionState.CONNECTING
        self._ws: Any = None
        self._task: Optional[asyncio.Task[None]] = None
        self._result: Optional[SessionResult] = None
        self._error: Optional[StreamingSessionError] = None
        self._changed = asyncio.Condition()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state.terminal

    def start(self) -> asyncio.Task[None]:
        """Open the socket in a background task (idempotent)."""
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self._task

    async def wait(self) -> SessionResult:
        """Return the terminal result once the socket closes.

        Cancelling the caller does not tear the socket down.

        :raises StreamingSessionError: If the socket failed; the error
            carries the frames received before the failure
        """
        await asyncio.shield(self.start())
        if self._error is not None:
            raise self._error
        if self._result is None:
            raise StreamingSessionError(
                "Streaming session ended without a result", messages=self.messages
            )
        return self._result

    run = wait

    async def frames(self) -> AsyncIterator[Frame]:
        """Yield decoded frames in arrival order.

        Late subscribers replay the frames already received. Breaking out
        of the loop only drops this subscription.

        :raises StreamingSessionError: After the last frame, if the socket
            failed
        """
        self.start()
        index = 0
        while True:
            async with self._changed:
                await self._changed.wait_for(
                    lambda: index < len(self.messages) or self.done
                )
                pending = self.messages[index:]
            for frame in pending:
                index += 1
                yield frame
            if not pending and self.done:
                break
        if self._error is not None:
            raise self._error

    async def send(self, channel: Channel, data: Union[bytes, str]) -> None:
        """Write a frame to the remote end.

        :raises StreamingSessionError: If the session is not open
        """
        if self._state is not SessionState.OPEN or self._ws is None:
            raise StreamingSessionError(
                f"Cannot send on a {self._state.value} session", messages=self.messages
            )
        await self._ws.send(encode_frame(channel, data))

    async def resize(self, width: int, height: int) -> None:
        """Send a terminal size update on the resize channel."""
        await self.send(Channel.RESIZE, json.dumps({"Width": width, "Height": height}))

    async def _run(self) -> None:
        logger.info(f"Opening streaming session to {sanitize_url(self.url)}")
        logger.debug(f"Session headers: {sanitize_headers(self.headers)}")

        kwargs: Dict[str, Any] = {
            "subprotocols": [SUBPROTOCOL],
            "additional_headers": self.headers,
            "open_timeout": self._open_timeout,
        }
        if self._ssl is not None:
            kwargs["ssl"] = self._ssl

        try:
            async with self._connect(self.url, **kwargs) as ws:
                self._ws = ws
                await self._transition(SessionState.OPEN)
                try:
                    async for raw in ws:
                        await self._receive(raw)
                except ConnectionClosedError as e:
                    # A close frame with an error code still ends the session normally
                    if e.rcvd is None:
                        raise
                code = ws.close_code
                reason = ws.close_reason or ""
        except asyncio.CancelledError:
            await self._fail(StreamingSessionError(
                "Streaming session cancelled", messages=self.messages
            ))
            raise
        except Exception as e:
            logger.warning(f"Streaming session to {sanitize_url(self.url)} failed: {e}")
            await self._fail(StreamingSessionError(
                f"Streaming session failed: {e}",
                messages=self.messages,
                original_error=e,
            ))
            return

        self._result = SessionResult(
            messages=list(self.messages),
            code=code,
            reason=reason,
            status=self._error_status(),
        )
        logger.info(
            f"Streaming session closed (code={code}, frames={len(self.messages)}, "
            f"dropped={self.dropped})"
        )
        await self._transition(SessionState.CLOSED)

    async def _receive(self, raw: Union[bytes, str]) -> None:
        try:
            frame = decode_frame(raw)
        except FrameProtocolError as e:
            self.dropped += 1
            logger.warning(f"Dropping frame: {e.message}")
            return

        if self._max_messages is not None and len(self.messages) >= self._max_messages:
            if not self._overflowed:
                self._overflowed = True
                logger.warning(
                    f"Session buffer full ({self._max_messages} frames); dropping further frames"
                )
            self.dropped += 1
            return

        self.messages.append(frame)
        async with self._changed:
            self._changed.notify_all()

    async def _fail(self, error: StreamingSessionError) -> None:
        self._error = error
        await self._transition(SessionState.ERRORED)

    async def _transition(self, state: SessionState) -> None:
        logger.debug(f"Session state {self._state.value} -> {state.value}")
        self._state = state
        async with self._changed:
            self._changed.notify_all()

    def _error_status(self) -> Optional[Dict[str, Any]]:
        text = "".join(f.message for f in self.messages if f.channel == Channel.ERROR)
        if not text:
            return None
        try:
            status = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Error channel did not carry a JSON status document")
            return None
        return status if isinstance(status, dict) else None

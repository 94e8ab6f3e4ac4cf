"""Codec for ``base64.channel.k8s.io`` frames.

Every WebSocket message carries one frame: the first byte selects the
channel and the rest is the base64-encoded payload. The channel byte is
the raw index (``0x00``-``0x04``); the ASCII digit form (``'0'``-``'4'``)
used by API servers on this sub-protocol is accepted as well.
"""

import base64
import binascii
from typing import Union

from ..exceptions import FrameProtocolError
from ..models import Channel, Frame

SUBPROTOCOL = "base64.channel.k8s.io"

_ASCII_ZERO = ord("0")


def _channel_from_byte(value: int) -> Channel:
    index = value - _ASCII_ZERO if value >= _ASCII_ZERO else value
    try:
        return Channel(index)
    except ValueError:
        raise FrameProtocolError(
            f"Channel index {value} is outside the known channels", channel_index=value
        ) from None


def decode_frame(message: Union[bytes, bytearray, memoryview, str]) -> Frame:
    """Decode one inbound message into a frame.

    :param message: Raw WebSocket message; text messages are read as ASCII
    :type message: Union[bytes, str]
    :return: Decoded frame
    :rtype: Frame
    :raises FrameProtocolError: If the message is empty, holds characters
        outside a single byte, names an unknown channel or carries an
        invalid base64 payload
    """
    if isinstance(message, str):
        try:
            data = message.encode("latin-1")
        except UnicodeEncodeError as e:
            raise FrameProtocolError(f"Text frame is not byte-encoded: {e}") from e
    else:
        data = bytes(message)
    if not data:
        raise FrameProtocolError("Empty frame")

    channel = _channel_from_byte(data[0])
    try:
        payload = base64.b64decode(data[1:], validate=False)
    except (binascii.Error, ValueError) as e:
        raise FrameProtocolError(
            f"Invalid base64 payload on {channel.label}: {e}", channel_index=data[0]
        ) from e
    return Frame(channel=channel, message=payload.decode("utf-8", errors="replace"))


def encode_frame(channel: Channel, data: Union[bytes, str]) -> str:
    """Encode an outbound frame.

    :param channel: Target channel, normally stdin or resize
    :type channel: Channel
    :param data: Payload
    :type data: Union[bytes, str]
    :return: Text message ready to send
    :rtype: str
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    return f"{int(channel)}{base64.b64encode(raw).decode('ascii')}"

"""Transport layer: dispatcher, streaming sessions and frame codec.

Recommended import pattern for consumers:
    from kube_request.transport import Request, StreamingSession
"""

from .dispatcher import Request, authorization_header, is_upgrade_required
from .frames import SUBPROTOCOL, decode_frame, encode_frame
from .session import SessionState, StreamingSession
from .streams import ByteStream, iter_json_objects

__all__ = [
    "Request",
    "authorization_header",
    "is_upgrade_required",
    "SUBPROTOCOL",
    "decode_frame",
    "encode_frame",
    "SessionState",
    "StreamingSession",
    "ByteStream",
    "iter_json_objects",
]

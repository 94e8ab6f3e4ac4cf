"""Query string and URL helpers.

The API server expects repeated keys for list-valued parameters
(``command=ls&command=-l``) and lower-case booleans (``stdout=true``).
Both plain calls and upgraded sessions encode their query through
``encode_query`` so the two paths always agree.
"""

from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import urlencode, urlparse, urlunparse


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def query_pairs(params: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    """Flatten query parameters into ``(key, value)`` pairs.

    List and tuple values repeat the key, ``None`` values are skipped.

    :param params: Query parameters
    :type params: Optional[Mapping[str, Any]]
    :return: Ordered key/value pairs
    :rtype: List[Tuple[str, str]]
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _scalar(v)) for v in value if v is not None)
        else:
            pairs.append((key, _scalar(value)))
    return pairs


def encode_query(params: Optional[Mapping[str, Any]]) -> str:
    """Encode query parameters without array indices.

    >>> encode_query({"a": [1, 2], "tty": False})
    'a=1&a=2&tty=false'
    """
    return urlencode(query_pairs(params))


def join_url(base_url: str, path: str, query: str = "") -> str:
    """Join a base URL, an API path and an encoded query string."""
    base = urlparse(base_url)
    joined_path = "/".join(
        part.strip("/") for part in (base.path, path) if part and part.strip("/")
    )
    return urlunparse(
        (base.scheme, base.netloc, "/" + joined_path, "", query, "")
    )


def websocket_url(base_url: str, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Return the WebSocket URL for an upgraded call.

    ``http`` maps to ``ws`` and ``https`` to ``wss``; path and query are
    preserved.

    >>> websocket_url("https://k8s:6443", "/api/v1/x/exec", {"command": ["ls", "-l"]})
    'wss://k8s:6443/api/v1/x/exec?command=ls&command=-l'
    """
    url = join_url(base_url, path, encode_query(params))
    parsed = urlparse(url)
    scheme = {"http": "ws", "https": "wss"}.get(parsed.scheme, parsed.scheme)
    return urlunparse(parsed._replace(scheme=scheme))

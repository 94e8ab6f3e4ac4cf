"""Build the SSL context shared by HTTP calls and upgraded sessions."""

import logging
import os
import ssl
import tempfile
from typing import Optional

from ..config.connection import ConnectionConfig
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_PEM_MARKER = "-----BEGIN"


def _is_pem(value: str) -> bool:
    return value.lstrip().startswith(_PEM_MARKER)


def _load_cert_chain(ctx: ssl.SSLContext, cert: str, key: str) -> None:
    # load_cert_chain only reads files, so inline PEM goes through temp files
    paths = []
    try:
        for value in (cert, key):
            if _is_pem(value):
                fd, path = tempfile.mkstemp(suffix=".pem")
                with os.fdopen(fd, "w") as fh:
                    fh.write(value)
                paths.append(path)
            else:
                paths.append(value)
        ctx.load_cert_chain(certfile=paths[0], keyfile=paths[1])
    finally:
        for value, path in zip((cert, key), paths):
            if _is_pem(value):
                os.unlink(path)


def build_ssl_context(config: ConnectionConfig) -> Optional[ssl.SSLContext]:
    """Return the SSL context for a connection.

    :param config: Connection configuration
    :type config: ConnectionConfig
    :return: SSL context for https URLs, ``None`` otherwise
    :rtype: Optional[ssl.SSLContext]
    :raises ConfigurationError: If the TLS material cannot be loaded
    """
    if config.scheme != "https":
        return None

    try:
        ctx = ssl.create_default_context()
        if config.ca and not config.insecure_skip_tls_verify:
            if _is_pem(config.ca):
                ctx.load_verify_locations(cadata=config.ca)
            else:
                ctx.load_verify_locations(cafile=config.ca)
        if config.cert and config.key:
            _load_cert_chain(ctx, config.cert, config.key)
    except (OSError, ssl.SSLError) as e:
        raise ConfigurationError(f"Failed to load TLS material: {e}", setting="ca") from e

    if config.insecure_skip_tls_verify:
        logger.warning(f"TLS verification disabled for {config.url}")
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE

    return ctx

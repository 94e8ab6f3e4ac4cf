"""Refresh a connection credential through its configured provider."""

import logging

from ..exceptions import ConfigurationError, CredentialRefreshError
from ..models import Credential
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


async def refresh_credential(credential: Credential) -> Credential:
    """Return a replacement credential holding a fresh bearer token.

    The provider is looked up from ``credential.provider``; the returned
    credential keeps the same provider spec so it can be refreshed again
    later.

    :param credential: Credential to refresh
    :type credential: Credential
    :return: New credential; ``credential`` itself is left untouched
    :rtype: Credential
    :raises ConfigurationError: If no provider is configured or registered
    :raises CredentialRefreshError: If the provider fails
    """
    spec = credential.provider
    if spec is None:
        raise ConfigurationError(
            "Credential has no refresh provider configured", setting="auth.provider"
        )

    provider = ProviderRegistry.get_provider(spec.type)
    kind = provider.provider_type.value
    logger.info(f"Refreshing credential via '{kind}' provider")

    try:
        token = await provider.refresh(dict(spec.config))
    except CredentialRefreshError:
        raise
    except Exception as e:
        logger.error(f"Credential refresh via '{kind}' failed: {e}")
        raise CredentialRefreshError(
            f"Failed to refresh credential via '{kind}' provider: {e}",
            provider_type=kind,
            original_error=e,
        ) from e

    if not isinstance(token, str) or not token:
        raise CredentialRefreshError(
            f"Provider '{kind}' returned an empty token", provider_type=kind
        )

    logger.debug(f"Credential refreshed via '{kind}' [token: {len(token)} chars]")
    return credential.with_bearer(token)

"""Manage registration and lookup of credential providers.

Providers are registered against a ``ProviderKind``. Lookup by string
goes through ``ProviderKind.parse`` so an unknown kind fails fast with a
configuration error instead of a late import failure.

Examples
--------
.. code-block:: python

   from kube_request.auth import ProviderKind, ProviderRegistry
   from kube_request.auth.providers import CallableCredentialProvider

   async def fetch_token(config):
       return await my_idp.token(config["client-id"])

   ProviderRegistry.register(
       ProviderKind.OPENID, CallableCredentialProvider(fetch_token, ProviderKind.OPENID)
   )
"""

import logging
from typing import Any, Callable, Dict, Type, Union

from ..exceptions import ConfigurationError
from .base import BaseCredentialProvider, ProviderKind

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry for credential providers.

    Manage registration and lookup of provider instances keyed by kind.
    """

    _providers: Dict[ProviderKind, BaseCredentialProvider] = {}

    @classmethod
    def register(
        cls,
        provider_type: Union[ProviderKind, str],
        provider: BaseCredentialProvider,
        replace: bool = False,
    ) -> None:
        """Register a provider instance.

        :param provider_type: Kind served by the provider
        :param provider: Provider instance
        :param replace: Allow replacing an existing registration
        :raises ConfigurationError: If the kind is unknown
        :raises ValueError: If the kind is already registered
        """
        kind = ProviderKind.parse(provider_type)
        if kind in cls._providers and not replace:
            raise ValueError(f"Provider type '{kind.value}' is already registered")

        cls._providers[kind] = provider
        logger.info(
            f"Registered credential provider: {kind.value} -> {type(provider).__name__}"
        )

    @classmethod
    def unregister(cls, provider_type: Union[ProviderKind, str]) -> None:
        """Unregister a provider.

        :param provider_type: Provider kind to unregister
        """
        kind = ProviderKind.parse(provider_type)
        if kind in cls._providers:
            del cls._providers[kind]
            logger.info(f"Unregistered credential provider: {kind.value}")

    @classmethod
    def get_provider(cls, provider_type: Union[ProviderKind, str]) -> BaseCredentialProvider:
        """Return the provider registered for a kind.

        :param provider_type: Kind or kind string
        :return: Registered provider
        :raises ConfigurationError: If the kind is unknown or unregistered
        """
        kind = ProviderKind.parse(provider_type)
        provider = cls._providers.get(kind)
        if provider is None:
            available = ", ".join(k.value for k in cls._providers)
            raise ConfigurationError(
                f"No credential provider registered for type '{kind.value}'. "
                f"Registered providers: {available or 'none'}",
                setting="auth.provider.type",
            )
        return provider

    @classmethod
    def list_providers(cls) -> Dict[ProviderKind, BaseCredentialProvider]:
        """List all registered providers."""
        return cls._providers.copy()

    @classmethod
    def clear(cls) -> None:
        """Clear all registered providers.

        Useful for tests to ensure clean state.
        """
        cls._providers.clear()


def register_provider(provider_type: Union[ProviderKind, str], **kwargs: Any) -> Callable:
    """Return a decorator that instantiates and registers a provider class.

    Usage
    -----
    .. code-block:: python

       @register_provider(ProviderKind.CMD)
       class CmdProvider(BaseCredentialProvider):
           ...

    :param provider_type: Kind served by the decorated class
    :param kwargs: Constructor arguments for the provider instance
    :return: Decorator function
    """

    def decorator(provider_class: Type[BaseCredentialProvider]):
        ProviderRegistry.register(provider_type, provider_class(**kwargs))
        return provider_class

    return decorator

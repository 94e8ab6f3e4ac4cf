"""Define the credential provider interface.

A credential provider turns an opaque provider configuration (typically the
``auth-provider`` or ``exec`` stanza of a kubeconfig user) into a fresh
bearer token. Concrete identity-provider strategies live outside this
package and plug in through the registry.

Examples
--------
See ``CallableCredentialProvider`` for the smallest working provider.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict

from ..exceptions import ConfigurationError


class ProviderKind(str, Enum):
    """Provider kinds known to the backend.

    The set is closed: configuration naming any other kind is rejected
    when the provider is looked up.
    """

    AZURE = "azure"
    CMD = "cmd"
    OPENID = "openid"
    EXEC = "exec"
    CALLABLE = "callable"

    @classmethod
    def parse(cls, value: Any) -> "ProviderKind":
        """Return the kind named by ``value``.

        :param value: Kind or kind string
        :return: Matching provider kind
        :raises ConfigurationError: If the kind is unknown
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            known = ", ".join(k.value for k in cls)
            raise ConfigurationError(
                f"Unknown credential provider type: '{value}'. Known types: {known}",
                setting="auth.provider.type",
            ) from None


class BaseCredentialProvider(ABC):
    """Provide the credential refresh capability.

    Implementations must be safe to call concurrently; the dispatcher does
    not serialize refreshes across calls.
    """

    @property
    @abstractmethod
    def provider_type(self) -> ProviderKind:
        """Return the provider kind this implementation serves."""
        pass

    @abstractmethod
    async def refresh(self, config: Dict[str, Any]) -> str:
        """Return a fresh bearer token.

        :param config: Opaque provider configuration
        :return: Bearer token value
        """
        pass

    async def close(self) -> None:
        """Clean up provider resources."""
        return None

"""Credential refresh for the request backend.

Providers are looked up by ``ProviderKind`` in the ``ProviderRegistry``;
``refresh_credential`` produces the replacement credential used by the
dispatcher after an authorization failure.

:var __all__: List of public exports from this module
:type __all__: List[str]
"""

from .base import BaseCredentialProvider, ProviderKind
from .providers import CallableCredentialProvider
from .refresh import refresh_credential
from .registry import ProviderRegistry, register_provider

__all__ = [
    "BaseCredentialProvider",
    "CallableCredentialProvider",
    "ProviderKind",
    "ProviderRegistry",
    "refresh_credential",
    "register_provider",
]

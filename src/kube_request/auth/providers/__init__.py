"""Credential provider implementations shipped with the backend.

Identity-provider specific strategies are registered by integrators; this
package only ships the generic callable adapter.
"""

from .callable import CallableCredentialProvider

__all__ = [
    "CallableCredentialProvider",
]

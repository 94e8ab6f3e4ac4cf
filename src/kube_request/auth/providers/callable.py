"""Adapter turning an async callable into a credential provider."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Union

from ..base import BaseCredentialProvider, ProviderKind

logger = logging.getLogger(__name__)

RefreshFunc = Callable[[Dict[str, Any]], Union[str, Awaitable[str]]]


class CallableCredentialProvider(BaseCredentialProvider):
    """Delegate refreshes to a user supplied function.

    The function receives the provider configuration and returns the token,
    either directly or as an awaitable.

    :param func: Refresh function
    :type func: RefreshFunc
    :param kind: Kind this adapter is registered under
    :type kind: ProviderKind
    """

    def __init__(self, func: RefreshFunc, kind: ProviderKind = ProviderKind.CALLABLE):
        self._func = func
        self._kind = ProviderKind.parse(kind)
        self.calls = 0

    @property
    def provider_type(self) -> ProviderKind:
        return self._kind

    async def refresh(self, config: Dict[str, Any]) -> str:
        self.calls += 1
        logger.debug(f"Invoking {self._kind.value} refresh function (call {self.calls})")
        result = self._func(config)
        if inspect.isawaitable(result):
            result = await result
        return result

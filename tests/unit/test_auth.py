"""Unit tests for provider kinds, the provider registry and refresh."""

from typing import Any, Dict

import pytest

from kube_request.auth import (
    BaseCredentialProvider,
    CallableCredentialProvider,
    ProviderKind,
    ProviderRegistry,
    refresh_credential,
    register_provider,
)
from kube_request.exceptions import ConfigurationError, CredentialRefreshError
from kube_request.models import Credential, ProviderSpec


class TestProviderKind:
    """Test the closed set of provider kinds."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("azure", ProviderKind.AZURE),
            ("cmd", ProviderKind.CMD),
            ("OpenID", ProviderKind.OPENID),
            (" exec ", ProviderKind.EXEC),
            (ProviderKind.CALLABLE, ProviderKind.CALLABLE),
        ],
    )
    def test_parse(self, value, expected):
        assert ProviderKind.parse(value) is expected

    def test_unknown_kind(self):
        with pytest.raises(ConfigurationError, match="Unknown credential provider type") as exc_info:
            ProviderKind.parse("gcp")
        assert exc_info.value.setting == "auth.provider.type"


class TestProviderRegistry:
    """Tests for the provider registry system."""

    def test_register_and_get(self):
        provider = CallableCredentialProvider(lambda config: "t", ProviderKind.CMD)
        ProviderRegistry.register("cmd", provider)
        assert ProviderRegistry.get_provider(ProviderKind.CMD) is provider
        assert ProviderRegistry.list_providers() == {ProviderKind.CMD: provider}

    def test_duplicate_registration(self):
        ProviderRegistry.register(ProviderKind.CMD, CallableCredentialProvider(lambda c: "a"))
        with pytest.raises(ValueError, match="already registered"):
            ProviderRegistry.register(ProviderKind.CMD, CallableCredentialProvider(lambda c: "b"))

    def test_replace_registration(self):
        ProviderRegistry.register(ProviderKind.CMD, CallableCredentialProvider(lambda c: "a"))
        replacement = CallableCredentialProvider(lambda c: "b")
        ProviderRegistry.register(ProviderKind.CMD, replacement, replace=True)
        assert ProviderRegistry.get_provider("cmd") is replacement

    def test_register_unknown_kind(self):
        with pytest.raises(ConfigurationError):
            ProviderRegistry.register("gcp", CallableCredentialProvider(lambda c: "a"))

    def test_missing_provider(self):
        with pytest.raises(ConfigurationError, match="No credential provider registered for type 'azure'"):
            ProviderRegistry.get_provider("azure")

    def test_unregister(self):
        ProviderRegistry.register(ProviderKind.EXEC, CallableCredentialProvider(lambda c: "a"))
        ProviderRegistry.unregister("exec")
        assert ProviderRegistry.list_providers() == {}
        ProviderRegistry.unregister("exec")

    def test_register_provider_decorator(self):
        """Test registering a custom provider class."""

        @register_provider(ProviderKind.AZURE, prefix="az-")
        class AzureProvider(BaseCredentialProvider):
            def __init__(self, prefix: str):
                self.prefix = prefix

            @property
            def provider_type(self) -> ProviderKind:
                return ProviderKind.AZURE

            async def refresh(self, config: Dict[str, Any]) -> str:
                return self.prefix + config["tenant"]

        provider = ProviderRegistry.get_provider("azure")
        assert isinstance(provider, AzureProvider)
        assert provider.prefix == "az-"


class TestRefreshCredential:
    """Test producing a replacement credential."""

    @pytest.mark.asyncio
    async def test_sync_function(self):
        ProviderRegistry.register(
            ProviderKind.OPENID,
            CallableCredentialProvider(lambda config: f"id-{config['client-id']}", ProviderKind.OPENID),
        )
        credential = Credential(
            bearer="old",
            provider=ProviderSpec(type="openid", config={"client-id": "kubectl"}),
        )

        refreshed = await refresh_credential(credential)

        assert refreshed.bearer == "id-kubectl"
        assert refreshed.provider == credential.provider
        assert credential.bearer == "old"

    @pytest.mark.asyncio
    async def test_async_function(self):
        async def fetch(config):
            return "async-token"

        provider = CallableCredentialProvider(fetch, ProviderKind.EXEC)
        ProviderRegistry.register(ProviderKind.EXEC, provider)

        refreshed = await refresh_credential(Credential(provider=ProviderSpec(type="exec")))

        assert refreshed.bearer == "async-token"
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        def broken(config):
            raise RuntimeError("token endpoint returned 500")

        ProviderRegistry.register(ProviderKind.CMD, CallableCredentialProvider(broken, ProviderKind.CMD))

        with pytest.raises(CredentialRefreshError) as exc_info:
            await refresh_credential(Credential(provider=ProviderSpec(type="cmd")))

        err = exc_info.value
        assert err.code == "CREDENTIAL_REFRESH_ERROR"
        assert err.provider_type == "cmd"
        assert isinstance(err.original_error, RuntimeError)
        assert err.__cause__ is err.original_error
        assert err.to_dict()["details"]["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_refresh_error_passes_through(self):
        original = CredentialRefreshError("expired refresh token", provider_type="openid")

        def broken(config):
            raise original

        ProviderRegistry.register(
            ProviderKind.OPENID, CallableCredentialProvider(broken, ProviderKind.OPENID)
        )
        with pytest.raises(CredentialRefreshError) as exc_info:
            await refresh_credential(Credential(provider=ProviderSpec(type="openid")))
        assert exc_info.value is original

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", None])
    async def test_empty_token(self, token):
        ProviderRegistry.register(ProviderKind.CMD, CallableCredentialProvider(lambda c: token, ProviderKind.CMD))
        with pytest.raises(CredentialRefreshError, match="empty token"):
            await refresh_credential(Credential(provider=ProviderSpec(type="cmd")))

    @pytest.mark.asyncio
    async def test_no_provider_spec(self):
        with pytest.raises(ConfigurationError):
            await refresh_credential(Credential(bearer="t"))

    @pytest.mark.asyncio
    async def test_unknown_provider_kind(self):
        with pytest.raises(ConfigurationError, match="Unknown credential provider type"):
            await refresh_credential(Credential(provider=ProviderSpec(type="gcp")))

    @pytest.mark.asyncio
    async def test_close_default(self):
        provider = CallableCredentialProvider(lambda c: "t")
        assert await provider.close() is None

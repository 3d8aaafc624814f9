"""
Unit tests for the identity providers.
"""

import json
import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch
from jose.exceptions import JWTError

from shared.errors import CredentialInvalidError, DownstreamError, PersistenceError
from service_entitlements.app.identity.claims import ClaimsIdentityProvider
from service_entitlements.app.identity.jwks import JWKSClient
from service_entitlements.app.identity.supabase import SupabaseIdentityProvider

SUPABASE_URL = "https://project.supabase.co"


def _response(method, path, status_code, payload):
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(payload),
        request=httpx.Request(method, f"{SUPABASE_URL}{path}")
    )


class TestSupabaseIdentityProvider:
    """Test cases for SupabaseIdentityProvider."""

    @pytest.fixture
    def provider(self):
        return SupabaseIdentityProvider(SUPABASE_URL, "service-role")

    @pytest.fixture
    def mock_user(self):
        return {
            "id": "user-123",
            "email": "test@example.com",
            "created_at": "2024-01-01T00:00:00.000000Z",
            "app_metadata": {"provider": "email", "hasPremium": False},
        }

    @pytest.mark.asyncio
    async def test_authenticate_success(self, provider, mock_user):
        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(return_value=_response("GET", "/auth/v1/user", 200, mock_user))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            user = await provider.authenticate("access-token")

            assert user.user_id == "user-123"
            assert user.email == "test@example.com"
            assert user.created_at == 1704067200000
            assert user.attributes == {"provider": "email", "hasPremium": False}
            assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer access-token"

    @pytest.mark.asyncio
    async def test_authenticate_unreadable_created_at(self, provider, mock_user):
        mock_user["created_at"] = "last tuesday"

        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=_response("GET", "/auth/v1/user", 200, mock_user)
            )

            user = await provider.authenticate("access-token")

            assert user.user_id == "user-123"
            assert user.created_at is None

    @pytest.mark.asyncio
    async def test_authenticate_invalid_token(self, provider):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=_response("GET", "/auth/v1/user", 401, {"msg": "invalid JWT"})
            )

            with pytest.raises(CredentialInvalidError):
                await provider.authenticate("bad-token")

    @pytest.mark.asyncio
    async def test_authenticate_transport_error(self, provider):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )

            with pytest.raises(DownstreamError):
                await provider.authenticate("access-token")

    @pytest.mark.asyncio
    async def test_update_attributes_sends_full_bag(self, provider):
        bag = {"provider": "email", "hasPremium": True, "trialExpireDate": None}

        with patch('httpx.AsyncClient') as mock_client:
            mock_put = AsyncMock(
                return_value=_response("PUT", "/auth/v1/admin/users/user-123", 200, {"id": "user-123"})
            )
            mock_client.return_value.__aenter__.return_value.put = mock_put

            await provider.update_attributes("user-123", bag)

            assert mock_put.call_args.args[0] == f"{SUPABASE_URL}/auth/v1/admin/users/user-123"
            assert mock_put.call_args.kwargs["json"] == {"app_metadata": bag}
            assert mock_put.call_args.kwargs["headers"]["Authorization"] == "Bearer service-role"

    @pytest.mark.asyncio
    async def test_update_attributes_failure(self, provider):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.put = AsyncMock(
                return_value=_response("PUT", "/auth/v1/admin/users/user-123", 500, {"msg": "boom"})
            )

            with pytest.raises(PersistenceError):
                await provider.update_attributes("user-123", {"hasPremium": True})


class TestClaimsIdentityProvider:
    """Test cases for ClaimsIdentityProvider."""

    @pytest.fixture
    def jwks_client(self):
        client = MagicMock(spec=JWKSClient)
        client.verify_token = AsyncMock()
        return client

    @pytest.fixture
    def provider(self, jwks_client):
        return ClaimsIdentityProvider("checklist-test", jwks_client)

    @pytest.mark.asyncio
    async def test_authenticate_reads_entitlement_claims(self, provider, jwks_client):
        jwks_client.verify_token.return_value = {
            "sub": "uid-1",
            "user_id": "uid-1",
            "email": "test@example.com",
            "hasPremium": True,
            "trialExpireDate": 1700000000000,
            "aud": "checklist-test",
        }

        user = await provider.authenticate("Bearer id-token")

        assert user.user_id == "uid-1"
        assert user.attributes == {"hasPremium": True, "trialExpireDate": 1700000000000}
        assert user.entitlement.has_premium is True
        jwks_client.verify_token.assert_awaited_once_with(
            "id-token",
            audience="checklist-test",
            issuer="https://securetoken.google.com/checklist-test"
        )

    @pytest.mark.asyncio
    async def test_authenticate_rejects_bad_signature(self, provider, jwks_client):
        jwks_client.verify_token.side_effect = JWTError("Signature verification failed")

        with pytest.raises(CredentialInvalidError):
            await provider.authenticate("id-token")

    @pytest.mark.asyncio
    async def test_update_attributes_is_rejected(self, provider):
        with pytest.raises(PersistenceError):
            await provider.update_attributes("uid-1", {"hasPremium": True})


class TestJWKSClient:
    """Test cases for JWKSClient caching."""

    @pytest.mark.asyncio
    async def test_jwks_is_cached(self):
        jwks_client = JWKSClient("https://issuer.example.com/jwks")
        jwks = {"keys": [{"kid": "key-1", "kty": "RSA"}]}

        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(return_value=httpx.Response(
                status_code=200,
                content=json.dumps(jwks),
                request=httpx.Request("GET", "https://issuer.example.com/jwks")
            ))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            assert await jwks_client.get_key("key-1") == {"kid": "key-1", "kty": "RSA"}
            assert await jwks_client.get_key("missing") is None
            assert mock_get.await_count == 1

    @pytest.mark.asyncio
    async def test_stale_cache_used_on_fetch_failure(self):
        jwks_client = JWKSClient("https://issuer.example.com/jwks", cache_ttl=0)
        jwks_client._jwks_cache = {"keys": [{"kid": "key-1"}]}

        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )

            assert await jwks_client.get_jwks() == {"keys": [{"kid": "key-1"}]}

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self):
        jwks_client = JWKSClient("https://issuer.example.com/jwks")

        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(return_value=httpx.Response(
                status_code=200,
                content=json.dumps({"keys": []}),
                request=httpx.Request("GET", "https://issuer.example.com/jwks")
            ))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            await jwks_client.get_jwks()
            jwks_client.clear_cache()
            await jwks_client.get_jwks()

            assert mock_get.await_count == 2

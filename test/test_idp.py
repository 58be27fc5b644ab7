import json

import httpx
import pytest

from firebaseauth.config import Endpoints
from firebaseauth.err import InvalidResponseErr, ProviderRequestErr
from firebaseauth.idp import IdentityToolkitClient


def client_for(handler):
    return IdentityToolkitClient(Endpoints("abc"), httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestIdentityToolkitClient:

    @pytest.mark.asyncio
    async def test_verify_password(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"idToken": "T1", "refreshToken": "R1", "expiresIn": "3600"})

        response = await client_for(handler).verify_password({"email": "jane@example.com", "password": "pw"})

        assert response.id_token == "T1"
        assert response.expires_in == 3600
        assert seen[0].url.path.endswith("/verifyPassword")
        assert seen[0].url.params["key"] == "abc"
        assert json.loads(seen[0].content) == {
            "email": "jane@example.com",
            "password": "pw",
            "returnSecureToken": True,
        }

    @pytest.mark.asyncio
    async def test_error_status_is_raised(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"code": 400, "message": "INVALID_PASSWORD"}})

        with pytest.raises(ProviderRequestErr) as e:
            await client_for(handler).verify_password({"email": "jane@example.com", "password": "pw"})

        assert e.value.status == 400
        assert e.value.body["error"]["message"] == "INVALID_PASSWORD"
        assert "INVALID_PASSWORD" in str(e.value)
        assert "abc" not in str(e.value)

    @pytest.mark.asyncio
    async def test_transport_error_is_raised(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderRequestErr) as e:
            await client_for(handler).refresh_token("R1")

        assert e.value.status is None

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html></html>")

        with pytest.raises(InvalidResponseErr):
            await client_for(handler).get_account_info("T1")

    @pytest.mark.asyncio
    async def test_set_account_info_non_200(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "INVALID_ID_TOKEN"}})

        assert await client_for(handler).set_account_info("T1", {"displayName": "Jane"}) is None

    @pytest.mark.asyncio
    async def test_delete_account(self):
        statuses = [200, 204]

        def handler(request):
            return httpx.Response(statuses.pop(0), json={})

        client = client_for(handler)
        assert await client.delete_account("T1") is True
        assert await client.delete_account("T1") is False

    @pytest.mark.asyncio
    async def test_send_oob_code_locale(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"email": "jane@example.com"})

        await client_for(handler).send_oob_code("PASSWORD_RESET", "fr", email="jane@example.com")

        assert seen[0].headers["X-Firebase-Locale"] == "fr"
        assert json.loads(seen[0].content) == {"requestType": "PASSWORD_RESET", "email": "jane@example.com"}

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self):
        client = IdentityToolkitClient(Endpoints("abc"))
        await client.aclose()

        assert client._client.is_closed

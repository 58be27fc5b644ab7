import logging
from typing import Any, Mapping, Optional

import httpx

from firebaseauth.config import Endpoints
from firebaseauth.err import InvalidResponseErr, ProviderRequestErr
from firebaseauth.token import AccountInfo, AccountUpdateResponse, RefreshResponse, SignInResponse

logger = logging.getLogger(__name__)

LOCALE_HEADER = "X-Firebase-Locale"

'''
This class is the facade of the identity provider's relying party API.

It is stateless: every operation takes the fields it needs, issues one request and returns the narrowed response.
Deciding what a response means for the session is left to the caller.
'''


class IdentityToolkitClient:
    def __init__(self, endpoints: Endpoints, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self._endpoints = endpoints
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    @property
    def endpoints(self) -> Endpoints:
        return self._endpoints

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, url: str, payload: Mapping[str, Any], locale: Optional[str] = None,
                    raise_for_status: bool = True) -> httpx.Response:
        headers = {LOCALE_HEADER: locale} if locale is not None else None
        # Strip the query string, it carries the api key.
        endpoint = url.split("?", 1)[0]
        logger.debug("POST {}".format(endpoint))

        try:
            response = await self._client.post(url, json=dict(payload), headers=headers)
        except httpx.HTTPError as e:
            raise ProviderRequestErr("Request to {} failed: {}".format(endpoint, e), url=endpoint) from e

        if raise_for_status and not response.is_success:
            body = _body(response)
            raise ProviderRequestErr(
                "Request to {} failed with status {}: {}".format(endpoint, response.status_code, _error_message(body)),
                status=response.status_code,
                body=body,
                url=endpoint,
            )

        return response

    async def verify_password(self, credentials: Mapping[str, Any]) -> SignInResponse:
        payload = {"returnSecureToken": True}
        payload.update(credentials)
        response = await self._post(self._endpoints.login, payload)
        return SignInResponse.from_json(_json(response))

    async def refresh_token(self, refresh_token: Optional[str]) -> RefreshResponse:
        response = await self._post(self._endpoints.refresh, {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })
        return RefreshResponse.from_json(_json(response))

    async def get_account_info(self, id_token: str) -> AccountInfo:
        response = await self._post(self._endpoints.user, {"idToken": id_token})
        return AccountInfo.from_json(_json(response))

    async def set_account_info(self, id_token: str, details: Mapping[str, Any]) -> Optional[AccountUpdateResponse]:
        """
        Update the account. Returns None when the provider didn't answer with HTTP 200, callers treat
        that as "nothing was applied".

        :return: AccountUpdateResponse
        """
        payload = {"idToken": id_token, "returnSecureToken": True}
        payload.update(details)
        response = await self._post(self._endpoints.user_update, payload, raise_for_status=False)
        if response.status_code != 200:
            logger.warning("setAccountInfo answered with status {}, the update wasn't applied".format(
                response.status_code))
            return None

        return AccountUpdateResponse.from_json(_json(response))

    async def send_oob_code(self, request_type: str, locale: str, email: Optional[str] = None,
                            id_token: Optional[str] = None) -> Any:
        payload = {"requestType": request_type}
        if email is not None:
            payload["email"] = email
        if id_token is not None:
            payload["idToken"] = id_token

        response = await self._post(self._endpoints.user_verify, payload, locale=locale)
        return _body(response)

    async def reset_password(self, oob_code: str, new_password: str) -> Any:
        response = await self._post(self._endpoints.reset, {
            "oobCode": oob_code,
            "newPassword": new_password,
        })
        return _body(response)

    async def confirm_email_verification(self, oob_code: str) -> Any:
        response = await self._post(self._endpoints.user_update, {"oobCode": oob_code})
        return _body(response)

    async def delete_account(self, id_token: Optional[str]) -> bool:
        """
        Delete the account. Only HTTP 200 counts as success.

        :return: bool
        """
        response = await self._post(self._endpoints.user_delete, {"idToken": id_token}, raise_for_status=False)
        if response.status_code != 200:
            logger.warning("deleteAccount answered with status {}, the account wasn't deleted".format(
                response.status_code))
            return False

        return True


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise InvalidResponseErr(
            "Response of {} isn't valid JSON".format(response.request.url.path),
            status=response.status_code,
            body=response.text,
        ) from e


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(body: Any) -> str:
    if isinstance(body, Mapping):
        error = body.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return str(body)

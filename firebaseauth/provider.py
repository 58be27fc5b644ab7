import asyncio
import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import httpx

from firebaseauth.clock import SessionClock
from firebaseauth.config import ProviderConfig
from firebaseauth.err import ErrAccountDisabled, ErrNotAuthenticated, ErrUserNotVerified
from firebaseauth.idp import IdentityToolkitClient
from firebaseauth.session import SessionStore, Strategy
from firebaseauth.storage import StorageInterface
from firebaseauth.token import IdToken
from firebaseauth.token_manager import TokenManager, TokenManagerConfig

logger = logging.getLogger(__name__)


class SessionState(Enum):
    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"
    REFRESHING = "refreshing"


'''
The Firebase strategy.

It is the only component that writes the session: the tokens and the user profile through the session store,
and the expiry instant through the session clock. Within one operation the expiry is always written before the
profile fetch starts, so that a concurrent token manager tick already sees the new lifetime.

Refreshes are coalesced: while one is in flight, further calls wait for it instead of issuing another request.
Login is not serialized against a refresh, the last write wins.
'''
class FirebaseProvider(Strategy):
    def __init__(
            self,
            auth: SessionStore,
            storage: StorageInterface,
            config: ProviderConfig,
            client: Optional[httpx.AsyncClient] = None,
            token_manager_config: Optional[TokenManagerConfig] = None,
            schedule_refresh: bool = True,
    ):
        self.name = config.name
        self.options = config
        self._auth = auth
        self._schedule_refresh = schedule_refresh
        self._state = SessionState.LOGGED_OUT
        self._refresh_task: Optional[asyncio.Future] = None

        self.clock = SessionClock(storage, config.name)
        self.idp = IdentityToolkitClient(config.endpoints, client, config.timeout)
        self.token_manager = TokenManager(
            self.clock,
            lambda: self._auth.logged_in,
            self.refresh,
            token_manager_config,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    async def __aenter__(self) -> "FirebaseProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def mount(self) -> None:
        """
        Startup hook. Restores the tokens from the storage, starts the token manager and waits for the
        initial profile fetch. Calling it again doesn't start a second token manager.
        """
        self._auth.sync_token(self.name)
        self._auth.sync_refresh_token(self.name)

        if self._schedule_refresh:
            self.token_manager.start()

        try:
            await self._auth.fetch_user_once()
        finally:
            self._settle()

    async def close(self) -> None:
        self.token_manager.stop()
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None
        await self.idp.aclose()

    async def login(self, credentials: Mapping[str, Any]) -> None:
        self._state = SessionState.LOGGING_IN
        try:
            response = await self.idp.verify_password(credentials)

            if self.options.require_email_verified:
                account = await self.idp.get_account_info(response.id_token)
                if account.disabled:
                    logger.info("Login of an unverified user on {} rejected".format(self.name))
                    await self.logout()
                    raise ErrUserNotVerified()

            self.clock.set_expiry(response.expires_in)
            self._auth.set_token(self.name, response.id_token)
            self._auth.set_refresh_token(self.name, response.refresh_token)
            logger.info("Logged in on {}, token valid for {}s".format(self.name, response.expires_in))

            await self._auth.fetch_user()
        finally:
            if self._state is SessionState.LOGGING_IN:
                self._settle()

    async def logout(self) -> None:
        self.clock.clear()
        self._state = SessionState.LOGGED_OUT
        await self._auth.reset()
        logger.info("Logged out of {}".format(self.name))

    async def fetch_user(self) -> None:
        token = self._auth.get_token(self.name)
        if not token:
            return

        account = await self.idp.get_account_info(token)

        if account.disabled:
            logger.info("Account on {} is disabled, logging out".format(self.name))
            await self.logout()
            raise ErrAccountDisabled()

        self._auth.set_user(account.to_profile())
        if self._state is SessionState.LOGGED_OUT:
            self._settle()

    async def refresh(self) -> None:
        """
        Exchange the refresh token for a new ID token. Concurrent calls share one request.
        """
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.ensure_future(self._refresh())
            self._refresh_task.add_done_callback(_retrieve_exception)

        await asyncio.shield(self._refresh_task)

    async def _refresh(self) -> None:
        refresh_token = self._auth.get_refresh_token(self.name)
        if not refresh_token:
            raise ErrNotAuthenticated()

        self._state = SessionState.REFRESHING
        try:
            response = await self.idp.refresh_token(refresh_token)

            self.clock.set_expiry(response.expires_in)
            self._auth.set_token(self.name, response.id_token)
            self._auth.set_refresh_token(self.name, response.refresh_token)
            logger.debug("Refreshed token on {}, valid for {}s".format(self.name, response.expires_in))

            await self._auth.fetch_user()
        finally:
            if self._state is SessionState.REFRESHING:
                self._settle()

    async def update(self, details: Mapping[str, Any]) -> None:
        """
        Update the account (e.g., ``password``, ``email``, ``displayName``, ``photoUrl``).

        Only runs while logged in. A response other than HTTP 200 leaves the session untouched and isn't reported.
        """
        if not self._auth.logged_in:
            logger.debug("Ignoring account update on {}, not logged in".format(self.name))
            return

        response = await self.idp.set_account_info(self._auth.get_token(self.name), details)
        if response is None:
            return

        user = self._auth.user
        if user is not None:
            changes = {}
            if response.display_name is not None:
                changes["display_name"] = response.display_name
            if response.photo_url is not None:
                changes["photo_url"] = response.photo_url
            self._auth.set_user(replace(user, **changes))

        if response.expires_in is not None:
            self.clock.set_expiry(response.expires_in)
        else:
            id_token = IdToken.try_parse(response.id_token)
            if id_token is not None and id_token.get_expires_at() is not None:
                self.clock.set_expiry(max(id_token.ttl(), 0))

        if response.id_token:
            self._auth.set_token(self.name, response.id_token)
        if response.refresh_token:
            self._auth.set_refresh_token(self.name, response.refresh_token)

        await self._auth.fetch_user()

    async def change_password(self, password: str) -> None:
        await self.update({"password": password})

    async def change_email(self, email: str) -> None:
        await self.update({"email": email})

    async def send_password_reset(self, email: str, locale: Optional[str] = None) -> Any:
        return await self.idp.send_oob_code("PASSWORD_RESET", self._locale(locale), email=email)

    async def confirm_password_reset(self, oob_code: str, password: str) -> Any:
        return await self.idp.reset_password(oob_code, password)

    async def send_email_verification(self, locale: Optional[str] = None) -> Any:
        if not self._auth.logged_in:
            raise ErrNotAuthenticated()

        return await self.idp.send_oob_code(
            "VERIFY_EMAIL",
            self._locale(locale),
            id_token=self._auth.get_token(self.name),
        )

    async def verify_email_verification(self, oob_code: str) -> Any:
        return await self.idp.confirm_email_verification(oob_code)

    async def delete(self) -> None:
        deleted = await self.idp.delete_account(self._auth.get_token(self.name))
        if deleted:
            logger.info("Account on {} deleted".format(self.name))
            await self._auth.logout()

    def claims(self) -> Dict[str, Any]:
        """
        Claims of the current ID token, decoded without signature verification.
        """
        id_token = IdToken.try_parse(self._auth.get_token(self.name))
        return id_token.get_claims() if id_token is not None else {}

    def _locale(self, locale: Optional[str]) -> str:
        return locale if locale is not None else self.options.default_locale

    def _settle(self) -> None:
        if self._auth.get_token(self.name) and self._auth.logged_in:
            self._state = SessionState.LOGGED_IN
        else:
            self._state = SessionState.LOGGED_OUT


def _retrieve_exception(task: asyncio.Future) -> None:
    # Waiters may all be gone when the shared refresh fails.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Token refresh failed: {}".format(task.exception()))

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from firebaseauth.storage import StorageInterface
from firebaseauth.token import UserProfile

logger = logging.getLogger(__name__)

'''
The two capabilities that connect a strategy with the auth orchestrator.

- SessionStore is what the orchestrator offers to a strategy: the tokens, the user profile and the session reset.
- Strategy is what a strategy offers to the orchestrator: the startup hook, login, logout and the profile fetch.
'''


class SessionStore(ABC):
    @abstractmethod
    def get_token(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_token(self, name: str, value: Optional[str]) -> None:
        pass

    @abstractmethod
    def sync_token(self, name: str) -> Optional[str]:
        """
        Reload the token from the persistent storage.
        """
        pass

    @abstractmethod
    def get_refresh_token(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_refresh_token(self, name: str, value: Optional[str]) -> None:
        pass

    @abstractmethod
    def sync_refresh_token(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_user(self, user: Optional[UserProfile]) -> None:
        pass

    @property
    @abstractmethod
    def user(self) -> Optional[UserProfile]:
        pass

    @property
    @abstractmethod
    def logged_in(self) -> bool:
        pass

    @abstractmethod
    async def fetch_user(self) -> None:
        pass

    @abstractmethod
    async def fetch_user_once(self) -> None:
        pass

    @abstractmethod
    async def reset(self) -> None:
        pass

    @abstractmethod
    async def logout(self) -> None:
        pass


class Strategy(ABC):
    name: str

    @abstractmethod
    async def mount(self) -> None:
        pass

    @abstractmethod
    async def login(self, credentials: Mapping[str, Any]) -> None:
        pass

    @abstractmethod
    async def logout(self) -> None:
        pass

    @abstractmethod
    async def fetch_user(self) -> None:
        pass


class Auth(SessionStore):
    """
    A minimal auth orchestrator with a single active strategy.

    Tokens are kept in memory and mirrored into the storage under "_token.<name>" and "_refresh_token.<name>",
    so that ``sync_token`` can restore them after a reload. The user counts as logged in as soon as a
    profile was set.
    """
    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self._strategy = None
        self._tokens: Dict[str, Optional[str]] = {}
        self._refresh_tokens: Dict[str, Optional[str]] = {}
        self._user: Optional[UserProfile] = None

    @property
    def strategy(self) -> Optional[Strategy]:
        return self._strategy

    def set_strategy(self, strategy: Strategy) -> None:
        self._strategy = strategy

    def get_token(self, name: str) -> Optional[str]:
        return self._tokens.get(name)

    def set_token(self, name: str, value: Optional[str]) -> None:
        self._tokens[name] = value
        self.storage.set_cookie("_token." + name, value if value else False)

    def sync_token(self, name: str) -> Optional[str]:
        value = self.storage.get_cookie("_token." + name, False)
        self._tokens[name] = value if value else None
        return self._tokens[name]

    def get_refresh_token(self, name: str) -> Optional[str]:
        return self._refresh_tokens.get(name)

    def set_refresh_token(self, name: str, value: Optional[str]) -> None:
        self._refresh_tokens[name] = value
        self.storage.set_cookie("_refresh_token." + name, value if value else False)

    def sync_refresh_token(self, name: str) -> Optional[str]:
        value = self.storage.get_cookie("_refresh_token." + name, False)
        self._refresh_tokens[name] = value if value else None
        return self._refresh_tokens[name]

    def set_user(self, user: Optional[UserProfile]) -> None:
        self._user = user

    @property
    def user(self) -> Optional[UserProfile]:
        return self._user

    @property
    def logged_in(self) -> bool:
        return self._user is not None

    async def fetch_user(self) -> None:
        if self._strategy is None:
            return
        await self._strategy.fetch_user()

    async def fetch_user_once(self) -> None:
        if self._user is None:
            await self.fetch_user()

    async def reset(self) -> None:
        self.set_user(None)
        for name in list(self._tokens):
            self.set_token(name, None)
        for name in list(self._refresh_tokens):
            self.set_refresh_token(name, None)

    async def logout(self) -> None:
        if self._strategy is None:
            await self.reset()
            return
        logger.debug("Logging out via strategy {}".format(self._strategy.name))
        await self._strategy.logout()

from typing import Any, Mapping, Optional, Tuple

import httpx

from firebaseauth.config import ProviderConfig
from firebaseauth.err import (
    ErrAccountDisabled,
    ErrNotAuthenticated,
    ErrUserNotVerified,
    FirebaseAuthErr,
    InvalidResponseErr,
    ProviderRequestErr,
)
from firebaseauth.provider import FirebaseProvider, SessionState
from firebaseauth.session import Auth, SessionStore, Strategy
from firebaseauth.storage import MemoryStorage, RedisStorage, StorageInterface
from firebaseauth.token import UserProfile
from firebaseauth.token_manager import RefreshListener, TokenManager, TokenManagerConfig


def create_auth(
        options: Mapping[str, Any],
        storage: Optional[StorageInterface] = None,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs
) -> Tuple[Auth, FirebaseProvider]:
    """
    Wire an Auth orchestrator with a FirebaseProvider built from the strategy options.

    :return: The orchestrator and its strategy.
    """
    storage = storage if storage is not None else MemoryStorage()
    auth = Auth(storage)
    provider = FirebaseProvider(auth, storage, ProviderConfig.from_options(options), client=client, **kwargs)
    auth.set_strategy(provider)
    return auth, provider


__all__ = [
    "Auth",
    "ErrAccountDisabled",
    "ErrNotAuthenticated",
    "ErrUserNotVerified",
    "FirebaseAuthErr",
    "FirebaseProvider",
    "InvalidResponseErr",
    "MemoryStorage",
    "ProviderConfig",
    "ProviderRequestErr",
    "RedisStorage",
    "RefreshListener",
    "SessionState",
    "SessionStore",
    "StorageInterface",
    "Strategy",
    "TokenManager",
    "TokenManagerConfig",
    "UserProfile",
    "create_auth",
]

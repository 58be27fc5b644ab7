import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from redis import Redis

logger = logging.getLogger(__name__)

'''
This interface is the facade of the persistent key/value storage that lets a session survive reloads
'''


class StorageInterface(ABC):
    @abstractmethod
    def get_cookie(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set_cookie(self, key: str, value: Any) -> None:
        pass


class MemoryStorage(StorageInterface):
    """
    Keeps the values for the lifetime of the process.
    """
    def __init__(self):
        self._values = {}

    def get_cookie(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_cookie(self, key: str, value: Any) -> None:
        self._values[key] = value


class RedisStorage(StorageInterface):
    """
    Stores the values in Redis, so that they outlive the process.

    Values are JSON encoded, which keeps integers and the ``False`` "unset" sentinel intact.
    A value of ``None`` removes the key.
    """
    def __init__(self, client: Redis, prefix: str = "auth:", ttl: Optional[int] = None):
        self._client = client
        self._prefix = prefix
        self._ttl = ttl

    def _key(self, key: str) -> str:
        return self._prefix + key

    def get_cookie(self, key: str, default: Any = None) -> Any:
        raw = self._client.get(self._key(key))
        if raw is None:
            return default

        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")

        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Value of {} isn't JSON, returning it as is".format(key))
            return raw

    def set_cookie(self, key: str, value: Any) -> None:
        if value is None:
            self._client.delete(self._key(key))
            return

        self._client.set(self._key(key), json.dumps(value), ex=self._ttl)

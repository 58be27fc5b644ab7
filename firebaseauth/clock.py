from datetime import datetime, timezone

from firebaseauth.storage import StorageInterface

'''
The session clock keeps the absolute expiry instant of the current ID token in the persistent storage.

The value is stored in epoch milliseconds under "_expires.<provider name>". Nothing else reads or writes that key.
'''


def _now_ms() -> float:
    return datetime.now(timezone.utc).timestamp() * 1000


class SessionClock:
    def __init__(self, storage: StorageInterface, name: str):
        self._storage = storage
        self._key = "_expires." + name

    @property
    def key(self) -> str:
        return self._key

    def set_expiry(self, remaining_seconds: float) -> None:
        """
        Persist the instant at which the current token expires.

        :param remaining_seconds: Lifetime of the token as reported by the provider.
        """
        expires_at = int(_now_ms() + float(remaining_seconds) * 1000)
        self._storage.set_cookie(self._key, expires_at)

    def get_expires_at(self):
        """
        The persisted expiry instant in epoch milliseconds, or None if unset.
        """
        timestamp = self._storage.get_cookie(self._key, False)
        if timestamp is False or timestamp is None or timestamp == "":
            return None

        try:
            return float(timestamp)
        except (TypeError, ValueError):
            return None

    def get_remaining(self) -> float:
        """
        Seconds until the token expires. Never negative: an unset or past instant reads as 0.

        :return: float
        """
        expires_at = self.get_expires_at()
        if expires_at is None:
            return 0

        diff = (expires_at - _now_ms()) / 1000

        return 0 if diff < 0 else diff

    def clear(self) -> None:
        self._storage.set_cookie(self._key, False)

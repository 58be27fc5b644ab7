from datetime import datetime, timezone
from time import sleep

import pytest

from firebaseauth.clock import SessionClock
from firebaseauth.storage import MemoryStorage


def now_ms():
    return datetime.now(timezone.utc).timestamp() * 1000


class TestSessionClock:

    @pytest.mark.parametrize("remaining", [0, 1, 100, 3600])
    def test_remaining_matches_expiry(self, remaining):
        clock = SessionClock(MemoryStorage(), "firebase")
        clock.set_expiry(remaining)

        assert clock.get_remaining() == pytest.approx(remaining, abs=1)

    def test_expiry_is_persisted_under_provider_key(self):
        storage = MemoryStorage()
        clock = SessionClock(storage, "firebase")
        clock.set_expiry("3600")

        stored = storage.get_cookie("_expires.firebase")
        assert isinstance(stored, int)
        assert stored == pytest.approx(now_ms() + 3600 * 1000, abs=1000)

    def test_remaining_decreases(self):
        clock = SessionClock(MemoryStorage(), "firebase")
        clock.set_expiry(100)

        first = clock.get_remaining()
        sleep(0.05)
        second = clock.get_remaining()

        assert second < first

    @pytest.mark.parametrize(
        "stored",
        [None, False, "", "garbage"],
        ids=["absent", "unset", "empty", "malformed"]
    )
    def test_no_expiry_reads_zero(self, stored):
        storage = MemoryStorage()
        if stored is not None:
            storage.set_cookie("_expires.firebase", stored)

        assert SessionClock(storage, "firebase").get_remaining() == 0

    def test_past_expiry_reads_zero(self):
        storage = MemoryStorage()
        storage.set_cookie("_expires.firebase", int(now_ms()) - 60000)

        assert SessionClock(storage, "firebase").get_remaining() == 0

    def test_string_instant_from_cookie(self):
        storage = MemoryStorage()
        storage.set_cookie("_expires.firebase", str(int(now_ms()) + 50000))

        assert SessionClock(storage, "firebase").get_remaining() == pytest.approx(50, abs=1)

    def test_clear(self):
        storage = MemoryStorage()
        clock = SessionClock(storage, "firebase")
        clock.set_expiry(3600)
        clock.clear()

        assert storage.get_cookie("_expires.firebase") is False
        assert clock.get_remaining() == 0
        assert clock.get_expires_at() is None

    def test_providers_do_not_share_expiry(self):
        storage = MemoryStorage()
        SessionClock(storage, "a").set_expiry(3600)

        assert SessionClock(storage, "b").get_remaining() == 0

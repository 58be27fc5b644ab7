import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from firebaseauth.clock import SessionClock

logger = logging.getLogger(__name__)


class RefreshListener:
    """
    Listeners that will be notified after the token manager refreshed the session, or failed to.
    """
    def __init__(self):
        self.callbacks = []
        self.err_callbacks = []

    def add_callback(self, callback: Callable[[], None]) -> None:
        self.callbacks.append(callback)

    def add_err_callback(self, callback: Callable[[Exception], None]) -> None:
        self.err_callbacks.append(callback)

    def on_refreshed(self) -> None:
        for cb in self.callbacks:
            cb()

    def on_refresh_err(self, error: Exception) -> None:
        for cb in self.err_callbacks:
            cb(error)


class TokenManagerConfig:
    def __init__(self, check_interval: float = 60, lower_refresh_bound: float = 100):
        self._check_interval = check_interval
        self._lower_refresh_bound = lower_refresh_bound

    def get_check_interval(self) -> float:
        """
        Seconds between two checks of the remaining token lifetime.

        :return: float
        """
        return self._check_interval

    def get_lower_refresh_bound(self) -> float:
        """
        Represents the remaining lifetime in seconds below which a refresh is triggered.

        :return: float
        """
        return self._lower_refresh_bound


class TokenManager:
    """
    Polls the session clock on a fixed interval and refreshes the session shortly before the token expires.

    The manager doesn't retry. A failed refresh is reported to the listener and the next tick tries again,
    as long as there is time left. Ticks don't wait for each other, so a slow refresh can overlap with the
    one triggered by the next tick; the refresh callable is expected to coalesce those.
    """
    def __init__(
            self,
            clock: SessionClock,
            is_active: Callable[[], bool],
            refresh: Callable[[], Awaitable[None]],
            config: Optional[TokenManagerConfig] = None,
    ):
        self._clock = clock
        self._is_active = is_active
        self._refresh = refresh
        self._config = config if config is not None else TokenManagerConfig()
        self._listener = RefreshListener()
        self._task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, listener: Optional[RefreshListener] = None) -> Callable[[], None]:
        """
        Schedule the recurring check on the running event loop. Starting a running manager is a no-op.

        :return: The function that stops the manager.
        """
        if listener is not None:
            self._listener = listener

        if self.is_running:
            return self.stop

        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Token manager started, checking every {}s".format(self._config.get_check_interval()))
        return self.stop

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    async def tick(self) -> Optional[asyncio.Task]:
        """
        Run a single check. Returns the spawned refresh task, or None if no refresh was needed.
        """
        if not self._is_active():
            return None

        remaining = self._clock.get_remaining()
        if remaining >= self._config.get_lower_refresh_bound():
            return None

        logger.debug("Token expires in {:.0f}s, refreshing".format(remaining))
        task = asyncio.ensure_future(self._renew())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._config.get_check_interval())
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("Token expiry check failed: {}".format(e))
                self._listener.on_refresh_err(e)

    async def _renew(self) -> None:
        try:
            await self._refresh()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Scheduled token refresh failed: {}".format(e))
            self._listener.on_refresh_err(e)
            return

        self._listener.on_refreshed()

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

BACKOFF_FACTOR = 1.5

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before reconnect ``attempt`` (1-based): ``base_delay * 1.5^(attempt - 1)``."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return base_delay * BACKOFF_FACTOR ** (attempt - 1)


@dataclass(frozen=True)
class ReconnectPolicy:
    """Bounded geometric backoff. Delays are in milliseconds."""

    base_delay: float = 1000
    max_attempts: int = 10

    def delay_for(self, attempt: int) -> float:
        return backoff_delay(attempt, self.base_delay)

    def exhausted(self, attempt: int) -> bool:
        return attempt > self.max_attempts


class ReconnectScheduler:
    """Owns the single reconnect loop task and its backoff timer.

    ``start`` runs a loop coroutine unless one is already running, so repeated
    disconnects never stack loops. ``cancel`` is the cancellation token: it
    stops the loop wherever it is suspended, timer included.
    """

    def __init__(self, sleep: Optional[Sleep] = None) -> None:
        self.sleep: Sleep = sleep or asyncio.sleep
        self.task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    def start(self, loop: Callable[[], Awaitable[None]]) -> bool:
        if self.running:
            logger.debug("Reconnect loop already running")
            return False

        self.task = asyncio.ensure_future(loop())
        self.task.add_done_callback(self.on_done)
        return True

    async def wait(self, delay_ms: float) -> None:
        await self.sleep(delay_ms / 1000)

    def cancel(self) -> bool:
        task, self.task = self.task, None
        if task is None or task.done():
            return False
        if task is asyncio.current_task():
            # Cancelling from inside the loop: it unwinds at its next await
            logger.debug("Reconnect loop cancelled from within")
        task.cancel()
        return True

    @staticmethod
    def on_done(task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            logger.debug("Reconnect loop cancelled")
            return
        if exc := task.exception():
            logger.error("Reconnect loop failed: %s", exc, exc_info=exc)

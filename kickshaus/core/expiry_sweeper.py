"""Background sweep that fails pending orders whose payment window closed."""

import asyncio
import logging
from typing import TYPE_CHECKING

from kickshaus.core.config import get_settings

if TYPE_CHECKING:
    from kickshaus.services.order_ledger import OrderLedger

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Periodically expires stale pending orders.

    Verification also expires orders lazily, so the sweep only keeps
    abandoned checkouts from lingering as pending.
    """

    def __init__(self, ledger: "OrderLedger", interval_seconds: int) -> None:
        self.ledger = ledger
        self.interval_seconds = interval_seconds
        self._sweep_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start background sweep task."""
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info("Expiry sweep started (every %ds)", self.interval_seconds)

    async def stop(self) -> None:
        """Stop background sweep task."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
            logger.info("Expiry sweep stopped")

    async def sweep(self) -> int:
        """Expire stale orders once. Returns the number expired."""
        return await self.ledger.expire_stale()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep()
            except Exception as e:
                logger.error("Expiry sweep failed: %s", str(e))


# Global singleton instance
_sweeper: ExpirySweeper | None = None


async def init_expiry_sweeper() -> ExpirySweeper | None:
    """Start the expiry sweep. Call at app startup.

    Returns None when the sweep is disabled (interval 0).
    """
    global _sweeper
    settings = get_settings()
    if settings.expiry_sweep_interval_seconds <= 0:
        logger.info("Expiry sweep disabled")
        return None

    from kickshaus.services.order_ledger import OrderLedger

    _sweeper = ExpirySweeper(OrderLedger(settings=settings), settings.expiry_sweep_interval_seconds)
    await _sweeper.start()
    return _sweeper


async def shutdown_expiry_sweeper() -> None:
    """Stop the expiry sweep. Call at app shutdown."""
    global _sweeper
    if _sweeper:
        await _sweeper.stop()
        _sweeper = None

"""Worker running the scheduled opportunity sweeps.

Each pass expires opportunities whose end date has passed and then logs
notifications for the ones about to expire. Passes repeat every
OPPORTUNITY_WORKER_POLL_INTERVAL_SECONDS until stopped.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import socket
from dataclasses import dataclass
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import settings
from marketplace.core.logging_config import configure_logging
from marketplace.db.session import get_async_session_context
from marketplace.services.opportunity_service import OpportunityService

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


@dataclass(frozen=True)
class SweepResult:
    expired: int
    notified: int


class OpportunityExpirationWorker:
    """Run the expiration and expiration-notification sweeps on a schedule."""

    def __init__(
        self,
        worker_id: Optional[str] = None,
        poll_interval: Optional[float] = None,
        session_factory: SessionFactory = get_async_session_context,
    ) -> None:
        self.worker_id = worker_id or f"opportunity-expiration-{socket.gethostname()}-{os.getpid()}"
        self.poll_interval = poll_interval if poll_interval is not None else settings.OPPORTUNITY_WORKER_POLL_INTERVAL_SECONDS
        self.session_factory = session_factory
        self._stop_event = asyncio.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    def setup_signal_handlers(self) -> None:
        """Stop gracefully on SIGTERM/SIGINT."""
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, self.request_stop)

    async def run_once(self) -> SweepResult:
        """Run both sweeps once."""
        async with self.session_factory() as session:
            service = OpportunityService(session)
            expired = await service.process_expiration()
            notified = await service.expiration_notifications()

        result = SweepResult(expired=expired, notified=notified)
        logger.info(
            "Worker %s sweep done: %d expired, %d expiring soon",
            self.worker_id, result.expired, result.notified,
        )
        return result

    async def run_forever(self) -> None:
        """Sweep until stopped, waiting poll_interval between passes."""
        logger.info("Worker %s started (poll interval %ss)", self.worker_id, self.poll_interval)
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                # A failed pass is retried on the next interval
                logger.exception("Worker %s sweep failed", self.worker_id)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                continue
        logger.info("Worker %s stopped", self.worker_id)


def get_default_worker(worker_id: Optional[str] = None, poll_interval: Optional[float] = None) -> OpportunityExpirationWorker:
    return OpportunityExpirationWorker(worker_id=worker_id, poll_interval=poll_interval)


async def _run() -> None:
    worker = get_default_worker()
    worker.setup_signal_handlers()
    await worker.run_forever()


def main() -> None:
    configure_logging()
    asyncio.run(_run())


if __name__ == "__main__":
    main()

"""Periodic cleanup of expired login attempts and lockouts.

Requests already sweep opportunistically; this task bounds memory for
identifiers that are never seen again.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from loginguard.auth.login_tracker import LoginAttemptTracker
from loginguard.core.logging import get_logger

logger = get_logger(__name__)


class CleanupSweeper:
    """Run ``tracker.cleanup()`` every ``interval_seconds`` on the event loop."""

    def __init__(self, tracker: LoginAttemptTracker, interval_seconds: float):
        self.tracker = tracker
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        pruned = self.tracker.cleanup()
        if pruned:
            logger.info("Login tracker sweep", data={"pruned": pruned})
        else:
            logger.debug("Login tracker sweep found nothing to prune")
        return pruned

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep_once()
            except Exception:
                # Keep sweeping; a single failed pass only delays pruning.
                logger.exception("Login tracker sweep failed")

    def start(self) -> None:
        if not self.enabled or self.running:
            return
        self._task = asyncio.create_task(self._run(), name="login-tracker-sweep")
        logger.info(
            "Login tracker sweeper started",
            data={"interval_seconds": self.interval_seconds},
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Login tracker sweeper stopped")

"""Periodic autosave of the current document."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable

import structlog

from .models import GenogramDocument
from .persistence import save_document

logger = structlog.get_logger(__name__)

Writer = Callable[[GenogramDocument, Path], object]


class Autosaver:
    """Writes a snapshot every ``interval`` seconds while the document is dirty.

    The snapshot is taken and written without yielding to the event loop,
    so a ``disable()`` issued from the loop always lands between writes and
    no write happens after it.
    """

    def __init__(
        self,
        snapshot: Callable[[], GenogramDocument],
        is_dirty: Callable[[], bool],
        mark_clean: Callable[[], None],
        path: str | Path,
        interval: float = 30.0,
        writer: Writer = save_document,
    ) -> None:
        self._snapshot = snapshot
        self._is_dirty = is_dirty
        self._mark_clean = mark_clean
        self.path = Path(path)
        self.interval = interval
        self._writer = writer
        self._task: asyncio.Task | None = None
        self._enabled = False
        self.saves = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        """Start the timer on the running event loop."""
        if self._enabled:
            return
        loop = asyncio.get_running_loop()
        self._enabled = True
        self._task = loop.create_task(self._run())
        logger.info("autosave_enabled", path=str(self.path), interval=self.interval)

    def disable(self) -> None:
        self._enabled = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("autosave_disabled")

    def save_now(self) -> bool:
        """Write the current document if it is dirty. Returns True if written."""
        if not self._enabled or not self._is_dirty():
            return False
        document = self._snapshot()
        try:
            self._writer(document, self.path)
        except OSError as e:
            logger.error("autosave_failed", path=str(self.path), error=str(e))
            return False
        self._mark_clean()
        self.saves += 1
        logger.debug("autosaved", path=str(self.path))
        return True

    async def _run(self) -> None:
        while self._enabled:
            await asyncio.sleep(self.interval)
            self.save_now()

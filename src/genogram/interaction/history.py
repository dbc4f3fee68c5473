"""Whole-document undo/redo."""
from __future__ import annotations

from collections import deque
from collections.abc import Callable
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from ..models import GenogramDocument

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger(__name__)

DEFAULT_LIMIT = 50


class HistoryManager:
    """Undo and redo stacks of full document snapshots.

    Each stack keeps at most ``limit`` snapshots; the oldest entries are
    dropped first. Snapshots pushed while an undo or redo is being replayed
    are ignored so restoring a state never records itself.
    """

    def __init__(self, limit: int = DEFAULT_LIMIT):
        self.limit = max(1, limit)
        self._undo: deque[GenogramDocument] = deque(maxlen=self.limit)
        self._redo: deque[GenogramDocument] = deque(maxlen=self.limit)
        self._replaying = False
        self._dirty = False

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def replaying(self) -> bool:
        return self._replaying

    def mark_dirty(self) -> None:
        self._dirty = True

    def mark_clean(self) -> None:
        self._dirty = False

    def snapshot(self, state: GenogramDocument) -> None:
        """Record the state *before* a mutation."""
        if self._replaying:
            return
        self._undo.append(state)
        self._redo.clear()

    def undo(self, current: GenogramDocument, restore: Callable[[GenogramDocument], object]) -> bool:
        if not self._undo:
            return False
        previous = self._undo.pop()
        with self._replay():
            restore(previous)
        self._redo.append(current)
        self._dirty = True
        logger.debug("undo", undo_depth=len(self._undo), redo_depth=len(self._redo))
        return True

    def redo(self, current: GenogramDocument, restore: Callable[[GenogramDocument], object]) -> bool:
        if not self._redo:
            return False
        following = self._redo.pop()
        with self._replay():
            restore(following)
        self._undo.append(current)
        self._dirty = True
        logger.debug("redo", undo_depth=len(self._undo), redo_depth=len(self._redo))
        return True

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @contextmanager
    def _replay(self) -> Iterator[None]:
        self._replaying = True
        try:
            yield
        finally:
            self._replaying = False

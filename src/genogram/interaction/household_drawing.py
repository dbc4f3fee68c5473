"""Multi-click polygon drawing for household boundaries."""
from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Callable, Union

import structlog

from ..models import Household, Point

logger = structlog.get_logger(__name__)

MIN_POINTS = 3
DEFAULT_CLOSE_RADIUS = 30.0

_LABEL = re.compile(r"^Household (\d+)$")


@dataclass(frozen=True)
class NotDrawing:
    pass


@dataclass(frozen=True)
class Drawing:
    points: tuple[Point, ...] = field(default_factory=tuple)

    @property
    def can_close(self) -> bool:
        return len(self.points) >= MIN_POINTS


DrawingState = Union[NotDrawing, Drawing]


def next_household_label(households: Iterable[Household]) -> str:
    """``Household N`` with the smallest N not already used."""
    used = set()
    for household in households:
        match = _LABEL.match(household.display_name)
        if match:
            used.add(int(match.group(1)))
    n = 1
    while n in used:
        n += 1
    return f"Household {n}"


class HouseholdDrawingStateMachine:
    """NotDrawing / Drawing(points).

    ``commit`` receives the closed boundary and returns something truthy
    when a household was created. Clicking within ``close_radius`` of the
    first point closes the shape once it has at least three points.
    """

    def __init__(
        self,
        commit: Callable[[tuple[Point, ...]], Any],
        close_radius: float = DEFAULT_CLOSE_RADIUS,
    ):
        self._commit = commit
        self.close_radius = close_radius
        self._state: DrawingState = NotDrawing()

    @property
    def state(self) -> DrawingState:
        return self._state

    @property
    def is_drawing(self) -> bool:
        return isinstance(self._state, Drawing)

    @property
    def points(self) -> tuple[Point, ...]:
        return self._state.points if isinstance(self._state, Drawing) else ()

    def start(self) -> None:
        self._state = Drawing()
        logger.debug("household_drawing_started")

    def cancel(self) -> None:
        if self.is_drawing:
            logger.debug("household_drawing_cancelled", points=len(self.points))
        self._state = NotDrawing()

    def add_point(self, point: Point) -> Any:
        """Append a boundary point, or close the shape near the first one.

        Returns the commit outcome when the click closed the shape, else None.
        """
        state = self._state
        if not isinstance(state, Drawing):
            return None
        if state.can_close and point.distance_to(state.points[0]) <= self.close_radius:
            return self.close()
        self._state = Drawing(state.points + (point,))
        return None

    def close(self) -> Any:
        """Commit the boundary. A no-op with fewer than three points."""
        state = self._state
        if not isinstance(state, Drawing) or not state.can_close:
            return None
        outcome = self._commit(state.points)
        if outcome:
            logger.debug("household_drawing_closed", points=len(state.points))
            self._state = NotDrawing()
        return outcome

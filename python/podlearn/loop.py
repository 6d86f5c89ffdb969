from __future__ import annotations

import logging
from enum import Enum

from .models import LoopRegion

LOGGER = logging.getLogger(__name__)


class LoopState(str, Enum):
    UNSET = "unset"
    A_MARKED = "a_marked"
    ACTIVE = "active"


class LoopController:
    """A/B repeat driven by a single mark button.

    First mark sets A, second sets B and activates, third clears. A second
    mark earlier than A swaps the points; a mark equal to A is ignored.
    """

    def __init__(self) -> None:
        self._point_a: float | None = None
        self._point_b: float | None = None

    @property
    def state(self) -> LoopState:
        if self._point_a is None:
            return LoopState.UNSET
        if self._point_b is None:
            return LoopState.A_MARKED
        return LoopState.ACTIVE

    @property
    def region(self) -> LoopRegion:
        return LoopRegion(
            point_a=self._point_a,
            point_b=self._point_b,
            active=self.state is LoopState.ACTIVE,
        )

    @property
    def is_active(self) -> bool:
        return self.state is LoopState.ACTIVE

    def mark(self, position: float) -> LoopRegion:
        position = float(position)
        point_a = self._point_a
        if point_a is None:
            self._point_a = position
        elif self._point_b is None:
            if position == point_a:
                LOGGER.debug("Ignorerer B-mærke lig med A (%.3f)", position)
                return self.region
            self._point_a, self._point_b = min(point_a, position), max(point_a, position)
        else:
            self.clear()
        return self.region

    def clear(self) -> None:
        self._point_a = None
        self._point_b = None

    def should_loop(self, position: float) -> bool:
        return self.is_active and self._point_b is not None and position >= self._point_b

    @property
    def loop_start(self) -> float:
        return self._point_a if self._point_a is not None else 0.0

from __future__ import annotations

import logging
import time
from typing import Callable

from .media import MediaElement

LOGGER = logging.getLogger(__name__)

RATE_LADDER: tuple[float, ...] = (0.5, 0.75, 1.0, 1.25, 1.5, 2.0)
SKIP_STEP_SEC = 10.0

TickListener = Callable[[float], None]


class PlaybackClock:
    """Single owner of the playback position.

    The host calls :meth:`on_time_update` whenever the media element reports
    progress. Nothing here assumes a tick rate.
    """

    def __init__(self, media: MediaElement, *, monotonic: Callable[[], float] = time.monotonic):
        self._media = media
        self._monotonic = monotonic
        self._listeners: list[TickListener] = []
        self._position = float(media.current_time or 0.0)
        self._position_stamp = monotonic()

    @property
    def media(self) -> MediaElement:
        return self._media

    @property
    def position(self) -> float:
        return self._position

    @property
    def duration(self) -> float:
        return max(0.0, float(self._media.duration or 0.0))

    @property
    def rate(self) -> float:
        return float(self._media.playback_rate)

    @property
    def is_playing(self) -> bool:
        return not self._media.paused

    def add_listener(self, listener: TickListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TickListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def play(self) -> None:
        if self.is_playing:
            return
        self._media.play()
        self._position_stamp = self._monotonic()

    def pause(self) -> None:
        if not self.is_playing:
            return
        self._media.pause()
        self._position = float(self._media.current_time)
        self._position_stamp = self._monotonic()

    def toggle(self) -> bool:
        if self.is_playing:
            self.pause()
        else:
            self.play()
        return self.is_playing

    def seek(self, target: float) -> float:
        clamped = max(0.0, min(float(target), self.duration))
        self._media.current_time = clamped
        self._position = clamped
        self._position_stamp = self._monotonic()
        return clamped

    def skip(self, delta: float = SKIP_STEP_SEC) -> float:
        return self.seek(self._position + delta)

    def cycle_rate(self) -> float:
        try:
            idx = RATE_LADDER.index(self.rate)
        except ValueError:
            idx = -1
        next_rate = RATE_LADDER[(idx + 1) % len(RATE_LADDER)]
        self._media.playback_rate = next_rate
        LOGGER.debug("Afspilningshastighed sat til %.2fx", next_rate)
        return next_rate

    set_rate = cycle_rate

    def on_time_update(self) -> None:
        self._position = float(self._media.current_time)
        self._position_stamp = self._monotonic()
        for listener in list(self._listeners):
            listener(self._position)

    def estimate_position(self, now: float | None = None) -> float:
        """Extrapolate the last reported position to ``now`` while playing.

        Media progress events are coarse; frame-driven highlighting uses this
        estimate between them.
        """

        if not self.is_playing:
            return self._position
        if now is None:
            now = self._monotonic()
        elapsed = max(0.0, now - self._position_stamp)
        return min(self.duration, self._position + elapsed * self.rate)

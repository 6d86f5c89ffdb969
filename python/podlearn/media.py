from __future__ import annotations

from typing import Callable, Protocol


class MediaElement(Protocol):
    current_time: float
    playback_rate: float

    @property
    def duration(self) -> float: ...

    @property
    def paused(self) -> bool: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...


class SimulatedMedia:
    """In-memory media element that advances only when told to.

    ``advance`` moves the position by wall seconds scaled by the playback
    rate and fires the time-update callback, the way a browser reports
    progress.
    """

    def __init__(self, duration: float, *, on_time_update: Callable[[], None] | None = None):
        if duration < 0:
            raise ValueError("duration kan ikke være negativ")
        self._duration = float(duration)
        self._paused = True
        self.current_time = 0.0
        self.playback_rate = 1.0
        self.on_time_update = on_time_update
        self.play_calls = 0
        self.pause_calls = 0

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def ended(self) -> bool:
        return self.current_time >= self._duration

    def play(self) -> None:
        self.play_calls += 1
        self._paused = False

    def pause(self) -> None:
        self.pause_calls += 1
        self._paused = True

    def advance(self, wall_seconds: float) -> float:
        if not self._paused:
            self.current_time = min(self._duration, self.current_time + wall_seconds * self.playback_rate)
            if self.ended:
                self._paused = True
        if self.on_time_update is not None:
            self.on_time_update()
        return self.current_time

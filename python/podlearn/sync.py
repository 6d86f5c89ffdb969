from __future__ import annotations

import asyncio
import logging

from .clock import PlaybackClock
from .loop import LoopController
from .models import ScrollRequest, SyncFrame
from .store import TranscriptStore

LOGGER = logging.getLogger(__name__)

FRAME_INTERVAL_SEC = 1 / 60


class SyncListener:
    """Receives the side effects of :class:`SyncEngine`. Override what you need."""

    def on_highlight(self, frame: SyncFrame) -> None:
        pass

    def on_active_line_changed(self, index: int | None) -> None:
        pass

    def on_scroll_request(self, request: ScrollRequest) -> None:
        pass

    def on_loop_seek(self, target: float) -> None:
        pass


def line_anchor(index: int) -> str:
    return f"line-{index}"


class SyncEngine:
    def __init__(
        self,
        store: TranscriptStore,
        clock: PlaybackClock,
        loop: LoopController,
        listener: SyncListener | None = None,
        *,
        auto_scroll: bool = True,
    ) -> None:
        self._store = store
        self._clock = clock
        self._loop = loop
        self._listener = listener or SyncListener()
        self._auto_scroll = auto_scroll
        self._last_line: int | None = None
        self._last_frame: SyncFrame | None = None

    @property
    def auto_scroll(self) -> bool:
        return self._auto_scroll

    @property
    def last_frame(self) -> SyncFrame | None:
        return self._last_frame

    @property
    def active_line_index(self) -> int | None:
        return self._last_line

    def attach(self) -> None:
        self._clock.add_listener(self.tick)

    def detach(self) -> None:
        self._clock.remove_listener(self.tick)

    def reset(self) -> None:
        self._last_line = None
        self._last_frame = None

    def set_auto_scroll(self, enabled: bool) -> None:
        was_enabled = self._auto_scroll
        self._auto_scroll = enabled
        if enabled and not was_enabled and self._last_line is not None:
            self._scroll_to(self._last_line)

    def tick(self, position: float) -> SyncFrame | None:
        if self._loop.should_loop(position):
            target = self._clock.seek(self._loop.loop_start)
            self._listener.on_loop_seek(target)
            return None

        line_idx = self._store.active_line_index(position)
        word_idx = None
        if line_idx is not None:
            word_idx = self._store.active_word_index(self._store.line(line_idx), position)

        changed = line_idx != self._last_line
        frame = SyncFrame(position=position, line_index=line_idx, word_index=word_idx, line_changed=changed)
        self._last_frame = frame

        if changed:
            self._last_line = line_idx
            self._listener.on_active_line_changed(line_idx)
            if self._auto_scroll and line_idx is not None:
                self._scroll_to(line_idx)

        self._listener.on_highlight(frame)
        return frame

    def _scroll_to(self, index: int) -> None:
        self._listener.on_scroll_request(ScrollRequest(index=index, anchor=line_anchor(index)))


class FrameTicker:
    """Ticks a :class:`SyncEngine` from the clock's estimated position at a fixed frame rate.

    Media progress events arrive irregularly; word-level highlighting stays
    smooth when a frame loop fills the gaps.
    """

    def __init__(self, engine: SyncEngine, clock: PlaybackClock, *, interval: float = FRAME_INTERVAL_SEC):
        if interval <= 0:
            raise ValueError("interval skal være større end 0")
        self._engine = engine
        self._clock = clock
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            if self._clock.is_playing:
                self._engine.tick(self._clock.estimate_position())
            await asyncio.sleep(self._interval)

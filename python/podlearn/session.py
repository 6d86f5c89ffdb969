from __future__ import annotations

import itertools
import logging
from typing import Callable

from .analysis import AnalysisPanel, AnalysisRequestController
from .api import LearningApi
from .cache import LoadStatus, TranscriptCache
from .clock import PlaybackClock
from .identity import compute_key
from .loop import LoopController
from .media import MediaElement
from .models import Episode, LoopRegion, TranscriptResult
from .optimistic import OptimisticValue
from .store import TranscriptStore
from .sync import SyncEngine, SyncListener

LOGGER = logging.getLogger(__name__)


class PlayerSession:
    """The episode view: one transcript, one clock, one loop, one analysis panel.

    Opening another episode replaces the transcript wholesale. Results from
    loads and analyses that belong to an earlier episode are dropped.
    """

    def __init__(
        self,
        api: LearningApi,
        media: MediaElement,
        *,
        sync_listener: SyncListener | None = None,
        on_status: Callable[[LoadStatus], None] | None = None,
        on_panel: Callable[[AnalysisPanel], None] | None = None,
    ) -> None:
        self._api = api
        self._cache = TranscriptCache(api)
        self._on_status = on_status
        self._load_tokens = itertools.count(1)
        self._load_token = 0

        self.store = TranscriptStore()
        self.clock = PlaybackClock(media)
        self.loop = LoopController()
        self.engine = SyncEngine(self.store, self.clock, self.loop, sync_listener)
        self.engine.attach()
        self.analysis = AnalysisRequestController(api, self.clock, listener=on_panel)

        self.episode: Episode | None = None
        self.key: str | None = None
        self.status: LoadStatus | None = None
        self.transcript_error: str | None = None
        self.show_translation = True
        self.liked: OptimisticValue[bool] = OptimisticValue(False)

    def _set_status(self, token: int, status: LoadStatus) -> None:
        if token != self._load_token:
            return
        self.status = status
        if self._on_status is not None:
            self._on_status(status)

    async def open_episode(self, episode: Episode) -> TranscriptResult | None:
        token = next(self._load_tokens)
        self._load_token = token

        self.episode = episode
        self.key = compute_key(episode)
        self.transcript_error = None
        self.liked = OptimisticValue(False)
        self.loop.clear()
        self.analysis.invalidate()
        self.engine.reset()
        self.store.clear()

        result = await self._cache.load(episode, on_status=lambda status: self._set_status(token, status))
        if token != self._load_token:
            LOGGER.debug("Forældet transcript for %s ignoreret", result.key)
            return None

        self.store.replace(result.lines)
        self.transcript_error = result.error
        await self._track_view(token, episode, result.key)
        return result

    async def retry_transcript(self) -> TranscriptResult | None:
        if self.episode is None:
            return None
        return await self.open_episode(self.episode)

    async def _track_view(self, token: int, episode: Episode, key: str) -> None:
        if token != self._load_token:
            return
        try:
            await self._api.track_view(episode, key)
        except Exception as exc:  # noqa: BLE001 - view tracking is best effort
            LOGGER.warning("Visningsregistrering fejlede for %s: %s", key, exc)

    def toggle_translation(self) -> bool:
        self.show_translation = not self.show_translation
        return self.show_translation

    def set_auto_scroll(self, enabled: bool) -> None:
        self.engine.set_auto_scroll(enabled)

    def mark_loop(self) -> LoopRegion:
        return self.loop.mark(self.clock.position)

    def seek_to_line(self, index: int) -> float:
        return self.clock.seek(self.store.line(index).start)

    async def analyze_line(self, index: int) -> AnalysisPanel:
        return await self.analysis.open(self.store.line(index))

    async def toggle_like(self) -> bool:
        if self.episode is None or self.key is None:
            raise RuntimeError("Ingen episode er åben")
        episode, key = self.episode, self.key
        return await self.liked.commit(
            not self.liked.value,
            lambda liked: self._api.set_like(episode, key, liked),
        )

    def close(self) -> None:
        self._load_token = next(self._load_tokens)
        self.engine.detach()
        self.analysis.close()
        self.clock.pause()

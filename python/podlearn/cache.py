from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import httpx

from .api import ApiError, LearningApi
from .fallback import FALLBACK_ERROR, fallback_transcript
from .identity import compute_key
from .models import Episode, Transcript, TranscriptResult, TranscriptSource

LOGGER = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    LOADING = "loading"
    GENERATING = "generating"
    READY = "ready"
    DEGRADED = "degraded"


StatusCallback = Callable[[LoadStatus], None]


class TranscriptCache:
    """Resolves an episode's transcript: CDN cache, then generation, then demo fallback.

    Tiers run strictly one after another. ``load`` never raises for network or
    payload problems; a failed generation yields the fallback transcript marked
    as degraded.
    """

    def __init__(self, api: LearningApi):
        self._api = api

    async def _from_cdn(self, key: str) -> Transcript | None:
        if not self._api.config.has_cdn:
            return None
        try:
            lines = await self._api.fetch_cached_transcript(key)
        except (httpx.HTTPError, ApiError, ValueError) as exc:
            LOGGER.debug("Cache-miss for %s: %s", key, exc)
            return None
        LOGGER.info("Cache-hit for %s (%d linjer)", key, len(lines))
        return lines

    async def load(self, episode: Episode, on_status: StatusCallback | None = None) -> TranscriptResult:
        def report(status: LoadStatus) -> None:
            if on_status is not None:
                on_status(status)

        key = compute_key(episode)
        report(LoadStatus.LOADING)

        cached = await self._from_cdn(key)
        if cached is not None:
            report(LoadStatus.READY)
            return TranscriptResult(key=key, lines=cached, source=TranscriptSource.CACHE)

        report(LoadStatus.GENERATING)
        try:
            generated = await self._api.generate_transcript(episode, key)
        except Exception as exc:  # noqa: BLE001 - any generation failure degrades to the demo transcript
            LOGGER.warning("Transcript-generering fejlede for %s: %s", key, exc)
            report(LoadStatus.DEGRADED)
            return TranscriptResult(
                key=key,
                lines=fallback_transcript(),
                source=TranscriptSource.FALLBACK,
                degraded=True,
                error=f"{FALLBACK_ERROR}: {exc}",
            )

        LOGGER.info("Transcript genereret for %s (%d linjer)", key, len(generated))
        report(LoadStatus.READY)
        return TranscriptResult(key=key, lines=generated, source=TranscriptSource.GENERATED)

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .api import LearningApi
from .clock import PlaybackClock
from .models import AnalysisResult, TranscriptLine

LOGGER = logging.getLogger(__name__)


class AnalysisState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class AnalysisPanel:
    state: AnalysisState = AnalysisState.IDLE
    line: TranscriptLine | None = None
    result: AnalysisResult | None = None
    error: str | None = None

    @property
    def can_retry(self) -> bool:
        return self.state is AnalysisState.FAILED


PanelListener = Callable[[AnalysisPanel], None]


class AnalysisRequestController:
    """Lifecycle of the line analysis panel.

    Every request gets a token. A response is applied only while its token is
    still current, so superseded, closed and cross-episode responses are
    dropped on arrival.
    """

    def __init__(
        self,
        api: LearningApi,
        clock: PlaybackClock,
        *,
        listener: PanelListener | None = None,
    ) -> None:
        self._api = api
        self._clock = clock
        self._listener = listener
        self._tokens = itertools.count(1)
        self._current_token = 0
        self._panel = AnalysisPanel()

    @property
    def panel(self) -> AnalysisPanel:
        return self._panel

    @property
    def state(self) -> AnalysisState:
        return self._panel.state

    def _set_panel(self, panel: AnalysisPanel) -> None:
        self._panel = panel
        if self._listener is not None:
            self._listener(panel)

    async def open(self, line: TranscriptLine, *, context: str = "") -> AnalysisPanel:
        self._clock.pause()
        token = next(self._tokens)
        self._current_token = token
        self._set_panel(AnalysisPanel(state=AnalysisState.PENDING, line=line))

        try:
            result = await self._api.analyze_sentence(line.text, context=context)
        except Exception as exc:  # noqa: BLE001 - surfaced in the panel with a retry control
            if token != self._current_token:
                LOGGER.debug("Forældet analysefejl ignoreret (token %d)", token)
                return self._panel
            LOGGER.warning("Analyse fejlede: %s", exc)
            self._set_panel(AnalysisPanel(state=AnalysisState.FAILED, line=line, error=str(exc)))
            return self._panel

        if token != self._current_token:
            LOGGER.debug("Forældet analysesvar ignoreret (token %d)", token)
            return self._panel
        self._set_panel(AnalysisPanel(state=AnalysisState.READY, line=line, result=result))
        return self._panel

    async def retry(self, *, context: str = "") -> AnalysisPanel:
        if self._panel.state is not AnalysisState.FAILED or self._panel.line is None:
            return self._panel
        return await self.open(self._panel.line, context=context)

    def close(self) -> None:
        self._current_token = next(self._tokens)
        if self._panel.state is not AnalysisState.IDLE:
            self._set_panel(AnalysisPanel())

    invalidate = close

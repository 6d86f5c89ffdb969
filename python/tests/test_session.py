import asyncio

import pytest

from podlearn.api import ApiError
from podlearn.cache import LoadStatus
from podlearn.config import ClientConfig
from podlearn.fallback import FALLBACK_LINES
from podlearn.loop import LoopState
from podlearn.media import SimulatedMedia
from podlearn.models import AnalysisResult, Episode, TranscriptLine
from podlearn.optimistic import OptimisticUpdateError
from podlearn.session import PlayerSession

EPISODE_A = Episode(title="A", audio_url="https://media.example.com/a.mp3", guid="ep-a")
EPISODE_B = Episode(title="B", audio_url="https://media.example.com/b.mp3", guid="ep-b")

LINES_A = (TranscriptLine(start=0.0, end=5.0, text="에이", translation="A"),)
LINES_B = (
    TranscriptLine(start=0.0, end=3.0, text="비 하나", translation="B1"),
    TranscriptLine(start=3.0, end=6.0, text="비 둘", translation="B2"),
)


class FakeSessionApi:
    def __init__(self) -> None:
        self.config = ClientConfig(api_base="https://api.example.com/api")
        self.transcripts = {"ep-a": LINES_A, "ep-b": LINES_B}
        self.gates: dict[str, asyncio.Event] = {}
        self.generation_errors: dict[str, Exception] = {}
        self.views: list[str] = []
        self.view_error: Exception | None = None
        self.like_error: Exception | None = None
        self.likes: list[bool] = []

    async def fetch_cached_transcript(self, key: str):
        raise AssertionError("CDN er ikke konfigureret")

    async def generate_transcript(self, episode: Episode, key: str):
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        error = self.generation_errors.get(key)
        if error is not None:
            raise error
        return self.transcripts[key]

    async def track_view(self, episode: Episode, key: str) -> None:
        self.views.append(key)
        if self.view_error is not None:
            raise self.view_error

    async def set_like(self, episode: Episode, key: str, liked: bool) -> bool:
        self.likes.append(liked)
        if self.like_error is not None:
            raise self.like_error
        return liked

    async def analyze_sentence(self, text: str, *, context: str = "") -> AnalysisResult:
        return AnalysisResult(cultural_nuance=text)


def _session(api: FakeSessionApi, statuses: list[LoadStatus] | None = None) -> PlayerSession:
    return PlayerSession(api, SimulatedMedia(60.0), on_status=None if statuses is None else statuses.append)


def test_open_episode_populates_store_and_tracks_view():
    api = FakeSessionApi()
    statuses: list[LoadStatus] = []
    session = _session(api, statuses)

    result = asyncio.run(session.open_episode(EPISODE_B))

    assert result is not None
    assert session.store.lines == LINES_B
    assert session.key == "ep-b"
    assert session.transcript_error is None
    assert statuses == [LoadStatus.LOADING, LoadStatus.GENERATING, LoadStatus.READY]
    assert api.views == ["ep-b"]


@pytest.mark.parametrize("release_order", [("ep-a", "ep-b"), ("ep-b", "ep-a")])
def test_episode_switch_mid_flight_keeps_only_latest(release_order):
    api = FakeSessionApi()
    statuses: list[LoadStatus] = []
    session = _session(api, statuses)

    async def scenario():
        api.gates = {"ep-a": asyncio.Event(), "ep-b": asyncio.Event()}
        load_a = asyncio.create_task(session.open_episode(EPISODE_A))
        await asyncio.sleep(0)
        load_b = asyncio.create_task(session.open_episode(EPISODE_B))
        await asyncio.sleep(0)
        for key in release_order:
            api.gates[key].set()
            await asyncio.sleep(0)
        return await load_a, await load_b

    result_a, result_b = asyncio.run(scenario())

    assert result_a is None
    assert result_b is not None
    assert session.episode == EPISODE_B
    assert session.store.lines == LINES_B
    assert session.status is LoadStatus.READY
    assert api.views == ["ep-b"]


def test_generation_failure_shows_fallback_with_banner():
    api = FakeSessionApi()
    api.generation_errors["ep-a"] = ApiError("Transcript-generering fejlede (500)", status_code=500)
    session = _session(api)

    result = asyncio.run(session.open_episode(EPISODE_A))

    assert result is not None and result.degraded
    assert session.store.lines == FALLBACK_LINES
    assert session.status is LoadStatus.DEGRADED
    assert session.transcript_error is not None

    del api.generation_errors["ep-a"]
    asyncio.run(session.retry_transcript())
    assert session.store.lines == LINES_A
    assert session.transcript_error is None


def test_view_tracking_failure_does_not_break_loading():
    api = FakeSessionApi()
    api.view_error = ApiError("Unauthorized", status_code=401)
    session = _session(api)

    result = asyncio.run(session.open_episode(EPISODE_A))
    assert result is not None
    assert session.store.lines == LINES_A


def test_switching_episode_resets_loop_and_analysis():
    api = FakeSessionApi()
    session = _session(api)

    async def scenario() -> None:
        await session.open_episode(EPISODE_A)
        session.clock.seek(1.0)
        session.mark_loop()
        session.clock.seek(4.0)
        session.mark_loop()
        assert session.loop.state is LoopState.ACTIVE
        await session.analyze_line(0)
        await session.open_episode(EPISODE_B)

    asyncio.run(scenario())
    assert session.loop.state is LoopState.UNSET
    assert session.analysis.panel.line is None


def test_seek_to_line_and_toggles():
    api = FakeSessionApi()
    session = _session(api)
    asyncio.run(session.open_episode(EPISODE_B))

    assert session.seek_to_line(1) == 3.0
    assert session.clock.position == 3.0
    assert session.toggle_translation() is False
    assert session.toggle_translation() is True

    session.set_auto_scroll(False)
    assert not session.engine.auto_scroll


def test_toggle_like_is_optimistic_and_rolls_back():
    api = FakeSessionApi()
    session = _session(api)
    asyncio.run(session.open_episode(EPISODE_A))

    assert asyncio.run(session.toggle_like()) is True
    assert session.liked.value is True

    api.like_error = ApiError("Failed to toggle like", status_code=500)
    with pytest.raises(OptimisticUpdateError):
        asyncio.run(session.toggle_like())
    assert session.liked.value is True
    assert api.likes == [True, False]


def test_toggle_like_without_episode_raises():
    session = _session(FakeSessionApi())
    with pytest.raises(RuntimeError, match="Ingen episode"):
        asyncio.run(session.toggle_like())


def test_close_discards_load_still_in_flight():
    api = FakeSessionApi()
    statuses: list[LoadStatus] = []
    session = _session(api, statuses)

    async def scenario():
        api.gates = {"ep-a": asyncio.Event()}
        load = asyncio.create_task(session.open_episode(EPISODE_A))
        await asyncio.sleep(0)
        session.close()
        api.gates["ep-a"].set()
        return await load

    result = asyncio.run(scenario())

    assert result is None
    assert len(session.store) == 0
    assert session.transcript_error is None
    assert api.views == []
    assert statuses == [LoadStatus.LOADING, LoadStatus.GENERATING]

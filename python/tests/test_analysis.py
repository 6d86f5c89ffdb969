import asyncio

from podlearn.analysis import AnalysisPanel, AnalysisRequestController, AnalysisState
from podlearn.api import ApiError
from podlearn.clock import PlaybackClock
from podlearn.media import SimulatedMedia
from podlearn.models import AnalysisResult, TranscriptLine

LINE_A = TranscriptLine(start=0.0, end=2.0, text="첫 문장")
LINE_B = TranscriptLine(start=2.0, end=4.0, text="둘째 문장")


class FakeAnalysisApi:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: dict[str, Exception] = {}

    async def analyze_sentence(self, text: str, *, context: str = "") -> AnalysisResult:
        self.calls.append(text)
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        failure = self.failures.pop(text, None)
        if failure is not None:
            raise failure
        return AnalysisResult(cultural_nuance=f"nuance:{text}")


def _controller(api: FakeAnalysisApi):
    media = SimulatedMedia(60.0)
    clock = PlaybackClock(media)
    panels: list[AnalysisPanel] = []
    controller = AnalysisRequestController(api, clock, listener=panels.append)
    return controller, clock, panels


def test_open_pauses_playback_and_reaches_ready():
    api = FakeAnalysisApi()
    controller, clock, panels = _controller(api)
    clock.play()

    panel = asyncio.run(controller.open(LINE_A))

    assert not clock.is_playing
    assert panel.state is AnalysisState.READY
    assert panel.result is not None and panel.result.cultural_nuance == "nuance:첫 문장"
    assert [p.state for p in panels] == [AnalysisState.PENDING, AnalysisState.READY]


def test_failure_is_surfaced_with_retry_and_no_automatic_retry():
    api = FakeAnalysisApi()
    api.failures[LINE_A.text] = ApiError("Sætningsanalyse fejlede (500)", status_code=500)
    controller, _, _ = _controller(api)

    panel = asyncio.run(controller.open(LINE_A))
    assert panel.state is AnalysisState.FAILED
    assert panel.can_retry
    assert "500" in (panel.error or "")
    assert api.calls == [LINE_A.text]

    panel = asyncio.run(controller.retry())
    assert panel.state is AnalysisState.READY
    assert api.calls == [LINE_A.text, LINE_A.text]


def test_retry_is_noop_unless_failed():
    api = FakeAnalysisApi()
    controller, _, _ = _controller(api)
    panel = asyncio.run(controller.retry())
    assert panel.state is AnalysisState.IDLE
    assert api.calls == []


def test_out_of_order_responses_are_dropped():
    api = FakeAnalysisApi()
    controller, _, panels = _controller(api)

    async def scenario() -> None:
        api.gates[LINE_A.text] = asyncio.Event()
        api.gates[LINE_B.text] = asyncio.Event()
        first = asyncio.create_task(controller.open(LINE_A))
        await asyncio.sleep(0)
        second = asyncio.create_task(controller.open(LINE_B))
        await asyncio.sleep(0)

        api.gates[LINE_B.text].set()
        await second
        api.gates[LINE_A.text].set()
        await first

    asyncio.run(scenario())

    assert controller.state is AnalysisState.READY
    assert controller.panel.line == LINE_B
    assert controller.panel.result is not None
    assert controller.panel.result.cultural_nuance == "nuance:둘째 문장"
    assert all(p.line != LINE_A for p in panels if p.state is AnalysisState.READY)


def test_close_discards_in_flight_response():
    api = FakeAnalysisApi()
    controller, _, _ = _controller(api)

    async def scenario() -> None:
        api.gates[LINE_A.text] = asyncio.Event()
        task = asyncio.create_task(controller.open(LINE_A))
        await asyncio.sleep(0)
        assert controller.state is AnalysisState.PENDING

        controller.close()
        assert controller.state is AnalysisState.IDLE

        api.gates[LINE_A.text].set()
        await task

    asyncio.run(scenario())
    assert controller.state is AnalysisState.IDLE
    assert controller.panel.result is None


def test_close_from_ready_returns_to_idle():
    api = FakeAnalysisApi()
    controller, _, panels = _controller(api)
    asyncio.run(controller.open(LINE_A))

    controller.close()
    assert controller.panel == AnalysisPanel()
    assert panels[-1].state is AnalysisState.IDLE

from podlearn.clock import RATE_LADDER, PlaybackClock
from podlearn.media import SimulatedMedia


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_play_and_pause_are_idempotent():
    media = SimulatedMedia(60.0)
    clock = PlaybackClock(media)

    clock.play()
    clock.play()
    assert clock.is_playing
    assert media.play_calls == 1

    clock.pause()
    clock.pause()
    assert not clock.is_playing
    assert media.pause_calls == 1


def test_seek_clamps_and_does_not_resume():
    media = SimulatedMedia(60.0)
    clock = PlaybackClock(media)

    assert clock.seek(-5.0) == 0.0
    assert clock.seek(75.0) == 60.0
    assert media.current_time == 60.0
    assert clock.seek(12.5) == 12.5
    assert clock.position == 12.5
    assert not clock.is_playing


def test_skip_moves_relative_to_position():
    media = SimulatedMedia(30.0)
    clock = PlaybackClock(media)
    clock.seek(5.0)

    assert clock.skip(10.0) == 15.0
    assert clock.skip(-20.0) == 0.0
    assert clock.skip(100.0) == 30.0


def test_cycle_rate_rotates_through_ladder():
    media = SimulatedMedia(60.0)
    clock = PlaybackClock(media)
    assert clock.rate == 1.0

    seen = [clock.set_rate() for _ in range(len(RATE_LADDER))]
    assert seen == [1.25, 1.5, 2.0, 0.5, 0.75, 1.0]
    assert clock.set_rate() == 1.25
    assert media.playback_rate == 1.25


def test_cycle_rate_from_unknown_rate_starts_at_ladder_head():
    media = SimulatedMedia(60.0)
    media.playback_rate = 1.1
    clock = PlaybackClock(media)
    assert clock.cycle_rate() == 0.5


def test_time_update_notifies_listeners_with_position():
    media = SimulatedMedia(60.0)
    clock = PlaybackClock(media)
    media.on_time_update = clock.on_time_update
    seen: list[float] = []
    clock.add_listener(seen.append)

    clock.play()
    media.advance(0.25)
    media.advance(0.25)
    clock.remove_listener(seen.append)
    media.advance(0.25)

    assert seen == [0.25, 0.5]
    assert clock.position == 0.75


def test_estimate_position_extrapolates_while_playing():
    media = SimulatedMedia(60.0)
    monotonic = FakeMonotonic()
    clock = PlaybackClock(media, monotonic=monotonic)
    media.on_time_update = clock.on_time_update
    media.playback_rate = 2.0

    clock.play()
    media.advance(1.0)
    assert clock.position == 2.0

    monotonic.now += 0.1
    assert abs(clock.estimate_position() - 2.2) < 1e-9

    clock.pause()
    monotonic.now += 5.0
    assert clock.estimate_position() == 2.0

# pylint: disable=missing-module-docstring,missing-function-docstring

import random
import time

import pytest

from sixelsync.errors import AudioStartTimeout, DecodeFailure, DecodeTimeout
from sixelsync.playback.clock import SystemClock
from sixelsync.playback.player import PlaybackState
from fakes import (
    BlockingSource,
    BrokenPositionAudio,
    FakeAudio,
    FakeClock,
    InstantSource,
    RecordingSink,
    make_loop,
    small_config,
)


# ---------------------------------------------------------------------
# Normal playback
# ---------------------------------------------------------------------

def test_plays_every_frame_in_order():
    loop = make_loop(small_config(end_frame=40, prefetch_frames=6))

    loop.run()

    assert loop.sink.frames == [f"frame-{n}" for n in range(1, 41)]
    assert loop.displayed == 40
    assert loop.last_frame == 40
    assert loop.state is PlaybackState.TERMINATED


def test_order_holds_when_decodes_finish_out_of_order():
    rng = random.Random(7)
    delays = {n: rng.uniform(0, 0.004) for n in range(1, 31)}

    class JitterSource(InstantSource):
        def load(self, frame_index):
            time.sleep(delays[frame_index])
            return super().load(frame_index)

    source = JitterSource()
    loop = make_loop(small_config(end_frame=30, prefetch_frames=8), source=source)

    loop.run()

    assert loop.sink.frames == [f"frame-{n}" for n in range(1, 31)]
    assert all(source.calls[n] == 1 for n in range(1, 31))


def test_instant_decodes_need_no_catch_up():
    clock = FakeClock()
    loop = make_loop(small_config(), clock=clock)

    loop.run()

    assert clock.now - loop.start_time == pytest.approx(4 / 30)
    assert loop.pacer.stats.catchup_frames == 0
    assert loop.sink.events[0] == "hide_cursor"
    assert loop.sink.events[-1] == "show_cursor"


def test_real_clock_run_takes_about_one_interval_per_frame():
    loop = make_loop(small_config(), clock=SystemClock(), audio=FakeAudio())

    started = time.perf_counter()
    loop.run()
    elapsed = time.perf_counter() - started

    assert 3.5 / 30 <= elapsed < 1.0
    assert loop.displayed == 5


def test_slow_frame_is_recovered_without_reordering():
    clock = FakeClock()
    interval = 1 / 30

    def on_frame(payload):
        # Rendering frame 2 stalls long enough to delay frame 3 by 3 intervals
        if payload == "frame-2":
            clock.advance(3 * interval)

    loop = make_loop(small_config(end_frame=10), clock=clock,
                     sink=RecordingSink(on_frame=on_frame))

    loop.run()

    assert loop.sink.frames == [f"frame-{n}" for n in range(1, 11)]
    assert loop.pacer.stats.catchup_frames >= 1
    assert loop.pacer.stats.max_frame_lag > 0.5
    assert loop.pacer.last_frame_lag <= 0.5


# ---------------------------------------------------------------------
# Audio anchoring and state machine
# ---------------------------------------------------------------------

def test_timeline_anchors_to_started_notification():
    clock = FakeClock(now=10.0)
    audio = FakeAudio(clock, start_latency=0.25, return_latency=0.5)
    loop = make_loop(small_config(), clock=clock, audio=audio)

    loop.run()

    assert loop.start_time == pytest.approx(10.25)
    assert loop.start_time == audio.started_at


def test_warmup_happens_before_audio_starts():
    seen = []
    clock = FakeClock()
    audio = FakeAudio(clock, on_play=lambda: seen.append(
        (loop.state, sorted(loop.store.pending())[:2])))
    loop = make_loop(small_config(), clock=clock, audio=audio)

    assert loop.state is PlaybackState.IDLE
    loop.run()

    assert seen == [(PlaybackState.WARMING, [1, 2])]


def test_waits_for_audio_end_then_closes_audio():
    audio = FakeAudio(FakeClock())
    loop = make_loop(small_config(), clock=audio.clock, audio=audio)

    loop.run()

    assert audio.waited_for_end
    assert audio.closed == 1


def test_can_skip_waiting_for_audio_end():
    audio = FakeAudio(FakeClock())
    loop = make_loop(small_config(wait_for_audio_end=False), clock=audio.clock, audio=audio)

    loop.run()

    assert not audio.waited_for_end


def test_audio_that_never_starts_times_out():
    clock = FakeClock()
    audio = FakeAudio(clock, emit_started=False)
    loop = make_loop(small_config(audio_start_timeout=0.05), clock=clock, audio=audio)

    with pytest.raises(AudioStartTimeout):
        loop.run()

    assert loop.sink.frames == []
    assert loop.sink.events == ["show_cursor"]
    assert loop.state is PlaybackState.TERMINATED


# ---------------------------------------------------------------------
# Failure
# ---------------------------------------------------------------------

def test_decode_failure_stops_playback_and_restores_cursor():
    source = InstantSource(failures={10: DecodeFailure(10, "corrupt")})
    audio = FakeAudio(FakeClock())
    loop = make_loop(small_config(end_frame=20, prefetch_frames=3),
                     source=source, clock=audio.clock, audio=audio)

    with pytest.raises(DecodeFailure) as info:
        loop.run()

    assert info.value.frame_index == 10
    assert loop.sink.frames == [f"frame-{n}" for n in range(1, 10)]
    assert loop.sink.events[-1] == "show_cursor"
    assert loop.store.is_consumed(10)
    assert not loop.store.is_consumed(11)
    assert audio.closed == 1
    assert loop.state is PlaybackState.TERMINATED


def test_warmup_failure_never_starts_audio():
    source = InstantSource(failures={1: DecodeFailure(1, "corrupt")})
    audio = FakeAudio(FakeClock())
    loop = make_loop(small_config(), source=source, clock=audio.clock, audio=audio)

    with pytest.raises(DecodeFailure):
        loop.run()

    assert not audio.played
    assert loop.sink.events == ["show_cursor"]


def test_stuck_decode_times_out_and_restores_cursor():
    class StuckAfterTwo(BlockingSource):
        def load(self, frame_index):
            if frame_index <= 2:
                return InstantSource.load(self, frame_index)
            return super().load(frame_index)

    source = StuckAfterTwo()
    audio = FakeAudio(FakeClock())
    loop = make_loop(small_config(decode_timeout=0.05), source=source,
                     clock=audio.clock, audio=audio)

    try:
        with pytest.raises(DecodeTimeout) as info:
            loop.run()
    finally:
        source.release()

    assert info.value.frame_index == 3
    assert loop.sink.frames == ["frame-1", "frame-2"]
    assert loop.sink.events[-1] == "show_cursor"
    assert audio.closed == 1
    assert loop.state is PlaybackState.TERMINATED


def test_failing_stats_report_keeps_original_error(capsys):
    source = InstantSource(failures={3: DecodeFailure(3, "corrupt")})
    audio = BrokenPositionAudio(FakeClock())
    loop = make_loop(small_config(), source=source, clock=audio.clock, audio=audio)

    with pytest.raises(DecodeFailure) as info:
        loop.run()

    assert info.value.frame_index == 3
    assert "stream already released" in capsys.readouterr().err

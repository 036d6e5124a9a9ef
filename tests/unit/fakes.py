# pylint: disable=missing-module-docstring,missing-function-docstring

import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from sixelsync.config import PlaybackConfig
from sixelsync.playback.audio_player import ENDED, STARTED
from sixelsync.playback.frame_store import FrameStore
from sixelsync.playback.player import PlaybackLoop


class FakeClock:
    """Clock whose sleep advances time instantly."""

    def __init__(self, now: float = 100.0):
        self.now = now
        self.sleeps: List[float] = []

    def get_time(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        assert seconds >= 0, f"negative sleep {seconds}"
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float):
        self.now += seconds


class InstantSource:
    """Returns ``frame-<n>`` immediately; optional failures per index."""

    def __init__(self, failures: Optional[Dict[int, Exception]] = None):
        self.failures = failures or {}
        self.calls: Counter = Counter()
        self._lock = threading.Lock()

    def load(self, frame_index: int) -> str:
        with self._lock:
            self.calls[frame_index] += 1
        if frame_index in self.failures:
            raise self.failures[frame_index]
        return f"frame-{frame_index}"


class BlockingSource(InstantSource):
    """Holds every load until ``release()`` is called."""

    def __init__(self, failures: Optional[Dict[int, Exception]] = None):
        super().__init__(failures)
        self.gate = threading.Event()

    def release(self):
        self.gate.set()

    def load(self, frame_index: int) -> str:
        self.gate.wait(timeout=5.0)
        return super().load(frame_index)


class RecordingSink:
    """Output sink that keeps everything written to it."""

    def __init__(self, on_frame: Optional[Callable[[str], None]] = None):
        self.events: List[str] = []
        self.frames: List[str] = []
        self.on_frame = on_frame

    def write(self, text: str):
        self.events.append(text)

    def write_frame(self, payload: str):
        self.frames.append(payload)
        self.events.append("frame")
        if self.on_frame:
            self.on_frame(payload)

    def hide_cursor(self):
        self.events.append("hide_cursor")

    def show_cursor(self):
        self.events.append("show_cursor")


class FakeAudio:
    """
    Audio collaborator with controllable timing.

    ``play()`` advances the clock by ``start_latency`` before emitting
    ``started`` and by ``return_latency`` after it.
    """

    def __init__(
        self,
        clock: Optional[FakeClock] = None,
        start_latency: float = 0.0,
        return_latency: float = 0.0,
        emit_started: bool = True,
        on_play: Optional[Callable[[], None]] = None
    ):
        self.clock = clock
        self.start_latency = start_latency
        self.return_latency = return_latency
        self.emit_started = emit_started
        self.on_play = on_play
        self.listeners: Dict[str, List[Callable[[], None]]] = {STARTED: [], ENDED: []}
        self.played = False
        self.closed = 0
        self.waited_for_end = False
        self.started_at: Optional[float] = None

    def add_listener(self, event: str, callback):
        self.listeners[event].append(callback)

    def play(self):
        self.played = True
        if self.on_play:
            self.on_play()
        if self.clock:
            self.clock.advance(self.start_latency)
        if self.emit_started:
            self.started_at = self.clock.get_time() if self.clock else None
            for callback in self.listeners[STARTED]:
                callback()
        if self.clock:
            self.clock.advance(self.return_latency)

    def wait_ended(self, timeout: Optional[float] = None) -> bool:
        self.waited_for_end = True
        for callback in self.listeners[ENDED]:
            callback()
        return True

    def close(self):
        self.closed += 1


class BrokenPositionAudio(FakeAudio):
    """Audio whose position can no longer be read once closed."""

    def get_position(self) -> float:
        raise RuntimeError("stream already released")


def small_config(**overrides) -> PlaybackConfig:
    values = dict(start_frame=1, end_frame=5, fps=30, prefetch_frames=4,
                  initial_buffer_frames=2)
    values.update(overrides)
    return PlaybackConfig(**values)


def make_loop(config, source=None, clock=None, audio=None, sink=None) -> PlaybackLoop:
    clock = clock or FakeClock()
    executor = ThreadPoolExecutor(max_workers=config.window_size)
    store = FrameStore(
        source or InstantSource(),
        executor,
        config.start_frame,
        config.end_frame,
        decode_timeout=config.decode_timeout
    )
    audio = audio or FakeAudio(clock if isinstance(clock, FakeClock) else None)
    return PlaybackLoop(config, store, audio, sink or RecordingSink(), clock=clock)

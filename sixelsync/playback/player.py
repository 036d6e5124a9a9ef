"""
SixelSync - Playback Loop
==========================
Top-level driver tying frame decode, audio and pacing together.

State machine::

    IDLE -> WARMING -> PLAYING -> TERMINATED

- WARMING: the first frames are decoded ahead of time
- PLAYING: entered when the audio reports it has started; the pacing
  timeline is anchored to that notification
- TERMINATED: after the last frame, or on the first error; the cursor is
  always restored on the way out

Frames are displayed strictly in order. Only their timing is adjusted.
"""

import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Optional, Protocol

from sixelsync.config import PlaybackConfig
from sixelsync.errors import AudioStartTimeout
from sixelsync.frames.source import PngFrameSource
from sixelsync.playback.audio_player import STARTED, AudioPlayer
from sixelsync.playback.clock import Clock, SystemClock
from sixelsync.playback.frame_store import FrameStore
from sixelsync.playback.pacer import Pacer
from sixelsync.playback.prefetch import PrefetchScheduler
from sixelsync.playback.warmup import WarmupController
from sixelsync.terminal import TerminalOutput


class PlaybackState(Enum):
    """Playback state machine."""

    IDLE = "idle"
    WARMING = "warming"
    PLAYING = "playing"
    TERMINATED = "terminated"


class AudioTrack(Protocol):
    """What the loop needs from the audio side."""

    def add_listener(self, event: str, callback) -> None: ...

    def play(self) -> None: ...

    def wait_ended(self, timeout: Optional[float] = None) -> bool: ...

    def close(self) -> None: ...


class PlaybackLoop:
    """
    Plays every frame of the configured range once, in order, paced to
    the audio start.
    """

    def __init__(
        self,
        config: PlaybackConfig,
        store: FrameStore,
        audio: AudioTrack,
        sink: TerminalOutput,
        clock: Optional[Clock] = None
    ):
        """
        Initialize playback loop.

        Args:
            config: Run configuration
            store: Frame store holding the decode tasks
            audio: Audio collaborator emitting ``started``/``ended``
            sink: Terminal output
            clock: Time source for pacing (default: SystemClock)
        """
        self.config = config
        self.store = store
        self.audio = audio
        self.sink = sink
        self.clock = clock or SystemClock()

        self.scheduler = PrefetchScheduler(store, config.prefetch_frames)
        self.warmup = WarmupController(
            store, self.scheduler, config.initial_buffer_frames, clock=self.clock
        )
        self.pacer = Pacer(
            self.clock,
            fps=config.fps,
            start_frame=config.start_frame,
            frame_lag_tolerance=config.frame_lag_tolerance,
            max_catchup_frames=config.max_catchup_frames
        )

        self.state = PlaybackState.IDLE
        self.start_time: Optional[float] = None
        self.displayed = 0
        self.last_frame: Optional[int] = None

    @classmethod
    def from_config(
        cls,
        config: PlaybackConfig,
        sink: Optional[TerminalOutput] = None
    ) -> "PlaybackLoop":
        """Build a loop with the real PNG source, audio player and terminal."""
        executor = ThreadPoolExecutor(
            max_workers=config.window_size,
            thread_name_prefix="FrameDecode"
        )
        store = FrameStore(
            PngFrameSource(config),
            executor,
            config.start_frame,
            config.end_frame,
            decode_timeout=config.decode_timeout
        )
        audio = AudioPlayer()
        try:
            audio.open(str(config.audio_path))
        except BaseException:
            store.close()
            raise
        return cls(config, store, audio, sink or TerminalOutput())

    def run(self):
        """
        Warm up, wait for audio, then play every frame.

        Raises:
            PlaybackError: The first decode, scheduling or audio failure
        """
        try:
            self.state = PlaybackState.WARMING
            self.warmup.run()

            self.start_time = self._start_audio()
            self.state = PlaybackState.PLAYING
            self.pacer.start(self.start_time)

            self.sink.hide_cursor()
            for frame_index in range(self.config.start_frame, self.config.end_frame + 1):
                self.scheduler.ensure_window(frame_index)
                payload = self.store.consume(frame_index)
                self.pacer.step(frame_index)
                self.sink.write_frame(payload)
                self.displayed += 1
                self.last_frame = frame_index

            if self.config.wait_for_audio_end:
                self.audio.wait_ended()
        finally:
            self.sink.show_cursor()
            self.audio.close()
            self.store.close()
            self.state = PlaybackState.TERMINATED
            try:
                self._report()
            except Exception as e:
                print(f"[Player] Could not report stats: {e}", file=sys.stderr)

    def _start_audio(self) -> float:
        """
        Start the audio and return the clock time it reported sound.

        The anchor is taken inside the ``started`` notification itself;
        ``play()`` returning says nothing about audible output.
        """
        started = threading.Event()
        anchor = []

        def on_started():
            if not started.is_set():
                anchor.append(self.clock.get_time())
                started.set()

        self.audio.add_listener(STARTED, on_started)
        self.audio.play()

        if not started.wait(self.config.audio_start_timeout):
            raise AudioStartTimeout(self.config.audio_start_timeout)
        return anchor[0]

    def _report(self):
        stats = self.pacer.stats
        print(
            f"[Player] Displayed {self.displayed}/{self.config.total_frames} frames | "
            f"slept: {stats.slept_frames} | behind: {stats.behind_frames} | "
            f"catch-up: {stats.catchup_frames} | max lag: {stats.max_frame_lag:.2f} frames",
            file=sys.stderr
        )
        if self.displayed and hasattr(self.audio, 'get_position'):
            video_time = self.displayed * self.config.frame_interval
            drift = self.audio.get_position() - video_time
            print(f"[Player] A/V drift at end: {drift * 1000:+.0f}ms", file=sys.stderr)

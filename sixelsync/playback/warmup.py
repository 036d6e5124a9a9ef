"""
SixelSync - Warmup
===================
Builds a startup cushion before the playback clock starts.

The first frames have no catch-up history to absorb decode jitter, so
playback is held until a run of them is fully decoded.
"""

import sys
from typing import Optional

from sixelsync.playback.clock import Clock, SystemClock
from sixelsync.playback.frame_store import FrameStore
from sixelsync.playback.prefetch import PrefetchScheduler


class WarmupController:
    """Pre-decodes the first ``initial_buffer_frames`` frames."""

    def __init__(
        self,
        store: FrameStore,
        scheduler: PrefetchScheduler,
        initial_buffer_frames: int,
        clock: Optional[Clock] = None
    ):
        self.store = store
        self.scheduler = scheduler
        self.initial_buffer_frames = initial_buffer_frames
        self.clock = clock or SystemClock()
        self.elapsed: Optional[float] = None

    def buffer_range(self) -> range:
        """Frames that must be decoded before playback may start."""
        start = self.store.start_frame
        end = min(self.store.end_frame, start + self.initial_buffer_frames - 1)
        return range(start, end + 1)

    def run(self) -> int:
        """
        Schedule the first window and block until the buffer is decoded.

        Frames are waited on, not consumed: the player still takes them
        through the store as usual.

        Returns:
            Number of frames buffered

        Raises:
            SchedulingViolation: If a buffer frame was not scheduled
            PlaybackError: Any decode error of a buffer frame
        """
        started = self.clock.get_time()
        self.scheduler.ensure_window(self.store.start_frame)

        frames = self.buffer_range()
        for frame_index in frames:
            self.store.wait(frame_index)

        self.elapsed = self.clock.get_time() - started
        print(
            f"[Warmup] Buffered {len(frames)} frames in {self.elapsed:.2f}s "
            f"({len(self.store)} scheduled)",
            file=sys.stderr
        )
        return len(frames)

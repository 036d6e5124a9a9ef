"""
SixelSync - Frame Pacer
========================
Wall-clock frame pacing with bounded catch-up.

Responsibilities:
- Sleep until each frame's target time
- Measure how far playback has fallen behind elapsed time
- Pull the next target earlier, by a capped amount, to recover

This module does NOT decode, schedule, or display frames.

Fixed-interval sleeping drifts whenever one frame takes longer than the
interval. Instead every frame re-anchors to the absolute time since the
audio started, and the correction per frame is capped at
``max_catchup_frames`` intervals so recovery is gradual.
"""

from dataclasses import dataclass
from typing import Optional

from sixelsync.errors import SchedulingViolation
from sixelsync.playback.clock import Clock


@dataclass
class Timeline:
    """Per-run pacing state, anchored to the audio start."""
    start_time: float
    next_target: Optional[float] = None


@dataclass
class PacerStats:
    """Statistics for the frame pacer."""
    paced_frames: int = 0
    slept_frames: int = 0
    behind_frames: int = 0       # target already passed, no sleep
    catchup_frames: int = 0      # frames whose successor was pulled earlier
    total_sleep: float = 0.0
    max_frame_lag: float = 0.0


class Pacer:
    """
    Computes per-frame sleeps and next-frame targets.

    Usage::

        pacer.start(start_time)
        for frame in frames:
            pacer.step(frame)   # sleeps as needed
            display(frame)
    """

    def __init__(
        self,
        clock: Clock,
        fps: float,
        start_frame: int,
        frame_lag_tolerance: float = 0.5,
        max_catchup_frames: float = 2.0
    ):
        """
        Initialize pacer.

        Args:
            clock: Time source (also performs the sleeps)
            fps: Target frame rate
            start_frame: Index of the first displayed frame
            frame_lag_tolerance: Lag, in frames, ignored before catching up
            max_catchup_frames: Largest correction, in frames, per step
        """
        self.clock = clock
        self.frame_interval = 1.0 / fps
        self.start_frame = start_frame
        self.frame_lag_tolerance = frame_lag_tolerance
        self.max_catchup_frames = max_catchup_frames

        self.timeline: Optional[Timeline] = None
        self.stats = PacerStats()

        self.last_sleep = 0.0
        self.last_frame_lag = 0.0
        self.last_catch_up = 0.0

    def start(self, start_time: float):
        """Begin a new run anchored at ``start_time`` (clock seconds)."""
        self.timeline = Timeline(start_time=start_time)
        self.stats = PacerStats()
        self.last_sleep = 0.0
        self.last_frame_lag = 0.0
        self.last_catch_up = 0.0

    def catch_up_for(self, frame_lag: float) -> float:
        """Seconds to pull the next target earlier for a given lag."""
        if frame_lag <= self.frame_lag_tolerance:
            return 0.0
        frames = min(frame_lag - self.frame_lag_tolerance, self.max_catchup_frames)
        return frames * self.frame_interval

    def step(self, frame_index: int) -> float:
        """
        Wait for ``frame_index``'s slot and plan the next one.

        Returns:
            Seconds slept (never negative)

        Raises:
            SchedulingViolation: If called before ``start()``
        """
        timeline = self.timeline
        if timeline is None:
            raise SchedulingViolation("Pacer.step() called before start()")

        slept = 0.0
        if timeline.next_target is not None:
            lead = timeline.next_target - self.clock.get_time()
            if lead > 0:
                self.clock.sleep(lead)
                slept = lead
            else:
                self.stats.behind_frames += 1

        now = self.clock.get_time()
        rendered = frame_index - self.start_frame + 1
        expected = (now - timeline.start_time) / self.frame_interval
        frame_lag = expected - rendered
        catch_up = self.catch_up_for(frame_lag)

        timeline.next_target = timeline.start_time + rendered * self.frame_interval - catch_up

        self.last_sleep = slept
        self.last_frame_lag = frame_lag
        self.last_catch_up = catch_up

        self.stats.paced_frames += 1
        if slept > 0:
            self.stats.slept_frames += 1
            self.stats.total_sleep += slept
        if catch_up > 0:
            self.stats.catchup_frames += 1
        self.stats.max_frame_lag = max(self.stats.max_frame_lag, frame_lag)

        return slept

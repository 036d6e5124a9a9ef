"""
SixelSync - Frame Store
========================
Owns every in-flight or completed frame decode until the player takes it.

Responsibilities:
- Start at most one decode per frame index (get-or-create)
- Hand each decoded payload out exactly once, then forget it
- Surface decode errors to the consumer of that frame

Decodes run on an executor; the store never waits on one except inside
``wait()`` and ``consume()``.
"""

from concurrent.futures import Executor, Future, TimeoutError as FutureTimeout
from threading import Lock
from typing import Dict, List, Optional, Set

from sixelsync.errors import (
    DecodeFailure,
    DecodeTimeout,
    PlaybackError,
    SchedulingViolation,
)
from sixelsync.frames.source import FrameSource


class FrameStore:
    """
    Map from frame index to its decode task.

    The map is touched by the scheduler (insert) and the consumer
    (remove) from the same thread in normal playback, but it is still
    guarded so decodes may be scheduled from anywhere.
    """

    def __init__(
        self,
        source: FrameSource,
        executor: Executor,
        start_frame: int,
        end_frame: int,
        decode_timeout: Optional[float] = None
    ):
        """
        Initialize frame store.

        Args:
            source: Frame source that performs the actual decode
            executor: Executor the decodes run on
            start_frame: First valid frame index
            end_frame: Last valid frame index (inclusive)
            decode_timeout: Max seconds to wait for one frame (None = forever)
        """
        self.source = source
        self.executor = executor
        self.start_frame = start_frame
        self.end_frame = end_frame
        self.decode_timeout = decode_timeout

        self._tasks: Dict[int, Future] = {}
        self._consumed: Set[int] = set()
        self._lock = Lock()

        self.scheduled_count = 0
        self.consumed_count = 0

    def in_range(self, frame_index: int) -> bool:
        return self.start_frame <= frame_index <= self.end_frame

    def schedule(self, frame_index: int) -> bool:
        """
        Start decoding ``frame_index`` unless it is already known.

        Out-of-range, already-scheduled and already-consumed indices are
        ignored.

        Returns:
            True if a new decode task was created
        """
        if not self.in_range(frame_index):
            return False

        with self._lock:
            if frame_index in self._tasks or frame_index in self._consumed:
                return False
            self._tasks[frame_index] = self.executor.submit(self.source.load, frame_index)
            self.scheduled_count += 1
        return True

    def consume(self, frame_index: int) -> str:
        """
        Wait for a frame's payload and remove it from the store.

        Schedules the frame first if nobody has yet. The entry is removed
        whether the decode succeeded or not.

        Returns:
            The frame payload

        Raises:
            SchedulingViolation: If the frame was already consumed or is
                                 outside the frame range
            SourceUnavailable, DecodeFailure: From the decode itself
            DecodeTimeout: If ``decode_timeout`` elapsed first
        """
        with self._lock:
            if frame_index in self._consumed:
                raise SchedulingViolation(f"Frame {frame_index} was already consumed")
            task = self._tasks.get(frame_index)

        if task is None:
            self.schedule(frame_index)
            with self._lock:
                task = self._tasks.get(frame_index)
            if task is None:
                raise SchedulingViolation(f"Frame {frame_index} could not be scheduled")

        try:
            return self._result(frame_index, task)
        finally:
            with self._lock:
                self._tasks.pop(frame_index, None)
                self._consumed.add(frame_index)
                self.consumed_count += 1

    def wait(self, frame_index: int) -> str:
        """
        Wait for a scheduled frame without consuming it.

        Raises:
            SchedulingViolation: If nothing is scheduled for ``frame_index``
        """
        with self._lock:
            task = self._tasks.get(frame_index)
        if task is None:
            raise SchedulingViolation(f"Frame {frame_index} was not scheduled")
        return self._result(frame_index, task)

    def _result(self, frame_index: int, task: Future) -> str:
        try:
            return task.result(timeout=self.decode_timeout)
        except FutureTimeout as e:
            raise DecodeTimeout(frame_index, self.decode_timeout) from e
        except PlaybackError:
            raise
        except Exception as e:
            raise DecodeFailure(frame_index, f"{type(e).__name__}: {e}") from e

    def pending(self) -> List[int]:
        """Indices with a registered, unconsumed task, in order."""
        with self._lock:
            return sorted(self._tasks)

    def is_consumed(self, frame_index: int) -> bool:
        with self._lock:
            return frame_index in self._consumed

    def __contains__(self, frame_index: int) -> bool:
        with self._lock:
            return frame_index in self._tasks

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def close(self):
        """
        Stop accepting decodes and drop the ones not yet started.

        Decodes already running are left to finish on their own.
        """
        self.executor.shutdown(wait=False, cancel_futures=True)

"""
SixelSync - Prefetch Scheduler
===============================
Keeps a sliding window of upcoming frames scheduled for decode.

The window for anchor ``a`` is ``[a, min(end_frame, a + prefetch_frames)]``.
Because the player calls ``ensure_window`` once per frame, the window
slides forward one frame at a time and its width is the upper bound on
concurrent decodes.
"""

from sixelsync.playback.frame_store import FrameStore


class PrefetchScheduler:
    """Schedules the frame window ahead of the playback position."""

    def __init__(self, store: FrameStore, prefetch_frames: int):
        """
        Args:
            store: Frame store to schedule decodes in
            prefetch_frames: Lookahead past the anchor frame
        """
        self.store = store
        self.prefetch_frames = prefetch_frames

    def window(self, anchor: int) -> range:
        """Frame indices that should be scheduled for ``anchor``."""
        start = max(anchor, self.store.start_frame)
        stop = min(self.store.end_frame, start + self.prefetch_frames)
        return range(start, stop + 1)

    def ensure_window(self, anchor: int) -> int:
        """
        Schedule every frame of the window not already known to the store.

        Never cancels or removes anything, so frames behind the new anchor
        that are still unconsumed stay scheduled.

        Returns:
            Number of decode tasks created
        """
        created = 0
        for frame_index in self.window(anchor):
            if self.store.schedule(frame_index):
                created += 1
        return created

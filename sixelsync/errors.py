"""
SixelSync - Error Taxonomy
===========================
Every error here is fatal to a playback run: there is no retry and no
skip-and-continue, because a missing frame has no degraded rendering.
"""

from typing import Optional


class PlaybackError(Exception):
    """Base class for all playback failures."""


class SourceUnavailable(PlaybackError):
    """A frame asset is missing or unreadable."""

    def __init__(self, frame_index: int, path: Optional[str] = None, reason: str = ""):
        self.frame_index = frame_index
        self.path = path
        message = f"Frame {frame_index} unavailable"
        if path:
            message += f": {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DecodeFailure(PlaybackError):
    """A frame could not be decoded or encoded for the terminal."""

    def __init__(self, frame_index: int, reason: str = ""):
        self.frame_index = frame_index
        message = f"Frame {frame_index} failed to decode"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DecodeTimeout(DecodeFailure):
    """A decode did not finish within the configured timeout."""

    def __init__(self, frame_index: int, timeout: float):
        self.timeout = timeout
        super().__init__(frame_index, f"no result after {timeout:.2f}s")


class SchedulingViolation(PlaybackError):
    """An internal scheduling invariant was broken (e.g. double consumption)."""


class AudioStartTimeout(PlaybackError):
    """The audio track never reported that playback started."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Audio did not start within {timeout:.2f}s")

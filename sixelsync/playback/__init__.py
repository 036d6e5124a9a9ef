"""SixelSync - Frame Scheduling and Pacing"""

from .clock import Clock, SystemClock
from .frame_store import FrameStore
from .prefetch import PrefetchScheduler
from .warmup import WarmupController
from .pacer import Pacer, PacerStats, Timeline
from .audio_player import AudioPlayer
from .player import PlaybackLoop, PlaybackState

__all__ = [
    'Clock',
    'SystemClock',
    'FrameStore',
    'PrefetchScheduler',
    'WarmupController',
    'Pacer',
    'PacerStats',
    'Timeline',
    'AudioPlayer',
    'PlaybackLoop',
    'PlaybackState',
]

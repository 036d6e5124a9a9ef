"""SixelSync - Audio-synchronised sixel playback"""

from .config import PlaybackConfig
from .errors import (
    PlaybackError,
    SourceUnavailable,
    DecodeFailure,
    DecodeTimeout,
    SchedulingViolation,
    AudioStartTimeout
)

__all__ = [
    'PlaybackConfig',
    'PlaybackError',
    'SourceUnavailable',
    'DecodeFailure',
    'DecodeTimeout',
    'SchedulingViolation',
    'AudioStartTimeout',
]
__version__ = '1.0.0'

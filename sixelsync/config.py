"""
SixelSync - Playback Configuration
===================================
All constants for one playback run, gathered in a single dataclass.

The defaults reproduce the reference setup: 6570 PNG frames named
``output_0001.png`` .. ``output_6570.png`` under ``frames/``, played at
30 fps against ``bgm.aac``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

RGB = Tuple[int, int, int]

DEFAULT_FPS = 30


@dataclass
class PlaybackConfig:
    """Configuration for a single playback run."""

    # Frame sequence
    frames_dir: Path = Path("frames")
    frame_prefix: str = "output_"
    frame_suffix: str = ".png"
    frame_number_width: int = 4     # output_0001.png
    start_frame: int = 1
    end_frame: int = 6570

    # Audio track
    audio_path: Path = Path("bgm.aac")
    audio_start_timeout: Optional[float] = None   # None = wait forever
    wait_for_audio_end: bool = True

    # Timing
    fps: float = DEFAULT_FPS
    frame_lag_tolerance: float = 0.5   # in frame intervals
    max_catchup_frames: float = 2.0    # max correction applied per frame

    # Prefetch
    prefetch_frames: int = DEFAULT_FPS * 3
    initial_buffer_frames: int = DEFAULT_FPS
    decode_timeout: Optional[float] = None        # None = unbounded wait

    # Sixel palette (index 0 is the background colour)
    palette: Tuple[RGB, ...] = field(default=((0, 0, 0), (255, 255, 255)))

    def __post_init__(self):
        self.frames_dir = Path(self.frames_dir)
        self.audio_path = Path(self.audio_path)

        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.start_frame < 0:
            raise ValueError(f"start_frame must be >= 0, got {self.start_frame}")
        if self.end_frame < self.start_frame:
            raise ValueError(
                f"end_frame ({self.end_frame}) is before start_frame ({self.start_frame})"
            )
        if self.prefetch_frames < 0:
            raise ValueError(f"prefetch_frames must be >= 0, got {self.prefetch_frames}")
        if self.initial_buffer_frames < 0:
            raise ValueError(
                f"initial_buffer_frames must be >= 0, got {self.initial_buffer_frames}"
            )
        if self.initial_buffer_frames > self.prefetch_frames + 1:
            raise ValueError("initial_buffer_frames must fit inside the prefetch window")
        if self.frame_lag_tolerance < 0:
            raise ValueError("frame_lag_tolerance must be >= 0")
        if self.max_catchup_frames < 0:
            raise ValueError("max_catchup_frames must be >= 0")
        for name in ("decode_timeout", "audio_start_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive or None, got {value}")
        if len(self.palette) < 2:
            raise ValueError("palette needs at least two colours")

    @property
    def frame_interval(self) -> float:
        """Seconds between two frames."""
        return 1.0 / self.fps

    @property
    def window_size(self) -> int:
        """Number of frames a full prefetch window covers."""
        return self.prefetch_frames + 1

    @property
    def total_frames(self) -> int:
        return self.end_frame - self.start_frame + 1

    def frame_path(self, frame_index: int) -> Path:
        """Path of the image file for ``frame_index``."""
        number = str(frame_index).zfill(self.frame_number_width)
        return self.frames_dir / f"{self.frame_prefix}{number}{self.frame_suffix}"

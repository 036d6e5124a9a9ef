"""
SixelSync - Frame Sources
==========================
Turn a frame index into a display-ready sixel payload.

Responsibilities:
- Locate the image file for a frame
- Decode it (Pillow) and flatten it to RGB
- Encode it for the terminal

This module does NOT schedule, cache, or pace frames.
"""

from pathlib import Path
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from sixelsync.config import PlaybackConfig
from sixelsync.errors import DecodeFailure, SourceUnavailable
from sixelsync.frames.sixel import encode_image


class FrameSource(Protocol):
    """
    Produces the payload for one frame.

    Implementations must be safe to call concurrently for distinct
    indices: the frame store runs many loads on worker threads at once.
    """

    def load(self, frame_index: int) -> str:
        """
        Decode and encode one frame.

        Raises:
            SourceUnavailable: If the asset is missing or unreadable
            DecodeFailure: If the asset is malformed or cannot be encoded
        """
        ...


class PngFrameSource:
    """
    Loads numbered image files from a directory and sixel-encodes them.

    The file for frame 7 with the default naming is ``output_0007.png``.
    """

    def __init__(
        self,
        config: PlaybackConfig,
        palette: Optional[Sequence[Tuple[int, int, int]]] = None
    ):
        """
        Initialize frame source.

        Args:
            config: Playback configuration (naming scheme and palette)
            palette: Override for ``config.palette``
        """
        self.config = config
        self.palette = tuple(palette) if palette is not None else tuple(config.palette)

    def path_for(self, frame_index: int) -> Path:
        return self.config.frame_path(frame_index)

    def read_pixels(self, frame_index: int) -> np.ndarray:
        """
        Read a frame as an (H, W, 3) uint8 RGB array.

        Any alpha channel is dropped, not composited.
        """
        path = self.path_for(frame_index)
        try:
            with Image.open(path) as image:
                image.load()
                rgb = image.convert("RGB")
        except FileNotFoundError as e:
            raise SourceUnavailable(frame_index, str(path), "file not found") from e
        except UnidentifiedImageError as e:
            raise DecodeFailure(frame_index, f"not a readable image: {e}") from e
        except (PermissionError, IsADirectoryError) as e:
            raise SourceUnavailable(frame_index, str(path), str(e)) from e
        except OSError as e:
            # Pillow reports truncated/corrupt data as OSError
            raise DecodeFailure(frame_index, str(e)) from e

        return np.asarray(rgb, dtype=np.uint8)

    def load(self, frame_index: int) -> str:
        pixels = self.read_pixels(frame_index)
        try:
            return encode_image(pixels, self.palette)
        except ValueError as e:
            raise DecodeFailure(frame_index, f"sixel encode failed: {e}") from e

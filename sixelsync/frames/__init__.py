"""SixelSync - Frame Decoding"""

from .source import FrameSource, PngFrameSource
from .sixel import encode_image, introducer, FINALIZER

__all__ = [
    'FrameSource',
    'PngFrameSource',
    'encode_image',
    'introducer',
    'FINALIZER',
]

"""
SixelSync - Sixel Encoder
==========================
Converts an RGB image into a DEC sixel string that a compatible terminal
draws in place.

A sixel is one character encoding a 1x6 pixel column: the image is cut
into horizontal bands six rows tall, and each band is written once per
palette colour as a run of characters whose low six bits select the rows
painted in that colour.

Output layout::

    ESC P 0;1;q              introducer (P2=1: unset pixels stay transparent)
    "1;1;W;H                 raster attributes
    #0;2;r;g;b ...           palette (RGB percentages)
    #c <sixels> $ ...        one pass per colour present in the band
    -                        next band
    ESC \\                   string terminator
"""

from typing import Sequence, Tuple

import numpy as np

ESC = "\033"
FINALIZER = f"{ESC}\\"

# Runs shorter than this are cheaper written out than as "!<count><char>"
_MIN_RLE_RUN = 4
_SIXEL_OFFSET = 63
_BAND_HEIGHT = 6


def introducer(background_select: int = 1) -> str:
    """
    Device Control String that opens a sixel image.

    Args:
        background_select: 0/2 paint unset pixels with colour 0,
                           1 leaves them untouched (transparent)
    """
    return f"{ESC}P0;{background_select};q"


def quantize(pixels: np.ndarray, palette: Sequence[Tuple[int, int, int]]) -> np.ndarray:
    """
    Map every pixel to its nearest palette colour.

    Args:
        pixels: (H, W, 3) uint8 RGB array
        palette: RGB triples, 0-255

    Returns:
        (H, W) array of palette indices
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected (H, W, 3) RGB pixels, got shape {pixels.shape}")

    rgb = pixels.astype(np.int32)
    nearest = np.zeros(pixels.shape[:2], dtype=np.uint8)
    best = None
    # Running minimum over colours; only (H, W) planes are held
    for index, color in enumerate(np.asarray(palette, dtype=np.int32)):
        diff = rgb - color
        distance = np.einsum("hwk,hwk->hw", diff, diff)
        if best is None:
            best = distance
            continue
        # Strict comparison: ties go to the lower index
        nearest[distance < best] = index
        np.minimum(best, distance, out=best)
    return nearest


def _run_length(chars: np.ndarray) -> str:
    """
    Run-length encode one pass of sixel character codes.

    Args:
        chars: uint8 array of sixel characters

    Returns:
        The pass as text, with long runs written as ``!<count><char>``
    """
    data = chars.tobytes()
    bounds = np.concatenate(([0], np.flatnonzero(np.diff(chars)) + 1, [len(data)]))
    starts = bounds[:-1]
    counts = np.diff(bounds)

    out = []
    pos = 0
    for run in np.flatnonzero(counts >= _MIN_RLE_RUN).tolist():
        start, count = int(starts[run]), int(counts[run])
        out.append(data[pos:start])
        out.append(b"!%d%c" % (count, data[start]))
        pos = start + count
    out.append(data[pos:])
    return b"".join(out).decode("ascii")


def _palette_definitions(palette: Sequence[Tuple[int, int, int]]) -> str:
    defs = []
    for index, (r, g, b) in enumerate(palette):
        # Sixel colour components are percentages
        defs.append(f"#{index};2;{r * 100 // 255};{g * 100 // 255};{b * 100 // 255}")
    return "".join(defs)


def encode_indexed(indices: np.ndarray, palette: Sequence[Tuple[int, int, int]]) -> str:
    """
    Encode an (H, W) array of palette indices as sixel body data.

    Returns raster attributes, palette and bands, without the
    introducer and finalizer.
    """
    height, width = indices.shape
    parts = [f'"1;1;{width};{height}', _palette_definitions(palette)]

    # Pad to a whole number of bands; padding rows never get painted
    pad = (-height) % _BAND_HEIGHT
    padded = np.full((height + pad, width), -1, dtype=np.int16)
    padded[:height] = indices
    bands = padded.reshape(-1, _BAND_HEIGHT, width)
    weights = (1 << np.arange(_BAND_HEIGHT, dtype=np.uint8))[None, :, None]

    # (bands, width) sixel codes and per-band presence, for each colour
    codes = []
    present = []
    for color in range(len(palette)):
        hit = bands == color
        codes.append(((hit * weights).sum(axis=1) + _SIXEL_OFFSET).astype(np.uint8))
        present.append(hit.any(axis=(1, 2)))

    out = []
    for band in range(len(bands)):
        passes = [
            f"#{color}{_run_length(codes[color][band])}"
            for color in range(len(palette))
            if present[color][band]
        ]
        out.append("$".join(passes))
    parts.append("-".join(out))
    return "".join(parts)


def encode_image(
    pixels: np.ndarray,
    palette: Sequence[Tuple[int, int, int]],
    background_select: int = 1
) -> str:
    """
    Encode an RGB image into a complete, ready-to-write sixel payload.

    Args:
        pixels: (H, W, 3) uint8 RGB array
        palette: RGB colours to quantise to
        background_select: Sixel P2 parameter (see ``introducer``)

    Returns:
        Introducer + body + finalizer as one string
    """
    body = encode_indexed(quantize(pixels, palette), palette)
    return f"{introducer(background_select)}{body}{FINALIZER}"

"""Grayscale image encoding for rendered pixel buffers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
import PIL.Image

DEFAULT_FORMAT = "png"


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def image_format_for(path: Path, image_format: Optional[str] = None) -> str:
    """Pick the file format: explicit ``image_format`` first, then the suffix, then PNG."""

    fmt = (image_format or path.suffix or DEFAULT_FORMAT).lower().lstrip(".")
    return fmt or DEFAULT_FORMAT


def to_image(pixels, bounds: tuple[int, int]) -> PIL.Image.Image:
    """Wrap a flat buffer of one gray byte per pixel as an 8-bit grayscale image."""

    width, height = bounds
    data = np.frombuffer(pixels, dtype=np.uint8)
    if data.size != width * height:
        raise ValueError(f"pixel buffer holds {data.size} bytes, expected {width}x{height} = {width * height}")
    return PIL.Image.fromarray(data.reshape(height, width))


def write_image(
    filename: Union[str, Path],
    pixels,
    bounds: tuple[int, int],
    image_format: Optional[str] = None,
) -> Path:
    """Write the buffer ``pixels``, whose dimensions are given by ``bounds``, to ``filename``."""

    path = Path(filename)
    image = to_image(pixels, bounds)
    image.save(str(path), format=_pil_format_name(image_format_for(path, image_format)))
    return path

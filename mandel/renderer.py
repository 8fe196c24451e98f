"""Rendering primitives for grayscale Mandelbrot images."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .escape import escape_time
from .plane import PlaneRect, pixel_to_point

ITERATION_LIMIT = 255

BACKENDS = ("serial", "threads", "tensorflow")

# a flat, writable buffer of one byte per pixel
PixelBuffer = Union[bytearray, memoryview, np.ndarray]


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that describe a single render of the Mandelbrot set."""

    bounds: tuple[int, int]
    upper_left: complex
    lower_right: complex

    @property
    def plane(self) -> PlaneRect:
        return PlaneRect(self.upper_left, self.lower_right)

    @property
    def pixel_count(self) -> int:
        return self.bounds[0] * self.bounds[1]


def intensity(count: Optional[int]) -> int:
    """Map an escape count to a gray level; points presumed in the set are black."""

    if count is None:
        return 0
    return ITERATION_LIMIT - count


def _check_buffer(pixels, bounds: tuple[int, int]) -> None:
    expected = bounds[0] * bounds[1]
    if len(pixels) != expected:
        raise ValueError(
            f"pixel buffer holds {len(pixels)} bytes, expected {bounds[0]}x{bounds[1]} = {expected}"
        )


def _byte_view(pixels: PixelBuffer) -> memoryview:
    view = memoryview(pixels)
    if view.itemsize != 1:
        raise ValueError(f"pixel buffer must hold one byte per element, not {view.itemsize}")
    return view.cast("B")


def render_rows(
    pixels: PixelBuffer,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    rows: range,
) -> None:
    """Render the band of ``rows`` into ``pixels``.

    ``pixels`` holds only the band: its first element is column 0 of
    ``rows.start``. Points are mapped against the full ``bounds`` so a band
    renders exactly the bytes the whole image would have at those rows.
    """

    width = bounds[0]
    for offset, row in enumerate(rows):
        base = offset * width
        for column in range(width):
            point = pixel_to_point(bounds, (column, row), upper_left, lower_right)
            pixels[base + column] = intensity(escape_time(point, ITERATION_LIMIT))


def render(
    pixels: PixelBuffer,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
) -> None:
    """Render a rectangle of the Mandelbrot set into a buffer of pixels.

    ``bounds`` gives the width and height of the buffer, which holds one
    grayscale byte per pixel in row-major order: a ``bytearray``, a writable
    ``memoryview`` or a flat ``numpy.uint8`` array. Buffers with wider elements
    raise ``ValueError``. ``upper_left`` and ``lower_right`` designate the
    corners of the plane the buffer covers.
    """

    _check_buffer(pixels, bounds)
    render_rows(_byte_view(pixels), bounds, upper_left, lower_right, range(bounds[1]))


def band_ranges(height: int, bands: int) -> list[range]:
    """Split ``range(height)`` into at most ``bands`` contiguous row ranges."""

    if height <= 0:
        return []
    bands = max(1, min(bands, height))
    rows_per_band = -(-height // bands)
    return [range(top, min(top + rows_per_band, height)) for top in range(0, height, rows_per_band)]


def render_parallel(
    pixels: PixelBuffer,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    workers: Optional[int] = None,
) -> None:
    """Render like :func:`render`, one contiguous band of rows per task.

    Each task owns a disjoint slice of ``pixels``, so no locking is needed and
    the result is identical to the sequential render. ``pixels`` must be a
    byte buffer, as for :func:`render`.
    """

    _check_buffer(pixels, bounds)
    width = bounds[0]
    workers = workers or os.cpu_count() or 1
    view = _byte_view(pixels)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                render_rows,
                view[rows.start * width:rows.stop * width],
                bounds,
                upper_left,
                lower_right,
                rows,
            )
            for rows in band_ranges(bounds[1], workers)
        ]
        for future in futures:
            future.result()


def render_frame(
    params: RenderParameters,
    *,
    backend: str = "serial",
    workers: Optional[int] = None,
) -> np.ndarray:
    """Render ``params`` and return a ``(height, width)`` array of gray levels."""

    width, height = params.bounds
    pixels = np.zeros(params.pixel_count, dtype=np.uint8)

    if backend == "serial":
        render(pixels, params.bounds, params.upper_left, params.lower_right)
    elif backend == "threads":
        render_parallel(pixels, params.bounds, params.upper_left, params.lower_right, workers=workers)
    elif backend == "tensorflow":
        from .tensor import render_tensor

        render_tensor(pixels, params.bounds, params.upper_left, params.lower_right)
    else:
        raise ValueError(f"Unknown backend '{backend}'. Valid choices: {', '.join(BACKENDS)}.")

    return pixels.reshape(height, width)

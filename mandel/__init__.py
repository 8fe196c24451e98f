"""Public API for grayscale Mandelbrot rendering."""

from .escape import escape_time
from .image import write_image
from .parsing import parse_complex, parse_pair
from .plane import PlaneRect, pixel_to_point
from .renderer import (
    BACKENDS,
    ITERATION_LIMIT,
    RenderParameters,
    intensity,
    render,
    render_frame,
    render_parallel,
)

__all__ = [
    "BACKENDS",
    "ITERATION_LIMIT",
    "PlaneRect",
    "RenderParameters",
    "escape_time",
    "intensity",
    "parse_complex",
    "parse_pair",
    "pixel_to_point",
    "render",
    "render_frame",
    "render_parallel",
    "write_image",
]

"""Mapping between the pixel grid and the complex plane."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlaneRect:
    """Region of the complex plane covered by a render."""

    upper_left: complex
    lower_right: complex

    @property
    def width(self) -> float:
        return self.lower_right.real - self.upper_left.real

    @property
    def height(self) -> float:
        return self.upper_left.imag - self.lower_right.imag


def pixel_to_point(
    bounds: tuple[int, int],
    pixel: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
) -> complex:
    """Return the point on the complex plane corresponding to ``pixel``.

    ``bounds`` gives the width and height of the image in pixels and ``pixel``
    is a ``(column, row)`` pair. Rows grow downwards while the imaginary axis
    grows upwards, so the imaginary component is subtracted.
    """

    plane = PlaneRect(upper_left, lower_right)
    return complex(
        upper_left.real + pixel[0] * plane.width / bounds[0],
        upper_left.imag - pixel[1] * plane.height / bounds[1],
    )

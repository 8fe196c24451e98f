"""Escape-time evaluation of the Mandelbrot map z <- z**2 + c."""

from __future__ import annotations

from typing import Optional

HORIZON = 4.0


def escape_time(c: complex, limit: int) -> Optional[int]:
    """Try to determine whether ``c`` is in the Mandelbrot set using at most ``limit`` iterations.

    If ``c`` is not a member, return the iteration index ``i`` at which the orbit
    was first seen outside the circle of radius 2 centered on the origin. If the
    limit is reached without proving that ``c`` escapes, return ``None``: the
    point is presumed to be a member.
    """

    z = 0j
    for i in range(limit):
        if z.real * z.real + z.imag * z.imag > HORIZON:
            return i
        z = z * z + c
    return None

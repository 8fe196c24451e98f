"""Parsers for command-line coordinate pairs such as ``"200x300"`` or ``"1.0,0.4"``."""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

T = TypeVar("T")


def _parse_token(token: str, kind: Callable[[str], T]) -> T:
    # int() and float() tolerate surrounding whitespace and digit separators
    if token != token.strip() or "_" in token:
        raise ValueError(f"malformed number {token!r}")
    return kind(token)


def parse_pair(s: str, separator: str, kind: Callable[[str], T] = int) -> Optional[tuple[T, T]]:
    """Parse ``s`` as ``<left><separator><right>``.

    Both halves are converted with ``kind``. Returns ``None`` when the separator
    is missing or either half cannot be converted. Halves with surrounding
    whitespace or ``_`` digit separators are rejected.
    """

    left, found, right = s.partition(separator)
    if not found:
        return None
    try:
        return _parse_token(left, kind), _parse_token(right, kind)
    except ValueError:
        return None


def parse_complex(s: str) -> Optional[complex]:
    """Parse a comma separated pair of floats as a complex number."""

    pair = parse_pair(s, ",", float)
    if pair is None:
        return None
    re, im = pair
    return complex(re, im)

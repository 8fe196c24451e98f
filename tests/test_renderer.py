import numpy as np
import pytest

from mandel import (
    ITERATION_LIMIT,
    RenderParameters,
    escape_time,
    intensity,
    pixel_to_point,
    render,
    render_frame,
    render_parallel,
)
from mandel.renderer import band_ranges, render_rows

BOUNDS = (40, 30)
UPPER_LEFT = complex(-2.0, 1.2)
LOWER_RIGHT = complex(0.6, -1.2)


@pytest.fixture(scope="module")
def reference():
    pixels = bytearray(BOUNDS[0] * BOUNDS[1])
    render(pixels, BOUNDS, UPPER_LEFT, LOWER_RIGHT)
    return bytes(pixels)


def test_intensity():
    assert intensity(None) == 0
    assert intensity(1) == 254
    assert intensity(0) == 255
    assert intensity(ITERATION_LIMIT - 1) == 1


def test_render_matches_per_pixel_evaluation(reference):
    width, height = BOUNDS
    for row in range(height):
        for column in range(width):
            point = pixel_to_point(BOUNDS, (column, row), UPPER_LEFT, LOWER_RIGHT)
            count = escape_time(point, ITERATION_LIMIT)
            value = reference[row * width + column]
            assert value == intensity(count)
            assert (value == 0) == (count is None)


def test_render_contains_interior_and_exterior(reference):
    assert 0 in reference
    assert max(reference) > 200


def test_render_into_numpy_buffer(reference):
    pixels = np.zeros(BOUNDS[0] * BOUNDS[1], dtype=np.uint8)
    render(pixels, BOUNDS, UPPER_LEFT, LOWER_RIGHT)
    assert pixels.tobytes() == reference


@pytest.mark.parametrize("length", [0, 40 * 30 - 1, 40 * 30 + 1])
def test_render_rejects_mismatched_buffer(length):
    with pytest.raises(ValueError):
        render(bytearray(length), BOUNDS, UPPER_LEFT, LOWER_RIGHT)
    with pytest.raises(ValueError):
        render_parallel(bytearray(length), BOUNDS, UPPER_LEFT, LOWER_RIGHT)


@pytest.mark.parametrize("dtype", [np.uint16, np.int64, np.float64])
def test_render_rejects_wide_elements(dtype):
    pixels = np.zeros(BOUNDS[0] * BOUNDS[1], dtype=dtype)
    with pytest.raises(ValueError, match="one byte per element"):
        render(pixels, BOUNDS, UPPER_LEFT, LOWER_RIGHT)
    with pytest.raises(ValueError, match="one byte per element"):
        render_parallel(pixels, BOUNDS, UPPER_LEFT, LOWER_RIGHT)


def test_render_parallel_rejects_list():
    with pytest.raises(TypeError):
        render_parallel([0] * (BOUNDS[0] * BOUNDS[1]), BOUNDS, UPPER_LEFT, LOWER_RIGHT)


def test_render_into_memoryview(reference):
    backing = bytearray(BOUNDS[0] * BOUNDS[1])
    render(memoryview(backing), BOUNDS, UPPER_LEFT, LOWER_RIGHT)
    assert bytes(backing) == reference


def test_render_empty_bounds():
    pixels = bytearray()
    render(pixels, (0, 0), UPPER_LEFT, LOWER_RIGHT)
    assert pixels == bytearray()


def test_render_is_idempotent(reference):
    pixels = bytearray(b"\xff" * (BOUNDS[0] * BOUNDS[1]))
    render(pixels, BOUNDS, UPPER_LEFT, LOWER_RIGHT)
    assert bytes(pixels) == reference


def test_render_rows_band_matches_full_image(reference):
    width = BOUNDS[0]
    rows = range(10, 17)
    band = bytearray(width * len(rows))
    render_rows(band, BOUNDS, UPPER_LEFT, LOWER_RIGHT, rows)
    assert bytes(band) == reference[rows.start * width:rows.stop * width]


@pytest.mark.parametrize(
    "height, bands, expected",
    [
        (10, 3, [range(0, 4), range(4, 8), range(8, 10)]),
        (4, 8, [range(0, 1), range(1, 2), range(2, 3), range(3, 4)]),
        (5, 1, [range(0, 5)]),
        (0, 4, []),
    ],
)
def test_band_ranges(height, bands, expected):
    assert band_ranges(height, bands) == expected


@pytest.mark.parametrize("workers", [1, 3, 8, 64])
def test_render_parallel_matches_sequential(reference, workers):
    pixels = bytearray(BOUNDS[0] * BOUNDS[1])
    render_parallel(pixels, BOUNDS, UPPER_LEFT, LOWER_RIGHT, workers=workers)
    assert bytes(pixels) == reference


def test_render_parallel_into_numpy_buffer(reference):
    pixels = np.zeros(BOUNDS[0] * BOUNDS[1], dtype=np.uint8)
    render_parallel(pixels, BOUNDS, UPPER_LEFT, LOWER_RIGHT)
    assert pixels.tobytes() == reference


@pytest.mark.parametrize("backend", ["serial", "threads"])
def test_render_frame(reference, backend):
    params = RenderParameters(bounds=BOUNDS, upper_left=UPPER_LEFT, lower_right=LOWER_RIGHT)
    frame = render_frame(params, backend=backend, workers=4)
    assert frame.shape == (BOUNDS[1], BOUNDS[0])
    assert frame.dtype == np.uint8
    assert frame.tobytes() == reference


def test_render_frame_unknown_backend():
    params = RenderParameters(bounds=BOUNDS, upper_left=UPPER_LEFT, lower_right=LOWER_RIGHT)
    with pytest.raises(ValueError, match="Unknown backend"):
        render_frame(params, backend="gpu")


def test_render_parameters():
    params = RenderParameters(bounds=(8, 6), upper_left=complex(-1.0, 1.0), lower_right=complex(1.0, -1.0))
    assert params.pixel_count == 48
    assert params.plane.width == 2.0
    assert params.plane.height == 2.0

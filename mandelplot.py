import importlib
import os
import sys
import time
import warnings
from argparse import ArgumentParser
from dataclasses import dataclass
from pathlib import Path

from mandel import (
    BACKENDS,
    RenderParameters,
    escape_time,
    parse_complex,
    parse_pair,
    render_frame,
    write_image,
)
from mandel.image import image_format_for

VERBOSE = False

USAGE = "Usage: mandelplot FILE PIXELS UPPERLEFT LOWERRIGHT"
EXAMPLE = "Example: mandelplot mandel.png 1000x750 -1.20,0.35 -1,0.20"

DEFAULT_PROBE_LIMIT = 1000


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


@dataclass(frozen=True)
class OutputConfig:
    path: Path
    image_format: str


def build_parser():
    parser = ArgumentParser(
        prog="mandelplot",
        usage="%(prog)s FILE PIXELS UPPERLEFT LOWERRIGHT [options]\n"
              "       %(prog)s --probe=REAL,IMAG [--limit LIMIT]",
        description="Render a rectangle of the Mandelbrot set as a grayscale image.",
        epilog=EXAMPLE,
    )

    parser.add_argument('args', nargs='*', metavar='ARG',
                        help='FILE to write, PIXELS as WIDTHxHEIGHT, UPPERLEFT and LOWERRIGHT as REAL,IMAGINARY')

    parser.add_argument('--backend', choices=BACKENDS, default='serial',
                        help='How to evaluate the pixels: one at a time, in row bands on a thread pool, '
                             'or vectorized with TensorFlow.')

    parser.add_argument('--workers', type=int, dest='workers', metavar='WORKERS', default=None,
                        help='number of row bands for the threads backend (default: CPU count)')

    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default=None,
                        help='file format for the image. Can be any extension supported by Pillow. '
                             'Default: taken from FILE, else "png".')

    parser.add_argument('--probe', type=str, dest='probe', metavar='REAL,IMAG', default=None,
                        help='report whether a single point is in the set instead of rendering. '
                             'Use --probe=-0.75,0.1 for negative real parts.')

    parser.add_argument('--limit', type=int, dest='limit', metavar='LIMIT', default=DEFAULT_PROBE_LIMIT,
                        help='iteration limit for --probe')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics.')

    return parser


def resolve_output_config(filename: str, opt, parser: ArgumentParser) -> OutputConfig:
    output_path = Path(filename).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("FILE must point to a file, not a directory.")

    suffix = output_path.suffix
    requested = (opt.format or "").lower().lstrip(".")
    if requested:
        if suffix:
            if suffix.lower() != f".{requested}":
                parser.error(f"FILE extension {suffix} does not match --format {requested}.")
        else:
            output_path = output_path.with_suffix(f".{requested}")

    return OutputConfig(
        path=output_path.resolve(),
        image_format=image_format_for(output_path, requested or None),
    )


def resolve_render_parameters(pixels: str, upper_left: str, lower_right: str, parser: ArgumentParser) -> RenderParameters:
    bounds = parse_pair(pixels, "x")
    if bounds is None:
        parser.error(f"error parsing image dimensions '{pixels}', expected WIDTHxHEIGHT")
    ul = parse_complex(upper_left)
    if ul is None:
        parser.error(f"error parsing upper left corner point '{upper_left}', expected REAL,IMAGINARY")
    lr = parse_complex(lower_right)
    if lr is None:
        parser.error(f"error parsing lower right corner point '{lower_right}', expected REAL,IMAGINARY")
    return RenderParameters(bounds=bounds, upper_left=ul, lower_right=lr)


def _quiet_tensorflow():
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "3")
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

    import tensorflow as tf

    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")


def probe(point_arg: str, limit: int, parser: ArgumentParser) -> int:
    point = parse_complex(point_arg)
    if point is None:
        parser.error(f"error parsing point '{point_arg}', expected REAL,IMAGINARY")

    result = escape_time(point, limit)
    if result is None:
        print(f"Point {point} is in the Mandelbrot set.")
    else:
        print(f"Point {point} left the Mandelbrot set after {result} iterations.")
    return 0


def main(argv=None):
    parser = build_parser()
    opt, extras = parser.parse_known_args(argv)
    # negative coordinates such as -1.20,0.35 are collected as unknown options
    positional = list(opt.args) + list(extras)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    if opt.probe is not None:
        if positional:
            parser.error("--probe does not take FILE PIXELS UPPERLEFT LOWERRIGHT.")
        return probe(opt.probe, opt.limit, parser)

    if len(positional) != 4:
        print(USAGE, file=sys.stderr)
        print(EXAMPLE, file=sys.stderr)
        return 1

    filename, pixels, upper_left, lower_right = positional
    output_config = resolve_output_config(filename, opt, parser)
    params = resolve_render_parameters(pixels, upper_left, lower_right, parser)

    log("bounds: {0}x{1}".format(*params.bounds))
    log("plane: upper left {0}, lower right {1}".format(params.upper_left, params.lower_right))
    log("backend: %s" % opt.backend)

    if opt.backend == "tensorflow":
        try:
            if not VERBOSE:
                _quiet_tensorflow()
            importlib.import_module("mandel.tensor")
        except ImportError as exc:
            parser.error(f"the tensorflow backend needs TensorFlow ({exc}). "
                         "Install it with: pip install 'mandelplot[tensorflow]'")

    start = time.perf_counter()
    try:
        frame = render_frame(params, backend=opt.backend, workers=opt.workers)
    except ValueError as exc:
        print(f"error rendering {filename}: {exc}", file=sys.stderr)
        return 1
    log("rendered in %.3fs" % (time.perf_counter() - start))

    try:
        output_config.path.parent.mkdir(parents=True, exist_ok=True)
        write_image(output_config.path, frame, params.bounds, output_config.image_format)
    except (OSError, ValueError) as exc:
        print(f"error writing {filename}: {exc}", file=sys.stderr)
        return 1

    log("wrote %s" % output_config.path)
    return 0


if __name__ == '__main__':
    sys.exit(main())

import os
import sys
import time
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

from argparse import ArgumentParser

from mandelbmp import (
    DEFAULT_MAX_ITERATION,
    DEFAULT_PALETTE,
    PALETTES,
    REFERENCE_VIEWPORT,
    ProgressReporter,
    RenderConfig,
    SinkOpenError,
    Viewport,
    random_palette,
    read_headers,
    render,
    select_device,
)
from mandelbmp.bitmap import PIXEL_OFFSET
from mandelbmp.viewport import PROGRESS_INTERVAL

EXIT_OK = 0
EXIT_BAD_FILE = 1
EXIT_USAGE = 2
EXIT_SINK_OPEN = 20
EXIT_WRITE_FAILED = 21


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set to an uncompressed 24-bit BMP file.')

    parser.add_argument('--width', type=int,
                        dest='width', help='number of pixel columns',
                        metavar='WIDTH', default=REFERENCE_VIEWPORT.width)

    parser.add_argument('--height', type=int,
                        dest='height', help='number of pixel rows',
                        metavar='HEIGHT', default=REFERENCE_VIEWPORT.height)

    parser.add_argument('--x-min', type=float,
                        dest='x_min', help='real coordinate of the first column',
                        metavar='X_MIN', default=REFERENCE_VIEWPORT.x_min)

    parser.add_argument('--x-max', type=float,
                        dest='x_max', help='real coordinate of the last column',
                        metavar='X_MAX', default=REFERENCE_VIEWPORT.x_max)

    parser.add_argument('--y-min', type=float,
                        dest='y_min', help='imaginary coordinate of the bottom row',
                        metavar='Y_MIN', default=REFERENCE_VIEWPORT.y_min)

    parser.add_argument('--y-max', type=float,
                        dest='y_max', help='imaginary coordinate of the top row',
                        metavar='Y_MAX', default=REFERENCE_VIEWPORT.y_max)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='iteration bound; points reaching it are drawn black',
                        metavar='MAX_ITERATIONS', default=DEFAULT_MAX_ITERATION)

    parser.add_argument('--palette', type=int, choices=sorted(PALETTES),
                        dest='palette', help='colour scheme, also used in the output file name',
                        default=DEFAULT_PALETTE)

    parser.add_argument('--random-palette', action='store_true',
                        help='Pick the colour scheme at random. Overrides --palette.')

    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for --random-palette, for repeatable runs.')

    parser.add_argument('--output-dir', type=str,
                        dest='output_dir', help='directory in which mandelbrot_<palette>.bmp is written',
                        metavar='OUTPUT_DIR', default='.')

    parser.add_argument('--pad-rows', action='store_true',
                        help='Pad every pixel row to a multiple of 4 bytes as strict BMP readers expect.')

    parser.add_argument('--rows-per-block', type=int,
                        dest='rows_per_block', help='rows evaluated together; one progress marker per block',
                        metavar='ROWS', default=PROGRESS_INTERVAL)

    parser.add_argument('--inspect', type=str, metavar='BMP',
                        help='Print the header fields of an existing bitmap and exit.')

    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Suppress status messages and the progress indicator.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def build_config(opt, parser: ArgumentParser) -> RenderConfig:
    palette = random_palette(opt.seed) if opt.random_palette else opt.palette
    try:
        viewport = Viewport(
            width=opt.width,
            height=opt.height,
            x_min=opt.x_min,
            x_max=opt.x_max,
            y_min=opt.y_min,
            y_max=opt.y_max,
        )
        return RenderConfig(
            viewport=viewport,
            max_iteration=opt.max_iterations,
            palette=palette,
            pad_rows=bool(opt.pad_rows),
            rows_per_block=opt.rows_per_block,
            output_dir=Path(opt.output_dir).expanduser(),
        )
    except ValueError as exc:
        parser.error(str(exc))


def inspect(path: str) -> int:
    try:
        with open(path, 'rb') as handle:
            info = read_headers(handle.read(PIXEL_OFFSET))
    except (OSError, ValueError) as exc:
        print(f"Cannot read {path}: {exc}", file=sys.stderr)
        return EXIT_BAD_FILE
    print(f"{path}: {info.width}x{info.height}, {info.bits_per_pixel} bpp, "
          f"{info.file_size} bytes declared, pixel data at offset {info.pixel_offset}")
    return EXIT_OK


def main(argv=None) -> int:
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    if opt.inspect:
        return inspect(opt.inspect)

    config = build_config(opt, parser)

    log("TensorFlow version: %s" % tf.__version__)
    device = select_device()
    log("Using %s" % device)

    started = time.perf_counter()
    try:
        path = render(config, device=device, progress=ProgressReporter(quiet=opt.quiet))
    except SinkOpenError as exc:
        print(exc, file=sys.stderr)
        return EXIT_SINK_OPEN
    except OSError as exc:
        print(f"Failed to write {config.output_path}: {exc}", file=sys.stderr)
        return EXIT_WRITE_FAILED
    log("Wrote %s in %.1fs" % (path, time.perf_counter() - started))
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())

# src/rasterstretch/cli.py

import argparse
import logging
import re
import sys
from typing import List, Optional, Tuple

from rasterstretch.config import DEFAULT_OUTPUT_FORMAT, StretchConfig
from rasterstretch.exceptions import StretchError
from rasterstretch.stretch.pipeline import run

_INTERVAL_PATTERN = re.compile(r"\[([^\[\]]*)\]")

def setup_logging(level: int = logging.INFO) -> None:
    """
    Configures the standard logging format and level for the command-line interface.

    Args:
        level (int): The logging threshold level.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def parse_intervals(text: str) -> List[Tuple[float, float]]:
    """
    Parses interval lists such as '[[0 0]]' or '[[-inf, 10] [250 inf]]'.

    Args:
        text (str): Bracketed [min max] pairs; values may be separated by spaces or commas.

    Returns:
        List[Tuple[float, float]]: One (min, max) pair per bracket group.
    """
    intervals = []
    for group in _INTERVAL_PATTERN.findall(text):
        tokens = [t for t in re.split(r"[,\s]+", group.strip()) if t]
        if len(tokens) != 2:
            raise argparse.ArgumentTypeError(f"Expected '[min max]', got '[{group}]'")
        try:
            intervals.append((float(tokens[0]), float(tokens[1])))
        except ValueError as e:
            raise argparse.ArgumentTypeError(f"Invalid number in interval '[{group}]': {e}") from e

    if not intervals:
        raise argparse.ArgumentTypeError(f"No [min max] interval found in '{text}'")
    return intervals

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rasterstretch",
        description="Stretch a raster of any pixel type to 8 bits per band."
    )
    parser.add_argument("src", help="Source raster.")
    parser.add_argument("dst", nargs="?", default=None, help="Destination raster (omit with --dump-histogram).")
    parser.add_argument(
        "--of", dest="output_format",
        default=DEFAULT_OUTPUT_FORMAT,
        help="Output driver. Defaults to GTiff."
    )

    modes = parser.add_argument_group("stretch mode (choose exactly one)")
    modes.add_argument(
        "--linear-stretch", nargs=2, type=float, metavar=("MEAN", "STDDEV"),
        help="Normalize each band to the target mean and standard deviation."
    )
    modes.add_argument(
        "--percentile-range", nargs=2, type=float, metavar=("FROM", "TO"),
        help="Map the [FROM, TO] cumulative fraction window (0..1) onto 0..255."
    )
    modes.add_argument(
        "--histeq", type=float, metavar="VARIANCE",
        help="Equalize toward a Gaussian of the given variance (0 for flat)."
    )
    modes.add_argument(
        "--dump-histogram", action="store_true",
        help="Only compute and print the histograms."
    )

    nodata = parser.add_argument_group("no-data")
    nodata.add_argument(
        "--ndv", type=parse_intervals, default=None,
        help="No-data intervals, e.g. '[[0 0]]' or '[[0 0] [0 0] [-inf 5]]' (one per band)."
    )
    nodata.add_argument(
        "--valid-range", type=parse_intervals, default=None,
        help="Valid-data intervals; everything outside is no-data."
    )
    nodata.add_argument(
        "--outndv", dest="out_ndv", type=int, default=0,
        help="Output value for no-data pixels. Defaults to 0."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-block detail.")
    return parser

def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments and runs the stretch.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = StretchConfig(
            src_path=args.src,
            dst_path=args.dst,
            output_format=args.output_format,
            ndv=args.ndv,
            valid_range=args.valid_range,
            out_ndv=args.out_ndv,
            linear_stretch=args.linear_stretch,
            percentile_range=args.percentile_range,
            histeq=args.histeq,
            dump_histogram=args.dump_histogram
        )
        run(config, report_stream=sys.stdout)

    except (StretchError, OSError) as e:
        logging.error(f"{type(e).__name__}: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import logging
import signal
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from lazywebp.core.converter import ImageConverter
from lazywebp.core.errors import ConversionError
from lazywebp.core.models import DEFAULT_QUALITY, ConversionResult, clamp_quality
from lazywebp.core.report import format_bytes

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_version() -> str:
    try:
        return version("lazywebp")
    except PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazywebp",
        description="Convert images to WebP format.",
        epilog="Supported formats: jpg, jpeg, png, gif, bmp, tiff, webp",
    )
    parser.add_argument("inputs", nargs="*", type=Path, help="Image files or directories to convert.")
    parser.add_argument(
        "-q",
        "--quality",
        type=int,
        default=DEFAULT_QUALITY,
        help=f"WebP quality 1-100 (default: {DEFAULT_QUALITY}).",
    )
    parser.add_argument("-o", "--output", type=Path, default=None, help="Output directory (default: next to source).")
    parser.add_argument("-r", "--recursive", action="store_true", help="Process subdirectories recursively.")
    parser.add_argument("-j", "--jobs", type=int, default=None, help="Maximum concurrent conversions.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    parser.add_argument("--quiet", action="store_true", help="Only log errors.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also append log records to this file.")
    parser.add_argument("-v", "--version", action="version", version=get_version())
    return parser


def configure_logging(verbose: bool, quiet: bool, log_file: Path | None) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, handlers=handlers, force=True)


def print_summary(result: ConversionResult) -> None:
    print("\nConversion completed:" if not result.cancelled else "\nConversion cancelled:")
    print(f"  Total files: {result.total_files}")
    print(f"  Processed:   {result.processed}")
    print(f"  Skipped:     {result.skipped}")
    print(f"  Failed:      {len(result.failed)}")
    print(f"  Duration:    {result.duration}")
    print(f"  Total size:  {result.total_size}")
    print(f"  Saved:       {result.saved_size}")
    print(f"  Compression: {result.compression_ratio}")

    if result.failed:
        print("\nFailed conversions:")
        for failed in result.failed:
            print(f"  - {failed.file}: {failed.error}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.inputs:
        print("Error: no input file or directory specified", file=sys.stderr)
        print("Run lazywebp --help for usage", file=sys.stderr)
        return EXIT_FAILURE

    configure_logging(args.verbose, args.quiet, args.log_file)

    converter = ImageConverter(quality=clamp_quality(args.quality), max_concurrency=args.jobs)
    progress = tqdm(total=0, unit="img", desc="Converting", disable=args.quiet, leave=False)

    def on_progress(completed: int, total: int, saved_bytes: int) -> None:
        progress.total = total
        progress.n = completed
        progress.set_postfix_str(f"saved {format_bytes(saved_bytes)}", refresh=False)
        progress.refresh()

    def on_interrupt(_signum: int, _frame: object) -> None:
        converter.cancel()

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    try:
        with logging_redirect_tqdm():
            result = converter.run_all(
                args.inputs,
                args.output,
                args.recursive,
                on_progress=on_progress,
            )
    except (ConversionError, OSError) as error:
        logger.debug("Run aborted", exc_info=True)
        print(f"Error: {error}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        progress.close()
        signal.signal(signal.SIGINT, previous_handler)

    print_summary(result)

    if result.cancelled:
        return EXIT_CANCELLED
    if result.has_failures:
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from .batch import process_batch
from .engine import Algorithm
from .errors import ScompError
from .report import build_report, render_summary, save_report_json
from .settings import build_parameters

logger = logging.getLogger("scomp")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="scomp",
        description="Create statically-compressed copies of matching files",
    )
    p.add_argument("filters", nargs="+", metavar="FILTER", help="Glob(s) selecting the files to compress")

    # Compression
    p.add_argument(
        "-c",
        "--compressor",
        default=Algorithm.GZIP.value,
        choices=[a.value for a in Algorithm],
        help="The compressor to use (default: gzip)",
    )
    p.add_argument(
        "-q",
        "--quality",
        type=int,
        default=None,
        help="Compression quality: gzip 0-9, brotli 0-11, webp 0-100 (zopfli takes none)",
    )
    p.add_argument(
        "-e",
        "--extension",
        default=None,
        metavar=".EXT",
        help="Extension for compressed files. Supplied automatically if not provided.",
    )
    p.add_argument(
        "-j",
        "--threads",
        type=int,
        default=os.cpu_count() or 1,
        metavar="COUNT",
        help="Number of simultaneous compressions (default: CPU count)",
    )

    # Matching
    p.add_argument("-i", "--case-insensitive", action="store_true", help="Match filters case-insensitively")

    # Output
    p.add_argument("--quiet", action="store_true", help="Do not print each file as it is processed")
    p.add_argument("--no-stats", action="store_true", help="Do not print the summary at the end")
    p.add_argument("--report", default=None, metavar="PATH", help="Also write the summary as JSON to PATH")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        params = build_parameters(
            args.filters,
            algorithm=args.compressor,
            extension=args.extension,
            quality=args.quality,
            threads=args.threads,
            case_sensitive=not args.case_insensitive,
            show_progress=not args.quiet,
            show_stats=not args.no_stats,
        )
        stats = process_batch(params)
    except (ScompError, OSError) as e:
        logger.error("%s", e)
        return 1

    if params.show_stats:
        print(render_summary(stats))

    if args.report:
        try:
            save_report_json(build_report(stats, params), Path(args.report))
        except OSError as e:
            logger.error("Cannot write report %s: %s", args.report, e)
            return 1

    return 0

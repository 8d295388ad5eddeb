"""
Map generator command line.

Produces the fixed size × difficulty matrix of numbered binary maps under
<output>/<size>/<difficulty>/<index>.bin. A failed map is logged and
skipped; the run only fails if nothing could be generated.
"""
import argparse
import logging
import os
import sys
import time
from typing import List, Optional

# Add project root to path first
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Then import project modules
from core.config import DEFAULT_OUTPUT_DIR, DIFFICULTIES, PUZZLES_PER_BUCKET, SIZE_RADII
from generator.batch import build_tasks, generate_all
from utils.logging_utils import get_logger, set_level

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate hex loop puzzle maps")
    parser.add_argument("--output", default=DEFAULT_OUTPUT_DIR,
                        help="Root directory for the generated maps")
    parser.add_argument("--count", type=int, default=PUZZLES_PER_BUCKET,
                        help="Maps per size and difficulty")
    parser.add_argument("--sizes", nargs="+", choices=list(SIZE_RADII), default=list(SIZE_RADII),
                        help="Map sizes to generate")
    parser.add_argument("--difficulties", nargs="+", choices=list(DIFFICULTIES), default=list(DIFFICULTIES),
                        help="Difficulties to generate")
    parser.add_argument("--workers", type=int, default=None,
                        help="Parallel worker processes (default: one per CPU)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for a reproducible run")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log solver and generator details")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.count < 1:
        logger.error("--count must be at least 1")
        return 2
    if args.workers is not None and args.workers < 1:
        logger.error("--workers must be at least 1")
        return 2
    if args.verbose:
        set_level(logging.DEBUG)

    tasks = build_tasks(args.output, args.sizes, args.difficulties, args.count, args.seed)
    logger.info("Generating %d maps (%d sizes x %d difficulties x %d) into %s",
                len(tasks), len(args.sizes), len(args.difficulties), args.count, args.output)

    start = time.time()
    results = generate_all(tasks, args.workers)
    elapsed = time.time() - start

    failed = [task for task, ok, _ in results if not ok]
    logger.info("Done: %d written, %d failed in %.1fs", len(results) - len(failed), len(failed), elapsed)

    if results and len(failed) == len(results):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

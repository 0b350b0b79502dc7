# cli.py: CLI for fixed-distance 3D region-growing clustering
from __future__ import annotations
import argparse
import json
import math
import sys

from .core3d import SQRT2, STRATEGIES
from .io import DEFAULT_PREFIX
from .logging_config import setup_logging, verbosity_to_level
from .pipeline import run_pipeline


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="voxclust",
        description="Cluster integer 3D points into groups connected under a fixed distance threshold."
    )

    ap.add_argument("input", help="CSV with three integer coordinates per line")
    ap.add_argument("--output", default=None,
                    help="Output CSV (default: input base name prefixed with --prefix).")
    ap.add_argument("--prefix", default=DEFAULT_PREFIX,
                    help=f"Prefix for the derived output file name (default {DEFAULT_PREFIX!r}).")
    ap.add_argument("--no-header", action="store_true",
                    help="The input has no header line (default: first line is skipped).")

    # -------- Clustering --------
    ap.add_argument("--threshold", type=float, default=SQRT2,
                    help="Maximum pairwise distance for two points to be considered "
                         "directly connected (default sqrt(2)).")
    ap.add_argument("--strategy", choices=STRATEGIES, default="kdtree",
                    help="Neighbour search used by the candidate pool.")
    ap.add_argument("--cell-size", type=float, default=None,
                    help="Cell edge for --strategy grid (default: the threshold).")
    ap.add_argument("--seed", type=int, default=None,
                    help="Shuffle the seed extraction order with this RNG seed.")

    # -------- Output extras --------
    ap.add_argument("--plot", default=None, metavar="PDF",
                    help="Also write a 3D scatter plot of the clusters.")

    # -------- Logging --------
    ap.add_argument("-v", "--verbose", action="count", default=0,
                    help="-v for progress info, -vv for per-cluster debug output.")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only log errors.")
    ap.add_argument("--log-file", default=None, help="Also write logs to this file.")
    return ap


def main(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        setup_logging(verbosity_to_level(args.verbose, args.quiet), args.log_file)

        if not math.isfinite(args.threshold) or args.threshold < 0:
            raise ValueError("--threshold must be a finite number >= 0.")
        if args.cell_size is not None and args.cell_size <= 0:
            raise ValueError("--cell-size must be > 0.")

        result = run_pipeline(
            args.input,
            args.output,
            threshold=args.threshold,
            strategy=args.strategy,
            cell_size=args.cell_size,
            seed=args.seed,
            header=not args.no_header,
            prefix=args.prefix,
            plot_path=args.plot,
        )

        print(json.dumps(result, indent=2))

    except Exception as e:
        print(f"[ERROR] {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

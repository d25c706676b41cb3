# ============================================================
# EMAIL COMMUNICATION NETWORK — COMMAND LINE ENTRY POINT
# ============================================================
#   python main.py emaildata_100000_0.csv
#   python main.py emails.csv --output-dir sna_output --seed 42
# ============================================================

import argparse
import os
import sys

from communities import DEFAULT_MAX_ITERATIONS
from parse import CHUNK_SIZE
from process import TOP_N, EmailNetworkAnalyzer


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Build a directed email graph and detect communities."
    )
    p.add_argument("input_csv", help="CSV with columns: ,date,sender,recipient1,subject,text")
    p.add_argument("--output-dir", default=None, help="write JSON summaries here")
    p.add_argument("--max-iterations", type=int, default=DEFAULT_MAX_ITERATIONS,
                   help="label propagation iteration cap")
    p.add_argument("--seed", type=int, default=None, help="seed for the visitation order")
    p.add_argument("--chunk-size", type=int, default=CHUNK_SIZE, help="CSV rows per chunk")
    p.add_argument("--top", type=int, default=TOP_N, help="rows in each ranking")
    p.add_argument("--no-progress", action="store_true", help="hide the progress bar")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.max_iterations < 1:
        print("❌ Error: --max-iterations must be at least 1.")
        return 1

    if not os.path.exists(args.input_csv):
        print(f"❌ Error: {args.input_csv} not found.")
        return 1

    analyzer = EmailNetworkAnalyzer(
        args.input_csv,
        output_dir=args.output_dir,
        max_iterations=args.max_iterations,
        seed=args.seed,
        chunk_size=args.chunk_size,
        top_n=args.top,
        show_progress=not args.no_progress,
    )
    try:
        analyzer.run()
    except ValueError as e:
        print(f"❌ Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .report import plot_private_alleles, read_private_alleles, summarize_private_alleles


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="fpa-report", description="Summaries of fpa private-allele tables.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_summary = sub.add_parser("summary", help="Per-population private-allele summary TSV.")
    p_summary.add_argument("--input", required=True, metavar="TSV")
    p_summary.add_argument("--output", required=True, metavar="TSV")
    p_summary.add_argument("--by", choices=["id_pop", "scaffold"], default="id_pop")

    p_plot = sub.add_parser("plot", help="Private-allele counts and focal-frequency histogram.")
    p_plot.add_argument("--input", required=True, metavar="TSV")
    p_plot.add_argument("--output", required=True, metavar="PDF")
    p_plot.add_argument("--bins", type=int, default=20)

    args = parser.parse_args(argv)
    try:
        df = read_private_alleles(args.input)
        if args.cmd == "plot":
            out = plot_private_alleles(df, args.output, bins=args.bins)
            print(f"Figure: {out.resolve()}")
            return 0

        summary = summarize_private_alleles(df, by=args.by)
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        summary.to_csv(out, sep="\t", index=False)
        print(f"Summarized {len(df)} private alleles into {len(summary)} rows.")
        print(f"TSV output: {out.resolve()}")
        return 0
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

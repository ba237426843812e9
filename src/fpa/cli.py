from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from . import __version__


def _write_json_file(path: str | Path, payload: Any) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
        handle.write("\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fpa",
        description=(
            "Identify private alleles from per-population allele-frequency estimates "
            "(GFE p-mode output). A private allele segregates in exactly one population "
            "with ML estimates and enough effective sampled chromosomes."
        ),
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("-h", dest="print_help", action="store_true", help="print the usage message")
    parser.add_argument("-in", dest="input", default=None, metavar="PATH", help="input file name (default: In_FPA.txt)")
    parser.add_argument("-out", dest="output", default=None, metavar="PATH", help="output file name (default: Out_FPA.txt)")
    parser.add_argument(
        "-min_Nc",
        dest="min_nc",
        type=float,
        default=None,
        metavar="F",
        help="minimum effective number of sampled chromosomes required in a deme (default: 20.0)",
    )
    parser.add_argument(
        "-cv",
        dest="cv",
        type=float,
        default=None,
        metavar="F",
        help="chi-square critical value for the polymorphism test (default: 5.991)",
    )
    parser.add_argument(
        "-alpha",
        dest="alpha",
        type=float,
        default=None,
        metavar="F",
        help="derive the critical value from this significance level instead of -cv",
    )
    parser.add_argument(
        "-df",
        dest="df",
        type=int,
        default=None,
        metavar="N",
        help="degrees of freedom used with -alpha (default: 2)",
    )
    parser.add_argument(
        "-strict",
        dest="strict",
        action="store_true",
        default=None,
        help="reject malformed site lines instead of reading missing or non-numeric fields as zero",
    )
    parser.add_argument("-config", dest="config", default=None, metavar="JSON", help="scan configuration file")
    parser.add_argument("-manifest", dest="manifest", default=None, metavar="JSON", help="write a run manifest")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _scan_manifest(argv: list[str], config: Any, summary: Any) -> dict[str, object]:
    from .hash_utils import sha256_file, sha256_json
    from .system_info import get_system_metadata

    return {
        "schema_version": 1,
        "command": "scan",
        "command_line": "fpa " + " ".join(argv),
        "tool_version": __version__,
        "system": get_system_metadata(Path.cwd()),
        "parameters": config.to_dict(),
        "parameters_sha256": sha256_json(config.to_dict()),
        "input_path": str(Path(summary.input_path).resolve()),
        "input_sha256": sha256_file(summary.input_path),
        "output_path": str(Path(summary.output_path).resolve()),
        "output_sha256": sha256_file(summary.output_path),
        "num_pops": summary.num_pops,
        "n_sites": summary.n_sites,
        "n_sites_with_private": summary.n_sites_with_private,
        "n_private_alleles": summary.n_private_alleles,
    }


def _cmd_scan(args: argparse.Namespace, argv: list[str]) -> int:
    from .engine import scan_file
    from .schemas import validate_manifest_payload
    from .specs import load_scan_config, resolve_scan_config

    payload = load_scan_config(args.config)
    config = resolve_scan_config(
        payload,
        min_nc=args.min_nc,
        cv=args.cv,
        alpha=args.alpha,
        df=args.df,
        strict=args.strict,
    )
    summary = scan_file(args.input or "In_FPA.txt", args.output or "Out_FPA.txt", config)
    print(
        f"Scanned {summary.n_sites} sites: {summary.n_private_alleles} private alleles "
        f"at {summary.n_sites_with_private} sites."
    )
    print(f"TSV output: {Path(summary.output_path).resolve()}")

    if args.manifest:
        manifest = _scan_manifest(argv, config, summary)
        validate_manifest_payload(manifest, "scan")
        _write_json_file(args.manifest, manifest)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    argv = list(argv if argv is not None else sys.argv[1:])
    args = parser.parse_args(argv)
    if args.print_help:
        parser.print_help(sys.stderr)
        return 1
    if args.cv is not None and args.alpha is not None:
        parser.error("-cv and -alpha are mutually exclusive")
    try:
        return _cmd_scan(args, argv)
    except (OSError, ValueError) as exc:
        parser.exit(status=1, message=f"error: {exc}\n")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())

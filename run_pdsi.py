#!/usr/bin/env python3
"""
run_pdsi.py
===========
Command-line entry point for computing monthly PDSI / scPDSI for one site.

Usage
-----
  # Both tables, Parquet output in ./results
  python run_pdsi.py --climate muc_clim.csv --awc 12 --lat 50 --start 1960 --end 2000

  # Only scPDSI, CSV output, engine installed elsewhere
  python run_pdsi.py --climate muc_clim.csv --awc 12 --lat 50 \\
      --start 1960 --end 2000 --mode scpdsi --format csv --engine-home /opt/scpdsi

  # Settings from a saved config
  python run_pdsi.py --config results/pdsi_config.json --climate ...

The climate CSV needs four columns, in this order: year, month,
temperature (°C), precipitation (mm).  It must cover January of
``start - 1`` through December of ``end``.

Flow
----
::

  climate CSV  ──→  window Jan(start-1) .. Dec(end)
       │
       ▼
  temperature / precipitation matrices  +  monthly normals
       │
       ▼
  fixed-width inputs in a private workspace
       │
       ▼
  scPDSI engine  (-m -i <workspace> <start> <end>)
       │
       ▼
  pdsi / scpdsi tables  +  metadata.json
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdsi.climate import SiteParameters, load_climate
from pdsi.config import Mode, OutputFormat, PdsiConfig
from pdsi.core import ComputationRequest, PdsiRunner
from pdsi.engine import resolve_executable
from pdsi.errors import PdsiError
from pdsi.export import save_result_table, save_run_metadata


# ======================================================================== #
#  CLI                                                                      #
# ======================================================================== #

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Monthly PDSI / scPDSI via the scPDSI engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--climate", type=str, required=True,
                        help="CSV with year, month, temperature, precipitation.")
    parser.add_argument("--awc", type=float, required=True,
                        help="Available soil water capacity (cm).")
    parser.add_argument("--lat", type=float, required=True,
                        help="Site latitude (decimal degrees).")
    parser.add_argument("--start", type=int, required=True, help="First year.")
    parser.add_argument("--end", type=int, required=True, help="Last year.")
    parser.add_argument(
        "--mode",
        type=str,
        default=Mode.BOTH.value,
        choices=[m.value for m in Mode],
        help="Which table(s) to compute (default: both).",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a pdsi_config.json file.",
    )
    parser.add_argument("--engine-home", type=str, default=None,
                        help="Directory holding exec/<engine binary>.")
    parser.add_argument("--workspace-root", type=str, default=None,
                        help="Parent directory for temporary workspaces.")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds before the engine is killed.")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Where tables and metadata are written.")
    parser.add_argument(
        "--format",
        type=str,
        default=None,
        choices=[f.value for f in OutputFormat],
        help="Table format (default: parquet).",
    )
    parser.add_argument("--quiet", action="store_true",
                        help="Only print errors.")
    return parser.parse_args(argv)


def build_config(args) -> PdsiConfig:
    if args.config:
        cfg = PdsiConfig.load(args.config)
    else:
        cfg = PdsiConfig()
    if args.engine_home:
        cfg.engine_home = args.engine_home
    if args.workspace_root:
        cfg.workspace_root = args.workspace_root
    if args.timeout is not None:
        cfg.timeout = args.timeout
    if args.output_dir:
        cfg.output_dir = args.output_dir
    if args.format:
        cfg.output_format = OutputFormat(args.format)
    cfg.verbose = not args.quiet
    return cfg


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = build_config(args)

    if cfg.verbose:
        print("PDSI Configuration:")
        print(f"  Climate file   : {args.climate}")
        print(f"  AWC / latitude : {args.awc} cm / {args.lat}°")
        print(f"  Years          : {args.start}–{args.end}")
        print(f"  Mode           : {args.mode}")
        print(f"  Engine home    : {cfg.resolved_engine_home()}")
        print(f"  Workspace root : {cfg.workspace_root or 'system temp'}")
        print(f"  Timeout        : {cfg.timeout or 'none'}")
        print(f"  Output dir     : {cfg.output_dir} ({cfg.output_format.value})")
        print()

    try:
        request = ComputationRequest(
            site=SiteParameters(awc=args.awc, latitude=args.lat),
            climate=load_climate(args.climate),
            start=args.start,
            end=args.end,
            mode=args.mode,
        )
        tables = PdsiRunner(cfg).compute(request)
        engine_path = resolve_executable(cfg.resolved_engine_home())
    except PdsiError as exc:
        print(f"Error ({type(exc).__name__}): {exc}", file=sys.stderr)
        return 1

    written = [
        save_result_table(table, Path(cfg.output_dir) / name, cfg.output_format)
        for name, table in tables.items()
    ]
    cfg.save(Path(cfg.output_dir) / "pdsi_config.json")
    save_run_metadata(
        cfg.output_dir,
        request={
            "climate": args.climate,
            "awc": args.awc,
            "lat": args.lat,
            "start": args.start,
            "end": args.end,
            "mode": args.mode,
        },
        config=cfg,
        tables=tables,
        engine_path=engine_path,
    )

    if cfg.verbose:
        for name, table in tables.items():
            print(f"\n{'='*60}")
            print(f"  {name.upper()}")
            print(f"{'='*60}")
            print(table.tail().to_string(index=False))
        print(f"\nResults saved to: {', '.join(written)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Command line entry: python -m vlsu_oracle [options]

Runs one sweep per requested element width and exits with the status of the
first failing sweep (0 when every sweep passes).
"""

import argparse
import sys
from dataclasses import replace

from .config import PlatformConfig, SweepConfig
from .sweep import SweepDriver
from .types import ExitStatus


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vlsu_oracle",
        description="Sweep unit-stride vector loads/stores under injected faults and "
                    "check precise-exception recovery.",
    )
    parser.add_argument("--kind", choices=("load", "store"), default="store")
    parser.add_argument("--eew", type=int, nargs="+", default=[4],
                        help="element widths in bytes (default: 4)")
    parser.add_argument("--mode", choices=("bounded", "exhaustive"), default="bounded")
    parser.add_argument("--band", type=int, default=4, help="values per band in bounded mode")
    parser.add_argument("--fault-mode", default="random",
                        help="none | always | random (or control code 0/1/2)")
    parser.add_argument("--latency", type=int, default=1, help="starting latency of the fixed policy")
    parser.add_argument("--max-latency", type=int, default=4)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--elmmax", type=int, default=None)
    parser.add_argument("--vlen", type=int, default=1024)
    parser.add_argument("--lanes", type=int, default=4)
    parser.add_argument("--src-base", type=lambda s: int(s, 0), default=0x1000)
    parser.add_argument("--dst-base", type=lambda s: int(s, 0), default=0x4000)
    parser.add_argument("--plot", metavar="PATH", default=None,
                        help="save a coverage plot of the last sweep")
    parser.add_argument("-v", "--verbose", action="store_true", help="trace every configuration point")
    return parser


def _fault_mode(value: str):
    return int(value) if value.isdigit() else value


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    platform = PlatformConfig(VLEN=args.vlen, NrLanes=args.lanes)
    base_cfg = SweepConfig(
        kind=args.kind,
        elmmax=args.elmmax,
        mode=args.mode,
        band=args.band,
        fault_mode=_fault_mode(args.fault_mode),
        fixed_latency=args.latency,
        max_latency=args.max_latency,
        seed=args.seed,
        src_base=args.src_base,
        dst_base=args.dst_base,
        trace=args.verbose,
        platform=platform,
    )

    result = None
    for eew in args.eew:
        cfg = replace(base_cfg, eew=eew)
        try:
            driver = SweepDriver(cfg)
        except ValueError as e:
            print(f"eew={eew}: invalid configuration: {e}", file=sys.stderr)
            return int(ExitStatus.INTERNAL)
        result = driver.run()
        print(f"eew={eew} {args.kind}: {result.summary()}")
        if not result.ok:
            return int(result.status)

    if args.plot and result is not None:
        import matplotlib
        matplotlib.use("Agg")
        from .analyze import plot_coverage
        plot_coverage(result, args.plot)
        print(f"coverage plot written to {args.plot}")
    return int(ExitStatus.PASS)


if __name__ == "__main__":
    sys.exit(main())

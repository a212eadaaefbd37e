import argparse
import os
import sys
from typing import List, Optional

from .errors import InvalidConfiguration
from .export import export_sweep
from .simulation import build_tables, run_sweep
from .traits import dump_traits
from .utils.config import SweepConfig, load_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Size-structured plankton food web: nitrate supply sweep")
    parser.add_argument("--config", default="config.yaml", help="key: value config file (optional)")
    parser.add_argument("--outdir", default="results", help="Directory for CSV and PNG outputs")
    parser.add_argument("--workers", type=int, default=1, help="Run sweep levels on N threads")
    parser.add_argument("--holling", type=int, choices=(1, 2), default=None, help="Grazing functional response")
    parser.add_argument("--levels", type=int, nargs="*", default=None, help="Only run these level indices")
    parser.add_argument("--no-plot", action="store_true", help="Skip the summary plot")
    parser.add_argument("--quiet", action="store_true", help="Only print warnings and the final line")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = SweepConfig.from_mapping(load_config(args.config))
        if args.holling is not None:
            cfg = cfg.with_overrides(holling=args.holling)
        tables = build_tables(cfg)
    except InvalidConfiguration as e:
        print(f"[error] invalid configuration: {e}")
        return 2

    verbose = not args.quiet
    if verbose:
        print(f"[config] dt={cfg.dt} max_time={cfg.max_time} steps={cfg.n_step_max} "
              f"stride={cfg.n_step_out} samples={cfg.n_step_out_max} holling={cfg.holling}")
        dump_traits(tables.traits)

    try:
        result = run_sweep(cfg, tables, levels=args.levels, workers=args.workers, verbose=verbose)
    except InvalidConfiguration as e:
        print(f"[error] invalid configuration: {e}")
        return 2

    written = export_sweep(result.runs, args.outdir, plot=not args.no_plot)
    print(f"[sweep] wrote {os.path.join(args.outdir, 'sweep_results.csv')} "
          f"({len(result.records)} levels, {len(written)} files)")
    if result.failures:
        print(f"[warn] {len(result.failures)} level(s) failed: {[lvl for lvl, _ in result.failures]}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

import argparse
from pathlib import Path
from typing import Optional

import pandas as pd

BMASS_COLS = ["bmass0", "bmass1", "bmass2", "bmass3"]
HMASS_COLS = ["hmass0", "hmass1", "hmass2", "hmass3"]


def load_sweep(path) -> pd.DataFrame:
    df = pd.read_csv(path)
    missing = [c for c in ["nsupply"] + BMASS_COLS + HMASS_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {missing}")
    return df.sort_values("nsupply").reset_index(drop=True)


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Guild totals per supply level and the heterotroph:autotroph ratio."""
    out = pd.DataFrame({"nsupply": df["nsupply"]})
    out["autotroph_total"] = df[BMASS_COLS].sum(axis=1)
    out["heterotroph_total"] = df[HMASS_COLS].sum(axis=1)
    out["total_biomass"] = out["autotroph_total"] + out["heterotroph_total"]
    auto = out["autotroph_total"].where(out["autotroph_total"] > 0)
    out["h_to_a_ratio"] = (out["heterotroph_total"] / auto).fillna(0.0)
    # 最大バイオマスの独立栄養グループ
    out["dominant_autotroph"] = df[BMASS_COLS].idxmax(axis=1)
    return out


def plot_totals(summary: pd.DataFrame, path: Path) -> None:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(7, 4))
    ax.plot(summary["nsupply"], summary["autotroph_total"], marker="o", label="autotrophs")
    ax.plot(summary["nsupply"], summary["heterotroph_total"], marker="s", label="heterotrophs")
    ax.set_xlabel("Nitrate supply [umol N L-1 day-1]")
    ax.set_ylabel("Total biomass [umol N L-1]")
    ax.set_title("Guild biomass across the supply sweep")
    ax.legend()
    plt.tight_layout()
    fig.savefig(path)
    plt.close(fig)


def main(argv: Optional[list] = None) -> int:
    ap = argparse.ArgumentParser(description="Summarize a sweep_results.csv into guild totals")
    ap.add_argument("csv", nargs="?", default="results/sweep_results.csv", help="Sweep CSV to read")
    ap.add_argument("--out", default=None, help="Write the summary table here (CSV)")
    ap.add_argument("--plot", default=None, help="Write a totals plot here (PNG)")
    args = ap.parse_args(argv)

    src = Path(args.csv)
    if not src.exists():
        print(f"[error] {src} not found; run `python -m foodweb.main` first")
        return 2
    try:
        summary = summarize(load_sweep(src))
    except ValueError as e:
        print(f"[error] {e}")
        return 2

    print(summary.to_string(index=False, float_format=lambda v: f"{v:.4g}"))
    if args.out:
        Path(args.out).parent.mkdir(parents=True, exist_ok=True)
        summary.to_csv(args.out, index=False)
        print(f"[summary] wrote {args.out}")
    if args.plot:
        try:
            plot_totals(summary, Path(args.plot))
            print(f"[summary] wrote {args.plot}")
        except Exception as e:
            print(f"[warn] Plotting failed: {e}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

import csv
import os
from typing import Callable, List, Sequence

import numpy as np

from .models.state import SummaryRecord, SweepRun

SWEEP_HEADER = ["nsupply", "bmass0", "bmass1", "bmass2", "bmass3", "hmass0", "hmass1", "hmass2", "hmass3"]
SERIES_FIELDS = ("biomass", "autotrophy", "heterotrophy", "predation", "respiration", "production")


def write_sweep_csv(records: Sequence[SummaryRecord], path: str) -> str:
    """One row per supply level, in the order given."""
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(SWEEP_HEADER)
        for rec in records:
            writer.writerow(rec.as_row(width=4))
    return path


def write_timeseries_csv(run: SweepRun, path: str) -> str:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    n = len(run.samples[0].biomass) if run.samples else 0
    header = ["time", "nitrate"]
    for name in SERIES_FIELDS:
        header += [f"{name}{i}" for i in range(n)]
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for s in run.samples:
            row = [s.time, s.nitrate]
            for name in SERIES_FIELDS:
                row += [float(v) for v in getattr(s, name)]
            writer.writerow(row)
    return path


def export_sweep(
    runs: Sequence[SweepRun],
    outdir: str = "results",
    *,
    plot: bool = True,
    log: Callable[[str], None] = print,
) -> List[str]:
    """Write the sweep table, one time series per level and the summary plot."""
    os.makedirs(outdir, exist_ok=True)
    written = []
    records = [r.summary for r in runs if r.summary is not None]
    written.append(write_sweep_csv(records, os.path.join(outdir, "sweep_results.csv")))
    for run in runs:
        try:
            written.append(write_timeseries_csv(run, os.path.join(outdir, f"timeseries_level{run.level}.csv")))
        except OSError as e:
            log(f"[warn] time series write failed for level {run.level}: {e}")
    if plot:
        png = plot_sweep(records, os.path.join(outdir, "sweep_biomass.png"), log=log)
        if png:
            written.append(png)
    return written


def plot_sweep(records: Sequence[SummaryRecord], path: str, *, log: Callable[[str], None] = print):
    """Biomass of each guild against nitrate supply. Returns the path or None."""
    if not records:
        return None
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        supply = np.array([r.supply_rate for r in records])
        bm = np.array([r.as_row(4)[1:5] for r in records])
        hm = np.array([r.as_row(4)[5:9] for r in records])
        fig, axes = plt.subplots(1, 2, figsize=(10, 4), sharex=True)
        for j in range(bm.shape[1]):
            axes[0].plot(supply, bm[:, j], marker="o", label=f"bmass{j}")
            axes[1].plot(supply, hm[:, j], marker="o", label=f"hmass{j}")
        axes[0].set_title("Autotroph biomass")
        axes[1].set_title("Heterotroph biomass")
        for ax in axes:
            ax.set_xlabel("Nitrate supply [umol N L-1 day-1]")
            ax.set_ylabel("Biomass [umol N L-1]")
            ax.legend()
        plt.tight_layout()
        fig.savefig(path)
        plt.close(fig)
        return path
    except Exception as e:
        log(f"[warn] Plotting failed: {e}")
        return None

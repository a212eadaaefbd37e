from typing import List, Optional

import numpy as np


class SimulationState:
    """Biomass (umol N L-1 per group), nitrate (umol N L-1) and elapsed time (days)."""

    def __init__(self, biomass, nitrate: float, elapsed_time: float = 0.0):
        self.biomass = np.array(biomass, dtype=float)
        self.nitrate = float(nitrate)
        self.elapsed_time = float(elapsed_time)

    @classmethod
    def seeded(cls, seed_biomass, seed_scale: float, seed_nitrate: float) -> "SimulationState":
        return cls(np.asarray(seed_biomass, dtype=float) * seed_scale, seed_nitrate, 0.0)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.biomass)) and np.isfinite(self.nitrate))

    def __repr__(self):
        return (
            f"SimulationState(t={self.elapsed_time:.4g}, nitrate={self.nitrate:.4g}, "
            f"biomass={np.array2string(self.biomass, precision=3)})"
        )


class OutputSample:
    def __init__(self, time, nitrate, biomass, autotrophy, heterotrophy, predation, respiration):
        self.time = float(time)
        self.nitrate = float(nitrate)
        self.biomass = np.array(biomass, dtype=float)
        self.autotrophy = np.array(autotrophy, dtype=float)
        self.heterotrophy = np.array(heterotrophy, dtype=float)
        self.predation = np.array(predation, dtype=float)
        self.respiration = np.array(respiration, dtype=float)

    @property
    def production(self):
        """Total growth per group (autotrophy + heterotrophy)."""
        return self.autotrophy + self.heterotrophy


class SummaryRecord:
    """One exported row: supply rate plus autotroph and heterotroph biomass."""

    def __init__(self, supply_rate: float, autotroph_biomass, heterotroph_biomass):
        self.supply_rate = float(supply_rate)
        self.autotroph_biomass = [float(v) for v in autotroph_biomass]
        self.heterotroph_biomass = [float(v) for v in heterotroph_biomass]

    def as_row(self, width: int = 4) -> List[float]:
        bm = (self.autotroph_biomass + [0.0] * width)[:width]
        hm = (self.heterotroph_biomass + [0.0] * width)[:width]
        return [self.supply_rate] + bm + hm

    def __eq__(self, other):
        if not isinstance(other, SummaryRecord):
            return NotImplemented
        return (
            self.supply_rate == other.supply_rate
            and self.autotroph_biomass == other.autotroph_biomass
            and self.heterotroph_biomass == other.heterotroph_biomass
        )

    def __repr__(self):
        return (
            f"SummaryRecord(nsupply={self.supply_rate:.4g}, "
            f"bmass={self.autotroph_biomass}, hmass={self.heterotroph_biomass})"
        )


class SweepRun:
    def __init__(
        self,
        level: int,
        supply_rate: float,
        samples: List[OutputSample],
        final_state: SimulationState,
        summary: Optional[SummaryRecord] = None,
    ):
        self.level = level
        self.supply_rate = supply_rate
        self.samples = samples
        self.final_state = final_state
        self.summary = summary

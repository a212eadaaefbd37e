from typing import List

from .errors import InvalidConfiguration, OutputBufferOverflow
from .fluxes import Fluxes
from .models.state import OutputSample, SimulationState


class OutputSampler:
    """Snapshot state and fluxes every `n_step_out` integration steps.

    Samples go into a list that is allowed to hold exactly `capacity` entries;
    one more raises `OutputBufferOverflow` instead of dropping data.
    """

    def __init__(self, n_step_out: int, capacity: int):
        if n_step_out < 1:
            raise InvalidConfiguration(f"n_step_out must be >= 1, got {n_step_out}")
        self.n_step_out = int(n_step_out)
        self.capacity = int(capacity)
        self.step_count = 0
        self.samples: List[OutputSample] = []

    @property
    def out_index(self) -> int:
        return len(self.samples)

    @property
    def full(self) -> bool:
        return len(self.samples) >= self.capacity

    def observe(self, state: SimulationState, fluxes: Fluxes):
        """Count one step; returns the new sample when this step is a boundary."""
        self.step_count += 1
        if self.step_count != self.n_step_out:
            return None
        self.step_count = 0
        if self.full:
            raise OutputBufferOverflow(
                f"output index {self.out_index} exceeds capacity {self.capacity}"
            )
        sample = OutputSample(
            time=state.elapsed_time,
            nitrate=state.nitrate,
            biomass=state.biomass,
            autotrophy=fluxes.autotrophy,
            heterotrophy=fluxes.heterotrophy,
            predation=fluxes.predation,
            respiration=fluxes.respiration,
        )
        self.samples.append(sample)
        return sample

from enum import Enum

import numpy as np

from .grazing import InteractionTables
from .models.state import SimulationState
from .traits import TraitTable

# Below this biomass a group no longer respires or gets grazed (numerical floor)
EXTINCTION_THRESHOLD = 1.0e-25


class GrazingMode(Enum):
    HOLLING_I = 1
    HOLLING_II = 2

    @classmethod
    def from_value(cls, value) -> "GrazingMode":
        if isinstance(value, cls):
            return value
        return cls(int(value))


class Direction(Enum):
    GAIN = "gain"  # consumer side, scaled by assimilation efficiency
    LOSS = "loss"  # prey side, full grazed amount


class Fluxes:
    """Instantaneous rates for one state (umol N L-1 day-1)."""

    def __init__(self, autotrophy, heterotrophy, predation, respiration, supply_rate):
        self.autotrophy = autotrophy
        self.heterotrophy = heterotrophy
        self.predation = predation
        self.respiration = respiration
        self.supply_rate = float(supply_rate)
        self.nitrate_uptake = float(np.sum(autotrophy))
        self.dnitrate_dt = self.supply_rate - self.nitrate_uptake

    @property
    def dbiomass_dt(self) -> np.ndarray:
        return self.autotrophy + self.heterotrophy - self.respiration - self.predation


def nitrate_limitation(nitrate: float, half_sat) -> np.ndarray:
    """Michaelis-Menten factor N / (N + K)."""
    return nitrate / (nitrate + np.asarray(half_sat, dtype=float))


def encounter_matrix(biomass: np.ndarray, tables: InteractionTables, mode: GrazingMode) -> np.ndarray:
    """Grazed biomass per (prey, consumer) edge before assimilation."""
    prey = biomass[:, np.newaxis]
    consumer = biomass[np.newaxis, :]
    if mode is GrazingMode.HOLLING_I:
        return tables.holling1_rate * prey * consumer
    # Holling II: saturating in prey biomass, only defined on edges
    denom = prey + tables.half_sat
    saturation = np.divide(
        np.broadcast_to(prey, denom.shape),
        denom,
        out=np.zeros_like(denom),
        where=tables.edges > 0,
    )
    return tables.max_rate * saturation * consumer


def grazing_contribution(
    biomass: np.ndarray,
    tables: InteractionTables,
    mode: GrazingMode,
    direction: Direction,
) -> np.ndarray:
    encounters = encounter_matrix(biomass, tables, mode)
    if direction is Direction.GAIN:
        return np.sum(tables.efficiency * encounters, axis=0)
    return np.sum(encounters, axis=1)


def evaluate_fluxes(
    state: SimulationState,
    traits: TraitTable,
    tables: InteractionTables,
    mode: GrazingMode,
    supply_rate: float,
    *,
    threshold: float = EXTINCTION_THRESHOLD,
) -> Fluxes:
    """Right-hand side of the food web for the current state.

    Groups below `threshold` get zero respiration and predation for this
    evaluation. Autotrophy and heterotrophy are left as computed, so a consumer
    still gains from prey that sits under the floor.
    """
    biomass = state.biomass
    autotrophy = traits.specific_vmax * nitrate_limitation(state.nitrate, traits.half_sat_uptake) * biomass
    respiration = traits.respiration_rate * biomass
    heterotrophy = grazing_contribution(biomass, tables, mode, Direction.GAIN)
    predation = grazing_contribution(biomass, tables, mode, Direction.LOSS)

    extinct = biomass < threshold
    if np.any(extinct):
        respiration = np.where(extinct, 0.0, respiration)
        predation = np.where(extinct, 0.0, predation)

    return Fluxes(autotrophy, heterotrophy, predation, respiration, supply_rate)

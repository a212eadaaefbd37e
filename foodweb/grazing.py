from typing import Iterable, Sequence, Tuple

import numpy as np

from .errors import InvalidConfiguration
from .utils.config import REDFIELD_N_TO_C, SweepConfig


class InteractionTables:
    """N x N grazing tables indexed [prey, consumer].

    `holling1_rate` is the per-encounter rate used by the linear response. It is
    kept as its own table but holds the same numbers as `max_rate`.
    """

    def __init__(self, edges: np.ndarray, max_rate: np.ndarray, half_sat: np.ndarray, efficiency: np.ndarray):
        self.edges = edges
        self.max_rate = max_rate
        self.holling1_rate = max_rate / 1.0
        self.half_sat = half_sat
        self.efficiency = efficiency
        for arr in (self.edges, self.max_rate, self.holling1_rate, self.half_sat, self.efficiency):
            arr.setflags(write=False)

    @property
    def size(self) -> int:
        return self.edges.shape[0]

    def pairs(self) -> Iterable[Tuple[int, int]]:
        """(prey, consumer) index pairs in row-major order."""
        rows, cols = np.nonzero(self.edges)
        return [(int(r), int(c)) for r, c in zip(rows, cols)]

    def consumers_of(self, prey: int):
        return [int(k) for k in np.nonzero(self.edges[prey, :])[0]]

    def prey_of(self, consumer: int):
        return [int(q) for q in np.nonzero(self.edges[:, consumer])[0]]


def build_interactions(
    cell_volumes: Sequence[float],
    pairing: Iterable[Tuple[int, int]],
    *,
    a_graz: float = 0.5,
    b_graz: float = -0.16,
    half_sat: float = 0.5 * REDFIELD_N_TO_C,
    efficiency: float = 0.1,
) -> InteractionTables:
    """Build the directed grazing graph from a fixed pairing pattern.

    Each `(prey, consumer)` edge gets gmax = aGraz * V^bGraz with V the volume
    of the column (consumer) group, the grazing half saturation and the
    trophic transfer efficiency. Every other entry is exactly zero.
    """
    vols = np.asarray(cell_volumes, dtype=float)
    n = len(vols)
    bad = [i for i, v in enumerate(vols) if not v > 0]
    if bad:
        raise InvalidConfiguration(f"cell volume must be positive for groups {bad}")

    edges = np.zeros((n, n))
    for prey, consumer in pairing:
        if not (0 <= prey < n and 0 <= consumer < n):
            raise InvalidConfiguration(f"pairing edge ({prey}, {consumer}) outside 0..{n - 1}")
        if prey == consumer:
            raise InvalidConfiguration(f"group {prey} cannot graze on itself")
        edges[prey, consumer] = 1.0

    size_term = a_graz * vols ** b_graz
    max_rate = size_term[np.newaxis, :] * edges
    return InteractionTables(
        edges=edges,
        max_rate=max_rate,
        half_sat=half_sat * edges,
        efficiency=efficiency * edges,
    )


def interactions_from_config(cfg: SweepConfig) -> InteractionTables:
    return build_interactions(
        cfg.cell_volumes,
        cfg.pairing,
        a_graz=cfg.a_graz,
        b_graz=cfg.b_graz,
        half_sat=cfg.graz_half_sat,
        efficiency=cfg.assimilation_efficiency,
    )

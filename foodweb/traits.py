from typing import Callable, List, Sequence

import numpy as np

from .errors import InvalidConfiguration
from .models.group import FunctionalGroup, GuildRole
from .utils.config import REDFIELD_N_TO_C, SweepConfig

# fg -> umol (1e6 / 1e15)
FEMTO_TO_MICRO = 1.0e6 / 1.0e15


class TraitTable:
    """Per-group allometric traits as aligned numpy arrays (read-only)."""

    def __init__(self, groups: List[FunctionalGroup]):
        self.groups = groups
        self.cell_volume = self._column("cell_volume")
        self.carbon_quota = self._column("carbon_quota")
        self.nitrogen_quota = self._column("nitrogen_quota")
        self.vmax_uptake = self._column("vmax_uptake")
        self.half_sat_uptake = self._column("half_sat_uptake")
        self.respiration_rate = self._column("respiration_rate")
        self.specific_vmax = self._column("specific_vmax")
        self.roles = tuple(g.role for g in groups)

    def _column(self, name: str) -> np.ndarray:
        arr = np.array([getattr(g, name) for g in self.groups], dtype=float)
        arr.setflags(write=False)
        return arr

    def __len__(self):
        return len(self.groups)

    def indices(self, role: GuildRole) -> List[int]:
        return [g.index for g in self.groups if g.role is role]


def build_traits(
    cell_volumes: Sequence[float],
    autotroph_groups: Sequence[int],
    *,
    a_cell: float = 18.7,
    b_cell: float = 0.89,
    a_vmax: float = 9.1e-9,
    b_vmax: float = 0.67,
    a_kn: float = 0.17,
    b_kn: float = 0.27,
    respiration_rate: float = 0.03,
) -> TraitTable:
    """Derive quotas, uptake and loss traits from cell volume.

    Carbon quota follows aCell * V^bCell (fgC cell-1); the nitrogen quota is the
    Redfield share of it in umol N cell-1. Only the groups listed in
    `autotroph_groups` get a non-zero vmax, everything else is an obligate
    heterotroph.
    """
    vols = np.asarray(cell_volumes, dtype=float)
    n = len(vols)
    if n == 0:
        raise InvalidConfiguration("at least one cell volume is required")
    bad = [i for i, v in enumerate(vols) if not v > 0]
    if bad:
        raise InvalidConfiguration(f"cell volume must be positive for groups {bad}")
    autotrophs = set(int(i) for i in autotroph_groups)
    outside = sorted(i for i in autotrophs if not 0 <= i < n)
    if outside:
        raise InvalidConfiguration(f"autotroph groups {outside} outside 0..{n - 1}")

    groups = []
    for i, vol in enumerate(vols):
        quota_c = a_cell * vol ** b_cell
        quota_n = quota_c * REDFIELD_N_TO_C * FEMTO_TO_MICRO
        vmax = a_vmax * vol ** b_vmax if i in autotrophs else 0.0
        groups.append(
            FunctionalGroup(
                index=i,
                cell_volume=float(vol),
                carbon_quota=float(quota_c),
                nitrogen_quota=float(quota_n),
                vmax_uptake=float(vmax),
                half_sat_uptake=float(a_kn * vol ** b_kn),
                respiration_rate=float(respiration_rate),
            )
        )
    return TraitTable(groups)


def traits_from_config(cfg: SweepConfig) -> TraitTable:
    return build_traits(
        cfg.cell_volumes,
        cfg.autotroph_groups,
        a_cell=cfg.a_cell,
        b_cell=cfg.b_cell,
        a_vmax=cfg.a_vmax,
        b_vmax=cfg.b_vmax,
        a_kn=cfg.a_kn,
        b_kn=cfg.b_kn,
        respiration_rate=cfg.respiration_rate,
    )


def _fmt(arr) -> str:
    return "[" + ", ".join(f"{float(v):.6g}" for v in arr) + "]"


def dump_traits(traits: TraitTable, log: Callable[[str], None] = print) -> None:
    log(f"cell volumes: {_fmt(traits.cell_volume)}")
    log(f"vmaxN: {_fmt(traits.vmax_uptake)}")
    log(f"specVmaxN: {_fmt(traits.specific_vmax)}")
    log(f"kn: {_fmt(traits.half_sat_uptake)}")
    log("roles: [" + ", ".join(r.value for r in traits.roles) + "]")

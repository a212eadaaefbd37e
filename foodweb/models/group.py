from enum import Enum


class GuildRole(Enum):
    AUTOTROPH = "autotroph"
    HETEROTROPH = "heterotroph"


class FunctionalGroup:
    """One size class of plankton with its allometric traits.

    Built by `build_traits`; treat instances as read-only afterwards.
    """

    def __init__(
        self,
        index,
        cell_volume,
        carbon_quota,
        nitrogen_quota,
        vmax_uptake,
        half_sat_uptake,
        respiration_rate,
    ):
        self.index = index
        self.cell_volume = cell_volume          # um^3
        self.carbon_quota = carbon_quota        # fgC cell-1
        self.nitrogen_quota = nitrogen_quota    # umol N cell-1
        self.vmax_uptake = vmax_uptake          # umol N cell-1 day-1
        self.half_sat_uptake = half_sat_uptake  # umol N L-1
        self.respiration_rate = respiration_rate
        # 栄養塩取り込み能力ゼロ = 従属栄養のみ
        self.role = GuildRole.HETEROTROPH if vmax_uptake == 0.0 else GuildRole.AUTOTROPH

    @property
    def specific_vmax(self):
        return self.vmax_uptake / self.nitrogen_quota

    def __repr__(self):
        return (
            f"FunctionalGroup(index={self.index}, cell_volume={self.cell_volume:.4g}, "
            f"role={self.role.value})"
        )

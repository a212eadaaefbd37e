import math

import pytest

from foodweb.errors import InvalidConfiguration
from foodweb.models.group import GuildRole
from foodweb.traits import build_traits, dump_traits


REF_VOLUMES = [10 ** 1.0, 10 ** 1.0, 10 ** 1.5, 10 ** 1.5, 10 ** 2.0, 10 ** 2.0, 10 ** 2.5, 10 ** 2.5]


def test_quotas_follow_allometry_and_redfield():
    traits = build_traits(REF_VOLUMES, (0, 2, 4, 6))
    v = 10.0
    quota_c = 18.7 * v ** 0.89
    assert traits.carbon_quota[0] == pytest.approx(quota_c)
    assert traits.nitrogen_quota[0] == pytest.approx(quota_c * 16.0 / 106.0 * 1e-9)
    assert traits.half_sat_uptake[0] == pytest.approx(0.17 * v ** 0.27)
    assert all(r == 0.03 for r in traits.respiration_rate)


def test_heterotroph_groups_have_no_uptake_capacity():
    traits = build_traits(REF_VOLUMES, (0, 2, 4, 6))
    assert traits.vmax_uptake[2] == pytest.approx(9.1e-9 * (10 ** 1.5) ** 0.67)
    for i in (1, 3, 5, 7):
        assert traits.vmax_uptake[i] == 0.0
        assert traits.specific_vmax[i] == 0.0
    assert traits.indices(GuildRole.AUTOTROPH) == [0, 2, 4, 6]
    assert traits.indices(GuildRole.HETEROTROPH) == [1, 3, 5, 7]


def test_roles_come_from_uptake_capacity_not_parity():
    traits = build_traits([10.0, 20.0, 30.0], (1,))
    assert traits.roles == (GuildRole.HETEROTROPH, GuildRole.AUTOTROPH, GuildRole.HETEROTROPH)


def test_specific_vmax_decreases_with_size():
    traits = build_traits(REF_VOLUMES, (0, 2, 4, 6))
    specific = [traits.specific_vmax[i] for i in (0, 2, 4, 6)]
    assert specific == sorted(specific, reverse=True)
    assert specific[0] == pytest.approx(traits.vmax_uptake[0] / traits.nitrogen_quota[0])


def test_tables_are_read_only():
    traits = build_traits(REF_VOLUMES, (0,))
    with pytest.raises(ValueError):
        traits.vmax_uptake[0] = 1.0


@pytest.mark.parametrize("vols", [[10.0, 0.0], [10.0, -1.0], [math.nan]])
def test_non_positive_volume_is_rejected(vols):
    with pytest.raises(InvalidConfiguration):
        build_traits(vols, (0,))


def test_autotroph_index_out_of_range():
    with pytest.raises(InvalidConfiguration):
        build_traits([10.0, 10.0], (0, 2))


def test_dump_traits_logs_each_table():
    lines = []
    dump_traits(build_traits(REF_VOLUMES, (0, 2, 4, 6)), log=lines.append)
    assert any(ln.startswith("vmaxN:") for ln in lines)
    assert any(ln.startswith("specVmaxN:") for ln in lines)
    assert any(ln.startswith("kn:") for ln in lines)

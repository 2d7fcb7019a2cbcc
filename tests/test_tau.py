import logging

import pytest

from pfr_entropy.additive.ruzsa import ruzsa_distance
from pfr_entropy.additive.tau import tau, tau_landscape, tau_minimizer
from pfr_entropy.config import DEFAULT_ETA
from pfr_entropy.distribution import FiniteDistribution
from pfr_entropy.groups import FiniteAbelianGroup

G = FiniteAbelianGroup.elementary_abelian(2, 2)


def _family():
    return {
        "U_H": FiniteDistribution.uniform([(0, 0), (1, 0)]),
        "U_G": FiniteDistribution.uniform(G.elements()),
        "delta": FiniteDistribution.point_mass((0, 0)),
        "skew": FiniteDistribution([(0, 0), (0, 1), (1, 1)], [0.5, 0.25, 0.25]),
    }


def test_tau_formula():
    fam = _family()
    X01, X02 = fam["skew"], fam["U_H"]
    value = tau(fam["U_G"], fam["delta"], X01, X02, G)
    expected = (
        ruzsa_distance(fam["U_G"], fam["delta"], G)
        + DEFAULT_ETA * ruzsa_distance(X01, fam["U_G"], G)
        + DEFAULT_ETA * ruzsa_distance(X02, fam["delta"], G)
    )
    assert value == pytest.approx(expected)
    with pytest.raises(ValueError):
        tau(X01, X02, X01, X02, G, eta=-1.0)


def test_landscape_covers_every_pair():
    fam = _family()
    table = tau_landscape(fam, list(fam.values())[:2], fam["skew"], fam["U_H"], G)
    assert len(table) == 4 * 2
    assert set(table["candidate2"]) == {"c0", "c1"}
    row = table[(table["candidate1"] == "U_G") & (table["j"] == 0)].iloc[0]
    assert row["tau"] == pytest.approx(tau(fam["U_G"], fam["U_H"], fam["skew"], fam["U_H"], G))


def test_minimizer_attains_landscape_minimum():
    fam = _family()
    result = tau_minimizer(fam, fam, fam["skew"], fam["U_H"], G, eta=0.2, logger=logging.getLogger(__name__))
    assert result.tau == pytest.approx(result.landscape["tau"].min())
    assert (result.landscape["tau"] >= result.tau - 1e-12).all()
    chosen = result.landscape.iloc[result.i * len(fam) + result.j]
    assert chosen["candidate1"] == result.candidate1
    assert chosen["candidate2"] == result.candidate2
    assert result.tau >= 0.0

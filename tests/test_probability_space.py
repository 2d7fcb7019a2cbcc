import itertools

import pytest

from pfr_entropy.distribution import FiniteDistribution
from pfr_entropy.errors import DomainMismatch
from pfr_entropy.probability_space import (
    ProbabilitySpace,
    cond_independent_copies,
    ident_distrib,
    independent_copies,
    is_cond_independent,
    is_independent,
    joint_space,
    pair,
)


def _mod_two_space():
    space = ProbabilitySpace(FiniteDistribution.uniform([0, 1, 2, 3]))
    X = space.variable(lambda w: w, name="X")
    Y = space.variable(lambda w: w % 2, name="Y")
    return space, X, Y


def test_law_and_declared_codomain():
    space, X, Y = _mod_two_space()
    assert Y.law().as_dict() == pytest.approx({0: 0.5, 1: 0.5})
    Z = space.variable(lambda w: w // 2, codomain=[0, 1, 2])
    assert Z.law().mass(2) == 0.0
    with pytest.raises(DomainMismatch):
        space.variable(lambda w: w, codomain=[0, 1])


def test_pair_requires_common_space():
    space, X, Y = _mod_two_space()
    XY = pair(X, Y)
    assert XY.law().mass((3, 1)) == pytest.approx(0.25)
    assert XY.law().mass((3, 0)) == 0.0
    other = ProbabilitySpace(FiniteDistribution.uniform(["h", "t"]))
    coin = other.variable(lambda w: w)
    with pytest.raises(DomainMismatch):
        pair(X, coin)


def test_pair_rejects_same_points_with_different_measures():
    fair = ProbabilitySpace(FiniteDistribution.uniform([0, 1]))
    biased = ProbabilitySpace(FiniteDistribution([0, 1], [0.9, 0.1]))
    X = fair.variable(lambda w: w)
    Y = biased.variable(lambda w: w)
    with pytest.raises(DomainMismatch):
        pair(X, Y)
    with pytest.raises(DomainMismatch):
        pair(Y, X)
    # an equal measure on the same points is the same space
    twin = ProbabilitySpace(FiniteDistribution.uniform([0, 1]))
    Z = twin.variable(lambda w: 1 - w)
    assert pair(X, Z).law().mass((0, 1)) == pytest.approx(0.5)


def test_independent_copies_preserve_laws():
    space, X, Y = _mod_two_space()
    biased = FiniteDistribution(["h", "t"], [0.3, 0.7])
    X1, C1 = independent_copies(X, biased)
    assert ident_distrib(X1, X)
    assert ident_distrib(C1, biased)
    assert is_independent(X1, C1)
    assert not is_independent(X, Y)


def test_cond_independent_copies():
    variables = joint_space(
        [(0, 0), (1, 0), (1, 1), (2, 1)],
        [0.1, 0.4, 0.3, 0.2],
        ["X", "Y"],
    )
    X, Y = variables["X"], variables["Y"]
    (X1, Y1), (X2, Y2) = cond_independent_copies(X, Y)
    assert ident_distrib(pair(X1, Y1), pair(X, Y))
    assert ident_distrib(pair(X2, Y2), pair(X, Y))
    for w in X1.space.points:
        assert Y1(w) == Y2(w)
    assert is_cond_independent(X1, X2, Y1)


def test_conditional_measure_changes_law():
    space, X, Y = _mod_two_space()
    even = space.measure.condition(Y.fibre(0))
    assert X.law(even).as_dict() == pytest.approx({0: 0.5, 1: 0.0, 2: 0.5, 3: 0.0})
    with pytest.raises(DomainMismatch):
        X.law(FiniteDistribution.uniform([0, 1]))


def test_joint_space_coordinates():
    outcomes = list(itertools.product([0, 1], ["a", "b"]))
    variables = joint_space(outcomes, [0.25] * 4, ["bit", "letter"], codomains={"letter": ["a", "b", "c"]})
    assert variables["letter"].codomain == ("a", "b", "c")
    assert is_independent(variables["bit"], variables["letter"])
    with pytest.raises(ValueError):
        joint_space([(0,)], [1.0], ["a", "b"])

import itertools
import math

import numpy as np
import pytest

from pfr_entropy.distribution import FiniteDistribution
from pfr_entropy.errors import DomainMismatch
from pfr_entropy.invariant_runtime import InvariantContext, reset_invariant_context, set_invariant_context
from pfr_entropy.measures.entropy import (
    cond_entropy,
    cond_mutual_information,
    entropy,
    entropy_of_uniform,
    joint_entropy,
    kernel_entropy,
    law_entropy,
    max_entropy,
    mutual_information,
)
from pfr_entropy.measures.kernel import cond_distrib
from pfr_entropy.probability_space import (
    ProbabilitySpace,
    cond_independent_copies,
    independent_copies,
    joint_space,
    pair,
)

TOL = 1e-9


def _random_triple(seed: int):
    rng = np.random.default_rng(seed)
    outcomes = list(itertools.product(range(2), range(3), range(2)))
    masses = rng.dirichlet(np.ones(len(outcomes)))
    v = joint_space(outcomes, masses, ["X", "Y", "Z"])
    return v["X"], v["Y"], v["Z"]


def test_uniform_mod_two_example():
    space = ProbabilitySpace(FiniteDistribution.uniform([0, 1, 2, 3]))
    X = space.variable(lambda w: w, name="X")
    Y = space.variable(lambda w: w % 2, name="Y")
    assert entropy(X) == pytest.approx(math.log(4))
    assert entropy(Y) == pytest.approx(math.log(2))
    assert cond_entropy(X, Y) == pytest.approx(math.log(2))
    assert mutual_information(X, Y) == pytest.approx(math.log(2))
    assert cond_entropy(Y, X) == pytest.approx(0.0, abs=TOL)


def test_entropy_bounds_and_uniform_equality():
    rng = np.random.default_rng(7)
    for n in (1, 2, 5, 8):
        p = FiniteDistribution(range(n), rng.dirichlet(np.ones(n)))
        h = law_entropy(p)
        assert -TOL <= h <= math.log(n) + TOL
        if n > 1:
            assert h < math.log(n) - 1e-6
        assert law_entropy(FiniteDistribution.uniform(range(n))) == pytest.approx(math.log(n))
    assert entropy_of_uniform(["a", "b", "c", "a"]) == pytest.approx(math.log(3))
    with pytest.raises(ValueError):
        entropy_of_uniform([])


def test_mutual_information_needs_one_measure():
    fair = ProbabilitySpace(FiniteDistribution.uniform([0, 1]))
    biased = ProbabilitySpace(FiniteDistribution([0, 1], [0.9, 0.1]))
    X = fair.variable(lambda w: w)
    Y = biased.variable(lambda w: w)
    with pytest.raises(DomainMismatch):
        mutual_information(X, Y)
    with pytest.raises(DomainMismatch):
        mutual_information(Y, X)


def test_max_entropy_uses_declared_codomain():
    space = ProbabilitySpace(FiniteDistribution.uniform([0, 1]))
    X = space.variable(lambda w: w, codomain=[0, 1, 2, 3])
    assert max_entropy(X) == pytest.approx(math.log(4))
    assert entropy(X) == pytest.approx(math.log(2))
    assert not X.law().is_uniform()


def test_injective_relabelling_and_identical_laws():
    X, Y, _ = _random_triple(1)
    relabelled = X.map(lambda x: 10 * x + 3)
    assert entropy(relabelled) == pytest.approx(entropy(X))
    (copy,) = independent_copies(Y)
    assert entropy(copy) == pytest.approx(entropy(Y))
    # a non-injective map can only lose entropy
    assert entropy(Y.map(lambda y: min(y, 1))) <= entropy(Y) + TOL


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_chain_rule_and_submodularity(seed):
    X, Y, Z = _random_triple(seed)
    h_xy = joint_entropy(X, Y)
    assert h_xy == pytest.approx(entropy(Y) + cond_entropy(X, Y))
    assert h_xy == pytest.approx(entropy(X) + cond_entropy(Y, X))
    assert 0.0 <= cond_entropy(X, Y) <= entropy(X) + TOL
    assert cond_entropy(X, pair(Y, Z)) <= cond_entropy(X, Z) + TOL
    assert joint_entropy(X, Y, Z) + entropy(Z) <= joint_entropy(X, Z) + joint_entropy(Y, Z) + TOL
    assert mutual_information(X, Y) == pytest.approx(mutual_information(Y, X))
    assert mutual_information(X, Y) >= 0.0
    assert cond_mutual_information(X, Y, Z) >= 0.0
    # I[X:Y|Z] = H[X|Z] + H[Y|Z] - H[X,Y|Z]
    assert cond_mutual_information(X, Y, Z) == pytest.approx(
        cond_entropy(X, Z) + cond_entropy(Y, Z) - cond_entropy(pair(X, Y), Z), abs=TOL
    )


def test_independence_gives_zero_mutual_information():
    p = FiniteDistribution([0, 1, 2], [0.2, 0.5, 0.3])
    q = FiniteDistribution(["a", "b"], [0.6, 0.4])
    X, Y = independent_copies(p, q)
    assert mutual_information(X, Y) == pytest.approx(0.0, abs=TOL)
    assert joint_entropy(X, Y) == pytest.approx(entropy(p) + entropy(q))


def test_conditionally_independent_copies_have_zero_cmi():
    v = joint_space([(0, 0), (1, 0), (1, 1), (2, 1)], [0.1, 0.4, 0.3, 0.2], ["X", "Y"])
    (X1, Y1), (X2, _) = cond_independent_copies(v["X"], v["Y"])
    assert cond_mutual_information(X1, X2, Y1) == pytest.approx(0.0, abs=TOL)
    assert mutual_information(X1, X2) > 1e-6


def test_zero_measure_gives_zero_everywhere():
    X, Y, Z = _random_triple(4)
    zero = FiniteDistribution.zero(X.space.points)
    assert entropy(X, zero) == 0.0
    assert cond_entropy(X, Y, zero) == 0.0
    assert mutual_information(X, Y, zero) == 0.0
    assert cond_mutual_information(X, Y, Z, zero) == 0.0


def test_kernel_view_of_conditional_entropy():
    X, Y, _ = _random_triple(5)
    kernel = cond_distrib(X, Y)
    law_y = Y.law()
    assert kernel_entropy(kernel, law_y) == pytest.approx(cond_entropy(X, Y))
    assert kernel.marginal(law_y).same_law(X.law())
    assert kernel.comp_prod(law_y).same_law(pair(Y, X).law())
    relabelled = kernel.map(lambda x: -x)
    assert kernel_entropy(relabelled, law_y) == pytest.approx(cond_entropy(X, Y))


def test_kernel_rows_cover_only_charged_values():
    v = joint_space([(0, 0, 0), (1, 1, 1), (1, 2, 0)], [0.5, 0.25, 0.25], ["X", "Y", "Z"])
    YZ = pair(v["Y"], v["Z"])
    assert len(YZ.codomain) == 6
    ctx = InvariantContext(scenario_name="sparse_pair")
    token = set_invariant_context(ctx)
    try:
        kernel = cond_distrib(v["X"], YZ)
        h = cond_entropy(v["X"], YZ)
    finally:
        reset_invariant_context(token)
    assert set(kernel.source) == {(0, 0), (1, 1), (2, 0)}
    assert h == pytest.approx(0.0, abs=TOL)
    assert "zero_measure_conditioning" not in ctx.summary()["fallbacks"]

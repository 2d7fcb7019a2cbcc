import math

import numpy as np
import pytest

from pfr_entropy.distribution import FiniteDistribution
from pfr_entropy.errors import DomainMismatch
from pfr_entropy.invariant_runtime import InvariantContext, reset_invariant_context, set_invariant_context


def test_uniform_and_point_mass():
    u = FiniteDistribution.uniform([0, 1, 2, 3])
    assert u.is_uniform()
    assert u.mass(2) == pytest.approx(0.25)
    delta = FiniteDistribution.point_mass("a", outcomes=["a", "b"])
    assert delta.support() == ("a",)
    assert not delta.is_uniform()


def test_rejects_invalid_tables():
    with pytest.raises(ValueError):
        FiniteDistribution([0, 1], [0.5, -0.5])
    with pytest.raises(ValueError):
        FiniteDistribution([0, 1], [0.25, 0.25])  # total neither 0 nor 1
    with pytest.raises(ValueError):
        FiniteDistribution([0, 0], [0.5, 0.5])
    with pytest.raises(ValueError):
        FiniteDistribution([0, 1], [1.0])


def test_zero_measure_is_allowed():
    z = FiniteDistribution([0, 1, 2], [0.0, 0.0, 0.0])
    assert z.is_zero()
    assert z.total == 0.0
    assert z.support() == ()
    assert not z.is_uniform()


def test_pushforward_sums_fibres():
    u = FiniteDistribution.uniform([0, 1, 2, 3])
    parity = u.pushforward(lambda x: x % 2)
    assert parity.as_dict() == pytest.approx({0: 0.5, 1: 0.5})
    with pytest.raises(DomainMismatch):
        u.pushforward(lambda x: x % 2, outcomes=[0])


def test_condition_and_null_event():
    u = FiniteDistribution.uniform([0, 1, 2, 3])
    cond = u.condition(lambda x: x >= 2)
    assert cond.as_dict() == pytest.approx({0: 0.0, 1: 0.0, 2: 0.5, 3: 0.5})
    assert u.condition([1]).mass(1) == pytest.approx(1.0)

    ctx = InvariantContext(scenario_name="null_event")
    token = set_invariant_context(ctx)
    try:
        null = u.condition(lambda x: x > 10)
    finally:
        reset_invariant_context(token)
    assert null.is_zero()
    assert [r.fallback_id for r in ctx.fallback_log] == ["zero_measure_conditioning"]


def test_mixture_and_domain_checks():
    p = FiniteDistribution([0, 1], [1.0, 0.0])
    q = FiniteDistribution([1, 0], [1.0, 0.0])  # same space, other order
    mix = FiniteDistribution.mixture([0.3, 0.7], [p, q])
    assert mix.mass(0) == pytest.approx(0.3)
    assert mix.mass(1) == pytest.approx(0.7)
    with pytest.raises(DomainMismatch):
        FiniteDistribution.mixture([0.5, 0.5], [p, FiniteDistribution.uniform([0, 1, 2])])
    with pytest.raises(ValueError):
        FiniteDistribution.mixture([0.5, 0.6], [p, q])


def test_reindex_same_law_and_product():
    p = FiniteDistribution([0, 1], [0.25, 0.75])
    wide = p.reindex([0, 1, 2])
    assert wide.mass(2) == 0.0
    assert wide.same_law(p)
    with pytest.raises(DomainMismatch):
        p.reindex([1, 2])
    with pytest.raises(DomainMismatch):
        p.mass(5)

    prod = p.product(FiniteDistribution.uniform(["a", "b"]))
    assert prod.mass((1, "b")) == pytest.approx(0.375)
    assert math.isclose(prod.total, 1.0)
    assert np.all(prod.masses >= 0.0)


def test_masses_are_read_only():
    p = FiniteDistribution([0, 1], [0.5, 0.5])
    with pytest.raises(ValueError):
        p.masses[0] = 1.0

"""
Entropic Ruzsa distance over a finite abelian group.

d[X ; Y] = H[X' - Y'] - H[X]/2 - H[Y]/2 where X', Y' are independent copies
of X and Y. The conditional version averages d over the fibres of the
conditioning variables with product weights P(Z=z) P(W=w).
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Tuple

from ..distribution import FiniteDistribution
from ..groups import FiniteAbelianGroup
from ..probability_space import RandomVariable, _require_same_space, as_law, independent_copies
from ..measures.entropy import entropy, law_entropy


def _combine_law(X, Y, group: FiniteAbelianGroup, op, mu=None, mu_prime=None) -> FiniteDistribution:
    x_copy, y_copy = independent_copies(group.law_of(X, mu), group.law_of(Y, mu_prime))
    combined = RandomVariable(x_copy.space, lambda w: op(x_copy(w), y_copy(w)), codomain=group.elements())
    return combined.law()


def sum_law(X, Y, group: FiniteAbelianGroup, mu=None, mu_prime=None) -> FiniteDistribution:
    """Law of X' + Y' for independent copies."""

    return _combine_law(X, Y, group, group.add, mu, mu_prime)


def difference_law(X, Y, group: FiniteAbelianGroup, mu=None, mu_prime=None) -> FiniteDistribution:
    """Law of X' - Y' for independent copies."""

    return _combine_law(X, Y, group, group.sub, mu, mu_prime)


def ruzsa_distance(X, Y, group: FiniteAbelianGroup, mu=None, mu_prime=None) -> float:
    """d[X ; mu # Y ; mu']."""

    h_diff = law_entropy(difference_law(X, Y, group, mu, mu_prime))
    return h_diff - entropy(X, mu) / 2.0 - entropy(Y, mu_prime) / 2.0


def _fibres(X, Z: Optional[RandomVariable], mu) -> List[Tuple[float, FiniteDistribution]]:
    if Z is None:
        return [(1.0, as_law(X, mu))]
    if not isinstance(X, RandomVariable):
        raise TypeError("conditioning requires X to be a RandomVariable")
    mu = _require_same_space(X, Z).check_measure(mu)
    return [(p_z, X.law(mu.condition(Z.fibre(z)))) for z, p_z in Z.law(mu).items() if p_z > 0.0]


def cond_ruzsa_distance(
    X,
    Y,
    group: FiniteAbelianGroup,
    Z: Optional[RandomVariable] = None,
    W: Optional[RandomVariable] = None,
    mu: Optional[FiniteDistribution] = None,
    mu_prime: Optional[FiniteDistribution] = None,
) -> float:
    """d[X | Z ; Y | W] = sum_{z,w} P(Z=z) P(W=w) d[X | Z=z ; Y | W=w]."""

    total = 0.0
    for p_z, law_x in _fibres(X, Z, mu):
        for p_w, law_y in _fibres(Y, W, mu_prime):
            total += p_z * p_w * ruzsa_distance(law_x, law_y, group)
    return total


def doubling_constant(A: Iterable, group: FiniteAbelianGroup) -> float:
    """|A + A| / |A|."""

    A = list(dict.fromkeys(A))
    if not A:
        raise ValueError("A must be non-empty")
    return len(group.sumset(A, A)) / len(A)


def set_ruzsa_distance(A: Iterable, B: Iterable, group: FiniteAbelianGroup) -> float:
    """d[U_A ; U_B] for uniform variables on A and B."""

    A = list(dict.fromkeys(A))
    B = list(dict.fromkeys(B))
    if not A or not B:
        raise ValueError("A and B must be non-empty")
    return ruzsa_distance(FiniteDistribution.uniform(A), FiniteDistribution.uniform(B), group)


def difference_bound(A: Iterable, group: FiniteAbelianGroup) -> float:
    """log(|A - A| / |A|), an upper bound for d[U_A ; U_A]."""

    A = list(dict.fromkeys(A))
    if not A:
        raise ValueError("A must be non-empty")
    return math.log(len(group.difference_set(A, A)) / len(A))

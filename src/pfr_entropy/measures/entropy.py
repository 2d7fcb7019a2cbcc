"""
Shannon entropy engine (natural log, nats).

H[X] = sum_x p(x) (-log p(x)) with 0 * log(1/0) = 0. Conditional entropy is
the kernel entropy of the conditional distribution of X given Y averaged
under the law of Y; conditional mutual information averages I[X:Y] over the
fibres of Z. Every quantity over the zero measure is 0.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

import numpy as np

from ..config import NONNEG_TOLERANCE
from ..distribution import FiniteDistribution
from ..invariant_runtime import clamp_nonnegative
from ..probability_space import RandomVariable, _require_same_space, as_law, pair
from .kernel import Kernel, cond_distrib


def law_entropy(p: FiniteDistribution) -> float:
    """Entropy of a mass table."""

    m = p.masses[p.masses > 0.0]
    if m.size == 0:
        return 0.0
    value = float(-np.sum(m * np.log(m)))
    return clamp_nonnegative(value, "entropy_nonneg", NONNEG_TOLERANCE)


def entropy(X, mu: Optional[FiniteDistribution] = None) -> float:
    """H[X] under mu (default: the space's measure). X may also be a mass table."""

    return law_entropy(as_law(X, mu))


def max_entropy(X) -> float:
    """log of the outcome-space size: the upper bound for H[X]."""

    n = len(X.codomain) if isinstance(X, RandomVariable) else len(X)
    return math.log(n) if n > 0 else 0.0


def entropy_of_uniform(A: Iterable) -> float:
    """H[U_A] = log |A|."""

    A = list(dict.fromkeys(A))
    if not A:
        raise ValueError("A must be non-empty")
    return law_entropy(FiniteDistribution.uniform(A))


def kernel_entropy(kernel: Kernel, mu: FiniteDistribution) -> float:
    """H[kappa, mu] = sum_y mu(y) H[kappa(y)]."""

    return float(sum(w * law_entropy(kernel[y]) for y, w in mu.items() if w > 0.0))


def cond_entropy(X: RandomVariable, Y: RandomVariable, mu: Optional[FiniteDistribution] = None) -> float:
    """H[X | Y] = sum_y P(Y=y) H[X | Y=y]."""

    return kernel_entropy(cond_distrib(X, Y, mu), Y.law(mu))


def joint_entropy(*variables: RandomVariable, mu: Optional[FiniteDistribution] = None) -> float:
    return entropy(pair(*variables), mu)


def mutual_information(X: RandomVariable, Y: RandomVariable, mu: Optional[FiniteDistribution] = None) -> float:
    """I[X:Y] = H[X] + H[Y] - H[X,Y]."""

    value = entropy(X, mu) + entropy(Y, mu) - joint_entropy(X, Y, mu=mu)
    return clamp_nonnegative(value, "mutual_information_nonneg", NONNEG_TOLERANCE)


def cond_mutual_information(
    X: RandomVariable,
    Y: RandomVariable,
    Z: RandomVariable,
    mu: Optional[FiniteDistribution] = None,
) -> float:
    """I[X:Y | Z] = sum_z P(Z=z) I[X:Y] under mu conditioned on {Z=z}."""

    mu = _require_same_space(X, Y, Z).check_measure(mu)
    total = 0.0
    for z, p_z in Z.law(mu).items():
        if p_z <= 0.0:
            continue
        total += p_z * mutual_information(X, Y, mu.condition(Z.fibre(z)))
    return clamp_nonnegative(total, "cond_mutual_information_nonneg", NONNEG_TOLERANCE)

"""
Kullback-Leibler divergence engine.

KL(X || Y) = sum_x P(X=x) log(P(X=x) / P(Y=x)), defined only when the law of
Y dominates the law of X; otherwise NotAbsolutelyContinuous is raised rather
than returning inf. Convexity is computed outcome by outcome through the
log-sum inequality so the equality case (a common ratio a_s = r * b_s) is
reported alongside the bound.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config import IDENTITY_TOLERANCE, NONNEG_TOLERANCE
from ..distribution import FiniteDistribution, Outcome
from ..errors import DomainMismatch, NotAbsolutelyContinuous
from ..groups import FiniteAbelianGroup
from ..invariant_runtime import clamp_nonnegative, require_invariant
from ..probability_space import RandomVariable, _require_same_space, as_law

logger = logging.getLogger(__name__)


def kl_laws(p: FiniteDistribution, q: FiniteDistribution) -> float:
    """KL divergence between two mass tables; outcomes missing from either side carry zero mass."""

    keys = tuple(dict.fromkeys(p.outcomes + q.outcomes))
    pm = np.array([p.mass(x) if x in p else 0.0 for x in keys], dtype=np.float64)
    qm = np.array([q.mass(x) if x in q else 0.0 for x in keys], dtype=np.float64)
    charged = pm > 0.0
    uncovered = [x for x, hit, b in zip(keys, charged, qm) if hit and b <= 0.0]
    if uncovered:
        raise NotAbsolutelyContinuous(uncovered)
    if not charged.any():
        return 0.0
    value = float(np.sum(pm[charged] * np.log(pm[charged] / qm[charged])))
    return clamp_nonnegative(value, "kl_nonneg", NONNEG_TOLERANCE)


def kl_divergence(X, Y, mu: Optional[FiniteDistribution] = None, mu_prime: Optional[FiniteDistribution] = None) -> float:
    """KL[X ; mu # Y ; mu']. X and Y may live on different sample spaces."""

    return kl_laws(as_law(X, mu), as_law(Y, mu_prime))


def cond_kl_divergence(
    X: RandomVariable,
    Y,
    Z: RandomVariable,
    mu: Optional[FiniteDistribution] = None,
    mu_prime: Optional[FiniteDistribution] = None,
) -> float:
    """KL(X | Z || Y) = sum_z P(Z=z) KL(X | Z=z || Y)."""

    mu = _require_same_space(X, Z).check_measure(mu)
    law_y = as_law(Y, mu_prime)
    total = 0.0
    for z, p_z in Z.law(mu).items():
        if p_z <= 0.0:
            continue
        total += p_z * kl_laws(X.law(mu.condition(Z.fibre(z))), law_y)
    return total


@dataclass
class LogSumResult:
    """sum a log(sum a / sum b) <= sum a_i log(a_i / b_i), with its equality case."""

    lhs: float
    rhs: float
    gap: float
    equality: bool
    proportional: bool
    ratio: Optional[float]


def log_sum_inequality(a: Sequence[float], b: Sequence[float], atol: float = IDENTITY_TOLERANCE) -> LogSumResult:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError("a and b must have the same shape")
    if np.any(a < 0.0) or np.any(b < 0.0):
        raise ValueError("a and b must be nonnegative")
    uncovered = np.where((a > 0.0) & (b <= 0.0))[0]
    if uncovered.size:
        raise NotAbsolutelyContinuous(uncovered.tolist())
    sum_a = float(a.sum())
    sum_b = float(b.sum())
    pos = a > 0.0
    rhs = float(np.sum(a[pos] * np.log(a[pos] / b[pos]))) if pos.any() else 0.0
    lhs = sum_a * np.log(sum_a / sum_b) if sum_a > 0.0 else 0.0
    ratio = sum_a / sum_b if sum_b > 0.0 else None
    gap = rhs - float(lhs)
    proportional = ratio is not None and bool(np.all(np.abs(a - ratio * b) <= atol))
    return LogSumResult(
        lhs=float(lhs),
        rhs=rhs,
        gap=gap,
        equality=abs(gap) <= atol,
        proportional=proportional or sum_a == 0.0,
        ratio=ratio,
    )


@dataclass
class ConvexityResult:
    """KL of a mixture against the matching mixture of KLs."""

    mixture_kl: float
    weighted_kl: float
    gap: float
    holds: bool
    equality: bool
    ratios: Dict[Outcome, Optional[float]] = field(default_factory=dict)
    per_outcome: Dict[Outcome, LogSumResult] = field(default_factory=dict)


def kl_convexity(
    weights: Sequence[float],
    targets: Sequence,
    references: Sequence,
    atol: float = IDENTITY_TOLERANCE,
) -> ConvexityResult:
    """KL(sum w_s X_s || sum w_s Y_s) <= sum w_s KL(X_s || Y_s)."""

    if not (len(weights) == len(targets) == len(references)):
        raise ValueError("weights, targets and references must have equal length")
    p_laws = [as_law(t) for t in targets]
    q_laws = [as_law(r) for r in references]
    base = p_laws[0]
    for law in p_laws[1:] + q_laws:
        if not base.same_space(law):
            raise DomainMismatch("mixture components live on different outcome spaces")
    w = np.asarray(weights, dtype=np.float64)
    mix_p = FiniteDistribution.mixture(w, p_laws)
    mix_q = FiniteDistribution.mixture(w, q_laws)

    weighted = 0.0
    for weight, p, q in zip(w, p_laws, q_laws):
        if weight > 0.0:
            weighted += weight * kl_laws(p, q)
    mixture_kl = kl_laws(mix_p, mix_q)

    a_rows = np.array([w_s * base.align(p) for w_s, p in zip(w, p_laws)])
    b_rows = np.array([w_s * base.align(q) for w_s, q in zip(w, q_laws)])
    per_outcome: Dict[Outcome, LogSumResult] = {}
    for j, x in enumerate(base.outcomes):
        per_outcome[x] = log_sum_inequality(a_rows[:, j], b_rows[:, j], atol=atol)

    gap = weighted - mixture_kl
    equality = all(r.equality for r in per_outcome.values())
    logger.debug("KL convexity: mixture=%.6g weighted=%.6g gap=%.3g", mixture_kl, weighted, gap)
    return ConvexityResult(
        mixture_kl=mixture_kl,
        weighted_kl=weighted,
        gap=gap,
        holds=gap >= -atol,
        equality=equality,
        ratios={x: r.ratio for x, r in per_outcome.items()},
        per_outcome=per_outcome,
    )


@dataclass
class ConvolutionResult:
    """KL(X+Z || Y+Z) against KL(X || Y) for X, Y each independent of Z."""

    shifted_kl: float
    base_kl: float
    holds: bool
    convexity: ConvexityResult


def shift_law(p: FiniteDistribution, z, group: FiniteAbelianGroup) -> FiniteDistribution:
    """Law of X + z."""

    return p.pushforward(lambda x: group.add(x, z), outcomes=group.elements())


def kl_convolution(X, Y, Z, group: FiniteAbelianGroup, atol: float = IDENTITY_TOLERANCE) -> ConvolutionResult:
    """
    KL(X+Z || Y+Z) <= KL(X || Y) with Z independent of X and of Y.

    law(X+Z) = sum_z P(Z=z) law(X+z), so the shifted divergence is a convexity
    instance weighted by the law of Z; each shifted pair has divergence
    KL(X || Y) because translation is a bijection.
    """

    p_x = group.law_of(X)
    p_y = group.law_of(Y)
    p_z = group.law_of(Z)
    if p_z.is_zero():
        raise ValueError("Z must have a probability law")
    shifts = [(z, m) for z, m in p_z.items() if m > 0.0]
    weights = [m for _, m in shifts]
    targets: List[FiniteDistribution] = [shift_law(p_x, z, group) for z, _ in shifts]
    references: List[FiniteDistribution] = [shift_law(p_y, z, group) for z, _ in shifts]
    convexity = kl_convexity(weights, targets, references, atol=atol)
    base_kl = kl_laws(p_x, p_y)
    require_invariant(
        abs(convexity.weighted_kl - base_kl) <= atol,
        "kl_translation_invariance",
        "shifted divergences must average to KL(X || Y)",
        tolerance=atol,
        data={"weighted_kl": convexity.weighted_kl, "base_kl": base_kl},
    )
    return ConvolutionResult(
        shifted_kl=convexity.mixture_kl,
        base_kl=base_kl,
        holds=convexity.mixture_kl <= base_kl + atol,
        convexity=convexity,
    )

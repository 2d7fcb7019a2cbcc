"""
Numerical checks for the identity contracts.

Each check evaluates both sides of one identity on concrete variables or
laws and returns an IdentityCheck. A failed identity is reported, not raised;
the suite decides whether it is fatal. Precondition errors
(DomainMismatch, NotAbsolutelyContinuous) propagate, and so does
InvariantViolation from an engine's internal invariant (translation
invariance inside kl_convolution), which fails closed in every mode.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence

from ..config import IDENTITY_TOLERANCE
from ..groups import FiniteAbelianGroup
from ..measures.divergence import cond_kl_divergence, kl_convexity, kl_convolution, kl_divergence
from ..measures.entropy import (
    cond_entropy,
    cond_mutual_information,
    entropy,
    joint_entropy,
    max_entropy,
    mutual_information,
)
from ..probability_space import as_law, ident_distrib, is_cond_independent, is_independent, pair
from ..additive.ruzsa import ruzsa_distance


@dataclass
class IdentityCheck:
    identity_id: str
    lhs: float
    rhs: float
    relation: str
    gap: float
    holds: bool
    detail: Dict[str, Any] = field(default_factory=dict)


def _compare(identity_id: str, lhs: float, rhs: float, relation: str, tol: float, detail: Optional[Dict] = None) -> IdentityCheck:
    if relation == "==":
        gap = lhs - rhs
        holds = abs(gap) <= tol
    elif relation == "<=":
        gap = rhs - lhs
        holds = gap >= -tol
    elif relation == ">=":
        gap = lhs - rhs
        holds = gap >= -tol
    else:
        raise ValueError(f"unknown relation {relation!r}")
    return IdentityCheck(identity_id, float(lhs), float(rhs), relation, float(gap), bool(holds), dict(detail or {}))


def _iff(identity_id: str, left: bool, right: bool, detail: Optional[Dict] = None) -> IdentityCheck:
    lhs = 1.0 if left else 0.0
    rhs = 1.0 if right else 0.0
    return IdentityCheck(identity_id, lhs, rhs, "iff", lhs - rhs, left == right, dict(detail or {}))


def check_entropy_bounds(X, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    h = entropy(X)
    return _compare("entropy_bounds", h, max_entropy(X), "<=", tol, {"lower_ok": h >= -tol})


def check_uniform_iff_max_entropy(X, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    h = entropy(X)
    bound = max_entropy(X)
    at_max = abs(h - bound) <= tol
    return _iff("uniform_iff_max_entropy", at_max, as_law(X).is_uniform(), {"entropy": h, "log_n": bound})


def check_chain_rule(X, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    return _compare("chain_rule", joint_entropy(X, Y), entropy(Y) + cond_entropy(X, Y), "==", tol)


def check_chain_rule_swap(X, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    return _compare("chain_rule_swap", joint_entropy(X, Y), entropy(X) + cond_entropy(Y, X), "==", tol)


def check_conditioning_reduces_entropy(X, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    return _compare("conditioning_reduces_entropy", cond_entropy(X, Y), entropy(X), "<=", tol)


def check_mutual_information_symmetric(X, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    return _compare("mutual_information_symmetric", mutual_information(X, Y), mutual_information(Y, X), "==", tol)


def check_mutual_information_independence(X, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    info = mutual_information(X, Y)
    return _iff("mutual_information_independence", info <= tol, is_independent(X, Y), {"mutual_information": info})


def check_submodularity(X, Y, Z, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    return _compare("submodularity", cond_entropy(X, pair(Y, Z)), cond_entropy(X, Z), "<=", tol)


def check_entropy_submodularity(X, Y, Z, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    lhs = joint_entropy(X, Y, Z) + entropy(Z)
    rhs = joint_entropy(X, Z) + joint_entropy(Y, Z)
    return _compare("entropy_submodularity", lhs, rhs, "<=", tol)


def check_cond_mutual_information_independence(X, Y, Z, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    info = cond_mutual_information(X, Y, Z)
    return _iff(
        "cond_mutual_information_independence",
        info <= tol,
        is_cond_independent(X, Y, Z),
        {"cond_mutual_information": info},
    )


def check_kl_nonneg(X, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    return _compare("kl_nonneg", kl_divergence(X, Y), 0.0, ">=", tol)


def check_kl_zero_iff_equal(X, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    kl = kl_divergence(X, Y)
    return _iff("kl_zero_iff_equal", kl <= tol, ident_distrib(X, Y), {"kl": kl})


def check_kl_convexity(*pairs, weights: Sequence[float] = (), tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    if len(pairs) % 2 != 0 or not pairs:
        raise ValueError("kl_convexity expects alternating target/reference arguments")
    targets = list(pairs[0::2])
    references = list(pairs[1::2])
    result = kl_convexity(weights, targets, references, atol=tol)
    return _compare(
        "kl_convexity",
        result.mixture_kl,
        result.weighted_kl,
        "<=",
        tol,
        {"equality": result.equality, "ratios": {str(k): v for k, v in result.ratios.items()}},
    )


def _need_group(identity_id: str, group: Optional[FiniteAbelianGroup]) -> FiniteAbelianGroup:
    if group is None:
        raise ValueError(f"{identity_id} requires a group")
    return group


def check_kl_convolution(X, Y, Z, group: FiniteAbelianGroup = None, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    G = _need_group("kl_convolution", group)
    result = kl_convolution(X, Y, Z, G, atol=tol)
    return _compare("kl_convolution", result.shifted_kl, result.base_kl, "<=", tol, {"equality": result.convexity.equality})


def check_cond_kl_identity(X, Z, Y, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    lhs = cond_kl_divergence(X, Y, Z)
    rhs = kl_divergence(X, Y) + entropy(X) - cond_entropy(X, Z)
    return _compare("cond_kl_identity", lhs, rhs, "==", tol)


def check_ruzsa_symmetric(X, Y, group: FiniteAbelianGroup = None, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    G = _need_group("ruzsa_symmetric", group)
    return _compare("ruzsa_symmetric", ruzsa_distance(X, Y, G), ruzsa_distance(Y, X, G), "==", tol)


def check_ruzsa_lower_bound(X, Y, group: FiniteAbelianGroup = None, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    G = _need_group("ruzsa_lower_bound", group)
    lower = abs(entropy(X) - entropy(Y)) / 2.0
    return _compare("ruzsa_lower_bound", lower, ruzsa_distance(X, Y, G), "<=", tol)


def check_ruzsa_triangle(X, Y, Z, group: FiniteAbelianGroup = None, tol: float = IDENTITY_TOLERANCE, **_) -> IdentityCheck:
    G = _need_group("ruzsa_triangle", group)
    lhs = ruzsa_distance(X, Z, G)
    rhs = ruzsa_distance(X, Y, G) + ruzsa_distance(Y, Z, G)
    return _compare("ruzsa_triangle", lhs, rhs, "<=", tol)


IDENTITY_CHECKS: Dict[str, Callable[..., IdentityCheck]] = {
    "entropy_bounds": check_entropy_bounds,
    "uniform_iff_max_entropy": check_uniform_iff_max_entropy,
    "chain_rule": check_chain_rule,
    "chain_rule_swap": check_chain_rule_swap,
    "conditioning_reduces_entropy": check_conditioning_reduces_entropy,
    "mutual_information_symmetric": check_mutual_information_symmetric,
    "mutual_information_independence": check_mutual_information_independence,
    "submodularity": check_submodularity,
    "entropy_submodularity": check_entropy_submodularity,
    "cond_mutual_information_independence": check_cond_mutual_information_independence,
    "kl_nonneg": check_kl_nonneg,
    "kl_zero_iff_equal": check_kl_zero_iff_equal,
    "kl_convexity": check_kl_convexity,
    "kl_convolution": check_kl_convolution,
    "cond_kl_identity": check_cond_kl_identity,
    "ruzsa_symmetric": check_ruzsa_symmetric,
    "ruzsa_lower_bound": check_ruzsa_lower_bound,
    "ruzsa_triangle": check_ruzsa_triangle,
}


def run_identity(
    identity_id: str,
    args: Sequence[Any],
    group: Optional[FiniteAbelianGroup] = None,
    tol: float = IDENTITY_TOLERANCE,
    params: Optional[Dict[str, Any]] = None,
) -> IdentityCheck:
    """Dispatch a check by name."""

    key = identity_id.lower()
    if key not in IDENTITY_CHECKS:
        raise KeyError(f"Identity '{identity_id}' is not registered.")
    return IDENTITY_CHECKS[key](*args, group=group, tol=tol, **(params or {}))


"""
Finite sample spaces and random variables on them.

A RandomVariable is a deterministic function on the points of a
ProbabilitySpace. Its law is the pushforward of the space's measure (or of
an explicitly supplied measure on the same sample points, e.g. a conditional
measure). Independent copies are realised on a product space whose points are
tuples of outcomes, so each copy keeps its law exactly.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from .config import MASS_TOLERANCE
from .distribution import FiniteDistribution, Outcome
from .errors import DomainMismatch


class ProbabilitySpace:
    """A finite sample space carrying a measure (probability or zero)."""

    def __init__(self, measure: FiniteDistribution, name: Optional[str] = None):
        self.measure = measure
        self.name = name

    @classmethod
    def from_table(cls, points: Sequence[Hashable], masses: Sequence[float], name: Optional[str] = None) -> "ProbabilitySpace":
        return cls(FiniteDistribution(points, masses), name=name)

    @property
    def points(self) -> Tuple[Hashable, ...]:
        return self.measure.outcomes

    def check_measure(self, mu: Optional[FiniteDistribution]) -> FiniteDistribution:
        """Resolve `mu` (default: the space's own measure) and check it lives on this space."""

        if mu is None:
            return self.measure
        if mu.outcomes != self.measure.outcomes and not mu.same_space(self.measure):
            raise DomainMismatch("measure is not defined on this sample space")
        return mu

    def variable(self, fn: Callable[[Any], Outcome], codomain: Optional[Sequence[Outcome]] = None, name: Optional[str] = None) -> "RandomVariable":
        return RandomVariable(self, fn, codomain=codomain, name=name)

    def coordinate(self, i: int, codomain: Optional[Sequence[Outcome]] = None, name: Optional[str] = None) -> "RandomVariable":
        """Projection onto the i-th entry of tuple-valued sample points."""

        return RandomVariable(self, lambda w, i=i: w[i], codomain=codomain, name=name)

    def __repr__(self) -> str:
        label = self.name or "ProbabilitySpace"
        return f"{label}(n_points={len(self.points)})"


class RandomVariable:
    """Deterministic map from a ProbabilitySpace to a finite outcome space."""

    def __init__(
        self,
        space: ProbabilitySpace,
        fn: Callable[[Any], Outcome],
        codomain: Optional[Sequence[Outcome]] = None,
        name: Optional[str] = None,
    ):
        self.space = space
        self.fn = fn
        self.name = name
        if codomain is None:
            codomain = tuple(dict.fromkeys(fn(w) for w in space.points))
        self.codomain: Tuple[Outcome, ...] = tuple(codomain)
        declared = set(self.codomain)
        stray = [fn(w) for w in space.points if fn(w) not in declared]
        if stray:
            raise DomainMismatch(f"values outside the declared codomain: {stray[:5]}")

    def __call__(self, point: Any) -> Outcome:
        return self.fn(point)

    def law(self, mu: Optional[FiniteDistribution] = None) -> FiniteDistribution:
        """Pushforward of `mu` (default: the space's measure) along this variable."""

        return self.space.check_measure(mu).pushforward(self.fn, outcomes=self.codomain)

    def fibre(self, value: Outcome) -> Callable[[Any], bool]:
        """Event {X = value} as a predicate on sample points."""

        return lambda w: self.fn(w) == value

    def map(self, g: Callable[[Outcome], Outcome], codomain: Optional[Sequence[Outcome]] = None, name: Optional[str] = None) -> "RandomVariable":
        """Post-composition g o X."""

        fn = self.fn
        if codomain is None:
            codomain = tuple(dict.fromkeys(g(y) for y in self.codomain))
        return RandomVariable(self.space, lambda w: g(fn(w)), codomain=codomain, name=name)

    def __repr__(self) -> str:
        return f"RandomVariable({self.name or '?'}, |codomain|={len(self.codomain)})"


def _require_same_space(*variables: RandomVariable) -> ProbabilitySpace:
    space = variables[0].space
    for var in variables[1:]:
        if var.space is space:
            continue
        if var.space.points != space.points or not var.space.measure.same_law(space.measure):
            raise DomainMismatch("random variables are defined on different sample spaces")
    return space


def pair(*variables: RandomVariable, name: Optional[str] = None) -> RandomVariable:
    """Joint variable w -> (X1(w), ..., Xk(w)) on the common sample space."""

    if len(variables) < 2:
        raise ValueError("pair needs at least two variables")
    space = _require_same_space(*variables)
    fns = [v.fn for v in variables]
    codomain = list(itertools.product(*(v.codomain for v in variables)))
    label = name or "(" + ",".join(v.name or "?" for v in variables) + ")"
    return RandomVariable(space, lambda w: tuple(f(w) for f in fns), codomain=codomain, name=label)


def independent_copies(*sources, name: str = "independent_copies") -> List[RandomVariable]:
    """
    Independent copies of each source on a product space.

    Sources may be RandomVariables (their law under the default measure is
    used) or FiniteDistributions. The product space has tuple-valued points
    and the product measure; the i-th returned variable is the i-th
    coordinate, with the same law and codomain as the i-th source.
    """

    if not sources:
        raise ValueError("independent_copies needs at least one source")
    laws = [as_law(src) for src in sources]
    points: List[Tuple] = []
    masses: List[float] = []
    for combo in itertools.product(*(law.items() for law in laws)):
        points.append(tuple(x for x, _ in combo))
        masses.append(float(np.prod([m for _, m in combo])))
    space = ProbabilitySpace(FiniteDistribution(points, masses), name=name)
    copies = []
    for i, (src, law) in enumerate(zip(sources, laws)):
        label = getattr(src, "name", None)
        copies.append(space.coordinate(i, codomain=law.outcomes, name=f"{label}'" if label else None))
    return copies


def cond_independent_copies(X: RandomVariable, Y: RandomVariable, mu: Optional[FiniteDistribution] = None) -> Tuple[Tuple[RandomVariable, RandomVariable], Tuple[RandomVariable, RandomVariable]]:
    """
    Two copies (X1, Y1), (X2, Y2) of (X, Y) with Y1 = Y2 and X1, X2
    conditionally independent given Y1.

    Sample points are triples (x1, x2, y) weighted by
    P(Y=y) P(X=x1 | Y=y) P(X=x2 | Y=y).
    """

    space = _require_same_space(X, Y)
    mu = space.check_measure(mu)
    law_y = Y.law(mu)
    points: List[Tuple] = []
    masses: List[float] = []
    for y, p_y in law_y.items():
        cond_x = X.law(mu.condition(Y.fibre(y)))
        for (x1, m1), (x2, m2) in itertools.product(cond_x.items(), repeat=2):
            points.append((x1, x2, y))
            masses.append(p_y * m1 * m2)
    joint = ProbabilitySpace(FiniteDistribution(points, masses), name="cond_independent_copies")
    x1 = joint.coordinate(0, codomain=X.codomain, name="X1")
    x2 = joint.coordinate(1, codomain=X.codomain, name="X2")
    y1 = joint.coordinate(2, codomain=Y.codomain, name="Y1")
    y2 = joint.coordinate(2, codomain=Y.codomain, name="Y2")
    return (x1, y1), (x2, y2)


def joint_space(
    points: Sequence[Sequence[Outcome]],
    masses: Sequence[float],
    names: Sequence[str],
    codomains: Optional[Dict[str, Sequence[Outcome]]] = None,
) -> Dict[str, RandomVariable]:
    """Coordinate variables of an explicit joint mass table, keyed by name."""

    pts = [tuple(p) for p in points]
    for p in pts:
        if len(p) != len(names):
            raise ValueError(f"joint outcome {p!r} does not have {len(names)} coordinates")
    space = ProbabilitySpace(FiniteDistribution(pts, masses), name="joint")
    codomains = codomains or {}
    return {n: space.coordinate(i, codomain=codomains.get(n), name=n) for i, n in enumerate(names)}


def as_law(obj, mu: Optional[FiniteDistribution] = None) -> FiniteDistribution:
    """Law of a RandomVariable, or a FiniteDistribution passed through."""

    if isinstance(obj, FiniteDistribution):
        if mu is not None:
            raise ValueError("a measure override only applies to random variables")
        return obj
    if isinstance(obj, RandomVariable):
        return obj.law(mu)
    raise TypeError(f"expected RandomVariable or FiniteDistribution, got {type(obj).__name__}")


def ident_distrib(X, Y, mu: Optional[FiniteDistribution] = None, mu_prime: Optional[FiniteDistribution] = None, atol: float = MASS_TOLERANCE) -> bool:
    """X under mu and Y under mu_prime have the same law."""

    return as_law(X, mu).same_law(as_law(Y, mu_prime), atol=atol)


def is_independent(X: RandomVariable, Y: RandomVariable, mu: Optional[FiniteDistribution] = None, atol: float = MASS_TOLERANCE) -> bool:
    """Joint law equals the product of the marginals."""

    law_xy = pair(X, Y).law(mu)
    product = X.law(mu).product(Y.law(mu))
    return law_xy.same_law(product, atol=atol)


def is_cond_independent(X: RandomVariable, Y: RandomVariable, Z: RandomVariable, mu: Optional[FiniteDistribution] = None, atol: float = MASS_TOLERANCE) -> bool:
    """X and Y independent under every non-null conditional measure mu|{Z=z}."""

    mu = _require_same_space(X, Y, Z).check_measure(mu)
    for z, p_z in Z.law(mu).items():
        if p_z <= 0.0:
            continue
        if not is_independent(X, Y, mu=mu.condition(Z.fibre(z)), atol=atol):
            return False
    return True

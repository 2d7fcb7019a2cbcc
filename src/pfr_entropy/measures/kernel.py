"""
Markov kernels over finite spaces.

A Kernel maps each source outcome y to a law on a common target space. The
conditional distribution of X given Y is the kernel y -> law(X | Y = y) over
the values Y takes; under the zero measure every fibre maps to the zero measure.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator, Optional, Sequence, Tuple

import numpy as np

from ..distribution import FiniteDistribution, Outcome
from ..errors import DomainMismatch
from ..probability_space import RandomVariable, _require_same_space


class Kernel:
    def __init__(self, rows: Dict[Outcome, FiniteDistribution], target: Optional[Sequence[Outcome]] = None):
        if not rows:
            raise ValueError("kernel needs at least one row")
        first = next(iter(rows.values()))
        self.target: Tuple[Outcome, ...] = tuple(target) if target is not None else first.outcomes
        self._rows = {y: law.reindex(self.target) for y, law in rows.items()}

    @property
    def source(self) -> Tuple[Outcome, ...]:
        return tuple(self._rows.keys())

    def __getitem__(self, y: Outcome) -> FiniteDistribution:
        if y not in self._rows:
            raise DomainMismatch(f"kernel has no row for {y!r}")
        return self._rows[y]

    def rows(self) -> Iterator[Tuple[Outcome, FiniteDistribution]]:
        return iter(self._rows.items())

    def _weights(self, mu: FiniteDistribution) -> Iterator[Tuple[Outcome, float]]:
        for y, w in mu.items():
            if w <= 0.0:
                continue
            if y not in self._rows:
                raise DomainMismatch(f"measure charges {y!r}, which the kernel does not cover")
            yield y, w

    def marginal(self, mu: FiniteDistribution) -> FiniteDistribution:
        """Bind: x -> sum_y mu(y) kappa(y)(x)."""

        total = np.zeros(len(self.target))
        for y, w in self._weights(mu):
            total = total + w * self._rows[y].masses
        return FiniteDistribution(self.target, total)

    def comp_prod(self, mu: FiniteDistribution) -> FiniteDistribution:
        """Joint law of (y, x) with y ~ mu and x ~ kappa(y)."""

        joint: Dict[Tuple[Outcome, Outcome], float] = {}
        for y, w in self._weights(mu):
            for x, m in self._rows[y].items():
                joint[(y, x)] = w * m
        outcomes = [(y, x) for y in mu.outcomes for x in self.target]
        return FiniteDistribution.from_mapping(joint, outcomes=outcomes)

    def map(self, g: Callable[[Outcome], Outcome], outcomes: Optional[Sequence[Outcome]] = None) -> "Kernel":
        """Post-compose every row with g."""

        if outcomes is None:
            outcomes = tuple(dict.fromkeys(g(x) for x in self.target))
        return Kernel({y: law.pushforward(g, outcomes=outcomes) for y, law in self._rows.items()}, target=outcomes)


def cond_distrib(X: RandomVariable, Y: RandomVariable, mu: Optional[FiniteDistribution] = None) -> Kernel:
    """Kernel y -> law of X under mu conditioned on {Y = y}, one row per value Y takes with positive mass."""

    mu = _require_same_space(X, Y).check_measure(mu)
    values = Y.law(mu).support() or Y.codomain
    rows = {y: X.law(mu.condition(Y.fibre(y))) for y in values}
    if not rows:
        raise ValueError("conditioning variable has an empty codomain")
    return Kernel(rows, target=X.codomain)

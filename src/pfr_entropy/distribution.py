"""
Finite probability distributions over explicit outcome spaces.

A FiniteDistribution is an immutable mass table: an ordered tuple of distinct
hashable outcomes and a float64 mass vector. Masses are non-negative and the
total is either 0 (the zero measure) or 1 (a probability measure). Every
operation returns a new distribution.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .config import MASS_TOLERANCE
from .errors import DomainMismatch
from .invariant_runtime import record_fallback

logger = logging.getLogger(__name__)

Outcome = Hashable
Event = Union[Callable[[Any], bool], Iterable[Any]]


def _event_predicate(event: Event) -> Callable[[Any], bool]:
    if callable(event):
        return event
    members = set(event)
    return lambda x: x in members


class FiniteDistribution:
    """Mass table over a finite outcome space satisfying the zero-or-probability invariant."""

    __slots__ = ("_outcomes", "_masses", "_index")

    def __init__(self, outcomes: Sequence[Outcome], masses: Sequence[float], tolerance: float = MASS_TOLERANCE):
        outcomes = tuple(outcomes)
        arr = np.array(masses, dtype=np.float64).reshape(-1)
        if arr.shape[0] != len(outcomes):
            raise ValueError(f"got {arr.shape[0]} masses for {len(outcomes)} outcomes")
        index = {x: i for i, x in enumerate(outcomes)}
        if len(index) != len(outcomes):
            raise ValueError("outcomes must be distinct")
        if not np.all(np.isfinite(arr)):
            raise ValueError("masses must be finite")
        if np.any(arr < 0.0):
            raise ValueError("masses must be nonnegative")
        total = float(arr.sum())
        if abs(total) > tolerance and abs(total - 1.0) > tolerance:
            raise ValueError(f"total mass must be 0 or 1, got {total}")
        if total <= tolerance:
            arr = np.zeros_like(arr)
        arr.setflags(write=False)
        self._outcomes = outcomes
        self._masses = arr
        self._index = index

    # Constructors

    @classmethod
    def from_mapping(cls, mapping: Mapping[Outcome, float], outcomes: Optional[Sequence[Outcome]] = None) -> "FiniteDistribution":
        """Build from {outcome: mass}; `outcomes` may declare extra zero-mass outcomes."""

        if outcomes is None:
            outcomes = tuple(mapping.keys())
        else:
            outcomes = tuple(outcomes)
            declared = set(outcomes)
            missing = [x for x in mapping if x not in declared]
            if missing:
                raise DomainMismatch(f"mapping has outcomes outside the declared space: {missing}")
        return cls(outcomes, [float(mapping.get(x, 0.0)) for x in outcomes])

    @classmethod
    def uniform(cls, outcomes: Sequence[Outcome]) -> "FiniteDistribution":
        outcomes = tuple(outcomes)
        if not outcomes:
            return cls.zero(outcomes)
        return cls(outcomes, np.full(len(outcomes), 1.0 / len(outcomes)))

    @classmethod
    def point_mass(cls, outcome: Outcome, outcomes: Optional[Sequence[Outcome]] = None) -> "FiniteDistribution":
        outcomes = (outcome,) if outcomes is None else tuple(outcomes)
        if outcome not in outcomes:
            raise DomainMismatch(f"outcome {outcome!r} is not in the declared space")
        return cls(outcomes, [1.0 if x == outcome else 0.0 for x in outcomes])

    @classmethod
    def zero(cls, outcomes: Sequence[Outcome]) -> "FiniteDistribution":
        outcomes = tuple(outcomes)
        return cls(outcomes, np.zeros(len(outcomes)))

    @classmethod
    def mixture(cls, weights: Sequence[float], components: Sequence["FiniteDistribution"]) -> "FiniteDistribution":
        """Convex combination sum_s w_s * P_s over a shared outcome space."""

        w = np.asarray(weights, dtype=np.float64)
        if w.ndim != 1 or w.shape[0] != len(components) or w.shape[0] == 0:
            raise ValueError("weights and components must be non-empty and of equal length")
        if np.any(w < 0.0) or abs(float(w.sum()) - 1.0) > MASS_TOLERANCE:
            raise ValueError("mixture weights must be nonnegative and sum to 1")
        base = components[0]
        total = np.zeros(len(base))
        for weight, comp in zip(w, components):
            total = total + weight * base.align(comp)
        return cls(base.outcomes, total)

    # Accessors

    @property
    def outcomes(self) -> Tuple[Outcome, ...]:
        return self._outcomes

    @property
    def masses(self) -> np.ndarray:
        return self._masses

    @property
    def total(self) -> float:
        return float(self._masses.sum())

    def is_zero(self) -> bool:
        return not np.any(self._masses > 0.0)

    def __len__(self) -> int:
        return len(self._outcomes)

    def __contains__(self, outcome: Outcome) -> bool:
        return outcome in self._index

    def items(self) -> Iterator[Tuple[Outcome, float]]:
        for x, m in zip(self._outcomes, self._masses):
            yield x, float(m)

    def as_dict(self) -> Dict[Outcome, float]:
        return dict(self.items())

    def mass(self, outcome: Outcome) -> float:
        if outcome not in self._index:
            raise DomainMismatch(f"outcome {outcome!r} is not in this outcome space")
        return float(self._masses[self._index[outcome]])

    def prob(self, event: Event) -> float:
        pred = _event_predicate(event)
        return float(sum(m for x, m in zip(self._outcomes, self._masses) if pred(x)))

    def support(self) -> Tuple[Outcome, ...]:
        return tuple(x for x, m in zip(self._outcomes, self._masses) if m > 0.0)

    def same_space(self, other: "FiniteDistribution") -> bool:
        return set(self._outcomes) == set(other.outcomes)

    def align(self, other: "FiniteDistribution") -> np.ndarray:
        """Masses of `other` listed in this distribution's outcome order."""

        if not self.same_space(other):
            raise DomainMismatch("distributions live on different outcome spaces")
        return np.array([other.mass(x) for x in self._outcomes], dtype=np.float64)

    # Transformations

    def pushforward(self, fn: Callable[[Any], Outcome], outcomes: Optional[Sequence[Outcome]] = None) -> "FiniteDistribution":
        """Law of fn under this measure; `outcomes` fixes the codomain."""

        images = [fn(x) for x in self._outcomes]
        if outcomes is None:
            codomain: Tuple[Outcome, ...] = tuple(dict.fromkeys(images))
        else:
            codomain = tuple(outcomes)
        pos = {y: i for i, y in enumerate(codomain)}
        out = np.zeros(len(codomain))
        for y, m in zip(images, self._masses):
            if y not in pos:
                raise DomainMismatch(f"image {y!r} is outside the declared codomain")
            out[pos[y]] += m
        return FiniteDistribution(codomain, out)

    def condition(self, event: Event) -> "FiniteDistribution":
        """Conditional measure given `event`; the zero measure if the event is null."""

        pred = _event_predicate(event)
        keep = np.array([bool(pred(x)) for x in self._outcomes], dtype=bool)
        restricted = np.where(keep, self._masses, 0.0)
        p_event = float(restricted.sum())
        if p_event <= 0.0:
            logger.debug("Conditioning on a null event over %d outcomes; returning zero measure", len(self))
            record_fallback("zero_measure_conditioning", {"n_outcomes": len(self)})
            return FiniteDistribution.zero(self._outcomes)
        return FiniteDistribution(self._outcomes, restricted / p_event)

    def reindex(self, outcomes: Sequence[Outcome]) -> "FiniteDistribution":
        """Re-express on another outcome space that contains the support."""

        outcomes = tuple(outcomes)
        target = set(outcomes)
        lost = [x for x in self.support() if x not in target]
        if lost:
            raise DomainMismatch(f"charged outcomes missing from the new space: {lost}")
        return FiniteDistribution(outcomes, [self.mass(x) if x in self._index else 0.0 for x in outcomes])

    def product(self, other: "FiniteDistribution") -> "FiniteDistribution":
        """Product measure on pairs (x, y)."""

        outcomes = [(x, y) for x in self._outcomes for y in other.outcomes]
        return FiniteDistribution(outcomes, np.outer(self._masses, other.masses).reshape(-1))

    # Comparisons

    def same_law(self, other: "FiniteDistribution", atol: float = MASS_TOLERANCE) -> bool:
        """Equality of measures, missing outcomes counting as zero mass."""

        keys = dict.fromkeys(self._outcomes + tuple(other.outcomes))
        for x in keys:
            a = self.mass(x) if x in self else 0.0
            b = other.mass(x) if x in other else 0.0
            if abs(a - b) > atol:
                return False
        return True

    def is_uniform(self, atol: float = MASS_TOLERANCE) -> bool:
        """Uniform on the full outcome space."""

        n = len(self)
        if n == 0 or self.is_zero():
            return False
        return bool(np.all(np.abs(self._masses - 1.0 / n) <= atol))

    def __repr__(self) -> str:
        body = ", ".join(f"{x!r}: {m:.6g}" for x, m in self.items())
        return f"FiniteDistribution({{{body}}})"

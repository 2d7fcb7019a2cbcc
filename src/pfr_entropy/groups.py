"""
Finite abelian groups as products of cyclic groups Z/n1 x ... x Z/nk.

Elements of a single cyclic factor are plain ints; elements of a product are
tuples of ints. F_2^n is FiniteAbelianGroup([2] * n).
"""

from __future__ import annotations

import itertools
import numbers
from typing import Iterable, List, Sequence, Set, Tuple, Union

from .errors import DomainMismatch
from .probability_space import as_law

Element = Union[int, Tuple[int, ...]]


class FiniteAbelianGroup:
    def __init__(self, moduli: Sequence[int]):
        moduli = tuple(int(n) for n in moduli)
        if not moduli:
            raise ValueError("moduli must be non-empty")
        if any(n < 1 for n in moduli):
            raise ValueError("moduli must be positive")
        self.moduli = moduli

    @classmethod
    def cyclic(cls, n: int) -> "FiniteAbelianGroup":
        return cls([n])

    @classmethod
    def elementary_abelian(cls, p: int, rank: int) -> "FiniteAbelianGroup":
        return cls([p] * rank)

    @property
    def is_cyclic(self) -> bool:
        return len(self.moduli) == 1

    @property
    def order(self) -> int:
        total = 1
        for n in self.moduli:
            total *= n
        return total

    @property
    def zero(self) -> Element:
        return 0 if self.is_cyclic else tuple(0 for _ in self.moduli)

    def elements(self) -> List[Element]:
        if self.is_cyclic:
            return list(range(self.moduli[0]))
        return list(itertools.product(*(range(n) for n in self.moduli)))

    def _coords(self, a: Element) -> Tuple[int, ...]:
        coords = (a,) if self.is_cyclic and not isinstance(a, tuple) else a
        if not isinstance(coords, tuple) or len(coords) != len(self.moduli):
            raise DomainMismatch(f"{a!r} is not an element of Z/{self.moduli}")
        for c, n in zip(coords, self.moduli):
            if isinstance(c, bool) or not isinstance(c, numbers.Integral) or not 0 <= c < n:
                raise DomainMismatch(f"{a!r} is not an element of Z/{self.moduli}")
        return tuple(int(c) for c in coords)

    def _pack(self, coords: Iterable[int]) -> Element:
        coords = tuple(coords)
        return coords[0] if self.is_cyclic else coords

    def contains(self, a) -> bool:
        try:
            self._coords(a)
        except DomainMismatch:
            return False
        return True

    def add(self, a: Element, b: Element) -> Element:
        return self._pack((x + y) % n for x, y, n in zip(self._coords(a), self._coords(b), self.moduli))

    def neg(self, a: Element) -> Element:
        return self._pack((-x) % n for x, n in zip(self._coords(a), self.moduli))

    def sub(self, a: Element, b: Element) -> Element:
        return self.add(a, self.neg(b))

    def sumset(self, A: Iterable[Element], B: Iterable[Element]) -> Set[Element]:
        B = list(B)
        return {self.add(a, b) for a in A for b in B}

    def difference_set(self, A: Iterable[Element], B: Iterable[Element]) -> Set[Element]:
        B = list(B)
        return {self.sub(a, b) for a in A for b in B}

    def __eq__(self, other) -> bool:
        return isinstance(other, FiniteAbelianGroup) and self.moduli == other.moduli

    def __hash__(self) -> int:
        return hash(self.moduli)

    def __repr__(self) -> str:
        return "FiniteAbelianGroup(" + " x ".join(f"Z/{n}" for n in self.moduli) + ")"

    def law_of(self, obj, mu=None):
        """Law of a variable or mass table, re-expressed on the full group."""

        law = as_law(obj, mu)
        outside = [x for x in law.support() if not self.contains(x)]
        if outside:
            raise DomainMismatch(f"law charges values outside {self}: {outside}")
        return law.reindex(self.elements())

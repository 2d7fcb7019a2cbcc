"""
The tau functional and its minimisation over a finite candidate family.

tau[X1 ; X2] = d[X1 ; X2] + eta * d[X1^0 ; X1] + eta * d[X2^0 ; X2]

for fixed anchor variables X1^0, X2^0. The PFR argument works with a tau
minimiser; here the minimum is taken over explicit candidate laws and the
full landscape is kept as a DataFrame for reporting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from ..config import DEFAULT_ETA
from ..groups import FiniteAbelianGroup
from .ruzsa import ruzsa_distance

Candidates = Union[Mapping[str, object], Sequence[object]]


def tau(X1, X2, X01, X02, group: FiniteAbelianGroup, eta: float = DEFAULT_ETA) -> float:
    if eta < 0.0:
        raise ValueError("eta must be nonnegative")
    return (
        ruzsa_distance(X1, X2, group)
        + eta * ruzsa_distance(X01, X1, group)
        + eta * ruzsa_distance(X02, X2, group)
    )


def _labelled(candidates: Candidates) -> List[Tuple[str, object]]:
    if isinstance(candidates, Mapping):
        items = [(str(k), v) for k, v in candidates.items()]
    else:
        items = [(getattr(c, "name", None) or f"c{i}", c) for i, c in enumerate(candidates)]
    if not items:
        raise ValueError("candidate family must be non-empty")
    return items


def tau_landscape(
    candidates1: Candidates,
    candidates2: Candidates,
    X01,
    X02,
    group: FiniteAbelianGroup,
    eta: float = DEFAULT_ETA,
) -> pd.DataFrame:
    """Evaluate tau on every candidate pair; one row per pair."""

    if eta < 0.0:
        raise ValueError("eta must be nonnegative")
    first = _labelled(candidates1)
    second = _labelled(candidates2)
    anchor1 = [ruzsa_distance(X01, c, group) for _, c in first]
    anchor2 = [ruzsa_distance(X02, c, group) for _, c in second]
    rows: List[Dict] = []
    for i, (label1, c1) in enumerate(first):
        for j, (label2, c2) in enumerate(second):
            distance = ruzsa_distance(c1, c2, group)
            rows.append(
                {
                    "i": i,
                    "j": j,
                    "candidate1": label1,
                    "candidate2": label2,
                    "distance": distance,
                    "anchor1": anchor1[i],
                    "anchor2": anchor2[j],
                    "tau": distance + eta * (anchor1[i] + anchor2[j]),
                }
            )
    return pd.DataFrame(rows)


@dataclass
class TauMinimizer:
    candidate1: str
    candidate2: str
    i: int
    j: int
    tau: float
    distance: float
    landscape: pd.DataFrame


def tau_minimizer(
    candidates1: Candidates,
    candidates2: Candidates,
    X01,
    X02,
    group: FiniteAbelianGroup,
    eta: float = DEFAULT_ETA,
    logger: Optional[logging.Logger] = None,
) -> TauMinimizer:
    """Candidate pair attaining the smallest tau (first in scan order on ties)."""

    log = logger or logging.getLogger(__name__)
    table = tau_landscape(candidates1, candidates2, X01, X02, group, eta=eta)
    best = table.loc[table["tau"].idxmin()]
    log.info(
        "tau minimiser: (%s, %s) tau=%.6f d=%.6f over %d pairs",
        best["candidate1"],
        best["candidate2"],
        best["tau"],
        best["distance"],
        len(table),
    )
    return TauMinimizer(
        candidate1=str(best["candidate1"]),
        candidate2=str(best["candidate2"]),
        i=int(best["i"]),
        j=int(best["j"]),
        tau=float(best["tau"]),
        distance=float(best["distance"]),
        landscape=table,
    )

"""
Identity contracts: the named inequalities and identities the suite can check.

Each contract records the claim in words, the relation checked numerically,
the argument roles it expects and whether an ambient group is required. This
module is declarative only; the numerical checks live in identities.py.
"""

from __future__ import annotations

from typing import Dict

IdentityContract = Dict[str, object]


IDENTITY_CONTRACTS: Dict[str, IdentityContract] = {
    "entropy_bounds": {
        "claim": "0 <= H[X] <= log |codomain|",
        "relation": "<=",
        "args": ["X"],
        "requires_group": False,
    },
    "uniform_iff_max_entropy": {
        "claim": "H[X] = log |codomain| iff X is uniform on its codomain",
        "relation": "iff",
        "args": ["X"],
        "requires_group": False,
    },
    "chain_rule": {
        "claim": "H[X,Y] = H[Y] + H[X|Y]",
        "relation": "==",
        "args": ["X", "Y"],
        "requires_group": False,
    },
    "chain_rule_swap": {
        "claim": "H[X,Y] = H[X] + H[Y|X]",
        "relation": "==",
        "args": ["X", "Y"],
        "requires_group": False,
    },
    "conditioning_reduces_entropy": {
        "claim": "H[X|Y] <= H[X]",
        "relation": "<=",
        "args": ["X", "Y"],
        "requires_group": False,
    },
    "mutual_information_symmetric": {
        "claim": "I[X:Y] = I[Y:X]",
        "relation": "==",
        "args": ["X", "Y"],
        "requires_group": False,
    },
    "mutual_information_independence": {
        "claim": "I[X:Y] = 0 iff X and Y are independent",
        "relation": "iff",
        "args": ["X", "Y"],
        "requires_group": False,
    },
    "submodularity": {
        "claim": "H[X|Y,Z] <= H[X|Z]",
        "relation": "<=",
        "args": ["X", "Y", "Z"],
        "requires_group": False,
    },
    "entropy_submodularity": {
        "claim": "H[X,Y,Z] + H[Z] <= H[X,Z] + H[Y,Z]",
        "relation": "<=",
        "args": ["X", "Y", "Z"],
        "requires_group": False,
    },
    "cond_mutual_information_independence": {
        "claim": "I[X:Y|Z] = 0 iff X and Y are conditionally independent given Z",
        "relation": "iff",
        "args": ["X", "Y", "Z"],
        "requires_group": False,
    },
    "kl_nonneg": {
        "claim": "KL(X || Y) >= 0",
        "relation": ">=",
        "args": ["X", "Y"],
        "requires_group": False,
    },
    "kl_zero_iff_equal": {
        "claim": "KL(X || Y) = 0 iff X and Y are identically distributed",
        "relation": "iff",
        "args": ["X", "Y"],
        "requires_group": False,
    },
    "kl_convexity": {
        "claim": "KL(sum w_s X_s || sum w_s Y_s) <= sum w_s KL(X_s || Y_s)",
        "relation": "<=",
        "args": ["X_1", "Y_1", "...", "X_k", "Y_k"],
        "params": ["weights"],
        "requires_group": False,
    },
    "kl_convolution": {
        "claim": "KL(X+Z || Y+Z) <= KL(X || Y) for Z independent of X and Y",
        "relation": "<=",
        "args": ["X", "Y", "Z"],
        "requires_group": True,
    },
    "cond_kl_identity": {
        "claim": "KL(X|Z || Y) = KL(X || Y) + H[X] - H[X|Z]",
        "relation": "==",
        "args": ["X", "Z", "Y"],
        "requires_group": False,
    },
    "ruzsa_symmetric": {
        "claim": "d[X ; Y] = d[Y ; X]",
        "relation": "==",
        "args": ["X", "Y"],
        "requires_group": True,
    },
    "ruzsa_lower_bound": {
        "claim": "|H[X] - H[Y]| / 2 <= d[X ; Y]",
        "relation": "<=",
        "args": ["X", "Y"],
        "requires_group": True,
    },
    "ruzsa_triangle": {
        "claim": "d[X ; Z] <= d[X ; Y] + d[Y ; Z]",
        "relation": "<=",
        "args": ["X", "Y", "Z"],
        "requires_group": True,
    },
}


def get_contract(identity_id: str) -> IdentityContract:
    """Return the contract for a registered identity name."""

    key = identity_id.lower()
    if key in IDENTITY_CONTRACTS:
        return IDENTITY_CONTRACTS[key]
    raise KeyError(f"Identity '{identity_id}' is not registered.")

"""
Centralized numerical tolerances and identity-suite defaults.

Single source of truth for the zero-or-probability tolerance, the identity
tolerance used by checks, and the tau-functional weight. Suite YAML files may
override the suite-level values; the engines only read the constants here.
"""

from __future__ import annotations

from typing import Any, Dict

import yaml

# Total mass must lie within this distance of 0 or 1.
MASS_TOLERANCE = 1e-9
# Absolute slack allowed when comparing the two sides of an identity.
IDENTITY_TOLERANCE = 1e-9
# Rounding residue below which a non-negative quantity is clamped to 0.
NONNEG_TOLERANCE = 1e-10
# Weight of the anchor distances in the tau functional.
DEFAULT_ETA = 1.0 / 9.0
DEFAULT_LOG_LEVEL = "INFO"

SUITE_DEFAULTS: Dict[str, Any] = {
    "suite_name": "identity_suite",
    "tolerance": IDENTITY_TOLERANCE,
    "eta": DEFAULT_ETA,
    "logging": {"level": DEFAULT_LOG_LEVEL},
    "group": None,
    "plot_tau": False,
    "strict": False,
    "scenarios": [],
}


def load_suite_config(path: str) -> Dict[str, Any]:
    """Read a suite YAML file and fill in defaults."""

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"suite config must be a mapping: {path}")
    return merge_suite_defaults(raw)


def merge_suite_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
    cfg = dict(SUITE_DEFAULTS)
    cfg.update(raw)
    cfg["logging"] = {**SUITE_DEFAULTS["logging"], **(raw.get("logging") or {})}
    cfg["tolerance"] = float(cfg["tolerance"])
    cfg["eta"] = float(cfg["eta"])
    if cfg["tolerance"] < 0.0:
        raise ValueError("tolerance must be nonnegative")
    if cfg["eta"] < 0.0:
        raise ValueError("eta must be nonnegative")
    if not isinstance(cfg["scenarios"], list):
        raise ValueError("scenarios must be a list")
    return cfg

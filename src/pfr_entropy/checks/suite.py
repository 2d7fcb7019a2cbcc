"""
YAML-driven identity suite.

Pipeline:
1) Load the suite config (tolerance, eta, group, scenarios, optional tau block).
2) For each scenario build the coordinate variables of its joint table and its
   named laws.
3) Run every declared check, recording pass/fail in an InvariantContext; in
   strict mode a failing identity raises InvariantViolation.
4) Optionally search the tau landscape over candidate laws.
5) Emit results.csv, manifest.json and (optionally) tau artifacts.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .. import errors
from ..additive.tau import tau_minimizer
from ..config import load_suite_config
from ..distribution import FiniteDistribution
from ..groups import FiniteAbelianGroup
from ..invariant_runtime import (
    InvariantContext,
    InvariantRecord,
    require_invariant,
    reset_invariant_context,
    set_invariant_context,
    stable_config_hash,
)
from ..probability_space import joint_space
from ..reporting.plots import plot_tau_landscape
from .identities import IdentityCheck, run_identity
from .identity_contracts import get_contract

RESULT_COLUMNS = ["scenario", "identity", "claim", "relation", "lhs", "rhs", "gap", "holds", "error"]


def freeze(value: Any) -> Any:
    """YAML lists -> tuples, so outcomes are hashable."""

    if isinstance(value, list):
        return tuple(freeze(v) for v in value)
    return value


def build_law(spec: Dict) -> FiniteDistribution:
    if "uniform" in spec:
        return FiniteDistribution.uniform([freeze(x) for x in spec["uniform"]])
    outcomes = [freeze(x) for x in spec["outcomes"]]
    return FiniteDistribution(outcomes, [float(m) for m in spec["masses"]])


def build_group(spec: Optional[Dict]) -> Optional[FiniteAbelianGroup]:
    if not spec:
        return None
    return FiniteAbelianGroup(spec["moduli"])


def build_scenario_objects(scenario: Dict) -> Dict[str, Any]:
    """Named variables (from the joint table) and named laws of a scenario."""

    objects: Dict[str, Any] = {}
    for name, spec in (scenario.get("laws") or {}).items():
        objects[name] = build_law(spec)
    joint = scenario.get("joint")
    if joint:
        codomains = {k: [freeze(x) for x in v] for k, v in (joint.get("codomains") or {}).items()}
        variables = joint_space(
            [freeze(p) for p in joint["outcomes"]],
            [float(m) for m in joint["masses"]],
            joint["variables"],
            codomains=codomains,
        )
        clash = set(variables) & set(objects)
        if clash:
            raise ValueError(f"names used for both variables and laws: {sorted(clash)}")
        objects.update(variables)
    return objects


@dataclass
class SuiteRunConfig:
    cfg_path: str
    out_dir: str
    strict: Optional[bool] = None
    plot_tau: Optional[bool] = None


class IdentitySuiteRunner:
    def __init__(self, run_cfg: SuiteRunConfig, logger: Optional[logging.Logger] = None):
        self.run_cfg = run_cfg
        self.cfg = load_suite_config(run_cfg.cfg_path)
        if run_cfg.strict is not None:
            self.cfg["strict"] = bool(run_cfg.strict)
        if run_cfg.plot_tau is not None:
            self.cfg["plot_tau"] = bool(run_cfg.plot_tau)

        self.log = logger or logging.getLogger("pfr_identity_suite")
        self.log.setLevel(getattr(logging, str(self.cfg["logging"]["level"]).upper()))
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        if not self.log.handlers:
            self.log.addHandler(ch)

        self.config_hash = stable_config_hash(self.cfg)
        Path(run_cfg.out_dir).mkdir(parents=True, exist_ok=True)

    def _record(self, ctx: InvariantContext, check: IdentityCheck) -> None:
        message = f"{check.identity_id}: lhs={check.lhs:.12g} {check.relation} rhs={check.rhs:.12g}"
        data = {"lhs": check.lhs, "rhs": check.rhs, "gap": check.gap}
        if self.cfg["strict"]:
            require_invariant(check.holds, check.identity_id, message, tolerance=self.cfg["tolerance"], data=data)
            return
        ctx.record_invariant(
            InvariantRecord(
                invariant_id=check.identity_id,
                status="pass" if check.holds else "fail",
                tolerance=self.cfg["tolerance"],
                detail=message,
                data=data,
            )
        )
        if not check.holds:
            self.log.warning("Identity failed in %s: %s", ctx.scenario_name, message)

    def _run_check(self, scenario_name: str, spec: Dict, objects: Dict[str, Any], group, ctx: InvariantContext) -> Dict:
        identity_id = spec["identity"]
        contract = get_contract(identity_id)
        missing = [a for a in spec.get("args", []) if a not in objects]
        if missing:
            raise KeyError(f"{scenario_name}/{identity_id}: unknown names {missing}")
        args = [objects[a] for a in spec.get("args", [])]
        row = {
            "scenario": scenario_name,
            "identity": identity_id,
            "claim": contract["claim"],
            "relation": contract["relation"],
            "lhs": float("nan"),
            "rhs": float("nan"),
            "gap": float("nan"),
            "holds": False,
            "error": "",
        }
        expected_error = spec.get("expect_error")
        try:
            check = run_identity(identity_id, args, group=group, tol=self.cfg["tolerance"], params=spec.get("params"))
        except (errors.DomainMismatch, errors.NotAbsolutelyContinuous) as exc:
            if expected_error != type(exc).__name__:
                raise
            self.log.debug("Expected precondition failure in %s/%s: %s", scenario_name, identity_id, exc)
            row.update({"holds": True, "error": type(exc).__name__})
            return row
        if expected_error:
            raise ValueError(f"{scenario_name}/{identity_id}: expected {expected_error} but the check completed")
        self._record(ctx, check)
        row.update({"lhs": check.lhs, "rhs": check.rhs, "gap": check.gap, "holds": check.holds})
        return row

    def run_scenario(self, scenario: Dict) -> Dict:
        name = scenario.get("name", "unnamed")
        ctx = InvariantContext(suite_name=self.cfg["suite_name"], scenario_name=name, config_hash=self.config_hash)
        token = set_invariant_context(ctx)
        try:
            objects = build_scenario_objects(scenario)
            group = build_group(scenario.get("group") or self.cfg.get("group"))
            rows = [self._run_check(name, spec, objects, group, ctx) for spec in scenario.get("checks", [])]
        finally:
            reset_invariant_context(token)
        summary = ctx.summary()
        self.log.info(
            "Scenario %s: %d checks, %d failed, fallbacks=%s",
            name,
            len(rows),
            sum(1 for r in rows if not r["holds"]),
            summary["fallbacks"],
        )
        return {"rows": rows, "summary": summary}

    def run_tau(self, tau_cfg: Dict) -> Dict:
        group = build_group(tau_cfg.get("group") or self.cfg.get("group"))
        if group is None:
            raise ValueError("tau search requires a group")
        laws = {name: build_law(spec) for name, spec in tau_cfg["laws"].items()}
        anchor1, anchor2 = tau_cfg["anchors"]
        cands1 = {n: laws[n] for n in tau_cfg["candidates1"]}
        cands2 = {n: laws[n] for n in tau_cfg.get("candidates2", tau_cfg["candidates1"])}
        result = tau_minimizer(cands1, cands2, laws[anchor1], laws[anchor2], group, eta=self.cfg["eta"], logger=self.log)
        out_dir = Path(self.run_cfg.out_dir)
        result.landscape.to_csv(out_dir / "tau_landscape.csv", index=False)
        plot_path = None
        if self.cfg["plot_tau"]:
            plot_path = plot_tau_landscape(result.landscape, str(out_dir / "tau_landscape.png"), logger=self.log)
        return {
            "candidate1": result.candidate1,
            "candidate2": result.candidate2,
            "tau": result.tau,
            "distance": result.distance,
            "n_pairs": int(len(result.landscape)),
            "plot": plot_path,
        }

    def run(self) -> Dict:
        self.log.info("Running identity suite %s (config %s)", self.cfg["suite_name"], self.config_hash[:12])
        rows: List[Dict] = []
        summaries: List[Dict] = []
        for scenario in self.cfg["scenarios"]:
            out = self.run_scenario(scenario)
            rows.extend(out["rows"])
            summaries.append(out["summary"])

        out_dir = Path(self.run_cfg.out_dir)
        table = pd.DataFrame(rows, columns=RESULT_COLUMNS)
        table.to_csv(out_dir / "results.csv", index=False)

        tau_summary = self.run_tau(self.cfg["tau"]) if self.cfg.get("tau") else None
        n_failed = int((~table["holds"].astype(bool)).sum()) if len(table) else 0
        manifest = {
            "suite_name": self.cfg["suite_name"],
            "config_hash": self.config_hash,
            "tolerance": self.cfg["tolerance"],
            "eta": self.cfg["eta"],
            "n_checks": int(len(table)),
            "n_failed": n_failed,
            "scenarios": summaries,
            "tau": tau_summary,
        }
        with open(out_dir / "manifest.json", "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=2)
        self.log.info("Suite finished: %d checks, %d failed -> %s", manifest["n_checks"], n_failed, out_dir)
        return manifest

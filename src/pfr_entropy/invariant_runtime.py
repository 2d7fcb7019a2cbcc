"""
Runtime enforcement of information-theoretic identities.

Fail-closed: an identity that does not hold within tolerance raises
InvariantViolation immediately. An optional context collects pass/fail records
and fallback activations (zero-measure conditioning, clamped rounding residues)
so the identity suite can report them per scenario.
"""

from __future__ import annotations

import hashlib
import json
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class InvariantViolation(RuntimeError):
    """Raised when an identity fails beyond tolerance."""

    def __init__(self, invariant_id: str, message: str, data: Optional[Dict[str, Any]] = None):
        self.invariant_id = invariant_id
        self.data = data or {}
        super().__init__(f"[InvariantViolation:{invariant_id}] {message} | data={self.data}")


@dataclass
class InvariantRecord:
    invariant_id: str
    status: str  # "pass" or "fail"
    tolerance: Optional[float] = None
    detail: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FallbackRecord:
    fallback_id: str
    detail: Dict[str, Any]


@dataclass
class InvariantContext:
    """Holds per-scenario invariant and fallback logs."""

    suite_name: Optional[str] = None
    scenario_name: Optional[str] = None
    config_hash: Optional[str] = None
    invariant_log: list = field(default_factory=list)
    fallback_log: list = field(default_factory=list)

    def record_invariant(self, rec: InvariantRecord) -> None:
        self.invariant_log.append(rec)

    def record_fallback(self, rec: FallbackRecord) -> None:
        self.fallback_log.append(rec)

    def summary(self) -> Dict[str, Any]:
        failed = [r.invariant_id for r in self.invariant_log if r.status == "fail"]
        fallbacks: Dict[str, int] = {}
        for rec in self.fallback_log:
            fallbacks[rec.fallback_id] = fallbacks.get(rec.fallback_id, 0) + 1
        return {
            "scenario_name": self.scenario_name,
            "n_invariants": len(self.invariant_log),
            "failed": failed,
            "fallbacks": fallbacks,
        }


_ctx: ContextVar[Optional[InvariantContext]] = ContextVar("invariant_ctx", default=None)


def set_invariant_context(ctx: Optional[InvariantContext]):
    return _ctx.set(ctx)


def reset_invariant_context(token) -> None:
    _ctx.reset(token)


def current_context() -> Optional[InvariantContext]:
    return _ctx.get()


def _build_data(extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    ctx = current_context()
    data = dict(extra or {})
    if ctx:
        data.setdefault("suite_name", ctx.suite_name)
        data.setdefault("scenario_name", ctx.scenario_name)
        data.setdefault("config_hash", ctx.config_hash)
    return data


def require_invariant(
    condition: bool,
    invariant_id: str,
    message: str,
    tolerance: Optional[float] = None,
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """Assert an identity, record status, and fail-closed on violation."""

    ctx = current_context()
    payload = _build_data(data)
    status = "pass" if condition else "fail"
    if ctx:
        ctx.record_invariant(
            InvariantRecord(
                invariant_id=invariant_id,
                status=status,
                tolerance=tolerance,
                detail=message,
                data=payload,
            )
        )
    if not condition:
        raise InvariantViolation(invariant_id, message, data=payload)


def record_fallback(fallback_id: str, detail: Dict[str, Any]) -> None:
    """Log a degenerate-measure or clamping activation."""

    ctx = current_context()
    if ctx:
        ctx.record_fallback(FallbackRecord(fallback_id=fallback_id, detail=_build_data(detail)))


def clamp_nonnegative(value: float, invariant_id: str, tolerance: float) -> float:
    """Clamp rounding residues of a non-negative quantity to 0; fail on real negatives."""

    require_invariant(
        value >= -tolerance,
        invariant_id,
        "quantity must be non-negative",
        tolerance=tolerance,
        data={"value": value},
    )
    if value < 0.0:
        record_fallback("clamp_nonnegative", {"invariant_id": invariant_id, "value": value})
        return 0.0
    return value


def stable_config_hash(cfg: Dict) -> str:
    """Deterministic hash for config snapshots."""

    payload = json.dumps(cfg, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()

"""
Precondition errors raised by the entropy, divergence and Ruzsa layers.
"""

from __future__ import annotations


class DomainMismatch(ValueError):
    """Operands live on different or incompatible finite spaces."""


class NotAbsolutelyContinuous(ValueError):
    """The reference law has zero mass where the target law does not."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        super().__init__(
            f"reference law assigns zero mass to outcomes charged by the target: {self.outcomes}"
        )

"""
Smoke test for the identity suite.

Runs the default suite end to end and checks that every identity holds and
that results.csv / manifest.json / tau_landscape.csv are written.

Run:
  python scripts/smoke_test_identities.py
"""

from __future__ import annotations

import json
import os
import sys
import tempfile

# Allow running from repo root without installation.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from pfr_entropy.checks.suite import IdentitySuiteRunner, SuiteRunConfig  # noqa: E402


def main() -> None:
    cfg_path = os.path.join(REPO_ROOT, "config", "default_suite.yaml")
    with tempfile.TemporaryDirectory() as out_dir:
        manifest = IdentitySuiteRunner(SuiteRunConfig(cfg_path=cfg_path, out_dir=out_dir)).run()
        for name in ("results.csv", "manifest.json", "tau_landscape.csv"):
            assert os.path.exists(os.path.join(out_dir, name)), f"{name} was not written."
        with open(os.path.join(out_dir, "manifest.json"), "r", encoding="utf-8") as f:
            on_disk = json.load(f)

    assert on_disk["config_hash"] == manifest["config_hash"], "Manifest hash mismatch."
    assert manifest["n_checks"] > 0, "No checks were run."
    assert manifest["n_failed"] == 0, f"{manifest['n_failed']} identities failed."
    assert manifest["tau"] is not None, "Tau search missing."

    print(f"SMOKE TEST PASSED: {manifest['n_checks']} identities hold; tau minimiser {manifest['tau']['candidate1']}/{manifest['tau']['candidate2']}.")


if __name__ == "__main__":
    main()

#!/usr/bin/env python
"""
CLI entrypoint for the information-identity suite.
"""

from __future__ import annotations

import argparse
import datetime as dt
import os
import sys
from pathlib import Path

# Allow running from repo root without installation.
SRC_ROOT = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from pfr_entropy.checks.suite import IdentitySuiteRunner, SuiteRunConfig  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check entropy, KL and Ruzsa-distance identities on finite tables.")
    parser.add_argument(
        "--config",
        default="config/default_suite.yaml",
        help="Suite config YAML.",
    )
    parser.add_argument(
        "--out",
        default=None,
        help="Output directory (default: results/suite_<timestamp>).",
    )
    parser.add_argument(
        "--strict",
        default=None,
        choices=["true", "false"],
        help="Raise on the first failing identity (overrides the config).",
    )
    parser.add_argument(
        "--plot_tau",
        default=None,
        choices=["true", "false"],
        help="Write a tau landscape heat map (overrides the config).",
    )
    return parser.parse_args()


def _flag(value):
    return None if value is None else value == "true"


def main() -> int:
    args = parse_args()
    out_dir = args.out
    if out_dir is None:
        stamp = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%d_%H%M%S")
        out_dir = f"results/suite_{stamp}"
    Path(out_dir).mkdir(parents=True, exist_ok=True)

    run_cfg = SuiteRunConfig(
        cfg_path=args.config,
        out_dir=out_dir,
        strict=_flag(args.strict),
        plot_tau=_flag(args.plot_tau),
    )
    manifest = IdentitySuiteRunner(run_cfg).run()
    return 1 if manifest["n_failed"] else 0


if __name__ == "__main__":
    sys.exit(main())

"""Plot helpers for identity-suite artifacts."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd


def plot_tau_landscape(table: pd.DataFrame, path: str, title: Optional[str] = None, logger: Optional[logging.Logger] = None) -> str:
    """Heat map of tau over candidate pairs; returns the written path."""

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    log = logger or logging.getLogger(__name__)
    grid = table.pivot(index="i", columns="j", values="tau").sort_index().sort_index(axis=1)
    labels1 = table.drop_duplicates("i").set_index("i").loc[grid.index, "candidate1"].tolist()
    labels2 = table.drop_duplicates("j").set_index("j").loc[grid.columns, "candidate2"].tolist()

    fig, ax = plt.subplots(figsize=(1.2 * len(labels2) + 3, 1.0 * len(labels1) + 2), constrained_layout=True)
    im = ax.imshow(grid.to_numpy(dtype=np.float64), cmap="viridis", origin="upper")
    ax.set_xticks(range(len(labels2)))
    ax.set_xticklabels(labels2, rotation=45, ha="right")
    ax.set_yticks(range(len(labels1)))
    ax.set_yticklabels(labels1)
    ax.set_xlabel("X2 candidate")
    ax.set_ylabel("X1 candidate")
    best = table.loc[table["tau"].idxmin()]
    ax.scatter([list(grid.columns).index(best["j"])], [list(grid.index).index(best["i"])], marker="x", color="red")
    ax.set_title(title or "tau landscape")
    fig.colorbar(im, ax=ax, label="tau")
    fig.savefig(path, dpi=120)
    plt.close(fig)
    log.info("Wrote tau landscape plot: %s", path)
    return path

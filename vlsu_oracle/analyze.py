"""Coverage plot of a finished sweep: every exercised (avl, vstart) point,
faulting points coloured by the resumption marker they left behind."""

from typing import Optional
import numpy as np
import matplotlib.pyplot as plt

from .sweep import SweepResult


def plot_coverage(result: SweepResult, path: Optional[str] = None, title: Optional[str] = None):
    recs = result.records
    avl = np.array([r.avl for r in recs])
    vstart = np.array([r.vstart for r in recs])
    faulted = np.array([r.faulted for r in recs], dtype=bool)
    marker = np.array([r.marker for r in recs])

    fig, ax = plt.subplots(figsize=(8, 6))
    if (~faulted).any():
        ax.scatter(avl[~faulted], vstart[~faulted], s=12, c="lightgray", label="no fault")
    if faulted.any():
        sc = ax.scatter(avl[faulted], vstart[faulted], s=16, c=marker[faulted], cmap="viridis",
                        label="fault")
        fig.colorbar(sc, ax=ax, label="resumption marker")
    ax.set_xlabel("avl")
    ax.set_ylabel("vstart")
    ax.set_title(title or result.summary())
    ax.legend()
    if path:
        fig.savefig(path)
        plt.close(fig)
    return fig

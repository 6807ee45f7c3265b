# visualize.py
import os
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


def _ensure_dir(outpath):
    dirname = os.path.dirname(outpath)
    if dirname:
        os.makedirs(dirname, exist_ok=True)


def plot_hit_miss_rate(hit_rate, outpath, title="Cache Hit/Miss Rate"):
    _ensure_dir(outpath)
    plt.figure(figsize=(4,4))
    labels = ['Hit', 'Miss']
    sizes = [hit_rate, 1.0 - hit_rate]
    plt.pie(sizes, labels=labels, autopct='%1.1f%%')
    plt.title(title)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
    return outpath


def plot_sweep(summaries, outpath):
    """Grouped bars of hits/misses/evictions, one group per cache geometry."""
    _ensure_dir(outpath)
    labels = [f"s={r['s']} E={r['E']} b={r['b']}" for r in summaries]
    x = np.arange(len(summaries))
    width = 0.27
    plt.figure(figsize=(max(6, 1.5 * len(summaries)), 4))
    for offset, key in zip((-width, 0.0, width), ("hits", "misses", "evictions")):
        plt.bar(x + offset, [r[key] for r in summaries], width, label=key)
    plt.xticks(x, labels, rotation=30, ha="right")
    plt.ylabel("Count")
    plt.title("Hits / Misses / Evictions per Geometry")
    plt.legend()
    plt.grid(True, axis="y")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
    return outpath

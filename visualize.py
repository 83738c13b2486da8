# visualize.py
import os
import numpy as np
import matplotlib.pyplot as plt


def _ensure_dir(outpath):
    directory = os.path.dirname(outpath)
    if directory:
        os.makedirs(directory, exist_ok=True)


def plot_hit_miss_counts(snap, outpath):
    """Read/write hits and misses of a Statistics snapshot, counts in the labels."""
    _ensure_dir(outpath)
    counts = [snap.read_hits, snap.write_hits, snap.read_misses, snap.write_misses]
    labels = [f"{name} ({count})" for name, count in
              zip(['Read hits', 'Write hits', 'Read misses', 'Write misses'], counts)]
    plt.figure(figsize=(5,5))
    if sum(counts):
        plt.pie(counts, labels=labels, autopct='%1.1f%%',
                colors=['tab:green', 'tab:olive', 'tab:red', 'tab:orange'])
    else:
        plt.text(0.5, 0.5, "no accesses", ha='center', va='center')
        plt.axis('off')
    plt.title(f"Cache Hits/Misses ({sum(counts)} accesses)")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_cycles(cycles_with_cache, cycles_without_cache, outpath):
    _ensure_dir(outpath)
    plt.figure(figsize=(5,4))
    plt.bar(['With cache', 'Without cache'], [cycles_with_cache, cycles_without_cache],
            color=['tab:blue', 'tab:gray'])
    plt.title("Simulated Cycles")
    plt.ylabel("Cycles")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_cumulative_hit_ratio(hits, outpath):
    """hits: per-access booleans in trace order."""
    _ensure_dir(outpath)
    hits = np.asarray(hits, dtype=float)
    running = np.cumsum(hits) / np.arange(1, len(hits) + 1) if len(hits) else hits
    plt.figure(figsize=(8,4))
    plt.plot(running, linewidth=0.8)
    plt.title("Cumulative Hit Ratio")
    plt.xlabel("Access")
    plt.ylabel("Hit ratio")
    plt.ylim(0, 1)
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()

# stats.py
from collections import namedtuple

# cycles charged per access when there is no cache at all
NO_CACHE_ACCESS_COST = 50

COUNTERS = (
    "reads", "read_hits", "read_misses",
    "writes", "write_hits", "write_misses",
    "stream_ins", "stream_outs", "evictions",
    "cycles", "memory_writes",
)

Statistics = namedtuple("Statistics", COUNTERS)


class StatisticsCollector:
    """
    Performance counters of one cache.
    Counters only ever go up; ratios are worked out from a snapshot when reporting.
    """

    def __init__(self):
        self._counts = dict.fromkeys(COUNTERS, 0)

    def add(self, name, amount=1):
        if amount < 0:
            raise ValueError(f"counter {name} cannot decrease (got {amount})")
        self._counts[name] += amount

    def snapshot(self):
        return Statistics(**self._counts)


def hits(snap):
    return snap.read_hits + snap.write_hits


def misses(snap):
    return snap.read_misses + snap.write_misses


def total_accesses(snap):
    return snap.reads + snap.writes


def hit_ratio(snap):
    total = total_accesses(snap)
    return hits(snap) / total if total else 0.0


def miss_ratio(snap):
    total = total_accesses(snap)
    return misses(snap) / total if total else 0.0


def cycles_without_cache(snap, access_cost=NO_CACHE_ACCESS_COST):
    return access_cost * total_accesses(snap)


def derived(snap):
    """Report-time values computed from a snapshot."""
    return {
        "hits": hits(snap),
        "misses": misses(snap),
        "total_accesses": total_accesses(snap),
        "hit_ratio": hit_ratio(snap),
        "miss_ratio": miss_ratio(snap),
        "cycles_without_cache": cycles_without_cache(snap),
    }

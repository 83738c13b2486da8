# benchmark.py
import os
import json
import time
import logging
import numpy as np
from cache import Cache, ConfigurationError, Operation, ADDRESS_SIZE
from stats import derived
from trace_reader import TraceRecord

logger = logging.getLogger(__name__)

ACCESS_PATTERNS = ("sequential", "random", "mixed")


def build_cache(cache_cfg):
    """
    Cache from the "cache" section of the config.
    With "num_sets" given the geometry is sets x ways x block size,
    otherwise it is derived from the total size.
    """
    block_size = cache_cfg.get("block_size_bytes", 32)
    associativity = cache_cfg.get("associativity", 4)
    write_policy = cache_cfg.get("write_policy", "write-back")
    if "num_sets" in cache_cfg:
        return Cache(cache_cfg["num_sets"], associativity, block_size, write_policy)
    return Cache.from_cache_size(
        cache_cfg.get("size_bytes", 131072), block_size, associativity, write_policy
    )


class SimulationRunner:
    def __init__(self, cfg):
        self.cfg = cfg
        self.cache = build_cache(cfg.get("cache", {}))
        trace_cfg = cfg.get("trace", {})
        self.rng = np.random.default_rng(trace_cfg.get("random_seed", None))
        self.line_size = self.cache.block_size
        self.working_set_kb = trace_cfg.get("working_set_kb", 1024)
        for key in ("working_set_kb", "num_requests"):
            value = trace_cfg.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"{key} must be a non-negative integer, got {value!r}")
        # block space of the synthetic working set, capped to the address space
        self.num_blocks = max(1, min((self.working_set_kb * 1024) // self.line_size,
                                     (1 << ADDRESS_SIZE) // self.line_size))
        self.num_requests = trace_cfg.get("num_requests", 10000)
        self.read_ratio = trace_cfg.get("read_ratio", 0.8)
        self.access_pattern = trace_cfg.get("access_pattern", "mixed")
        if self.access_pattern not in ACCESS_PATTERNS:
            raise ConfigurationError(
                f"unknown access pattern {self.access_pattern!r}, expected one of {ACCESS_PATTERNS}"
            )
        if isinstance(self.read_ratio, bool) or not isinstance(self.read_ratio, (int, float)) \
                or not 0.0 <= self.read_ratio <= 1.0:
            raise ConfigurationError(f"read ratio must be between 0 and 1, got {self.read_ratio!r}")
        self._seq_ptr = 0

    def _generate_block(self):
        if self.access_pattern == "sequential":
            return self._next_sequential()
        elif self.access_pattern == "random":
            return int(self.rng.integers(0, self.num_blocks))
        else:  # mixed: mostly sequential with some random
            if self.rng.random() < 0.8:
                return self._next_sequential()
            return int(self.rng.integers(0, self.num_blocks))

    def _next_sequential(self):
        block = self._seq_ptr
        self._seq_ptr = (block + 1) % self.num_blocks
        return block

    def generate_trace(self, num_requests=None):
        """Synthetic trace of block-aligned addresses over the working set."""
        if num_requests is None:
            num_requests = self.num_requests
        records = []
        for i in range(num_requests):
            op = Operation.READ if self.rng.random() < self.read_ratio else Operation.WRITE
            records.append(TraceRecord(i + 1, op, self._generate_block() * self.line_size))
        return records

    def run(self, records):
        """
        Feed every record to the cache, one at a time.
        Returns (summary dict, numpy bool array of per-access hits).
        """
        hits = []
        start = time.time()
        for record in records:
            outcome = self.cache.access(record.operation, record.address)
            hits.append(outcome.hit)
        end = time.time()

        snap = self.cache.snapshot()
        duration = end - start
        summary = dict(snap._asdict())
        summary.update(derived(snap))
        summary.update({
            "cache": self.cache.params(),
            "duration_s": duration,
            "throughput_ops_per_sec": len(hits) / duration if duration > 0 else 0,
        })
        logger.info("simulated %d accesses in %.3fs", len(hits), duration)
        return summary, np.array(hits, dtype=bool)

    def save_results(self, summary, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, out_cfg.get("results_file", "results.json"))
        with open(path, "w") as f:
            json.dump(summary, f, indent=2)
        return path

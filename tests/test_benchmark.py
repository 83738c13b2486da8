import json

import numpy as np
import pytest

from benchmark import SimulationRunner, build_cache
from cache import ConfigurationError, Operation, WritePolicy
from trace_reader import TraceRecord


def make_cfg(**trace):
    trace_cfg = {"num_requests": 500, "random_seed": 7, "working_set_kb": 8}
    trace_cfg.update(trace)
    return {
        "cache": {"size_bytes": 1024, "block_size_bytes": 32, "associativity": 2},
        "trace": trace_cfg,
    }


def test_build_cache_from_size():
    cache = build_cache({"size_bytes": 2048, "block_size_bytes": 64, "associativity": 2,
                         "write_policy": "write-through"})
    assert cache.num_sets == 16
    assert cache.write_policy is WritePolicy.WRITE_THROUGH


def test_build_cache_from_sets():
    cache = build_cache({"num_sets": 8, "associativity": 4, "block_size_bytes": 16})
    assert cache.cache_size == 8 * 4 * 16


def test_build_cache_bad_config():
    with pytest.raises(ConfigurationError):
        build_cache({"size_bytes": 1000})


def test_sequential_trace_is_block_aligned_and_wraps():
    runner = SimulationRunner(make_cfg(access_pattern="sequential", working_set_kb=1))
    records = runner.generate_trace(40)
    addresses = [r.address for r in records]
    assert addresses[:3] == [0, 32, 64]
    # 1KB / 32B = 32 blocks before wrapping
    assert addresses[32] == 0
    assert all(a % 32 == 0 for a in addresses)


def test_trace_generation_is_seeded():
    first = SimulationRunner(make_cfg(access_pattern="random")).generate_trace()
    second = SimulationRunner(make_cfg(access_pattern="random")).generate_trace()
    assert first == second
    assert len(first) == 500


def test_read_ratio_extremes():
    reads_only = SimulationRunner(make_cfg(read_ratio=1.0)).generate_trace(50)
    assert all(r.operation is Operation.READ for r in reads_only)
    writes_only = SimulationRunner(make_cfg(read_ratio=0.0)).generate_trace(50)
    assert all(r.operation is Operation.WRITE for r in writes_only)


def test_run_summary():
    runner = SimulationRunner(make_cfg())
    records = [
        TraceRecord(1, Operation.READ, 0x0),
        TraceRecord(1, Operation.READ, 0x4),
        TraceRecord(2, Operation.WRITE, 0x8),
    ]
    summary, hits = runner.run(records)
    assert isinstance(hits, np.ndarray)
    assert hits.tolist() == [False, True, True]
    assert summary["reads"] == 2
    assert summary["write_hits"] == 1
    assert summary["hit_ratio"] == pytest.approx(2 / 3)
    assert summary["cycles"] == 53
    assert summary["cycles_without_cache"] == 150
    assert summary["cache"]["num_sets"] == 16


def test_save_results(tmp_path):
    runner = SimulationRunner(make_cfg())
    summary, _ = runner.run(runner.generate_trace(100))
    path = runner.save_results(summary, {"results_dir": str(tmp_path / "out"), "results_file": "r.json"})
    with open(path) as f:
        saved = json.load(f)
    assert saved["reads"] + saved["writes"] == 100
    assert saved["read_hits"] + saved["read_misses"] == saved["reads"]


@pytest.mark.parametrize("trace", [
    {"access_pattern": "strided"},
    {"read_ratio": 1.5},
    {"read_ratio": -0.1},
    {"read_ratio": "0.5"},
    {"working_set_kb": "8"},
    {"num_requests": 10.5},
])
def test_bad_trace_config_rejected(trace):
    with pytest.raises(ConfigurationError):
        SimulationRunner(make_cfg(**trace))

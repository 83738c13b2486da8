# main.py
import argparse
import copy
import json
import logging
import sys
from benchmark import SimulationRunner
from cache import ConfigurationError
from report import format_dump, format_report, version_banner
from stats import hit_ratio, cycles_without_cache
from trace_reader import MalformedInputError, read_trace
from visualize import plot_cumulative_hit_ratio, plot_cycles, plot_hit_miss_counts

logger = logging.getLogger("cachesim")

DEFAULT_CONFIG = {
    "cache": {
        "size_bytes": 131072,
        "block_size_bytes": 32,
        "associativity": 4,
        "write_policy": "write-back",
    },
    "trace": {
        "num_requests": 10000,
        "read_ratio": 0.8,
        "access_pattern": "mixed",
        "working_set_kb": 1024,
        "random_seed": None,
    },
    "output": {
        "results_dir": "results",
        "results_file": "results.json",
        "hitmiss_plot": "results/hit_miss_rate.png",
        "cycles_plot": "results/cycles.png",
        "hit_ratio_plot": "results/cumulative_hit_ratio.png",
    },
}


def load_config(path=None):
    """Config dict: the defaults, with sections from the JSON file at `path` laid over them."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if path is None:
        return cfg
    with open(path, "r") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{path}: config must be a JSON object")
    for section, values in loaded.items():
        if not isinstance(values, dict):
            raise ConfigurationError(f"{path}: section {section!r} must be a JSON object")
        cfg.setdefault(section, {}).update(values)
    return cfg


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="cachesim",
        description="Trace-driven single level set-associative cache simulator",
    )
    parser.add_argument("trace_file", nargs="?", help="memory access trace (lines of 'r|w <hex address>')")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--synthetic", action="store_true", help="simulate a generated trace instead of a file")
    parser.add_argument("--cache-size", type=int, help="total cache size in bytes")
    parser.add_argument("--block-size", type=int, help="block size in bytes")
    parser.add_argument("--associativity", type=int, help="number of ways per set")
    parser.add_argument("--write-through", action="store_true", help="use write-through instead of write-back")
    parser.add_argument("--save", action="store_true", help="write the summary as JSON")
    parser.add_argument("--plots", action="store_true", help="save hit/miss and cycle plots")
    parser.add_argument("-v", dest="version", action="store_true", help="print version information")
    parser.add_argument("-t", dest="trace_debug", action="store_true", help="trace every access")
    parser.add_argument("-d", dest="dump", action="store_true", help="dump final cache contents")
    args = parser.parse_args(argv)
    if args.trace_file is None and not args.synthetic:
        parser.error("a trace file is required unless --synthetic is given")
    return args


def apply_overrides(cfg, args):
    cache_cfg = cfg["cache"]
    if args.cache_size is not None:
        cache_cfg["size_bytes"] = args.cache_size
        cache_cfg.pop("num_sets", None)
    if args.block_size is not None:
        cache_cfg["block_size_bytes"] = args.block_size
    if args.associativity is not None:
        cache_cfg["associativity"] = args.associativity
    if args.write_through:
        cache_cfg["write_policy"] = "write-through"
    return cfg


def save_plots(summary, snap, hits, out_cfg):
    plot_hit_miss_counts(snap, out_cfg.get("hitmiss_plot", "results/hit_miss_rate.png"))
    plot_cycles(summary["cycles"], summary["cycles_without_cache"],
                out_cfg.get("cycles_plot", "results/cycles.png"))
    plot_cumulative_hit_ratio(hits, out_cfg.get("hit_ratio_plot", "results/cumulative_hit_ratio.png"))


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.trace_debug else logging.WARNING,
        format="%(message)s" if args.trace_debug else "%(levelname)s: %(message)s",
    )

    try:
        cfg = apply_overrides(load_config(args.config), args)
        runner = SimulationRunner(cfg)
    except (ConfigurationError, OSError, json.JSONDecodeError) as e:
        logger.error("configuration error: %s", e)
        return 1

    if args.version:
        print(version_banner())

    records = runner.generate_trace() if args.synthetic else read_trace(args.trace_file)
    try:
        summary, hits = runner.run(records)
    except MalformedInputError as e:
        logger.error("error on memory access, check trace file input: %s", e)
        return 1
    except OSError as e:
        logger.error("could not read trace: %s", e)
        return 1

    cache = runner.cache
    if args.dump:
        print(format_dump(cache))
    snap = cache.snapshot()
    print(format_report(cache.params(), snap))
    logger.info("hit ratio %.4f, %d cycles vs %d without cache",
                hit_ratio(snap), snap.cycles, cycles_without_cache(snap))

    out_cfg = cfg.get("output", {})
    if args.save:
        print("Results saved to:", runner.save_results(summary, out_cfg))
    if args.plots:
        save_plots(summary, snap, hits, out_cfg)
        print("Plots saved in", out_cfg.get("results_dir", "results") + "/")
    return 0


if __name__ == "__main__":
    sys.exit(main())

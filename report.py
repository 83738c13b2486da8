# report.py
from stats import derived

VERSION = "1.0"


def version_banner():
    return (
        f"\n************************ CacheSim v{VERSION} ************************\n"
        "******** single level set-associative cache simulator ********\n"
    )


def format_report(params, snap):
    """
    Human readable cache parameters and performance counters.

    params -- dict from Cache.params()
    snap -- Statistics snapshot
    """
    d = derived(snap)
    lines = [
        "",
        "Cache parameters:",
        "",
        f"\tCache size: {params['cache_size_bytes']}",
        f"\tCache block size: {params['block_size']}",
        f"\tCache number of sets: {params['num_sets']}",
        f"\tCache associativity: {params['associativity']}",
        f"\tWrite policy: {params['write_policy']}",
        "",
        "Cache performance:",
        "",
        f"\tAttempted reads: {snap.reads}",
        f"\tCache read hits: {snap.read_hits}",
        f"\tCache read misses: {snap.read_misses}",
        "",
        f"\tAttempted writes: {snap.writes}",
        f"\tCache write hits: {snap.write_hits}",
        f"\tCache write misses: {snap.write_misses}",
        "",
        f"\tCache hits: {d['hits']}",
        f"\tCache misses: {d['misses']}",
        f"\tTotal accesses: {d['total_accesses']}",
        "",
        f"\tCache hit ratio: {d['hit_ratio'] * 100:.2f}%",
        f"\tCache miss ratio: {d['miss_ratio'] * 100:.2f}%",
        "",
        f"\tStream-in operations: {snap.stream_ins}",
        f"\tCache evictions: {snap.evictions}",
        f"\tStream-out operations: {snap.stream_outs}",
        f"\tMemory writes: {snap.memory_writes}",
        "",
        f"\tCycles with cache: {snap.cycles}",
        f"\tCycles without cache: {d['cycles_without_cache']}",
        "",
    ]
    return "\n".join(lines)


def format_dump(cache):
    """Contents of every way, set by set, in way order."""
    lines = []
    by_way = {}
    for set_index, way, block, rank in cache.walk():
        by_way.setdefault(way, []).append((set_index, block, rank))
    for way in sorted(by_way):
        lines.append(f"\n******** Way # {way} ********\n")
        for set_index, block, rank in by_way[way]:
            tag = f"{block.tag:#x}" if block.valid else "NULL"
            lines.append(
                f"\t[{set_index}]: {{ valid: {int(block.valid)}, dirty: {int(block.dirty)}, "
                f"rank: {rank}, tag: {tag} }}"
            )
    return "\n".join(lines)

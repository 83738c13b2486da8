from cache import Cache
from report import format_dump, format_report, version_banner


def test_report_lists_counters_and_ratios():
    cache = Cache(1, 2, 32)
    cache.read(0)
    cache.read(4)
    cache.write(0x20)
    cache.read(0x40)
    text = format_report(cache.params(), cache.snapshot())
    assert "Cache number of sets: 1" in text
    assert "Write policy: write-back" in text
    assert "Attempted reads: 3" in text
    assert "Cache read hits: 1" in text
    assert "Cache write misses: 1" in text
    assert "Total accesses: 4" in text
    assert "Cache hit ratio: 25.00%" in text
    assert "Cache miss ratio: 75.00%" in text
    assert "Cache evictions: 1" in text
    assert "Cycles with cache: 154" in text
    assert "Cycles without cache: 200" in text


def test_report_empty_run():
    cache = Cache(4, 1, 32)
    text = format_report(cache.params(), cache.snapshot())
    assert "Cache hit ratio: 0.00%" in text


def test_dump_shows_each_way():
    cache = Cache(2, 2, 32)
    cache.write(0x40)
    text = format_dump(cache)
    assert "Way # 0" in text and "Way # 1" in text
    assert "[0]: { valid: 1, dirty: 1, rank: 1, tag: 0x1 }" in text
    assert "[1]: { valid: 0, dirty: 0, rank: 0, tag: NULL }" in text


def test_version_banner():
    assert "CacheSim v" in version_banner()

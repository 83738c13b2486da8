from replacement import LRUReplacement


def test_initial_order_is_ascending():
    lru = LRUReplacement(4)
    assert lru.order == [0, 1, 2, 3]
    assert lru.victim() == 0
    assert [lru.rank(w) for w in range(4)] == [0, 1, 2, 3]


def test_victim_does_not_change_order():
    lru = LRUReplacement(3)
    lru.victim()
    lru.victim()
    assert lru.order == [0, 1, 2]


def test_promote_moves_way_to_most_recent():
    lru = LRUReplacement(4)
    lru.promote(0)
    assert lru.victim() == 1
    assert lru.rank(0) == 3
    lru.promote(2)
    lru.promote(1)
    assert lru.order == [3, 0, 2, 1]
    assert lru.victim() == 3


def test_order_stays_a_permutation():
    lru = LRUReplacement(8)
    for way in [3, 3, 7, 0, 5, 3, 1, 1, 6]:
        lru.promote(way)
        assert sorted(lru.order) == list(range(8))


def test_cold_fill_sequence():
    # promoting each victim in turn walks the ways in ascending order
    lru = LRUReplacement(4)
    filled = []
    for _ in range(4):
        way = lru.victim()
        filled.append(way)
        lru.promote(way)
    assert filled == [0, 1, 2, 3]
    assert lru.victim() == 0


def test_single_way():
    lru = LRUReplacement(1)
    lru.promote(0)
    assert lru.victim() == 0
    assert lru.rank(0) == 0

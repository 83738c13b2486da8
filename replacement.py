# replacement.py


class LRUReplacement:
    """
    Least-recently-used order for the ways of one set.
    `order` is a permutation of the way indices; front = least recent, back = most recent.
    A fresh set starts in ascending way order, so way 0 is the first victim.
    """

    def __init__(self, associativity):
        self.associativity = associativity
        self.order = list(range(associativity))

    def promote(self, way):
        # move to back (most recently used)
        self.order.remove(way)
        self.order.append(way)

    def victim(self):
        return self.order[0]

    def rank(self, way):
        """0 for the least recently used way, associativity-1 for the most recent."""
        return self.order.index(way)

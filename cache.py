# cache.py
import enum
import logging
from collections import namedtuple

from replacement import LRUReplacement
from stats import StatisticsCollector

logger = logging.getLogger(__name__)

ADDRESS_SIZE = 32
MAX_ASSOCIATIVITY = 64

# cycle costs
HIT_COST = 1
MISS_FILL_COST = 51
WRITEBACK_COST = 50


class ConfigurationError(ValueError):
    pass


class InvariantViolation(RuntimeError):
    pass


class Operation(enum.Enum):
    READ = "r"
    WRITE = "w"


class WritePolicy(enum.Enum):
    WRITE_BACK = "write-back"
    WRITE_THROUGH = "write-through"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("_", "-"))
        except ValueError:
            raise ConfigurationError(f"unknown write policy {value!r}") from None


class AccessKind(enum.Enum):
    READ_HIT = "ReadHit"
    READ_MISS = "ReadMiss"
    WRITE_HIT = "WriteHit"
    WRITE_MISS = "WriteMiss"


AccessOutcome = namedtuple(
    "AccessOutcome",
    ["kind", "hit", "evicted", "streamed_out", "tag", "index", "offset", "way"],
)


def _check_int(value, what):
    # bool is an int subclass but never a size
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{what} must be an integer, got {value!r}")
    return value


def _log2(value, what):
    # value must be a positive power of two
    _check_int(value, what)
    if value <= 0 or value & (value - 1):
        raise ConfigurationError(f"{what} must be a positive power of two, got {value}")
    return value.bit_length() - 1


class AddressDecoder:
    """
    Splits an address into tag | index | offset bit fields.

    Ex. 1024 sets, 32 byte blocks:
         ----------------------------------------------
        | Tag: 17 bits | Index: 10 bits | Offset: 5 bits |
         ----------------------------------------------
    """

    def __init__(self, index_bits, offset_bits, address_size=ADDRESS_SIZE):
        if index_bits < 0 or offset_bits < 0:
            raise ConfigurationError("index and offset widths must be non-negative")
        if index_bits + offset_bits > address_size:
            raise ConfigurationError(
                f"index ({index_bits}) + offset ({offset_bits}) bits exceed the "
                f"{address_size} bit address"
            )
        self.address_size = address_size
        self.index_bits = index_bits
        self.offset_bits = offset_bits
        self.tag_bits = address_size - index_bits - offset_bits

    def decode(self, address):
        tag, index, _ = self.split(address)
        return tag, index

    def split(self, address):
        offset = address & ((1 << self.offset_bits) - 1)
        index = (address >> self.offset_bits) & ((1 << self.index_bits) - 1)
        tag = address >> (self.offset_bits + self.index_bits)
        return tag, index, offset

    def format_binary(self, address):
        """Binary string of the address with the three fields separated by spaces."""
        bits = format(address, f"0{self.address_size}b")
        tag_end = self.tag_bits
        index_end = tag_end + self.index_bits
        return " ".join((bits[:tag_end], bits[tag_end:index_end], bits[index_end:]))


class Block:
    def __init__(self):
        self.valid = False
        self.dirty = False
        self.tag = 0

    def __repr__(self):
        return f"Block(valid={self.valid}, dirty={self.dirty}, tag={self.tag:#x})"


class CacheSet:
    def __init__(self, associativity):
        self.blocks = [Block() for _ in range(associativity)]
        self.lru = LRUReplacement(associativity)

    def lookup(self, tag):
        """Way holding a valid copy of `tag`, or None."""
        ways = [way for way, block in enumerate(self.blocks) if block.valid and block.tag == tag]
        if len(ways) > 1:
            raise InvariantViolation(f"tag {tag:#x} is live in ways {ways} of the same set")
        return ways[0] if ways else None


class WritePolicyHandler:
    """
    Write-back: writes only mark the block dirty; memory sees the block when a
    dirty block is evicted (stream-out).
    Write-through: every write goes to memory at once; blocks stay clean.
    """

    def __init__(self, policy):
        self.policy = WritePolicy.parse(policy)

    @property
    def write_back(self):
        return self.policy is WritePolicy.WRITE_BACK

    def on_write_hit(self, block, stats):
        if self.write_back:
            block.dirty = True
        else:
            stats.add("memory_writes")

    def on_evict(self, block, stats):
        """Flush a dirty victim. Returns True when a stream-out happened."""
        if not (self.write_back and block.dirty):
            return False
        stats.add("stream_outs")
        stats.add("memory_writes")
        stats.add("cycles", WRITEBACK_COST)
        block.dirty = False
        return True

    def on_fill(self, block, operation, stats):
        is_write = operation is Operation.WRITE
        block.dirty = is_write and self.write_back
        if is_write and not self.write_back:
            stats.add("memory_writes")


class Cache:
    """
    Single level, blocking, set-associative cache with LRU replacement.
    Only block metadata is modelled (valid, dirty, tag, recency), never data.
    """

    def __init__(self, num_sets, associativity, block_size=32, write_policy=WritePolicy.WRITE_BACK):
        _check_int(associativity, "associativity")
        if not 1 <= associativity <= MAX_ASSOCIATIVITY:
            raise ConfigurationError(
                f"associativity must be between 1 and {MAX_ASSOCIATIVITY}, got {associativity}"
            )
        offset_bits = _log2(block_size, "block size")
        index_bits = _log2(num_sets, "number of sets")
        self.decoder = AddressDecoder(index_bits, offset_bits)
        self.num_sets = num_sets
        self.associativity = associativity
        self.block_size = block_size
        self.cache_size = num_sets * associativity * block_size
        self.writer = WritePolicyHandler(write_policy)
        self.sets = [CacheSet(associativity) for _ in range(num_sets)]
        self.statistics = StatisticsCollector()
        self.accesses = 0

    @classmethod
    def from_cache_size(cls, cache_size, block_size=32, associativity=4, write_policy=WritePolicy.WRITE_BACK):
        for value, what in ((cache_size, "cache size"), (block_size, "block size"), (associativity, "associativity")):
            _check_int(value, what)
        if cache_size <= 0:
            raise ConfigurationError("cache size must be greater than 0 bytes")
        if block_size <= 0:
            raise ConfigurationError("block size must be greater than 0 bytes")
        if not 1 <= associativity <= MAX_ASSOCIATIVITY:
            raise ConfigurationError(
                f"associativity must be between 1 and {MAX_ASSOCIATIVITY}, got {associativity}"
            )
        set_bytes = block_size * associativity
        if cache_size % set_bytes:
            raise ConfigurationError(
                f"cache size {cache_size} is not a multiple of block size * associativity ({set_bytes})"
            )
        return cls(cache_size // set_bytes, associativity, block_size, write_policy)

    @property
    def write_policy(self):
        return self.writer.policy

    @property
    def tag_bits(self):
        return self.decoder.tag_bits

    @property
    def index_bits(self):
        return self.decoder.index_bits

    @property
    def offset_bits(self):
        return self.decoder.offset_bits

    def access(self, operation, address):
        """
        Apply one read or write of `address` (unsigned 32 bit int) and return
        what happened as an AccessOutcome.
        """
        operation = Operation(operation)
        if not 0 <= address < 1 << ADDRESS_SIZE:
            raise ValueError(f"address {address:#x} does not fit in {ADDRESS_SIZE} bits")
        is_write = operation is Operation.WRITE
        tag, index, offset = self.decoder.split(address)
        cache_set = self.sets[index]
        way = cache_set.lookup(tag)

        self.accesses += 1
        stats = self.statistics
        stats.add("writes" if is_write else "reads")

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("access %d: %s %#010x", self.accesses, operation.name.lower(), address)
            logger.debug("\tdecimal: %d  formatted: %s", address, self.decoder.format_binary(address))
            logger.debug("\ttag: %#x  index: %d  offset: %d", tag, index, offset)

        if way is not None:
            stats.add("write_hits" if is_write else "read_hits")
            stats.add("cycles", HIT_COST)
            if is_write:
                self.writer.on_write_hit(cache_set.blocks[way], stats)
            cache_set.lru.promote(way)
            logger.debug("\thit on way %d of set %d", way, index)
            kind = AccessKind.WRITE_HIT if is_write else AccessKind.READ_HIT
            return AccessOutcome(kind, True, False, False, tag, index, offset, way)

        stats.add("write_misses" if is_write else "read_misses")
        stats.add("stream_ins")
        stats.add("cycles", MISS_FILL_COST)

        # victim always comes from this set's own order
        way = cache_set.lru.victim()
        block = cache_set.blocks[way]
        evicted = block.valid
        streamed_out = False
        if evicted:
            stats.add("evictions")
            streamed_out = self.writer.on_evict(block, stats)
            logger.debug(
                "\tmiss: evicting tag %#x from way %d of set %d%s",
                block.tag, way, index, " (dirty, streamed out)" if streamed_out else "",
            )
        else:
            logger.debug("\tmiss: filling empty way %d of set %d", way, index)

        block.tag = tag
        block.valid = True
        self.writer.on_fill(block, operation, stats)
        cache_set.lru.promote(way)
        kind = AccessKind.WRITE_MISS if is_write else AccessKind.READ_MISS
        return AccessOutcome(kind, False, evicted, streamed_out, tag, index, offset, way)

    def read(self, address):
        return self.access(Operation.READ, address)

    def write(self, address):
        return self.access(Operation.WRITE, address)

    def snapshot(self):
        return self.statistics.snapshot()

    def walk(self):
        """
        Yield (set_index, way, block, rank) for every block, for dumps.
        rank 0 is the least recently used way of its set. Nothing is modified.
        """
        for set_index, cache_set in enumerate(self.sets):
            for way, block in enumerate(cache_set.blocks):
                yield set_index, way, block, cache_set.lru.rank(way)

    def params(self):
        return {
            "cache_size_bytes": self.cache_size,
            "block_size": self.block_size,
            "num_sets": self.num_sets,
            "associativity": self.associativity,
            "write_policy": self.write_policy.value,
            "tag_bits": self.tag_bits,
            "index_bits": self.index_bits,
            "offset_bits": self.offset_bits,
        }

# cache.py
ADDRESS_BITS = 64


class ConfigurationError(ValueError):
    pass


def decode_address(address, set_bits, block_bits):
    """
    Split a 64-bit address into (set_index, tag).
    The low `block_bits` are the block offset and are ignored.
    """
    set_index = (address >> block_bits) & ((1 << set_bits) - 1)
    tag = address >> (block_bits + set_bits)
    return set_index, tag


class CacheParameters:
    """
    Cache geometry: 2^s sets of E lines, 2^b bytes per block.
    """

    def __init__(self, set_bits, associativity, block_bits):
        for name, value in (("s", set_bits), ("E", associativity), ("b", block_bits)):
            if value is None:
                raise ConfigurationError(f"missing required parameter -{name}")
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"-{name} must be an integer, got {value!r}")
        if set_bits < 0:
            raise ConfigurationError(f"-s must be non-negative, got {set_bits}")
        if block_bits < 0:
            raise ConfigurationError(f"-b must be non-negative, got {block_bits}")
        if associativity < 1:
            raise ConfigurationError(f"-E must be at least 1, got {associativity}")
        if set_bits + block_bits >= ADDRESS_BITS:
            raise ConfigurationError(
                f"s + b must be less than {ADDRESS_BITS}, got {set_bits + block_bits}"
            )
        self._set_bits = set_bits
        self._associativity = associativity
        self._block_bits = block_bits

    @property
    def set_bits(self):
        return self._set_bits

    @property
    def associativity(self):
        return self._associativity

    @property
    def block_bits(self):
        return self._block_bits

    @property
    def number_of_sets(self):
        return 1 << self._set_bits

    @property
    def block_size(self):
        return 1 << self._block_bits

    def decode(self, address):
        return decode_address(address, self._set_bits, self._block_bits)

    def __eq__(self, other):
        if not isinstance(other, CacheParameters):
            return NotImplemented
        return (self.set_bits, self.associativity, self.block_bits) == (
            other.set_bits, other.associativity, other.block_bits)

    def __hash__(self):
        return hash((self.set_bits, self.associativity, self.block_bits))

    def __repr__(self):
        return f"CacheParameters(s={self.set_bits}, E={self.associativity}, b={self.block_bits})"


class CacheLine:
    __slots__ = ("valid", "tag", "recency")

    def __init__(self, valid=False, tag=0, recency=0):
        self.valid = valid
        self.tag = tag
        self.recency = recency

    def matches(self, tag):
        return self.valid and self.tag == tag

    def __repr__(self):
        return f"CacheLine(valid={self.valid}, tag={self.tag:#x}, recency={self.recency})"


class CacheSet:
    """
    Fixed number of lines. Lookups return line indices, never the lines themselves.
    """

    def __init__(self, associativity):
        self.lines = tuple(CacheLine() for _ in range(associativity))

    def __len__(self):
        return len(self.lines)

    def is_full(self):
        return all(line.valid for line in self.lines)

    def find_hits(self, tag):
        # every line is inspected; a malformed set may hold the tag twice
        return [i for i, line in enumerate(self.lines) if line.matches(tag)]

    def find_free_line(self):
        for i, line in enumerate(self.lines):
            if not line.valid:
                return i
        raise LookupError("no free line in a full set")

    def find_eviction_victim(self):
        victim = 0
        lowest = self.lines[0].recency
        for i, line in enumerate(self.lines):
            if line.recency < lowest:
                victim = i
                lowest = line.recency
        return victim

    def max_recency(self):
        return max(line.recency for line in self.lines)

    def touch(self, index, recency):
        self.lines[index].recency = recency

    def fill(self, index, tag, recency):
        line = self.lines[index]
        line.valid = True
        line.tag = tag
        line.recency = recency


class Cache:
    """
    Set-associative cache model, indexed by the set bits of an address.
    Only validity, tags and recency are tracked.
    """

    def __init__(self, params: CacheParameters):
        self.params = params
        self.sets = tuple(CacheSet(params.associativity) for _ in range(params.number_of_sets))

    def __getitem__(self, set_index):
        return self.sets[set_index]

    def __len__(self):
        return len(self.sets)

    def stats(self):
        used_lines = sum(1 for s in self.sets for line in s.lines if line.valid)
        return {
            "cache_size_bytes": self.params.number_of_sets * self.params.associativity * self.params.block_size,
            "line_size": self.params.block_size,
            "associativity": self.params.associativity,
            "num_sets": self.params.number_of_sets,
            "used_lines": used_lines
        }

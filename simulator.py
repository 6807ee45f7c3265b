# simulator.py
import logging

from cache import Cache, CacheParameters

logger = logging.getLogger(__name__)

HIT = "hit"
MISS = "miss"
MISS_EVICTION = "miss eviction"


class CacheStatistics:
    def __init__(self, hits=0, misses=0, evictions=0):
        self.hits = hits
        self.misses = misses
        self.evictions = evictions

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        return self.hits / self.accesses if self.accesses else 0.0

    def as_dict(self):
        return {"hits": self.hits, "misses": self.misses, "evictions": self.evictions}

    def summary(self):
        return f"hits:{self.hits} misses:{self.misses} evictions:{self.evictions}"

    def __eq__(self, other):
        if not isinstance(other, CacheStatistics):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        return f"CacheStatistics({self.summary()})"


class SimulationEngine:
    """
    Owns one Cache and its counters for the length of a run.
    """

    def __init__(self, params: CacheParameters):
        self.params = params
        self.cache = Cache(params)
        self.stats = CacheStatistics()

    def simulate(self, address):
        """
        Replay one access to `address` and return its outcome:
        HIT, MISS or MISS_EVICTION. Counters are updated before returning.
        """
        set_index, tag = self.params.decode(address)
        cache_set = self.cache[set_index]

        hits = cache_set.find_hits(tag)
        for index in hits:
            # one hit counted per matching line
            self.stats.hits += 1
            cache_set.touch(index, cache_set.max_recency() + 1)

        newest = cache_set.max_recency()

        if hits:
            outcome = HIT
        elif cache_set.is_full():
            victim = cache_set.find_eviction_victim()
            cache_set.fill(victim, tag, newest + 1)
            self.stats.misses += 1
            self.stats.evictions += 1
            outcome = MISS_EVICTION
        else:
            cache_set.fill(cache_set.find_free_line(), tag, newest + 1)
            self.stats.misses += 1
            outcome = MISS

        logger.debug("address %#x -> set %d tag %#x: %s", address, set_index, tag, outcome)
        return outcome

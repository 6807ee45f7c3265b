import pytest

from cache import Cache, CacheParameters, CacheSet, ConfigurationError, decode_address


def test_decode_splits_tag_and_set():
    # tag=0b1011, set=0b101, offset=0b1111
    address = 0b1011_101_1111
    assert decode_address(address, 3, 4) == (0b101, 0b1011)


def test_decode_single_set():
    for address in (0, 1, 0xdeadbeef, (1 << 64) - 1):
        set_index, tag = decode_address(address, 0, 4)
        assert set_index == 0
        assert tag == address >> 4


def test_decode_without_block_bits():
    assert decode_address(0b1101, 2, 0) == (0b01, 0b11)


def test_decode_top_of_address_space():
    address = (1 << 64) - 1
    set_index, tag = decode_address(address, 10, 20)
    assert set_index == (1 << 10) - 1
    assert tag == (1 << 34) - 1


def test_decode_is_repeatable():
    params = CacheParameters(5, 2, 6)
    assert params.decode(0x7ff000a3c) == params.decode(0x7ff000a3c)


def test_parameters_derived_sizes():
    params = CacheParameters(4, 2, 6)
    assert params.number_of_sets == 16
    assert params.block_size == 64
    assert params.associativity == 2


@pytest.mark.parametrize("s, E, b", [
    (-1, 1, 1),
    (1, 0, 1),
    (1, 1, -2),
    (32, 1, 32),
    (63, 1, 1),
    (None, 1, 1),
    (1, "2", 1),
])
def test_parameters_reject_invalid_geometry(s, E, b):
    with pytest.raises(ConfigurationError):
        CacheParameters(s, E, b)


def test_parameters_accept_largest_split():
    params = CacheParameters(0, 1, 63)
    assert params.decode((1 << 64) - 1) == (0, 1)


def test_new_set_is_empty():
    cache_set = CacheSet(4)
    assert len(cache_set) == 4
    assert not cache_set.is_full()
    assert cache_set.find_free_line() == 0
    assert cache_set.max_recency() == 0
    assert all(not line.valid and line.tag == 0 for line in cache_set.lines)


def test_find_free_line_skips_valid_lines():
    cache_set = CacheSet(3)
    cache_set.fill(0, 7, 1)
    cache_set.fill(2, 9, 2)
    assert cache_set.find_free_line() == 1


def test_find_free_line_on_full_set_raises():
    cache_set = CacheSet(1)
    cache_set.fill(0, 1, 1)
    assert cache_set.is_full()
    with pytest.raises(LookupError):
        cache_set.find_free_line()


def test_find_hits_reports_every_match():
    cache_set = CacheSet(3)
    cache_set.fill(0, 5, 1)
    cache_set.fill(2, 5, 2)
    assert cache_set.find_hits(5) == [0, 2]
    assert cache_set.find_hits(6) == []


def test_invalid_line_never_hits():
    cache_set = CacheSet(2)
    # empty lines carry tag 0
    assert cache_set.find_hits(0) == []


def test_eviction_victim_is_least_recent():
    cache_set = CacheSet(3)
    cache_set.fill(0, 1, 5)
    cache_set.fill(1, 2, 3)
    cache_set.fill(2, 3, 4)
    assert cache_set.find_eviction_victim() == 1
    assert cache_set.max_recency() == 5


def test_eviction_tie_goes_to_lowest_index():
    cache_set = CacheSet(4)
    for i in range(4):
        cache_set.fill(i, i, 7)
    assert cache_set.find_eviction_victim() == 0


def test_cache_shape_and_stats():
    cache = Cache(CacheParameters(3, 2, 4))
    assert len(cache) == 8
    assert all(len(s) == 2 for s in cache.sets)
    cache[5].fill(1, 3, 1)
    stats = cache.stats()
    assert stats["num_sets"] == 8
    assert stats["associativity"] == 2
    assert stats["line_size"] == 16
    assert stats["cache_size_bytes"] == 8 * 2 * 16
    assert stats["used_lines"] == 1

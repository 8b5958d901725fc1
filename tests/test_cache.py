import pytest

from hwinspect.memory.cache import Cache, CacheType, cache_sort_key
from hwinspect.unitutil import KB


@pytest.mark.parametrize(
    "serialized, name",
    [("unified", "Unified"), ("instruction", "Instruction"), ("data", "Data")],
)
def test_cache_type_names(serialized, name):
    assert str(CacheType.from_json(serialized)) == name


def test_cache_type_json_lowercase():
    assert CacheType.UNIFIED.to_json() == "unified"
    assert CacheType.INSTRUCTION.to_json() == "instruction"
    assert CacheType.DATA.to_json() == "data"


@pytest.mark.parametrize("kind", list(CacheType))
def test_cache_type_round_trip(kind):
    assert CacheType.from_json(kind.to_json()) is kind
    assert CacheType.from_json(str(kind)) is kind


def test_cache_type_unknown():
    with pytest.raises(ValueError, match="unknown memory cache type"):
        CacheType.from_json("Bogus")


def test_cache_type_not_a_string():
    with pytest.raises(TypeError):
        CacheType.from_json(3)


def test_cache_str_with_processors():
    cache = Cache(level=1, type=CacheType.DATA, size_bytes=32 * KB, logical_processors=[0, 1])
    assert str(cache) == "L1d cache (32 KB) shared with logical processors: 0,1"


def test_cache_str_without_processors():
    cache = Cache(level=2, type=CacheType.UNIFIED, size_bytes=256 * KB)
    assert str(cache) == "L2 cache (256 KB)"


def test_cache_str_instruction_marker():
    cache = Cache(level=1, type=CacheType.INSTRUCTION, size_bytes=KB, logical_processors=[3])
    assert str(cache).startswith("L1i cache")
    assert str(cache).endswith(": 3")


def test_cache_to_dict():
    cache = Cache(level=3, type=CacheType.UNIFIED, size_bytes=KB, logical_processors=[0, 2])
    doc = cache.to_dict()
    assert doc["level"] == 3
    assert doc["type"] == "unified"
    assert doc["size_bytes"] == KB
    assert doc["logical_processors"] == [0, 2]
    assert CacheType.from_json(doc["type"]) is cache.type


def test_cache_sort_order():
    l2 = Cache(level=2, type=CacheType.UNIFIED, size_bytes=KB, logical_processors=[0])
    l1d_high = Cache(level=1, type=CacheType.DATA, size_bytes=KB, logical_processors=[4])
    l1d_low = Cache(level=1, type=CacheType.DATA, size_bytes=KB, logical_processors=[0])
    l1i = Cache(level=1, type=CacheType.INSTRUCTION, size_bytes=KB, logical_processors=[2])
    ordered = sorted([l2, l1d_high, l1i, l1d_low], key=cache_sort_key)
    assert ordered == [l1i, l1d_low, l1d_high, l2]


def test_cache_sort_key_needs_processors():
    cache = Cache(level=1, type=CacheType.DATA, size_bytes=KB, logical_processors=[])
    with pytest.raises(IndexError):
        cache_sort_key(cache)
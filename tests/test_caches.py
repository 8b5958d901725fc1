import pytest

from hwinspect.memory.cache import CacheType, cache_sort_key
from hwinspect.memory.caches import caches_for_node
from hwinspect.unitutil import KB


class _Collector:
    def __init__(self):
        self.messages = []

    def warning(self, msg, *args):
        self.messages.append(msg % args if args else msg)


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


INDEXES = [
    ("1", "Data", "32K"),
    ("1", "Instruction", "32K"),
    ("2", "Unified", "256K"),
]


def _make_node(node, cpu_maps):
    _write(node / "cpulist", "0-1\n")
    _write(node / "cpumap", "3\n")
    _write(node / "meminfo", "Node 0 MemTotal: 1 kB\n")
    for cpu, shared in cpu_maps.items():
        for idx, (level, kind, size) in enumerate(INDEXES):
            base = node / f"cpu{cpu}" / "cache" / f"index{idx}"
            _write(base / "level", level + "\n")
            _write(base / "type", kind + "\n")
            _write(base / "size", size + "\n")
            _write(base / "shared_cpu_map", shared + "\n")
    return node


def test_shared_caches_deduplicated(tmp_path):
    node = _make_node(tmp_path / "node0", {1: "3", 0: "3"})
    caches = sorted(caches_for_node(str(node), _Collector()), key=cache_sort_key)
    assert len(caches) == len(INDEXES)
    assert all(c.logical_processors == [0, 1] for c in caches)
    assert [(c.level, c.type) for c in caches] == [
        (1, CacheType.INSTRUCTION),
        (1, CacheType.DATA),
        (2, CacheType.UNIFIED),
    ]
    assert caches[2].size_bytes == 256 * KB


def test_private_caches_kept_apart(tmp_path):
    node = _make_node(tmp_path / "node0", {0: "1", 1: "2"})
    caches = caches_for_node(str(node), _Collector())
    assert len(caches) == 2 * len(INDEXES)
    assert sorted(c.logical_processors[0] for c in caches) == [0, 0, 0, 1, 1, 1]
    assert all(len(c.logical_processors) == 1 for c in caches)


def test_cpu_without_cache_dir_skipped(tmp_path):
    node = _make_node(tmp_path / "node0", {0: "1"})
    (node / "cpu5").mkdir()
    caches = caches_for_node(str(node), _Collector())
    assert len(caches) == len(INDEXES)
    assert all(c.logical_processors == [0] for c in caches)


def test_unreadable_level_warns(tmp_path):
    node = _make_node(tmp_path / "node0", {0: "1"})
    (node / "cpu0" / "cache" / "index2" / "level").unlink()
    alerter = _Collector()
    caches = caches_for_node(str(node), alerter)
    assert -1 in [c.level for c in caches]
    assert alerter.messages


def test_unparsable_level_warns(tmp_path):
    node = _make_node(tmp_path / "node0", {0: "1"})
    _write(node / "cpu0" / "cache" / "index2" / "level", "two\n")
    alerter = _Collector()
    caches = caches_for_node(str(node), alerter)
    assert -1 in [c.level for c in caches]
    assert any("Unable to parse int" in m for m in alerter.messages)


def test_missing_node_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        caches_for_node(str(tmp_path / "node9"), _Collector())
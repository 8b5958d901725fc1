"""Discover the processor caches of a NUMA node from sysfs."""

from __future__ import annotations

import os
from typing import Optional

from hwinspect.memory.cache import Cache, CacheType
from hwinspect.option import Alerter, env_or_default_alerter
from hwinspect.unitutil import KB


def _read_text(path: str, alerter: Alerter) -> Optional[str]:
    try:
        with open(path, encoding="utf-8") as handle:
            return handle.read()
    except OSError as err:
        alerter.warning("%s", err)
        return None


def _cache_level(index_dir: str, alerter: Alerter) -> int:
    contents = _read_text(os.path.join(index_dir, "level"), alerter)
    if contents is None:
        return -1
    try:
        return int(contents[:-1])
    except ValueError:
        alerter.warning("Unable to parse int from %s", contents)
        return -1


def _cache_size(index_dir: str, alerter: Alerter) -> int:
    # The file holds "<N>K\n".
    contents = _read_text(os.path.join(index_dir, "size"), alerter)
    if contents is None:
        return -1
    try:
        return int(contents[:-2])
    except ValueError:
        alerter.warning("Unable to parse int from %s", contents)
        return -1


def _cache_type(index_dir: str, alerter: Alerter) -> CacheType:
    contents = _read_text(os.path.join(index_dir, "type"), alerter)
    if contents is None:
        return CacheType.UNIFIED
    return {"Data": CacheType.DATA, "Instruction": CacheType.INSTRUCTION}.get(
        contents[:-1], CacheType.UNIFIED
    )


def _shared_cpu_map(index_dir: str, alerter: Alerter) -> str:
    contents = _read_text(os.path.join(index_dir, "shared_cpu_map"), alerter)
    if contents is None:
        return ""
    return contents[:-1]


def caches_for_node(node_dir: str, alerter: Optional[Alerter] = None) -> list[Cache]:
    """Return the distinct caches of the logical processors under ``node_dir``.

    Caches seen by several processors are reported once, with all the
    processors that share them, sorted by id.
    """
    if alerter is None:
        alerter = env_or_default_alerter()
    caches: dict[str, Cache] = {}

    for filename in sorted(os.listdir(node_dir)):
        if not filename.startswith("cpu") or filename in ("cpumap", "cpulist"):
            continue
        try:
            lp_id = int(filename[3:])
        except ValueError:
            lp_id = 0
        cache_path = os.path.join(node_dir, filename, "cache")
        if not os.path.exists(cache_path):
            continue

        for index_name in sorted(os.listdir(cache_path)):
            if not index_name.startswith("index"):
                continue
            index_dir = os.path.join(cache_path, index_name)
            level = _cache_level(index_dir, alerter)
            cache_type = _cache_type(index_dir, alerter)
            shared_map = _shared_cpu_map(index_dir, alerter)
            key = f"{level}-{int(cache_type)}-{shared_map}"

            cache = caches.get(key)
            if cache is None:
                # The size is taken from the index directory numbered after the level.
                size = _cache_size(os.path.join(cache_path, f"index{level}"), alerter)
                cache = Cache(
                    level=level,
                    type=cache_type,
                    size_bytes=size * KB,
                    logical_processors=[],
                )
                caches[key] = cache
            cache.logical_processors.append(lp_id)

    for cache in caches.values():
        cache.logical_processors.sort()
    return list(caches.values())
"""Processor memory caches."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Optional

from hwinspect.unitutil import KB


class CacheType(enum.IntEnum):
    """Kind of data a cache holds."""

    UNIFIED = 0
    INSTRUCTION = 1
    DATA = 2

    def __str__(self) -> str:
        return _CACHE_TYPE_NAMES[self]

    def to_json(self) -> str:
        """Return the serialized (lower-case) name."""
        return str(self).lower()

    @classmethod
    def from_json(cls, data: Any) -> "CacheType":
        """Parse a serialized name, case-insensitively."""
        if not isinstance(data, str):
            raise TypeError(f"memory cache type must be a string, not {type(data).__name__}")
        key = data.lower()
        try:
            return _CACHE_TYPES_BY_KEY[key]
        except KeyError:
            raise ValueError(f"unknown memory cache type: {json.dumps(key)}") from None


_CACHE_TYPE_NAMES = {
    CacheType.UNIFIED: "Unified",
    CacheType.INSTRUCTION: "Instruction",
    CacheType.DATA: "Data",
}

_CACHE_TYPES_BY_KEY = {name.lower(): kind for kind, name in _CACHE_TYPE_NAMES.items()}


@dataclass
class Cache:
    """A cache level and the logical processors that share it."""

    level: int
    type: CacheType
    size_bytes: int
    logical_processors: Optional[list[int]] = None

    def __str__(self) -> str:
        size_kb = self.size_bytes // KB
        type_str = {CacheType.INSTRUCTION: "i", CacheType.DATA: "d"}.get(self.type, "")
        processors = ""
        if self.logical_processors is not None:
            processors = " shared with logical processors: " + ",".join(
                str(lp) for lp in self.logical_processors
            )
        return f"L{self.level}{type_str} cache ({size_kb} KB){processors}"

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return {
            "level": self.level,
            "type": self.type.to_json(),
            "size_bytes": self.size_bytes,
            "logical_processors": (
                None if self.logical_processors is None else list(self.logical_processors)
            ),
        }


def cache_sort_key(cache: Cache) -> tuple[int, int, int]:
    """Order caches by level, then type, then lowest logical processor id."""
    return (cache.level, int(cache.type), cache.logical_processors[0])
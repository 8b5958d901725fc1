"""System memory areas: total physical and usable memory and page sizes."""

from __future__ import annotations

import gzip
import json
import os
import re
from dataclasses import asdict, dataclass
from glob import glob
from typing import Any, Optional

import yaml

from hwinspect.option import DEFAULT_CHROOT, Alerter, env_or_default_alerter
from hwinspect.unitutil import KB, amount_string
from hwinspect.util import UNKNOWN

_WARN_CANNOT_DETERMINE_PHYSICAL_MEMORY = """
Could not determine total physical bytes of memory. This may
be due to the host being a virtual machine or container with no
/var/log/syslog file or /sys/devices/system/memory directory, or
the current user may not have necessary privileges to read the syslog.
We are falling back to setting the total physical amount of memory to
the total usable amount of memory
"""

# Kernel log lines look like: ... kernel: [0.000000] Memory: 24633272K/25155024K ...
_SYSLOG_MEMLINE = re.compile(r"Memory:\s+\d+K/(\d+)K")


class MemoryInfoError(RuntimeError):
    """Raised when the memory information cannot be determined."""


@dataclass
class Module:
    """A physical memory module (DIMM)."""

    label: str = ""
    location: str = ""
    serial_number: str = ""
    device_locator: str = ""
    size_bytes: int = 0
    vendor: str = ""
    speed: int = 0
    total_width: int = 0
    data_width: int = 0
    part_number: str = ""
    position_in_row: int = 0


def _format_amount(amount: int) -> str:
    if amount <= 0:
        return UNKNOWN
    unit, suffix = amount_string(amount)
    return f"{-(-amount // unit)}{suffix}"


@dataclass
class Area:
    """An amount of memory, system-wide or belonging to one NUMA node."""

    total_physical_bytes: int = 0
    total_usable_bytes: int = 0
    supported_page_sizes: Optional[list[int]] = None
    modules: Optional[list[Module]] = None

    def __str__(self) -> str:
        return (
            f"memory ({_format_amount(self.total_physical_bytes)} physical, "
            f"{_format_amount(self.total_usable_bytes)} usable)"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return {
            "total_physical_bytes": self.total_physical_bytes,
            "total_usable_bytes": self.total_usable_bytes,
            "supported_page_sizes": (
                None if self.supported_page_sizes is None else list(self.supported_page_sizes)
            ),
            "modules": (
                None if self.modules is None else [asdict(module) for module in self.modules]
            ),
        }


@dataclass
class Info(Area):
    """Memory information of the host."""

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return super().to_dict()

    def json_string(self, indent: bool) -> str:
        """Return the information as JSON under a top-level "memory" key."""
        doc = {"memory": self.to_dict()}
        if indent:
            return json.dumps(doc, indent=2)
        return json.dumps(doc, separators=(",", ":"))

    def yaml_string(self) -> str:
        """Return the information as YAML under a top-level "memory" key."""
        return yaml.safe_dump({"memory": self.to_dict()}, default_flow_style=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Info":
        """Build an Info from the mapping produced by :meth:`to_dict`."""
        page_sizes = data.get("supported_page_sizes")
        modules = data.get("modules")
        return cls(
            total_physical_bytes=int(data.get("total_physical_bytes", 0)),
            total_usable_bytes=int(data.get("total_usable_bytes", 0)),
            supported_page_sizes=None if page_sizes is None else [int(s) for s in page_sizes],
            modules=None if modules is None else [Module(**m) for m in modules],
        )


def load_memory(chroot: str = DEFAULT_CHROOT, alerter: Optional[Alerter] = None) -> Info:
    """Read the host memory information from the system rooted at ``chroot``."""
    if alerter is None:
        alerter = env_or_default_alerter()
    meminfo = os.path.join(chroot, "proc", "meminfo")
    sys_memory_dir = os.path.join(chroot, "sys", "devices", "system", "memory")
    hugepages_dir = os.path.join(chroot, "sys", "kernel", "mm", "hugepages")
    log_dir = os.path.join(chroot, "var", "log")

    try:
        usable = total_usable_bytes_from_path(meminfo)
    except (OSError, ValueError):
        usable = -1
    if usable < 1:
        raise MemoryInfoError("Could not determine total usable bytes of memory")

    physical = _total_physical_bytes(sys_memory_dir, log_dir)
    if physical < 1:
        alerter.warning(_WARN_CANNOT_DETERMINE_PHYSICAL_MEMORY)
        physical = usable

    try:
        page_sizes = supported_page_sizes(hugepages_dir)
    except (OSError, ValueError):
        page_sizes = []

    return Info(
        total_physical_bytes=physical,
        total_usable_bytes=usable,
        supported_page_sizes=page_sizes,
    )


def area_for_node(node_dir: str, sys_memory_dir: str) -> Area:
    """Return the memory area of the NUMA node whose sysfs directory is ``node_dir``."""
    block_size = memory_block_size_bytes(sys_memory_dir)
    return Area(
        total_physical_bytes=total_physical_bytes_from_path(node_dir, block_size),
        total_usable_bytes=total_usable_bytes_from_path(os.path.join(node_dir, "meminfo")),
        supported_page_sizes=supported_page_sizes(os.path.join(node_dir, "hugepages")),
    )


def memory_block_size_bytes(directory: str) -> int:
    """Return the memory block size stored in hexadecimal in ``block_size_bytes``."""
    with open(os.path.join(directory, "block_size_bytes"), encoding="utf-8") as handle:
        return int(handle.read().strip(), 16)


def _total_physical_bytes(sys_memory_dir: str, log_dir: str) -> int:
    try:
        block_size = memory_block_size_bytes(sys_memory_dir)
        return total_physical_bytes_from_path(sys_memory_dir, block_size)
    except (OSError, ValueError):
        return total_physical_bytes_from_syslog(log_dir)


def total_physical_bytes_from_path(directory: str, block_size_bytes: int) -> int:
    """Sum ``block_size_bytes`` for each online ``memory*`` block in ``directory``."""
    blocks = sorted(glob(os.path.join(glob_escape(directory), "memory*")))
    if not blocks:
        raise FileNotFoundError(f"cannot find memory entries in {json.dumps(directory)}")
    total = 0
    for block in blocks:
        with open(os.path.join(block, "state"), encoding="utf-8") as handle:
            if handle.read().strip() == "online":
                total += block_size_bytes
    return total


def glob_escape(path: str) -> str:
    """Escape glob metacharacters in a literal path."""
    return re.sub(r"([*?\[])", r"[\1]", path)


def _physical_from_line(line: str) -> int:
    match = _SYSLOG_MEMLINE.search(line)
    if match is None:
        return -1
    return int(match.group(1)) * 1024


def total_physical_bytes_from_syslog(log_dir: str) -> int:
    """Find the boot-time physical memory line in the syslog files; -1 if absent."""
    try:
        names = sorted(os.listdir(log_dir))
    except OSError:
        return -1
    for name in names:
        if not name.startswith("syslog"):
            continue
        path = os.path.join(log_dir, name)
        opener = gzip.open if name.endswith(".gz") else open
        try:
            with opener(path, "rt", encoding="utf-8", errors="replace") as handle:
                for line in handle:
                    size = _physical_from_line(line)
                    if size > 0:
                        return size
        except (OSError, EOFError):
            return -1
    return -1


def total_usable_bytes_from_path(meminfo_path: str) -> int:
    """Return the MemTotal amount, in bytes, of a meminfo file."""
    with open(meminfo_path, encoding="utf-8") as handle:
        for line in handle:
            parts = line.rstrip("\n").split(":")
            if "MemTotal" not in parts[0]:
                continue
            if len(parts) < 2:
                raise ValueError(f"malformed MemTotal entry in path {json.dumps(meminfo_path)}")
            raw = parts[1]
            in_kb = raw.endswith("kB")
            value = int(raw.removesuffix("kB").strip())
            return value * KB if in_kb else value
    raise ValueError(f"failed to find MemTotal entry in path {json.dumps(meminfo_path)}")


def supported_page_sizes(hp_dir: str) -> list[int]:
    """Return the page sizes, in bytes, of the ``hugepages-<N>kB`` entries of ``hp_dir``."""
    sizes = []
    for name in sorted(os.listdir(hp_dir)):
        parts = name.split("-")
        if len(parts) < 2:
            raise ValueError(f"unexpected huge page directory name {name!r}")
        sizes.append(int(parts[1][:-2]) * KB)
    return sizes
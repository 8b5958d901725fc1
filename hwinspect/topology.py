"""System topology: NUMA nodes with their caches, distances and memory."""

from __future__ import annotations

import enum
import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from hwinspect.memory.area import Area, area_for_node
from hwinspect.memory.cache import Cache, cache_sort_key
from hwinspect.memory.caches import caches_for_node
from hwinspect.option import DEFAULT_CHROOT, Alerter, env_or_default_alerter


class Architecture(enum.IntEnum):
    """Overall hardware architecture."""

    SMP = 0
    NUMA = 1

    def __str__(self) -> str:
        return self.name

    def to_json(self) -> str:
        """Return the serialized (lower-case) name."""
        return self.name.lower()

    @classmethod
    def from_json(cls, data: Any) -> "Architecture":
        """Parse a serialized name, case-insensitively."""
        if not isinstance(data, str):
            raise TypeError(f"architecture must be a string, not {type(data).__name__}")
        key = data.lower()
        for arch in cls:
            if arch.name.lower() == key:
                return arch
        raise ValueError(f"unknown architecture: {json.dumps(key)}")


@dataclass
class Node:
    """A collection of processors and the memory caches they share."""

    id: int
    cores: list[Any] = field(default_factory=list)
    caches: list[Cache] = field(default_factory=list)
    distances: list[int] = field(default_factory=list)
    memory: Optional[Area] = None

    def __str__(self) -> str:
        return f"node #{self.id} ({len(self.cores)} cores)"

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return {
            "id": self.id,
            "cores": [
                core.to_dict() if hasattr(core, "to_dict") else core for core in self.cores
            ],
            "caches": [cache.to_dict() for cache in self.caches],
            "distances": list(self.distances),
            "memory": None if self.memory is None else self.memory.to_dict(),
        }


@dataclass
class Info:
    """The topology of the host."""

    architecture: Architecture = Architecture.SMP
    nodes: list[Node] = field(default_factory=list)

    def __str__(self) -> str:
        return f"topology {self.architecture} ({len(self.nodes)} nodes)"

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return {
            "architecture": self.architecture.to_json(),
            "nodes": [node.to_dict() for node in self.nodes],
        }

    def json_string(self, indent: bool) -> str:
        """Return the information as JSON under a top-level "topology" key."""
        doc = {"topology": self.to_dict()}
        if indent:
            return json.dumps(doc, indent=2)
        return json.dumps(doc, separators=(",", ":"))

    def yaml_string(self) -> str:
        """Return the information as YAML under a top-level "topology" key."""
        return yaml.safe_dump({"topology": self.to_dict()}, default_flow_style=False)


def distances_for_node(node_dir: str) -> list[int]:
    """Return the distances from the node in ``node_dir`` to every node."""
    with open(os.path.join(node_dir, "distance"), encoding="utf-8") as handle:
        return [int(item) for item in handle.read().split()]


def topology_nodes(
    sys_node_dir: str, sys_memory_dir: str, alerter: Optional[Alerter] = None
) -> list[Node]:
    """Return the nodes under ``sys_node_dir``; stop at the first that cannot be read."""
    if alerter is None:
        alerter = env_or_default_alerter()
    nodes: list[Node] = []
    try:
        names = sorted(os.listdir(sys_node_dir))
    except OSError as err:
        alerter.warning("failed to determine nodes: %s", err)
        return nodes

    for name in names:
        if not name.startswith("node"):
            continue
        try:
            node_id = int(name[4:])
        except ValueError as err:
            alerter.warning("failed to determine node ID: %s", err)
            return nodes
        node_dir = os.path.join(sys_node_dir, name)

        try:
            caches = caches_for_node(node_dir, alerter)
        except OSError as err:
            alerter.warning("failed to determine caches for node: %s", err)
            return nodes
        try:
            distances = distances_for_node(node_dir)
        except (OSError, ValueError) as err:
            alerter.warning("failed to determine node distances for node: %s", err)
            return nodes
        try:
            area = area_for_node(node_dir, sys_memory_dir)
        except (OSError, ValueError) as err:
            alerter.warning("failed to determine memory area for node: %s", err)
            return nodes

        nodes.append(Node(id=node_id, caches=caches, distances=distances, memory=area))
    return nodes


def load_topology(chroot: str = DEFAULT_CHROOT, alerter: Optional[Alerter] = None) -> Info:
    """Read the topology of the system rooted at ``chroot``."""
    system_dir = os.path.join(chroot, "sys", "devices", "system")
    nodes = topology_nodes(
        os.path.join(system_dir, "node"), os.path.join(system_dir, "memory"), alerter
    )
    for node in nodes:
        node.caches.sort(key=cache_sort_key)
    architecture = Architecture.SMP if len(nodes) == 1 else Architecture.NUMA
    return Info(architecture=architecture, nodes=nodes)
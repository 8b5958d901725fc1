"""Network interface controllers (NICs) of the host."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from hwinspect.option import DEFAULT_CHROOT, Alerter, env_or_default_alerter

_WARN_ETHTOOL_NOT_INSTALLED = "ethtool not installed. Cannot grab NIC capabilities"


@dataclass
class NICCapability:
    """An offload feature of a NIC and whether it can be toggled."""

    name: str
    is_enabled: bool = False
    can_enable: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return {
            "name": self.name,
            "is_enabled": self.is_enabled,
            "can_enable": self.can_enable,
        }


@dataclass
class NIC:
    """A network interface controller."""

    name: str
    mac_address: str = ""
    is_virtual: bool = False
    capabilities: list[NICCapability] = field(default_factory=list)
    pci_address: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.name} (virtual)" if self.is_virtual else self.name

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields; ``pci_address`` only when known."""
        doc: dict[str, Any] = {
            "name": self.name,
            "mac_address": self.mac_address,
            "is_virtual": self.is_virtual,
            "capabilities": [cap.to_dict() for cap in self.capabilities],
        }
        if self.pci_address is not None:
            doc["pci_address"] = self.pci_address
        return doc


@dataclass
class Info:
    """The NICs found on the host."""

    nics: list[NIC] = field(default_factory=list)

    def __str__(self) -> str:
        return f"net ({len(self.nics)} NICs)"

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return {"nics": [nic.to_dict() for nic in self.nics]}

    def json_string(self, indent: bool) -> str:
        """Return the information as JSON under a top-level "network" key."""
        doc = {"network": self.to_dict()}
        if indent:
            return json.dumps(doc, indent=2)
        return json.dumps(doc, separators=(",", ":"))

    def yaml_string(self) -> str:
        """Return the information as YAML under a top-level "network" key."""
        return yaml.safe_dump({"network": self.to_dict()}, default_flow_style=False)


def parse_ethtool_feature(line: str) -> NICCapability:
    """Parse one ``name: on|off [fixed]`` line of ``ethtool -k`` output."""
    parts = line.split()
    if len(parts) < 2:
        raise ValueError(f"malformed ethtool feature line: {line!r}")
    fixed = len(parts) == 3 and parts[2] == "[fixed]"
    return NICCapability(
        name=parts[0].removesuffix(":"),
        is_enabled=parts[1] == "on",
        can_enable=not fixed,
    )


def _read_stripped(path: str) -> Optional[str]:
    try:
        with open(path, encoding="utf-8") as handle:
            return handle.read().strip()
    except OSError:
        return None


def net_device_mac_address(sys_class_net: str, dev: str) -> str:
    """Return the device's permanent MAC address, or "" if random or unreadable."""
    assign_type = _read_stripped(os.path.join(sys_class_net, dev, "addr_assign_type"))
    if assign_type != "0":
        return ""
    address = _read_stripped(os.path.join(sys_class_net, dev, "address"))
    return address or ""


def ethtool_installed() -> bool:
    """Return True if the ethtool program can be found."""
    return shutil.which("ethtool") is not None


def net_device_capabilities(dev: str, alerter: Optional[Alerter] = None) -> list[NICCapability]:
    """Run ``ethtool -k dev`` and return the features it reports."""
    if alerter is None:
        alerter = env_or_default_alerter()
    path = shutil.which("ethtool") or "ethtool"
    try:
        result = subprocess.run(
            [path, "-k", dev], check=True, capture_output=True, text=True
        )
    except (OSError, subprocess.SubprocessError) as err:
        alerter.warning("could not grab NIC capabilities for %s: %s", dev, err)
        return []
    lines = result.stdout.splitlines()[1:]  # the first line is a header
    return [
        parse_ethtool_feature(line.removeprefix("\t"))
        for line in lines
        if line.strip()
    ]


def _lexical_join(base: str, rel: str) -> str:
    return os.path.normpath(f"{base}/{rel}")


def net_device_pci_address(net_dev_dir: str, net_dev_name: str) -> Optional[str]:
    """Follow sysfs links from the interface to its backing PCI device address."""
    try:
        dest = os.readlink(os.path.join(net_dev_dir, net_dev_name))
        net_dev = _lexical_join(net_dev_dir, dest)
        dest = os.readlink(os.path.join(net_dev, "device"))
        dev_path = _lexical_join(net_dev, dest)
        subsystem = os.readlink(os.path.join(dev_path, "subsystem"))
    except OSError:
        return None
    if not subsystem.endswith("/bus/pci"):
        return None
    return os.path.basename(dev_path)


def nics(
    sys_class_net: str, enable_tools: bool = True, alerter: Optional[Alerter] = None
) -> list[NIC]:
    """Return the non-loopback NICs listed in ``sys_class_net``."""
    if alerter is None:
        alerter = env_or_default_alerter()
    try:
        names = sorted(os.listdir(sys_class_net))
    except OSError:
        return []

    use_ethtool = enable_tools
    if use_ethtool and not ethtool_installed():
        alerter.warning(_WARN_ETHTOOL_NOT_INSTALLED)
        use_ethtool = False

    result = []
    for name in names:
        if name == "lo":
            continue
        try:
            dest = os.readlink(os.path.join(sys_class_net, name))
        except OSError:
            dest = ""
        result.append(
            NIC(
                name=name,
                mac_address=net_device_mac_address(sys_class_net, name),
                is_virtual="devices/virtual/net" in dest,
                capabilities=net_device_capabilities(name, alerter) if use_ethtool else [],
                pci_address=net_device_pci_address(sys_class_net, name),
            )
        )
    return result


def load_net(
    chroot: str = DEFAULT_CHROOT,
    enable_tools: bool = True,
    alerter: Optional[Alerter] = None,
) -> Info:
    """Read the NIC information of the system rooted at ``chroot``."""
    sys_class_net = os.path.join(chroot, "sys", "class", "net")
    return Info(nics=nics(sys_class_net, enable_tools, alerter))
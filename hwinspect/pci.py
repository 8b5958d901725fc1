"""PCI devices of the host, described with the help of a PCI ID database."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from hwinspect.option import DEFAULT_CHROOT, Alerter, env_or_default_alerter
from hwinspect.pciaddress import Address
from hwinspect.pciaddress import from_string as address_from_string
from hwinspect.topology import Architecture, Node
from hwinspect.util import UNKNOWN, safe_int_from_file

# Length of a modalias line as found on real systems, trailing newline included.
MODALIAS_EXPECTED_LENGTH = 54


@dataclass
class ProgrammingInterface:
    """A programming interface of a PCI subclass."""

    id: str
    name: str = UNKNOWN


@dataclass
class Subclass:
    """A PCI device subclass."""

    id: str
    name: str = UNKNOWN
    programming_interfaces: list[ProgrammingInterface] = field(default_factory=list)


@dataclass
class PCIClass:
    """A PCI device class."""

    id: str
    name: str = UNKNOWN
    subclasses: list[Subclass] = field(default_factory=list)


@dataclass
class Product:
    """A PCI product (device model), possibly a subsystem of another product."""

    id: str
    name: str = UNKNOWN
    vendor_id: str = ""
    subsystems: list["Product"] = field(default_factory=list)


@dataclass
class Vendor:
    """A PCI vendor."""

    id: str
    name: str = UNKNOWN
    products: list[Product] = field(default_factory=list)


@dataclass(frozen=True)
class ModaliasInfo:
    """The identifiers encoded in a device's modalias."""

    vendor_id: str
    product_id: str
    subvendor_id: str
    subproduct_id: str
    class_id: str
    subclass_id: str
    prog_iface_id: str


def _ident(item: Any) -> dict[str, str]:
    if item is None:
        return {"id": "", "name": ""}
    return {"id": item.id, "name": item.name}


@dataclass
class Device:
    """A PCI device and what the database knows about it."""

    address: str
    vendor: Optional[Vendor] = None
    product: Optional[Product] = None
    revision: str = ""
    subsystem: Optional[Product] = None
    pci_class: Optional[PCIClass] = None
    subclass: Optional[Subclass] = None
    programming_interface: Optional[ProgrammingInterface] = None
    node: Optional[Node] = None
    driver: str = ""

    def __str__(self) -> str:
        vendor_name = self.vendor.name if self.vendor is not None else UNKNOWN
        product_name = self.product.name if self.product is not None else UNKNOWN
        class_name = self.pci_class.name if self.pci_class is not None else UNKNOWN
        return (
            f"{self.address} -> driver: '{self.driver}' class: '{class_name}' "
            f"vendor: '{vendor_name}' product: '{product_name}'"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields: ids and names only, not whole database entries."""
        return {
            "driver": self.driver,
            "address": self.address,
            "vendor": _ident(self.vendor),
            "product": _ident(self.product),
            "revision": self.revision,
            "subsystem": _ident(self.subsystem),
            "class": _ident(self.pci_class),
            "subclass": _ident(self.subclass),
            "programming_interface": _ident(self.programming_interface),
        }


def parse_modalias_data(data: str) -> Optional[ModaliasInfo]:
    """Decode a modalias string; return None if it is too short.

    The format is ``pci:v<8>d<8>sv<8>sd<8>bc<2>sc<2>i<2>``; data beyond the
    expected length is ignored.
    """
    if len(data) < MODALIAS_EXPECTED_LENGTH:
        return None
    return ModaliasInfo(
        vendor_id=data[9:13].lower(),
        product_id=data[18:22].lower(),
        subvendor_id=data[28:32].lower(),
        subproduct_id=data[38:42].lower(),
        class_id=data[44:46],
        subclass_id=data[48:50],
        prog_iface_id=data[51:53],
    )


def parse_modalias_file(path: str) -> Optional[ModaliasInfo]:
    """Read and decode a modalias file; return None if unreadable or malformed."""
    try:
        with open(path, encoding="utf-8") as handle:
            data = handle.read()
    except OSError:
        return None
    return parse_modalias_data(data)


@dataclass
class Info:
    """The PCI devices of the host, with the database used to describe them."""

    chroot: str = DEFAULT_CHROOT
    architecture: Architecture = Architecture.SMP
    alerter: Alerter = field(default_factory=env_or_default_alerter)
    classes: dict[str, PCIClass] = field(default_factory=dict)
    vendors: dict[str, Vendor] = field(default_factory=dict)
    products: dict[str, Product] = field(default_factory=dict)
    devices: list[Device] = field(default_factory=list)

    @property
    def sys_bus_pci_devices(self) -> str:
        return os.path.join(self.chroot, "sys", "bus", "pci", "devices")

    def __str__(self) -> str:
        return f"PCI ({len(self.devices)} devices)"

    def _device_dir(self, addr: Address) -> str:
        return os.path.join(self.sys_bus_pci_devices, str(addr))

    def _lookup_device(self, address: str) -> Optional[Device]:
        return next((dev for dev in self.devices if dev.address == address), None)

    def _revision(self, addr: Address) -> str:
        try:
            with open(os.path.join(self._device_dir(addr), "revision"), encoding="utf-8") as handle:
                return handle.read().strip()
        except OSError:
            return ""

    def _numa_node(self, addr: Address) -> Optional[Node]:
        path = os.path.join(self._device_dir(addr), "numa_node")
        if not os.path.exists(path):
            return None
        node_id = safe_int_from_file(path, self.alerter)
        if node_id == -1:
            return None
        return Node(id=node_id)

    def _driver(self, addr: Address) -> str:
        path = os.path.join(self._device_dir(addr), "driver")
        if not os.path.exists(path):
            return ""
        try:
            return os.path.basename(os.readlink(path))
        except OSError:
            return ""

    def _vendor(self, vendor_id: str) -> Vendor:
        return self.vendors.get(vendor_id) or Vendor(id=vendor_id)

    def _product(self, vendor_id: str, product_id: str) -> Product:
        return self.products.get(vendor_id + product_id) or Product(id=product_id)

    def _subsystem(
        self, vendor_id: str, product_id: str, subvendor_id: str, subproduct_id: str
    ) -> Product:
        product = self.products.get(vendor_id + product_id)
        if product is not None and subvendor_id in self.vendors:
            for sub in product.subsystems:
                if sub.id == subproduct_id:
                    return sub
        return Product(id=subproduct_id, vendor_id=subvendor_id)

    def _class(self, class_id: str) -> PCIClass:
        return self.classes.get(class_id) or PCIClass(id=class_id)

    def _subclass(self, class_id: str, subclass_id: str) -> Subclass:
        pci_class = self.classes.get(class_id)
        if pci_class is not None:
            for sub in pci_class.subclasses:
                if sub.id == subclass_id:
                    return sub
        return Subclass(id=subclass_id)

    def _programming_interface(
        self, class_id: str, subclass_id: str, prog_iface_id: str
    ) -> ProgrammingInterface:
        for iface in self._subclass(class_id, subclass_id).programming_interfaces:
            if iface.id == prog_iface_id:
                return iface
        return ProgrammingInterface(id=prog_iface_id)

    def _device_from_modalias(self, address: str, info: ModaliasInfo) -> Device:
        return Device(
            address=address,
            vendor=self._vendor(info.vendor_id),
            product=self._product(info.vendor_id, info.product_id),
            subsystem=self._subsystem(
                info.vendor_id, info.product_id, info.subvendor_id, info.subproduct_id
            ),
            pci_class=self._class(info.class_id),
            subclass=self._subclass(info.class_id, info.subclass_id),
            programming_interface=self._programming_interface(
                info.class_id, info.subclass_id, info.prog_iface_id
            ),
        )

    def get_device(self, address: str) -> Optional[Device]:
        """Return the device at ``address``, from the cache or the system; None if absent."""
        cached = self._lookup_device(address)
        if cached is not None:
            return cached

        addr = address_from_string(address)
        if addr is None:
            self.alerter.warning("error parsing the pci address %r", address)
            return None

        modalias = parse_modalias_file(os.path.join(self._device_dir(addr), "modalias"))
        if modalias is None:
            self.alerter.warning("error parsing modalias info for device %r", address)
            return None

        device = self._device_from_modalias(address, modalias)
        device.revision = self._revision(addr)
        if self.architecture == Architecture.NUMA:
            device.node = self._numa_node(addr)
        device.driver = self._driver(addr)
        return device

    def parse_device(self, address: str, modalias: str) -> Optional[Device]:
        """Build a device from its describing data; it need not exist on the system."""
        info = parse_modalias_data(modalias)
        if info is None:
            return None
        return self._device_from_modalias(address, info)

    def list_devices(self) -> list[Device]:
        """Return the devices found under the system's PCI devices directory."""
        try:
            names = sorted(os.listdir(self.sys_bus_pci_devices))
        except OSError:
            self.alerter.warning("failed to read /sys/bus/pci/devices")
            return []
        devices = []
        for name in names:
            device = self.get_device(name)
            if device is None:
                self.alerter.warning("failed to get device information for PCI address %s", name)
            else:
                devices.append(device)
        return devices

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable fields."""
        return {"devices": [device.to_dict() for device in self.devices]}

    def json_string(self, indent: bool) -> str:
        """Return the information as JSON under a top-level "pci" key."""
        doc = {"pci": self.to_dict()}
        if indent:
            return json.dumps(doc, indent=2)
        return json.dumps(doc, separators=(",", ":"))

    def yaml_string(self) -> str:
        """Return the information as YAML under a top-level "pci" key."""
        return yaml.safe_dump({"pci": self.to_dict()}, default_flow_style=False)
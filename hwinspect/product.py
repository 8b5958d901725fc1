"""Product (system) identification information."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass

import yaml

from hwinspect.util import UNKNOWN, concat_strings


@dataclass
class Info:
    """Identification of the host product."""

    family: str = ""
    name: str = ""
    vendor: str = ""
    serial_number: str = ""
    uuid: str = ""
    sku: str = ""
    version: str = ""

    def __str__(self) -> str:
        def part(label: str, value: str, hide_unknown: bool = False) -> str:
            if not value or (hide_unknown and value == UNKNOWN):
                return ""
            return f" {label}={value}"

        return "product" + concat_strings(
            part("family", self.family),
            part("name", self.name),
            part("vendor", self.vendor),
            part("serial", self.serial_number, hide_unknown=True),
            part("uuid", self.uuid, hide_unknown=True),
            part("sku", self.sku),
            part("version", self.version),
        )

    def to_dict(self) -> dict[str, str]:
        """Return the serializable fields."""
        return asdict(self)

    def json_string(self, indent: bool) -> str:
        """Return the information as JSON under a top-level "product" key."""
        doc = {"product": self.to_dict()}
        if indent:
            return json.dumps(doc, indent=2)
        return json.dumps(doc, separators=(",", ":"))

    def yaml_string(self) -> str:
        """Return the information as YAML under a top-level "product" key."""
        return yaml.safe_dump({"product": self.to_dict()}, default_flow_style=False)
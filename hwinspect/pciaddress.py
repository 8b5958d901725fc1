"""PCI addresses in [domain:]bus:device.function form."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_ADDRESS_RE = re.compile(
    r"(([0-9a-f]{0,4}):)?([0-9a-f]{2}):([0-9a-f]{2})\.([0-9a-f]{1})"
)


@dataclass(frozen=True)
class Address:
    """The components of a PCI address."""

    domain: str
    bus: str
    device: str
    function: str

    def __str__(self) -> str:
        return f"{self.domain}:{self.bus}:{self.device}.{self.function}"


def from_string(address: str) -> Optional[Address]:
    """Parse a BDF or full DBDF address; return None if it is not valid."""
    match = _ADDRESS_RE.fullmatch(address.lower())
    if match is None:
        return None
    domain = match.group(2) if match.group(1) else "0000"
    return Address(
        domain=domain,
        bus=match.group(3),
        device=match.group(4),
        function=match.group(5),
    )
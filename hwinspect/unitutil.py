"""Binary size units."""

from __future__ import annotations

KB = 1024
MB = KB * 1024
GB = MB * 1024
TB = GB * 1024
PB = TB * 1024
EB = PB * 1024

_UNITS = ((MB, KB, "KB"), (GB, MB, "MB"), (TB, GB, "GB"), (PB, TB, "TB"), (EB, PB, "PB"))


def amount_string(size: int) -> tuple[int, str]:
    """Return the unit and its suffix best suited to express ``size`` bytes."""
    for limit, unit, suffix in _UNITS:
        if size < limit:
            return unit, suffix
    return EB, "EB"